import os
import re
import json
import logging
from datetime import date, datetime, timezone
from typing import List, Dict, Optional

from models import (ConsultantStatus, InterviewOutcome, InterviewStatus, InterviewType, RoundType,
                    SubmissionStatus, UserRole, VendorStatus, enum_values)

logger = logging.getLogger(__name__)

def utcnow() -> datetime:
    """Current time as naive UTC, the form every DateTime column stores"""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def utc_today() -> date:
    return utcnow().date()

def validate_email(email: str) -> bool:
    """Validate email address format"""
    if not email or not isinstance(email, str):
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))

def validate_phone(phone: str) -> bool:
    """Validate phone number format"""
    if not phone or not isinstance(phone, str):
        return False

    # Remove spaces, dashes, parentheses, dots
    clean_phone = re.sub(r'[\s\-\(\)\.]', '', phone)

    pattern = r'^\+?[\d]{7,15}$'
    return bool(re.match(pattern, clean_phone))

def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO date or datetime string; None/empty stays None.

    Aware values are converted to naive UTC so they compare with stored columns.
    Raises ValueError on anything unparseable.
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).strip().replace('Z', '+00:00'))
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

def parse_string_list(value) -> List[str]:
    """Accept a list, a JSON array string or a comma separated string"""
    if value is None or value == '':
        return []
    if isinstance(value, str):
        text = value.strip()
        if text.startswith('['):
            value = json.loads(text)
        else:
            value = text.split(',')
    if not isinstance(value, (list, tuple)):
        raise ValueError('expected a list of strings')
    return [str(item).strip() for item in value if str(item).strip()]

def log_processing_time(func):
    """Decorator to log function processing time"""
    def wrapper(*args, **kwargs):
        start_time = datetime.now()

        try:
            result = func(*args, **kwargs)
            end_time = datetime.now()
            processing_time = (end_time - start_time).total_seconds()

            logger.info(f"{func.__name__} completed in {processing_time:.2f} seconds")
            return result

        except Exception as e:
            end_time = datetime.now()
            processing_time = (end_time - start_time).total_seconds()

            logger.error(f"{func.__name__} failed after {processing_time:.2f} seconds: {e}")
            raise

    wrapper.__name__ = func.__name__
    wrapper.__doc__ = func.__doc__
    return wrapper

class ConfigHelper:
    """Helper class for configuration management"""

    @staticmethod
    def get_smtp_config():
        """Get SMTP configuration from environment"""
        return {
            'smtp_server': os.getenv('SMTP_SERVER', 'smtp.gmail.com'),
            'smtp_port': int(os.getenv('SMTP_PORT', '587')),
            'smtp_user': os.getenv('SMTP_USER', ''),
            'smtp_password': os.getenv('SMTP_PASSWORD', '')
        }

    @staticmethod
    def get_report_config():
        """Get scheduled report configuration from environment"""
        recipients = [email.strip() for email in os.getenv('REPORT_RECIPIENTS', '').split(',') if email.strip()]
        return {
            'enabled': os.getenv('REPORTS_ENABLED', 'false').lower() == 'true',
            'sender_email': os.getenv('REPORT_SENDER_EMAIL', os.getenv('SMTP_USER', '')),
            'recipients': recipients,
            'daily_at': os.getenv('REPORT_DAILY_AT', '19:00'),
            'weekly_at': os.getenv('REPORT_WEEKLY_AT', '19:00'),
            'monthly_at': os.getenv('REPORT_MONTHLY_AT', '19:00')
        }

# Validation helpers
#
# Each validator returns a list of human readable errors.  With partial=True
# only the fields present in ``data`` are checked (edit forms send partial
# updates).

def _check_required(data: Dict, fields: Dict[str, str], partial: bool, errors: List[str]):
    for field, message in fields.items():
        if partial and field not in data:
            continue
        value = data.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            errors.append(message)

def _check_format(data: Dict, field: str, check, message: str, errors: List[str]):
    value = data.get(field)
    if value in (None, ''):
        return
    if not check(value):
        errors.append(message)

def _check_choice(data: Dict, field: str, choices: List[str], errors: List[str], nullable: bool = False):
    if field not in data:
        return
    value = data.get(field)
    if nullable and value in (None, ''):
        return
    if value not in choices:
        errors.append(f"Invalid {field.replace('_', ' ')}: must be one of {', '.join(choices)}")

def _check_dates(data: Dict, fields: List[str], errors: List[str]):
    for field in fields:
        try:
            parse_datetime(data.get(field))
        except (TypeError, ValueError):
            errors.append(f"Invalid {field.replace('_', ' ')}: expected an ISO date")

def _check_list(data: Dict, field: str, errors: List[str]):
    if field not in data:
        return
    try:
        parse_string_list(data.get(field))
    except ValueError:
        errors.append(f"Invalid {field}: expected a list of strings")

def _check_id(data: Dict, field: str, errors: List[str]):
    value = data.get(field)
    if value is None or value == '':
        return
    try:
        int(value)
    except (TypeError, ValueError):
        errors.append(f"Invalid {field.replace('_', ' ')}: expected an integer id")

def validate_consultant_data(data: Dict, partial: bool = False) -> List[str]:
    """Validate consultant data and return list of errors"""
    errors = []
    _check_required(data, {
        'first_name': 'First name is required',
        'last_name': 'Last name is required',
        'email': 'Email is required'
    }, partial, errors)

    _check_format(data, 'email', validate_email, "Invalid email format", errors)
    _check_format(data, 'phone', validate_phone, "Invalid phone number format", errors)

    _check_list(data, 'skills', errors)
    _check_choice(data, 'status', enum_values(ConsultantStatus), errors)
    return errors

def validate_vendor_data(data: Dict, partial: bool = False) -> List[str]:
    """Validate vendor data and return list of errors"""
    errors = []
    _check_required(data, {'name': 'Vendor name is required'}, partial, errors)

    _check_format(data, 'email', validate_email, "Invalid email format", errors)
    _check_format(data, 'phone', validate_phone, "Invalid phone number format", errors)

    _check_list(data, 'specialties', errors)
    _check_choice(data, 'status', enum_values(VendorStatus), errors)
    _check_id(data, 'recruiter_id', errors)
    return errors

def validate_submission_data(data: Dict, partial: bool = False) -> List[str]:
    """Validate submission data and return list of errors"""
    errors = []
    _check_required(data, {
        'consultant_id': 'Consultant is required',
        'vendor_id': 'Vendor is required',
        'position_title': 'Position title is required',
        'submission_date': 'Submission date is required'
    }, partial, errors)

    _check_id(data, 'consultant_id', errors)
    _check_id(data, 'vendor_id', errors)
    _check_choice(data, 'status', enum_values(SubmissionStatus), errors)
    _check_dates(data, ['submission_date', 'last_vendor_contact', 'next_follow_up_date'], errors)
    return errors

def validate_interview_data(data: Dict, partial: bool = False) -> List[str]:
    """Validate interview data and return list of errors"""
    errors = []
    _check_required(data, {
        'submission_id': 'Submission is required',
        'interview_date': 'Interview date is required',
        'interview_type': 'Interview type is required',
        'round_type': 'Round type is required'
    }, partial, errors)

    _check_id(data, 'submission_id', errors)
    _check_choice(data, 'interview_type', enum_values(InterviewType), errors)
    _check_choice(data, 'round_type', enum_values(RoundType), errors)
    _check_choice(data, 'status', enum_values(InterviewStatus), errors)
    _check_choice(data, 'outcome', enum_values(InterviewOutcome), errors, nullable=True)
    _check_dates(data, ['interview_date', 'follow_up_date'], errors)

    rating = data.get('rating')
    if rating is not None and rating != '':
        try:
            if not 1 <= int(rating) <= 5:
                errors.append("Rating must be between 1 and 5")
        except (TypeError, ValueError):
            errors.append("Rating must be an integer")
    return errors

def validate_user_data(data: Dict, partial: bool = False) -> List[str]:
    """Validate user data and return list of errors"""
    errors = []
    _check_required(data, {'email': 'Email is required'}, partial, errors)

    _check_format(data, 'email', validate_email, "Invalid email format", errors)

    _check_choice(data, 'role', enum_values(UserRole), errors)
    return errors
