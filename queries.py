"""
Query layer: filter requests and joined views over the entity store.

Filters are immutable request objects built once from the query string and
passed down explicitly. Every list takes an ``owner_id`` produced by the
authorization policy; None means unrestricted.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import joinedload, selectinload

from database import db
from errors import ValidationError
from models import (CLOSED_SUBMISSION_STATUSES, Consultant, ConsultantStatus, Interview, InterviewStatus,
                    Submission, SubmissionStatus, Vendor, VendorStatus)
from timeframes import Window, parse_timeframe, window_for
from utils import parse_datetime, utcnow

ALL_STATUSES = 'all'
RECENT_SUBMISSIONS_LIMIT = 4


@dataclass(frozen=True)
class ListFilter:
    search: Optional[str] = None
    status: Optional[str] = None


@dataclass(frozen=True)
class SubmissionFilter:
    search: Optional[str] = None
    status: Optional[str] = None
    window: Optional[Window] = None


@dataclass(frozen=True)
class InterviewFilter:
    upcoming: bool = False
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    submission_id: Optional[int] = None
    status: Optional[str] = None


def _clean(value):
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_list_filter(args):
    return ListFilter(search=_clean(args.get('search')), status=_clean(args.get('status')))


def parse_submission_filter(args, today=None):
    timeframe = parse_timeframe(args, today=today)
    return SubmissionFilter(
        search=_clean(args.get('search')),
        status=_clean(args.get('status')),
        window=window_for(timeframe) if timeframe else None
    )


def parse_interview_filter(args):
    errors = []
    submission_id = None
    raw_submission = _clean(args.get('submission_id'))
    if raw_submission is not None:
        try:
            submission_id = int(raw_submission)
        except ValueError:
            errors.append('submission_id must be an integer')

    date_from = date_to = None
    try:
        date_from = parse_datetime(args.get('date_from'))
    except ValueError:
        errors.append('date_from must be an ISO date')
    try:
        date_to = parse_datetime(args.get('date_to'))
    except ValueError:
        errors.append('date_to must be an ISO date')

    if errors:
        raise ValidationError('Invalid interview filter', errors)

    return InterviewFilter(
        upcoming=(args.get('upcoming', '').lower() == 'true'),
        date_from=date_from,
        date_to=date_to,
        submission_id=submission_id,
        status=_clean(args.get('status'))
    )


def _status_member(enum_cls, status):
    """Resolve a status filter.

    Returns (apply, member). ``apply`` is False when no filtering is wanted;
    ``member`` is None when the value is not a known status.
    """
    if not status or status == ALL_STATUSES:
        return False, None
    try:
        return True, enum_cls(status)
    except ValueError:
        return True, None


def _contains(column, text):
    """Case-insensitive substring match; % and _ in ``text`` are literal"""
    return column.icontains(text, autoescape=True)


def list_consultants(flt: ListFilter, owner_id=None):
    query = Consultant.query

    apply_status, status = _status_member(ConsultantStatus, flt.status)
    if apply_status:
        if status is None:
            return []
        query = query.filter(Consultant.status == status)

    if flt.search:
        query = query.filter(
            db.or_(
                _contains(Consultant.first_name, flt.search),
                _contains(Consultant.last_name, flt.search),
                _contains(Consultant.first_name + ' ' + Consultant.last_name, flt.search),
                _contains(Consultant.email, flt.search),
                _contains(Consultant.position, flt.search),
                _contains(db.cast(Consultant.skills, db.String), flt.search)
            )
        )

    # Recruiters only see consultants they created
    if owner_id is not None:
        query = query.filter(Consultant.created_by == owner_id)

    return query.order_by(Consultant.created_at.desc(), Consultant.id.desc()).all()


def list_vendors(flt: ListFilter, owner_id=None):
    query = Vendor.query

    apply_status, status = _status_member(VendorStatus, flt.status)
    if apply_status:
        if status is None:
            return []
        query = query.filter(Vendor.status == status)

    if flt.search:
        query = query.filter(
            db.or_(
                _contains(Vendor.name, flt.search),
                _contains(Vendor.contact_person, flt.search),
                _contains(Vendor.email, flt.search),
                _contains(db.cast(Vendor.specialties, db.String), flt.search)
            )
        )

    # Recruiters only see the vendors assigned to them
    if owner_id is not None:
        query = query.filter(Vendor.recruiter_id == owner_id)

    return query.order_by(Vendor.created_at.desc(), Vendor.id.desc()).all()


def _submission_query():
    return Submission.query.options(
        joinedload(Submission.consultant),
        joinedload(Submission.vendor),
        joinedload(Submission.recruiter),
        selectinload(Submission.interviews)
    )


def list_submissions(flt: SubmissionFilter, owner_id=None):
    query = _submission_query()

    apply_status, status = _status_member(SubmissionStatus, flt.status)
    if apply_status:
        if status is None:
            return []
        query = query.filter(Submission.status == status)

    if flt.window is not None:
        query = query.filter(Submission.submission_date >= flt.window.start,
                             Submission.submission_date < flt.window.end)

    if flt.search:
        consultant_ids = db.session.query(Consultant.id).filter(
            db.or_(
                _contains(Consultant.first_name, flt.search),
                _contains(Consultant.last_name, flt.search),
                _contains(Consultant.first_name + ' ' + Consultant.last_name, flt.search),
                _contains(Consultant.email, flt.search)
            )
        )
        vendor_ids = db.session.query(Vendor.id).filter(_contains(Vendor.name, flt.search))
        query = query.filter(
            db.or_(
                _contains(Submission.position_title, flt.search),
                _contains(Submission.client_name, flt.search),
                Submission.consultant_id.in_(consultant_ids),
                Submission.vendor_id.in_(vendor_ids)
            )
        )

    if owner_id is not None:
        query = query.filter(Submission.created_by == owner_id)

    return query.order_by(Submission.submission_date.desc(), Submission.id.desc()).all()


def recent_submissions(owner_id=None, limit=RECENT_SUBMISSIONS_LIMIT):
    return list_submissions(SubmissionFilter(), owner_id=owner_id)[:limit]


def list_interviews(flt: InterviewFilter, owner_id=None, now=None):
    query = Interview.query.join(Submission, Interview.submission_id == Submission.id).options(
        joinedload(Interview.submission).joinedload(Submission.consultant),
        joinedload(Interview.submission).joinedload(Submission.vendor)
    )

    if flt.submission_id is not None:
        query = query.filter(Interview.submission_id == flt.submission_id)

    apply_status, status = _status_member(InterviewStatus, flt.status)
    if apply_status:
        if status is None:
            return []
        query = query.filter(Interview.status == status)

    if flt.upcoming:
        query = query.filter(Interview.interview_date >= (now or utcnow()))
    if flt.date_from is not None:
        query = query.filter(Interview.interview_date >= flt.date_from)
    if flt.date_to is not None:
        query = query.filter(Interview.interview_date <= flt.date_to)

    if owner_id is not None:
        query = query.filter(Submission.created_by == owner_id)

    return query.order_by(Interview.interview_date.asc(), Interview.id.asc()).all()


def interviews_between(start, end, owner_id=None):
    """Interviews with ``start <= interview_date <= end``, ascending."""
    return list_interviews(InterviewFilter(date_from=start, date_to=end), owner_id=owner_id)


def follow_up_reminders(owner_id=None, overdue=False, now=None):
    """Open submissions with a follow-up date, soonest first."""
    now = now or utcnow()
    query = _submission_query().filter(
        Submission.next_follow_up_date.isnot(None),
        Submission.status.notin_(CLOSED_SUBMISSION_STATUSES)
    )

    if owner_id is not None:
        query = query.filter(Submission.created_by == owner_id)

    if overdue:
        query = query.filter(Submission.next_follow_up_date <= now)

    reminders = []
    for submission in query.order_by(Submission.next_follow_up_date.asc()).all():
        days_since_contact = 0
        if submission.last_vendor_contact:
            days_since_contact = (now - submission.last_vendor_contact) // timedelta(days=1)
        days_past_due = (now - submission.next_follow_up_date) // timedelta(days=1)

        reminders.append({
            'id': submission.id,
            'consultant_name': submission.consultant.name,
            'vendor_name': submission.vendor.name,
            'position_title': submission.position_title,
            'status': submission.status.value,
            'next_follow_up_date': submission.next_follow_up_date.isoformat(),
            'last_vendor_contact': submission.last_vendor_contact.isoformat() if submission.last_vendor_contact else None,
            'vendor_feedback': submission.vendor_feedback,
            'days_since_contact': days_since_contact,
            'days_past_due': days_past_due
        })

    return reminders


# Joined views

def submission_view(submission, include_interviews=True):
    data = submission.to_dict()
    data['consultant'] = submission.consultant.to_dict()
    data['vendor'] = submission.vendor.to_dict()
    data['recruiter'] = submission.recruiter.to_dict() if submission.recruiter else None
    if include_interviews:
        data['interviews'] = [interview.to_dict() for interview in submission.interviews]
    return data


def consultant_view(consultant):
    data = consultant.to_dict()
    data['submissions'] = [submission_view(s, include_interviews=False) for s in consultant.submissions]
    return data


def vendor_view(vendor):
    data = vendor.to_dict()
    data['recruiter'] = vendor.recruiter.to_dict() if vendor.recruiter else None
    data['submissions'] = [submission_view(s, include_interviews=False) for s in vendor.submissions]
    return data


def interview_view(interview):
    data = interview.to_dict()
    submission = interview.submission
    data['submission'] = {
        'id': submission.id,
        'position_title': submission.position_title,
        'client_name': submission.client_name,
        'status': submission.status.value,
        'consultant': submission.consultant.to_dict(),
        'vendor': submission.vendor.to_dict()
    }
    return data
