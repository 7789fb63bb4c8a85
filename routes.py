import logging
from datetime import time, timedelta
from flask import Response, jsonify, request
from flask_login import login_required, current_user
from sqlalchemy.exc import SQLAlchemyError
from database import db
from errors import AuthorizationError, InUseError, NotFoundError, ReferentialError, ValidationError, get_or_404
from models import (CLOSED_SUBMISSION_STATUSES, Consultant, ConsultantStatus, Interview, InterviewOutcome,
                    InterviewStatus, InterviewType, RoundType, Submission, SubmissionStatus, User, UserRole,
                    Vendor, VendorStatus)
from policy import owner_id, require
from queries import (consultant_view, follow_up_reminders, interview_view, interviews_between, list_consultants,
                     list_interviews, list_submissions, list_vendors, parse_interview_filter, parse_list_filter,
                     parse_submission_filter, recent_submissions, submission_view, vendor_view)
from reports import REPORT_TYPES, generate_report_preview, send_report
from stats import (PERIOD_KINDS, consultant_activity, consultant_analytics, consultant_summary, dashboard_stats,
                   recruiter_performance, submission_analytics, vendor_analytics, vendor_skill_metrics,
                   weekly_activity)
from timeframes import current_week, parse_timeframe, window_for
from urgency import NEAR_TERM, UPCOMING_LIMIT, annotate, lookahead_window, near_term_count
from utils import (parse_datetime, parse_string_list, utcnow, validate_consultant_data, validate_interview_data,
                   validate_submission_data, validate_user_data, validate_vendor_data)

logger = logging.getLogger(__name__)

def _text(value):
    if value is None:
        return None
    value = str(value).strip()
    return value or None

def _email(value):
    value = _text(value)
    return value.lower() if value else None

def _choice(enum_cls):
    def convert(value):
        return enum_cls(value) if value not in (None, '') else None
    return convert

def _optional_int(value):
    return int(value) if value not in (None, '') else None

# Writable fields per entity and how to convert the submitted value
CONSULTANT_FIELDS = {
    'first_name': _text,
    'last_name': _text,
    'email': _email,
    'phone': _text,
    'location': _text,
    'position': _text,
    'experience': _text,
    'skills': parse_string_list,
    'resume_url': _text,
    'resume_file_name': _text,
    'status': _choice(ConsultantStatus)
}

VENDOR_FIELDS = {
    'name': _text,
    'contact_person': _text,
    'email': _email,
    'phone': _text,
    'location': _text,
    'specialties': parse_string_list,
    'status': _choice(VendorStatus),
    'notes': _text,
    'partnership_date': parse_datetime
}

SUBMISSION_FIELDS = {
    'consultant_id': _optional_int,
    'vendor_id': _optional_int,
    'position_title': _text,
    'client_name': _text,
    'end_client_name': _text,
    'status': _choice(SubmissionStatus),
    'submission_date': parse_datetime,
    'last_vendor_contact': parse_datetime,
    'next_follow_up_date': parse_datetime,
    'vendor_feedback': _text,
    'notes': _text
}

INTERVIEW_FIELDS = {
    'interview_date': parse_datetime,
    'interview_type': _choice(InterviewType),
    'round_type': _choice(RoundType),
    'meeting_link': _text,
    'location': _text,
    'notes': _text,
    'status': _choice(InterviewStatus),
    'feedback': _text,
    'rating': _optional_int,
    'outcome': _choice(InterviewOutcome),
    'next_steps': _text,
    'follow_up_date': parse_datetime
}

USER_FIELDS = {
    'email': _email,
    'username': _text,
    'first_name': _text,
    'last_name': _text,
    'role': _choice(UserRole)
}

def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('No data provided')
    return data

def _validated(data, validator, partial=False):
    errors = validator(data, partial=partial)
    if errors:
        raise ValidationError('Invalid data', errors)
    return data

def _apply(entity, data, fields):
    """Copy the provided fields onto ``entity``; returns the names that changed."""
    changed = set()
    for field, convert in fields.items():
        if field not in data:
            continue
        value = convert(data[field])
        if getattr(entity, field) != value:
            setattr(entity, field, value)
            changed.add(field)
    return changed

def _scope(action, resource):
    """Owner id to filter on for ``current_user``; None means unrestricted."""
    decision = require(current_user, action, resource)
    return owner_id(current_user, decision)

def _check_owner(owner, row_owner, label):
    # Rows outside the caller's scope are reported as missing
    if owner is not None and row_owner != owner:
        raise NotFoundError(f'{label} not found')

def _referenced(model, entity_id, label):
    entity = db.session.get(model, entity_id) if entity_id is not None else None
    if entity is None:
        raise ReferentialError(f'{label} does not exist')
    return entity

def _conflicting_user(data, exclude_id=None):
    """Another user already holding the submitted email or username"""
    clauses = []
    if data.get('email'):
        clauses.append(User.email == _email(data['email']))
    if data.get('username'):
        clauses.append(User.username == _text(data['username']))
    if not clauses:
        return None
    query = User.query.filter(db.or_(*clauses))
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first()

def _stamp_submission(submission, changed, now):
    """Side effects of a submission write"""
    if 'notes' in changed and submission.notes:
        submission.notes_updated_at = now
    if 'vendor_feedback' in changed and submission.vendor_feedback:
        submission.vendor_feedback_updated_at = now
    # Hired or rejected closes the follow-up loop
    if submission.status in CLOSED_SUBMISSION_STATUSES:
        submission.next_follow_up_date = None

def _analytics_params():
    errors = []
    timeframe = request.args.get('timeframe') or None
    if timeframe is not None and timeframe not in PERIOD_KINDS:
        errors.append(f"timeframe must be one of: {', '.join(PERIOD_KINDS)}")

    bounds = {}
    for name in ('date_from', 'date_to'):
        try:
            bounds[name] = parse_datetime(request.args.get(name))
        except ValueError:
            errors.append(f'{name} must be an ISO date')
            bounds[name] = None

    if errors:
        raise ValidationError('Invalid analytics parameters', errors)

    start, end = bounds['date_from'], bounds['date_to']
    # A bare date for the upper bound covers that whole day
    if end is not None and end.time() == time.min:
        end = end + timedelta(days=1)
    return timeframe, start, end

def register_routes(app):

    @app.route('/api/auth/user')
    @login_required
    def api_auth_user():
        return jsonify({'success': True, 'user': current_user.to_dict()})

    # Dashboard

    @app.route('/api/dashboard/stats')
    @login_required
    def api_dashboard_stats():
        """Five submission counters for the requested window (default: this week)"""
        owner = _scope('view', 'stats')
        timeframe = parse_timeframe(request.args)
        window = window_for(timeframe) if timeframe else current_week()

        return jsonify({
            'success': True,
            'stats': dashboard_stats(window, owner),
            'window': window.to_dict()
        })

    @app.route('/api/dashboard/activity')
    @login_required
    def api_dashboard_activity():
        """Sunday-Saturday submission counts for the bar chart"""
        owner = _scope('view', 'stats')
        return jsonify(dict(success=True, **weekly_activity(owner_id=owner)))

    @app.route('/api/dashboard/recent-submissions')
    @login_required
    def api_recent_submissions():
        owner = _scope('list', 'submission')
        submissions = [submission_view(s, include_interviews=False) for s in recent_submissions(owner)]
        return jsonify({'success': True, 'submissions': submissions, 'count': len(submissions)})

    @app.route('/api/dashboard/follow-up-reminders')
    @login_required
    def api_follow_up_reminders():
        owner = _scope('list', 'submission')
        overdue = request.args.get('overdue', '').lower() == 'true'
        reminders = follow_up_reminders(owner, overdue=overdue)
        return jsonify({'success': True, 'reminders': reminders, 'count': len(reminders)})

    @app.route('/api/dashboard/upcoming-interviews')
    @login_required
    def api_upcoming_interviews():
        """Next interviews within the lookahead window, soonest first"""
        owner = _scope('list', 'interview')
        now = utcnow()
        start, end = lookahead_window(now)
        interviews = interviews_between(start, end, owner)

        upcoming = []
        for interview in interviews[:UPCOMING_LIMIT]:
            data = interview_view(interview)
            data.update(annotate(interview, now))
            upcoming.append(data)

        return jsonify({
            'success': True,
            'interviews': upcoming,
            'total': len(interviews),
            'near_term_count': near_term_count(interviews, now)
        })

    @app.route('/api/dashboard/urgent-interviews')
    @login_required
    def api_urgent_interviews():
        """Interviews starting within the next two hours (header badge)"""
        owner = _scope('list', 'interview')
        now = utcnow()
        interviews = interviews_between(now, now + NEAR_TERM, owner)

        urgent = []
        for interview in interviews:
            data = interview_view(interview)
            data.update(annotate(interview, now))
            urgent.append(data)

        return jsonify({'success': True, 'interviews': urgent, 'count': len(urgent)})

    @app.route('/api/dashboard/week-interviews')
    @login_required
    def api_week_interviews():
        owner = _scope('list', 'interview')
        now = utcnow()
        window = current_week(now.date())

        interviews = []
        for interview in interviews_between(window.start, window.end, owner):
            if not window.contains(interview.interview_date):
                continue
            data = interview_view(interview)
            data.update(annotate(interview, now))
            interviews.append(data)

        return jsonify({
            'success': True,
            'interviews': interviews,
            'count': len(interviews),
            'window': window.to_dict()
        })

    # Consultants

    @app.route('/api/consultants', methods=['GET'])
    @login_required
    def api_consultants():
        owner = _scope('list', 'consultant')
        consultants = list_consultants(parse_list_filter(request.args), owner)
        return jsonify({
            'success': True,
            'consultants': [c.to_dict() for c in consultants],
            'count': len(consultants)
        })

    @app.route('/api/consultants', methods=['POST'])
    @login_required
    def api_create_consultant():
        require(current_user, 'create', 'consultant')
        data = _validated(_json_body(), validate_consultant_data)

        # Check if consultant already exists
        existing = Consultant.query.filter_by(email=_email(data['email'])).first()
        if existing:
            return jsonify({
                'success': False,
                'error': 'Consultant already exists',
                'consultant_id': existing.id
            }), 409

        try:
            consultant = Consultant(created_by=current_user.id)
            _apply(consultant, data, CONSULTANT_FIELDS)
            db.session.add(consultant)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating consultant: {e}")
            return jsonify({'success': False, 'error': 'Failed to create consultant'}), 500

        logger.info(f"Consultant {consultant.id} created by user {current_user.id}")
        return jsonify({'success': True, 'consultant': consultant.to_dict()}), 201

    @app.route('/api/consultants/<int:consultant_id>', methods=['GET'])
    @login_required
    def api_consultant_detail(consultant_id):
        owner = _scope('view', 'consultant')
        consultant = get_or_404(Consultant, consultant_id, 'Consultant')
        _check_owner(owner, consultant.created_by, 'Consultant')
        return jsonify({'success': True, 'consultant': consultant_view(consultant)})

    @app.route('/api/consultants/<int:consultant_id>', methods=['PUT', 'PATCH'])
    @login_required
    def api_update_consultant(consultant_id):
        owner = _scope('update', 'consultant')
        consultant = get_or_404(Consultant, consultant_id, 'Consultant')
        _check_owner(owner, consultant.created_by, 'Consultant')
        data = _validated(_json_body(), validate_consultant_data, partial=True)

        if 'email' in data:
            existing = Consultant.query.filter_by(email=_email(data['email'])).first()
            if existing and existing.id != consultant.id:
                return jsonify({
                    'success': False,
                    'error': 'Consultant already exists',
                    'consultant_id': existing.id
                }), 409

        try:
            _apply(consultant, data, CONSULTANT_FIELDS)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error updating consultant {consultant_id}: {e}")
            return jsonify({'success': False, 'error': 'Failed to update consultant'}), 500

        return jsonify({'success': True, 'consultant': consultant.to_dict()})

    @app.route('/api/consultants/<int:consultant_id>', methods=['DELETE'])
    @login_required
    def api_delete_consultant(consultant_id):
        require(current_user, 'delete', 'consultant')
        consultant = get_or_404(Consultant, consultant_id, 'Consultant')

        in_use = Submission.query.filter_by(consultant_id=consultant_id).count()
        if in_use:
            raise InUseError(f'Consultant has {in_use} submission(s) and cannot be deleted')

        consultant_name = consultant.name
        db.session.delete(consultant)
        db.session.commit()

        logger.info(f"Consultant {consultant_id} deleted by user {current_user.id}")
        return jsonify({'success': True, 'message': f'Consultant "{consultant_name}" has been deleted'})

    # Vendors

    @app.route('/api/vendors', methods=['GET'])
    @login_required
    def api_vendors():
        owner = _scope('list', 'vendor')
        vendors = list_vendors(parse_list_filter(request.args), owner)
        return jsonify({
            'success': True,
            'vendors': [v.to_dict() for v in vendors],
            'count': len(vendors)
        })

    @app.route('/api/vendors', methods=['POST'])
    @login_required
    def api_create_vendor():
        owner = _scope('create', 'vendor')
        data = _validated(_json_body(), validate_vendor_data)

        # Admins may assign any recruiter; recruiters always own their vendors
        recruiter_id = current_user.id
        if owner is None and data.get('recruiter_id') not in (None, ''):
            recruiter_id = _referenced(User, int(data['recruiter_id']), 'Recruiter').id

        try:
            vendor = Vendor(recruiter_id=recruiter_id, created_by=current_user.id)
            _apply(vendor, data, VENDOR_FIELDS)
            if vendor.partnership_date is None:
                vendor.partnership_date = utcnow()
            db.session.add(vendor)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating vendor: {e}")
            return jsonify({'success': False, 'error': 'Failed to create vendor'}), 500

        return jsonify({'success': True, 'vendor': vendor.to_dict()}), 201

    @app.route('/api/vendors/<int:vendor_id>', methods=['GET'])
    @login_required
    def api_vendor_detail(vendor_id):
        owner = _scope('view', 'vendor')
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        _check_owner(owner, vendor.recruiter_id, 'Vendor')
        return jsonify({'success': True, 'vendor': vendor_view(vendor)})

    @app.route('/api/vendors/<int:vendor_id>', methods=['PUT', 'PATCH'])
    @login_required
    def api_update_vendor(vendor_id):
        owner = _scope('update', 'vendor')
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')
        _check_owner(owner, vendor.recruiter_id, 'Vendor')
        data = _validated(_json_body(), validate_vendor_data, partial=True)

        if data.get('recruiter_id') not in (None, ''):
            recruiter_id = int(data['recruiter_id'])
            if recruiter_id != vendor.recruiter_id:
                if owner is not None:
                    raise AuthorizationError('Only admins can reassign vendors')
                vendor.recruiter_id = _referenced(User, recruiter_id, 'Recruiter').id

        try:
            _apply(vendor, data, VENDOR_FIELDS)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error updating vendor {vendor_id}: {e}")
            return jsonify({'success': False, 'error': 'Failed to update vendor'}), 500

        return jsonify({'success': True, 'vendor': vendor.to_dict()})

    @app.route('/api/vendors/<int:vendor_id>', methods=['DELETE'])
    @login_required
    def api_delete_vendor(vendor_id):
        require(current_user, 'delete', 'vendor')
        vendor = get_or_404(Vendor, vendor_id, 'Vendor')

        in_use = Submission.query.filter_by(vendor_id=vendor_id).count()
        if in_use:
            raise InUseError(f'Vendor has {in_use} submission(s) and cannot be deleted')

        vendor_name = vendor.name
        db.session.delete(vendor)
        db.session.commit()

        logger.info(f"Vendor {vendor_id} deleted by user {current_user.id}")
        return jsonify({'success': True, 'message': f'Vendor "{vendor_name}" has been deleted'})

    # Submissions

    @app.route('/api/submissions', methods=['GET'])
    @login_required
    def api_submissions():
        owner = _scope('list', 'submission')
        submissions = list_submissions(parse_submission_filter(request.args), owner)
        return jsonify({
            'success': True,
            'submissions': [submission_view(s) for s in submissions],
            'count': len(submissions)
        })

    @app.route('/api/submissions', methods=['POST'])
    @login_required
    def api_create_submission():
        require(current_user, 'create', 'submission')
        data = _validated(_json_body(), validate_submission_data)

        _referenced(Consultant, int(data['consultant_id']), 'Consultant')
        _referenced(Vendor, int(data['vendor_id']), 'Vendor')

        try:
            submission = Submission(created_by=current_user.id)
            changed = _apply(submission, data, SUBMISSION_FIELDS)
            if submission.status is None:
                submission.status = SubmissionStatus.SUBMITTED
            _stamp_submission(submission, changed, utcnow())
            db.session.add(submission)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating submission: {e}")
            return jsonify({'success': False, 'error': 'Failed to create submission'}), 500

        logger.info(f"Submission {submission.id} created by user {current_user.id}")
        return jsonify({'success': True, 'submission': submission_view(submission)}), 201

    @app.route('/api/submissions/<int:submission_id>', methods=['GET'])
    @login_required
    def api_submission_detail(submission_id):
        owner = _scope('view', 'submission')
        submission = get_or_404(Submission, submission_id, 'Submission')
        _check_owner(owner, submission.created_by, 'Submission')
        return jsonify({'success': True, 'submission': submission_view(submission)})

    @app.route('/api/submissions/<int:submission_id>', methods=['PUT', 'PATCH'])
    @login_required
    def api_update_submission(submission_id):
        owner = _scope('update', 'submission')
        submission = get_or_404(Submission, submission_id, 'Submission')
        _check_owner(owner, submission.created_by, 'Submission')
        data = _validated(_json_body(), validate_submission_data, partial=True)

        if 'consultant_id' in data:
            _referenced(Consultant, int(data['consultant_id']), 'Consultant')
        if 'vendor_id' in data:
            _referenced(Vendor, int(data['vendor_id']), 'Vendor')

        try:
            changed = _apply(submission, data, SUBMISSION_FIELDS)
            _stamp_submission(submission, changed, utcnow())
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error updating submission {submission_id}: {e}")
            return jsonify({'success': False, 'error': 'Failed to update submission'}), 500

        return jsonify({'success': True, 'submission': submission_view(submission)})

    @app.route('/api/submissions/<int:submission_id>', methods=['DELETE'])
    @login_required
    def api_delete_submission(submission_id):
        """Delete a submission together with its interviews"""
        owner = _scope('delete', 'submission')
        submission = get_or_404(Submission, submission_id, 'Submission')
        _check_owner(owner, submission.created_by, 'Submission')

        interview_count = len(submission.interviews)
        db.session.delete(submission)
        db.session.commit()

        logger.info(f"Submission {submission_id} deleted with {interview_count} interview(s)")
        return jsonify({'success': True, 'message': 'Submission has been deleted', 'interviews_deleted': interview_count})

    # Interviews

    @app.route('/api/interviews', methods=['GET'])
    @login_required
    def api_interviews():
        owner = _scope('list', 'interview')
        interviews = list_interviews(parse_interview_filter(request.args), owner)
        return jsonify({
            'success': True,
            'interviews': [interview_view(i) for i in interviews],
            'count': len(interviews)
        })

    @app.route('/api/interviews', methods=['POST'])
    @login_required
    def api_create_interview():
        owner = _scope('create', 'interview')
        data = _validated(_json_body(), validate_interview_data)

        submission = db.session.get(Submission, int(data['submission_id']))
        if submission is None or (owner is not None and submission.created_by != owner):
            raise ReferentialError('Submission does not exist')

        try:
            interview = Interview(submission_id=submission.id, created_by=current_user.id)
            _apply(interview, data, INTERVIEW_FIELDS)
            if interview.status is None:
                interview.status = InterviewStatus.SCHEDULED
            db.session.add(interview)

            # Scheduling an interview moves the submission forward
            submission.status = SubmissionStatus.INTERVIEW_SCHEDULED
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating interview: {e}")
            return jsonify({'success': False, 'error': 'Failed to create interview'}), 500

        logger.info(f"Interview {interview.id} scheduled for submission {submission.id}")
        return jsonify({'success': True, 'interview': interview_view(interview)}), 201

    @app.route('/api/interviews/<int:interview_id>', methods=['GET'])
    @login_required
    def api_interview_detail(interview_id):
        owner = _scope('view', 'interview')
        interview = get_or_404(Interview, interview_id, 'Interview')
        _check_owner(owner, interview.submission.created_by, 'Interview')
        return jsonify({'success': True, 'interview': interview_view(interview)})

    @app.route('/api/interviews/<int:interview_id>', methods=['PUT', 'PATCH'])
    @login_required
    def api_update_interview(interview_id):
        owner = _scope('update', 'interview')
        interview = get_or_404(Interview, interview_id, 'Interview')
        _check_owner(owner, interview.submission.created_by, 'Interview')

        data = _json_body()
        if 'submission_id' in data and str(data['submission_id']) != str(interview.submission_id):
            raise ValidationError('Invalid data', ['An interview cannot be moved to another submission'])
        _validated(data, validate_interview_data, partial=True)

        try:
            _apply(interview, data, INTERVIEW_FIELDS)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error updating interview {interview_id}: {e}")
            return jsonify({'success': False, 'error': 'Failed to update interview'}), 500

        return jsonify({'success': True, 'interview': interview_view(interview)})

    @app.route('/api/interviews/<int:interview_id>', methods=['DELETE'])
    @login_required
    def api_delete_interview(interview_id):
        owner = _scope('delete', 'interview')
        interview = get_or_404(Interview, interview_id, 'Interview')
        _check_owner(owner, interview.submission.created_by, 'Interview')

        db.session.delete(interview)
        db.session.commit()
        return jsonify({'success': True, 'message': 'Interview has been deleted'})

    # Analytics

    @app.route('/api/analytics/submissions')
    @login_required
    def api_submission_analytics():
        owner = _scope('view', 'analytics')
        timeframe, start, end = _analytics_params()
        return jsonify({'success': True, 'analytics': submission_analytics(owner, timeframe, start, end)})

    @app.route('/api/analytics/consultants')
    @login_required
    def api_consultant_analytics():
        owner = _scope('view', 'analytics')
        timeframe, start, end = _analytics_params()
        try:
            consultant_id = _optional_int(request.args.get('consultant_id'))
        except ValueError:
            raise ValidationError('Invalid analytics parameters', ['consultant_id must be an integer'])

        analytics = consultant_analytics(owner, consultant_id, timeframe, start, end)
        return jsonify({'success': True, 'analytics': analytics})

    @app.route('/api/analytics/recruiters')
    @login_required
    def api_recruiter_analytics():
        owner = _scope('view', 'analytics')
        timeframe, start, end = _analytics_params()
        return jsonify({'success': True, 'analytics': recruiter_performance(owner, timeframe, start, end)})

    @app.route('/api/analytics/vendors')
    @login_required
    def api_vendor_analytics():
        owner = _scope('view', 'analytics')
        _, start, end = _analytics_params()
        return jsonify({'success': True, 'analytics': vendor_analytics(owner, start, end)})

    @app.route('/api/analytics/vendor-skills')
    @login_required
    def api_vendor_skill_analytics():
        owner = _scope('view', 'analytics')
        return jsonify({'success': True, 'vendor_skills': vendor_skill_metrics(owner)})

    @app.route('/api/analytics/consultant-summary')
    @login_required
    def api_consultant_summary():
        owner = _scope('view', 'analytics')
        return jsonify({'success': True, 'summary': consultant_summary(owner)})

    @app.route('/api/notifications/consultant-activity')
    @login_required
    def api_consultant_activity():
        """Consultant activity over the trailing day, week or month"""
        owner = _scope('view', 'analytics')
        timeframe = request.args.get('timeframe') or 'weekly'
        if timeframe not in PERIOD_KINDS:
            raise ValidationError('Invalid timeframe', [f"timeframe must be one of: {', '.join(PERIOD_KINDS)}"])
        return jsonify({'success': True, **consultant_activity(owner, timeframe)})

    # Reports

    @app.route('/api/reports/send', methods=['POST'])
    @login_required
    def api_send_report():
        require(current_user, 'send', 'report')
        data = _json_body()

        report_type = data.get('report_type')
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"report_type must be one of: {', '.join(REPORT_TYPES)}")

        recipients = data.get('recipient_emails')
        if isinstance(recipients, str):
            recipients = [recipients]

        success = send_report(report_type, recipients=recipients, sender_email=data.get('sender_email'))
        if not success:
            return jsonify({'success': False, 'error': 'Failed to send report'}), 503
        return jsonify({'success': True, 'message': 'Report sent successfully'})

    @app.route('/api/reports/preview/<report_type>')
    @login_required
    def api_preview_report(report_type):
        require(current_user, 'preview', 'report')
        if report_type not in REPORT_TYPES:
            raise ValidationError(f"report_type must be one of: {', '.join(REPORT_TYPES)}")
        return Response(generate_report_preview(report_type), mimetype='text/html')

    # Admin user management

    @app.route('/api/admin/users', methods=['GET'])
    @login_required
    def api_users():
        require(current_user, 'list', 'user')
        users = User.query.order_by(User.created_at.desc(), User.id.desc()).all()
        return jsonify({'success': True, 'users': [u.to_dict() for u in users], 'count': len(users)})

    @app.route('/api/admin/users', methods=['POST'])
    @login_required
    def api_create_user():
        require(current_user, 'create', 'user')
        data = _validated(_json_body(), validate_user_data)

        existing = _conflicting_user(data)
        if existing:
            return jsonify({'success': False, 'error': 'User already exists', 'user_id': existing.id}), 409

        try:
            user = User()
            _apply(user, data, USER_FIELDS)
            if user.role is None:
                user.role = UserRole.RECRUITER
            if user.username is None:
                user.username = user.email
            db.session.add(user)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error creating user: {e}")
            return jsonify({'success': False, 'error': 'Failed to create user'}), 500

        logger.info(f"User {user.email} created as {user.role.value}")
        return jsonify({'success': True, 'user': user.to_dict()}), 201

    @app.route('/api/admin/users/<int:user_id>', methods=['PUT', 'PATCH'])
    @login_required
    def api_update_user(user_id):
        require(current_user, 'update', 'user')
        user = get_or_404(User, user_id, 'User')
        data = _validated(_json_body(), validate_user_data, partial=True)

        if user.id == current_user.id and data.get('role') not in (None, UserRole.ADMIN.value):
            raise ValidationError('Admins cannot remove their own admin role')

        existing = _conflicting_user(data, exclude_id=user.id)
        if existing:
            return jsonify({'success': False, 'error': 'User already exists', 'user_id': existing.id}), 409

        try:
            _apply(user, data, USER_FIELDS)
            db.session.commit()
        except SQLAlchemyError as e:
            db.session.rollback()
            logger.error(f"Error updating user {user_id}: {e}")
            return jsonify({'success': False, 'error': 'Failed to update user'}), 500

        return jsonify({'success': True, 'user': user.to_dict()})

    @app.route('/api/admin/users/<int:user_id>', methods=['DELETE'])
    @login_required
    def api_delete_user(user_id):
        require(current_user, 'delete', 'user')
        user = get_or_404(User, user_id, 'User')

        if user.id == current_user.id:
            raise ValidationError('Admins cannot delete themselves')

        in_use = (
            Submission.query.filter_by(created_by=user_id).count()
            + Vendor.query.filter(db.or_(Vendor.recruiter_id == user_id, Vendor.created_by == user_id)).count()
            + Consultant.query.filter_by(created_by=user_id).count()
            + Interview.query.filter_by(created_by=user_id).count()
        )
        if in_use:
            raise InUseError('User still owns records and cannot be deleted')

        db.session.delete(user)
        db.session.commit()

        logger.info(f"User {user_id} deleted by user {current_user.id}")
        return jsonify({'success': True, 'message': 'User has been deleted'})
