"""
Dashboard statistics and analytics.

Counters and series are computed over submissions whose ``submission_date``
falls inside a half-open window; ``owner_id`` limits everything to one
recruiter's submissions.
"""

import logging
from collections import Counter, OrderedDict
from datetime import datetime, timedelta

from database import db
from models import (Consultant, ConsultantStatus, Interview, InterviewStatus, Submission, SubmissionStatus,
                    User, Vendor)
from timeframes import current_week
from utils import utcnow

logger = logging.getLogger(__name__)

# Published counter name for each submission status
COUNTER_NAMES = OrderedDict([
    (SubmissionStatus.SUBMITTED, 'submitted'),
    (SubmissionStatus.UNDER_REVIEW, 'pending'),
    (SubmissionStatus.INTERVIEW_SCHEDULED, 'interviews'),
    (SubmissionStatus.HIRED, 'hired'),
    (SubmissionStatus.REJECTED, 'rejected'),
])

MIN_CHART_SCALE = 10
MIN_BAR_HEIGHT = 4

PERIOD_KINDS = ('daily', 'weekly', 'monthly')


def _scoped(query, owner_id=None, start=None, end=None):
    if owner_id is not None:
        query = query.filter(Submission.created_by == owner_id)
    if start is not None:
        query = query.filter(Submission.submission_date >= start)
    if end is not None:
        query = query.filter(Submission.submission_date < end)
    return query


def status_counts(owner_id=None, start=None, end=None):
    """Submission count per status, every status present."""
    query = _scoped(db.session.query(Submission.status, db.func.count(Submission.id)), owner_id, start, end)
    counts = {status: 0 for status in SubmissionStatus}
    for status, total in query.group_by(Submission.status).all():
        counts[status] = total
    return counts


def dashboard_stats(window, owner_id=None):
    counts = status_counts(owner_id, window.start, window.end)
    logger.debug(f"Dashboard stats for {window.start:%Y-%m-%d}..{window.end:%Y-%m-%d}: {sum(counts.values())} submissions")
    return {name: counts[status] for status, name in COUNTER_NAMES.items()}


def _submission_dates(owner_id=None, start=None, end=None):
    query = _scoped(db.session.query(Submission.submission_date), owner_id, start, end)
    return [row[0] for row in query.all()]


def daily_counts(window, owner_id=None):
    """Zero-filled ``[{date, count}]`` for each day of the window."""
    per_day = Counter(moment.date() for moment in _submission_dates(owner_id, window.start, window.end))
    return [{'date': day.isoformat(), 'count': per_day.get(day, 0)} for day in window.days()]


def chart_scale(series):
    return max([entry['count'] for entry in series] + [MIN_CHART_SCALE])


def weekly_activity(today=None, owner_id=None):
    """Sunday-Saturday activity for the week containing ``today``, shaped for the bar chart."""
    window = current_week(today)
    series = daily_counts(window, owner_id)
    scale = chart_scale(series)
    for entry in series:
        entry['height'] = max(round(entry['count'] / scale * 100, 1), MIN_BAR_HEIGHT)
    return {
        'activity': series,
        'scale': scale,
        'total': sum(entry['count'] for entry in series),
        'window': window.to_dict()
    }


def period_key(moment, kind):
    if kind == 'daily':
        return moment.strftime('%Y-%m-%d')
    if kind == 'weekly':
        # Week-of-year counted from January 1st in 7-day blocks
        return f"{moment.year}-W{(moment.timetuple().tm_yday - 1) // 7 + 1:02d}"
    return moment.strftime('%Y-%m')


def period_series(moments, kind):
    counts = Counter(period_key(moment, kind) for moment in moments)
    return [{'period': period, 'count': counts[period]} for period in sorted(counts)]


def _percent(part, whole):
    return round(part / whole * 100) if whole else 0


def _breakdown(counts):
    return {status.value: counts.get(status, 0) for status in SubmissionStatus}


def submission_analytics(owner_id=None, timeframe=None, start=None, end=None):
    counts = status_counts(owner_id, start, end)
    total = sum(counts.values())
    submitted = counts[SubmissionStatus.SUBMITTED]
    under_review = counts[SubmissionStatus.UNDER_REVIEW]
    interviewing = counts[SubmissionStatus.INTERVIEW_SCHEDULED]
    hired = counts[SubmissionStatus.HIRED]

    progression = _breakdown(counts)
    progression['waiting_for_vendor_update'] = submitted + under_review

    series = []
    if timeframe:
        series = period_series(_submission_dates(owner_id, start, end), timeframe)

    return {
        'total_submissions': total,
        'submissions_progression': progression,
        'time_based_submissions': series,
        'average_time_to_interview': average_days_to_interview(owner_id, start, end),
        'conversion_rates': {
            'submitted_to_interview': _percent(interviewing, total),
            'interview_to_hired': _percent(hired, interviewing),
            'overall_success': _percent(hired, total)
        }
    }


def average_days_to_interview(owner_id=None, start=None, end=None):
    """Mean days from submission to its first interview, over submissions that have one."""
    first_interview = db.func.min(Interview.interview_date)
    query = db.session.query(Submission.submission_date, first_interview) \
        .join(Interview, Interview.submission_id == Submission.id)
    query = _scoped(query, owner_id, start, end).group_by(Submission.id, Submission.submission_date)

    gaps = []
    for submitted_at, interviewed_at in query.all():
        gaps.append((interviewed_at - submitted_at) / timedelta(days=1))

    return round(sum(gaps) / len(gaps), 1) if gaps else 0


def _grouped_submissions(owner_id=None, start=None, end=None, consultant_id=None):
    query = _scoped(Submission.query, owner_id, start, end)
    if consultant_id is not None:
        query = query.filter(Submission.consultant_id == consultant_id)
    return query.all()


def consultant_analytics(owner_id=None, consultant_id=None, timeframe=None, start=None, end=None):
    grouped = OrderedDict()
    for submission in _grouped_submissions(owner_id, start, end, consultant_id):
        grouped.setdefault(submission.consultant_id, []).append(submission)

    consultants = {c.id: c for c in Consultant.query.filter(Consultant.id.in_(list(grouped))).all()}

    results = []
    for cid, submissions in grouped.items():
        entry = {
            'consultant_id': cid,
            'consultant_name': consultants[cid].name,
            'status_breakdown': _breakdown(Counter(s.status for s in submissions)),
            'total_submissions': len(submissions)
        }
        if timeframe:
            entry[f'{timeframe}_submissions'] = period_series([s.submission_date for s in submissions], timeframe)
        results.append(entry)

    results.sort(key=lambda item: item['total_submissions'], reverse=True)
    return results


def recruiter_performance(owner_id=None, timeframe=None, start=None, end=None):
    grouped = OrderedDict()
    for submission in _grouped_submissions(owner_id, start, end):
        grouped.setdefault(submission.created_by, []).append(submission)

    recruiters = {u.id: u for u in User.query.filter(User.id.in_(list(grouped))).all()}

    results = []
    for uid, submissions in grouped.items():
        counts = Counter(s.status for s in submissions)
        total = len(submissions)
        entry = {
            'recruiter_id': uid,
            'recruiter_name': recruiters[uid].name,
            'recruiter_email': recruiters[uid].email,
            'total_submissions': total,
            'consultants_worked_with': len({s.consultant_id for s in submissions}),
            'status_breakdown': _breakdown(counts),
            'success_rate': _percent(counts.get(SubmissionStatus.HIRED, 0), total)
        }
        if timeframe:
            entry['time_based_data'] = period_series([s.submission_date for s in submissions], timeframe)
        results.append(entry)

    results.sort(key=lambda item: item['total_submissions'], reverse=True)
    return results


def vendor_analytics(owner_id=None, start=None, end=None):
    """Per-vendor submission, interview and placement counts.

    ``owner_id`` here limits to vendors assigned to that recruiter.
    """
    query = Submission.query.join(Vendor, Submission.vendor_id == Vendor.id)
    if owner_id is not None:
        query = query.filter(Vendor.recruiter_id == owner_id)
    query = _scoped(query, None, start, end)

    grouped = OrderedDict()
    for submission in query.order_by(Submission.submission_date).all():
        grouped.setdefault(submission.vendor_id, []).append(submission)

    vendors = []
    monthly = OrderedDict()
    for vid, submissions in grouped.items():
        interviews = sum(1 for s in submissions
                         if s.status == SubmissionStatus.INTERVIEW_SCHEDULED or s.interviews)
        placements = sum(1 for s in submissions if s.status == SubmissionStatus.HIRED)
        vendors.append({
            'id': vid,
            'name': submissions[0].vendor.name,
            'total_submissions': len(submissions),
            'interviews_count': interviews,
            'placements_count': placements,
            'placement_rate': _percent(placements, len(submissions))
        })
        for s in submissions:
            bucket = monthly.setdefault(period_key(s.submission_date, 'monthly'),
                                        {'total_submissions': 0, 'total_interviews': 0, 'total_placements': 0})
            bucket['total_submissions'] += 1
            if s.status == SubmissionStatus.INTERVIEW_SCHEDULED:
                bucket['total_interviews'] += 1
            if s.status == SubmissionStatus.HIRED:
                bucket['total_placements'] += 1

    vendors.sort(key=lambda item: item['total_submissions'], reverse=True)
    total = sum(v['total_submissions'] for v in vendors)
    placed = sum(v['placements_count'] for v in vendors)

    return {
        'vendors': vendors,
        'monthly_trends': [dict(month=month, **values) for month, values in sorted(monthly.items())],
        'summary': {
            'total_active_vendors': len(vendors),
            'overall_placement_rate': _percent(placed, total)
        }
    }


def vendor_skill_metrics(owner_id=None):
    """Submission and placement counts per (vendor, consultant skill) pair.

    ``owner_id`` limits to vendors assigned to that recruiter.
    """
    query = Submission.query.join(Vendor, Submission.vendor_id == Vendor.id)
    if owner_id is not None:
        query = query.filter(Vendor.recruiter_id == owner_id)

    cells = OrderedDict()
    for submission in query.order_by(Vendor.name, Submission.id).all():
        for skill in submission.consultant.skills or []:
            cell = cells.setdefault((submission.vendor_id, skill), {
                'vendor_id': submission.vendor_id,
                'vendor_name': submission.vendor.name,
                'skill': skill,
                'submission_count': 0,
                'placement_count': 0
            })
            cell['submission_count'] += 1
            if submission.status == SubmissionStatus.HIRED:
                cell['placement_count'] += 1

    results = list(cells.values())
    for cell in results:
        cell['placement_rate'] = _percent(cell['placement_count'], cell['submission_count'])
    return results


LOOKBACK = {
    'daily': timedelta(days=1),
    'weekly': timedelta(days=7),
    'monthly': timedelta(days=30),
}


def _owned_consultants(owner_id=None):
    query = Consultant.query
    if owner_id is not None:
        query = query.filter(Consultant.created_by == owner_id)
    return query


def consultant_activity(owner_id=None, timeframe='weekly', now=None):
    """Per-consultant activity over the trailing period plus a daily trend.

    ``owner_id`` limits to consultants that recruiter created.
    """
    now = now or utcnow()
    since = now - LOOKBACK[timeframe]

    def recent(moment):
        return moment is not None and since <= moment <= now

    activity = []
    trends = OrderedDict()
    for consultant in _owned_consultants(owner_id).order_by(Consultant.last_name, Consultant.first_name).all():
        submissions = consultant.submissions
        interviews = [i for s in submissions for i in s.interviews]
        touched = [s.updated_at for s in submissions if s.updated_at is not None]
        activity.append({
            'consultant_id': consultant.id,
            'consultant_name': consultant.name,
            'new_submissions': sum(1 for s in submissions
                                   if s.status == SubmissionStatus.SUBMITTED and recent(s.submission_date)),
            'interviews_scheduled': sum(1 for s in submissions
                                        if s.status == SubmissionStatus.INTERVIEW_SCHEDULED),
            'interviews_completed': sum(1 for i in interviews if i.status == InterviewStatus.COMPLETED),
            'recent_placements': sum(1 for s in submissions
                                     if s.status == SubmissionStatus.HIRED and recent(s.updated_at)),
            'last_activity': max(touched).isoformat() if touched else None
        })

        for submission in submissions:
            if not recent(submission.submission_date):
                continue
            day = trends.setdefault(submission.submission_date.date().isoformat(),
                                    {'submission_count': 0, 'interview_count': 0, 'placement_count': 0})
            day['submission_count'] += 1
            day['interview_count'] += len(submission.interviews)
            if submission.status == SubmissionStatus.HIRED:
                day['placement_count'] += 1

    return {
        'timeframe': timeframe,
        'since': since.isoformat(),
        'consultant_activity': activity,
        'activity_trends': [dict(date=day, **counts) for day, counts in sorted(trends.items())]
    }


def consultant_summary(owner_id=None, now=None):
    """Headline counters for the consultant notification panel."""
    now = now or utcnow()
    today = now.date()
    week = current_week(today)
    month_start = datetime.combine(today.replace(day=1), datetime.min.time())

    consultants = _owned_consultants(owner_id).all()
    submissions = [s for c in consultants for s in c.submissions]

    return {
        'total_active_consultants': sum(1 for c in consultants if c.status == ConsultantStatus.ACTIVE),
        'today_submissions': sum(1 for s in submissions if s.submission_date.date() == today),
        'week_interviews': sum(1 for s in submissions for i in s.interviews if week.contains(i.interview_date)),
        'month_placements': sum(1 for s in submissions
                                if s.status == SubmissionStatus.HIRED
                                and s.updated_at is not None and month_start <= s.updated_at <= now)
    }
