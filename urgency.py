"""
Interview urgency bands.

Classification is a pure function of "now" and the stored interview time;
nothing is written back.
"""

import enum
from datetime import timedelta

URGENT_MINUTES = 15
SOON_MINUTES = 120
LOOKAHEAD_DAYS = 7
UPCOMING_LIMIT = 5
NEAR_TERM = timedelta(hours=2)


class UrgencyBand(enum.Enum):
    IN_PROGRESS = "in_progress"
    URGENT = "urgent"
    SOON = "soon"
    SCHEDULED = "scheduled"


def minutes_until(interview_date, now):
    return (interview_date - now).total_seconds() / 60


def classify_minutes(minutes):
    if minutes < 0:
        return UrgencyBand.IN_PROGRESS
    if minutes <= URGENT_MINUTES:
        return UrgencyBand.URGENT
    if minutes <= SOON_MINUTES:
        return UrgencyBand.SOON
    return UrgencyBand.SCHEDULED


def classify(interview_date, now):
    return classify_minutes(minutes_until(interview_date, now))


def urgency_label(interview_date, now):
    """Short display label for a badge, e.g. '12 min' or '2 hours'."""
    minutes = minutes_until(interview_date, now)
    band = classify_minutes(minutes)
    if band == UrgencyBand.IN_PROGRESS:
        return 'In Progress'
    if band == UrgencyBand.URGENT:
        return f"{int(minutes)} min"
    if band == UrgencyBand.SOON:
        hours = int(minutes // 60)
        return f"{hours} hour{'' if hours == 1 else 's'}"
    return 'Scheduled'


def is_near_term(interview_date, now):
    return now <= interview_date <= now + NEAR_TERM


def lookahead_window(now):
    return now, now + timedelta(days=LOOKAHEAD_DAYS)


def annotate(interview, now):
    return {
        'urgency': classify(interview.interview_date, now).value,
        'urgency_label': urgency_label(interview.interview_date, now),
        'minutes_until': round(minutes_until(interview.interview_date, now), 1)
    }


def near_term_count(interviews, now):
    return sum(1 for interview in interviews if is_near_term(interview.interview_date, now))
