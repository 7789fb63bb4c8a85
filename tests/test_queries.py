"""
Tests for the filter layer and joined views.

Run: pytest tests/test_queries.py -v
"""

from datetime import datetime

import pytest

from database import db
from errors import ValidationError
from queries import (InterviewFilter, ListFilter, SubmissionFilter, follow_up_reminders, list_consultants,
                     list_interviews, list_submissions, list_vendors, parse_interview_filter,
                     parse_submission_filter, recent_submissions, submission_view, vendor_view)


def _ids(rows):
    return [row.id for row in rows]


# ---------------------------------------------------------------------------
# Consultants and vendors
# ---------------------------------------------------------------------------

class TestListConsultants:

    def test_status_all_and_omitted_are_unfiltered(self, sample):
        assert len(list_consultants(ListFilter())) == 2
        assert len(list_consultants(ListFilter(status='all'))) == 2

    def test_specific_status(self, sample):
        assert len(list_consultants(ListFilter(status='active'))) == 2
        assert list_consultants(ListFilter(status='placed')) == []

    def test_unknown_status_returns_nothing(self, sample):
        assert list_consultants(ListFilter(status='retired')) == []

    @pytest.mark.parametrize('term', ['john smith', 'SMITH', 'john.smith@', 'java developer', 'spring'])
    def test_search_matches_case_insensitively(self, sample, term):
        assert _ids(list_consultants(ListFilter(search=term))) == [sample.john.id]

    @pytest.mark.parametrize('term', ['_', '%', 'j_hn', '%smith'])
    def test_wildcard_characters_match_literally(self, sample, term):
        assert list_consultants(ListFilter(search=term)) == []

    def test_underscore_in_data_is_found(self, sample):
        sample.sarah.email = 'sarah_johnson@email.com'
        db.session.commit()
        assert _ids(list_consultants(ListFilter(search='h_j'))) == [sample.sarah.id]

    def test_recruiter_sees_only_own_consultants(self, sample):
        assert list_consultants(ListFilter(), owner_id=sample.recruiter.id) == []
        assert len(list_consultants(ListFilter(), owner_id=sample.admin.id)) == 2


class TestListVendors:

    def test_search_specialties(self, sample):
        assert _ids(list_vendors(ListFilter(search='kubernetes'))) == [sample.cloudfirst.id]

    def test_percent_is_not_a_wildcard(self, sample):
        assert list_vendors(ListFilter(search='%')) == []

    def test_recruiter_sees_assigned_vendors(self, sample):
        assert _ids(list_vendors(ListFilter(), owner_id=sample.recruiter.id)) == [sample.techcorp.id]

    def test_vendor_view_joins_recruiter_and_submissions(self, sample):
        view = vendor_view(sample.techcorp)
        assert view['recruiter']['email'] == 'rita@example.com'
        assert {s['id'] for s in view['submissions']} == {sample.s1.id, sample.s2.id}


# ---------------------------------------------------------------------------
# Submissions
# ---------------------------------------------------------------------------

class TestListSubmissions:

    def test_newest_first(self, sample):
        expected = [sample.s4.id, sample.s3.id, sample.s2.id, sample.s1.id]
        assert _ids(list_submissions(SubmissionFilter())) == expected

    def test_weekly_window(self, sample):
        flt = parse_submission_filter({'timeframe': 'weekly', 'week': '3', 'month': '1', 'year': '2024'})
        assert _ids(list_submissions(flt)) == [sample.s3.id, sample.s2.id, sample.s1.id]

    def test_search_by_consultant_name(self, sample):
        assert _ids(list_submissions(SubmissionFilter(search='sarah'))) == [sample.s4.id, sample.s2.id]

    def test_search_by_vendor_and_client(self, sample):
        assert _ids(list_submissions(SubmissionFilter(search='techcorp'))) == [sample.s2.id, sample.s1.id]
        assert _ids(list_submissions(SubmissionFilter(search='acme'))) == [sample.s1.id]

    def test_search_wildcards_match_literally(self, sample):
        assert list_submissions(SubmissionFilter(search='_')) == []
        assert list_submissions(SubmissionFilter(search='acme%')) == []

    def test_status_filters(self, sample):
        assert _ids(list_submissions(SubmissionFilter(status='hired'))) == [sample.s4.id]
        assert len(list_submissions(SubmissionFilter(status='all'))) == 4
        assert list_submissions(SubmissionFilter(status='withdrawn')) == []

    def test_recruiter_scope(self, sample):
        rows = list_submissions(SubmissionFilter(), owner_id=sample.recruiter.id)
        assert _ids(rows) == [sample.s4.id, sample.s2.id, sample.s1.id]

    def test_malformed_timeframe(self, sample):
        with pytest.raises(ValidationError):
            parse_submission_filter({'timeframe': 'weekly', 'week': 'x'})

    def test_recent_submissions_limit(self, sample):
        assert _ids(recent_submissions(limit=2)) == [sample.s4.id, sample.s3.id]

    def test_submission_view_joins_related_rows(self, sample):
        view = submission_view(sample.s3)
        assert view['consultant']['name'] == 'John Smith'
        assert view['vendor']['name'] == 'CloudFirst Systems'
        assert view['recruiter']['email'] == 'oscar@example.com'
        assert [i['id'] for i in view['interviews']] == [sample.i1.id]


# ---------------------------------------------------------------------------
# Interviews
# ---------------------------------------------------------------------------

class TestListInterviews:

    def test_scoped_through_submission(self, sample):
        assert list_interviews(InterviewFilter(), owner_id=sample.recruiter.id) == []
        assert _ids(list_interviews(InterviewFilter(), owner_id=sample.other.id)) == [sample.i1.id]

    def test_date_range(self, sample):
        flt = InterviewFilter(date_from=datetime(2024, 1, 25), date_to=datetime(2024, 1, 26))
        assert _ids(list_interviews(flt)) == [sample.i1.id]
        flt = InterviewFilter(date_from=datetime(2024, 1, 26))
        assert list_interviews(flt) == []

    def test_upcoming_uses_now(self, sample):
        assert _ids(list_interviews(InterviewFilter(upcoming=True), now=datetime(2024, 1, 1))) == [sample.i1.id]
        assert list_interviews(InterviewFilter(upcoming=True), now=datetime(2024, 2, 1)) == []

    def test_parse_interview_filter(self):
        flt = parse_interview_filter({'upcoming': 'true', 'submission_id': '7', 'date_from': '2024-01-01'})
        assert flt.upcoming
        assert flt.submission_id == 7
        assert flt.date_from == datetime(2024, 1, 1)

    def test_parse_interview_filter_rejects_bad_values(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_interview_filter({'submission_id': 'abc', 'date_to': 'tomorrow'})
        assert len(exc_info.value.errors) == 2


# ---------------------------------------------------------------------------
# Follow-up reminders
# ---------------------------------------------------------------------------

class TestFollowUpReminders:

    @pytest.fixture
    def reminders_setup(self, sample):
        sample.s1.next_follow_up_date = datetime(2024, 1, 30, 12, 0)
        sample.s1.last_vendor_contact = datetime(2024, 1, 27, 12, 0)
        sample.s2.next_follow_up_date = datetime(2024, 2, 5, 12, 0)
        # Closed submissions never get reminders
        sample.s4.next_follow_up_date = datetime(2024, 1, 29, 12, 0)
        db.session.commit()
        return sample

    def test_open_submissions_soonest_first(self, reminders_setup):
        reminders = follow_up_reminders(now=datetime(2024, 2, 1, 12, 0))
        assert [r['id'] for r in reminders] == [reminders_setup.s1.id, reminders_setup.s2.id]
        first = reminders[0]
        assert first['days_past_due'] == 2
        assert first['days_since_contact'] == 5
        assert first['consultant_name'] == 'John Smith'
        assert reminders[1]['days_since_contact'] == 0

    def test_overdue_only(self, reminders_setup):
        reminders = follow_up_reminders(overdue=True, now=datetime(2024, 2, 1, 12, 0))
        assert [r['id'] for r in reminders] == [reminders_setup.s1.id]
