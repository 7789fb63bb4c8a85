"""
Unit tests for parsing and validation helpers.

Run: pytest tests/test_utils.py -v
"""

from datetime import datetime

import pytest

from utils import (ConfigHelper, parse_datetime, parse_string_list, validate_consultant_data,
                   validate_interview_data, validate_submission_data, validate_vendor_data)


class TestParsing:

    def test_parse_datetime(self):
        assert parse_datetime(None) is None
        assert parse_datetime('') is None
        assert parse_datetime('2024-01-15') == datetime(2024, 1, 15)
        assert parse_datetime('2024-01-15T10:30:00Z') == datetime(2024, 1, 15, 10, 30)

    def test_parse_datetime_rejects_garbage(self):
        with pytest.raises(ValueError):
            parse_datetime('next tuesday')

    @pytest.mark.parametrize('value, expected', [
        (['Java', ' AWS '], ['Java', 'AWS']),
        ('Java, AWS,', ['Java', 'AWS']),
        ('["React", "Node.js"]', ['React', 'Node.js']),
        (None, []),
    ])
    def test_parse_string_list(self, value, expected):
        assert parse_string_list(value) == expected

    def test_parse_string_list_rejects_objects(self):
        with pytest.raises(ValueError):
            parse_string_list({'skill': 'Java'})


class TestValidation:

    def test_consultant_required_fields(self):
        errors = validate_consultant_data({})
        assert errors == ['First name is required', 'Last name is required', 'Email is required']

    def test_partial_update_checks_only_given_fields(self):
        assert validate_consultant_data({}, partial=True) == []
        assert validate_consultant_data({'email': 'not-an-email'}, partial=True) == ['Invalid email format']

    @pytest.mark.parametrize('value', [123, ['john@example.com'], {'address': 'john@example.com'}])
    def test_non_string_email_is_a_format_error(self, value):
        assert validate_consultant_data({'email': value}, partial=True) == ['Invalid email format']

    def test_non_string_phone_is_a_format_error(self):
        assert validate_vendor_data({'name': 'X', 'phone': 5550104}) == ['Invalid phone number format']

    def test_vendor_status_choice(self):
        errors = validate_vendor_data({'name': 'X', 'status': 'dormant'})
        assert len(errors) == 1
        assert errors[0].startswith('Invalid status')

    def test_submission_dates_and_status(self):
        errors = validate_submission_data({
            'consultant_id': 1, 'vendor_id': 1, 'position_title': 'Dev',
            'submission_date': 'yesterday', 'status': None
        })
        assert 'Invalid submission date: expected an ISO date' in errors
        assert any(e.startswith('Invalid status') for e in errors)

    def test_interview_outcome_may_be_cleared(self):
        assert validate_interview_data({'outcome': None}, partial=True) == []

    def test_interview_rating_range(self):
        assert validate_interview_data({'rating': 6}, partial=True) == ['Rating must be between 1 and 5']
        assert validate_interview_data({'rating': 'good'}, partial=True) == ['Rating must be an integer']


class TestConfigHelper:

    def test_report_recipients_are_split(self, monkeypatch):
        monkeypatch.setenv('REPORT_RECIPIENTS', 'a@example.com, b@example.com,')
        monkeypatch.setenv('REPORTS_ENABLED', 'true')
        config = ConfigHelper.get_report_config()
        assert config['recipients'] == ['a@example.com', 'b@example.com']
        assert config['enabled'] is True
