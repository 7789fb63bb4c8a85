"""
Shared fixtures: an app over in-memory SQLite and a small, fixed dataset.

The dataset is laid out around January 2024 (week 3 runs Sunday 01-14 to
Saturday 01-20):

    s1  John Smith   / TechCorp    submitted            2024-01-15  recruiter
    s2  Sarah Johnson/ TechCorp    under_review         2024-01-18  recruiter
    s3  John Smith   / CloudFirst  interview_scheduled  2024-01-20  other
    s4  Sarah Johnson/ CloudFirst  hired                2024-01-22  recruiter

i1 is an interview on s3 five days after it was submitted.
"""

from datetime import datetime
from types import SimpleNamespace

import pytest
from flask import g

from app import create_app
from database import db
from models import (Consultant, ConsultantStatus, Interview, InterviewType, RoundType, Submission,
                    SubmissionStatus, User, UserRole, Vendor, VendorStatus)


@pytest.fixture
def app(monkeypatch):
    for name in ('SMTP_USER', 'SMTP_PASSWORD', 'REPORT_RECIPIENTS', 'REPORT_SENDER_EMAIL', 'REPORTS_ENABLED'):
        monkeypatch.delenv(name, raising=False)

    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_ENGINE_OPTIONS': {},
        'DEFAULT_ADMIN_EMAIL': None,
    })

    # Requests reuse the fixture's app context, so drop the user Flask-Login
    # cached on g during the previous request.
    @app.before_request
    def forget_previous_identity():
        g.pop('_login_user', None)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def headers():
    """Identity headers the reverse proxy would set for ``user``."""
    def build(user):
        return {'X-Auth-User-Id': user.external_id, 'X-Auth-User-Email': user.email}
    return build


def _user(external_id, email, first_name, last_name, role):
    user = User(external_id=external_id, email=email, username=email,
                first_name=first_name, last_name=last_name, role=role)
    db.session.add(user)
    return user


@pytest.fixture
def sample(app):
    admin = _user('admin-1', 'ada@example.com', 'Ada', 'Admin', UserRole.ADMIN)
    recruiter = _user('rec-1', 'rita@example.com', 'Rita', 'Recruiter', UserRole.RECRUITER)
    other = _user('rec-2', 'oscar@example.com', 'Oscar', 'Other', UserRole.RECRUITER)
    db.session.flush()

    john = Consultant(first_name='John', last_name='Smith', email='john.smith@email.com',
                      position='Senior Java Developer', skills=['Java', 'Spring Boot', 'AWS'],
                      status=ConsultantStatus.ACTIVE, created_by=admin.id)
    sarah = Consultant(first_name='Sarah', last_name='Johnson', email='sarah.johnson@email.com',
                       position='React Frontend Developer', skills=['React', 'TypeScript'],
                       status=ConsultantStatus.ACTIVE, created_by=admin.id)
    techcorp = Vendor(name='TechCorp Solutions', contact_person='Robert Wilson', email='robert@techcorp.com',
                      specialties=['Java'], status=VendorStatus.ACTIVE,
                      recruiter_id=recruiter.id, created_by=admin.id)
    cloudfirst = Vendor(name='CloudFirst Systems', contact_person='David Brown', email='david@cloudfirst.com',
                        specialties=['DevOps', 'Kubernetes'], status=VendorStatus.ACTIVE,
                        recruiter_id=other.id, created_by=admin.id)
    db.session.add_all([john, sarah, techcorp, cloudfirst])
    db.session.flush()

    s1 = Submission(consultant_id=john.id, vendor_id=techcorp.id, position_title='Senior Java Developer',
                    client_name='Acme Bank', status=SubmissionStatus.SUBMITTED,
                    submission_date=datetime(2024, 1, 15, 9, 0), created_by=recruiter.id)
    s2 = Submission(consultant_id=sarah.id, vendor_id=techcorp.id, position_title='Frontend React Developer',
                    status=SubmissionStatus.UNDER_REVIEW,
                    submission_date=datetime(2024, 1, 18, 9, 0), created_by=recruiter.id)
    s3 = Submission(consultant_id=john.id, vendor_id=cloudfirst.id, position_title='DevOps Engineer',
                    status=SubmissionStatus.INTERVIEW_SCHEDULED,
                    submission_date=datetime(2024, 1, 20, 10, 0), created_by=other.id)
    s4 = Submission(consultant_id=sarah.id, vendor_id=cloudfirst.id, position_title='Data Scientist',
                    status=SubmissionStatus.HIRED,
                    submission_date=datetime(2024, 1, 22, 9, 0), created_by=recruiter.id)
    db.session.add_all([s1, s2, s3, s4])
    db.session.flush()

    i1 = Interview(submission_id=s3.id, interview_date=datetime(2024, 1, 25, 10, 0),
                   interview_type=InterviewType.VIDEO, round_type=RoundType.TECHNICAL, created_by=other.id)
    db.session.add(i1)
    db.session.commit()

    return SimpleNamespace(admin=admin, recruiter=recruiter, other=other,
                           john=john, sarah=sarah, techcorp=techcorp, cloudfirst=cloudfirst,
                           s1=s1, s2=s2, s3=s3, s4=s4, i1=i1)
