"""Demo data for local development: ``flask --app main seed-demo``."""

import logging
from datetime import datetime

import click

from database import db
from models import (Consultant, ConsultantStatus, Interview, InterviewType, RoundType, Submission,
                    SubmissionStatus, User, UserRole, Vendor, VendorStatus)

logger = logging.getLogger(__name__)

DEMO_CONSULTANTS = [
    ('John', 'Smith', 'john.smith@email.com', '+1-555-0101', 'Senior Java Developer',
     ['Java', 'Spring Boot', 'Microservices', 'AWS'], '8 years', 'New York, NY', ConsultantStatus.ACTIVE),
    ('Sarah', 'Johnson', 'sarah.johnson@email.com', '+1-555-0102', 'React Frontend Developer',
     ['React', 'TypeScript', 'Node.js', 'GraphQL'], '5 years', 'San Francisco, CA', ConsultantStatus.ACTIVE),
    ('Michael', 'Chen', 'michael.chen@email.com', '+1-555-0103', 'DevOps Engineer',
     ['Docker', 'Kubernetes', 'AWS', 'Terraform'], '6 years', 'Seattle, WA', ConsultantStatus.PLACED),
    ('Emily', 'Davis', 'emily.davis@email.com', '+1-555-0104', 'Python Data Scientist',
     ['Python', 'Machine Learning', 'TensorFlow', 'SQL'], '4 years', 'Boston, MA', ConsultantStatus.ACTIVE),
]

DEMO_VENDORS = [
    ('TechCorp Solutions', 'Robert Wilson', 'robert.wilson@techcorp.com', '+1-555-1001', 'New York, NY',
     ['Java', 'Spring Boot', 'Microservices'], VendorStatus.ACTIVE, 'Leading technology consulting firm'),
    ('InnovateTech Inc', 'Lisa Anderson', 'lisa.anderson@innovatetech.com', '+1-555-1002', 'San Francisco, CA',
     ['React', 'AI', 'Machine Learning'], VendorStatus.ACTIVE, 'Startup focused on AI and machine learning'),
    ('CloudFirst Systems', 'David Brown', 'david.brown@cloudfirst.com', '+1-555-1003', 'Seattle, WA',
     ['DevOps', 'AWS', 'Docker', 'Kubernetes'], VendorStatus.ACTIVE, 'Cloud infrastructure and DevOps specialists'),
    ('DataDriven Analytics', 'Jennifer Taylor', 'jennifer.taylor@datadriven.com', '+1-555-1004', 'Boston, MA',
     ['Python', 'Data Analytics', 'SQL'], VendorStatus.PENDING, 'Data analytics and business intelligence'),
]

# (consultant index, vendor index, position, status, submitted on, notes)
DEMO_SUBMISSIONS = [
    (0, 0, 'Senior Java Developer', SubmissionStatus.SUBMITTED, datetime(2024, 1, 15),
     'Great fit for their microservices project'),
    (1, 1, 'Frontend React Developer', SubmissionStatus.UNDER_REVIEW, datetime(2024, 1, 18),
     'Awaiting technical interview feedback'),
    (2, 2, 'DevOps Engineer', SubmissionStatus.INTERVIEW_SCHEDULED, datetime(2024, 1, 20),
     'Technical interview scheduled for next week'),
    (3, 3, 'Data Scientist', SubmissionStatus.HIRED, datetime(2024, 1, 22),
     'Offer accepted'),
]


def seed_demo_data():
    """Insert the demo rows unless consultants already exist. Returns False when skipped."""
    if Consultant.query.first() is not None:
        logger.info("Database already seeded")
        return False

    creator = User.query.filter_by(role=UserRole.ADMIN).order_by(User.id).first() \
        or User.query.order_by(User.id).first()
    if creator is None:
        raise click.ClickException('Create a user before seeding demo data')

    logger.info("Seeding database with demo data...")

    consultants = []
    for first, last, email, phone, position, skills, experience, location, status in DEMO_CONSULTANTS:
        consultants.append(Consultant(
            first_name=first, last_name=last, email=email, phone=phone, position=position,
            skills=skills, experience=experience, location=location, status=status,
            resume_file_name=f"{first.lower()}-{last.lower()}-resume.pdf",
            created_by=creator.id
        ))

    vendors = []
    for name, contact, email, phone, location, specialties, status, notes in DEMO_VENDORS:
        vendors.append(Vendor(
            name=name, contact_person=contact, email=email, phone=phone, location=location,
            specialties=specialties, status=status, notes=notes,
            recruiter_id=creator.id, created_by=creator.id
        ))

    db.session.add_all(consultants + vendors)
    db.session.flush()

    submissions = []
    for consultant_idx, vendor_idx, position, status, submitted_on, notes in DEMO_SUBMISSIONS:
        submissions.append(Submission(
            consultant_id=consultants[consultant_idx].id,
            vendor_id=vendors[vendor_idx].id,
            position_title=position,
            status=status,
            submission_date=submitted_on,
            notes=notes,
            notes_updated_at=submitted_on,
            created_by=creator.id
        ))
    db.session.add_all(submissions)
    db.session.flush()

    db.session.add(Interview(
        submission_id=submissions[2].id,
        interview_date=datetime(2024, 1, 25, 14, 0),
        interview_type=InterviewType.VIDEO,
        round_type=RoundType.TECHNICAL,
        meeting_link='https://meet.example.com/devops-tech',
        created_by=creator.id
    ))

    db.session.commit()
    logger.info(f"Seeded {len(consultants)} consultants, {len(vendors)} vendors, {len(submissions)} submissions")
    return True


def register_commands(app):
    @app.cli.command('seed-demo')
    def seed_demo():
        """Load demo consultants, vendors, submissions and interviews."""
        if seed_demo_data():
            click.echo('Demo data loaded.')
        else:
            click.echo('Database already seeded.')
