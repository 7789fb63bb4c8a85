from datetime import datetime
from database import db
from flask_login import UserMixin
from sqlalchemy import Enum
import enum


def _same_as_created(context):
    # updated_at starts equal to created_at so created_at <= updated_at always holds
    return context.get_current_parameters().get('created_at') or datetime.utcnow()


def _iso(value):
    return value.isoformat() if value else None


class UserRole(enum.Enum):
    ADMIN = "admin"
    RECRUITER = "recruiter"

class ConsultantStatus(enum.Enum):
    ACTIVE = "active"
    PLACED = "placed"
    INACTIVE = "inactive"

class VendorStatus(enum.Enum):
    ACTIVE = "active"
    PENDING = "pending"
    INACTIVE = "inactive"

class SubmissionStatus(enum.Enum):
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    HIRED = "hired"
    REJECTED = "rejected"

class InterviewType(enum.Enum):
    PHONE = "phone"
    VIDEO = "video"
    ONSITE = "onsite"

class RoundType(enum.Enum):
    SCREENING = "screening"
    TECHNICAL = "technical"
    MANAGER = "manager"
    FINAL = "final"
    HR = "hr"

class InterviewStatus(enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"

class InterviewOutcome(enum.Enum):
    PASS = "pass"
    FAIL = "fail"
    PENDING = "pending"


# Submission statuses that close the follow-up loop with the vendor
CLOSED_SUBMISSION_STATUSES = (SubmissionStatus.HIRED, SubmissionStatus.REJECTED)


def enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    external_id = db.Column(db.String(128), unique=True)  # subject id from the identity provider
    email = db.Column(db.String(120), unique=True, nullable=False)
    username = db.Column(db.String(64), unique=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    role = db.Column(Enum(UserRole), nullable=False, default=UserRole.RECRUITER)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=_same_as_created, onupdate=datetime.utcnow)

    @property
    def name(self):
        full_name = ' '.join(part for part in (self.first_name, self.last_name) if part)
        return full_name or self.email

    @property
    def is_admin(self):
        return self.role == UserRole.ADMIN

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'username': self.username,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'name': self.name,
            'role': self.role.value,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at)
        }

class Consultant(db.Model):
    __tablename__ = 'consultants'

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone = db.Column(db.String(20))
    location = db.Column(db.String(100))
    position = db.Column(db.String(200))
    experience = db.Column(db.String(50))  # free text, e.g. "3-4 years"
    skills = db.Column(db.JSON)  # List of skills

    # Resume files are stored by an external collaborator; only the reference is kept
    resume_url = db.Column(db.String(512))
    resume_file_name = db.Column(db.String(255))

    status = db.Column(Enum(ConsultantStatus), nullable=False, default=ConsultantStatus.ACTIVE)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=_same_as_created, onupdate=datetime.utcnow)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))

    # Relationships
    submissions = db.relationship('Submission', back_populates='consultant', lazy=True,
                                  order_by='Submission.submission_date.desc()')
    creator = db.relationship('User', foreign_keys=[created_by])

    @property
    def name(self):
        return f"{self.first_name} {self.last_name}"

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'name': self.name,
            'email': self.email,
            'phone': self.phone,
            'location': self.location,
            'position': self.position,
            'experience': self.experience,
            'skills': self.skills or [],
            'resume_url': self.resume_url,
            'resume_file_name': self.resume_file_name,
            'status': self.status.value,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'created_by': self.created_by
        }

class Vendor(db.Model):
    __tablename__ = 'vendors'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    contact_person = db.Column(db.String(100))
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20))
    location = db.Column(db.String(100))
    specialties = db.Column(db.JSON)  # List of specialties
    status = db.Column(Enum(VendorStatus), nullable=False, default=VendorStatus.ACTIVE)
    notes = db.Column(db.Text)
    partnership_date = db.Column(db.DateTime, default=datetime.utcnow)
    recruiter_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)  # point of contact
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=_same_as_created, onupdate=datetime.utcnow)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'))

    # Relationships
    submissions = db.relationship('Submission', back_populates='vendor', lazy=True,
                                  order_by='Submission.submission_date.desc()')
    recruiter = db.relationship('User', foreign_keys=[recruiter_id])
    creator = db.relationship('User', foreign_keys=[created_by])

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'contact_person': self.contact_person,
            'email': self.email,
            'phone': self.phone,
            'location': self.location,
            'specialties': self.specialties or [],
            'status': self.status.value,
            'notes': self.notes,
            'partnership_date': _iso(self.partnership_date),
            'recruiter_id': self.recruiter_id,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'created_by': self.created_by
        }

class Submission(db.Model):
    __tablename__ = 'submissions'

    id = db.Column(db.Integer, primary_key=True)
    consultant_id = db.Column(db.Integer, db.ForeignKey('consultants.id'), nullable=False)
    vendor_id = db.Column(db.Integer, db.ForeignKey('vendors.id'), nullable=False)
    position_title = db.Column(db.String(200), nullable=False)
    client_name = db.Column(db.String(200))  # direct client
    end_client_name = db.Column(db.String(200))
    status = db.Column(Enum(SubmissionStatus), nullable=False, default=SubmissionStatus.SUBMITTED)
    submission_date = db.Column(db.DateTime, nullable=False)

    # Vendor follow-up tracking
    last_vendor_contact = db.Column(db.DateTime)
    next_follow_up_date = db.Column(db.DateTime)
    vendor_feedback = db.Column(db.Text)
    vendor_feedback_updated_at = db.Column(db.DateTime)
    notes = db.Column(db.Text)
    notes_updated_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=_same_as_created, onupdate=datetime.utcnow)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    # Relationships
    interviews = db.relationship('Interview', back_populates='submission', lazy=True,
                                 cascade='all, delete-orphan',
                                 order_by='Interview.interview_date')
    consultant = db.relationship('Consultant', back_populates='submissions')
    vendor = db.relationship('Vendor', back_populates='submissions')
    recruiter = db.relationship('User', foreign_keys=[created_by])

    def to_dict(self):
        return {
            'id': self.id,
            'consultant_id': self.consultant_id,
            'vendor_id': self.vendor_id,
            'position_title': self.position_title,
            'client_name': self.client_name,
            'end_client_name': self.end_client_name,
            'status': self.status.value,
            'submission_date': _iso(self.submission_date),
            'last_vendor_contact': _iso(self.last_vendor_contact),
            'next_follow_up_date': _iso(self.next_follow_up_date),
            'vendor_feedback': self.vendor_feedback,
            'vendor_feedback_updated_at': _iso(self.vendor_feedback_updated_at),
            'notes': self.notes,
            'notes_updated_at': _iso(self.notes_updated_at),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'created_by': self.created_by
        }

class Interview(db.Model):
    __tablename__ = 'interviews'

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey('submissions.id'), nullable=False)
    interview_date = db.Column(db.DateTime, nullable=False)
    interview_type = db.Column(Enum(InterviewType), nullable=False)
    round_type = db.Column(Enum(RoundType), nullable=False)
    meeting_link = db.Column(db.String(512))
    location = db.Column(db.String(200))
    notes = db.Column(db.Text)
    status = db.Column(Enum(InterviewStatus), nullable=False, default=InterviewStatus.SCHEDULED)

    # Feedback and follow-up
    feedback = db.Column(db.Text)
    rating = db.Column(db.Integer)  # 1-5
    outcome = db.Column(Enum(InterviewOutcome))
    next_steps = db.Column(db.Text)
    follow_up_date = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=_same_as_created, onupdate=datetime.utcnow)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)

    submission = db.relationship('Submission', back_populates='interviews')

    def to_dict(self):
        return {
            'id': self.id,
            'submission_id': self.submission_id,
            'interview_date': _iso(self.interview_date),
            'interview_type': self.interview_type.value,
            'round_type': self.round_type.value,
            'meeting_link': self.meeting_link,
            'location': self.location,
            'notes': self.notes,
            'status': self.status.value,
            'feedback': self.feedback,
            'rating': self.rating,
            'outcome': self.outcome.value if self.outcome else None,
            'next_steps': self.next_steps,
            'follow_up_date': _iso(self.follow_up_date),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
            'created_by': self.created_by
        }
