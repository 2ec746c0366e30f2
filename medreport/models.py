"""
Database Models

Key Models:
- User: login identity with bcrypt hash and the one-time password reset code
- Report: saved insight text owned by a user (append-only)
"""
from datetime import datetime, timezone
from flask_login import UserMixin
from medreport import db


def utc_now():
    return datetime.now(timezone.utc)


def as_utc(value):
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class User(UserMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    reset_otp = db.Column(db.String(6))
    reset_otp_expires_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utc_now)

    reports = db.relationship('Report', back_populates='user', lazy='dynamic')

    @property
    def reset_otp_expiry(self):
        return as_utc(self.reset_otp_expires_at)

    def set_reset_otp(self, code, expires_at):
        self.reset_otp = code
        self.reset_otp_expires_at = expires_at

    def clear_reset_otp(self):
        self.reset_otp = None
        self.reset_otp_expires_at = None


class Report(db.Model):
    """
    Insight text produced by an analysis or saved by hand.

    Rows are never updated after insert; listings read newest first.
    """
    __tablename__ = 'reports'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utc_now, nullable=False, index=True)

    user = db.relationship('User', back_populates='reports')

    def to_dict(self):
        """Convert report to dictionary for API responses"""
        created = as_utc(self.created_at)
        return {
            'id': self.id,
            'content': self.content,
            'createdAt': created.isoformat() if created else None,
        }
