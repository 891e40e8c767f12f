from festpass import db
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime


class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(20), default='participant')  # participant, volunteer, staff, admin
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    profile = db.relationship('Profile', backref='user', uselist=False)

    STAFF_ROLES = ('volunteer', 'staff', 'admin')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_staff(self):
        return self.role in self.STAFF_ROLES

    def __repr__(self):
        return f'<User {self.email}>'


class Profile(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), unique=True, nullable=False)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))

    # Pass fields
    participant_id = db.Column(db.String(32), unique=True)  # Format: VIB + 8 base-36 chars
    qr_code = db.Column(db.Text, unique=True)  # Token copy used for lookup
    qr_code_data = db.Column(db.Text)  # Rendered QR image as a data URL
    qr_code_generated_at = db.Column(db.DateTime)

    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def display_name(self):
        name = f"{self.first_name or ''} {self.last_name or ''}".strip()
        return name or 'Participant'

    def has_credential(self):
        return bool(self.qr_code_data and self.participant_id)

    def __repr__(self):
        return f'<Profile {self.participant_id or self.user_id}>'


class Event(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    start_date = db.Column(db.DateTime, nullable=False)
    location = db.Column(db.String(200))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'start_date': self.start_date.isoformat() if self.start_date else None,
            'location': self.location,
        }

    def __repr__(self):
        return f'<Event {self.title}>'


class EventRegistration(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    status = db.Column(db.String(20), default='registered')  # registered, approved, denied
    registered_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Check-in fields
    checked_in = db.Column(db.Boolean, default=False, nullable=False)
    check_in_time = db.Column(db.DateTime)

    # Relationships
    event = db.relationship('Event', backref='registrations')
    user = db.relationship('User', backref='registrations')

    __table_args__ = (db.UniqueConstraint('event_id', 'user_id', name='_event_user_registration_uc'),)

    def __repr__(self):
        return f'<EventRegistration {self.user_id} - {self.event_id}>'


class CheckInLog(db.Model):
    """Append-only audit trail of successful check-ins"""
    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    volunteer_id = db.Column(db.Integer, db.ForeignKey('user.id'))  # Operator who scanned
    qr_code = db.Column(db.Text, nullable=False)  # Token exactly as scanned
    zone = db.Column(db.String(100))
    notes = db.Column(db.Text)
    check_in_time = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Relationships
    event = db.relationship('Event', backref='check_in_logs')
    user = db.relationship('User', foreign_keys=[user_id])
    volunteer = db.relationship('User', foreign_keys=[volunteer_id])

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'volunteer_id': self.volunteer_id,
            'qr_code': self.qr_code,
            'zone': self.zone,
            'notes': self.notes,
            'check_in_time': self.check_in_time.isoformat() if self.check_in_time else None,
        }

    def __repr__(self):
        return f'<CheckInLog {self.user_id} @ {self.event_id}>'
