from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash
from datetime import datetime

db = SQLAlchemy()

class User(UserMixin, db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=True)
    password_hash = db.Column(db.String(200), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    # Relationships
    events = db.relationship('Event', backref='owner', lazy=True, cascade="all, delete-orphan")
    tasks = db.relationship('Task', backref='owner', lazy=True, cascade="all, delete-orphan")
    notes = db.relationship('Note', backref='owner', lazy=True, cascade="all, delete-orphan")

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


class Event(db.Model):
    """
    Calendar event definition. A recurring event is stored once; its occurrences
    are generated on read and never persisted.
    All datetimes are naive local time.
    """
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    all_day = db.Column(db.Boolean, default=False)
    location = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    color = db.Column(db.String(20), default='blue')
    is_recurring = db.Column(db.Boolean, default=False)
    recurring_pattern = db.Column(db.String(20), default='none')  # none | daily | weekly | monthly | yearly | custom
    custom_recurring = db.Column(db.Text, nullable=True)  # JSON, decoded by services.event_store
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    exceptions = db.relationship(
        'RecurrenceException',
        backref='event',
        lazy=True,
        cascade="all, delete-orphan",
        order_by="RecurrenceException.ordinal"
    )


class RecurrenceException(db.Model):
    """A single occurrence of a recurring event that was cancelled or edited."""
    __table_args__ = (db.UniqueConstraint('event_id', 'ordinal', name='uq_recurrence_exception_ordinal'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    event_id = db.Column(db.Integer, db.ForeignKey('event.id'), nullable=False)
    ordinal = db.Column(db.Integer, nullable=False)
    cancelled = db.Column(db.Boolean, default=False)
    title = db.Column(db.String(200), nullable=True)
    description = db.Column(db.Text, nullable=True)
    location = db.Column(db.String(200), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    color = db.Column(db.String(20), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'event_id': self.event_id,
            'ordinal': self.ordinal,
            'cancelled': bool(self.cancelled),
            'title': self.title,
            'description': self.description,
            'location': self.location,
            'notes': self.notes,
            'color': self.color,
        }


class Task(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    status = db.Column(db.String(20), default='uncompleted')  # uncompleted | in_progress | completed
    importance = db.Column(db.String(10), default='medium')  # low | medium | high
    due_date = db.Column(db.Date, nullable=True)
    category = db.Column(db.String(80), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'title': self.title,
            'description': self.description or '',
            'status': self.status,
            'importance': self.importance,
            'due_date': self.due_date.isoformat() if self.due_date else None,
            'category': self.category or '',
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }


class Note(db.Model):
    """Plain-text note, optionally attached to an event or a task."""
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id'), nullable=False)
    content = db.Column(db.Text, nullable=False)
    tags = db.Column(db.Text, nullable=True)  # comma separated
    related_type = db.Column(db.String(20), nullable=True)  # event | task
    related_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'content': self.content,
            'tags': [t for t in (self.tags or '').split(',') if t],
            'related_type': self.related_type,
            'related_id': self.related_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
