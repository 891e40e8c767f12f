import os
import pytest
from datetime import datetime, timedelta

# Set test environment variables BEFORE importing the app
os.environ['SECRET_KEY'] = 'test-secret-key-for-testing-only'
os.environ.pop('MAIL_USERNAME', None)
os.environ.pop('MAIL_PASSWORD', None)

from festpass import create_app, db
from festpass.models import User, Profile, Event, EventRegistration


def make_app(database_uri='sqlite:///:memory:', **overrides):
    config = {
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': database_uri,
        'QR_PIXEL_SIZE': 120,
        'TICKET_BACKGROUND': '/nonexistent/ticket-background.png',
        'MAIL_USERNAME': None,
        'MAIL_PASSWORD': None,
    }
    config.update(overrides)
    return create_app(config)


@pytest.fixture
def app():
    """Create and configure a test Flask app instance"""
    flask_app = make_app()
    with flask_app.app_context():
        yield flask_app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create a test client for the app"""
    return app.test_client()


def create_participant(email, first_name='Test', last_name='Participant', role='participant',
                       participant_id=None, password='secret123'):
    user = User(email=email, role=role)
    user.set_password(password)
    db.session.add(user)
    db.session.flush()
    profile = Profile(user_id=user.id, first_name=first_name, last_name=last_name,
                      participant_id=participant_id)
    db.session.add(profile)
    db.session.commit()
    return user


def create_event(title, days_ahead=7):
    event = Event(title=title, start_date=datetime.utcnow() + timedelta(days=days_ahead), location='Main Hall')
    db.session.add(event)
    db.session.commit()
    return event


def register(user, event):
    registration = EventRegistration(event_id=event.id, user_id=user.id, status='registered')
    db.session.add(registration)
    db.session.commit()
    return registration


@pytest.fixture
def event(app):
    return create_event('Opening Keynote')


@pytest.fixture
def other_event(app):
    return create_event('Robotics Arena', days_ahead=8)


@pytest.fixture
def participant(app):
    """Owner U1 with participant_id VIBABCD1234"""
    return create_participant('u1@test.com', first_name='Asha', last_name='Menon',
                              participant_id='VIBABCD1234')


@pytest.fixture
def registered_participant(participant, event):
    register(participant, event)
    return participant


@pytest.fixture
def volunteer(app):
    return create_participant('volunteer@test.com', first_name='Vol', last_name='Unteer', role='volunteer')


def login(client, email, password='secret123'):
    return client.post('/auth/login', json={'email': email, 'password': password})


@pytest.fixture
def participant_client(client, registered_participant):
    login(client, registered_participant.email)
    return client


@pytest.fixture
def volunteer_client(client, volunteer):
    login(client, volunteer.email)
    return client
