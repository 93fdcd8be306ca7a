"""
Shared fixtures: an app on in-memory SQLite, factories and a recording mailer
"""
from datetime import datetime, timedelta, timezone
import itertools

import pytest

from eventhub import create_app
from eventhub.extensions import db
from eventhub.models import Event, Quiz, QuizAttempt, QuizQuestion, User
from eventhub.services import EmailService, NotificationService
from eventhub.utils import issue_token

NOW = datetime(2025, 3, 15, 12, 0, tzinfo=timezone.utc)

_seq = itertools.count(1)


def fixed_clock():
    return NOW


class FakeMailer:
    """Stands in for EmailService and remembers what it was asked to send"""

    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    def send_email(self, to, subject, html, text=None):
        self.sent.append({'to': to, 'subject': subject, 'html': html, 'text': text})
        return not self.fail


@pytest.fixture
def app():
    app = create_app('testing')
    ctx = app.app_context()
    ctx.push()
    yield app
    db.session.remove()
    db.drop_all()
    ctx.pop()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    """Every email the app tries to send, without touching SMTP"""
    sent = []

    def fake_send(self, to, subject, html, text=None):
        sent.append({'to': to, 'subject': subject})
        return True

    monkeypatch.setattr(EmailService, 'send_email', fake_send)
    return sent


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def notifier(app, mailer):
    return NotificationService(mailer=mailer, clock=fixed_clock)


@pytest.fixture
def make_user(app):
    def factory(role='USER', study_level=None, study_program=None, email=None, password='secret123'):
        n = next(_seq)
        user = User(
            email=email or f'user{n}@example.com',
            display_name=f'User {n}',
            role=role,
            study_level=study_level,
            study_program=study_program,
        )
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return factory


@pytest.fixture
def staff(make_user):
    return make_user(role='STAFF')


@pytest.fixture
def admin(make_user):
    return make_user(role='ADMIN')


@pytest.fixture
def make_event(app, staff):
    def factory(organizer=None, **overrides):
        fields = {
            'title': 'Intro to Machine Learning',
            'description': 'Hands-on session',
            'location_text': 'Hall A',
            'start_at': NOW + timedelta(days=7),
            'end_at': NOW + timedelta(days=7, hours=2),
            'capacity': 10,
        }
        fields.update(overrides)
        event = Event(organizer_id=(organizer or staff).id, **fields)
        db.session.add(event)
        db.session.commit()
        return event
    return factory


def question_rows():
    return [
        QuizQuestion(
            question='What does CPU stand for?',
            order=0,
            points=1000,
            options=[
                {'id': 'a', 'text': 'Central Processing Unit', 'isCorrect': True},
                {'id': 'b', 'text': 'Computer Personal Unit', 'isCorrect': False},
            ],
        ),
        QuizQuestion(
            question='Which of these is a Python web framework?',
            order=1,
            points=500,
            options=[
                {'id': 'a', 'text': 'Laravel', 'isCorrect': False},
                {'id': 'b', 'text': 'Flask', 'isCorrect': True},
            ],
        ),
    ]


@pytest.fixture
def make_quiz(app, staff):
    def factory(start_at=None, end_at=None, time_limit=30, title='Weekly Tech Quiz'):
        quiz = Quiz(
            title=title,
            time_limit=time_limit,
            start_at=start_at or NOW - timedelta(hours=1),
            end_at=end_at or NOW + timedelta(hours=1),
            created_by=staff.id,
        )
        quiz.questions = question_rows()
        db.session.add(quiz)
        db.session.commit()
        return quiz
    return factory


@pytest.fixture
def make_attempt(app):
    def factory(quiz, user, total_score, completed_at=None, **fields):
        attempt = QuizAttempt(
            quiz_id=quiz.id,
            user_id=user.id,
            total_score=total_score,
            completed_at=completed_at or NOW,
            **fields
        )
        db.session.add(attempt)
        db.session.commit()
        return attempt
    return factory


@pytest.fixture
def auth_header(app):
    def build(user):
        return {'Authorization': f'Bearer {issue_token(user)}'}
    return build


@pytest.fixture
def file_app(tmp_path):
    """An app on a file-backed SQLite database, for tests that use several connections"""
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'eventhub.db'}",
        'SQLALCHEMY_ENGINE_OPTIONS': {
            'connect_args': {'check_same_thread': False, 'timeout': 30},
        },
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()
