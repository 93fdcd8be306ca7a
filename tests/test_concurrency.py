"""
Races between writers: duplicate inserts, lost reviews and seat counting

The threaded tests run against a file-backed SQLite database so that each
thread gets its own connection and transaction.
"""
import threading
from datetime import timedelta

import pytest
from sqlalchemy.orm import Session

from eventhub.errors import AlreadyRegistered, AlreadySubmitted, EventHubError, InvalidState
from eventhub.extensions import db
from eventhub.models import AuditLog, Event, QuizAttempt, Registration, User
from eventhub.services import NotificationService, QuizService, RegistrationService
from eventhub.schemas import AnswerIn

from tests.conftest import NOW, FakeMailer, fixed_clock


# ========== INSERT RACES ==========

def test_duplicate_registration_caught_by_unique_constraint(notifier, make_event, make_user, monkeypatch):
    event = make_event()
    user = make_user()
    db.session.add(Registration(event_id=event.id, user_id=user.id, qr_token='other-writer'))
    db.session.commit()

    service = RegistrationService(notifier=notifier, clock=fixed_clock)
    # the other writer committed after our duplicate check ran
    monkeypatch.setattr(service, 'find', lambda event_id, user_id: None)

    with pytest.raises(AlreadyRegistered):
        service.register(event.id, user)
    assert Registration.query.filter_by(event_id=event.id).count() == 1
    assert Registration.query.filter_by(event_id=event.id).one().qr_token == 'other-writer'


def test_duplicate_attempt_caught_by_unique_constraint(notifier, make_quiz, make_user, make_attempt, monkeypatch):
    quiz = make_quiz()
    user = make_user()
    make_attempt(quiz, user, 700)

    service = QuizService(notifier=notifier, clock=fixed_clock)
    monkeypatch.setattr(service, 'get_attempt', lambda quiz_id, user_id: None)
    answers = [AnswerIn(question_id=quiz.questions[0].id, selected_option='a', time_spent=1000)]

    with pytest.raises(AlreadySubmitted):
        service.submit_attempt(quiz.id, user, answers)
    attempts = QuizAttempt.query.filter_by(quiz_id=quiz.id, user_id=user.id).all()
    assert [a.total_score for a in attempts] == [700]


# ========== FILE-BACKED DATABASE ==========

def _seed(capacity, users, requires_approval=False):
    organizer = User(email='organizer@example.com', display_name='Organizer', role='STAFF')
    organizer.set_password('secret123')
    members = []
    for n in range(users):
        member = User(email=f'member{n}@example.com', display_name=f'Member {n}')
        member.set_password('secret123')
        members.append(member)
    db.session.add_all([organizer] + members)
    db.session.flush()

    event = Event(
        title='Hackathon Kickoff',
        start_at=NOW + timedelta(days=3),
        end_at=NOW + timedelta(days=3, hours=4),
        capacity=capacity,
        requires_approval=requires_approval,
        organizer_id=organizer.id,
    )
    db.session.add(event)
    db.session.commit()
    return event.id, organizer.id, [m.id for m in members]


def _register_from_threads(app, event_id, user_ids):
    """Register each user id from its own thread; returns the outcome codes"""
    barrier = threading.Barrier(len(user_ids))
    outcomes = []
    lock = threading.Lock()

    def worker(user_id):
        with app.app_context():
            service = RegistrationService(notifier=NotificationService(mailer=FakeMailer()))
            user = db.session.get(User, user_id)
            barrier.wait()
            try:
                service.register(event_id, user)
                outcome = 'OK'
            except EventHubError as exc:
                outcome = exc.code
            finally:
                db.session.remove()
            with lock:
                outcomes.append(outcome)

    threads = [threading.Thread(target=worker, args=(user_id,)) for user_id in user_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return outcomes


def test_parallel_registrations_respect_capacity(file_app):
    with file_app.app_context():
        event_id, _, user_ids = _seed(capacity=3, users=8)

    outcomes = _register_from_threads(file_app, event_id, user_ids)

    assert len(outcomes) == 8
    assert outcomes.count('OK') == 3
    assert set(outcomes) <= {'OK', 'CAPACITY_EXCEEDED'}
    with file_app.app_context():
        assert RegistrationService().active_count(event_id) == 3


def test_parallel_duplicate_registrations_keep_one_row(file_app):
    with file_app.app_context():
        event_id, _, user_ids = _seed(capacity=10, users=1)

    outcomes = _register_from_threads(file_app, event_id, user_ids * 4)

    assert sorted(outcomes) == ['ALREADY_REGISTERED'] * 3 + ['OK']
    with file_app.app_context():
        assert Registration.query.filter_by(event_id=event_id).count() == 1


def test_review_lost_to_another_reviewer(file_app):
    with file_app.app_context():
        event_id, organizer_id, user_ids = _seed(capacity=5, users=1, requires_approval=True)
        service = RegistrationService(notifier=NotificationService(mailer=FakeMailer()))
        reviewer = db.session.get(User, organizer_id)
        registration_id = service.register(event_id, db.session.get(User, user_ids[0])).id

        # our reviewer loads the registration while it is still PENDING
        registration = db.session.get(Registration, registration_id)
        assert registration.status == 'PENDING'
        assert reviewer.id == organizer_id

        # a second reviewer rejects it on its own connection
        with Session(db.engine) as other:
            other.query(Registration).filter_by(id=registration_id).update({'status': 'REJECTED'})
            other.commit()

        with pytest.raises(InvalidState) as excinfo:
            service.approve(registration_id, reviewer)

        assert str(excinfo.value) == 'Registration was already reviewed'
        assert db.session.get(Registration, registration_id).status == 'REJECTED'
        assert AuditLog.query.filter_by(action='APPROVE').count() == 0
        db.session.remove()
