"""
HTTP-level tests of the blueprints and the JSON error contract
"""
from datetime import timedelta

import pytest

from eventhub.utils import now_utc

FUTURE_EVENT = {
    'title': 'Data Science Meetup',
    'description': 'Talks and networking',
    'locationText': 'Innovation Hub',
    'startAt': '2099-06-01T10:00:00Z',
    'endAt': '2099-06-01T12:00:00Z',
    'capacity': 2,
}


@pytest.fixture
def live_quiz(make_quiz):
    now = now_utc()
    return make_quiz(start_at=now - timedelta(hours=1), end_at=now + timedelta(hours=1))


def error_code(response):
    return response.get_json()['error']['code']


# ========== AUTH ==========

def test_register_login_and_me(client):
    response = client.post('/api/auth/register', json={
        'email': 'Ada@Example.com',
        'password': 'lovelace',
        'displayName': 'Ada',
        'studyLevel': '300L',
    })
    assert response.status_code == 201
    assert response.get_json()['data']['user']['email'] == 'ada@example.com'

    response = client.post('/api/auth/login', json={'email': 'ada@example.com', 'password': 'lovelace'})
    token = response.get_json()['data']['token']

    me = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    assert me.get_json()['data']['study_level'] == '300L'


def test_duplicate_email(client, make_user):
    make_user(email='taken@example.com')
    response = client.post('/api/auth/register', json={
        'email': 'taken@example.com', 'password': 'secret123', 'displayName': 'Again',
    })
    assert response.status_code == 400


def test_bad_credentials(client, make_user):
    make_user(email='bob@example.com')
    response = client.post('/api/auth/login', json={'email': 'bob@example.com', 'password': 'wrong'})
    assert response.status_code == 401
    assert error_code(response) == 'UNAUTHORIZED'


def test_validation_errors_are_invalid_input(client):
    response = client.post('/api/auth/register', json={'email': 'x@example.com', 'password': '1'})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert body['error']['code'] == 'INVALID_INPUT'
    assert body['error']['details']


def test_missing_and_bad_tokens(client):
    assert error_code(client.get('/api/auth/me')) == 'UNAUTHORIZED'
    response = client.get('/api/auth/me', headers={'Authorization': 'Bearer forged'})
    assert response.status_code == 401


# ========== EVENTS ==========

def test_users_cannot_create_events(client, make_user, auth_header):
    response = client.post('/api/events/', json=FUTURE_EVENT, headers=auth_header(make_user()))
    assert response.status_code == 403
    assert error_code(response) == 'FORBIDDEN'


def test_event_window_is_validated(client, staff, auth_header):
    payload = dict(FUTURE_EVENT, endAt='2099-05-01T10:00:00Z')
    response = client.post('/api/events/', json=payload, headers=auth_header(staff))
    assert error_code(response) == 'INVALID_INPUT'


def test_event_lifecycle(client, staff, make_user, auth_header):
    created = client.post('/api/events/', json=FUTURE_EVENT, headers=auth_header(staff))
    assert created.status_code == 201
    event_id = created.get_json()['data']['id']

    listed = client.get('/api/events/?status=upcoming').get_json()['data']
    assert [e['id'] for e in listed] == [event_id]
    assert listed[0]['registration_count'] == 0

    user = make_user()
    registered = client.post(f'/api/events/{event_id}/register', headers=auth_header(user))
    assert registered.status_code == 201
    token = registered.get_json()['data']['qr_token']

    again = client.post(f'/api/events/{event_id}/register', headers=auth_header(user))
    assert again.status_code == 409
    assert error_code(again) == 'ALREADY_REGISTERED'

    checked = client.post(
        f'/api/events/{event_id}/checkin', json={'qrToken': token}, headers=auth_header(staff)
    )
    assert checked.status_code == 200
    assert checked.get_json()['data']['checked_in_at']

    twice = client.post(
        f'/api/events/{event_id}/checkin', json={'qrToken': token}, headers=auth_header(staff)
    )
    assert error_code(twice) == 'ALREADY_CHECKED_IN'
    assert twice.get_json()['error']['details']['checked_in_at']

    mine = client.get('/api/events/user/registrations', headers=auth_header(user)).get_json()['data']
    assert mine[0]['event']['id'] == event_id


def test_full_event(client, staff, make_user, auth_header):
    event_id = client.post(
        '/api/events/', json=dict(FUTURE_EVENT, capacity=1), headers=auth_header(staff)
    ).get_json()['data']['id']
    client.post(f'/api/events/{event_id}/register', headers=auth_header(make_user()))

    response = client.post(f'/api/events/{event_id}/register', headers=auth_header(make_user()))
    assert response.status_code == 409
    assert error_code(response) == 'CAPACITY_EXCEEDED'


def test_unknown_event(client):
    response = client.get('/api/events/987')
    assert response.status_code == 404
    assert error_code(response) == 'NOT_FOUND'


def test_only_organizer_or_admin_can_edit(client, make_event, make_user, admin, auth_header):
    event = make_event()
    other_staff = make_user(role='STAFF')

    denied = client.put(f'/api/events/{event.id}', json={'title': 'Hijacked'}, headers=auth_header(other_staff))
    assert denied.status_code == 403

    allowed = client.put(f'/api/events/{event.id}', json={'title': 'Renamed'}, headers=auth_header(admin))
    assert allowed.get_json()['data']['title'] == 'Renamed'


def test_null_clears_optional_event_fields(client, make_event, staff, auth_header):
    event = make_event(category='Workshop', speaker='Dr. Okafor')

    response = client.put(
        f'/api/events/{event.id}',
        json={'category': None, 'speaker': None, 'title': None, 'capacity': None},
        headers=auth_header(staff),
    )

    data = response.get_json()['data']
    assert response.status_code == 200
    assert data['category'] is None
    assert data['speaker'] is None
    assert data['title'] == 'Intro to Machine Learning'
    assert data['capacity'] == 10


def test_approval_flow(client, staff, make_user, auth_header, sent_emails):
    payload = dict(FUTURE_EVENT, requiresApproval=True, eligibleLevels=['400L'])
    event_id = client.post('/api/events/', json=payload, headers=auth_header(staff)).get_json()['data']['id']

    outsider = client.post(f'/api/events/{event_id}/register', headers=auth_header(make_user(study_level='100L')))
    assert error_code(outsider) == 'NOT_ELIGIBLE'

    finalist = make_user(study_level='400L')
    pending = client.post(f'/api/events/{event_id}/register', headers=auth_header(finalist))
    assert pending.get_json()['data']['status'] == 'PENDING'

    queue = client.get('/api/events/registrations/pending', headers=auth_header(staff)).get_json()['data']
    assert len(queue) == 1
    registration_id = queue[0]['id']

    approved = client.put(
        f'/api/events/registrations/{registration_id}/approve',
        json={'comment': 'Welcome'},
        headers=auth_header(staff),
    )
    assert approved.get_json()['data']['status'] == 'CONFIRMED'
    assert sent_emails[-1]['to'] == finalist.email

    again = client.put(
        f'/api/events/registrations/{registration_id}/reject', json={}, headers=auth_header(staff)
    )
    assert again.status_code == 409
    assert error_code(again) == 'INVALID_STATE'


def test_registration_export(client, make_event, make_user, staff, auth_header):
    event = make_event()
    attendee = make_user()
    client.post(f'/api/events/{event.id}/register', headers=auth_header(attendee))

    response = client.get(f'/api/events/{event.id}/registrations/export', headers=auth_header(staff))

    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0] == 'Name,Email,Status,Registered At,Checked In'
    assert lines[1].startswith(f'{attendee.display_name},{attendee.email},REGISTERED,')
    assert lines[1].endswith('Not checked in')


# ========== QUIZZES ==========

def test_quiz_hides_answers_from_users(client, live_quiz, make_user, staff, auth_header):
    as_user = client.get(f'/api/quizzes/{live_quiz.id}', headers=auth_header(make_user())).get_json()
    assert all('isCorrect' not in o for o in as_user['data']['questions'][0]['options'])
    assert as_user['data']['status'] == 'ACTIVE'

    as_staff = client.get(f'/api/quizzes/{live_quiz.id}', headers=auth_header(staff)).get_json()
    assert as_staff['data']['questions'][0]['options'][0]['isCorrect'] is True


def test_submit_once(client, live_quiz, make_user, auth_header):
    user = make_user()
    first_question = live_quiz.questions[0]
    payload = {
        'answers': [{'questionId': first_question.id, 'selectedOption': 'a', 'timeSpent': 3000}],
        'tabSwitches': 0,
    }

    response = client.post(f'/api/quizzes/{live_quiz.id}/submit', json=payload, headers=auth_header(user))
    assert response.status_code == 200
    body = response.get_json()
    assert body['total_score'] == 950
    assert body['rank'] == 1

    check = client.get(f'/api/quizzes/{live_quiz.id}/attempt', headers=auth_header(user)).get_json()
    assert check['has_attempted'] is True

    again = client.post(f'/api/quizzes/{live_quiz.id}/submit', json=payload, headers=auth_header(user))
    assert again.status_code == 409
    assert error_code(again) == 'ALREADY_SUBMITTED'


def test_submit_survives_malformed_answers(client, live_quiz, make_user, auth_header):
    first, second = live_quiz.questions
    payload = {
        'answers': [
            {'questionId': first.id, 'selectedOption': 'a', 'timeSpent': 3000},
            {'questionId': second.id, 'selectedOption': 'b', 'timeSpent': None},
            {'questionId': second.id, 'selectedOption': {'x': 1}, 'timeSpent': 'abc'},
            {'questionId': [first.id], 'selectedOption': True},
            {'selectedOption': 'a'},
            'not an answer',
        ],
        'inactivityPeriods': [{'start': 1, 'duration': 'long'}, 7],
    }

    response = client.post(f'/api/quizzes/{live_quiz.id}/submit', json=payload, headers=auth_header(make_user()))

    assert response.status_code == 200
    # the null time on the second question counts as instant
    assert response.get_json()['total_score'] == 950 + 500


def test_submit_to_closed_quiz(client, make_quiz, make_user, auth_header):
    now = now_utc()
    quiz = make_quiz(start_at=now - timedelta(hours=2), end_at=now - timedelta(hours=1))
    response = client.post(f'/api/quizzes/{quiz.id}/submit', json={'answers': []}, headers=auth_header(make_user()))
    assert response.status_code == 400
    assert error_code(response) == 'QUIZ_NOT_ACTIVE'


def test_penalty_endpoint(client, live_quiz, make_user, make_attempt, staff, auth_header):
    user = make_user()
    make_attempt(live_quiz, user, 150)

    response = client.post(
        f'/api/quizzes/{live_quiz.id}/participants/{user.id}/penalty',
        json={'pointsToReduce': 200, 'reason': 'test'},
        headers=auth_header(staff),
    )
    assert response.get_json()['data'] == {'old_score': 150, 'new_score': 0, 'points_reduced': 200}

    board = client.get(f'/api/quizzes/{live_quiz.id}/leaderboard', headers=auth_header(user)).get_json()['data']
    assert board[0]['has_penalty'] is True
    assert 'PENALTY: 200 points reduced - test' in board[0]['flag_reason']

    invalid = client.post(
        f'/api/quizzes/{live_quiz.id}/participants/{user.id}/penalty',
        json={'pointsToReduce': 0},
        headers=auth_header(staff),
    )
    assert error_code(invalid) == 'INVALID_INPUT'


def test_create_quiz_requires_one_correct_option(client, staff, auth_header):
    payload = {
        'title': 'Broken',
        'startAt': '2099-01-01T10:00:00Z',
        'endAt': '2099-01-01T11:00:00Z',
        'questions': [{
            'question': 'Pick',
            'options': [{'id': 1, 'text': 'a', 'isCorrect': True}, {'id': 2, 'text': 'b', 'isCorrect': True}],
        }],
    }
    response = client.post('/api/quizzes/', json=payload, headers=auth_header(staff))
    assert error_code(response) == 'INVALID_INPUT'

    payload['questions'][0]['options'][1]['isCorrect'] = False
    created = client.post('/api/quizzes/', json=payload, headers=auth_header(staff))
    assert created.status_code == 201
    assert created.get_json()['data']['status'] == 'UPCOMING'


def test_monthly_leaderboard_month_format(client):
    assert client.get('/api/quizzes/monthly-leaderboard?month=2025-03').status_code == 200
    response = client.get('/api/quizzes/monthly-leaderboard?month=march')
    assert error_code(response) == 'INVALID_INPUT'


@pytest.mark.parametrize('month', ['0-05', '9999-12', '-1-03'])
def test_monthly_leaderboard_month_out_of_range(client, month):
    response = client.get(f'/api/quizzes/monthly-leaderboard?month={month}')
    assert response.status_code == 400
    assert error_code(response) == 'INVALID_INPUT'


# ========== NOTIFICATIONS & ADMIN ==========

def test_notifications_inbox(client, make_event, make_user, auth_header):
    user = make_user()
    event = make_event()
    client.post(f'/api/events/{event.id}/register', headers=auth_header(user))

    inbox = client.get('/api/notifications/', headers=auth_header(user)).get_json()['data']
    assert inbox['unread_count'] == 1
    notification_id = inbox['notifications'][0]['id']

    stranger = client.put(f'/api/notifications/{notification_id}/read', headers=auth_header(make_user()))
    assert stranger.status_code == 403

    client.put('/api/notifications/read-all', headers=auth_header(user))
    inbox = client.get('/api/notifications/', headers=auth_header(user)).get_json()['data']
    assert inbox['unread_count'] == 0


def test_broadcast(client, make_user, admin, staff, auth_header, sent_emails):
    for _ in range(3):
        make_user()

    denied = client.post('/api/admin/broadcast', json={'title': 'x', 'content': 'y'}, headers=auth_header(staff))
    assert denied.status_code == 403

    response = client.post(
        '/api/admin/broadcast',
        json={'title': 'Hackathon', 'content': 'Sign-ups open Friday', 'role': 'USER'},
        headers=auth_header(admin),
    )
    summary = response.get_json()['data']
    assert summary['recipients'] == 3
    assert summary['emails_sent'] == 3
    assert sorted(e['subject'] for e in sent_emails) == ['Hackathon'] * 3


def test_audit_log(client, make_event, admin, auth_header):
    event_id = make_event().id
    client.delete(f'/api/events/{event_id}', headers=auth_header(admin))

    entries = client.get('/api/admin/audit-logs?entity=EVENT', headers=auth_header(admin)).get_json()['data']
    assert entries[0]['action'] == 'DELETE'
    assert entries[0]['entity_id'] == str(event_id)
