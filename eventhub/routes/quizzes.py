"""
Quiz Routes
Quiz management, submission, leaderboards and penalties
"""
from flask import Blueprint, g, jsonify, request

from eventhub.schemas import PenaltyRequest, QuizCreate, QuizUpdate, SubmitRequest, parse_body
from eventhub.services import IntegritySignals, LeaderboardService, QuizService
from eventhub.services.leaderboard_service import parse_month
from eventhub.sockets import emit_leaderboard_update
from eventhub.utils import login_required, now_utc, require_role

quizzes_bp = Blueprint('quizzes', __name__)


@quizzes_bp.route('/monthly-leaderboard')
def monthly_leaderboard():
    """Public: total scores per user for ?month=YYYY-MM (default: current month)"""
    year, month = parse_month(request.args.get('month'), now_utc())
    data = LeaderboardService().monthly_leaderboard(year, month)
    return jsonify({'success': True, 'month': f'{year:04d}-{month:02d}', 'data': data})


@quizzes_bp.route('/')
@login_required
def list_quizzes():
    quizzes = QuizService().list_quizzes()
    now = now_utc()
    return jsonify({'success': True, 'data': [q.to_dict(now=now) for q in quizzes]})


@quizzes_bp.route('/<int:quiz_id>')
@login_required
def get_quiz(quiz_id):
    quiz = QuizService().get_quiz(quiz_id)
    data = quiz.to_dict(include_questions=True, reveal_answers=g.user.is_staff)
    data['attempt_count'] = quiz.attempts.count()
    return jsonify({'success': True, 'data': data})


@quizzes_bp.route('/<int:quiz_id>/attempt')
@login_required
def check_user_attempt(quiz_id):
    attempt = QuizService().get_attempt(quiz_id, g.user.id)
    return jsonify({
        'success': True,
        'has_attempted': attempt is not None,
        'attempt': attempt.to_dict() if attempt else None,
    })


@quizzes_bp.route('/<int:quiz_id>/submit', methods=['POST'])
@login_required
def submit_quiz(quiz_id):
    data = parse_body(SubmitRequest)
    signals = IntegritySignals(
        tab_switches=data.tab_switches,
        afk_incidents=data.afk_incidents,
        screenshot_attempts=data.screenshot_attempts,
        detected_extensions=data.detected_extensions,
        inactivity_periods=[p.model_dump() for p in data.inactivity_periods],
    )
    attempt, rank = QuizService().submit_attempt(quiz_id, g.user, data.answers, signals)
    emit_leaderboard_update(quiz_id)

    return jsonify({
        'success': True,
        'attempt': attempt.to_dict(),
        'total_score': attempt.total_score,
        'rank': rank,
    })


@quizzes_bp.route('/<int:quiz_id>/leaderboard')
@login_required
def quiz_leaderboard(quiz_id):
    data = LeaderboardService().quiz_leaderboard(quiz_id)
    return jsonify({'success': True, 'data': data})


# ========================================
# ADMIN / STAFF
# ========================================

@quizzes_bp.route('/', methods=['POST'])
@require_role('STAFF', 'ADMIN')
def create_quiz():
    quiz = QuizService().create_quiz(parse_body(QuizCreate), g.user)
    return jsonify({
        'success': True,
        'data': quiz.to_dict(include_questions=True, reveal_answers=True),
    }), 201


@quizzes_bp.route('/<int:quiz_id>', methods=['PUT'])
@require_role('STAFF', 'ADMIN')
def update_quiz(quiz_id):
    quiz = QuizService().update_quiz(quiz_id, parse_body(QuizUpdate), g.user)
    return jsonify({
        'success': True,
        'data': quiz.to_dict(include_questions=True, reveal_answers=True),
    })


@quizzes_bp.route('/<int:quiz_id>', methods=['DELETE'])
@require_role('STAFF', 'ADMIN')
def delete_quiz(quiz_id):
    QuizService().delete_quiz(quiz_id, g.user)
    return jsonify({'success': True, 'message': 'Quiz deleted successfully'})


@quizzes_bp.route('/<int:quiz_id>/participants/<int:user_id>/penalty', methods=['POST'])
@require_role('STAFF', 'ADMIN')
def reduce_participant_points(quiz_id, user_id):
    data = parse_body(PenaltyRequest)
    result = QuizService().apply_penalty(
        quiz_id, user_id, data.points_to_reduce, data.reason, g.user
    )
    emit_leaderboard_update(quiz_id)
    return jsonify({
        'success': True,
        'message': f"Successfully reduced {result['points_reduced']} points",
        'data': result,
    })


@quizzes_bp.route('/<int:quiz_id>/participants/<int:user_id>', methods=['DELETE'])
@require_role('STAFF', 'ADMIN')
def delete_participant(quiz_id, user_id):
    deleted = QuizService().delete_participant(quiz_id, user_id, g.user)
    emit_leaderboard_update(quiz_id)
    return jsonify({
        'success': True,
        'message': 'Participant deleted successfully',
        'deleted_count': deleted,
    })
