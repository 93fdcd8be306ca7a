"""
Leaderboard Service
Handles leaderboard generation and ranking.

Ranks are positional (1..n). Ties on score are broken by the earliest
completion time, then by id, so the same data always yields the same order.
"""
from datetime import datetime, timezone

from flask import current_app
from sqlalchemy import and_, func, or_

from eventhub.errors import InvalidInput, NotFound
from eventhub.extensions import db
from eventhub.models import Quiz, QuizAttempt, User
from eventhub.utils.helpers import isoformat


def month_window(year, month):
    """[first instant of the month, first instant of the next month) in UTC"""
    if not 1 <= month <= 12:
        raise InvalidInput('Month must be between 1 and 12')
    try:
        start = datetime(year, month, 1, tzinfo=timezone.utc)
        if month == 12:
            end = datetime(year + 1, 1, 1, tzinfo=timezone.utc)
        else:
            end = datetime(year, month + 1, 1, tzinfo=timezone.utc)
    except (ValueError, OverflowError):
        raise InvalidInput('Month is out of range')
    return start, end


def parse_month(value, now):
    """'YYYY-MM' -> (year, month); defaults to the month of now"""
    if not value:
        return now.year, now.month
    try:
        year, month = (int(part) for part in value.split('-', 1))
    except ValueError:
        raise InvalidInput('Month must be formatted as YYYY-MM')
    return year, month


class LeaderboardService:
    """Leaderboard generation and management"""

    def __init__(self, session=None, limit=None):
        self.session = session or db.session
        self.limit = limit or current_app.config.get('LEADERBOARD_SIZE', 50)

    @staticmethod
    def ordering():
        return (
            QuizAttempt.total_score.desc(),
            QuizAttempt.completed_at.asc(),
            QuizAttempt.id.asc(),
        )

    def rank_of(self, attempt):
        """Position of an attempt in its quiz leaderboard (1-based)"""
        ahead = (
            self.session.query(func.count(QuizAttempt.id))
            .filter(
                QuizAttempt.quiz_id == attempt.quiz_id,
                QuizAttempt.id != attempt.id,
                or_(
                    QuizAttempt.total_score > attempt.total_score,
                    and_(
                        QuizAttempt.total_score == attempt.total_score,
                        or_(
                            QuizAttempt.completed_at < attempt.completed_at,
                            and_(
                                QuizAttempt.completed_at == attempt.completed_at,
                                QuizAttempt.id < attempt.id,
                            ),
                        ),
                    ),
                ),
            )
            .scalar()
        )
        return ahead + 1

    def quiz_leaderboard(self, quiz_id):
        """
        Top attempts of one quiz

        Returns:
            list: dicts with rank, user, score, correct/incorrect counts and
            integrity fields
        """
        if not self.session.get(Quiz, quiz_id):
            raise NotFound('Quiz not found')

        attempts = (
            self.session.query(QuizAttempt)
            .filter(QuizAttempt.quiz_id == quiz_id)
            .order_by(*self.ordering())
            .limit(self.limit)
            .all()
        )

        payload = []
        for idx, attempt in enumerate(attempts, 1):
            correct = sum(1 for a in attempt.answers if a.is_correct)
            incorrect = len(attempt.answers) - correct
            payload.append({
                'rank': idx,
                'user_id': attempt.user_id,
                'display_name': attempt.user.display_name,
                'email': attempt.user.email,
                'total_score': attempt.total_score,
                'correct_answers': correct,
                'incorrect_answers': incorrect,
                'total_questions': correct + incorrect,
                'is_flagged': attempt.is_flagged,
                'flag_reason': attempt.flag_reason,
                'integrity_rules': attempt.integrity_rules or [],
                'tab_switches': attempt.tab_switches,
                'afk_incidents': attempt.afk_incidents,
                'screenshot_attempts': attempt.screenshot_attempts,
                'suspicious_extensions': attempt.suspicious_extensions or [],
                'inactivity_periods': attempt.inactivity_periods or [],
                'has_penalty': attempt.has_penalty,
                'completed_at': isoformat(attempt.completed_at),
            })
        return payload

    def monthly_leaderboard(self, year, month):
        """
        Scores summed per user over all attempts completed in the month

        Ties are broken by the earliest first completion in the month, then
        by user id.
        """
        start, end = month_window(year, month)
        total = func.sum(QuizAttempt.total_score).label('total_score')
        first_completed = func.min(QuizAttempt.completed_at).label('first_completed')

        rows = (
            self.session.query(
                User.id.label('user_id'),
                User.display_name,
                User.email,
                total,
                func.count(QuizAttempt.id).label('quiz_count'),
                func.sum(QuizAttempt.penalty_points).label('penalty_points'),
                first_completed,
            )
            .join(User, User.id == QuizAttempt.user_id)
            .filter(QuizAttempt.completed_at >= start, QuizAttempt.completed_at < end)
            .group_by(User.id, User.display_name, User.email)
            .order_by(total.desc(), first_completed.asc(), User.id.asc())
            .limit(self.limit)
            .all()
        )

        return [
            {
                'rank': idx,
                'user_id': row.user_id,
                'display_name': row.display_name,
                'email': row.email,
                'total_score': int(row.total_score or 0),
                'quiz_count': int(row.quiz_count or 0),
                'has_penalty': int(row.penalty_points or 0) > 0,
            }
            for idx, row in enumerate(rows, 1)
        ]
