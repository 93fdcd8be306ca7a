"""
Scoring Service
Time-bonus scoring for quiz answers
"""
from collections import namedtuple
import logging
import math

logger = logging.getLogger(__name__)

# Fastest answer keeps 100% of the points, an answer at the limit keeps 50%
MAX_TIME_PENALTY = 0.5

ScoredAnswer = namedtuple('ScoredAnswer', ['is_correct', 'points_earned'])


def round_half_up(value):
    """Round .5 away from zero for positive values (Math.round semantics)"""
    return int(math.floor(value + 0.5))


def coerce_time_spent(time_spent):
    """Milliseconds as a non-negative number; garbage counts as 0"""
    try:
        value = float(time_spent)
    except (TypeError, ValueError):
        return 0
    if math.isnan(value) or value < 0:
        return 0
    return value


class ScoringService:
    """Service for scoring answers"""

    @staticmethod
    def time_bonus_factor(time_spent_ms, time_limit_seconds):
        """
        Multiplier in [0.5, 1.0] for a correct answer

        A non-positive limit disables the bonus and awards full points.
        """
        limit_ms = (time_limit_seconds or 0) * 1000
        if limit_ms <= 0:
            return 1.0
        effective = min(coerce_time_spent(time_spent_ms), limit_ms)
        return 1 - (effective / limit_ms) * MAX_TIME_PENALTY

    @staticmethod
    def score(question, selected_option_id, time_spent_ms, time_limit_seconds):
        """
        Score one answer

        An unknown or missing option is simply wrong: it never raises, so one
        malformed answer cannot void a whole submission.

        Returns:
            ScoredAnswer(is_correct, points_earned)
        """
        option = question.find_option(selected_option_id)
        is_correct = bool(option and option.get('isCorrect'))
        if not is_correct:
            return ScoredAnswer(False, 0)

        factor = ScoringService.time_bonus_factor(time_spent_ms, time_limit_seconds)
        return ScoredAnswer(True, round_half_up((question.points or 0) * factor))
