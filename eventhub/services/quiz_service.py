"""
Quiz Service
Quiz management, attempt submission and penalties
"""
import logging

from sqlalchemy.exc import IntegrityError

from eventhub.errors import (
    AlreadySubmitted,
    InvalidInput,
    InvalidState,
    NotFound,
    QuizNotActive,
)
from eventhub.extensions import db
from eventhub.models import Quiz, QuizAnswer, QuizAttempt, QuizQuestion
from eventhub.services.audit_service import AuditService
from eventhub.services.email_service import quiz_penalty_email
from eventhub.services.integrity_service import IntegrityService, IntegritySignals
from eventhub.services.leaderboard_service import LeaderboardService
from eventhub.services.notification_service import NotificationService
from eventhub.services.scoring_service import ScoringService, coerce_time_spent
from eventhub.utils.helpers import as_utc, now_utc

logger = logging.getLogger(__name__)

DEFAULT_PENALTY_REASON = 'Points reduced due to cheating detection'


def _question_rows(questions):
    return [
        QuizQuestion(
            question=q.question,
            options=[o.model_dump(by_alias=True) for o in q.options],
            points=q.points,
            order=index
        )
        for index, q in enumerate(questions)
    ]


def _same_questions(existing, incoming):
    """True when an update re-sends the questions unchanged"""
    if len(existing) != len(incoming):
        return False
    for row, q in zip(existing, incoming):
        if row.question != q.question or row.points != q.points:
            return False
        if row.options != [o.model_dump(by_alias=True) for o in q.options]:
            return False
    return True


class QuizService:
    """Quiz scoring & integrity engine plus quiz CRUD"""

    def __init__(self, session=None, notifier=None, audit=None, clock=now_utc):
        self.session = session or db.session
        self.notifier = notifier or NotificationService(self.session, clock=clock)
        self.audit = audit or AuditService(self.session)
        self.clock = clock

    def get_quiz(self, quiz_id):
        quiz = self.session.get(Quiz, quiz_id)
        if not quiz:
            raise NotFound('Quiz not found')
        return quiz

    def list_quizzes(self):
        return self.session.query(Quiz).order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()

    def get_attempt(self, quiz_id, user_id):
        return (
            self.session.query(QuizAttempt)
            .filter_by(quiz_id=quiz_id, user_id=user_id)
            .first()
        )

    # ========================================
    # MANAGEMENT
    # ========================================

    def create_quiz(self, data, creator):
        quiz = Quiz(
            title=data.title,
            description=data.description,
            cover_image=data.cover_image,
            time_limit=data.time_limit,
            start_at=data.start_at,
            end_at=data.end_at,
            created_by=creator.id,
            created_at=self.clock()
        )
        quiz.questions = _question_rows(data.questions)
        self.session.add(quiz)
        self.session.flush()
        self.audit.record(creator.id, 'CREATE', 'QUIZ', quiz.id, {'title': quiz.title})
        self.session.commit()
        logger.info("Quiz %s created by user %s", quiz.id, creator.id)
        return quiz

    def update_quiz(self, quiz_id, data, actor):
        """
        Update quiz settings; questions are frozen once anyone attempted it

        Raises:
            NotFound, InvalidState (changing questions after attempts)
        """
        quiz = self.get_quiz(quiz_id)
        has_attempts = quiz.attempts.count() > 0

        if data.questions:
            if has_attempts and not _same_questions(quiz.questions, data.questions):
                raise InvalidState(
                    'Cannot modify questions after users have taken the quiz. '
                    'You can only update title, description, cover image, and time settings.'
                )

        fields = data.model_dump(exclude_unset=True, exclude={'questions'})
        for name, value in fields.items():
            if value is None and not Quiz.__table__.c[name].nullable:
                continue
            setattr(quiz, name, value)

        if as_utc(quiz.end_at) <= as_utc(quiz.start_at):
            self.session.rollback()
            raise InvalidInput('Quiz end must be after its start')

        if data.questions and not has_attempts:
            quiz.questions = _question_rows(data.questions)

        self.audit.record(actor.id, 'UPDATE', 'QUIZ', quiz.id, {'fields': sorted(fields)})
        self.session.commit()
        return quiz

    def delete_quiz(self, quiz_id, actor):
        quiz = self.get_quiz(quiz_id)
        self.audit.record(actor.id, 'DELETE', 'QUIZ', quiz.id, {'title': quiz.title})
        self.session.delete(quiz)
        self.session.commit()
        logger.info("Quiz %s deleted by user %s", quiz_id, actor.id)

    def delete_participant(self, quiz_id, user_id, actor):
        """Remove a user's attempt so the quiz no longer counts it"""
        self.get_quiz(quiz_id)
        attempt = self.get_attempt(quiz_id, user_id)
        if not attempt:
            raise NotFound('Participant not found in this quiz')
        self.audit.record(
            actor.id, 'DELETE', 'QUIZ_ATTEMPT', attempt.id,
            {'quiz_id': quiz_id, 'user_id': user_id, 'total_score': attempt.total_score}
        )
        self.session.delete(attempt)
        self.session.commit()
        return 1

    # ========================================
    # SUBMISSION
    # ========================================

    def submit_attempt(self, quiz_id, user, answers, signals=None):
        """
        Score and persist the one and only attempt of a user at a quiz

        Args:
            answers: items with question_id, selected_option, time_spent (ms)
            signals: IntegritySignals

        Returns:
            (QuizAttempt, rank)

        Raises:
            AlreadySubmitted, NotFound, QuizNotActive
        """
        signals = signals or IntegritySignals()

        if self.get_attempt(quiz_id, user.id):
            raise AlreadySubmitted()

        quiz = self.get_quiz(quiz_id)
        now = self.clock()
        if not as_utc(quiz.start_at) <= as_utc(now) <= as_utc(quiz.end_at):
            raise QuizNotActive()

        questions = {str(q.id): q for q in quiz.questions}

        # Integrity looks at every submitted timing, matched or not
        report = IntegrityService.evaluate([a.time_spent for a in answers], signals)

        total_score = 0
        answer_rows = []
        for answer in answers:
            question = None if answer.question_id is None else questions.get(str(answer.question_id))
            if question is None:
                continue
            scored = ScoringService.score(
                question, answer.selected_option, answer.time_spent, quiz.time_limit
            )
            total_score += scored.points_earned
            answer_rows.append(QuizAnswer(
                question_id=question.id,
                user_id=user.id,
                selected_option=None if answer.selected_option is None else str(answer.selected_option),
                is_correct=scored.is_correct,
                time_spent=int(coerce_time_spent(answer.time_spent)),
                points_earned=scored.points_earned
            ))

        attempt = QuizAttempt(
            quiz_id=quiz.id,
            user_id=user.id,
            total_score=total_score,
            tab_switches=signals.tab_switches,
            afk_incidents=signals.afk_incidents,
            screenshot_attempts=signals.screenshot_attempts,
            suspicious_extensions=list(signals.detected_extensions) or None,
            inactivity_periods=list(signals.inactivity_periods) or None,
            is_flagged=report.is_flagged,
            flag_reason=report.flag_reason,
            integrity_rules=report.to_list(),
            completed_at=now,
            answers=answer_rows
        )

        try:
            self.session.add(attempt)
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Duplicate attempt rejected: quiz=%s user=%s", quiz_id, user.id)
            raise AlreadySubmitted()

        rank = LeaderboardService(self.session).rank_of(attempt)
        logger.info(
            "Attempt %s: user %s scored %s on quiz %s (rank %s, flagged=%s)",
            attempt.id, user.id, total_score, quiz.id, rank, attempt.is_flagged
        )
        return attempt, rank

    # ========================================
    # PENALTIES
    # ========================================

    def apply_penalty(self, quiz_id, user_id, points_to_reduce, reason, actor):
        """
        Reduce an attempt's score and mark it flagged

        Scores only ever go down through this path and never below zero.
        Each call appends to the flag reason instead of replacing it.

        Returns:
            dict: old_score, new_score, points_reduced

        Raises:
            InvalidInput, NotFound
        """
        if not isinstance(points_to_reduce, int) or isinstance(points_to_reduce, bool) \
                or points_to_reduce <= 0:
            raise InvalidInput('Points to reduce must be a positive number')

        attempt = self.get_attempt(quiz_id, user_id)
        if not attempt:
            raise NotFound('Quiz attempt not found')

        reason = reason or DEFAULT_PENALTY_REASON
        note = f'PENALTY: {points_to_reduce} points reduced - {reason}'
        old_score = attempt.total_score
        new_score = max(0, old_score - points_to_reduce)

        attempt.total_score = new_score
        attempt.flag_reason = f'{attempt.flag_reason}; {note}' if attempt.flag_reason else note
        attempt.is_flagged = True
        attempt.penalty_points = (attempt.penalty_points or 0) + points_to_reduce
        attempt.integrity_rules = list(attempt.integrity_rules or []) + [
            {'rule': 'PENALTY', 'flagged': True, 'reason': note}
        ]
        self.audit.record(
            actor.id, 'PENALTY', 'QUIZ_ATTEMPT', attempt.id,
            {'quiz_id': quiz_id, 'user_id': user_id, 'points': points_to_reduce,
             'old_score': old_score, 'new_score': new_score, 'reason': reason}
        )
        self.session.commit()

        logger.info(
            "Penalty on attempt %s: %s -> %s by user %s",
            attempt.id, old_score, new_score, actor.id
        )

        quiz = attempt.quiz
        self.notifier.notify(
            user_id,
            f'Quiz Points Reduced - {quiz.title}',
            f'{points_to_reduce} points were deducted from your score: {reason}',
            'QUIZ_PENALTY'
        )
        subject, html, text = quiz_penalty_email(
            attempt.user, quiz, old_score, points_to_reduce, new_score, reason
        )
        self.notifier.email(attempt.user.email, subject, html, text)

        return {
            'old_score': old_score,
            'new_score': new_score,
            'points_reduced': points_to_reduce,
        }
