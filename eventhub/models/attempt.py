"""
QuizAttempt Model
The single, final attempt of a user at a quiz, with its integrity record
"""
from eventhub.extensions import db
from eventhub.utils.helpers import isoformat, now_utc


class QuizAttempt(db.Model):
    """Quiz attempt model"""
    __tablename__ = 'quiz_attempts'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(
        db.Integer,
        db.ForeignKey('quizzes.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    total_score = db.Column(db.Integer, nullable=False, default=0)

    # Integrity signals reported by the client
    tab_switches = db.Column(db.Integer, nullable=False, default=0)
    afk_incidents = db.Column(db.Integer, nullable=False, default=0)
    screenshot_attempts = db.Column(db.Integer, nullable=False, default=0)
    suspicious_extensions = db.Column(db.JSON)
    inactivity_periods = db.Column(db.JSON)

    # Integrity outcome
    is_flagged = db.Column(db.Boolean, nullable=False, default=False)
    flag_reason = db.Column(db.Text)
    integrity_rules = db.Column(db.JSON, nullable=False, default=list)
    penalty_points = db.Column(db.Integer, nullable=False, default=0)

    completed_at = db.Column(db.DateTime(timezone=True), default=now_utc, index=True)

    user = db.relationship('User', lazy='joined')
    answers = db.relationship(
        'QuizAnswer',
        backref='attempt',
        lazy=True,
        cascade='all, delete-orphan'
    )

    __table_args__ = (
        db.UniqueConstraint(
            'quiz_id', 'user_id',
            name='unique_attempt_per_quiz'
        ),
    )

    def __repr__(self):
        return f'<QuizAttempt Q{self.quiz_id} U{self.user_id}: {self.total_score}>'

    @property
    def has_penalty(self):
        return (self.penalty_points or 0) > 0

    def to_dict(self, include_answers=True):
        data = {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'user_id': self.user_id,
            'total_score': self.total_score,
            'tab_switches': self.tab_switches,
            'afk_incidents': self.afk_incidents,
            'screenshot_attempts': self.screenshot_attempts,
            'suspicious_extensions': self.suspicious_extensions or [],
            'inactivity_periods': self.inactivity_periods or [],
            'is_flagged': self.is_flagged,
            'flag_reason': self.flag_reason,
            'integrity_rules': self.integrity_rules or [],
            'penalty_points': self.penalty_points,
            'has_penalty': self.has_penalty,
            'completed_at': isoformat(self.completed_at),
        }
        if include_answers:
            data['answers'] = [a.to_dict() for a in self.answers]
        return data
