"""
Quiz Model
Timed quiz with an availability window; status is derived, never stored
"""
from eventhub.extensions import db
from eventhub.utils.helpers import isoformat, now_utc, quiz_status

DEFAULT_TIME_LIMIT = 30  # seconds


class Quiz(db.Model):
    """Quiz model"""
    __tablename__ = 'quizzes'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(191), nullable=False)
    description = db.Column(db.Text)
    cover_image = db.Column(db.String(500))

    # Per-question time limit in seconds, used by the time bonus
    time_limit = db.Column(db.Integer, nullable=False, default=DEFAULT_TIME_LIMIT)

    start_at = db.Column(db.DateTime(timezone=True), nullable=False)
    end_at = db.Column(db.DateTime(timezone=True), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    # Relationships
    questions = db.relationship(
        'QuizQuestion',
        backref='quiz',
        lazy=True,
        order_by='QuizQuestion.order',
        cascade='all, delete-orphan'
    )
    attempts = db.relationship(
        'QuizAttempt',
        backref='quiz',
        lazy='dynamic',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Quiz {self.title}>'

    def status(self, now=None):
        return quiz_status(now or now_utc(), self.start_at, self.end_at)

    def to_dict(self, include_questions=False, reveal_answers=False, now=None):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'cover_image': self.cover_image,
            'time_limit': self.time_limit,
            'start_at': isoformat(self.start_at),
            'end_at': isoformat(self.end_at),
            'status': self.status(now),
            'created_by': self.created_by,
            'question_count': len(self.questions),
            'created_at': isoformat(self.created_at),
        }
        if include_questions:
            data['questions'] = [
                q.to_dict(reveal_answers=reveal_answers) for q in self.questions
            ]
        return data
