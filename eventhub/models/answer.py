"""
QuizAnswer Model
Stores individual question answers of an attempt
"""
from eventhub.extensions import db


class QuizAnswer(db.Model):
    """Quiz answer model"""
    __tablename__ = 'quiz_answers'

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(
        db.Integer,
        db.ForeignKey('quiz_attempts.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    question_id = db.Column(
        db.Integer,
        db.ForeignKey('quiz_questions.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    selected_option = db.Column(db.String(100))
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    time_spent = db.Column(db.Integer, nullable=False, default=0)  # ms
    points_earned = db.Column(db.Integer, nullable=False, default=0)

    def __repr__(self):
        return f'<QuizAnswer Q{self.question_id} by U{self.user_id}>'

    def to_dict(self):
        return {
            'question_id': self.question_id,
            'selected_option': self.selected_option,
            'is_correct': self.is_correct,
            'time_spent': self.time_spent,
            'points_earned': self.points_earned,
        }
