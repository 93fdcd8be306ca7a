"""
QuizQuestion Model
Options are stored as JSON: [{"id": ..., "text": ..., "isCorrect": bool}]
"""
from eventhub.extensions import db

DEFAULT_POINTS = 1000


class QuizQuestion(db.Model):
    """Quiz question model"""
    __tablename__ = 'quiz_questions'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(
        db.Integer,
        db.ForeignKey('quizzes.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    order = db.Column(db.Integer, default=0)
    question = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False, default=list)
    points = db.Column(db.Integer, nullable=False, default=DEFAULT_POINTS)

    def __repr__(self):
        return f'<QuizQuestion {self.id}: {self.question[:50]}...>'

    def find_option(self, option_id):
        """Return the option dict with the given id, or None"""
        if option_id is None:
            return None
        for option in self.options or []:
            if isinstance(option, dict) and str(option.get('id')) == str(option_id):
                return option
        return None

    def to_dict(self, reveal_answers=False):
        options = []
        for option in self.options or []:
            entry = {'id': option.get('id'), 'text': option.get('text')}
            if reveal_answers:
                entry['isCorrect'] = bool(option.get('isCorrect'))
            options.append(entry)
        return {
            'id': self.id,
            'order': self.order,
            'question': self.question,
            'options': options,
            'points': self.points,
        }
