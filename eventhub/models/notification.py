"""
Notification Model
In-app messages shown to a user
"""
from eventhub.extensions import db
from eventhub.utils.helpers import isoformat, now_utc

KINDS = (
    'EVENT_CONFIRMATION',
    'EVENT_REMINDER',
    'EVENT_UPDATE',
    'SYSTEM',
    'QUIZ_PENALTY',
)


class Notification(db.Model):
    """Notification model"""
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    type = db.Column(db.String(40), nullable=False, default='SYSTEM')
    title = db.Column(db.String(191), nullable=False)
    content = db.Column(db.Text, nullable=False)
    read_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc, index=True)

    def __repr__(self):
        return f'<Notification {self.type} for U{self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'content': self.content,
            'read_at': isoformat(self.read_at),
            'created_at': isoformat(self.created_at),
        }
