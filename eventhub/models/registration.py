"""
Registration Model
One user's place at one event
"""
from eventhub.extensions import db
from eventhub.utils.helpers import isoformat, now_utc

REGISTERED = 'REGISTERED'
PENDING = 'PENDING'
CONFIRMED = 'CONFIRMED'
REJECTED = 'REJECTED'
CANCELLED = 'CANCELLED'
WAITLIST = 'WAITLIST'

STATUSES = (REGISTERED, PENDING, CONFIRMED, REJECTED, CANCELLED, WAITLIST)


class Registration(db.Model):
    """Registration model"""
    __tablename__ = 'registrations'

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer,
        db.ForeignKey('events.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    user_id = db.Column(
        db.Integer,
        db.ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    status = db.Column(db.String(20), nullable=False, default=REGISTERED)
    qr_token = db.Column(db.String(64), nullable=False, unique=True)
    checked_in_at = db.Column(db.DateTime(timezone=True))

    # Review trail for the approval path
    reviewed_by = db.Column(db.Integer, db.ForeignKey('users.id'))
    reviewed_at = db.Column(db.DateTime(timezone=True))
    review_comment = db.Column(db.Text)

    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    user = db.relationship('User', foreign_keys=[user_id], lazy='joined')
    reviewer = db.relationship('User', foreign_keys=[reviewed_by])

    __table_args__ = (
        db.UniqueConstraint(
            'event_id', 'user_id',
            name='unique_registration_per_event'
        ),
    )

    def __repr__(self):
        return f'<Registration E{self.event_id} U{self.user_id} {self.status}>'

    def to_dict(self, include_user=True):
        data = {
            'id': self.id,
            'event_id': self.event_id,
            'user_id': self.user_id,
            'status': self.status,
            'qr_token': self.qr_token,
            'checked_in_at': isoformat(self.checked_in_at),
            'reviewed_by': self.reviewed_by,
            'reviewed_at': isoformat(self.reviewed_at),
            'review_comment': self.review_comment,
            'created_at': isoformat(self.created_at),
        }
        if include_user and self.user:
            data['user'] = {
                'id': self.user.id,
                'display_name': self.user.display_name,
                'email': self.user.email,
            }
        return data
