"""
Event Model
Capacity, approval and eligibility settings for a community event
"""
from eventhub.extensions import db
from eventhub.utils.helpers import event_status, isoformat, now_utc


class Event(db.Model):
    """Event model"""
    __tablename__ = 'events'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(191), nullable=False)
    description = db.Column(db.Text, nullable=False, default='')
    location_type = db.Column(db.String(20), nullable=False, default='PHYSICAL')
    location_text = db.Column(db.String(191), nullable=False, default='')
    category = db.Column(db.String(100))
    speaker = db.Column(db.String(191))
    image_url = db.Column(db.String(500))
    tags = db.Column(db.JSON)

    start_at = db.Column(db.DateTime(timezone=True), nullable=False)
    end_at = db.Column(db.DateTime(timezone=True), nullable=False)
    capacity = db.Column(db.Integer, nullable=False, default=0)

    # Approval workflow - empty eligibility list means unrestricted
    requires_approval = db.Column(db.Boolean, nullable=False, default=False)
    eligible_levels = db.Column(db.JSON, nullable=False, default=list)
    eligible_programs = db.Column(db.JSON, nullable=False, default=list)

    # Only stored lifecycle override; the rest is derived from the window
    is_cancelled = db.Column(db.Boolean, nullable=False, default=False)

    organizer_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    organizer = db.relationship('User', lazy='joined')
    registrations = db.relationship(
        'Registration',
        backref='event',
        lazy='dynamic',
        cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Event {self.title}>'

    def status(self, now=None):
        return event_status(now or now_utc(), self)

    def to_dict(self, registration_count=None, now=None):
        data = {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'location_type': self.location_type,
            'location_text': self.location_text,
            'category': self.category,
            'speaker': self.speaker,
            'image_url': self.image_url,
            'tags': self.tags or [],
            'start_at': isoformat(self.start_at),
            'end_at': isoformat(self.end_at),
            'capacity': self.capacity,
            'requires_approval': self.requires_approval,
            'eligible_levels': self.eligible_levels or [],
            'eligible_programs': self.eligible_programs or [],
            'status': self.status(now),
            'organizer': {
                'id': self.organizer.id,
                'display_name': self.organizer.display_name,
            } if self.organizer else None,
            'created_at': isoformat(self.created_at),
        }
        if registration_count is not None:
            data['registration_count'] = registration_count
        return data
