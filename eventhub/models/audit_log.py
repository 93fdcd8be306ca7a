"""
AuditLog Model
Who did what to which entity
"""
from eventhub.extensions import db
from eventhub.utils.helpers import isoformat, now_utc


class AuditLog(db.Model):
    """Audit log model"""
    __tablename__ = 'audit_logs'

    id = db.Column(db.Integer, primary_key=True)
    actor_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    action = db.Column(db.String(50), nullable=False)
    entity = db.Column(db.String(50), nullable=False)
    entity_id = db.Column(db.String(64), nullable=False)
    meta = db.Column('metadata', db.JSON)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    def __repr__(self):
        return f'<AuditLog {self.action} {self.entity}:{self.entity_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'actor_id': self.actor_id,
            'action': self.action,
            'entity': self.entity,
            'entity_id': self.entity_id,
            'metadata': self.meta or {},
            'created_at': isoformat(self.created_at),
        }
