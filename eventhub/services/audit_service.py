"""
Audit Service
Records staff actions; the entry joins the caller's transaction
"""
from eventhub.extensions import db
from eventhub.models import AuditLog


class AuditService:
    """Audit log writer"""

    def __init__(self, session=None):
        self.session = session or db.session

    def record(self, actor_id, action, entity, entity_id, metadata=None):
        """Stage an audit entry; committed together with the audited change"""
        entry = AuditLog(
            actor_id=actor_id,
            action=action,
            entity=entity,
            entity_id=str(entity_id),
            meta=metadata or {}
        )
        self.session.add(entry)
        return entry

    def recent(self, limit=100, entity=None):
        query = self.session.query(AuditLog)
        if entity:
            query = query.filter(AuditLog.entity == entity)
        return query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
