"""
Event Service
Event CRUD, listing filters and registration export
"""
import csv
import io
import logging

from sqlalchemy import func, or_

from eventhub.errors import Forbidden, InvalidInput, NotFound
from eventhub.extensions import db
from eventhub.models import Event, Registration
from eventhub.models.registration import CANCELLED
from eventhub.services.audit_service import AuditService
from eventhub.utils.helpers import as_utc, isoformat, now_utc

logger = logging.getLogger(__name__)

CSV_HEADER = ['Name', 'Email', 'Status', 'Registered At', 'Checked In']


class EventService:
    """Event management"""

    def __init__(self, session=None, audit=None, clock=now_utc):
        self.session = session or db.session
        self.audit = audit or AuditService(self.session)
        self.clock = clock

    def get(self, event_id):
        event = self.session.get(Event, event_id)
        if not event:
            raise NotFound('Event not found')
        return event

    def registration_counts(self, event_ids):
        """Seats taken per event id"""
        if not event_ids:
            return {}
        rows = (
            self.session.query(Registration.event_id, func.count(Registration.id))
            .filter(Registration.event_id.in_(event_ids), Registration.status != CANCELLED)
            .group_by(Registration.event_id)
            .all()
        )
        counts = {event_id: 0 for event_id in event_ids}
        counts.update(dict(rows))
        return counts

    def list_events(self, status=None, category=None, search=None):
        """
        Events ordered by start time

        status is matched against the derived lifecycle status, so the filter
        runs after the query.
        """
        query = self.session.query(Event)
        if category:
            query = query.filter(Event.category == category)
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(Event.title.ilike(pattern), Event.description.ilike(pattern)))

        events = query.order_by(Event.start_at.asc(), Event.id.asc()).all()
        if status:
            now = self.clock()
            events = [e for e in events if e.status(now) == status.upper()]
        return events

    def _check_owner(self, event, actor):
        if event.organizer_id != actor.id and actor.role != 'ADMIN':
            raise Forbidden('Not authorized to modify this event')

    def create(self, data, organizer):
        event = Event(organizer_id=organizer.id, created_at=self.clock(), **data.model_dump())
        self.session.add(event)
        self.session.flush()
        self.audit.record(organizer.id, 'CREATE', 'EVENT', event.id, {'title': event.title})
        self.session.commit()
        logger.info("Event %s created by user %s", event.id, organizer.id)
        return event

    def update(self, event_id, data, actor):
        event = self.get(event_id)
        self._check_owner(event, actor)

        fields = data.model_dump(exclude_unset=True)
        for name, value in fields.items():
            # an explicit null clears nullable columns; required ones keep their value
            if value is None and not Event.__table__.c[name].nullable:
                continue
            setattr(event, name, value)

        if as_utc(event.end_at) <= as_utc(event.start_at):
            self.session.rollback()
            raise InvalidInput('Event end must be after its start')

        self.audit.record(actor.id, 'UPDATE', 'EVENT', event.id, {'fields': sorted(fields)})
        self.session.commit()
        return event

    def delete(self, event_id, actor):
        event = self.get(event_id)
        self._check_owner(event, actor)
        self.audit.record(actor.id, 'DELETE', 'EVENT', event.id, {'title': event.title})
        self.session.delete(event)
        self.session.commit()
        logger.info("Event %s deleted by user %s", event_id, actor.id)

    def export_registrations_csv(self, event_id):
        """CSV of every registration of an event, oldest first"""
        self.get(event_id)
        registrations = (
            self.session.query(Registration)
            .filter(Registration.event_id == event_id)
            .order_by(Registration.created_at.asc(), Registration.id.asc())
            .all()
        )

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(CSV_HEADER)
        for reg in registrations:
            writer.writerow([
                reg.user.display_name,
                reg.user.email,
                reg.status,
                isoformat(reg.created_at),
                isoformat(reg.checked_in_at) or 'Not checked in',
            ])
        return buffer.getvalue()
