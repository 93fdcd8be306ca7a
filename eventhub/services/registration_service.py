"""
Registration Service
Capacity, eligibility and approval workflow for event registrations.

State machine:
    (new) -> REGISTERED                      events without approval
    (new) -> PENDING -> CONFIRMED | REJECTED events requiring approval
Check-in is orthogonal and only stamps checked_in_at.
"""
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from eventhub.errors import (
    AlreadyCheckedIn,
    AlreadyRegistered,
    CapacityExceeded,
    EventHubError,
    InvalidState,
    NotEligible,
    NotFound,
)
from eventhub.extensions import db
from eventhub.models import Event, Registration
from eventhub.models.registration import CANCELLED, CONFIRMED, PENDING, REGISTERED, REJECTED
from eventhub.services.audit_service import AuditService
from eventhub.services.email_service import (
    registration_approved_email,
    registration_rejected_email,
)
from eventhub.services.notification_service import NotificationService
from eventhub.utils.helpers import generate_check_in_token, isoformat, now_utc

logger = logging.getLogger(__name__)


def is_eligible(event, user):
    """
    Study level / program restrictions of an event

    An empty list is unrestricted; a missing user attribute never matches a
    non-empty list.
    """
    levels = event.eligible_levels or []
    programs = event.eligible_programs or []
    if levels and user.study_level not in levels:
        return False
    if programs and user.study_program not in programs:
        return False
    return True


class RegistrationService:
    """Registration engine"""

    def __init__(self, session=None, notifier=None, audit=None, clock=now_utc):
        self.session = session or db.session
        self.notifier = notifier or NotificationService(self.session, clock=clock)
        self.audit = audit or AuditService(self.session)
        self.clock = clock

    def find(self, event_id, user_id):
        """The registration of a user for an event, or None"""
        return (
            self.session.query(Registration)
            .filter_by(event_id=event_id, user_id=user_id)
            .first()
        )

    def active_count(self, event_id):
        """Registrations that hold a seat (everything except CANCELLED)"""
        return (
            self.session.query(func.count(Registration.id))
            .filter(Registration.event_id == event_id, Registration.status != CANCELLED)
            .scalar()
        )

    # ========================================
    # REGISTER
    # ========================================

    def register(self, event_id, user):
        """
        Register a user for an event

        The event row is locked (SELECT ... FOR UPDATE) for the whole
        count-then-insert transaction, so concurrent registrations for the
        same event serialise on it. The unique (event_id, user_id) constraint
        rejects a concurrent duplicate insert.

        Raises:
            NotFound, CapacityExceeded, AlreadyRegistered, NotEligible
        """
        try:
            event = (
                self.session.query(Event)
                .filter(Event.id == event_id)
                .with_for_update()
                .first()
            )
            if not event:
                raise NotFound('Event not found')

            if self.active_count(event.id) >= event.capacity:
                raise CapacityExceeded()

            if self.find(event.id, user.id):
                raise AlreadyRegistered()

            if event.requires_approval and not is_eligible(event, user):
                raise NotEligible(
                    'You do not meet the study level or program requirements for this event'
                )

            registration = Registration(
                event_id=event.id,
                user_id=user.id,
                qr_token=generate_check_in_token(),
                status=PENDING if event.requires_approval else REGISTERED,
                created_at=self.clock()
            )
            self.session.add(registration)

            # Seats are counted again with this row flushed. SQLite ignores
            # FOR UPDATE, so a writer that passed the first count is caught here.
            if self.active_count(event.id) > event.capacity:
                raise CapacityExceeded()
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            logger.info("Duplicate registration rejected: event=%s user=%s", event_id, user.id)
            raise AlreadyRegistered()
        except EventHubError:
            self.session.rollback()
            raise

        logger.info(
            "User %s registered for event %s with status %s",
            user.id, event.id, registration.status
        )

        if registration.status == PENDING:
            self.notifier.notify(
                user.id,
                'Registration Pending Approval',
                f'Your registration for {event.title} is awaiting approval by the organizers',
                'EVENT_CONFIRMATION'
            )
        else:
            self.notifier.notify(
                user.id,
                'Event Registration Confirmed',
                f'You have successfully registered for {event.title}',
                'EVENT_CONFIRMATION'
            )
        return registration

    # ========================================
    # CHECK-IN
    # ========================================

    def check_in(self, event_id, token):
        """
        Stamp attendance for the registration holding this token

        Raises:
            NotFound, AlreadyCheckedIn
        """
        registration = (
            self.session.query(Registration)
            .filter_by(event_id=event_id, qr_token=token)
            .first()
        )
        if not registration:
            raise NotFound('Registration not found')

        if registration.checked_in_at is not None:
            raise AlreadyCheckedIn(details={'checked_in_at': isoformat(registration.checked_in_at)})

        updated = (
            self.session.query(Registration)
            .filter(Registration.id == registration.id, Registration.checked_in_at.is_(None))
            .update({Registration.checked_in_at: self.clock()}, synchronize_session=False)
        )
        if updated != 1:
            self.session.rollback()
            self.session.refresh(registration)
            raise AlreadyCheckedIn(details={'checked_in_at': isoformat(registration.checked_in_at)})

        self.session.commit()
        self.session.refresh(registration)
        logger.info("Registration %s checked in for event %s", registration.id, event_id)
        return registration

    # ========================================
    # APPROVAL
    # ========================================

    def approve(self, registration_id, reviewer, comment=None):
        """PENDING -> CONFIRMED; raises NotFound or InvalidState"""
        registration = self._review(registration_id, reviewer, CONFIRMED, comment)
        event = registration.event

        self.notifier.notify(
            registration.user_id,
            'Registration Approved',
            f'Your registration for {event.title} has been approved'
            + (f': {comment}' if comment else ''),
            'EVENT_CONFIRMATION'
        )
        subject, html, text = registration_approved_email(registration.user, event, comment)
        self.notifier.email(registration.user.email, subject, html, text)
        return registration

    def reject(self, registration_id, reviewer, reason=None):
        """PENDING -> REJECTED; raises NotFound or InvalidState"""
        registration = self._review(registration_id, reviewer, REJECTED, reason)
        event = registration.event

        self.notifier.notify(
            registration.user_id,
            'Registration Not Approved',
            f'Your registration for {event.title} was not approved'
            + (f': {reason}' if reason else ''),
            'EVENT_UPDATE'
        )
        subject, html, text = registration_rejected_email(registration.user, event, reason)
        self.notifier.email(registration.user.email, subject, html, text)
        return registration

    def _review(self, registration_id, reviewer, new_status, comment):
        registration = self.session.get(Registration, registration_id)
        if not registration:
            raise NotFound('Registration not found')
        if registration.status != PENDING:
            raise InvalidState(f'Registration is {registration.status}, not PENDING')

        # Compare-and-swap: only one reviewer can move it out of PENDING
        updated = (
            self.session.query(Registration)
            .filter(Registration.id == registration_id, Registration.status == PENDING)
            .update({
                Registration.status: new_status,
                Registration.reviewed_by: reviewer.id,
                Registration.reviewed_at: self.clock(),
                Registration.review_comment: comment,
            }, synchronize_session=False)
        )
        if updated != 1:
            self.session.rollback()
            raise InvalidState('Registration was already reviewed')

        self.audit.record(
            reviewer.id,
            'APPROVE' if new_status == CONFIRMED else 'REJECT',
            'REGISTRATION',
            registration_id,
            {'event_id': registration.event_id, 'comment': comment}
        )
        self.session.commit()
        self.session.refresh(registration)

        logger.info(
            "Registration %s %s by user %s",
            registration_id, new_status, reviewer.id
        )
        return registration

    # ========================================
    # QUERIES
    # ========================================

    def pending(self):
        return (
            self.session.query(Registration)
            .filter(Registration.status == PENDING)
            .order_by(Registration.created_at.asc(), Registration.id.asc())
            .all()
        )

    def for_event(self, event_id):
        if not self.session.get(Event, event_id):
            raise NotFound('Event not found')
        return (
            self.session.query(Registration)
            .filter(Registration.event_id == event_id)
            .order_by(Registration.created_at.desc(), Registration.id.desc())
            .all()
        )

    def for_user(self, user_id):
        return (
            self.session.query(Registration)
            .filter(Registration.user_id == user_id)
            .order_by(Registration.created_at.desc(), Registration.id.desc())
            .all()
        )
