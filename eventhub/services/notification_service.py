"""
Notification Service
In-app notifications, best-effort email and bulk broadcast fan-out
"""
from concurrent.futures import ThreadPoolExecutor
import logging

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from eventhub.errors import Forbidden, NotFound
from eventhub.extensions import db
from eventhub.models import Notification, User
from eventhub.services.email_service import EmailService, broadcast_email
from eventhub.utils.helpers import now_utc

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Notification collaborator

    notify() and email() never raise: a failed notification must not undo
    the action that triggered it, so they run after the caller committed.
    """

    def __init__(self, session=None, mailer=None, clock=now_utc):
        self.session = session or db.session
        self._mailer = mailer
        self.clock = clock

    @property
    def mailer(self):
        if self._mailer is None:
            self._mailer = EmailService.from_app()
        return self._mailer

    def notify(self, user_id, title, content, kind='SYSTEM'):
        """Persist one notification; returns it, or None on failure"""
        notification = Notification(user_id=user_id, type=kind, title=title, content=content)
        try:
            self.session.add(notification)
            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            logger.exception("Failed to create %s notification for user %s", kind, user_id)
            return None
        return notification

    def email(self, to, subject, html, text=None):
        """Send an email; failures are logged and reported as False"""
        if not to:
            return False
        try:
            return self.mailer.send_email(to, subject, html, text)
        except Exception:
            logger.exception("Failed to send email '%s' to %s", subject, to)
            return False

    # ========================================
    # INBOX
    # ========================================

    def list_for(self, user_id, limit=50):
        notifications = (
            self.session.query(Notification)
            .filter(Notification.user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .limit(limit)
            .all()
        )
        unread = (
            self.session.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read_at.is_(None))
            .count()
        )
        return notifications, unread

    def mark_read(self, notification_id, user_id):
        notification = self.session.get(Notification, notification_id)
        if not notification:
            raise NotFound('Notification not found')
        if notification.user_id != user_id:
            raise Forbidden()
        if notification.read_at is None:
            notification.read_at = self.clock()
            self.session.commit()
        return notification

    def mark_all_read(self, user_id):
        updated = (
            self.session.query(Notification)
            .filter(Notification.user_id == user_id, Notification.read_at.is_(None))
            .update({Notification.read_at: self.clock()}, synchronize_session=False)
        )
        self.session.commit()
        return updated

    # ========================================
    # BROADCAST
    # ========================================

    def broadcast(self, title, content, kind='SYSTEM', user_ids=None, role=None, send_email=True):
        """
        Notify many users and email them with bounded concurrency

        Emails go out in batches of BROADCAST_BATCH_SIZE over at most
        BROADCAST_MAX_WORKERS threads. One failed send never fails the whole
        broadcast.

        Returns:
            dict: recipients, notified, emails_sent, emails_failed
        """
        query = self.session.query(User)
        if user_ids:
            query = query.filter(User.id.in_(user_ids))
        if role:
            query = query.filter(User.role == role)
        recipients = query.order_by(User.id).all()

        self.session.add_all([
            Notification(user_id=u.id, type=kind, title=title, content=content)
            for u in recipients
        ])
        self.session.commit()

        summary = {
            'recipients': len(recipients),
            'notified': len(recipients),
            'emails_sent': 0,
            'emails_failed': 0,
        }
        if not send_email or not recipients:
            return summary

        subject, html, text = broadcast_email(title, content)
        addresses = [u.email for u in recipients if u.email]
        batch_size = max(1, current_app.config['BROADCAST_BATCH_SIZE'])
        workers = max(1, current_app.config['BROADCAST_MAX_WORKERS'])
        self.mailer  # resolve while the app context is available to this thread

        with ThreadPoolExecutor(max_workers=workers) as pool:
            for start in range(0, len(addresses), batch_size):
                batch = addresses[start:start + batch_size]
                results = pool.map(lambda to: self.email(to, subject, html, text), batch)
                for ok in results:
                    if ok:
                        summary['emails_sent'] += 1
                    else:
                        summary['emails_failed'] += 1

        logger.info(
            "Broadcast '%s': %s notified, %s emails sent, %s failed",
            title, summary['notified'], summary['emails_sent'], summary['emails_failed']
        )
        return summary
