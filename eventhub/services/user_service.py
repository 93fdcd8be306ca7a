"""
User Service
Account administration, profile updates and dashboard statistics
"""
from datetime import timedelta
import logging

from sqlalchemy import func, or_

from eventhub.errors import InvalidInput, InvalidState, NotFound
from eventhub.extensions import db
from eventhub.models import (
    AuditLog,
    Event,
    Notification,
    Quiz,
    QuizAttempt,
    Registration,
    User,
)
from eventhub.services.audit_service import AuditService
from eventhub.utils.helpers import now_utc

logger = logging.getLogger(__name__)

RECENT_USERS_WINDOW = timedelta(days=7)


class UserService:
    """User administration"""

    def __init__(self, session=None, audit=None, clock=now_utc):
        self.session = session or db.session
        self.audit = audit or AuditService(self.session)
        self.clock = clock

    def get(self, user_id):
        user = self.session.get(User, user_id)
        if not user:
            raise NotFound('User not found')
        return user

    def list_users(self, role=None, search=None):
        """
        Users, newest first, each with their registration count

        Returns:
            list of (User, registration_count)
        """
        counts = (
            self.session.query(Registration.user_id, func.count(Registration.id).label('n'))
            .group_by(Registration.user_id)
            .subquery()
        )
        query = (
            self.session.query(User, func.coalesce(counts.c.n, 0))
            .outerjoin(counts, counts.c.user_id == User.id)
        )
        if role:
            query = query.filter(User.role == role)
        if search:
            pattern = f'%{search}%'
            query = query.filter(or_(User.display_name.ilike(pattern), User.email.ilike(pattern)))
        return query.order_by(User.created_at.desc(), User.id.desc()).all()

    def update_role(self, user_id, role, actor):
        user = self.get(user_id)
        old_role = user.role
        user.role = role
        self.audit.record(
            actor.id, 'UPDATE_ROLE', 'USER', user.id,
            {'old_role': old_role, 'new_role': role}
        )
        self.session.commit()
        logger.info("User %s role %s -> %s by user %s", user.id, old_role, role, actor.id)
        return user

    def delete_user(self, user_id, actor):
        """
        Delete an account with its registrations, attempts and notifications

        Raises:
            InvalidInput (own account), NotFound,
            InvalidState (user still organizes events, created quizzes or
            has audit history)
        """
        if user_id == actor.id:
            raise InvalidInput('Cannot delete your own account')
        user = self.get(user_id)

        owns = (
            self.session.query(Event.id).filter(Event.organizer_id == user.id).first()
            or self.session.query(Quiz.id).filter(Quiz.created_by == user.id).first()
            or self.session.query(AuditLog.id).filter(AuditLog.actor_id == user.id).first()
        )
        if owns:
            raise InvalidState(
                'User owns events, quizzes or audit history; change their role instead'
            )

        (
            self.session.query(Registration)
            .filter(Registration.reviewed_by == user.id)
            .update({Registration.reviewed_by: None}, synchronize_session=False)
        )
        self.session.query(Registration).filter(Registration.user_id == user.id) \
            .delete(synchronize_session=False)
        self.session.query(Notification).filter(Notification.user_id == user.id) \
            .delete(synchronize_session=False)
        for attempt in self.session.query(QuizAttempt).filter(QuizAttempt.user_id == user.id):
            self.session.delete(attempt)

        self.audit.record(actor.id, 'DELETE', 'USER', user.id, {'email': user.email})
        self.session.delete(user)
        self.session.commit()
        logger.info("User %s deleted by user %s", user_id, actor.id)

    def update_profile(self, user, data):
        """Apply the fields sent; display name can't be cleared"""
        for name, value in data.model_dump(exclude_unset=True).items():
            if value is None and not User.__table__.c[name].nullable:
                continue
            setattr(user, name, value)
        self.session.commit()
        return user

    def change_password(self, user, current_password, new_password):
        if not user.check_password(current_password):
            raise InvalidInput('Current password is incorrect')
        user.set_password(new_password)
        self.session.commit()

    def stats(self):
        now = self.clock()
        return {
            'total_users': self.session.query(User).count(),
            'total_events': self.session.query(Event).count(),
            'total_registrations': self.session.query(Registration).count(),
            'total_quizzes': self.session.query(Quiz).count(),
            'total_attempts': self.session.query(QuizAttempt).count(),
            'recent_users': (
                self.session.query(User)
                .filter(User.created_at >= now - RECENT_USERS_WINDOW)
                .count()
            ),
            'upcoming_events': (
                self.session.query(Event)
                .filter(Event.start_at >= now, Event.is_cancelled.is_(False))
                .count()
            ),
        }
