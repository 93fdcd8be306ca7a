"""
Models Package
Exports all database models
"""
from eventhub.models.user import User
from eventhub.models.event import Event
from eventhub.models.registration import Registration
from eventhub.models.quiz import Quiz
from eventhub.models.question import QuizQuestion
from eventhub.models.attempt import QuizAttempt
from eventhub.models.answer import QuizAnswer
from eventhub.models.notification import Notification
from eventhub.models.audit_log import AuditLog

__all__ = [
    'User',
    'Event',
    'Registration',
    'Quiz',
    'QuizQuestion',
    'QuizAttempt',
    'QuizAnswer',
    'Notification',
    'AuditLog',
]
