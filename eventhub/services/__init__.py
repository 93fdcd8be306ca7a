"""
Services Package
"""
from eventhub.services.scoring_service import ScoringService
from eventhub.services.integrity_service import IntegrityService, IntegritySignals
from eventhub.services.leaderboard_service import LeaderboardService
from eventhub.services.audit_service import AuditService
from eventhub.services.email_service import EmailService
from eventhub.services.notification_service import NotificationService
from eventhub.services.registration_service import RegistrationService
from eventhub.services.quiz_service import QuizService
from eventhub.services.event_service import EventService
from eventhub.services.user_service import UserService

__all__ = [
    'ScoringService',
    'IntegrityService',
    'IntegritySignals',
    'LeaderboardService',
    'AuditService',
    'EmailService',
    'NotificationService',
    'RegistrationService',
    'QuizService',
    'EventService',
    'UserService',
]
