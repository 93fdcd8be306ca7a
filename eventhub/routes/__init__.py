"""
Routes Package
Exports all route blueprints
"""
from eventhub.routes.auth import auth_bp
from eventhub.routes.events import events_bp
from eventhub.routes.quizzes import quizzes_bp
from eventhub.routes.notifications import notifications_bp
from eventhub.routes.admin import admin_bp

__all__ = ['auth_bp', 'events_bp', 'quizzes_bp', 'notifications_bp', 'admin_bp']
