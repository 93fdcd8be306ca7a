"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone
from functools import wraps
import uuid

from flask import current_app, g, request
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
import pytz

from eventhub.errors import Forbidden, Unauthorized

TOKEN_SALT = "auth-token"


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Attach UTC to naive datetimes read back from SQLite"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def utc_to_local(utc_dt, tz_name=None):
    """Convert UTC datetime to the configured display timezone"""
    if not utc_dt:
        return None
    tz = pytz.timezone(tz_name or current_app.config["TIMEZONE"])
    return as_utc(utc_dt).astimezone(tz)


def generate_check_in_token():
    """Opaque unique token presented at check-in"""
    return str(uuid.uuid4())


def isoformat(dt):
    return as_utc(dt).isoformat() if dt else None


# ========================================
# DERIVED STATUS
# ========================================

def quiz_status(now, start_at, end_at):
    """UPCOMING before the window, ACTIVE inside it, CLOSED after"""
    now, start_at, end_at = as_utc(now), as_utc(start_at), as_utc(end_at)
    if now < start_at:
        return "UPCOMING"
    if now < end_at:
        return "ACTIVE"
    return "CLOSED"


def event_status(now, event):
    """Lifecycle status of an event, computed at read time"""
    if event.is_cancelled:
        return "CANCELLED"
    now = as_utc(now)
    if now < as_utc(event.start_at):
        return "UPCOMING"
    if now < as_utc(event.end_at):
        return "ONGOING"
    return "COMPLETED"


# ========================================
# AUTH TOKENS
# ========================================

def _serializer():
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_token(user):
    """Sign a bearer token for the given user"""
    return _serializer().dumps({"uid": user.id, "role": user.role})


def get_current_user():
    """Resolve the bearer token on the current request, or None"""
    from eventhub.extensions import db
    from eventhub.models import User

    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer "):
        return None

    token = header[len("Bearer "):].strip()
    try:
        data = _serializer().loads(token, max_age=current_app.config["TOKEN_MAX_AGE"])
    except SignatureExpired:
        raise Unauthorized("Token expired")
    except BadSignature:
        raise Unauthorized("Invalid token")

    user = db.session.get(User, data.get("uid"))
    if not user:
        raise Unauthorized("User not found")
    return user


# Decorators
def login_required(f):
    """Decorator to require an authenticated user on g.user"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if user is None:
            raise Unauthorized()
        g.user = user
        return f(*args, **kwargs)
    return decorated_function


def require_role(*roles):
    """
    Decorator to require one of the given roles
    Implies login_required
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = get_current_user()
            if user is None:
                raise Unauthorized()
            if user.role not in roles:
                raise Forbidden("Requires role: " + ", ".join(roles))
            g.user = user
            return f(*args, **kwargs)
        return decorated_function
    return decorator
