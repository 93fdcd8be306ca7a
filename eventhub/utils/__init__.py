"""
Utils Package
"""
from eventhub.utils.helpers import (
    now_utc,
    as_utc,
    utc_to_local,
    generate_check_in_token,
    isoformat,
    quiz_status,
    event_status,
    issue_token,
    get_current_user,
    login_required,
    require_role
)

__all__ = [
    'now_utc',
    'as_utc',
    'utc_to_local',
    'generate_check_in_token',
    'isoformat',
    'quiz_status',
    'event_status',
    'issue_token',
    'get_current_user',
    'login_required',
    'require_role'
]
