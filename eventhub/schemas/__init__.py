"""
Request Schemas
Pydantic models validating JSON bodies before they reach the services
"""
from flask import request

from eventhub.schemas.auth import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest
from eventhub.schemas.event import (
    CheckInRequest,
    EventCreate,
    EventUpdate,
    RejectRequest,
    ReviewRequest,
)
from eventhub.schemas.quiz import (
    AnswerIn,
    PenaltyRequest,
    QuizCreate,
    QuizUpdate,
    SubmitRequest,
)
from eventhub.schemas.admin import BroadcastRequest, RoleUpdate


def parse_body(schema):
    """Validate the JSON body of the current request; raises ValidationError"""
    return schema.model_validate(request.get_json(silent=True) or {})


__all__ = [
    'parse_body',
    'LoginRequest',
    'RegisterRequest',
    'ProfileUpdate',
    'PasswordChange',
    'CheckInRequest',
    'EventCreate',
    'EventUpdate',
    'RejectRequest',
    'ReviewRequest',
    'AnswerIn',
    'PenaltyRequest',
    'QuizCreate',
    'QuizUpdate',
    'SubmitRequest',
    'BroadcastRequest',
    'RoleUpdate',
]
