"""
Authentication Routes
Handles account registration, login and the current profile
"""
import logging

from flask import Blueprint, g, jsonify

from eventhub.errors import InvalidInput, Unauthorized
from eventhub.extensions import db
from eventhub.models import User
from eventhub.schemas import LoginRequest, PasswordChange, ProfileUpdate, RegisterRequest, parse_body
from eventhub.services import UserService
from eventhub.utils import issue_token, login_required

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/register', methods=['POST'])
def register():
    """Create a USER account and return a bearer token"""
    data = parse_body(RegisterRequest)
    email = data.email.strip().lower()

    if User.query.filter_by(email=email).first():
        raise InvalidInput('Email already registered')

    user = User(
        email=email,
        display_name=data.display_name,
        role='USER',
        study_level=data.study_level,
        study_program=data.study_program,
    )
    user.set_password(data.password)
    db.session.add(user)
    db.session.commit()
    logger.info("Account created for user %s", user.id)

    return jsonify({
        'success': True,
        'data': {'user': user.to_dict(), 'token': issue_token(user)},
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    """Exchange email and password for a bearer token"""
    data = parse_body(LoginRequest)
    user = User.query.filter_by(email=data.email.strip().lower()).first()

    if not user or not user.check_password(data.password):
        raise Unauthorized('Invalid email or password')

    return jsonify({
        'success': True,
        'data': {'user': user.to_dict(), 'token': issue_token(user)},
    })


@auth_bp.route('/me')
@login_required
def me():
    """Current user profile"""
    return jsonify({'success': True, 'data': g.user.to_dict()})


@auth_bp.route('/me', methods=['PUT'])
@login_required
def update_profile():
    """Display name and the study attributes used for event eligibility"""
    user = UserService().update_profile(g.user, parse_body(ProfileUpdate))
    return jsonify({'success': True, 'data': user.to_dict()})


@auth_bp.route('/me/password', methods=['PUT'])
@login_required
def change_password():
    data = parse_body(PasswordChange)
    UserService().change_password(g.user, data.current_password, data.new_password)
    return jsonify({'success': True, 'message': 'Password updated successfully'})
