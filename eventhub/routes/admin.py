"""
Admin Routes
User management, statistics, bulk announcements and the audit trail
"""
from flask import Blueprint, g, jsonify, request

from eventhub.schemas import BroadcastRequest, RoleUpdate, parse_body
from eventhub.services import AuditService, NotificationService, UserService
from eventhub.utils import require_role

admin_bp = Blueprint('admin', __name__)


@admin_bp.route('/broadcast', methods=['POST'])
@require_role('ADMIN')
def broadcast():
    """Notify (and email) all users, a role, or an explicit list of users"""
    data = parse_body(BroadcastRequest)
    summary = NotificationService().broadcast(
        data.title,
        data.content,
        kind=data.kind,
        user_ids=data.user_ids,
        role=data.role,
        send_email=data.send_email,
    )
    return jsonify({'success': True, 'data': summary})


@admin_bp.route('/audit-logs')
@require_role('ADMIN')
def audit_logs():
    limit = min(request.args.get('limit', 100, type=int), 500)
    entries = AuditService().recent(limit=limit, entity=request.args.get('entity'))
    return jsonify({'success': True, 'data': [e.to_dict() for e in entries]})


# ========================================
# USERS
# ========================================

@admin_bp.route('/users')
@require_role('ADMIN')
def list_users():
    """All users - filters: role, search"""
    rows = UserService().list_users(
        role=request.args.get('role'),
        search=request.args.get('search'),
    )
    return jsonify({
        'success': True,
        'data': [dict(user.to_dict(), registration_count=count) for user, count in rows],
    })


@admin_bp.route('/users/<int:user_id>/role', methods=['PUT'])
@require_role('ADMIN')
def update_user_role(user_id):
    data = parse_body(RoleUpdate)
    user = UserService().update_role(user_id, data.role, g.user)
    return jsonify({'success': True, 'data': user.to_dict()})


@admin_bp.route('/users/<int:user_id>', methods=['DELETE'])
@require_role('ADMIN')
def delete_user(user_id):
    UserService().delete_user(user_id, g.user)
    return jsonify({'success': True, 'message': 'User deleted successfully'})


@admin_bp.route('/stats')
@require_role('ADMIN')
def stats():
    return jsonify({'success': True, 'data': UserService().stats()})
