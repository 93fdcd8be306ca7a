"""
Notification Routes
"""
from flask import Blueprint, g, jsonify

from eventhub.services import NotificationService
from eventhub.utils import login_required

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/')
@login_required
def list_notifications():
    notifications, unread = NotificationService().list_for(g.user.id)
    return jsonify({
        'success': True,
        'data': {
            'notifications': [n.to_dict() for n in notifications],
            'unread_count': unread,
        },
    })


@notifications_bp.route('/<int:notification_id>/read', methods=['PUT'])
@login_required
def mark_as_read(notification_id):
    notification = NotificationService().mark_read(notification_id, g.user.id)
    return jsonify({'success': True, 'data': notification.to_dict()})


@notifications_bp.route('/read-all', methods=['PUT'])
@login_required
def mark_all_as_read():
    updated = NotificationService().mark_all_read(g.user.id)
    return jsonify({
        'success': True,
        'message': 'All notifications marked as read',
        'updated': updated,
    })
