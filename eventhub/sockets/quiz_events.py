"""
Socket.IO Event Handlers
Live leaderboard updates for quiz rooms
"""
import logging

from flask_socketio import join_room, leave_room

from eventhub.extensions import socketio
from eventhub.services.leaderboard_service import LeaderboardService

logger = logging.getLogger(__name__)


def register_socket_events():
    """Register all Socket.IO event handlers"""

    @socketio.on('join_quiz')
    def join_quiz(data):
        """Client subscribes to a quiz leaderboard"""
        quiz_id = str(data['quiz_id'])
        join_room(quiz_id)
        logger.debug("Client joined room %s", quiz_id)

    @socketio.on('leave_quiz')
    def leave_quiz(data):
        quiz_id = str(data['quiz_id'])
        leave_room(quiz_id)
        logger.debug("Client left room %s", quiz_id)


def emit_leaderboard_update(quiz_id):
    """Push the current leaderboard of a quiz to everyone in its room"""
    leaderboard = LeaderboardService().quiz_leaderboard(quiz_id)
    socketio.emit(
        'leaderboard_update',
        {'quiz_id': quiz_id, 'leaderboard': leaderboard},
        room=str(quiz_id)
    )
