"""
Socket.IO Package
"""
from eventhub.sockets.quiz_events import emit_leaderboard_update, register_socket_events

__all__ = ['register_socket_events', 'emit_leaderboard_update']
