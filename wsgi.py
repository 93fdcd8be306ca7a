"""
Production WSGI Entry Point
Used by gunicorn and other WSGI servers
"""
import os

from eventhub import create_app
from eventhub.extensions import socketio

app = create_app()

if __name__ == '__main__':
    # In production, use: gunicorn -w 1 --threads 100 wsgi:app
    port = int(os.getenv('PORT', 5000))

    socketio.run(
        app,
        host='0.0.0.0',
        port=port,
        debug=app.config.get('DEBUG', False),
        use_reloader=False,
        allow_unsafe_werkzeug=True
    )
