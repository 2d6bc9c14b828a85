import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Comma separated list; '*' allows any origin
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    PORT = int(os.environ.get('PORT', '3001'))
    # Lobby
    MATCH_CODE_LENGTH = int(os.environ.get('MATCH_CODE_LENGTH', '6'))
    DISPLAY_NAME_MAX_LENGTH = int(os.environ.get('DISPLAY_NAME_MAX_LENGTH', '32'))
    # Round timers (seconds)
    COUNTDOWN_FROM = int(os.environ.get('COUNTDOWN_FROM', '3'))
    COUNTDOWN_INTERVAL_SEC = float(os.environ.get('COUNTDOWN_INTERVAL_SEC', '1.0'))
    # The red -> green delay is drawn uniformly from [min, max]
    RED_DELAY_MIN_SEC = float(os.environ.get('RED_DELAY_MIN_SEC', '2.0'))
    RED_DELAY_MAX_SEC = float(os.environ.get('RED_DELAY_MAX_SEC', '7.0'))
