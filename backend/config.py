import os


def _origins(value):
    if value.strip() == '*':
        return '*'
    return [o.strip() for o in value.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    CORS_ORIGINS = _origins(os.environ.get('CORS_ORIGINS', '*'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/')
    # Guesses per board; iWon/allAttemptsUsed reports above this are rejected
    MAX_ATTEMPTS = int(os.environ.get('MAX_ATTEMPTS', '6'))
    LEADERBOARD_SIZE = int(os.environ.get('LEADERBOARD_SIZE', '10'))
    GUEST_NAME_PREFIX = os.environ.get('GUEST_NAME_PREFIX', 'Guest')
    # Finished sessions are dropped after this long (seconds). 0 keeps them until both players leave.
    SESSION_IDLE_TIMEOUT_SEC = int(os.environ.get('SESSION_IDLE_TIMEOUT_SEC', '300'))
    # Background sweep interval (seconds). 0 disables; use `flask reap-sessions` instead.
    SESSION_REAP_INTERVAL_SEC = int(os.environ.get('SESSION_REAP_INTERVAL_SEC', '60'))
