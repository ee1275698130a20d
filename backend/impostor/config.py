import os


def _flag(name, default='0'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Minimum players to start a round (host excluded)
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '3'))
    # Idle rooms are reaped after this many seconds without activity
    ROOM_TTL_SEC = int(os.environ.get('ROOM_TTL_SEC', str(2 * 60 * 60)))
    REAPER_INTERVAL_SEC = int(os.environ.get('REAPER_INTERVAL_SEC', '60'))
    # Display-provided strings are trimmed and truncated to these caps
    NAME_MAX_LEN = int(os.environ.get('NAME_MAX_LEN', '20'))
    WORD_MAX_LEN = int(os.environ.get('WORD_MAX_LEN', '30'))
    # Room codes: no 0/O or 1/I
    CODE_LENGTH = int(os.environ.get('CODE_LENGTH', '6'))
    CODE_ALPHABET = os.environ.get('CODE_ALPHABET', 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789')
    TOKEN_LENGTH = int(os.environ.get('TOKEN_LENGTH', '4'))
    SOCKETIO_NAMESPACE = os.environ.get('SOCKETIO_NAMESPACE', '/ws')
    CORS_ORIGINS = [o.strip() for o in os.environ.get('CORS_ORIGINS', '*').split(',') if o.strip()]
    # Optional identity verification. Unset GOOGLE_CLIENT_ID disables it.
    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID') or None
    IDENTITY_VERIFY_URL = os.environ.get('IDENTITY_VERIFY_URL', 'https://oauth2.googleapis.com/tokeninfo')
    IDENTITY_TIMEOUT_SEC = float(os.environ.get('IDENTITY_TIMEOUT_SEC', '5'))
    REQUIRE_IDENTITY = _flag('REQUIRE_IDENTITY')
    PORT = int(os.environ.get('PORT', '3000'))
