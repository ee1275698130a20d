import threading
from typing import Dict, Optional

# Room phases
LOBBY = 'lobby'
STARTED = 'started'
VOTING = 'voting'
RESOLVED = 'resolved'
PHASES = (LOBBY, STARTED, VOTING, RESOLVED)

IMPOSTOR_SENTINEL = 'IMPOSTOR'


def sanitize_text(value, max_len: int) -> str:
    return str(value if value is not None else '').strip()[:max_len]


class Player:
    __slots__ = ('sid', 'display_name', 'token', 'identity', 'joined_at')

    def __init__(self, sid, display_name, token, identity, joined_at):
        self.sid = sid
        self.display_name = display_name
        self.token = token
        self.identity = identity
        self.joined_at = joined_at

    def to_dict(self):
        # Never include sid or identity: both stay server-side
        return {
            'token': self.token,
            'name': self.display_name,
        }


class ScoreRow:
    __slots__ = ('name', 'accuser_wins', 'impostor_wins')

    def __init__(self, name, accuser_wins=0, impostor_wins=0):
        self.name = name
        self.accuser_wins = accuser_wins
        self.impostor_wins = impostor_wins

    @property
    def total_wins(self):
        return self.accuser_wins + self.impostor_wins

    def to_dict(self):
        return {
            'name': self.name,
            'accuserWins': self.accuser_wins,
            'impostorWins': self.impostor_wins,
            'totalWins': self.total_wins,
        }


class Room:
    """One game session.

    Callers must hold ``room.lock`` while reading or mutating anything but
    ``code``. Every accepted mutation calls ``touch`` so the idle reaper
    sees the activity.
    """

    def __init__(self, code, host_sid, host_name, secret_word, now):
        self.code = code
        self.host_sid = host_sid
        self.host_name = host_name
        self.secret_word = secret_word
        self.phase = LOBBY
        self.players: Dict[str, Player] = {}
        self.impostor_token: Optional[str] = None
        self.votes: Dict[str, str] = {}
        self.scoreboard: Dict[str, ScoreRow] = {}
        self.round_number = 0
        self.last_result = None
        self.created_at = now
        self.last_activity = now
        self.closed = False
        self.lock = threading.RLock()

    def touch(self, now):
        if now > self.last_activity:
            self.last_activity = now

    def is_host(self, sid):
        return sid == self.host_sid

    @property
    def vote_open(self):
        return self.phase == VOTING

    def ordered_players(self):
        return sorted(self.players.values(), key=lambda p: p.joined_at)

    def player_by_token(self, token) -> Optional[Player]:
        for p in self.players.values():
            if p.token == token:
                return p
        return None

    def impostor(self) -> Optional[Player]:
        if self.impostor_token is None:
            return None
        return self.player_by_token(self.impostor_token)

    def to_dict(self):
        """Public snapshot, safe to broadcast to every participant."""
        players = [p.to_dict() for p in self.ordered_players()]
        return {
            'code': self.code,
            'phase': self.phase,
            'started': self.phase != LOBBY,
            'round': self.round_number,
            'hostName': self.host_name,
            'playerCount': len(players),
            'players': players,
            'voteOpen': self.vote_open,
        }
