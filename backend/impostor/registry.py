import random
import threading
import time
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

from .codes import normalize_code, random_code
from .errors import ConflictError, NotFoundError, ValidationError
from .models import Room, sanitize_text


class RoomSettings:
    """The subset of app config the room services need."""

    def __init__(self, min_players=3, room_ttl_sec=2 * 60 * 60, name_max_len=20,
                 word_max_len=30, code_length=6,
                 code_alphabet='ABCDEFGHJKLMNPQRSTUVWXYZ23456789', token_length=4):
        self.min_players = min_players
        self.room_ttl_sec = room_ttl_sec
        self.name_max_len = name_max_len
        self.word_max_len = word_max_len
        self.code_length = code_length
        self.code_alphabet = code_alphabet
        self.token_length = token_length

    @classmethod
    def from_config(cls, config):
        defaults = cls()
        return cls(
            min_players=int(config.get('MIN_PLAYERS', defaults.min_players)),
            room_ttl_sec=int(config.get('ROOM_TTL_SEC', defaults.room_ttl_sec)),
            name_max_len=int(config.get('NAME_MAX_LEN', defaults.name_max_len)),
            word_max_len=int(config.get('WORD_MAX_LEN', defaults.word_max_len)),
            code_length=int(config.get('CODE_LENGTH', defaults.code_length)),
            code_alphabet=config.get('CODE_ALPHABET', defaults.code_alphabet),
            token_length=int(config.get('TOKEN_LENGTH', defaults.token_length)),
        )


class RoomRegistry:
    """Authoritative table of live rooms, plus which room each connection belongs to.

    Built once by the app factory and handed to every handler. Lock order
    is room lock first, then the registry lock; the registry never takes a
    room lock while holding its own.
    """

    def __init__(self, settings: Optional[RoomSettings] = None, clock=time.monotonic, rng=None):
        self.settings = settings or RoomSettings()
        self.clock = clock
        self.rng = rng or random.Random()
        self._rooms: Dict[str, Room] = {}
        self._sid_to_ctx: Dict[str, Tuple[str, bool]] = {}
        self._lock = threading.Lock()

    def __len__(self):
        with self._lock:
            return len(self._rooms)

    def sanitize_name(self, value):
        return sanitize_text(value, self.settings.name_max_len)

    def sanitize_word(self, value):
        return sanitize_text(value, self.settings.word_max_len)

    def create(self, host_sid, host_name, secret_word) -> Room:
        host_name = self.sanitize_name(host_name)
        secret_word = self.sanitize_word(secret_word)
        if not host_name or not secret_word:
            raise ValidationError('Host name and secret word are required')

        s = self.settings
        while True:
            code = random_code(s.code_length, s.code_alphabet, self.rng)
            with self._lock:
                if host_sid in self._sid_to_ctx:
                    raise ConflictError('This connection is already in a room; leave it first')
                # Insertion is the only arbiter of uniqueness
                if code in self._rooms:
                    continue
                room = Room(code, host_sid, host_name, secret_word, self.clock())
                self._rooms[code] = room
                self._sid_to_ctx[host_sid] = (code, True)
                return room

    def get(self, code) -> Optional[Room]:
        with self._lock:
            return self._rooms.get(normalize_code(code))

    def require(self, code) -> Room:
        room = self.get(code)
        if room is None:
            raise NotFoundError('Room not found')
        return room

    @contextmanager
    def locked(self, code):
        """Yield the room with its lock held; fail if it closed while we waited."""
        room = self.require(code)
        with room.lock:
            if room.closed:
                raise NotFoundError('Room not found')
            yield room

    def delete(self, code) -> Optional[Room]:
        code = normalize_code(code)
        with self._lock:
            room = self._rooms.pop(code, None)
            if room is None:
                return None
            room.closed = True
            for sid in [s for s, (c, _) in self._sid_to_ctx.items() if c == code]:
                del self._sid_to_ctx[sid]
            return room

    def affiliate(self, sid, code, is_host=False) -> None:
        with self._lock:
            if sid in self._sid_to_ctx:
                raise ConflictError('This connection is already in a room; leave it first')
            self._sid_to_ctx[sid] = (code, is_host)

    def affiliation(self, sid) -> Optional[Tuple[str, bool]]:
        with self._lock:
            return self._sid_to_ctx.get(sid)

    def release(self, sid) -> None:
        with self._lock:
            self._sid_to_ctx.pop(sid, None)

    def is_idle(self, room, now) -> bool:
        return now - room.last_activity > self.settings.room_ttl_sec

    def idle_rooms(self, now=None) -> List[Room]:
        """Candidates only; callers re-check under the room lock before deleting."""
        now = self.clock() if now is None else now
        with self._lock:
            return [r for r in self._rooms.values() if self.is_idle(r, now)]
