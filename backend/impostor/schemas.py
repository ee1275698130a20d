from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as SchemaError

from impostor.errors import ValidationError


class Intent(BaseModel):
    model_config = ConfigDict(extra='forbid', str_strip_whitespace=True)


class CreateRoomRequest(Intent):
    hostName: str
    word: str


class RoomRequest(Intent):
    code: str


class JoinRoomRequest(RoomRequest):
    name: str = ''
    identity: Optional[str] = None
    credential: Optional[str] = None


class CastVoteRequest(RoomRequest):
    targetToken: str


class NewRoundRequest(RoomRequest):
    word: str


class VerifyIdentityRequest(Intent):
    credential: str


def parse_intent(schema, data):
    """Validate a raw Socket.IO payload, raising our ValidationError on any mismatch."""
    if not isinstance(data, dict):
        raise ValidationError('Payload must be an object')
    try:
        return schema.model_validate(data)
    except SchemaError as exc:
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = '.'.join(str(p) for p in first.get('loc', ())) or 'payload'
        raise ValidationError(f"Invalid {field}: {first.get('msg', 'malformed')}") from exc
