"""Errors raised by room operations.

Every intent failure is one of these. The transport turns them into a
negative acknowledgement ``{'ok': False, 'error': str(exc), 'kind': exc.kind}``;
none of them should ever reach Socket.IO itself.
"""


class RoomError(Exception):
    kind = 'error'

    def __init__(self, message):
        super().__init__(message)
        self.message = message

    def to_ack(self):
        return {'ok': False, 'error': self.message, 'kind': self.kind}


class ValidationError(RoomError):
    """Missing, empty or malformed input."""
    kind = 'validation'


class NotFoundError(RoomError):
    """The referenced room does not exist (or no longer exists)."""
    kind = 'not_found'


class PreconditionError(RoomError):
    """Wrong phase, or below a threshold such as the minimum player count."""
    kind = 'precondition'


class AuthorizationError(RoomError):
    """Caller does not hold the role the action needs (host vs player)."""
    kind = 'authorization'


class ConflictError(RoomError):
    """Duplicate identity, self vote, invalid vote target and the like."""
    kind = 'conflict'


class ExternalVerificationError(RoomError):
    """Identity provider call failed, rejected the credential, or is not configured."""
    kind = 'verification'
