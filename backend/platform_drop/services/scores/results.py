from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class Reason(str, Enum):
    INVALID_INPUT = 'invalid-input'
    NOT_FOUND = 'not-found'
    ALREADY_CONSUMED = 'already-consumed'
    FORGED_PROOF = 'forged-proof'
    EXPIRED = 'expired'
    IMPLAUSIBLE = 'implausible'
    INTERNAL = 'internal'


# One fixed message per code; nothing finer-grained reaches the caller.
MESSAGES = {
    Reason.INVALID_INPUT: 'Invalid score submission',
    Reason.NOT_FOUND: 'Game session not found',
    Reason.ALREADY_CONSUMED: 'Score already submitted for this game session',
    Reason.FORGED_PROOF: 'Invalid session token',
    Reason.EXPIRED: 'Game session has expired',
    Reason.IMPLAUSIBLE: 'Score rejected for this game session',
    Reason.INTERNAL: 'Internal error, please retry',
}

HTTP_STATUS = {
    Reason.INVALID_INPUT: 400,
    Reason.FORGED_PROOF: 403,
    Reason.NOT_FOUND: 404,
    Reason.ALREADY_CONSUMED: 409,
    Reason.EXPIRED: 410,
    Reason.IMPLAUSIBLE: 422,
    Reason.INTERNAL: 500,
}


@dataclass(frozen=True)
class Failure:
    reason: Reason
    accepted: bool = field(default=False, init=False)

    @property
    def message(self) -> str:
        return MESSAGES[self.reason]

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.reason]

    def to_dict(self) -> Dict[str, Any]:
        return {'success': False, 'code': self.reason.value, 'message': self.message}


@dataclass(frozen=True)
class IssuedSession:
    session_id: str
    token: str
    issued_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {'sessionId': self.session_id, 'token': self.token, 'issuedAt': self.issued_at}


@dataclass(frozen=True)
class AcceptedScore:
    entry: Dict[str, Any]
    accepted: bool = field(default=True, init=False)

    def to_dict(self) -> Dict[str, Any]:
        return {'success': True, 'message': 'Score submitted successfully', 'entry': self.entry}
