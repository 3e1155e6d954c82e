import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from .clock import now_ms
from .results import AcceptedScore, Failure, Reason
from .store import SessionStore
from .tokens import TokenCodec


INITIALS_RE = re.compile(r'[A-Z]{3}')
MIN_AVATAR_ID = 1
MAX_AVATAR_ID = 9


@dataclass(frozen=True)
class ScoreClaim:
    session_id: str
    token: str
    issued_at: int
    avatar_id: int
    initials: str
    distance: float


def _is_number(value: Any) -> bool:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def parse_claim(data: Any) -> Optional[ScoreClaim]:
    """Shape-check a raw submission payload. Returns ``None`` if anything is off."""
    if not isinstance(data, dict):
        return None
    session_id = data.get('sessionId')
    token = data.get('token')
    issued_at = data.get('issuedAt')
    avatar_id = data.get('avatarId')
    initials = data.get('initials')
    distance = data.get('distance')

    if not isinstance(session_id, str) or not session_id:
        return None
    if not isinstance(token, str) or not token:
        return None
    # Required but never trusted; verification uses the stored value.
    if not _is_number(issued_at) or issued_at < 0:
        return None
    if not _is_number(distance) or distance < 0:
        return None
    if not _is_number(avatar_id) or int(avatar_id) != avatar_id:
        return None
    if not MIN_AVATAR_ID <= avatar_id <= MAX_AVATAR_ID:
        return None
    if not isinstance(initials, str) or not INITIALS_RE.fullmatch(initials):
        return None

    return ScoreClaim(
        session_id=session_id,
        token=token,
        issued_at=int(issued_at),
        avatar_id=int(avatar_id),
        initials=initials,
        distance=distance,
    )


def max_plausible_distance(elapsed_ms: int, max_rate_per_sec: float) -> int:
    """Furthest distance reachable in ``elapsed_ms`` at ``max_rate_per_sec``."""
    return math.ceil(elapsed_ms / 1000.0 * max_rate_per_sec)


class ScoreSubmissionService:
    """Validates a claimed score against its session and commits it.

    Checks run in a fixed order and stop at the first failure: shape,
    existence, single use, token, freshness, plausibility. Only a claim that
    passes all of them reaches the conditional commit.
    """

    def __init__(self, store: SessionStore, codec: TokenCodec, *,
                 max_rate_per_sec: float = 30.0,
                 min_duration_ms: int = 1000,
                 expiry_ms: int = 60 * 60 * 1000,
                 clock: Callable[[], int] = now_ms,
                 logger: Optional[logging.Logger] = None):
        self.store = store
        self.codec = codec
        self.max_rate_per_sec = max_rate_per_sec
        self.min_duration_ms = min_duration_ms
        self.expiry_ms = expiry_ms
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def _reject(self, reason: Reason, session_id: Optional[str], detail: str = '') -> Failure:
        self.logger.warning(f"[score-rejected] session={session_id} reason={reason.value} {detail}".rstrip())
        return Failure(reason)

    def submit(self, data: Any) -> Union[AcceptedScore, Failure]:
        claim = parse_claim(data)
        if claim is None:
            sid = data.get('sessionId') if isinstance(data, dict) else None
            return self._reject(Reason.INVALID_INPUT, sid)

        try:
            return self._submit(claim)
        except SQLAlchemyError:
            self.logger.exception(f"[score-error] session={claim.session_id} persistence failure")
            return Failure(Reason.INTERNAL)

    def _submit(self, claim: ScoreClaim) -> Union[AcceptedScore, Failure]:
        session = self.store.get(claim.session_id)
        if session is None:
            return self._reject(Reason.NOT_FOUND, claim.session_id)

        if session.used:
            return self._reject(Reason.ALREADY_CONSUMED, claim.session_id)

        issued_at = session.issued_at
        if not self.codec.verify(claim.session_id, issued_at, claim.token):
            return self._reject(Reason.FORGED_PROOF, claim.session_id)

        now = int(self.clock())
        elapsed_ms = now - issued_at
        if elapsed_ms > self.expiry_ms:
            return self._reject(Reason.EXPIRED, claim.session_id, f"age={elapsed_ms}ms")

        if elapsed_ms < self.min_duration_ms:
            return self._reject(Reason.IMPLAUSIBLE, claim.session_id,
                                f"duration={elapsed_ms}ms distance={claim.distance}")

        max_distance = max_plausible_distance(elapsed_ms, self.max_rate_per_sec)
        if claim.distance > max_distance:
            return self._reject(Reason.IMPLAUSIBLE, claim.session_id,
                                f"distance={claim.distance} max={max_distance} duration={elapsed_ms}ms")

        entry = self.store.commit_score(
            claim.session_id,
            now=now,
            avatar_id=claim.avatar_id,
            initials=claim.initials,
            distance=claim.distance,
        )
        if entry is None:
            # lost the race to a concurrent submission for the same session
            return self._reject(Reason.ALREADY_CONSUMED, claim.session_id, 'at commit')

        payload = entry.to_dict()
        self.logger.info(
            f"[score-accepted] session={claim.session_id} initials={payload['initials']} distance={payload['distance']}"
        )
        return AcceptedScore(entry=payload)
