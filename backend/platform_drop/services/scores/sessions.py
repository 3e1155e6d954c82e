import logging
import secrets
from typing import Callable, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from .clock import now_ms
from .results import Failure, IssuedSession, Reason
from .store import SessionStore
from .tokens import TokenCodec


def new_session_id() -> str:
    return secrets.token_urlsafe(15)


class SessionService:
    def __init__(self, store: SessionStore, codec: TokenCodec,
                 clock: Callable[[], int] = now_ms, logger: Optional[logging.Logger] = None):
        self.store = store
        self.codec = codec
        self.clock = clock
        self.logger = logger or logging.getLogger(__name__)

    def create_session(self, client_ip: Optional[str] = None) -> Union[IssuedSession, Failure]:
        """Persist a fresh unused session and hand back its id, token and issue time.

        ``issued_at`` always comes from the server clock. The token is only
        computed once the record has committed.
        """
        session_id = new_session_id()
        issued_at = int(self.clock())
        try:
            self.store.add_session(session_id, issued_at, client_ip)
        except SQLAlchemyError:
            self.logger.exception(f"[session-error] failed to persist session={session_id}")
            return Failure(Reason.INTERNAL)

        token = self.codec.generate(session_id, issued_at)
        self.logger.info(f"[session-issued] session={session_id} issued_at={issued_at}")
        return IssuedSession(session_id=session_id, token=token, issued_at=issued_at)
