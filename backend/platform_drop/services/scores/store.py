import math
from typing import List, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError

from platform_drop.models import GameSession, LeaderboardEntry
from .clock import iso_from_ms


class SessionStore:
    """Persistence handle for sessions and leaderboard entries.

    Wraps a SQLAlchemy session so services receive their storage explicitly
    instead of reaching for the application-wide ``db``. Every mutating
    method commits (or rolls back) its own transaction.
    """

    def __init__(self, session):
        self.session = session

    def get(self, session_id: str) -> Optional[GameSession]:
        return self.session.get(GameSession, session_id)

    def add_session(self, session_id: str, issued_at: int, client_ip: Optional[str]) -> GameSession:
        record = GameSession(id=session_id, issued_at=issued_at, used=False, client_ip=client_ip)
        self.session.add(record)
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return record

    def commit_score(self, session_id: str, *, now: int, avatar_id: int,
                     initials: str, distance: float) -> Optional[LeaderboardEntry]:
        """Consume the session and write its leaderboard entry in one transaction.

        The session update is conditional on ``used`` still being false when it
        is applied; if another writer got there first nothing is written and
        ``None`` is returned.
        """
        stmt = (
            update(GameSession)
            .where(GameSession.id == session_id, GameSession.used.is_(False))
            .values(used=True, consumed_at=now, final_score=distance)
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            if result.rowcount != 1:
                self.session.rollback()
                return None
            entry = LeaderboardEntry(
                avatar_id=avatar_id,
                initials=initials.upper(),
                distance=math.floor(distance),
                date=iso_from_ms(now),
                session_id=session_id,
            )
            self.session.add(entry)
            self.session.commit()
        except IntegrityError:
            # unique(session_id) caught a second entry for the same session
            self.session.rollback()
            return None
        except Exception:
            self.session.rollback()
            raise
        return entry

    def expired_unused_ids(self, cutoff: int, limit: int) -> List[str]:
        stmt = (
            select(GameSession.id)
            .where(GameSession.issued_at < cutoff, GameSession.used.is_(False))
            .order_by(GameSession.issued_at)
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())

    def delete_unused(self, session_ids: List[str]) -> int:
        if not session_ids:
            return 0
        # used=false is re-checked here so a session consumed after the scan survives
        stmt = (
            delete(GameSession)
            .where(GameSession.id.in_(session_ids), GameSession.used.is_(False))
            .execution_options(synchronize_session=False)
        )
        try:
            result = self.session.execute(stmt)
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return result.rowcount

    def top_entries(self, limit: int) -> List[LeaderboardEntry]:
        stmt = (
            select(LeaderboardEntry)
            .order_by(LeaderboardEntry.distance.desc(), LeaderboardEntry.date.asc(), LeaderboardEntry.id.asc())
            .limit(limit)
        )
        return list(self.session.execute(stmt).scalars().all())
