"""In-memory registry of live presentation sessions with idle expiry."""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from .errors import SessionNotFoundError
from .lifecycle import LiveSession

logger = logging.getLogger(__name__)

SESSION_ID_LENGTH = 8


@dataclass
class SessionRecord:
    id: str
    created_at: datetime
    expires_at: datetime
    session: LiveSession

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or datetime.utcnow()) >= self.expires_at


class SessionRegistry:
    """In-memory registry of live presentation sessions.

    Sessions do not survive a restart; expired sessions are dropped on access
    and by `purge_expired()`.
    """

    def __init__(
        self,
        session_factory: Callable[[], LiveSession],
        ttl: timedelta = timedelta(hours=4),
        now: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._factory = session_factory
        self.ttl = ttl
        self._now = now
        self._records: Dict[str, SessionRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def session_ids(self) -> List[str]:
        return list(self._records)

    def create(self) -> SessionRecord:
        session_id = secrets.token_urlsafe(SESSION_ID_LENGTH)[:SESSION_ID_LENGTH]
        while session_id in self._records:
            session_id = secrets.token_urlsafe(SESSION_ID_LENGTH)[:SESSION_ID_LENGTH]
        created_at = self._now()
        record = SessionRecord(
            id=session_id,
            created_at=created_at,
            expires_at=created_at + self.ttl,
            session=self._factory(),
        )
        self._records[session_id] = record
        logger.info(f"✅ Created session: {session_id}, expires at {record.expires_at.isoformat()}")
        return record

    def get(self, session_id: str) -> SessionRecord:
        record = self._records.get(session_id)
        if record is None:
            raise SessionNotFoundError(session_id)
        if record.is_expired(self._now()):
            self.delete(session_id)
            raise SessionNotFoundError(session_id)
        return record

    def delete(self, session_id: str) -> bool:
        record = self._records.pop(session_id, None)
        if record is None:
            return False
        record.session.stop()
        logger.info(f"🗑️ Deleted session: {session_id}")
        return True

    def purge_expired(self) -> List[str]:
        now = self._now()
        expired = [sid for sid, record in self._records.items() if record.is_expired(now)]
        for sid in expired:
            self.delete(sid)
        if expired:
            logger.info(f"🗑️ Cleaned up {len(expired)} expired session(s)")
        return expired
