"""Session storage for connected Mailchimp accounts."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol
from weakref import WeakValueDictionary

from mailchimp_broker.domain.accounts import AccountMetadata
from mailchimp_broker.domain.sessions import SessionRecord

logger = logging.getLogger(__name__)


class SessionStore(Protocol):
    """Keyed storage of session records."""

    def put(
        self, session_id: str, access_token: str, account: AccountMetadata
    ) -> SessionRecord:
        """Store a record, replacing any existing one for the id."""

    def get(self, session_id: str) -> SessionRecord | None:
        """Return the record for the id, if connected."""

    def remove(self, session_id: str) -> None:
        """Forget the record for the id. Unknown ids are ignored."""

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Return the lock that serializes gated operations on the id."""


@dataclass
class InMemorySessionStore(SessionStore):
    """Process-local session store.

    Records are lost on restart. With ``ttl_seconds`` unset they never expire.
    """

    ttl_seconds: int | None
    _records: dict[str, SessionRecord]
    _locks: "WeakValueDictionary[str, asyncio.Lock]"

    def __init__(self, ttl_seconds: int | None = None) -> None:
        self.ttl_seconds = ttl_seconds
        self._records = {}
        self._locks = WeakValueDictionary()

    def put(
        self, session_id: str, access_token: str, account: AccountMetadata
    ) -> SessionRecord:
        """Store a freshly connected account under the session id."""
        record = SessionRecord(
            session_id=session_id,
            access_token=access_token,
            account=account,
            connected_at=datetime.now(tz=UTC),
        )
        self._records[session_id] = record
        return record

    def get(self, session_id: str) -> SessionRecord | None:
        """Return the record if present and not expired."""
        record = self._records.get(session_id)
        if record is None:
            return None
        if self._is_expired(record):
            logger.info("Session expired for account %s", record.account.account_name)
            self._records.pop(session_id, None)
            return None
        return record

    def remove(self, session_id: str) -> None:
        """Drop the record for the session id."""
        self._records.pop(session_id, None)

    def lock_for(self, session_id: str) -> asyncio.Lock:
        """Return the per-session lock, creating it on first use."""
        lock = self._locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[session_id] = lock
        return lock

    def __len__(self) -> int:
        return len(self._records)

    def _is_expired(self, record: SessionRecord) -> bool:
        if self.ttl_seconds is None:
            return False
        expires_at = record.connected_at + timedelta(seconds=self.ttl_seconds)
        return datetime.now(tz=UTC) >= expires_at
