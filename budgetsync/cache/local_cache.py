"""BudgetSync — Local Cache.

Durable key/value store on this device. Holds a non-authoritative copy of
the request collection (written after every successful remote read) and the
remembered session user. Unparseable blobs are treated as a cache miss.
"""

import json
from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session

from budgetsync.config import settings
from budgetsync.core.errors import CorruptLocalCacheError
from budgetsync.core.logging import get_logger
from budgetsync.models.cache_models import CacheEntry
from budgetsync.models.reference_models import User
from budgetsync.models.request_models import MarketingRequest

logger = get_logger("cache")


class LocalCache:
    """Key/value blob store backed by the ``cache_entries`` table."""

    def __init__(
        self,
        engine: Engine,
        requests_key: str | None = None,
        session_key: str | None = None,
    ):
        self.engine = engine
        self.requests_key = requests_key or settings.cache_requests_key
        self.session_key = session_key or settings.cache_session_key

    # ── Raw blobs ──

    def read_blob(self, key: str) -> Optional[str]:
        with Session(self.engine) as session:
            entry = session.get(CacheEntry, key)
            return entry.value_json if entry else None

    def write_blob(self, key: str, value_json: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(CacheEntry, key)
            if entry:
                entry.value_json = value_json
                entry.updated_at = datetime.now(timezone.utc)
            else:
                entry = CacheEntry(key=key, value_json=value_json)
            session.add(entry)
            session.commit()

    def remove(self, key: str) -> None:
        with Session(self.engine) as session:
            entry = session.get(CacheEntry, key)
            if entry:
                session.delete(entry)
                session.commit()

    def _decode(self, key: str) -> Optional[Any]:
        blob = self.read_blob(key)
        if blob is None:
            return None
        try:
            return json.loads(blob)
        except ValueError as e:
            raise CorruptLocalCacheError(key, str(e)) from e

    # ── Request collection ──

    def save_requests(self, requests: List[MarketingRequest]) -> None:
        payload = [r.to_app_dict() for r in requests]
        self.write_blob(self.requests_key, json.dumps(payload))
        logger.debug(f"Cached {len(payload)} requests")

    def parse_requests(self) -> Optional[List[MarketingRequest]]:
        """Cached collection, or None on a miss. Raises CorruptLocalCacheError."""
        data = self._decode(self.requests_key)
        if data is None:
            return None
        if not isinstance(data, list):
            raise CorruptLocalCacheError(self.requests_key, "expected a list")
        try:
            return [MarketingRequest.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise CorruptLocalCacheError(self.requests_key, str(e)) from e

    def load_requests(self) -> Optional[List[MarketingRequest]]:
        """Cached collection, or None on a miss or an unreadable blob."""
        try:
            return self.parse_requests()
        except CorruptLocalCacheError as e:
            logger.warning(f"Ignoring cached requests: {e}")
            return None

    def clear_requests(self) -> None:
        self.remove(self.requests_key)

    # ── Session user ──

    def save_session_user(self, user: User) -> None:
        self.write_blob(
            self.session_key,
            json.dumps(user.public_dict()),
        )

    def load_session_user(self) -> Optional[User]:
        try:
            data = self._decode(self.session_key)
            if data is None:
                return None
            return User.model_validate(data)
        except (CorruptLocalCacheError, PydanticValidationError) as e:
            logger.warning(f"Invalid session data: {e}")
            return None

    def clear_session_user(self) -> None:
        self.remove(self.session_key)
