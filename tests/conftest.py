"""Shared fixtures: in-memory remote store, in-memory cache, request factory."""

import asyncio
import inspect
import itertools
from typing import Any, Dict, List, Optional, Tuple

import pytest

from budgetsync.cache.local_cache import LocalCache
from budgetsync.connectors.remote.base import RemoteStore, SubscriptionHandle
from budgetsync.core.result import Err, ErrorKind, Ok
from budgetsync.database import create_cache_engine, init_db
from budgetsync.models.request_models import BranchData, MarketingRequest, RequestStatus
from budgetsync.sync.engine import SyncEngine
from budgetsync.sync.field_mapper import to_persisted


def make_request(
    request_id: str = "req-1",
    status: RequestStatus = RequestStatus.PENDING_TM,
    created_at: str = "2026-03-01T10:00:00.000000Z",
    updated_at: Optional[str] = None,
    **overrides: Any,
) -> MarketingRequest:
    data = dict(
        id=request_id,
        created_at=created_at,
        updated_at=updated_at or created_at,
        rtm_id="u-rtm-north",
        rtm_name="Anna Petrova",
        region_id="r-north",
        branches=(
            BranchData(branch_id="b-101", amount=500.0, promo_type_id="p-flyers", comment="Spring"),
            BranchData(branch_id="b-102", amount=750.0, promo_type_id="p-outdoor"),
        ),
        status=status,
    )
    data.update(overrides)
    return MarketingRequest(**data)


class FakeRemoteStore(RemoteStore):
    """Dict-backed remote table that records every call."""

    def __init__(self, rows: Optional[List[MarketingRequest]] = None):
        self.rows: Dict[str, Dict[str, Any]] = {}
        for request in rows or []:
            self.rows[request.id] = to_persisted(request)
        self.calls: List[Tuple[str, ...]] = []
        self.failures: Dict[str, Err] = {}
        self.gate: Optional[asyncio.Event] = None
        self.subscribers: Dict[str, Any] = {}
        self._ids = itertools.count(1)
        self.closed = False

    def fail(self, operation: str, kind: ErrorKind = ErrorKind.NETWORK) -> None:
        self.failures[operation] = Err(kind, f"{operation} failed")

    def recover(self) -> None:
        self.failures.clear()

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()

    async def list(self, table, order_by="updated_at", direction="desc"):
        self.calls.append(("list", table, order_by, direction))
        await self._wait()
        if "list" in self.failures:
            return self.failures["list"]
        rows = sorted(
            self.rows.values(), key=lambda r: r[order_by], reverse=direction == "desc"
        )
        return Ok([dict(r) for r in rows])

    async def insert(self, table, record):
        self.calls.append(("insert", table, record))
        await self._wait()
        if "insert" in self.failures:
            return self.failures["insert"]
        if record["id"] in self.rows:
            return Err(ErrorKind.CONFLICT, "duplicate key", 409)
        self.rows[record["id"]] = dict(record)
        return Ok(None)

    async def update(self, table, record_id, partial):
        self.calls.append(("update", table, record_id, partial))
        await self._wait()
        if "update" in self.failures:
            return self.failures["update"]
        if record_id not in self.rows:
            return Err(ErrorKind.NOT_FOUND, "no row", 200)
        self.rows[record_id].update(partial)
        return Ok(None)

    def subscribe(self, table, event_mask, callback):
        handle = SubscriptionHandle(id=str(next(self._ids)), table=table, event_mask=event_mask)
        self.subscribers[handle.id] = callback
        return handle

    def unsubscribe(self, handle):
        self.subscribers.pop(handle.id, None)

    async def emit(self) -> None:
        """Deliver a no-payload change notification to every subscriber."""
        for callback in list(self.subscribers.values()):
            outcome = callback()
            if inspect.isawaitable(outcome):
                await outcome

    async def close(self) -> None:
        self.closed = True

    def calls_of(self, operation: str) -> List[Tuple[str, ...]]:
        return [c for c in self.calls if c[0] == operation]


@pytest.fixture
def cache():
    engine = create_cache_engine("sqlite://")
    init_db(engine)
    return LocalCache(engine, requests_key="test_requests", session_key="test_session")


@pytest.fixture
def remote():
    return FakeRemoteStore(
        [
            make_request("req-1", updated_at="2026-03-01T10:00:00.000000Z"),
            make_request(
                "req-2",
                status=RequestStatus.APPROVED_TM,
                created_at="2026-02-20T09:00:00.000000Z",
                updated_at="2026-03-02T12:00:00.000000Z",
            ),
        ]
    )


@pytest.fixture
def engine(remote, cache):
    return SyncEngine(remote, cache, table="requests")
