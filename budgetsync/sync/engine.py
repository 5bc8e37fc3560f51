"""BudgetSync — Sync Engine.

Owns the in-memory request collection and mediates every mutation through
snapshot-apply-confirm:

  validate → apply locally (listeners see it at once) → persist remotely
  → on failure restore the affected slice from the snapshot

The collection is a tuple of frozen models, so a snapshot is just a
reference. Remote change notifications trigger a full ``refresh()``; a
refresh that lands while a mutation is in flight can overwrite the
optimistic value, and the next refresh converges to the remote rows.

Mutations must be called from inside a running event loop; they return
synchronously with the remote confirmation as an ``asyncio.Task``.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Coroutine, Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import SQLAlchemyError

from budgetsync.cache.local_cache import LocalCache
from budgetsync.config import settings
from budgetsync.connectors.remote.base import RemoteStore, SubscriptionHandle
from budgetsync.core.clock import next_timestamp, not_before
from budgetsync.core.errors import ValidationError
from budgetsync.core.logging import get_logger
from budgetsync.core.reference_data import INITIAL_REQUESTS
from budgetsync.core.result import Err, ErrorKind, Ok, Result
from budgetsync.models.reference_models import User
from budgetsync.models.request_models import MarketingRequest, RequestStatus
from budgetsync.sync import workflow
from budgetsync.sync.field_mapper import to_domain, to_persisted
from budgetsync.sync.notifications import Notification, NotificationCenter, NotificationLevel

logger = get_logger("sync.engine")

Collection = Tuple[MarketingRequest, ...]
Listener = Callable[[Collection], None]


class CollectionSource(str, Enum):
    """Where the current collection came from."""

    EMPTY = "empty"
    REMOTE = "remote"
    CACHE = "cache"
    SEED = "seed"


class SyncEngine:
    """Optimistic local state reconciled with a remote requests table."""

    def __init__(
        self,
        remote: RemoteStore,
        cache: LocalCache,
        table: str | None = None,
        seed: Sequence[MarketingRequest] | None = None,
        notifications: NotificationCenter | None = None,
    ):
        self.remote = remote
        self.cache = cache
        self.table = table or settings.requests_table
        self.seed: Collection = tuple(INITIAL_REQUESTS if seed is None else seed)
        self.notifications = notifications or NotificationCenter()

        self._collection: Collection = ()
        self._source = CollectionSource.EMPTY
        self._refreshing = 0
        self._listeners: List[Listener] = []
        self._pending: Set[asyncio.Task] = set()
        self._subscription: Optional[SubscriptionHandle] = None
        self._started = False
        self._disposed = False

    # ── State ──

    @property
    def collection(self) -> Collection:
        return self._collection

    @property
    def source(self) -> CollectionSource:
        return self._source

    @property
    def is_syncing(self) -> bool:
        return self._refreshing > 0

    @property
    def pending_mutations(self) -> int:
        return len(self._pending)

    @property
    def disposed(self) -> bool:
        return self._disposed

    def get(self, request_id: str) -> Optional[MarketingRequest]:
        for request in self._collection:
            if request.id == request_id:
                return request
        return None

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener(collection)`` after every change. Returns a remover."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def dismiss(self, notification_id: int) -> bool:
        return self.notifications.dismiss(notification_id)

    def _set_collection(
        self, collection: Collection, source: CollectionSource | None = None
    ) -> None:
        self._collection = collection
        if source is not None:
            self._source = source
        for listener in list(self._listeners):
            try:
                listener(collection)
            except Exception as e:
                logger.error(f"Collection listener failed: {e}", exc_info=True)

    def _notify(
        self,
        level: NotificationLevel,
        message: str,
        request_id: str | None = None,
        kind: ErrorKind | None = None,
    ) -> Optional[Notification]:
        if self._disposed:
            return None
        return self.notifications.push(level, message, request_id=request_id, kind=kind)

    async def _guarded(self, call: Awaitable[Result]) -> Result:
        """Await a remote call; a store that raises anyway yields ``Err``."""
        try:
            return await call
        except Exception as e:
            logger.error(f"Remote store raised {type(e).__name__}: {e}", exc_info=True)
            return Err(ErrorKind.REMOTE, f"Remote store failed: {e}")

    def _spawn(self, coro: Coroutine[Any, Any, Result]) -> "asyncio.Task[Result]":
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    # ── Lifecycle ──

    async def init(self, subscribe: bool = True) -> None:
        """Load the collection and, unless told not to, listen for remote changes."""
        if self._disposed:
            raise RuntimeError("SyncEngine has been disposed")
        if self._started:
            return
        self._started = True
        logger.info("🔄 Sync engine starting", extra={"table": self.table})
        await self.refresh()
        if subscribe:
            self.subscribe_to_remote_changes()

    async def dispose(self) -> None:
        """Release the change subscription; in-flight calls finish unobserved."""
        if self._disposed:
            return
        try:
            self.unsubscribe_from_remote_changes()
        finally:
            self._disposed = True
            self._listeners.clear()
            logger.info(
                f"Sync engine disposed ({len(self._pending)} remote calls still in flight)",
                extra={"table": self.table},
            )

    async def settle(self) -> None:
        """Wait for every in-flight remote confirmation."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    # ── Refresh ──

    async def refresh(self) -> Result[List[MarketingRequest]]:
        """Replace the collection with the remote rows; fall back on failure."""
        self._refreshing += 1
        try:
            result = await self._guarded(self.remote.list(self.table, "updated_at", "desc"))
            if self._disposed:
                return result

            if isinstance(result, Ok):
                try:
                    requests = [to_domain(row) for row in result.value]
                except (ValidationError, PydanticValidationError) as e:
                    result = Err(ErrorKind.REMOTE, f"Malformed remote row: {e}")
                else:
                    self._set_collection(tuple(requests), CollectionSource.REMOTE)
                    self._write_cache(requests)
                    logger.info(f"Refreshed {len(requests)} requests", extra={"table": self.table})
                    return Ok(requests)

            logger.warning(
                f"Refresh failed ({result.kind.value}): {result.message}",
                extra={"table": self.table},
            )
            self._fall_back()
            self._notify(
                NotificationLevel.ERROR,
                "Could not sync with the server; showing saved data.",
                kind=result.kind,
            )
            return result
        finally:
            self._refreshing -= 1

    def _write_cache(self, requests: List[MarketingRequest]) -> None:
        try:
            self.cache.save_requests(requests)
        except SQLAlchemyError as e:
            logger.error(f"Local cache write failed: {e}")

    def _fall_back(self) -> None:
        if self._source in (CollectionSource.REMOTE, CollectionSource.CACHE):
            return
        try:
            cached = self.cache.load_requests()
        except SQLAlchemyError as e:
            logger.error(f"Local cache read failed: {e}")
            cached = None
        if cached is not None:
            logger.info(f"Seeded {len(cached)} requests from local cache")
            self._set_collection(tuple(cached), CollectionSource.CACHE)
        else:
            logger.info("No cached requests; using default seed")
            self._set_collection(self.seed, CollectionSource.SEED)

    def reset_local_cache(self) -> None:
        """Forget the cached collection and show the default seed."""
        self.cache.clear_requests()
        self._set_collection(self.seed, CollectionSource.SEED)
        logger.info("Local cache reset")

    # ── Create ──

    def create(
        self, request: MarketingRequest, actor: Optional[User] = None
    ) -> Result["asyncio.Task[Result[MarketingRequest]]"]:
        """Add ``request`` locally now and insert it remotely in the background."""
        try:
            if self._disposed:
                raise ValidationError("SyncEngine has been disposed")
            workflow.check_create(request, actor)
            if self.get(request.id) is not None:
                raise ValidationError(f"Request {request.id} already exists")
            try:
                stamp = not_before(request.created_at)
            except ValueError:
                raise ValidationError(f"createdAt is not ISO-8601: {request.created_at!r}") from None
        except ValidationError as e:
            logger.warning(f"Create rejected: {e}", extra={"request_id": request.id})
            return Err(ErrorKind.VALIDATION, str(e))

        record = request.model_copy(update={"updated_at": stamp})
        self._set_collection((record,) + self._collection)
        return Ok(self._spawn(self._confirm_create(record)))

    async def _confirm_create(self, record: MarketingRequest) -> Result[MarketingRequest]:
        result = await self._guarded(self.remote.insert(self.table, to_persisted(record)))
        if isinstance(result, Ok):
            self._notify(NotificationLevel.SUCCESS, "Request submitted.", request_id=record.id)
            return Ok(record)

        logger.warning(
            f"Insert failed, rolling back: {result.message}",
            extra={"request_id": record.id, "table": self.table},
        )
        if not self._disposed:
            self._set_collection(tuple(r for r in self._collection if r.id != record.id))
            self._notify(
                NotificationLevel.ERROR,
                "Could not save the request. Please try again.",
                request_id=record.id,
                kind=result.kind,
            )
        return result

    # ── Transition ──

    def transition(
        self,
        request_id: str,
        new_status: Union[RequestStatus, str],
        extra: Optional[Mapping[str, Any]] = None,
        actor: Optional[User] = None,
    ) -> Result["asyncio.Task[Result[MarketingRequest]]"]:
        """Move a request along the workflow locally, then persist the change."""
        current = self.get(request_id)
        if current is None:
            return Err(ErrorKind.NOT_FOUND, f"Request {request_id} not found")
        try:
            if self._disposed:
                raise ValidationError("SyncEngine has been disposed")
            try:
                status = RequestStatus(new_status)
            except ValueError:
                raise ValidationError(f"Unknown status '{new_status}'") from None
            fields = workflow.check_transition(current, status, extra, actor)
        except ValidationError as e:
            logger.warning(f"Transition rejected: {e}", extra={"request_id": request_id})
            return Err(ErrorKind.VALIDATION, str(e))

        changes: Dict[str, Any] = {
            "status": status,
            "updatedAt": next_timestamp(current.updated_at, current.created_at),
            **fields,
        }
        applied = MarketingRequest.model_validate({**current.to_app_dict(), **changes})
        self._replace(current, applied)
        return Ok(self._spawn(self._confirm_transition(current, applied, to_persisted(changes))))

    def _replace(self, old: MarketingRequest, new: MarketingRequest) -> bool:
        """Swap one record in place; False when ``old`` is no longer present."""
        for index, request in enumerate(self._collection):
            if request.id == old.id:
                if request != old:
                    return False
                self._set_collection(
                    self._collection[:index] + (new,) + self._collection[index + 1 :]
                )
                return True
        return False

    async def _confirm_transition(
        self,
        previous: MarketingRequest,
        applied: MarketingRequest,
        payload: Dict[str, Any],
    ) -> Result[MarketingRequest]:
        result = await self._guarded(self.remote.update(self.table, applied.id, payload))
        if isinstance(result, Ok):
            self._notify(
                NotificationLevel.SUCCESS,
                f"Request moved to {applied.status.value}.",
                request_id=applied.id,
            )
            return Ok(applied)

        logger.warning(
            f"Update failed, rolling back: {result.message}",
            extra={"request_id": applied.id, "status": applied.status.value},
        )
        if not self._disposed:
            # Only undo our own write; a newer value came from a refresh or a later mutation
            if not self._replace(applied, previous):
                logger.info(
                    "Optimistic value already superseded; skipping rollback",
                    extra={"request_id": applied.id},
                )
            self._notify(
                NotificationLevel.ERROR,
                "Could not update the request. Please try again.",
                request_id=applied.id,
                kind=result.kind,
            )
        return result

    # ── Remote changes ──

    def subscribe_to_remote_changes(self) -> Optional[SubscriptionHandle]:
        """Refresh on every remote change notification."""
        if self._subscription is not None:
            return self._subscription
        try:
            self._subscription = self.remote.subscribe(self.table, "*", self._on_remote_change)
        except (RuntimeError, ValueError) as e:
            logger.warning(f"Real-time subscription failed: {e}", extra={"table": self.table})
            return None
        return self._subscription

    def unsubscribe_from_remote_changes(self) -> None:
        handle, self._subscription = self._subscription, None
        if handle is not None:
            self.remote.unsubscribe(handle)

    async def _on_remote_change(self) -> None:
        if self._disposed:
            return
        await self.refresh()
