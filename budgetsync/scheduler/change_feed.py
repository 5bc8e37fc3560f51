"""BudgetSync — Polling Change Feed.

APScheduler interval job per subscription. Each tick compares the table's
fingerprint with the previous one and fires the listener (no payload) when
the difference matches the subscription's event mask.
"""

import inspect
import uuid
from typing import Awaitable, Callable, Dict, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from budgetsync.config import settings
from budgetsync.connectors.remote.base import (
    EVENT_MASKS,
    ChangeCallback,
    Fingerprint,
    SubscriptionHandle,
)
from budgetsync.core.result import Err, Result
from budgetsync.core.logging import get_logger

logger = get_logger("scheduler.change_feed")

FingerprintFetcher = Callable[[str], Awaitable[Result[Fingerprint]]]


def classify_change(previous: Fingerprint, current: Fingerprint) -> Optional[str]:
    """Name the kind of change between two fingerprints, or None."""
    if current.count > previous.count:
        return "INSERT"
    if current.count < previous.count:
        return "DELETE"
    if current.latest != previous.latest:
        return "UPDATE"
    return None


class _Watch:
    def __init__(self, handle: SubscriptionHandle, callback: ChangeCallback):
        self.handle = handle
        self.callback = callback
        self.last: Optional[Fingerprint] = None


class ChangeFeed:
    """Turns periodic fingerprint polling into change notifications.

    A fingerprint is the row count plus the newest ``updated_at``. An insert
    and a delete landing in the same interval leave both unchanged, so that
    pair goes unnoticed until some later write moves the fingerprint.
    """

    def __init__(
        self,
        fetch_fingerprint: FingerprintFetcher,
        interval_seconds: int | None = None,
        scheduler: AsyncIOScheduler | None = None,
    ):
        self.fetch_fingerprint = fetch_fingerprint
        self.interval_seconds = interval_seconds or settings.change_poll_seconds
        self.scheduler = scheduler or AsyncIOScheduler()
        self._watches: Dict[str, _Watch] = {}

    def watch(
        self, table: str, event_mask: str, callback: ChangeCallback
    ) -> SubscriptionHandle:
        """Register a listener and schedule its polling job."""
        if event_mask not in EVENT_MASKS:
            raise ValueError(f"Unsupported event mask '{event_mask}'")
        handle = SubscriptionHandle(id=uuid.uuid4().hex, table=table, event_mask=event_mask)
        self._watches[handle.id] = _Watch(handle, callback)

        self.scheduler.add_job(
            self.poll,
            "interval",
            seconds=self.interval_seconds,
            args=[handle.id],
            id=f"change_feed:{handle.id}",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        if not self.scheduler.running:
            self.scheduler.start()
        logger.info(
            f"Watching '{table}' for {event_mask} every {self.interval_seconds}s",
            extra={"table": table},
        )
        return handle

    def unwatch(self, handle: SubscriptionHandle) -> None:
        watch = self._watches.pop(handle.id, None)
        if watch is None:
            return
        job = self.scheduler.get_job(f"change_feed:{handle.id}")
        if job is not None:
            job.remove()
        logger.info(f"Stopped watching '{handle.table}'", extra={"table": handle.table})

    async def poll(self, handle_id: str) -> bool:
        """One polling tick. Returns True when the listener was notified."""
        watch = self._watches.get(handle_id)
        if watch is None:
            return False

        result = await self.fetch_fingerprint(watch.handle.table)
        if isinstance(result, Err):
            logger.warning(
                f"Change poll failed: {result.message}",
                extra={"table": watch.handle.table},
            )
            return False

        previous, watch.last = watch.last, result.value
        if previous is None:
            return False

        change = classify_change(previous, result.value)
        if change is None:
            return False
        if watch.handle.event_mask not in ("*", change):
            return False
        # Unsubscribed while the fingerprint was in flight
        if handle_id not in self._watches:
            return False

        logger.info(f"Remote {change} detected", extra={"table": watch.handle.table})
        try:
            outcome = watch.callback()
            if inspect.isawaitable(outcome):
                await outcome
        except Exception as e:
            logger.error(f"Change listener failed: {e}", exc_info=True)
        return True

    def shutdown(self) -> None:
        for watch in list(self._watches.values()):
            self.unwatch(watch.handle)
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Change feed stopped")
