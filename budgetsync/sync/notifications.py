"""BudgetSync — User-facing Success / Failure Signals."""

import itertools
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from budgetsync.core.clock import utc_now_iso
from budgetsync.core.result import ErrorKind


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    id: int
    level: NotificationLevel
    message: str
    request_id: Optional[str] = None
    kind: Optional[ErrorKind] = None
    retriable: bool = False
    created_at: str = field(default_factory=utc_now_iso)


class NotificationCenter:
    """Ordered, dismissable notifications raised by the sync engine."""

    def __init__(self, limit: int = 50):
        self.limit = limit
        self._items: List[Notification] = []
        self._ids = itertools.count(1)

    def push(
        self,
        level: NotificationLevel,
        message: str,
        request_id: Optional[str] = None,
        kind: Optional[ErrorKind] = None,
    ) -> Notification:
        note = Notification(
            id=next(self._ids),
            level=level,
            message=message,
            request_id=request_id,
            kind=kind,
            retriable=bool(kind and kind.retriable),
        )
        self._items.append(note)
        del self._items[: -self.limit]
        return note

    def dismiss(self, notification_id: int) -> bool:
        before = len(self._items)
        self._items = [n for n in self._items if n.id != notification_id]
        return len(self._items) != before

    def clear(self) -> None:
        self._items = []

    @property
    def items(self) -> List[Notification]:
        return list(self._items)
