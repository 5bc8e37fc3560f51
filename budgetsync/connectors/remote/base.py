"""BudgetSync — Abstract Remote Store."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from budgetsync.core.result import Result

# No payload: listeners only learn that the table changed.
ChangeCallback = Callable[[], Union[None, Awaitable[None]]]

EVENT_MASKS = ("*", "INSERT", "UPDATE", "DELETE")


@dataclass(frozen=True)
class SubscriptionHandle:
    id: str
    table: str
    event_mask: str = "*"


@dataclass(frozen=True)
class Fingerprint:
    """Cheap summary of a table used to detect that it changed."""

    count: int
    latest: Optional[str] = None


class RemoteStore(ABC):
    """A remote collection of request rows plus a change-notification feed.

    Every data method resolves to ``Ok``/``Err``; none of them raise.
    """

    @abstractmethod
    async def list(
        self, table: str, order_by: str = "updated_at", direction: str = "desc"
    ) -> Result[List[Dict[str, Any]]]:
        ...

    @abstractmethod
    async def insert(self, table: str, record: Dict[str, Any]) -> Result[None]:
        ...

    @abstractmethod
    async def update(
        self, table: str, record_id: str, partial: Dict[str, Any]
    ) -> Result[None]:
        ...

    @abstractmethod
    def subscribe(
        self, table: str, event_mask: str, callback: ChangeCallback
    ) -> SubscriptionHandle:
        ...

    @abstractmethod
    def unsubscribe(self, handle: SubscriptionHandle) -> None:
        ...

    async def close(self) -> None:
        """Release network resources. Optional."""
