"""BudgetSync — Tagged Result Type.

Remote calls and engine mutations report failure as a value instead of an
exception, so callers branch on ``ErrorKind`` rather than on error shapes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Why an operation failed."""

    NETWORK = "network"
    TIMEOUT = "timeout"
    REMOTE = "remote"  # Store answered with an error status
    CONFLICT = "conflict"  # Duplicate key on insert
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CORRUPT_CACHE = "corrupt_cache"

    @property
    def retriable(self) -> bool:
        return self in (ErrorKind.NETWORK, ErrorKind.TIMEOUT, ErrorKind.REMOTE)


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str
    status_code: int = 0

    @property
    def is_ok(self) -> bool:
        return False


Result = Union[Ok[T], Err]
