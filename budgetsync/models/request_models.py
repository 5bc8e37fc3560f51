"""BudgetSync — Marketing Request Models.

The application shape: attributes are snake_case in Python, serialized with
camelCase keys (``model_dump(by_alias=True)``) wherever the application model
leaves the process (cache blobs, HTTP responses). Models are frozen so that
snapshots of the collection can be shared without copying.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, field_validator
from pydantic.alias_generators import to_camel

from budgetsync.core.clock import parse_iso


class RequestStatus(str, Enum):
    """Workflow states of a budget request."""

    PENDING_TM = "PENDING_TM"
    APPROVED_TM = "APPROVED_TM"
    PARTIAL_TM = "PARTIAL_TM"
    REJECTED = "REJECTED"
    SIGNED = "SIGNED"
    PAID = "PAID"


APPROVED_CLASS = frozenset(
    {
        RequestStatus.APPROVED_TM,
        RequestStatus.PARTIAL_TM,
        RequestStatus.SIGNED,
        RequestStatus.PAID,
    }
)


class BranchData(BaseModel):
    """One itemized spend line of a request."""

    branch_id: str
    amount: float
    promo_type_id: str
    comment: str = ""

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}


class MarketingRequest(BaseModel):
    """A branch-level promotional spend request."""

    id: str
    created_at: str
    updated_at: str
    rtm_id: str
    rtm_name: str
    region_id: str
    branches: Tuple[BranchData, ...] = ()
    status: RequestStatus = RequestStatus.PENDING_TM
    approved_amount: Optional[float] = None
    tm_comment: Optional[str] = None

    @field_validator("created_at", "updated_at")
    @classmethod
    def _iso_timestamp(cls, value: str) -> str:
        try:
            parse_iso(value)
        except (TypeError, ValueError):
            raise ValueError(f"not an ISO-8601 timestamp: {value!r}") from None
        return value

    model_config = {"frozen": True, "alias_generator": to_camel, "populate_by_name": True}

    @property
    def requested_total(self) -> float:
        return sum(b.amount for b in self.branches)

    @property
    def effective_approved_amount(self) -> float:
        """Approved amount, defaulting to the requested total once approved."""
        if self.status not in APPROVED_CLASS:
            return 0.0
        if self.approved_amount is not None:
            return self.approved_amount
        return self.requested_total

    def to_app_dict(self) -> Dict[str, Any]:
        """camelCase application shape; unset optionals are omitted."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
