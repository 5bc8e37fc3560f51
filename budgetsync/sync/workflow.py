"""BudgetSync — Request Status Workflow.

Legal status edges, the extra fields each edge requires or permits, and the
roles allowed to invoke it. ``REJECTED`` and ``PAID`` are terminal.
"""

import math
from dataclasses import dataclass
from typing import Dict, FrozenSet, Mapping, Optional, Tuple

from budgetsync.core.errors import ValidationError
from budgetsync.models.reference_models import User, UserRole
from budgetsync.models.request_models import MarketingRequest, RequestStatus

INITIAL_STATUS = RequestStatus.PENDING_TM
TERMINAL_STATUSES = frozenset({RequestStatus.REJECTED, RequestStatus.PAID})

EXTRA_FIELDS = frozenset({"approvedAmount", "tmComment"})

TM_ROLES = frozenset({UserRole.TM, UserRole.ADMIN})
SIGN_ROLES = frozenset({UserRole.ASSISTANT, UserRole.FINANCE, UserRole.ADMIN})
PAY_ROLES = frozenset({UserRole.FINANCE, UserRole.ADMIN})
CREATE_ROLES = frozenset({UserRole.RTM, UserRole.ADMIN})


@dataclass(frozen=True)
class Edge:
    """A legal transition and its field/role requirements."""

    source: RequestStatus
    target: RequestStatus
    required: FrozenSet[str]
    permitted: FrozenSet[str]
    roles: FrozenSet[UserRole]


_EDGES: Tuple[Edge, ...] = (
    Edge(
        RequestStatus.PENDING_TM,
        RequestStatus.APPROVED_TM,
        required=frozenset(),
        permitted=EXTRA_FIELDS,
        roles=TM_ROLES,
    ),
    Edge(
        RequestStatus.PENDING_TM,
        RequestStatus.PARTIAL_TM,
        required=EXTRA_FIELDS,
        permitted=EXTRA_FIELDS,
        roles=TM_ROLES,
    ),
    Edge(
        RequestStatus.PENDING_TM,
        RequestStatus.REJECTED,
        required=frozenset({"tmComment"}),
        permitted=frozenset({"tmComment"}),
        roles=TM_ROLES,
    ),
    Edge(RequestStatus.APPROVED_TM, RequestStatus.SIGNED, frozenset(), frozenset(), SIGN_ROLES),
    Edge(RequestStatus.PARTIAL_TM, RequestStatus.SIGNED, frozenset(), frozenset(), SIGN_ROLES),
    Edge(RequestStatus.SIGNED, RequestStatus.PAID, frozenset(), frozenset(), PAY_ROLES),
)

EDGES: Dict[Tuple[RequestStatus, RequestStatus], Edge] = {
    (e.source, e.target): e for e in _EDGES
}


def allowed_targets(status: RequestStatus, actor: Optional[User] = None) -> list[RequestStatus]:
    """Statuses reachable from ``status`` (for ``actor``, when given)."""
    return [
        e.target
        for e in _EDGES
        if e.source == status and (actor is None or actor.role in e.roles)
    ]


def check_create(request: MarketingRequest, actor: Optional[User] = None) -> None:
    """Validate a new request's status and submitter role."""
    if request.status != INITIAL_STATUS:
        raise ValidationError(
            f"New requests must start in {INITIAL_STATUS.value}, got {request.status.value}"
        )
    if request.approved_amount is not None or request.tm_comment is not None:
        raise ValidationError("New requests cannot carry approval fields")
    if actor is not None and actor.role not in CREATE_ROLES:
        raise ValidationError(f"Role {actor.role.value} cannot submit requests")


def check_transition(
    request: MarketingRequest,
    target: RequestStatus,
    extra: Optional[Mapping[str, object]] = None,
    actor: Optional[User] = None,
) -> Dict[str, object]:
    """Validate ``request.status -> target`` and return the cleaned extras.

    Raises ValidationError on an illegal edge, a forbidden role, a missing
    required field, a field the edge does not permit, or an out-of-range
    approved amount.
    """
    edge = EDGES.get((request.status, target))
    if edge is None:
        raise ValidationError(
            f"Illegal transition {request.status.value} -> {target.value}"
        )
    if actor is not None and actor.role not in edge.roles:
        raise ValidationError(
            f"Role {actor.role.value} cannot move a request to {target.value}"
        )

    fields = {k: v for k, v in (extra or {}).items() if v is not None}

    unexpected = set(fields) - edge.permitted
    if unexpected:
        raise ValidationError(
            f"Fields {sorted(unexpected)} not allowed on {target.value}"
        )
    missing = edge.required - set(fields)
    if missing:
        raise ValidationError(f"{target.value} requires {sorted(missing)}")

    if "tmComment" in fields:
        comment = str(fields["tmComment"]).strip()
        if comment:
            fields["tmComment"] = comment
        elif "tmComment" in edge.required:
            raise ValidationError(f"{target.value} requires a non-empty comment")
        else:
            del fields["tmComment"]

    if "approvedAmount" in fields:
        value = fields["approvedAmount"]
        # bool is an int subclass; strings are not coerced
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValidationError("approvedAmount must be a number")
        amount = float(value)
        if not math.isfinite(amount):
            raise ValidationError("approvedAmount must be finite")
        if amount < 0 or amount > request.requested_total:
            raise ValidationError(
                f"approvedAmount {amount} outside 0..{request.requested_total}"
            )
        fields["approvedAmount"] = amount

    return fields
