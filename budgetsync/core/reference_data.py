"""BudgetSync — Static Reference Data.

Users, regions, branches and promo types are fixed configuration; the sync
core never manages their lifecycle. ``INITIAL_REQUESTS`` is the built-in
seed used when neither the remote store nor the local cache can supply data.
"""

from typing import Dict, List

from budgetsync.models.reference_models import Branch, PromoType, Region, User, UserRole
from budgetsync.models.request_models import BranchData, MarketingRequest, RequestStatus

REGIONS: List[Region] = [
    Region(id="r-north", name="North"),
    Region(id="r-south", name="South"),
    Region(id="r-central", name="Central"),
]

BRANCHES: List[Branch] = [
    Branch(id="b-101", name="North Plaza", region_id="r-north"),
    Branch(id="b-102", name="Harbour Street", region_id="r-north"),
    Branch(id="b-201", name="Riverside", region_id="r-south"),
    Branch(id="b-202", name="Old Town", region_id="r-south"),
    Branch(id="b-301", name="Central Mall", region_id="r-central"),
]

PROMO_TYPES: List[PromoType] = [
    PromoType(id="p-flyers", name="Flyers"),
    PromoType(id="p-outdoor", name="Outdoor banners"),
    PromoType(id="p-radio", name="Local radio"),
    PromoType(id="p-digital", name="Digital ads"),
]

INITIAL_USERS: List[User] = [
    User(id="u-admin", name="Administrator", role=UserRole.ADMIN, password="admin"),
    User(id="u-rtm-north", name="Anna Petrova", role=UserRole.RTM, region_id="r-north"),
    User(id="u-rtm-south", name="Igor Smirnov", role=UserRole.RTM, region_id="r-south"),
    User(id="u-tm", name="Olga Ivanova", role=UserRole.TM, region_id=["r-north", "r-south", "r-central"]),
    User(id="u-assistant", name="Maria Volkova", role=UserRole.ASSISTANT),
    User(id="u-finance", name="Finance Desk", role=UserRole.FINANCE),
]

INITIAL_REQUESTS: List[MarketingRequest] = [
    MarketingRequest(
        id="req-seed-2",
        created_at="2026-01-12T09:30:00.000000Z",
        updated_at="2026-01-14T11:00:00.000000Z",
        rtm_id="u-rtm-south",
        rtm_name="Igor Smirnov",
        region_id="r-south",
        branches=(
            BranchData(branch_id="b-201", amount=1200.0, promo_type_id="p-radio", comment="Morning slot"),
        ),
        status=RequestStatus.APPROVED_TM,
    ),
    MarketingRequest(
        id="req-seed-1",
        created_at="2026-01-10T08:00:00.000000Z",
        updated_at="2026-01-10T08:00:00.000000Z",
        rtm_id="u-rtm-north",
        rtm_name="Anna Petrova",
        region_id="r-north",
        branches=(
            BranchData(branch_id="b-101", amount=500.0, promo_type_id="p-flyers", comment="Spring sale"),
            BranchData(branch_id="b-102", amount=750.0, promo_type_id="p-outdoor", comment=""),
        ),
        status=RequestStatus.PENDING_TM,
    ),
]


def users_by_id() -> Dict[str, User]:
    return {u.id: u for u in INITIAL_USERS}
