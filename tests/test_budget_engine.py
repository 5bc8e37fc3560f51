"""Budget summary: requested and approved totals per region and branch."""

import pytest

from budgetsync.analyzer.budget_engine import summarize_budget
from budgetsync.core.reference_data import BRANCHES, PROMO_TYPES, REGIONS
from budgetsync.models.request_models import BranchData, RequestStatus
from tests.conftest import make_request


def test_empty_collection():
    summary = summarize_budget([])

    assert summary.request_count == 0
    assert summary.requested_total == 0
    assert summary.status_counts["PENDING_TM"] == 0


def test_totals_use_effective_approved_amounts():
    requests = [
        make_request("a"),  # 1250 pending
        make_request("b", status=RequestStatus.APPROVED_TM),  # 1250 approved by default
        make_request("c", status=RequestStatus.PARTIAL_TM, approved_amount=500.0),
        make_request("d", status=RequestStatus.PAID, approved_amount=1000.0),
        make_request("e", status=RequestStatus.REJECTED, tm_comment="no"),
    ]

    summary = summarize_budget(requests, REGIONS, PROMO_TYPES, BRANCHES)

    assert summary.request_count == 5
    assert summary.requested_total == 6250.0
    assert summary.approved_total == 2750.0
    assert summary.paid_total == 1000.0
    assert summary.status_counts["REJECTED"] == 1


def test_breakdowns_by_region_and_promo_type():
    south = make_request(
        "s",
        region_id="r-south",
        status=RequestStatus.PARTIAL_TM,
        approved_amount=300.0,
        branches=(
            BranchData(branch_id="b-201", amount=400.0, promo_type_id="p-radio"),
            BranchData(branch_id="b-202", amount=200.0, promo_type_id="p-radio"),
        ),
    )

    summary = summarize_budget([make_request("n"), south], REGIONS, PROMO_TYPES, BRANCHES)

    regions = {b.entity_id: b for b in summary.by_region}
    assert regions["r-north"].entity_name == "North"
    assert regions["r-north"].approved_total == 0.0
    assert regions["r-south"].requested_total == 600.0
    assert regions["r-south"].approved_total == 300.0

    promos = {b.entity_id: b for b in summary.by_promo_type}
    assert promos["p-radio"].request_count == 1
    assert promos["p-radio"].requested_total == 600.0
    assert promos["p-radio"].approved_total == pytest.approx(300.0)
    assert summary.by_promo_type[0].entity_id == "p-outdoor"
