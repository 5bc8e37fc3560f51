"""BudgetSync — Budget Analytics Engine.

Totals requested / approved / paid spend across the collection, broken down
by status, region and promo type.
"""

from collections import defaultdict
from typing import Dict, List, Sequence

from budgetsync.models.analysis_models import BudgetBreakdown, BudgetSummary
from budgetsync.models.reference_models import Branch, PromoType, Region
from budgetsync.models.request_models import MarketingRequest, RequestStatus
from budgetsync.core.logging import get_logger

logger = get_logger("analyzer.budget")


def _line_approved_share(request: MarketingRequest) -> float:
    """Fraction of each requested line covered by the approved amount."""
    total = request.requested_total
    if total <= 0:
        return 0.0
    return request.effective_approved_amount / total


def summarize_budget(
    requests: Sequence[MarketingRequest],
    regions: Sequence[Region] = (),
    promo_types: Sequence[PromoType] = (),
    branches: Sequence[Branch] = (),
) -> BudgetSummary:
    """Compute the budget summary for ``requests``.

    Approved spend is attributed to promo types pro rata, since a partial
    approval carries one amount for the whole request.
    """
    region_names = {r.id: r.name for r in regions}
    promo_names = {p.id: p.name for p in promo_types}
    known_branches = {b.id for b in branches}

    status_counts: Dict[str, int] = {s.value: 0 for s in RequestStatus}
    by_region: Dict[str, BudgetBreakdown] = {}
    by_promo: Dict[str, BudgetBreakdown] = {}
    totals: Dict[str, float] = defaultdict(float)

    for req in requests:
        status_counts[req.status.value] += 1
        requested = req.requested_total
        approved = req.effective_approved_amount
        totals["requested"] += requested
        totals["approved"] += approved
        if req.status == RequestStatus.PAID:
            totals["paid"] += approved

        region = by_region.setdefault(
            req.region_id,
            BudgetBreakdown(entity_id=req.region_id, entity_name=region_names.get(req.region_id, "")),
        )
        region.request_count += 1
        region.requested_total += requested
        region.approved_total += approved

        share = _line_approved_share(req)
        seen_promos = set()
        for line in req.branches:
            if known_branches and line.branch_id not in known_branches:
                logger.warning(f"Request {req.id} references unknown branch {line.branch_id}")
            promo = by_promo.setdefault(
                line.promo_type_id,
                BudgetBreakdown(
                    entity_id=line.promo_type_id,
                    entity_name=promo_names.get(line.promo_type_id, ""),
                ),
            )
            if line.promo_type_id not in seen_promos:
                promo.request_count += 1
                seen_promos.add(line.promo_type_id)
            promo.requested_total += line.amount
            promo.approved_total += line.amount * share

    def _rounded(items: Dict[str, BudgetBreakdown]) -> List[BudgetBreakdown]:
        ordered = sorted(items.values(), key=lambda b: b.requested_total, reverse=True)
        return [
            b.model_copy(
                update={
                    "requested_total": round(b.requested_total, 2),
                    "approved_total": round(b.approved_total, 2),
                }
            )
            for b in ordered
        ]

    summary = BudgetSummary(
        request_count=len(requests),
        requested_total=round(totals["requested"], 2),
        approved_total=round(totals["approved"], 2),
        paid_total=round(totals["paid"], 2),
        status_counts=status_counts,
        by_region=_rounded(by_region),
        by_promo_type=_rounded(by_promo),
    )
    logger.info(f"Summarized {len(requests)} requests across {len(by_region)} regions")
    return summary
