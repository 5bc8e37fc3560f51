"""BudgetSync — Budget Analytics Output Models."""

from typing import Dict, List
from pydantic import BaseModel


class BudgetBreakdown(BaseModel):
    """Requested vs approved spend for one region or promo type."""

    entity_id: str
    entity_name: str = ""
    request_count: int = 0
    requested_total: float = 0.0
    approved_total: float = 0.0


class BudgetSummary(BaseModel):
    """Aggregate view over the current request collection."""

    request_count: int = 0
    requested_total: float = 0.0
    approved_total: float = 0.0
    paid_total: float = 0.0
    status_counts: Dict[str, int] = {}
    by_region: List[BudgetBreakdown] = []
    by_promo_type: List[BudgetBreakdown] = []
