"""BudgetSync — Analytics API Routes."""

from fastapi import APIRouter, Depends

from budgetsync.analyzer.budget_engine import summarize_budget
from budgetsync.api.deps import get_engine
from budgetsync.core.reference_data import BRANCHES, PROMO_TYPES, REGIONS
from budgetsync.models.analysis_models import BudgetSummary
from budgetsync.sync.engine import SyncEngine

router = APIRouter(tags=["Analytics"])


@router.get("/analytics", response_model=BudgetSummary)
async def get_budget_summary(engine: SyncEngine = Depends(get_engine)):
    """Requested vs approved spend over the current collection."""
    return summarize_budget(engine.collection, REGIONS, PROMO_TYPES, BRANCHES)
