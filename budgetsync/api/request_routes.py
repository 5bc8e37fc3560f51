"""BudgetSync — Request & Sync API Routes."""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from budgetsync.api.deps import get_engine, get_sessions
from budgetsync.core.clock import utc_now_iso
from budgetsync.core.result import Err, ErrorKind
from budgetsync.models.request_models import BranchData, MarketingRequest, RequestStatus
from budgetsync.sync.engine import SyncEngine
from budgetsync.sync.session import SessionManager
from budgetsync.core.logging import get_logger

logger = get_logger("api.requests")

router = APIRouter(tags=["Requests"])

_CAMEL = {"alias_generator": to_camel, "populate_by_name": True}


# ── Request / Response Models ──


class CreateRequestBody(BaseModel):
    """Body for POST /requests. ``id`` and ``createdAt`` are assigned here."""

    rtm_id: str
    rtm_name: str
    region_id: str
    branches: List[BranchData]

    model_config = {
        **_CAMEL,
        "json_schema_extra": {
            "examples": [
                {
                    "rtmId": "u-rtm-north",
                    "rtmName": "Anna Petrova",
                    "regionId": "r-north",
                    "branches": [
                        {"branchId": "b-101", "amount": 500, "promoTypeId": "p-flyers", "comment": ""}
                    ],
                }
            ]
        },
    }


class TransitionBody(BaseModel):
    """Body for POST /requests/{id}/transition."""

    status: RequestStatus
    approved_amount: Optional[float] = None
    tm_comment: Optional[str] = None

    model_config = _CAMEL


def _raise_for(err: Err) -> None:
    status_code = {
        ErrorKind.NOT_FOUND: 404,
        ErrorKind.CONFLICT: 409,
        ErrorKind.VALIDATION: 400,
    }.get(err.kind, 502)
    raise HTTPException(status_code=status_code, detail=err.message)


# ── Endpoints ──


@router.get("/requests")
async def list_requests(engine: SyncEngine = Depends(get_engine)):
    """Current collection, most recently touched first."""
    return {
        "status": "success",
        "count": len(engine.collection),
        "is_syncing": engine.is_syncing,
        "source": engine.source.value,
        "requests": [r.to_app_dict() for r in engine.collection],
    }


@router.post("/requests", status_code=202)
async def create_request(
    body: CreateRequestBody,
    engine: SyncEngine = Depends(get_engine),
    sessions: SessionManager = Depends(get_sessions),
):
    """Submit a request. Visible immediately; persisted in the background."""
    request = MarketingRequest(
        id=uuid.uuid4().hex,
        created_at=utc_now_iso(),
        updated_at=utc_now_iso(),
        rtm_id=body.rtm_id,
        rtm_name=body.rtm_name,
        region_id=body.region_id,
        branches=tuple(body.branches),
    )
    result = engine.create(request, actor=sessions.current_user)
    if isinstance(result, Err):
        _raise_for(result)
    return {"status": "accepted", "request": engine.get(request.id).to_app_dict()}


@router.post("/requests/{request_id}/transition", status_code=202)
async def transition_request(
    request_id: str,
    body: TransitionBody,
    engine: SyncEngine = Depends(get_engine),
    sessions: SessionManager = Depends(get_sessions),
):
    """Move a request along the approval workflow."""
    extra = {"approvedAmount": body.approved_amount, "tmComment": body.tm_comment}
    result = engine.transition(request_id, body.status, extra, actor=sessions.current_user)
    if isinstance(result, Err):
        _raise_for(result)
    return {"status": "accepted", "request": engine.get(request_id).to_app_dict()}


@router.post("/sync/refresh")
async def refresh(engine: SyncEngine = Depends(get_engine)):
    """Re-fetch the collection from the remote store."""
    result = await engine.refresh()
    if isinstance(result, Err):
        return {
            "status": "degraded",
            "error": result.kind.value,
            "source": engine.source.value,
            "count": len(engine.collection),
        }
    return {"status": "success", "source": engine.source.value, "count": len(result.value)}


@router.get("/notifications")
async def list_notifications(engine: SyncEngine = Depends(get_engine)):
    return {"status": "success", "notifications": engine.notifications.items}


@router.delete("/notifications/{notification_id}")
async def dismiss_notification(notification_id: int, engine: SyncEngine = Depends(get_engine)):
    if not engine.dismiss(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"status": "success"}


@router.post("/cache/reset")
async def reset_cache(engine: SyncEngine = Depends(get_engine)):
    """Clear the on-device cache and fall back to the default seed."""
    engine.reset_local_cache()
    return {"status": "success", "count": len(engine.collection)}
