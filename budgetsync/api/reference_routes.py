"""BudgetSync — Reference Data & Session Routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from pydantic.alias_generators import to_camel

from budgetsync.api.deps import get_sessions
from budgetsync.core.reference_data import BRANCHES, INITIAL_USERS, PROMO_TYPES, REGIONS
from budgetsync.sync.session import SessionManager

router = APIRouter(tags=["Reference"])


class LoginBody(BaseModel):
    user_id: str
    password: Optional[str] = None
    remember: bool = False

    model_config = {"alias_generator": to_camel, "populate_by_name": True}


@router.get("/reference")
async def get_reference_data():
    """Users (without credentials), regions, branches and promo types."""
    return {
        "users": [u.public_dict() for u in INITIAL_USERS],
        "regions": [r.model_dump() for r in REGIONS],
        "branches": [b.model_dump(by_alias=True) for b in BRANCHES],
        "promoTypes": [p.model_dump() for p in PROMO_TYPES],
    }


@router.get("/session")
async def current_session(sessions: SessionManager = Depends(get_sessions)):
    user = sessions.current_user
    return {"logged_in": user is not None, "user": user.public_dict() if user else None}


@router.post("/session/login")
async def login(body: LoginBody, sessions: SessionManager = Depends(get_sessions)):
    user = sessions.login(body.user_id, body.password, body.remember)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid user or password")
    return {"status": "success", "user": user.public_dict()}


@router.post("/session/logout")
async def logout(sessions: SessionManager = Depends(get_sessions)):
    sessions.logout()
    return {"status": "success"}
