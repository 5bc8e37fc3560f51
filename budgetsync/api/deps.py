"""BudgetSync — FastAPI dependencies resolving per-process services."""

from fastapi import Request

from budgetsync.sync.engine import SyncEngine
from budgetsync.sync.session import SessionManager


def get_engine(request: Request) -> SyncEngine:
    return request.app.state.engine


def get_sessions(request: Request) -> SessionManager:
    return request.app.state.sessions
