"""BudgetSync — Local Cache Table."""

from datetime import datetime, timezone
from sqlmodel import SQLModel, Field


class CacheEntry(SQLModel, table=True):
    """One opaque serialized blob stored under a fixed key."""

    __tablename__ = "cache_entries"

    key: str = Field(primary_key=True, description="e.g. mf_manager_requests")
    value_json: str = Field(description="Serialized blob")
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
