"""BudgetSync — Central Configuration via Pydantic Settings."""

import os
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    # ── Remote store (PostgREST / Supabase) ──
    remote_url: str = ""
    remote_api_key: str = ""
    requests_table: str = "requests"
    remote_timeout: float = 15.0
    remote_max_retries: int = 3
    remote_retry_base_delay: float = 1.0  # seconds

    # ── Change feed ──
    change_feed_enabled: bool = True
    change_poll_seconds: int = 5

    # ── Local cache ──
    cache_database_url: str = ""
    cache_requests_key: str = "mf_manager_requests"
    cache_session_key: str = "mf_session_user"

    # ── App ──
    log_level: str = "INFO"

    @property
    def effective_cache_url(self) -> str:
        """Return the configured cache URL, otherwise a local SQLite file."""
        if self.cache_database_url:
            return self.cache_database_url
        # Vercel has a read-only filesystem; use /tmp for SQLite
        if os.environ.get("VERCEL"):
            return "sqlite:////tmp/budgetsync_cache.db"
        return "sqlite:///./budgetsync_cache.db"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
