"""BudgetSync — Error Taxonomy."""


class BudgetSyncError(Exception):
    """Base class for every error raised inside the sync core."""


class TransientRemoteError(BudgetSyncError):
    """Raised when the remote store cannot be reached or rejects a call."""

    def __init__(self, message: str, status_code: int = 0, timeout: bool = False):
        self.status_code = status_code
        self.timeout = timeout
        super().__init__(message)


class ValidationError(BudgetSyncError):
    """Raised when a mutation is rejected before any state change."""


class CorruptLocalCacheError(BudgetSyncError):
    """Raised when a cached blob cannot be parsed."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"Corrupt cache entry '{key}': {message}")
