"""BudgetSync — Session User Persistence."""

from typing import Dict, Optional, Sequence

from budgetsync.cache.local_cache import LocalCache
from budgetsync.core.logging import get_logger
from budgetsync.models.reference_models import User

logger = get_logger("sync.session")


class SessionManager:
    """Logs users in against the fixed user list and remembers them on request."""

    def __init__(self, cache: LocalCache, users: Sequence[User]):
        self.cache = cache
        self._users: Dict[str, User] = {u.id: u for u in users}
        self.current_user: Optional[User] = None

    def restore(self) -> Optional[User]:
        """Resume a remembered session, if one is cached and still valid."""
        saved = self.cache.load_session_user()
        if saved is None:
            return None
        user = self._users.get(saved.id)
        if user is None:
            logger.warning(f"Cached session for unknown user {saved.id}")
            self.cache.clear_session_user()
            return None
        self.current_user = user
        return user

    def login(self, user_id: str, password: str | None = None, remember: bool = False) -> Optional[User]:
        user = self._users.get(user_id)
        if user is None:
            return None
        if user.password is not None and user.password != password:
            logger.info(f"Rejected login for {user_id}")
            return None
        self.current_user = user
        if remember:
            self.cache.save_session_user(user)
        logger.info(f"User {user_id} logged in ({user.role.value})")
        return user

    def logout(self) -> None:
        self.current_user = None
        self.cache.clear_session_user()
