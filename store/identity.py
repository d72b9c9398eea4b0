"""Identity collaborator: who is acting, and user lookup."""

from abc import ABC, abstractmethod
from typing import List, Optional

from config import settings
from contracts import User
from store.base import ProjectStore


class IdentityProvider(ABC):
    """Abstract identity service."""

    @abstractmethod
    def current_user(self) -> Optional[User]:
        """The signed-in user, or None."""
        pass

    @abstractmethod
    def search_users(self, query: str, limit: Optional[int] = None) -> List[User]:
        """Case-insensitive substring match on username, capped at ``limit``."""
        pass


class StoreIdentity(IdentityProvider):
    """Identity backed by the store's user registry."""

    def __init__(self, store: ProjectStore, current_user_id: Optional[str] = None):
        self.store = store
        self.current_user_id = current_user_id

    def current_user(self) -> Optional[User]:
        if not self.current_user_id:
            return None
        return self.store.fetch_user(self.current_user_id)

    def search_users(self, query: str, limit: Optional[int] = None) -> List[User]:
        limit = limit or settings.user_search_limit
        needle = query.strip().lower()
        if not needle:
            return []
        matches = [u for u in self.store.list_users() if needle in u.username.lower()]
        return matches[:limit]
