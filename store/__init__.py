"""Store and identity collaborators."""

from .base import ProjectStore
from .memory import InMemoryStore
from .json_store import JsonFileStore
from .identity import IdentityProvider, StoreIdentity

__all__ = [
    "ProjectStore",
    "InMemoryStore",
    "JsonFileStore",
    "IdentityProvider",
    "StoreIdentity",
]
