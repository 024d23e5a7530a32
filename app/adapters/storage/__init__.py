"""Storage adapters for users and form submissions."""

from app.adapters.storage.base import AbstractStorage
from app.adapters.storage.in_memory import InMemoryStorage

__all__ = ["AbstractStorage", "InMemoryStorage"]
