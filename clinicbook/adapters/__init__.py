"""
Adapters layer - persistence collaborators for the repository.
"""

from .json_store import JsonFileStore
from .memory_store import InMemoryStore

__all__ = ["JsonFileStore", "InMemoryStore"]
