"""Storage backends for the scheduling engine."""

from .memory import InMemoryStore

__all__ = ["InMemoryStore"]
