"""Router adapters.

An adapter turns the ``AppRouter`` contract into a concrete navigation
backend. Only the in-memory adapter ships here; UI toolkit adapters live in
their own packages.
"""

from .in_memory import InMemoryAdapter, StackEntry

__all__ = ["InMemoryAdapter", "StackEntry"]
