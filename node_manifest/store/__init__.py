"""Site store implementations."""

from node_manifest.store.memory import InMemorySiteStore

__all__ = ["InMemorySiteStore"]
