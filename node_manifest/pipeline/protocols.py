"""Pipeline collaborator protocols (structural interfaces).

The store, the diagnostic sink and the candidate sources are defined by
Protocols -- any object with matching methods fits. No base classes, no
inheritance.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Protocol, Sequence

from node_manifest.models.types import PageSnapshot, PendingManifestRequest, SiteNode


class SiteStore(Protocol):
    """Read access to site state plus the pending manifest queue."""

    @property
    def site_directory(self) -> Path:
        """Root directory of the site; artifacts go under its public/ dir."""
        ...

    def get_node(self, node_id: str) -> SiteNode | None:
        """Return the node with this id, or None."""
        ...

    def get_page(self, path: str) -> PageSnapshot | None:
        """Return the page at this path, or None."""
        ...

    def iter_pages(self) -> Iterator[PageSnapshot]:
        """Yield every known page in creation order."""
        ...

    def tracked_page_paths(self, node_id: str) -> Sequence[str] | None:
        """Ordered paths of pages whose queries read this node.

        None when the node was never seen by query tracking.
        """
        ...

    def pending_manifests(self) -> Sequence[PendingManifestRequest]:
        """Snapshot of the manifest requests waiting to be processed."""
        ...

    def delete_pending_manifests(
        self, processed: Iterable[PendingManifestRequest]
    ) -> None:
        """Remove processed requests in a single step."""
        ...


class Reporter(Protocol):
    """Sink for diagnostics and progress messages."""

    def error(self, diagnostic_id: str, context: Mapping[str, Any]) -> None:
        """Report a catalogued diagnostic with its structured context."""
        ...

    def info(self, message: str) -> None:
        """Report a free-text progress message."""
        ...


class CandidateSource(Protocol):
    """Supplies the pages that may own a node."""

    def candidate_paths(self, node_id: str) -> Iterator[str]:
        """Yield candidate page paths in priority order."""
        ...
