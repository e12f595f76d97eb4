"""Candidate page sources for owner resolution.

Builds have a complete node -> pages tracking index, so only the pages
that queried a node are candidates. In development, queries run on demand
and tracking only knows pages already visited, so every page is scanned.
"""

from __future__ import annotations

from typing import Iterator

from node_manifest.pipeline.protocols import CandidateSource, SiteStore


class TrackedCandidates:
    """Candidates from the query tracking index.

    Implements the CandidateSource protocol from
    node_manifest.pipeline.protocols.
    """

    def __init__(self, store: SiteStore) -> None:
        self._store = store

    def candidate_paths(self, node_id: str) -> Iterator[str]:
        yield from self._store.tracked_page_paths(node_id) or ()


class PageScanCandidates:
    """Every known page is a candidate, in creation order.

    Implements the CandidateSource protocol from
    node_manifest.pipeline.protocols.
    """

    def __init__(self, store: SiteStore) -> None:
        self._store = store

    def candidate_paths(self, node_id: str) -> Iterator[str]:
        for page in self._store.iter_pages():
            yield page.path


def candidate_source_for(store: SiteStore, *, development: bool) -> CandidateSource:
    """Pick the candidate source matching how complete tracking is."""
    if development:
        return PageScanCandidates(store)
    return TrackedCandidates(store)
