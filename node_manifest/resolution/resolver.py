"""Owner page resolution for node manifests.

Picks the single page a node belongs to, using three signals in strict
priority order:

- Explicit owner: page.owner_node_id equals the node id. Wins outright.
- Context id: page.context["id"] equals the node id. A common convention,
  and a guaranteed one for pages made by the filesystem route creator.
- Query tracking: the node was read by the page's query. Weakest signal,
  used only when nothing better is found.
"""

from __future__ import annotations

from node_manifest.config import FILESYSTEM_ROUTE_CREATOR
from node_manifest.models.manifest import ResolutionOutcome
from node_manifest.models.types import OwnerKind, PageSnapshot
from node_manifest.pipeline.protocols import CandidateSource, SiteStore


class OwnerResolver:
    """Resolves a node id to the page that owns it.

    Which pages are considered depends on the injected CandidateSource
    (see node_manifest.resolution.candidates).
    """

    def __init__(
        self,
        store: SiteStore,
        candidates: CandidateSource,
        filesystem_route_creator: str = FILESYSTEM_ROUTE_CREATOR,
    ) -> None:
        """Initialize the resolver.

        Args:
            store: Site state to read pages, nodes and tracking from.
            candidates: Source of candidate page paths.
            filesystem_route_creator: Plugin name whose pages follow the
                filesystem route convention.
        """
        self._store = store
        self._candidates = candidates
        self._filesystem_route_creator = filesystem_route_creator

    def resolve(self, node_id: str) -> ResolutionOutcome:
        """Find the owning page of a node.

        Args:
            node_id: Id of the node to resolve.

        Returns:
            ResolutionOutcome with the page path and how it was found.
            Not finding a page is a normal outcome (OwnerKind.NONE).
        """
        # Provisional answer: first page that queried the node
        tracked = self._store.tracked_page_paths(node_id)
        page_path = tracked[0] if tracked else None
        found_by = OwnerKind.QUERY_TRACKING if page_path else OwnerKind.NONE

        owner_path: str | None = None
        for path in self._candidates.candidate_paths(node_id):
            page = self._store.get_page(path)
            if page is None:
                continue

            if page.owner_node_id == node_id:
                owner_path = page.path
                found_by = OwnerKind.OWNER_NODE_ID
                break

            # Keep scanning: an explicit owner later on still wins, and a
            # later context match replaces this one.
            if page.context_id == node_id:
                owner_path = page.path
                found_by = self._classify_context_match(page)

        if owner_path:
            page_path = owner_path

        if not page_path:
            return ResolutionOutcome.not_found()
        return ResolutionOutcome(page_path=page_path, found_by=found_by)

    def _classify_context_match(self, page: PageSnapshot) -> OwnerKind:
        """Decide how much to trust a context.id match.

        Args:
            page: Page whose context id matched.

        Returns:
            FILESYSTEM_ROUTE_API if the page creator is the filesystem
            route plugin, CONTEXT_ID otherwise.
        """
        creator = self._store.get_node(page.plugin_creator_id)
        if creator is not None and creator.name == self._filesystem_route_creator:
            return OwnerKind.FILESYSTEM_ROUTE_API
        return OwnerKind.CONTEXT_ID
