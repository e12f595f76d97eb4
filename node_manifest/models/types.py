"""Core type definitions: owner kinds, nodes, pages, pending requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class OwnerKind(Enum):
    """How the owning page of a node was found.

    Values are the wire format written to manifest files, ordered here
    from most to least trustworthy.
    """

    OWNER_NODE_ID = "ownerNodeId"
    FILESYSTEM_ROUTE_API = "filesystem-route-api"
    # the three below warn that ownerNodeId should be set instead
    CONTEXT_ID = "context.id"
    QUERY_TRACKING = "queryTracking"
    NONE = "none"


@dataclass(frozen=True)
class NodeRef:
    """Reference to a data node by id."""

    id: str


@dataclass(frozen=True)
class SiteNode:
    """A node as held by the site store.

    Only plugin nodes carry a name; it is used to recognise the page
    creator behind a page.
    """

    id: str
    name: str | None = None


@dataclass(frozen=True)
class PageSnapshot:
    """Read-only view of a created page."""

    path: str
    plugin_creator_id: str
    owner_node_id: str | None = None
    context: Mapping[str, Any] = field(default_factory=dict)

    @property
    def context_id(self) -> Any:
        """The `id` variable passed in the page context, if any."""
        return self.context.get("id")


@dataclass(frozen=True)
class PendingManifestRequest:
    """A plugin's request to write a manifest for a node.

    Created when a plugin registers interest in a node, removed from the
    store once a batch has processed it.
    """

    manifest_id: str
    plugin_name: str
    node: NodeRef
