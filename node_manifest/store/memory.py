"""In-memory site store with JSON snapshot persistence.

Holds nodes, pages, the node -> pages query tracking index and the queue
of pending manifest requests. Suitable for embedding the pipeline in a
build process that already has this state in memory, and for tests.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from node_manifest.core.errors import SnapshotError
from node_manifest.models.types import (
    NodeRef,
    PageSnapshot,
    PendingManifestRequest,
    SiteNode,
)


class InMemorySiteStore:
    """Dictionary-backed site state.

    Implements the SiteStore protocol from node_manifest.pipeline.protocols.
    """

    def __init__(self, site_directory: Path | str) -> None:
        """Initialize an empty store.

        Args:
            site_directory: Root directory of the site.
        """
        self._site_directory = Path(site_directory)
        self._nodes: dict[str, SiteNode] = {}
        self._pages: dict[str, PageSnapshot] = {}
        # dicts keep insertion order, values unused
        self._by_node: dict[str, dict[str, None]] = {}
        self._pending: list[PendingManifestRequest] = []

    @property
    def site_directory(self) -> Path:
        return self._site_directory

    # -- writes ---------------------------------------------------------------

    def add_node(self, node: SiteNode) -> None:
        self._nodes[node.id] = node

    def create_page(self, page: PageSnapshot) -> None:
        """Add a page, replacing any page already at the same path."""
        self._pages[page.path] = page

    def track_query(self, node_id: str, page_path: str) -> None:
        """Record that the query of page_path read node_id."""
        self._by_node.setdefault(node_id, {})[page_path] = None

    def create_node_manifest(
        self,
        manifest_id: str,
        plugin_name: str,
        node_id: str,
    ) -> PendingManifestRequest:
        """Queue a manifest request for the next batch run."""
        request = PendingManifestRequest(
            manifest_id=manifest_id,
            plugin_name=plugin_name,
            node=NodeRef(id=node_id),
        )
        self._pending.append(request)
        return request

    # -- SiteStore --------------------------------------------------------------

    def get_node(self, node_id: str) -> SiteNode | None:
        return self._nodes.get(node_id)

    def get_page(self, path: str) -> PageSnapshot | None:
        return self._pages.get(path)

    def iter_pages(self) -> Iterator[PageSnapshot]:
        return iter(list(self._pages.values()))

    def tracked_page_paths(self, node_id: str) -> list[str] | None:
        paths = self._by_node.get(node_id)
        if paths is None:
            return None
        return list(paths)

    def pending_manifests(self) -> tuple[PendingManifestRequest, ...]:
        return tuple(self._pending)

    def delete_pending_manifests(
        self, processed: Iterable[PendingManifestRequest]
    ) -> None:
        done = {id(request) for request in processed}
        self._pending = [r for r in self._pending if id(r) not in done]

    # -- persistence -------------------------------------------------------------

    def save(self, path: str | Path) -> None:
        """Save the store contents to a JSON file.

        Args:
            path: Path to the output JSON file.
        """
        data = {
            "nodes": [asdict(n) for n in self._nodes.values()],
            "pages": [
                {**asdict(p), "context": dict(p.context)} for p in self._pages.values()
            ],
            "queries_by_node": {k: list(v) for k, v in self._by_node.items()},
            "node_manifests": [asdict(r) for r in self._pending],
        }
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    @classmethod
    def load(
        cls,
        path: str | Path,
        site_directory: Path | str | None = None,
    ) -> InMemorySiteStore:
        """Load a store from a JSON snapshot.

        Args:
            path: Path to the snapshot file.
            site_directory: Site root. Defaults to the snapshot's directory.

        Raises:
            SnapshotError: The file is unreadable or malformed.
        """
        snapshot_path = Path(path)
        try:
            with open(snapshot_path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise SnapshotError(str(snapshot_path), str(exc)) from exc

        store = cls(site_directory or snapshot_path.parent)
        try:
            store._populate(data)
        except (KeyError, TypeError, AttributeError) as exc:
            raise SnapshotError(str(snapshot_path), f"malformed snapshot: {exc}") from exc
        return store

    def _populate(self, data: Mapping[str, Any]) -> None:
        for node_data in data.get("nodes", []):
            self.add_node(SiteNode(id=node_data["id"], name=node_data.get("name")))

        for page_data in data.get("pages", []):
            self.create_page(
                PageSnapshot(
                    path=page_data["path"],
                    plugin_creator_id=page_data["plugin_creator_id"],
                    owner_node_id=page_data.get("owner_node_id"),
                    context=dict(page_data.get("context") or {}),
                )
            )

        for node_id, paths in data.get("queries_by_node", {}).items():
            for page_path in paths:
                self.track_query(node_id, page_path)

        for request_data in data.get("node_manifests", []):
            self.create_node_manifest(
                manifest_id=request_data["manifest_id"],
                plugin_name=request_data["plugin_name"],
                node_id=request_data["node"]["id"],
            )
