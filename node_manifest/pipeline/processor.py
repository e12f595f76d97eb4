"""ManifestProcessor: turns one pending request into a manifest file.

request -> node lookup -> owner resolution -> diagnostics -> JSON file

Only a missing node stops a request early. Low-confidence resolutions
still produce a file; they differ only in the diagnostics they raise.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any
from uuid import uuid4

from node_manifest.config import (
    FOUND_PAGE_BY_TO_LOG_IDS,
    MANIFEST_DIR_PARTS,
    NO_NODE_LOG_ID,
    SUCCESS,
    WINDOWS_RESERVED_CHARS,
)
from node_manifest.core.errors import ImpossibleStateError, ManifestWriteError
from node_manifest.models.manifest import ManifestArtifact
from node_manifest.models.types import OwnerKind, PendingManifestRequest
from node_manifest.pipeline.protocols import Reporter, SiteStore
from node_manifest.resolution.resolver import OwnerResolver

logger = logging.getLogger(__name__)


def sanitize_manifest_id(manifest_id: str, platform: str | None = None) -> str:
    """Make a manifest id safe to use as a file name stem.

    Windows rejects a handful of characters in file names, so on win32
    each of them is replaced with "-". Other platforms get the id back
    unchanged, which keeps ids such as "post:1" intact where they are
    valid.

    Args:
        manifest_id: Id as registered by the plugin.
        platform: sys.platform value to sanitize for. Defaults to the
            running platform.

    Returns:
        The file name stem to use.
    """
    if (platform or sys.platform) == "win32":
        return WINDOWS_RESERVED_CHARS.sub("-", manifest_id)
    return manifest_id


def manifest_file_path(site_directory: Path, plugin_name: str, file_stem: str) -> Path:
    """Location of a manifest file inside the site directory."""
    return site_directory.joinpath(*MANIFEST_DIR_PARTS, plugin_name, f"{file_stem}.json")


def warn_about_mapping_problems(
    reporter: Reporter,
    input_manifest: PendingManifestRequest,
    page_path: str | None,
    found_page_by: OwnerKind,
    verbose: bool,
) -> str:
    """Classify a resolution and report it when verbose.

    Args:
        reporter: Where verbose diagnostics go.
        input_manifest: The request being processed.
        page_path: Resolved page path, if any.
        found_page_by: How the page was found.
        verbose: Report the diagnostic immediately.

    Returns:
        The diagnostic id, or "success" for a confident resolution.

    Raises:
        ImpossibleStateError: found_page_by is not a known owner kind.
    """
    log_id = FOUND_PAGE_BY_TO_LOG_IDS.get(found_page_by)
    if log_id is None:
        raise ImpossibleStateError(found_page_by)

    if log_id != SUCCESS and verbose:
        reporter.error(
            log_id,
            {
                "input_manifest": input_manifest,
                "page_path": page_path,
                "found_page_by": found_page_by.value,
            },
        )
    return log_id


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    """Write payload to a sibling temp file, then swap it into place.

    Concurrent writers of the same path each replace the whole file, so
    readers never see a partially written manifest.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(f".{path.stem}.{uuid4().hex}.tmp")
    try:
        tmp_path.write_text(
            json.dumps(payload, separators=(",", ":")) + "\n",
            encoding="utf-8",
        )
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


class ManifestProcessor:
    """Processes single manifest requests against a site store.

    Collaborators are injected, not created - tests swap in a fake store,
    a mock reporter and a temporary site directory.
    """

    def __init__(
        self,
        store: SiteStore,
        resolver: OwnerResolver,
        reporter: Reporter,
        *,
        site_directory: Path | None = None,
        platform: str | None = None,
    ) -> None:
        """Initialize the processor.

        Args:
            store: Site state holding the nodes.
            resolver: OwnerResolver used to find owning pages.
            reporter: Sink for verbose diagnostics and messages.
            site_directory: Overrides store.site_directory.
            platform: sys.platform value used for id sanitization.
        """
        self._store = store
        self._resolver = resolver
        self._reporter = reporter
        self._site_directory = site_directory
        self._platform = platform

    @property
    def site_directory(self) -> Path:
        if self._site_directory is not None:
            return self._site_directory
        return Path(self._store.site_directory)

    async def process(
        self,
        request: PendingManifestRequest,
        diagnostic_ids: set[str],
        path_to_id_map: dict[str, str],
        verbose: bool,
    ) -> ManifestArtifact | None:
        """Resolve a request's owning page and write its manifest file.

        Args:
            request: The pending manifest request.
            diagnostic_ids: Collects ids of unreported diagnostics.
            path_to_id_map: Receives page path -> manifest id on success.
            verbose: Report diagnostics now instead of collecting ids.

        Returns:
            The written ManifestArtifact, or None if the node is missing.

        Raises:
            ImpossibleStateError: The resolution could not be classified.
            ManifestWriteError: The manifest file could not be written.
        """
        node_id = request.node.id

        if self._store.get_node(node_id) is None:
            if verbose:
                self._reporter.error(
                    NO_NODE_LOG_ID,
                    {"plugin_name": request.plugin_name, "node_id": node_id},
                )
            else:
                diagnostic_ids.add(NO_NODE_LOG_ID)
            return None

        outcome = self._resolver.resolve(node_id)

        log_id = warn_about_mapping_problems(
            self._reporter,
            request,
            outcome.page_path,
            outcome.found_by,
            verbose,
        )
        if not verbose and log_id != SUCCESS:
            diagnostic_ids.add(log_id)

        artifact = ManifestArtifact(
            node=request.node,
            page_path=outcome.page_path,
            found_page_by=outcome.found_by,
        )

        file_stem = sanitize_manifest_id(request.manifest_id, self._platform)
        path = manifest_file_path(self.site_directory, request.plugin_name, file_stem)

        try:
            await asyncio.to_thread(_write_json, path, artifact.to_dict())
        except (OSError, ValueError) as exc:
            # ValueError: the id holds characters no file name can (NUL)
            raise ManifestWriteError(
                str(path),
                getattr(exc, "strerror", None) or str(exc),
                retryable=isinstance(exc, (BlockingIOError, InterruptedError, TimeoutError)),
            ) from exc
        logger.debug(
            "manifest_written plugin=%s id=%s found_by=%s",
            request.plugin_name,
            file_stem,
            outcome.found_by.value,
        )

        if verbose:
            self._reporter.info(
                f"Plugin {request.plugin_name} created a manifest with the id {file_stem}"
            )

        if outcome.page_path:
            path_to_id_map[outcome.page_path] = file_stem

        return artifact
