"""Tests for ManifestProcessor and its helpers."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from node_manifest.core.errors import ImpossibleStateError, ManifestWriteError
from node_manifest.models.types import NodeRef, OwnerKind, PendingManifestRequest
from node_manifest.pipeline.processor import (
    ManifestProcessor,
    manifest_file_path,
    sanitize_manifest_id,
    warn_about_mapping_problems,
)
from node_manifest.resolution.candidates import candidate_source_for
from node_manifest.resolution.resolver import OwnerResolver
from node_manifest.store.memory import InMemorySiteStore
from tests.fixtures.sites import make_page, make_store


def make_processor(
    store: InMemorySiteStore,
    reporter: MagicMock,
    *,
    platform: str = "linux",
) -> ManifestProcessor:
    resolver = OwnerResolver(store, candidate_source_for(store, development=False))
    return ManifestProcessor(store, resolver, reporter, platform=platform)


def read_manifest(site: Path, plugin: str, stem: str) -> dict:
    path = site / "public" / "__node-manifests" / plugin / f"{stem}.json"
    return json.loads(path.read_text(encoding="utf-8"))


@pytest.fixture
def reporter() -> MagicMock:
    return MagicMock()


@pytest.fixture
def store(tmp_path: Path) -> InMemorySiteStore:
    """Site with one owned node, one context node and one tracked-only node."""
    return make_store(
        tmp_path,
        node_ids=("owned", "ctx", "tracked", "lonely"),
        pages=[
            make_page("/owned", owner_node_id="owned"),
            make_page("/ctx", context_id="ctx"),
            make_page("/listing"),
        ],
        tracking={
            "owned": ["/listing", "/owned"],
            "ctx": ["/ctx"],
            "tracked": ["/listing"],
        },
    )


class TestSanitizeManifestId:
    def test_windows_replaces_reserved(self) -> None:
        assert sanitize_manifest_id("a:b/c", "win32") == "a-b-c"

    def test_windows_all_reserved(self) -> None:
        assert sanitize_manifest_id('x:/*?"<>|\\y', "win32") == "x---------y"

    def test_other_platforms_unchanged(self) -> None:
        assert sanitize_manifest_id("a:b/c", "linux") == "a:b/c"
        assert sanitize_manifest_id("a:b/c", "darwin") == "a:b/c"

    def test_defaults_to_running_platform(self) -> None:
        with patch("node_manifest.pipeline.processor.sys") as fake_sys:
            fake_sys.platform = "win32"
            assert sanitize_manifest_id("a:b") == "a-b"


class TestManifestFilePath:
    def test_layout(self, tmp_path: Path) -> None:
        path = manifest_file_path(tmp_path, "source-cms", "post-1")
        assert path == tmp_path / "public" / "__node-manifests" / "source-cms" / "post-1.json"


class TestWarnAboutMappingProblems:
    @pytest.fixture
    def manifest(self) -> PendingManifestRequest:
        return PendingManifestRequest(
            manifest_id="m1", plugin_name="source-cms", node=NodeRef(id="N1")
        )

    @pytest.mark.parametrize(
        ("found_by", "expected"),
        [
            (OwnerKind.NONE, "11801"),
            (OwnerKind.CONTEXT_ID, "11802"),
            (OwnerKind.QUERY_TRACKING, "11803"),
            (OwnerKind.FILESYSTEM_ROUTE_API, "success"),
            (OwnerKind.OWNER_NODE_ID, "success"),
        ],
    )
    def test_log_ids(
        self,
        reporter: MagicMock,
        manifest: PendingManifestRequest,
        found_by: OwnerKind,
        expected: str,
    ) -> None:
        assert warn_about_mapping_problems(reporter, manifest, None, found_by, False) == expected
        reporter.error.assert_not_called()

    def test_verbose_reports(self, reporter: MagicMock, manifest: PendingManifestRequest) -> None:
        warn_about_mapping_problems(reporter, manifest, "/a", OwnerKind.QUERY_TRACKING, True)

        reporter.error.assert_called_once_with(
            "11803",
            {"input_manifest": manifest, "page_path": "/a", "found_page_by": "queryTracking"},
        )

    def test_verbose_success_is_silent(
        self, reporter: MagicMock, manifest: PendingManifestRequest
    ) -> None:
        warn_about_mapping_problems(reporter, manifest, "/a", OwnerKind.OWNER_NODE_ID, True)
        reporter.error.assert_not_called()

    def test_impossible_state(self, reporter: MagicMock, manifest: PendingManifestRequest) -> None:
        with pytest.raises(ImpossibleStateError):
            warn_about_mapping_problems(reporter, manifest, None, "elsewhere", False)  # type: ignore[arg-type]


class TestProcess:
    @pytest.mark.asyncio
    async def test_owned_node(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("owned-1", "source-cms", "owned")
        ids: set[str] = set()
        path_map: dict[str, str] = {}

        artifact = await make_processor(store, reporter).process(request, ids, path_map, False)

        assert artifact is not None
        assert artifact.found_page_by is OwnerKind.OWNER_NODE_ID
        assert read_manifest(tmp_path, "source-cms", "owned-1") == {
            "node": {"id": "owned"},
            "page": {"path": "/owned"},
            "foundPageBy": "ownerNodeId",
        }
        assert path_map == {"/owned": "owned-1"}
        assert ids == set()

    @pytest.mark.asyncio
    async def test_low_confidence_collects_id(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("ctx-1", "source-cms", "ctx")
        ids: set[str] = set()
        path_map: dict[str, str] = {}

        artifact = await make_processor(store, reporter).process(request, ids, path_map, False)

        assert artifact is not None
        assert ids == {"11802"}
        assert path_map == {"/ctx": "ctx-1"}
        reporter.error.assert_not_called()
        reporter.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_tracked_only(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("t-1", "source-cms", "tracked")
        ids: set[str] = set()

        await make_processor(store, reporter).process(request, ids, {}, False)

        assert ids == {"11803"}
        assert read_manifest(tmp_path, "source-cms", "t-1")["page"] == {"path": "/listing"}

    @pytest.mark.asyncio
    async def test_no_page_still_writes(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("l-1", "source-cms", "lonely")
        ids: set[str] = set()
        path_map: dict[str, str] = {}

        artifact = await make_processor(store, reporter).process(request, ids, path_map, False)

        assert artifact is not None
        assert ids == {"11801"}
        assert path_map == {}
        assert read_manifest(tmp_path, "source-cms", "l-1") == {
            "node": {"id": "lonely"},
            "page": {"path": None},
            "foundPageBy": "none",
        }

    @pytest.mark.asyncio
    async def test_missing_node(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("gone-1", "source-cms", "gone")
        ids: set[str] = set()

        artifact = await make_processor(store, reporter).process(request, ids, {}, False)

        assert artifact is None
        assert ids == {"11804"}
        assert not (tmp_path / "public").exists()

    @pytest.mark.asyncio
    async def test_missing_node_verbose(
        self, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("gone-1", "source-cms", "gone")
        ids: set[str] = set()

        artifact = await make_processor(store, reporter).process(request, ids, {}, True)

        assert artifact is None
        assert ids == set()
        reporter.error.assert_called_once_with(
            "11804", {"plugin_name": "source-cms", "node_id": "gone"}
        )

    @pytest.mark.asyncio
    async def test_verbose_reports_and_announces(
        self, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("ctx-1", "source-cms", "ctx")
        ids: set[str] = set()

        await make_processor(store, reporter).process(request, ids, {}, True)

        assert ids == set()
        assert reporter.error.call_args.args[0] == "11802"
        reporter.info.assert_called_once_with(
            "Plugin source-cms created a manifest with the id ctx-1"
        )

    @pytest.mark.asyncio
    async def test_windows_sanitized_file_and_map(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("owned:1", "source-cms", "owned")
        path_map: dict[str, str] = {}

        await make_processor(store, reporter, platform="win32").process(
            request, set(), path_map, False
        )

        assert read_manifest(tmp_path, "source-cms", "owned-1")["node"] == {"id": "owned"}
        assert path_map == {"/owned": "owned-1"}

    @pytest.mark.asyncio
    async def test_rewrite_is_identical(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("owned-1", "source-cms", "owned")
        processor = make_processor(store, reporter)
        path = manifest_file_path(tmp_path, "source-cms", "owned-1")

        await processor.process(request, set(), {}, False)
        first = path.read_bytes()
        await processor.process(request, set(), {}, False)

        assert path.read_bytes() == first
        assert len(list(path.parent.iterdir())) == 1

    @pytest.mark.asyncio
    async def test_write_failure(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        # A file where the plugin directory should be
        blocker = tmp_path / "public" / "__node-manifests" / "source-cms"
        blocker.parent.mkdir(parents=True)
        blocker.write_text("not a directory")
        request = store.create_node_manifest("owned-1", "source-cms", "owned")

        with pytest.raises(ManifestWriteError) as excinfo:
            await make_processor(store, reporter).process(request, set(), {}, False)

        assert excinfo.value.path.endswith("owned-1.json")
        assert isinstance(excinfo.value.__cause__, OSError)

    @pytest.mark.asyncio
    async def test_site_directory_override(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        other = tmp_path / "elsewhere"
        resolver = OwnerResolver(store, candidate_source_for(store, development=False))
        processor = ManifestProcessor(
            store, resolver, reporter, site_directory=other, platform="linux"
        )
        request = store.create_node_manifest("owned-1", "source-cms", "owned")

        await processor.process(request, set(), {}, False)

        assert read_manifest(other, "source-cms", "owned-1")["foundPageBy"] == "ownerNodeId"

    @pytest.mark.asyncio
    async def test_unrepresentable_id_is_write_error(
        self, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        request = store.create_node_manifest("bad\x00id", "source-cms", "owned")

        with pytest.raises(ManifestWriteError) as excinfo:
            await make_processor(store, reporter).process(request, set(), {}, False)

        assert isinstance(excinfo.value.__cause__, ValueError)
        assert excinfo.value.retryable is False

    @pytest.mark.asyncio
    async def test_concurrent_writes_to_same_file(
        self, tmp_path: Path, store: InMemorySiteStore, reporter: MagicMock
    ) -> None:
        """Requests sharing an id never leave a half-written file."""
        long_path = "/" + "long-path/" * 200
        store.create_page(make_page(long_path, owner_node_id="tracked"))
        store.track_query("tracked", long_path)
        processor = make_processor(store, reporter, platform="linux")
        requests = [
            store.create_node_manifest("same", "source-cms", node_id)
            for node_id in ("owned", "tracked") * 20
        ]

        await asyncio.gather(
            *(processor.process(request, set(), {}, False) for request in requests)
        )

        manifest = read_manifest(tmp_path, "source-cms", "same")
        assert manifest["node"]["id"] in {"owned", "tracked"}
        plugin_dir = tmp_path / "public" / "__node-manifests" / "source-cms"
        assert [p.name for p in plugin_dir.iterdir()] == ["same.json"]
