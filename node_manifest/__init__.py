"""Node manifests: resolve the owning page of data nodes and write preview manifests."""

from node_manifest.config import ManifestSettings
from node_manifest.models.manifest import BatchResult, ManifestArtifact, ResolutionOutcome
from node_manifest.models.types import (
    NodeRef,
    OwnerKind,
    PageSnapshot,
    PendingManifestRequest,
    SiteNode,
)
from node_manifest.pipeline.orchestrator import (
    BatchOrchestrator,
    build_orchestrator,
    process_node_manifests,
    run_node_manifests,
)
from node_manifest.pipeline.processor import ManifestProcessor, sanitize_manifest_id
from node_manifest.pipeline.reporter import LoggingReporter
from node_manifest.resolution.resolver import OwnerResolver
from node_manifest.store.memory import InMemorySiteStore

__all__ = [
    "BatchOrchestrator",
    "BatchResult",
    "InMemorySiteStore",
    "LoggingReporter",
    "ManifestArtifact",
    "ManifestProcessor",
    "ManifestSettings",
    "NodeRef",
    "OwnerKind",
    "OwnerResolver",
    "PageSnapshot",
    "PendingManifestRequest",
    "ResolutionOutcome",
    "SiteNode",
    "build_orchestrator",
    "process_node_manifests",
    "run_node_manifests",
    "sanitize_manifest_id",
]
