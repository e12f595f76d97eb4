"""Owner page resolution module."""

from node_manifest.resolution.candidates import (
    PageScanCandidates,
    TrackedCandidates,
    candidate_source_for,
)
from node_manifest.resolution.resolver import OwnerResolver

__all__ = [
    "OwnerResolver",
    "PageScanCandidates",
    "TrackedCandidates",
    "candidate_source_for",
]
