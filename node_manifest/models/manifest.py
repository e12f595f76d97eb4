"""Manifest result types: resolution outcome, artifact, batch accumulator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from node_manifest.models.types import NodeRef, OwnerKind


@dataclass(frozen=True)
class ResolutionOutcome:
    """The owning page of a node and how it was found.

    page_path is set exactly when found_by is not OwnerKind.NONE.
    """

    page_path: str | None
    found_by: OwnerKind

    def __post_init__(self) -> None:
        if (self.page_path is None) != (self.found_by is OwnerKind.NONE):
            raise ValueError(
                f"page_path={self.page_path!r} is inconsistent with "
                f"found_by={self.found_by.value}"
            )

    @classmethod
    def not_found(cls) -> ResolutionOutcome:
        return cls(page_path=None, found_by=OwnerKind.NONE)


@dataclass(frozen=True)
class ManifestArtifact:
    """Contents of one manifest file. Serialized with to_dict()."""

    node: NodeRef
    page_path: str | None
    found_page_by: OwnerKind

    def to_dict(self) -> dict[str, Any]:
        return {
            "node": {"id": self.node.id},
            "page": {"path": self.page_path},
            "foundPageBy": self.found_page_by.value,
        }


@dataclass
class BatchResult:
    """Accumulated state of one batch run.

    Only path_to_id_map outlives the run; the rest feeds the summary.
    """

    path_to_id_map: dict[str, str] = field(default_factory=dict)
    processed_count: int = 0
    failed_count: int = 0
    unique_diagnostic_ids: set[str] = field(default_factory=set)
    failures: list[tuple[str, Exception]] = field(default_factory=list)
