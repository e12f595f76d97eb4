"""Catalogue of node manifest diagnostics.

Each id maps to a level, a category and a message template. The ids are
stable: they are what the batch summary lists when verbose output is off.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Mapping

from node_manifest.core.errors import UnknownDiagnosticError
from node_manifest.models.types import PendingManifestRequest


class DiagnosticLevel(Enum):
    WARNING = "warning"
    ERROR = "error"


class DiagnosticCategory(Enum):
    """Who is expected to act on the diagnostic."""

    USER = "user"
    THIRD_PARTY = "third_party"


@dataclass(frozen=True)
class DiagnosticDef:
    """Immutable definition of one diagnostic."""

    id: str
    level: DiagnosticLevel
    category: DiagnosticCategory
    template: Callable[[Mapping[str, Any]], str]


def _manifest_prefix(context: Mapping[str, Any]) -> str:
    manifest: PendingManifestRequest = context["input_manifest"]
    return (
        f'Plugin {manifest.plugin_name} registered a node manifest for node id '
        f'"{manifest.node.id}" with a manifest id of "{manifest.manifest_id}"'
    )


def _no_page(context: Mapping[str, Any]) -> str:
    return (
        f"{_manifest_prefix(context)} but no page was found for this node.\n"
        "If a manifest should point at a page (for previews or other purposes), "
        "make sure a page is created for the node and that it sets ownerNodeId "
        "when it is not created through the filesystem route API."
    )


def _context_id(context: Mapping[str, Any]) -> str:
    return (
        f"{_manifest_prefix(context)} but the page at {context.get('page_path')} "
        "does not set an ownerNodeId.\n"
        "Falling back to the last page whose context.id holds this node id. "
        "This may produce an inaccurate manifest."
    )


def _query_tracking(context: Mapping[str, Any]) -> str:
    return (
        f"{_manifest_prefix(context)} but the page at {context.get('page_path')} "
        "does not set an ownerNodeId.\n"
        "Falling back to the first page that queried this node. "
        "This may produce an inaccurate manifest."
    )


def _missing_node(context: Mapping[str, Any]) -> str:
    return (
        f"Plugin {context.get('plugin_name')} registered a node manifest for a "
        f"node that does not exist, with an id of {context.get('node_id')}."
    )


DIAGNOSTICS: dict[str, DiagnosticDef] = {
    "11801": DiagnosticDef(
        id="11801",
        level=DiagnosticLevel.WARNING,
        category=DiagnosticCategory.USER,
        template=_no_page,
    ),
    "11802": DiagnosticDef(
        id="11802",
        level=DiagnosticLevel.WARNING,
        category=DiagnosticCategory.USER,
        template=_context_id,
    ),
    "11803": DiagnosticDef(
        id="11803",
        level=DiagnosticLevel.WARNING,
        category=DiagnosticCategory.USER,
        template=_query_tracking,
    ),
    "11804": DiagnosticDef(
        id="11804",
        level=DiagnosticLevel.WARNING,
        category=DiagnosticCategory.THIRD_PARTY,
        template=_missing_node,
    ),
}


def get_diagnostic(diagnostic_id: str) -> DiagnosticDef:
    """Look up a diagnostic definition.

    Raises:
        UnknownDiagnosticError: The id is not catalogued.
    """
    try:
        return DIAGNOSTICS[diagnostic_id]
    except KeyError:
        raise UnknownDiagnosticError(diagnostic_id) from None


def format_diagnostic(diagnostic_id: str, context: Mapping[str, Any]) -> str:
    """Render the human-readable message for a diagnostic."""
    return get_diagnostic(diagnostic_id).template(context)
