"""LoggingReporter: default diagnostic sink backed by the logging module."""

from __future__ import annotations

import logging
from typing import Any, Mapping

from node_manifest.models.diagnostics import DiagnosticLevel, get_diagnostic

logger = logging.getLogger(__name__)


class LoggingReporter:
    """Renders catalogued diagnostics and writes them to a logger.

    Implements the Reporter protocol from node_manifest.pipeline.protocols.
    """

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def error(self, diagnostic_id: str, context: Mapping[str, Any]) -> None:
        definition = get_diagnostic(diagnostic_id)
        level = (
            logging.ERROR
            if definition.level == DiagnosticLevel.ERROR
            else logging.WARNING
        )
        self._log.log(
            level,
            "node_manifest_diagnostic id=%s category=%s %s",
            definition.id,
            definition.category.value,
            definition.template(context),
        )

    def info(self, message: str) -> None:
        self._log.info(message)
