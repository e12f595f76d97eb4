"""Error hierarchy for node manifest processing.

Per-request errors are caught by the batch orchestrator and counted as
failed manifests. Check the .retryable attribute where present to decide
whether rerunning the batch can help.
"""

from __future__ import annotations


class NodeManifestError(Exception):
    """Base error for node manifest processing.

    All node-manifest-specific errors inherit from this.
    """

    pass


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigError(NodeManifestError):
    """A setting could not be parsed.

    Attributes:
        setting: Name of the offending setting (usually an env var)
        reason: Human-readable error description

    Retry: Never retryable - fix the environment.
    """

    def __init__(self, setting: str, reason: str) -> None:
        self.setting = setting
        self.reason = reason
        super().__init__(f"Invalid setting {setting}: {reason}")


# =============================================================================
# Resolution Errors
# =============================================================================


class ImpossibleStateError(NodeManifestError):
    """A resolution outcome fell outside the known owner kinds.

    Attributes:
        found_by: The unrecognized classification

    Retry: Never retryable - this is a programming error.
    """

    def __init__(self, found_by: object) -> None:
        self.found_by = found_by
        super().__init__(
            f"Node manifest mapping is in an impossible state: {found_by!r}"
        )


class UnknownDiagnosticError(NodeManifestError):
    """Diagnostic id is missing from the catalogue.

    Attributes:
        diagnostic_id: The unknown id
    """

    def __init__(self, diagnostic_id: str) -> None:
        self.diagnostic_id = diagnostic_id
        super().__init__(f"Unknown diagnostic id: {diagnostic_id}")


# =============================================================================
# Storage Errors
# =============================================================================


class ManifestWriteError(NodeManifestError):
    """Writing a manifest artifact failed.

    Attributes:
        path: The artifact path that could not be written
        reason: Human-readable error description
        retryable: Whether rerunning the batch may succeed

    Retry: Check .retryable - True for transient OS errors.
    """

    def __init__(self, path: str, reason: str, retryable: bool = False) -> None:
        self.path = path
        self.reason = reason
        self.retryable = retryable
        super().__init__(f"Failed to write manifest {path}: {reason}")


class SnapshotError(NodeManifestError):
    """A store snapshot could not be read.

    Attributes:
        path: The snapshot file
        reason: Human-readable error description

    Retry: Never retryable - fix or regenerate the snapshot.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load snapshot {path}: {reason}")
