"""Node manifest constants and runtime settings.

FOUND_PAGE_BY_TO_LOG_IDS decides which resolutions are worth a warning.
Changing how confident the pipeline is about an owner kind means editing
one row.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

from node_manifest.core.errors import ConfigError
from node_manifest.models.types import OwnerKind

# Relative to the site directory, followed by <plugin_name>/<manifest_id>.json
MANIFEST_DIR_PARTS: tuple[str, ...] = ("public", "__node-manifests")

DEFAULT_CONCURRENCY = 25

# Pages made by this plugin follow the filesystem route convention, so a
# context.id match on them is as good as an explicit owner.
FILESYSTEM_ROUTE_CREATOR = "gatsby-plugin-page-creator"

SUCCESS = "success"
NO_NODE_LOG_ID = "11804"

FOUND_PAGE_BY_TO_LOG_IDS: dict[OwnerKind, str] = {
    OwnerKind.NONE: "11801",
    OwnerKind.CONTEXT_ID: "11802",
    OwnerKind.QUERY_TRACKING: "11803",
    OwnerKind.FILESYSTEM_ROUTE_API: SUCCESS,
    OwnerKind.OWNER_NODE_ID: SUCCESS,
}

# Characters Windows refuses in file names.
WINDOWS_RESERVED_CHARS = re.compile(r'[:/*?"<>|\\]')

# Environment switches
LOG_LEVEL_ENV = "SITE_LOG_LEVEL"
VERBOSE_ENV = "VERBOSE_NODE_MANIFEST"
SITE_ENV = "SITE_ENV"
CONCURRENCY_ENV = "NODE_MANIFEST_CONCURRENCY"


@dataclass(frozen=True)
class ManifestSettings:
    """Runtime switches for a batch run.

    verbose: report every diagnostic as it happens instead of only
        listing unique ids in the summary.
    development: query tracking is incomplete, so every page is a
        candidate owner.
    """

    verbose: bool = False
    development: bool = False
    concurrency: int = DEFAULT_CONCURRENCY
    filesystem_route_creator: str = FILESYSTEM_ROUTE_CREATOR

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> ManifestSettings:
        """Build settings from environment variables.

        Raises:
            ConfigError: NODE_MANIFEST_CONCURRENCY is not a positive integer.
        """
        env = os.environ if environ is None else environ

        verbose = (
            env.get(LOG_LEVEL_ENV) == "verbose" or env.get(VERBOSE_ENV) == "true"
        )
        development = env.get(SITE_ENV) == "development"

        raw_concurrency = env.get(CONCURRENCY_ENV)
        concurrency = DEFAULT_CONCURRENCY
        if raw_concurrency:
            try:
                concurrency = int(raw_concurrency)
            except ValueError:
                raise ConfigError(
                    CONCURRENCY_ENV, f"not an integer: {raw_concurrency!r}"
                ) from None
            if concurrency < 1:
                raise ConfigError(CONCURRENCY_ENV, "must be at least 1")

        return cls(
            verbose=verbose,
            development=development,
            concurrency=concurrency,
        )
