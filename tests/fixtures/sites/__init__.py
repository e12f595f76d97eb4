"""Test site fixtures."""

from tests.fixtures.sites.sample_sites import (
    FS_ROUTE_PLUGIN_ID,
    OTHER_PLUGIN_ID,
    make_page,
    make_store,
)

__all__ = [
    "FS_ROUTE_PLUGIN_ID",
    "OTHER_PLUGIN_ID",
    "make_page",
    "make_store",
]
