"""
Buildman Adapters.

Backend loaders and development implementations of the protocols.
"""

from buildman.adapters.loader import get_catalog, get_cost_source, reset_adapters
from buildman.adapters.memory import StaticCostSource, StaticSiteCatalog
from buildman.adapters.noop import NoopSiteCatalog

__all__ = [
    "get_catalog",
    "get_cost_source",
    "reset_adapters",
    "NoopSiteCatalog",
    "StaticCostSource",
    "StaticSiteCatalog",
]
