"""
Buildman adapter loader — resolves the configured backends.

Usage:
    from buildman.adapters import get_catalog, get_cost_source

    catalog = get_catalog()
    material = catalog.get_material(42)

Settings:
    BUILDMAN = {
        "CATALOG": "sitecore.adapters.BuildmanCatalog",
        "COST_SOURCE": "sitecore.adapters.BuildmanCostSource",
    }

If a dotted path cannot be imported, the getters raise ImproperlyConfigured.
"""

from __future__ import annotations

import logging
import threading

from django.core.exceptions import ImproperlyConfigured
from django.utils.module_loading import import_string

from buildman.conf import buildman_settings
from buildman.protocols.catalog import SiteCatalog
from buildman.protocols.costs import CostSource

logger = logging.getLogger(__name__)


# Cached backend instances
_lock = threading.Lock()
_catalog: SiteCatalog | None = None
_cost_source: CostSource | None = None


def _load(setting_name: str, path: str, protocol: type):
    if not path:
        raise ImproperlyConfigured(f"BUILDMAN['{setting_name}'] must be configured.")

    try:
        backend_class = import_string(path)
    except ImportError as e:
        raise ImproperlyConfigured(
            f"Failed to import {setting_name} backend '{path}': {e}"
        ) from e

    backend = backend_class()
    if not isinstance(backend, protocol):
        raise ImproperlyConfigured(
            f"BUILDMAN['{setting_name}'] '{path}' does not implement {protocol.__name__}"
        )
    logger.debug("Loaded %s backend: %s", setting_name, path)
    return backend


def get_catalog() -> SiteCatalog:
    """
    Return the configured site catalog.

    Raises:
        ImproperlyConfigured: If CATALOG is empty, unimportable or wrong type
    """
    global _catalog

    if _catalog is None:
        with _lock:
            if _catalog is None:  # double-checked
                _catalog = _load("CATALOG", buildman_settings.CATALOG, SiteCatalog)

    return _catalog


def get_cost_source() -> CostSource:
    """
    Return the configured cost source.

    Raises:
        ImproperlyConfigured: If COST_SOURCE is empty, unimportable or wrong type
    """
    global _cost_source

    if _cost_source is None:
        with _lock:
            if _cost_source is None:
                _cost_source = _load("COST_SOURCE", buildman_settings.COST_SOURCE, CostSource)

    return _cost_source


def reset_adapters() -> None:
    """Reset the cached backends. Useful for testing."""
    global _catalog, _cost_source
    with _lock:
        _catalog = None
        _cost_source = None
