"""
Buildman configuration.

Usage in settings.py:
    BUILDMAN = {
        "CATALOG": "sitecore.adapters.BuildmanCatalog",
        "COST_SOURCE": "sitecore.adapters.BuildmanCostSource",
        "MAX_WRITE_RETRIES": 3,
        "VALIDATE_INPUT_MATERIALS": True,
    }
"""

from dataclasses import dataclass
from typing import Any

from django.conf import settings


@dataclass
class BuildmanSettings:
    """Buildman configuration settings."""

    # Material/project metadata backend (dotted path)
    CATALOG: str = "buildman.adapters.noop.NoopSiteCatalog"

    # Purchase order / wage / expense backend (dotted path)
    COST_SOURCE: str = "buildman.adapters.memory.StaticCostSource"

    # Check material and project ids against the catalog before ledger writes
    VALIDATE_INPUT_MATERIALS: bool = True

    # Attempts for a ledger write that hits a concurrent modification
    MAX_WRITE_RETRIES: int = 3

    # Area unit reported when inventory units carry none
    DEFAULT_AREA_UNIT: str = "sqft"

    # Decimal places for currency amounts in reports
    MONEY_PLACES: int = 2


def get_buildman_settings() -> BuildmanSettings:
    """Load settings from Django settings."""
    user_settings: dict[str, Any] = getattr(settings, "BUILDMAN", {})
    return BuildmanSettings(**{
        k: v for k, v in user_settings.items()
        if k in BuildmanSettings.__dataclass_fields__
    })


class _LazySettings:
    """Lazy proxy that re-reads settings on every attribute access."""

    def __getattr__(self, name):
        return getattr(get_buildman_settings(), name)


buildman_settings = _LazySettings()
