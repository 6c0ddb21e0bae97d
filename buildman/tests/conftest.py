"""
Pytest fixtures for Buildman tests.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model

from buildman.adapters import loader
from buildman.adapters.memory import StaticCostSource, StaticSiteCatalog
from buildman.protocols.catalog import GST_TYPE_GST, MaterialInfo, ProjectInfo


User = get_user_model()


@pytest.fixture(autouse=True)
def _fresh_adapters():
    """Drop cached backends so each test resolves them from settings."""
    loader.reset_adapters()
    yield
    loader.reset_adapters()


@pytest.fixture
def user(db):
    """Create a test user (site storekeeper)."""
    return User.objects.create_user(
        username='storekeeper',
        password='testpass123'
    )


@pytest.fixture
def project():
    """Project id of the main site."""
    return 1


@pytest.fixture
def other_project():
    """Project id of a second site."""
    return 2


@pytest.fixture
def cement():
    """Material id: cement (GST 28%)."""
    return 101


@pytest.fixture
def steel():
    """Material id: TMT steel (non-GST in this catalog)."""
    return 102


@pytest.fixture
def sand():
    """Material id: river sand (non-GST)."""
    return 103


@pytest.fixture
def catalog(monkeypatch, project, other_project, cement, steel, sand):
    """
    Install a static catalog that knows only two projects and three materials.

    Unknown ids resolve to None, so NOT_FOUND paths can be exercised.
    """
    static = StaticSiteCatalog(
        materials=[
            MaterialInfo(cement, 'OPC 53 Cement', 'bag', GST_TYPE_GST, Decimal('28')),
            MaterialInfo(steel, 'TMT Steel 12mm', 'kg'),
            MaterialInfo(sand, 'River Sand', 'cum'),
        ],
        projects=[
            ProjectInfo(project, 'Green Valley Towers'),
            ProjectInfo(other_project, 'Lakeside Villas'),
        ],
    )
    monkeypatch.setattr(loader, '_catalog', static)
    return static


@pytest.fixture
def use_costs(monkeypatch):
    """
    Factory: install a StaticCostSource with the given records.

        use_costs(purchase_orders=[...], wage_entries=[...])
    """
    def install(**records):
        source = StaticCostSource(**records)
        monkeypatch.setattr(loader, '_cost_source', source)
        return source

    return install
