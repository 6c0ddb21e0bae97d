"""
Buildman Models.

Core models for the material ledger and project costing:
- StockMovement: Immutable ledger of material quantity changes
- StockBalance: Quantity cache per (material, project)
- ConsumptionStandard: Expected usage per (project, material)
- InventoryUnit: Sellable units that carry allocated cost
"""

from buildman.models.balance import StockBalance
from buildman.models.enums import AlertStatus, Direction, ReferenceKind
from buildman.models.movement import StockMovement
from buildman.models.standard import ConsumptionStandard
from buildman.models.unit import InventoryUnit

__all__ = [
    'Direction',
    'ReferenceKind',
    'AlertStatus',
    'StockMovement',
    'StockBalance',
    'ConsumptionStandard',
    'InventoryUnit',
]
