"""
Buildman services — modular organization of ledger and costing operations.

    from buildman.services import StockQueries, StockMovements, ConsumptionStandards
    from buildman.services import VarianceEngine, CostingEngine, StockReports
"""

from buildman.services.costing import CostingEngine
from buildman.services.movements import Reference, StockMovements
from buildman.services.queries import StockQueries
from buildman.services.reports import StockReports
from buildman.services.standards import ConsumptionStandards
from buildman.services.variance import VarianceEngine

__all__ = [
    'StockQueries',
    'StockMovements',
    'Reference',
    'ConsumptionStandards',
    'VarianceEngine',
    'CostingEngine',
    'StockReports',
]
