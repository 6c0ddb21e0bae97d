"""
Buildman service facades — the public interface of the ledger and costing engine.

Usage:
    from buildman import stock, standards, variance, costing, reports, Reference

    stock.record_inbound(project_id, cement_id, Decimal('100'), Reference.purchase_order(1))
    stock.record_outbound(project_id, cement_id, Decimal('30'), Reference.task(7))
    stock.get_balance(project_id, cement_id)  # 70

    standards.upsert_standard(project_id, cement_id, Decimal('1000'), 'bag', Decimal('0.10'))
    variance.wastage_alerts(project_id)
    costing.compute_flat_costing(project_id)
"""

from buildman.services.costing import CostingEngine
from buildman.services.movements import StockMovements
from buildman.services.queries import StockQueries
from buildman.services.reports import StockReports
from buildman.services.standards import ConsumptionStandards
from buildman.services.variance import VarianceEngine


class Stock(StockQueries, StockMovements):
    """
    Single interface for all stock ledger operations.

    Parameter convention: (project_id, material_id, quantity, reference, ...)

    IMPORTANT: All state-changing methods use atomic transactions
    with per-pair locking. See each method's docstring.
    """


# Engines resolve their backends from settings on each call, so module-level
# instances stay valid across override_settings().
variance = VarianceEngine()
costing = CostingEngine()
reports = StockReports()
standards = ConsumptionStandards
