"""
Django Buildman — Material Stock Ledger & Project Costing Engine.

Per-project material inventories kept as an append-only ledger, with
consumption variance and unit costing derived from it.

Usage:
    from buildman import stock, Reference, StockError

    stock.record_inbound(site, cement, 100, Reference.purchase_order(12))
    stock.record_outbound(site, cement, 30, Reference.task(7))
    stock.get_balance(site, cement)  # 70
"""


def __getattr__(name):
    """Lazy import to avoid circular imports during app loading."""
    if name == 'stock':
        from buildman.service import Stock
        return Stock
    elif name in ('standards', 'variance', 'costing', 'reports'):
        from buildman.service import costing, reports, standards, variance
        return {
            'standards': standards,
            'variance': variance,
            'costing': costing,
            'reports': reports,
        }[name]
    elif name == 'Reference':
        from buildman.services.movements import Reference
        return Reference
    elif name == 'StockError':
        from buildman.exceptions import StockError
        return StockError
    elif name == 'StockMovement':
        from buildman.models.movement import StockMovement
        return StockMovement
    elif name == 'StockBalance':
        from buildman.models.balance import StockBalance
        return StockBalance
    elif name == 'ConsumptionStandard':
        from buildman.models.standard import ConsumptionStandard
        return ConsumptionStandard
    elif name == 'InventoryUnit':
        from buildman.models.unit import InventoryUnit
        return InventoryUnit
    elif name == 'Direction':
        from buildman.models.enums import Direction
        return Direction
    elif name == 'ReferenceKind':
        from buildman.models.enums import ReferenceKind
        return ReferenceKind
    elif name == 'AlertStatus':
        from buildman.models.enums import AlertStatus
        return AlertStatus
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    'stock',
    'standards',
    'variance',
    'costing',
    'reports',
    'Reference',
    'StockError',
    'StockMovement',
    'StockBalance',
    'ConsumptionStandard',
    'InventoryUnit',
    'Direction',
    'ReferenceKind',
    'AlertStatus',
]

__version__ = '0.1.0'
