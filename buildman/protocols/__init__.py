"""
Buildman Protocols.

Defines interfaces for external system integration.
"""

from buildman.protocols.catalog import (
    GST_TYPE_GST,
    GST_TYPE_NON_GST,
    MaterialInfo,
    ProjectInfo,
    SiteCatalog,
)
from buildman.protocols.costs import (
    CostSource,
    ExpenseStatus,
    IncidentalExpense,
    PurchaseOrderLine,
    PurchaseOrderStatus,
    PurchaseOrderTotal,
    WageEntry,
    WageStatus,
)

__all__ = [
    "GST_TYPE_GST",
    "GST_TYPE_NON_GST",
    "MaterialInfo",
    "ProjectInfo",
    "SiteCatalog",
    "CostSource",
    "ExpenseStatus",
    "IncidentalExpense",
    "PurchaseOrderLine",
    "PurchaseOrderStatus",
    "PurchaseOrderTotal",
    "WageEntry",
    "WageStatus",
]
