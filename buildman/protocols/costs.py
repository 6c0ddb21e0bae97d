"""
Cost Source Protocol.

Defines the interface the costing engine uses to read money that was spent
on a project. The records live in other subsystems (purchase orders, daily
wager attendance, petty cash); Buildman only reads them.

Which records count is decided by the costing engine from their status:
    purchase orders     approved | delivered | closed
    wage entries        verified
    incidental expenses approved | paid
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Protocol, runtime_checkable


# ══════════════════════════════════════════════════════════════
# ENUMS
# ══════════════════════════════════════════════════════════════


class PurchaseOrderStatus(str, Enum):
    """Purchase order lifecycle: created → approved → delivered → closed."""

    CREATED = "created"  # Draft, not a cost yet
    APPROVED = "approved"
    DELIVERED = "delivered"
    CLOSED = "closed"


class WageStatus(str, Enum):
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"


class ExpenseStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"


# ══════════════════════════════════════════════════════════════
# DATA TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class PurchaseOrderLine:
    """One material line of a purchase order."""

    material_id: int
    quantity: Decimal


@dataclass(frozen=True)
class PurchaseOrderTotal:
    """Purchase order amounts as seen by costing and stock receipt."""

    po_id: int
    project_id: int
    status: str
    total_amount: Decimal
    gst_amount: Decimal = Decimal("0")
    po_number: str = ""
    gst_type: str = "gst"  # "gst" | "non_gst"
    lines: tuple[PurchaseOrderLine, ...] = field(default_factory=tuple)

    @property
    def grand_total(self) -> Decimal:
        return self.total_amount + self.gst_amount


@dataclass(frozen=True)
class WageEntry:
    """Daily wager attendance with its computed wage."""

    entry_id: int
    project_id: int
    status: str
    total_wage: Decimal
    work_date: date | None = None


@dataclass(frozen=True)
class IncidentalExpense:
    """Petty cash / incidental expense."""

    expense_id: int
    project_id: int
    status: str
    amount: Decimal
    purpose: str = ""


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════


@runtime_checkable
class CostSource(Protocol):
    """
    Protocol for reading project spend.

    Implementations return every record of the project regardless of
    status; filtering is the costing engine's business rule.
    """

    def purchase_orders(self, project_id: int) -> list[PurchaseOrderTotal]:
        """All purchase orders of a project."""
        ...

    def wage_entries(self, project_id: int) -> list[WageEntry]:
        """All wage-ledger entries of a project."""
        ...

    def incidental_expenses(self, project_id: int) -> list[IncidentalExpense]:
        """All incidental expenses of a project."""
        ...
