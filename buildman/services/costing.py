"""
Project costing — total spend and its allocation across inventory units.

Usage:
    from buildman import costing

    snapshot = costing.compute_project_cost(project_id)
    flat = costing.compute_flat_costing(project_id)        # equal share, read-only
    area = costing.compute_area_based_costing(project_id)  # proportional to floor area

compute_area_based_costing() is a write disguised as a read: every call
overwrites InventoryUnit.allocated_cost on all units of the project.
unit_wise_costing() reads those stored allocations back without recomputing.

Spend is read through the CostSource protocol. Which records count is
decided here:
    purchase orders     approved | delivered | closed  (total + GST)
    wage entries        verified
    incidental expenses approved | paid
A merely "created" purchase order is a draft and never counts.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from django.db import transaction
from django.utils import timezone

from buildman.adapters.loader import get_catalog, get_cost_source
from buildman.conf import buildman_settings
from buildman.exceptions import StockError
from buildman.models.unit import InventoryUnit
from buildman.protocols.catalog import SiteCatalog
from buildman.protocols.costs import (
    CostSource,
    ExpenseStatus,
    PurchaseOrderStatus,
    WageStatus,
)
from buildman.services.base import ReportMixin, money, percent
from buildman.services.variance import VarianceEngine, WastageAlerts

logger = logging.getLogger('buildman')

ZERO = Decimal('0')

FINALIZED_PO_STATUSES = frozenset({
    PurchaseOrderStatus.APPROVED.value,
    PurchaseOrderStatus.DELIVERED.value,
    PurchaseOrderStatus.CLOSED.value,
})
VERIFIED_WAGE_STATUSES = frozenset({WageStatus.VERIFIED.value})
APPROVED_EXPENSE_STATUSES = frozenset({
    ExpenseStatus.APPROVED.value,
    ExpenseStatus.PAID.value,
})


def _status(value) -> str:
    return str(getattr(value, 'value', value)).lower()


def _amount(value) -> Decimal:
    if value is None:
        return ZERO
    return value if isinstance(value, Decimal) else Decimal(str(value))


# ══════════════════════════════════════════════════════════════
# REPORT TYPES
# ══════════════════════════════════════════════════════════════


@dataclass(frozen=True)
class ProjectCostSnapshot(ReportMixin):
    """Total spend of a project. Computed, never stored."""

    project_id: int
    material_cost: Decimal
    labor_cost: Decimal
    misc_cost: Decimal
    material_base_cost: Decimal = ZERO
    gst_amount: Decimal = ZERO
    gst_procurement_cost: Decimal = ZERO
    non_gst_procurement_cost: Decimal = ZERO
    purchase_order_count: int = 0
    wage_entry_count: int = 0
    expense_count: int = 0
    calculated_at: datetime | None = None

    @property
    def grand_total(self) -> Decimal:
        return self.material_cost + self.labor_cost + self.misc_cost

    def as_dict(self):
        data = super().as_dict()
        data['grand_total'] = str(self.grand_total)
        return data


@dataclass(frozen=True)
class FlatCostingReport(ReportMixin):
    """Equal-share allocation of total cost across all units."""

    project_id: int
    project_name: str
    total_project_cost: Decimal
    total_units: int
    cost_per_unit: Decimal
    sold_units: int = 0
    unsold_units: int = 0
    sold_units_revenue: Decimal = ZERO
    sold_cost_allocated: Decimal = ZERO
    unsold_inventory_value: Decimal = ZERO
    total_profit_loss: Decimal = ZERO
    message: str = ''

    @property
    def has_units(self) -> bool:
        return self.total_units > 0

    def as_dict(self):
        data = super().as_dict()
        data['has_units'] = self.has_units
        return data


@dataclass(frozen=True)
class UnitCostLine(ReportMixin):
    """Costing of one inventory unit."""

    unit_number: str
    unit_type: str
    floor_area: Decimal
    area_unit: str
    allocated_cost: Decimal | None
    is_sold: bool
    sold_price: Decimal | None
    sold_at: date | None
    buyer_name: str
    profit_loss: Decimal | None
    profit_margin: Decimal | None

    @classmethod
    def from_unit(cls, unit: InventoryUnit) -> 'UnitCostLine':
        margin = unit.profit_margin
        return cls(
            unit_number=unit.unit_number,
            unit_type=unit.unit_type,
            floor_area=unit.floor_area,
            area_unit=unit.area_unit,
            allocated_cost=unit.allocated_cost,
            is_sold=unit.is_sold,
            sold_price=unit.sold_price,
            sold_at=unit.sold_at,
            buyer_name=unit.buyer_name,
            profit_loss=unit.profit_loss,
            profit_margin=percent(margin) if margin is not None else None,
        )


@dataclass(frozen=True)
class AreaCostingReport(ReportMixin):
    """Allocation of total cost proportional to floor area."""

    project_id: int
    project_name: str
    total_project_cost: Decimal
    total_area: Decimal
    area_unit: str
    cost_per_area_unit: Decimal
    sold_area: Decimal = ZERO
    unsold_area: Decimal = ZERO
    sold_units_revenue: Decimal = ZERO
    sold_cost_allocated: Decimal = ZERO
    unsold_inventory_value: Decimal = ZERO
    total_profit_loss: Decimal = ZERO
    units: tuple[UnitCostLine, ...] = ()
    message: str = ''

    @property
    def has_area(self) -> bool:
        return self.total_area > 0

    def as_dict(self):
        data = super().as_dict()
        data['has_area'] = self.has_area
        return data


# ══════════════════════════════════════════════════════════════
# ENGINE
# ══════════════════════════════════════════════════════════════


class CostingEngine:
    """
    Aggregates project spend and allocates it to inventory units.

    Args:
        cost_source: CostSource backend (None = BUILDMAN['COST_SOURCE'])
        catalog: SiteCatalog backend (None = BUILDMAN['CATALOG'])
    """

    def __init__(self, cost_source: CostSource | None = None,
                 catalog: SiteCatalog | None = None):
        self._cost_source = cost_source
        self._catalog = catalog

    @property
    def cost_source(self) -> CostSource:
        return self._cost_source or get_cost_source()

    @property
    def catalog(self) -> SiteCatalog:
        return self._catalog or get_catalog()

    def _project_name(self, project_id: int) -> str:
        project = self.catalog.get_project(project_id)
        if project is None:
            raise StockError('NOT_FOUND', project_id=project_id)
        return project.name

    # ──────────────────────────────────────────────────────────
    # Spend
    # ──────────────────────────────────────────────────────────

    def compute_project_cost(self, project_id: int) -> ProjectCostSnapshot:
        """Material (finalized POs incl. GST) + labor (verified wages) + misc (approved expenses)."""
        source = self.cost_source

        orders = [
            po for po in source.purchase_orders(project_id)
            if _status(po.status) in FINALIZED_PO_STATUSES
        ]
        base = sum((_amount(po.total_amount) for po in orders), ZERO)
        gst = sum((_amount(po.gst_amount) for po in orders), ZERO)
        gst_procurement = sum(
            (_amount(po.total_amount) + _amount(po.gst_amount)
             for po in orders if _status(po.gst_type) == 'gst'),
            ZERO,
        )

        wages = [
            w for w in source.wage_entries(project_id)
            if _status(w.status) in VERIFIED_WAGE_STATUSES
        ]
        expenses = [
            e for e in source.incidental_expenses(project_id)
            if _status(e.status) in APPROVED_EXPENSE_STATUSES
        ]

        snapshot = ProjectCostSnapshot(
            project_id=project_id,
            material_cost=money(base + gst),
            labor_cost=money(sum((_amount(w.total_wage) for w in wages), ZERO)),
            misc_cost=money(sum((_amount(e.amount) for e in expenses), ZERO)),
            material_base_cost=money(base),
            gst_amount=money(gst),
            gst_procurement_cost=money(gst_procurement),
            non_gst_procurement_cost=money(base + gst - gst_procurement),
            purchase_order_count=len(orders),
            wage_entry_count=len(wages),
            expense_count=len(expenses),
            calculated_at=timezone.now(),
        )
        logger.debug(
            "costing.project",
            extra={"project_id": project_id, "grand_total": str(snapshot.grand_total)},
        )
        return snapshot

    # ──────────────────────────────────────────────────────────
    # Allocation
    # ──────────────────────────────────────────────────────────

    def compute_flat_costing(self, project_id: int) -> FlatCostingReport:
        """
        Equal share: cost_per_unit = grand_total / unit count.

        sold_cost_allocated + unsold_inventory_value == grand_total, up to
        one rounding step per side. With no units the report is all zeros
        and explains why. Nothing is written.
        """
        project_name = self._project_name(project_id)
        grand_total = self.compute_project_cost(project_id).grand_total
        units = list(InventoryUnit.objects.for_project(project_id))
        total = len(units)

        if total == 0:
            return FlatCostingReport(
                project_id=project_id,
                project_name=project_name,
                total_project_cost=grand_total,
                total_units=0,
                cost_per_unit=ZERO,
                message='No units defined for this project',
            )

        cost_per_unit = grand_total / total
        sold = [u for u in units if u.is_sold]
        sold_count = len(sold)
        unsold_count = total - sold_count
        revenue = sum((_amount(u.sold_price) for u in sold), ZERO)
        sold_cost = money(sold_count * cost_per_unit)

        return FlatCostingReport(
            project_id=project_id,
            project_name=project_name,
            total_project_cost=grand_total,
            total_units=total,
            cost_per_unit=money(cost_per_unit),
            sold_units=sold_count,
            unsold_units=unsold_count,
            sold_units_revenue=money(revenue),
            sold_cost_allocated=sold_cost,
            unsold_inventory_value=money(unsold_count * cost_per_unit),
            total_profit_loss=money(revenue - sold_cost),
        )

    def compute_area_based_costing(self, project_id: int) -> AreaCostingReport:
        """
        Proportional share: cost_per_area_unit = grand_total / total floor area.

        Side effect: writes allocated_cost = floor_area × cost_per_area_unit
        on every unit of the project. With zero area nothing is written and
        the report is all zeros.
        """
        project_name = self._project_name(project_id)
        grand_total = self.compute_project_cost(project_id).grand_total
        default_unit = buildman_settings.DEFAULT_AREA_UNIT

        with transaction.atomic():
            units = list(
                InventoryUnit.objects.for_project(project_id)
                .select_for_update()
                .order_by('unit_number')
            )
            total_area = sum((u.floor_area for u in units), ZERO)
            area_unit = (units[0].area_unit if units else '') or default_unit

            if total_area <= 0:
                return AreaCostingReport(
                    project_id=project_id,
                    project_name=project_name,
                    total_project_cost=grand_total,
                    total_area=ZERO,
                    area_unit=area_unit,
                    cost_per_area_unit=ZERO,
                    message='No floor area defined for units',
                )

            cost_per_area = grand_total / total_area
            now = timezone.now()
            for unit in units:
                unit.allocated_cost = money(unit.floor_area * cost_per_area)
                unit.updated_at = now
            InventoryUnit.objects.bulk_update(units, ['allocated_cost', 'updated_at'])

        logger.info(
            "costing.area.allocated",
            extra={
                "project_id": project_id,
                "units": len(units),
                "cost_per_area_unit": str(cost_per_area),
            },
        )

        sold = [u for u in units if u.is_sold]
        sold_area = sum((u.floor_area for u in sold), ZERO)
        unsold_area = total_area - sold_area
        revenue = sum((_amount(u.sold_price) for u in sold), ZERO)
        sold_cost = money(sold_area * cost_per_area)

        return AreaCostingReport(
            project_id=project_id,
            project_name=project_name,
            total_project_cost=grand_total,
            total_area=total_area,
            area_unit=area_unit,
            cost_per_area_unit=money(cost_per_area),
            sold_area=sold_area,
            unsold_area=unsold_area,
            sold_units_revenue=money(revenue),
            sold_cost_allocated=sold_cost,
            unsold_inventory_value=money(unsold_area * cost_per_area),
            total_profit_loss=money(revenue - sold_cost),
            units=tuple(UnitCostLine.from_unit(u) for u in units),
        )

    def unit_wise_costing(self, project_id: int) -> list[UnitCostLine]:
        """Stored allocations per unit, by unit number. Read-only."""
        return [
            UnitCostLine.from_unit(unit)
            for unit in InventoryUnit.objects.for_project(project_id).order_by('unit_number')
        ]

    def wastage_alerts(self, project_id: int) -> WastageAlerts:
        """Materials over standard + tolerance (see VarianceEngine)."""
        return VarianceEngine(catalog=self._catalog).wastage_alerts(project_id)

    # ──────────────────────────────────────────────────────────
    # Units
    # ──────────────────────────────────────────────────────────

    def register_unit(self, project_id: int, unit_number: str, floor_area, *,
                      area_unit: str = '', unit_type: str = '') -> InventoryUnit:
        """
        Add a sellable unit to a project.

        Raises:
            StockError('INVALID_AMOUNT'): floor_area <= 0
        """
        try:
            area = _amount(floor_area)
        except (InvalidOperation, ValueError):
            raise StockError('INVALID_AMOUNT', floor_area=floor_area)
        if area <= 0:
            raise StockError('INVALID_AMOUNT', floor_area=area)

        self._project_name(project_id)
        return InventoryUnit.objects.create(
            project_id=project_id,
            unit_number=unit_number,
            unit_type=unit_type,
            floor_area=area,
            area_unit=area_unit or buildman_settings.DEFAULT_AREA_UNIT,
        )

    def mark_unit_sold(self, project_id: int, unit_number: str, sold_price, *,
                       buyer_name: str = '', sold_at: date | None = None) -> InventoryUnit:
        """
        Close the sale of a unit.

        Raises:
            StockError('NOT_FOUND'): No such unit in the project
            StockError('INVALID_AMOUNT'): sold_price <= 0
        """
        try:
            price = _amount(sold_price)
        except (InvalidOperation, ValueError):
            raise StockError('INVALID_AMOUNT', sold_price=sold_price)
        if price <= 0:
            raise StockError('INVALID_AMOUNT', sold_price=price)

        with transaction.atomic():
            unit = InventoryUnit.objects.select_for_update().filter(
                project_id=project_id, unit_number=unit_number,
            ).first()
            if unit is None:
                raise StockError('NOT_FOUND', project_id=project_id, unit_number=unit_number)

            unit.is_sold = True
            unit.sold_price = price
            unit.sold_at = sold_at or timezone.localdate()
            unit.buyer_name = buyer_name or ''
            unit.save(update_fields=['is_sold', 'sold_price', 'sold_at', 'buyer_name', 'updated_at'])

        logger.info(
            "costing.unit.sold",
            extra={"project_id": project_id, "unit_number": unit_number, "price": str(price)},
        )
        return unit
