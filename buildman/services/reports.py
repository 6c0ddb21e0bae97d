"""
Stock reports — read-only projections over balances and movements.
"""

from dataclasses import dataclass
from decimal import Decimal
from itertools import groupby
from operator import attrgetter

from buildman.adapters.loader import get_catalog
from buildman.models.balance import StockBalance
from buildman.models.movement import StockMovement
from buildman.protocols.catalog import MaterialInfo, SiteCatalog
from buildman.services.base import ReportMixin
from buildman.services.queries import StockQueries


@dataclass(frozen=True)
class MaterialStockLine(ReportMixin):
    material_id: int
    material_name: str
    unit: str
    current_stock: Decimal
    gst_percentage: Decimal


@dataclass(frozen=True)
class ProjectStockReport(ReportMixin):
    """On-hand materials of a project, split by GST applicability."""

    project_id: int
    gst_materials: tuple[MaterialStockLine, ...]
    non_gst_materials: tuple[MaterialStockLine, ...]

    @property
    def total_gst_items(self) -> int:
        return len(self.gst_materials)

    @property
    def total_non_gst_items(self) -> int:
        return len(self.non_gst_materials)

    def as_dict(self):
        data = super().as_dict()
        data['total_gst_items'] = self.total_gst_items
        data['total_non_gst_items'] = self.total_non_gst_items
        return data


@dataclass(frozen=True)
class ProjectStockLine(ReportMixin):
    project_id: int
    project_name: str
    stock: Decimal


@dataclass(frozen=True)
class MaterialStockSummary(ReportMixin):
    """One material's stock summed over every project that holds it."""

    material_id: int
    material_name: str
    unit: str
    gst_type: str
    total_quantity: Decimal
    project_count: int
    projects: tuple[ProjectStockLine, ...]


class StockReports:
    """Read-only reporting facade."""

    def __init__(self, catalog: SiteCatalog | None = None):
        self._catalog = catalog

    @property
    def catalog(self) -> SiteCatalog:
        return self._catalog or get_catalog()

    @staticmethod
    def _info(materials: dict[int, MaterialInfo], material_id: int) -> MaterialInfo:
        return materials.get(material_id) or MaterialInfo(
            material_id=material_id, name=f"Material #{material_id}", unit='',
        )

    def project_stock_report(self, project_id: int) -> ProjectStockReport:
        """Non-zero balances of the project, GST and non-GST materials apart."""
        balances = list(StockQueries.list_balances(project_id=project_id))
        materials = self.catalog.get_materials([b.material_id for b in balances])

        gst, non_gst = [], []
        for balance in balances:
            info = self._info(materials, balance.material_id)
            line = MaterialStockLine(
                material_id=balance.material_id,
                material_name=info.name,
                unit=info.unit,
                current_stock=balance.quantity,
                gst_percentage=info.gst_percentage,
            )
            (gst if info.is_gst_applicable else non_gst).append(line)

        return ProjectStockReport(
            project_id=project_id,
            gst_materials=tuple(gst),
            non_gst_materials=tuple(non_gst),
        )

    def cross_project_stock_summary(self) -> list[MaterialStockSummary]:
        """
        Per material: total on hand and the projects holding it.

        Only non-zero balances count. Projects unknown to the catalog are
        named "Project #<id>".

        Performance:
            One query over StockBalance, grouped in memory
        """
        balances = list(
            StockBalance.objects.in_stock().order_by('material_id', 'project_id')
        )
        materials = self.catalog.get_materials(sorted({b.material_id for b in balances}))
        project_names: dict[int, str] = {}

        summary = []
        for material_id, group in groupby(balances, key=attrgetter('material_id')):
            info = self._info(materials, material_id)
            lines = tuple(
                ProjectStockLine(
                    project_id=balance.project_id,
                    project_name=self._project_name(project_names, balance.project_id),
                    stock=balance.quantity,
                )
                for balance in group
            )
            summary.append(MaterialStockSummary(
                material_id=material_id,
                material_name=info.name,
                unit=info.unit,
                gst_type=info.gst_type,
                total_quantity=sum((line.stock for line in lines), Decimal('0')),
                project_count=len(lines),
                projects=lines,
            ))
        return summary

    def _project_name(self, cache: dict[int, str], project_id: int) -> str:
        if project_id not in cache:
            project = self.catalog.get_project(project_id)
            cache[project_id] = project.name if project else f"Project #{project_id}"
        return cache[project_id]

    def movement_history(self, project_id: int, material_id: int | None = None,
                         limit: int | None = None) -> list[StockMovement]:
        """Newest-first movements; same as stock.list_movements()."""
        return StockQueries.list_movements(project_id, material_id, limit)
