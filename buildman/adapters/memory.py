"""
In-memory adapters — fixed data handed in at construction.

StaticSiteCatalog knows only the materials/projects it was given, so it can
exercise NOT_FOUND paths. StaticCostSource holds purchase orders, wage
entries and expenses in lists; with no arguments it reports no spend, which
makes it the default COST_SOURCE for projects that have not wired one.
"""

from __future__ import annotations

from collections.abc import Iterable

from buildman.protocols.catalog import MaterialInfo, ProjectInfo
from buildman.protocols.costs import IncidentalExpense, PurchaseOrderTotal, WageEntry


class StaticSiteCatalog:
    """SiteCatalog over fixed MaterialInfo/ProjectInfo collections."""

    def __init__(self, materials: Iterable[MaterialInfo] = (),
                 projects: Iterable[ProjectInfo] = ()):
        self._materials = {m.material_id: m for m in materials}
        self._projects = {p.project_id: p for p in projects}

    def get_material(self, material_id: int) -> MaterialInfo | None:
        return self._materials.get(material_id)

    def get_materials(self, material_ids: list[int]) -> dict[int, MaterialInfo]:
        return {pk: self._materials[pk] for pk in material_ids if pk in self._materials}

    def get_project(self, project_id: int) -> ProjectInfo | None:
        return self._projects.get(project_id)


class StaticCostSource:
    """CostSource over fixed lists, filtered by project only."""

    def __init__(self, purchase_orders: Iterable[PurchaseOrderTotal] = (),
                 wage_entries: Iterable[WageEntry] = (),
                 incidental_expenses: Iterable[IncidentalExpense] = ()):
        self._purchase_orders = list(purchase_orders)
        self._wage_entries = list(wage_entries)
        self._expenses = list(incidental_expenses)

    def purchase_orders(self, project_id: int) -> list[PurchaseOrderTotal]:
        return [po for po in self._purchase_orders if po.project_id == project_id]

    def wage_entries(self, project_id: int) -> list[WageEntry]:
        return [w for w in self._wage_entries if w.project_id == project_id]

    def incidental_expenses(self, project_id: int) -> list[IncidentalExpense]:
        return [e for e in self._expenses if e.project_id == project_id]
