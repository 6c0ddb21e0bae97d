"""
Site Catalog Protocol — Interface for material and project master data.

Buildman defines this protocol; the surrounding site-management application
(materials and projects CRUD) implements it.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Protocol, runtime_checkable


GST_TYPE_GST = "gst"
GST_TYPE_NON_GST = "non_gst"


@dataclass(frozen=True)
class MaterialInfo:
    """Basic material information."""

    material_id: int
    name: str
    unit: str  # "bag", "kg", "cum", "nos", etc.
    gst_type: str = GST_TYPE_NON_GST
    gst_percentage: Decimal = Decimal("0")

    @property
    def is_gst_applicable(self) -> bool:
        return self.gst_type == GST_TYPE_GST


@dataclass(frozen=True)
class ProjectInfo:
    """Basic project information."""

    project_id: int
    name: str
    is_active: bool = True


@runtime_checkable
class SiteCatalog(Protocol):
    """
    Protocol for material/project lookups.

    Implementations should provide methods to:
    - Resolve a material id to its metadata
    - Resolve many material ids at once (reports)
    - Resolve a project id
    """

    def get_material(self, material_id: int) -> MaterialInfo | None:
        """
        Get material information.

        Args:
            material_id: Material primary key

        Returns:
            MaterialInfo or None if not found
        """
        ...

    def get_materials(self, material_ids: list[int]) -> dict[int, MaterialInfo]:
        """
        Get information for several materials at once.

        Args:
            material_ids: Material primary keys

        Returns:
            Dict[material_id, MaterialInfo]; unknown ids are omitted
        """
        ...

    def get_project(self, project_id: int) -> ProjectInfo | None:
        """
        Get project information.

        Args:
            project_id: Project primary key

        Returns:
            ProjectInfo or None if not found
        """
        ...
