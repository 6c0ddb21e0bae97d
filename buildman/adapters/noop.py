"""
Noop Site Catalog — Stub adapter for development and testing.

This adapter implements the SiteCatalog protocol with trivial defaults:
- Every material and project id exists
- Material info returns minimal placeholder data (non-GST, unit 'nos')

Usage in settings.py:
    BUILDMAN = {
        "CATALOG": "buildman.adapters.noop.NoopSiteCatalog",
    }

WARNING: Do NOT use in production. This adapter performs no real lookup
and will accept any id, including nonexistent ones.
"""

from __future__ import annotations

from buildman.protocols.catalog import GST_TYPE_NON_GST, MaterialInfo, ProjectInfo


class NoopSiteCatalog:
    """
    No-operation catalog for development and testing.

    Every id is valid, every lookup returns minimal defaults.
    """

    def get_material(self, material_id: int) -> MaterialInfo | None:
        return MaterialInfo(
            material_id=material_id,
            name=f"Material #{material_id}",
            unit="nos",
            gst_type=GST_TYPE_NON_GST,
        )

    def get_materials(self, material_ids: list[int]) -> dict[int, MaterialInfo]:
        return {pk: self.get_material(pk) for pk in material_ids}

    def get_project(self, project_id: int) -> ProjectInfo | None:
        return ProjectInfo(project_id=project_id, name=f"Project #{project_id}")
