"""
Consumption variance — actual OUT movements against BOQ standards.

Usage:
    from buildman import variance

    report = variance.compute_variance(project_id, cement_id)
    if report is None:
        ...  # no standard defined (not the same as zero variance)
    elif report.alert_status == AlertStatus.EXCEEDED:
        ...

    alerts = variance.wastage_alerts(project_id)

Everything here is read-only and computed per call.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal

from buildman.adapters.loader import get_catalog
from buildman.models.enums import AlertStatus
from buildman.models.standard import ConsumptionStandard
from buildman.protocols.catalog import SiteCatalog
from buildman.services.base import ReportMixin, percent
from buildman.services.queries import StockQueries

logger = logging.getLogger('buildman')


@dataclass(frozen=True)
class VarianceReport(ReportMixin):
    """Consumption of one material against its standard."""

    project_id: int
    material_id: int
    material_name: str
    unit: str
    standard_quantity: Decimal
    actual_consumption: Decimal
    variance: Decimal
    variance_percentage: Decimal
    tolerance_fraction: Decimal
    max_allowed: Decimal
    min_expected: Decimal
    alert_status: AlertStatus

    @property
    def is_within_tolerance(self) -> bool:
        return self.alert_status == AlertStatus.NORMAL

    @property
    def is_under_consumed(self) -> bool:
        """Below the lower band; informational, never an alert."""
        return self.actual_consumption < self.min_expected

    def as_dict(self):
        data = super().as_dict()
        data['is_within_tolerance'] = self.is_within_tolerance
        data['is_under_consumed'] = self.is_under_consumed
        return data


@dataclass(frozen=True)
class ProjectVarianceReport(ReportMixin):
    """Variance of every material that has a standard in the project."""

    project_id: int
    variances: tuple[VarianceReport, ...]

    @property
    def materials_tracked(self) -> int:
        return len(self.variances)

    @property
    def exceeded_count(self) -> int:
        return sum(1 for v in self.variances if v.alert_status == AlertStatus.EXCEEDED)

    def __iter__(self):
        return iter(self.variances)

    def __len__(self) -> int:
        return len(self.variances)

    def as_dict(self):
        data = super().as_dict()
        data['materials_tracked'] = self.materials_tracked
        data['exceeded_count'] = self.exceeded_count
        return data


@dataclass(frozen=True)
class WastageAlerts(ReportMixin):
    """Materials consumed beyond standard + tolerance."""

    project_id: int
    alerts: tuple[VarianceReport, ...]

    @property
    def alert_count(self) -> int:
        return len(self.alerts)

    def __iter__(self):
        return iter(self.alerts)

    def __len__(self) -> int:
        return len(self.alerts)

    def as_dict(self):
        data = super().as_dict()
        data['alert_count'] = self.alert_count
        return data


class VarianceEngine:
    """Compares cumulative consumption with consumption standards."""

    def __init__(self, catalog: SiteCatalog | None = None):
        self._catalog = catalog

    @property
    def catalog(self) -> SiteCatalog:
        return self._catalog or get_catalog()

    def _report(self, standard: ConsumptionStandard, material_name: str) -> VarianceReport:
        actual = StockQueries.consumed(standard.project_id, standard.material_id)
        expected = standard.standard_quantity
        variance = actual - expected

        if expected:
            variance_percentage = percent(variance / expected * 100)
        else:
            variance_percentage = Decimal('0.00')

        max_allowed = standard.max_allowed
        status = AlertStatus.EXCEEDED if actual > max_allowed else AlertStatus.NORMAL

        return VarianceReport(
            project_id=standard.project_id,
            material_id=standard.material_id,
            material_name=material_name,
            unit=standard.unit,
            standard_quantity=expected,
            actual_consumption=actual,
            variance=variance,
            variance_percentage=variance_percentage,
            tolerance_fraction=standard.tolerance_fraction,
            max_allowed=max_allowed,
            min_expected=standard.min_expected,
            alert_status=status,
        )

    def compute_variance(self, project_id: int, material_id: int) -> VarianceReport | None:
        """
        Variance of one material.

        Returns:
            VarianceReport, or None when the pair has no standard
        """
        standard = ConsumptionStandard.objects.filter(
            project_id=project_id, material_id=material_id,
        ).first()
        if standard is None:
            return None

        material = self.catalog.get_material(material_id)
        name = material.name if material else f"Material #{material_id}"
        return self._report(standard, name)

    def compute_project_variance_report(self, project_id: int) -> ProjectVarianceReport:
        """
        One VarianceReport per standard defined for the project.

        Performance:
            One aggregate query per standard (materials with standards
            per project are few)
        """
        standards = list(
            ConsumptionStandard.objects.filter(project_id=project_id).order_by('material_id')
        )
        materials = self.catalog.get_materials([s.material_id for s in standards])

        variances = tuple(
            self._report(
                standard,
                materials[standard.material_id].name
                if standard.material_id in materials
                else f"Material #{standard.material_id}",
            )
            for standard in standards
        )
        return ProjectVarianceReport(project_id=project_id, variances=variances)

    def wastage_alerts(self, project_id: int) -> WastageAlerts:
        """Subset of the project report whose status is EXCEEDED."""
        report = self.compute_project_variance_report(project_id)
        alerts = tuple(v for v in report if v.alert_status == AlertStatus.EXCEEDED)

        for alert in alerts:
            logger.warning(
                "variance.exceeded",
                extra={
                    "project_id": project_id,
                    "material_id": alert.material_id,
                    "actual": str(alert.actual_consumption),
                    "max_allowed": str(alert.max_allowed),
                    "variance_percentage": str(alert.variance_percentage),
                },
            )

        return WastageAlerts(project_id=project_id, alerts=alerts)
