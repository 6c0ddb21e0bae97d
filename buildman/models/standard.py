"""
ConsumptionStandard model — BOQ baseline per (project, material).

Usage:
    from buildman import standards

    standards.upsert_standard(project_id, cement_id, Decimal('1000'), 'bag', Decimal('0.10'))
    variance.compute_variance(project_id, cement_id)
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class ConsumptionStandard(models.Model):
    """
    Expected total usage of a material over a project, with a tolerance band.

    One row per (project, material); updates overwrite in place.
    """

    project_id = models.PositiveBigIntegerField(verbose_name=_('Project'))
    material_id = models.PositiveBigIntegerField(verbose_name=_('Material'))

    standard_quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        verbose_name=_('Standard quantity'),
    )
    unit = models.CharField(max_length=20, blank=True, default='', verbose_name=_('Unit'))
    tolerance_fraction = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal('0.10'),
        verbose_name=_('Tolerance'),
        help_text=_('0.10 = 10% either side of the standard'),
    )
    description = models.TextField(blank=True, default='', verbose_name=_('Description'))

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _('Consumption standard')
        verbose_name_plural = _('Consumption standards')
        ordering = ['project_id', 'material_id']
        constraints = [
            models.UniqueConstraint(
                fields=['project_id', 'material_id'],
                name='unique_standard_per_project_material',
            ),
            models.CheckConstraint(
                condition=Q(tolerance_fraction__gte=0) & Q(tolerance_fraction__lte=1),
                name='standard_tolerance_range',
            ),
        ]

    @property
    def max_allowed(self) -> Decimal:
        """Consumption above this raises an EXCEEDED alert."""
        return self.standard_quantity * (1 + self.tolerance_fraction)

    @property
    def min_expected(self) -> Decimal:
        return self.standard_quantity * (1 - self.tolerance_fraction)

    def __str__(self) -> str:
        return (
            f"p{self.project_id} m{self.material_id}: "
            f"{self.standard_quantity} {self.unit} ±{self.tolerance_fraction:%}"
        )
