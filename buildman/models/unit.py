"""
InventoryUnit model — sellable flat/unit within a project.
"""

from decimal import Decimal

from django.db import models
from django.db.models import Q
from django.utils.translation import gettext_lazy as _


class InventoryUnitQuerySet(models.QuerySet):

    def for_project(self, project_id: int):
        return self.filter(project_id=project_id)

    def sold(self):
        return self.filter(is_sold=True)

    def unsold(self):
        return self.filter(is_sold=False)


class InventoryUnit(models.Model):
    """
    A flat, shop or plot the project sells.

    ``allocated_cost`` is a point-in-time estimate written by the costing
    engine; every area-based costing run overwrites it.
    """

    project_id = models.PositiveBigIntegerField(verbose_name=_('Project'))
    unit_number = models.CharField(max_length=30, verbose_name=_('Unit number'))
    unit_type = models.CharField(
        max_length=30,
        blank=True,
        default='',
        verbose_name=_('Unit type'),
        help_text=_('Ex: 2BHK, Shop, Plot'),
    )

    floor_area = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        verbose_name=_('Floor area'),
    )
    area_unit = models.CharField(max_length=10, default='sqft', verbose_name=_('Area unit'))

    is_sold = models.BooleanField(default=False, verbose_name=_('Sold'))
    sold_price = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Sold price'),
    )
    sold_at = models.DateField(null=True, blank=True, verbose_name=_('Sold on'))
    buyer_name = models.CharField(max_length=150, blank=True, default='', verbose_name=_('Buyer'))

    allocated_cost = models.DecimalField(
        max_digits=16,
        decimal_places=2,
        null=True,
        blank=True,
        verbose_name=_('Allocated cost'),
        help_text=_('Written by area-based costing'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = InventoryUnitQuerySet.as_manager()

    class Meta:
        verbose_name = _('Inventory unit')
        verbose_name_plural = _('Inventory units')
        ordering = ['project_id', 'unit_number']
        constraints = [
            models.UniqueConstraint(
                fields=['project_id', 'unit_number'],
                name='unique_unit_number_per_project',
            ),
            models.CheckConstraint(
                condition=Q(floor_area__gt=0),
                name='unit_floor_area_positive',
            ),
        ]

    @property
    def profit_loss(self) -> Decimal | None:
        """Sale price minus allocated cost; None until sold and costed."""
        if not self.is_sold or self.sold_price is None or self.allocated_cost is None:
            return None
        return self.sold_price - self.allocated_cost

    @property
    def profit_margin(self) -> Decimal | None:
        """Profit as a percentage of sale price."""
        profit = self.profit_loss
        if profit is None or not self.sold_price:
            return None
        return profit / self.sold_price * 100

    def __str__(self) -> str:
        return f"p{self.project_id} #{self.unit_number} ({self.floor_area} {self.area_unit})"
