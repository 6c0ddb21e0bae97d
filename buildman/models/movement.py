"""
StockMovement model — Immutable ledger of material quantity changes.
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone
from django.utils.translation import gettext_lazy as _

from buildman.models.enums import Direction, ReferenceKind


class StockMovementQuerySet(models.QuerySet):
    """QuerySet with ledger filters."""

    def for_pair(self, project_id: int, material_id: int):
        """Movements of one (project, material) ledger key."""
        return self.filter(project_id=project_id, material_id=material_id)

    def inbound(self):
        return self.filter(direction=Direction.IN)

    def outbound(self):
        return self.filter(direction=Direction.OUT)

    def newest_first(self):
        """History order: latest occurrence first, ties broken by chain position."""
        return self.order_by('-occurred_at', '-sequence', '-id')


class StockMovement(models.Model):
    """
    Immutable record of a material quantity change within a project.

    Rules:
    - NEVER update() or delete()
    - Corrections are new movements in the opposite direction
    - Written only by the stock service, together with StockBalance,
      inside one transaction

    ``sequence`` is the movement's position in its (material, project)
    chain. It is unique per pair, so two writers that both read the same
    balance cannot both commit.
    """

    material_id = models.PositiveBigIntegerField(verbose_name=_('Material'))
    project_id = models.PositiveBigIntegerField(verbose_name=_('Project'))

    direction = models.CharField(
        max_length=3,
        choices=Direction.choices,
        verbose_name=_('Direction'),
    )
    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        verbose_name=_('Quantity'),
        help_text=_('Always positive; direction gives the sign'),
    )

    reference_kind = models.CharField(
        max_length=32,
        choices=ReferenceKind.choices,
        verbose_name=_('Reference kind'),
    )
    reference_id = models.PositiveBigIntegerField(
        default=0,
        verbose_name=_('Reference ID'),
        help_text=_('0 = no upstream document'),
    )
    invoice_id = models.CharField(
        max_length=100,
        blank=True,
        default='',
        verbose_name=_('Vendor invoice'),
    )

    sequence = models.PositiveIntegerField(verbose_name=_('Sequence'))
    balance_after = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        verbose_name=_('Balance after'),
    )

    performed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
        verbose_name=_('Performed by'),
    )
    occurred_at = models.DateTimeField(default=timezone.now, verbose_name=_('Occurred at'))
    notes = models.TextField(blank=True, default='', verbose_name=_('Notes'))

    objects = StockMovementQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock movement')
        verbose_name_plural = _('Stock movements')
        ordering = ['material_id', 'project_id', 'sequence']
        constraints = [
            models.UniqueConstraint(
                fields=['material_id', 'project_id', 'sequence'],
                name='unique_movement_sequence',
            ),
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name='movement_quantity_positive',
            ),
            models.CheckConstraint(
                condition=Q(balance_after__gte=0),
                name='movement_balance_not_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['material_id', 'project_id', 'occurred_at'], name='buildman_move_pair_time_idx'),
            models.Index(fields=['reference_kind', 'reference_id'], name='buildman_move_reference_idx'),
            models.Index(fields=['project_id', 'direction'], name='buildman_move_proj_dir_idx'),
        ]

    @property
    def signed_quantity(self) -> Decimal:
        """Quantity with sign (+ in, - out)."""
        return self.quantity if self.direction == Direction.IN else -self.quantity

    def save(self, *args, **kwargs):
        """Insert only."""
        if self.pk:
            raise ValueError(
                "Stock movements are immutable. "
                "Record an offsetting movement instead."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        """Prevent deletion — movements are immutable."""
        raise ValueError(
            "Stock movements are immutable. "
            "Record an offsetting movement instead."
        )

    def __str__(self) -> str:
        signal = '+' if self.direction == Direction.IN else '-'
        return (
            f"{signal}{self.quantity} m{self.material_id}@p{self.project_id} "
            f"→ {self.balance_after}"
        )
