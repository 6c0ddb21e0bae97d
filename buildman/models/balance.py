"""
StockBalance model — Current quantity cache per (material, project).
"""

import logging
from decimal import Decimal

from django.db import models
from django.db.models import Q, Sum
from django.db.models.functions import Coalesce
from django.utils.translation import gettext_lazy as _

from buildman.models.enums import Direction

logger = logging.getLogger('buildman')


class StockBalanceQuerySet(models.QuerySet):
    """QuerySet with balance filters."""

    def for_pair(self, project_id: int, material_id: int):
        return self.filter(project_id=project_id, material_id=material_id)

    def for_project(self, project_id: int):
        return self.filter(project_id=project_id)

    def in_stock(self):
        """Only pairs with quantity on hand."""
        return self.filter(quantity__gt=0)


class StockBalance(models.Model):
    """
    On-hand quantity of a material within a project.

    The ledger (StockMovement) is the source of truth. This row is a read
    cache that the stock service rewrites in the same transaction as every
    movement, and the row the service locks to serialize writers of the
    pair.

    Performance:
    - Read is O(1), not O(N)
    - Use recalculate() for audit/correction
    """

    material_id = models.PositiveBigIntegerField(verbose_name=_('Material'))
    project_id = models.PositiveBigIntegerField(verbose_name=_('Project'))

    quantity = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal('0'),
        verbose_name=_('Quantity'),
    )
    last_sequence = models.PositiveIntegerField(
        default=0,
        verbose_name=_('Last sequence'),
        help_text=_('Sequence of the latest movement (0 = none)'),
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = StockBalanceQuerySet.as_manager()

    class Meta:
        verbose_name = _('Stock balance')
        verbose_name_plural = _('Stock balances')
        constraints = [
            models.UniqueConstraint(
                fields=['material_id', 'project_id'],
                name='unique_balance_pair',
            ),
            models.CheckConstraint(
                condition=Q(quantity__gte=0),
                name='balance_not_negative',
            ),
        ]
        indexes = [
            models.Index(fields=['project_id'], name='buildman_balance_project_idx'),
        ]

    def ledger_total(self) -> Decimal:
        """Sum of IN minus sum of OUT for this pair, straight from the ledger."""
        from buildman.models.movement import StockMovement

        totals = StockMovement.objects.for_pair(
            self.project_id, self.material_id
        ).aggregate(
            inbound=Coalesce(Sum('quantity', filter=Q(direction=Direction.IN)), Decimal('0')),
            outbound=Coalesce(Sum('quantity', filter=Q(direction=Direction.OUT)), Decimal('0')),
        )
        return totals['inbound'] - totals['outbound']

    def recalculate(self) -> Decimal:
        """
        Recalculate quantity from the ledger.

        Use for:
        - Integrity audit
        - Correction after detected inconsistency

        Returns:
            New calculated quantity
        """
        from buildman.models.movement import StockMovement

        total = self.ledger_total()
        last = StockMovement.objects.for_pair(
            self.project_id, self.material_id
        ).order_by('-sequence').values_list('sequence', flat=True).first() or 0

        if total != self.quantity or last != self.last_sequence:
            old = self.quantity
            self.quantity = total
            self.last_sequence = last
            self.save(update_fields=['quantity', 'last_sequence', 'updated_at'])

            logger.warning(
                "stock.balance.recalculated",
                extra={
                    "balance_id": self.pk,
                    "material_id": self.material_id,
                    "project_id": self.project_id,
                    "old": str(old),
                    "new": str(total),
                },
            )

        return total

    def __str__(self) -> str:
        return f"m{self.material_id}@p{self.project_id}: {self.quantity}"
