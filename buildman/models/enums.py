"""
Enums for Buildman models.
"""

from django.db import models
from django.utils.translation import gettext_lazy as _


class Direction(models.TextChoices):
    """
    Direction of a stock movement.

    IN:  Material arrives on site (PO delivery, positive adjustment).
    OUT: Material leaves the project store (task consumption, wastage,
         negative adjustment).
    """
    IN = 'in', _('In')
    OUT = 'out', _('Out')


class ReferenceKind(models.TextChoices):
    """Upstream document that caused a movement."""
    PURCHASE_ORDER = 'purchase_order', _('Purchase order')
    TASK_CONSUMPTION = 'task_consumption', _('Task consumption')
    MANUAL_ADJUSTMENT = 'manual_adjustment', _('Manual adjustment')


class AlertStatus(models.TextChoices):
    """Consumption against standard."""
    NORMAL = 'NORMAL', _('Normal')        # Within max allowed
    EXCEEDED = 'EXCEEDED', _('Exceeded')  # Above standard + tolerance
