"""
Consumption standards — per-project BOQ baselines.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction

from buildman.exceptions import StockError
from buildman.models.standard import ConsumptionStandard
from buildman.services.movements import MAX_QUANTITY

logger = logging.getLogger('buildman')


def _as_decimal(value, code: str) -> Decimal:
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise StockError(code, value=value)

    if not number.is_finite():
        raise StockError(code, value=value)
    return number


class ConsumptionStandards:
    """Registry of expected consumption per (project, material)."""

    @classmethod
    def upsert_standard(cls, project_id: int, material_id: int, standard_quantity,
                        unit: str, tolerance_fraction, *,
                        description: str = '') -> ConsumptionStandard:
        """
        Create or overwrite the standard of a pair.

        Calling twice with the same arguments leaves one row with those values.

        Raises:
            StockError('INVALID_TOLERANCE'): tolerance outside [0, 1]
            StockError('INVALID_QUANTITY'): negative or oversized standard quantity
        """
        tolerance = _as_decimal(tolerance_fraction, 'INVALID_TOLERANCE')
        if tolerance < 0 or tolerance > 1:
            raise StockError('INVALID_TOLERANCE', tolerance=tolerance)

        quantity = _as_decimal(standard_quantity, 'INVALID_QUANTITY')
        if quantity < 0 or quantity > MAX_QUANTITY:
            raise StockError('INVALID_QUANTITY', requested=quantity)

        defaults = {
            'standard_quantity': quantity,
            'unit': unit or '',
            'tolerance_fraction': tolerance,
            'description': description or '',
        }

        try:
            with transaction.atomic():
                standard, created = ConsumptionStandard.objects.update_or_create(
                    project_id=project_id,
                    material_id=material_id,
                    defaults=defaults,
                )
        except IntegrityError:
            # Lost the insert race; the row exists now.
            with transaction.atomic():
                standard = ConsumptionStandard.objects.select_for_update().get(
                    project_id=project_id, material_id=material_id,
                )
                for field, value in defaults.items():
                    setattr(standard, field, value)
                standard.save()
            created = False

        logger.info(
            "standard.upsert",
            extra={
                "project_id": project_id,
                "material_id": material_id,
                "standard_quantity": str(quantity),
                "tolerance": str(tolerance),
                "created": created,
            },
        )
        return standard

    @classmethod
    def get_standard(cls, project_id: int, material_id: int) -> ConsumptionStandard | None:
        return ConsumptionStandard.objects.filter(
            project_id=project_id, material_id=material_id,
        ).first()

    @classmethod
    def list_standards(cls, project_id: int) -> list[ConsumptionStandard]:
        """All standards of a project, by material."""
        return list(
            ConsumptionStandard.objects.filter(project_id=project_id).order_by('material_id')
        )
