"""
Stock queries — read-only operations.

All methods are classmethods on Stock and use no locking.
"""

from decimal import Decimal

from django.db.models import Q, Sum
from django.db.models.functions import Coalesce

from buildman.models.balance import StockBalance
from buildman.models.enums import Direction
from buildman.models.movement import StockMovement


class StockQueries:
    """Read-only stock query methods."""

    @classmethod
    def get_balance(cls, project_id: int, material_id: int) -> Decimal:
        """
        Current on-hand quantity of a material in a project.

        Returns:
            Decimal from the balance cache (0 when the pair has no movements)

        Performance:
            O(1), single-row read
        """
        quantity = StockBalance.objects.for_pair(
            project_id, material_id
        ).values_list('quantity', flat=True).first()
        return quantity if quantity is not None else Decimal('0')

    @classmethod
    def ledger_balance(cls, project_id: int, material_id: int) -> Decimal:
        """
        Balance computed from the ledger: sum(IN) - sum(OUT).

        Audit counterpart of get_balance(); the two always agree.
        """
        totals = StockMovement.objects.for_pair(project_id, material_id).aggregate(
            inbound=Coalesce(Sum('quantity', filter=Q(direction=Direction.IN)), Decimal('0')),
            outbound=Coalesce(Sum('quantity', filter=Q(direction=Direction.OUT)), Decimal('0')),
        )
        return totals['inbound'] - totals['outbound']

    @classmethod
    def consumed(cls, project_id: int, material_id: int) -> Decimal:
        """Lifetime OUT quantity for the pair (not the balance)."""
        return StockMovement.objects.for_pair(
            project_id, material_id
        ).outbound().aggregate(
            t=Coalesce(Sum('quantity'), Decimal('0'))
        )['t']

    @classmethod
    def list_movements(cls, project_id: int, material_id: int | None = None,
                       limit: int | None = None) -> list[StockMovement]:
        """
        Movement history, newest first.

        Args:
            project_id: Project to read
            material_id: Narrow to one material (None = all materials)
            limit: Keep only the newest N movements (None = all)
        """
        qs = StockMovement.objects.filter(project_id=project_id)

        if material_id is not None:
            qs = qs.filter(material_id=material_id)

        qs = qs.newest_first().select_related('performed_by')

        if limit:
            qs = qs[:limit]

        return list(qs)

    @classmethod
    def list_balances(cls, project_id: int | None = None,
                      include_empty: bool = False):
        """List balances with filters."""
        qs = StockBalance.objects.all()

        if project_id is not None:
            qs = qs.for_project(project_id)

        if not include_empty:
            qs = qs.in_stock()

        return qs.order_by('project_id', 'material_id')
