"""
Stock movements — state-changing ledger operations (inbound, outbound, adjust).

All writes for one (project, material) pair run under transaction.atomic()
with the pair's StockBalance row locked, so the balance_after chain is a
single serial sequence. Different pairs never wait on each other.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, OperationalError, transaction

from buildman.adapters.loader import get_catalog
from buildman.conf import buildman_settings
from buildman.exceptions import StockError
from buildman.models.balance import StockBalance
from buildman.models.enums import Direction, ReferenceKind
from buildman.models.movement import StockMovement
from buildman.protocols.costs import PurchaseOrderStatus, PurchaseOrderTotal

logger = logging.getLogger('buildman')

QUANTITY_STEP = Decimal('0.001')

# Largest value DecimalField(max_digits=14, decimal_places=3) can hold
MAX_QUANTITY = Decimal('99999999999.999')

# Purchase orders whose goods may be received into stock
RECEIVABLE_PO_STATUSES = frozenset({
    PurchaseOrderStatus.APPROVED.value,
    PurchaseOrderStatus.DELIVERED.value,
})


@dataclass(frozen=True)
class Reference:
    """Upstream document behind a movement. id=0 means none."""

    kind: str
    id: int = 0

    @classmethod
    def purchase_order(cls, po_id: int) -> 'Reference':
        return cls(ReferenceKind.PURCHASE_ORDER, po_id)

    @classmethod
    def task(cls, task_id: int) -> 'Reference':
        return cls(ReferenceKind.TASK_CONSUMPTION, task_id)

    @classmethod
    def manual(cls, document_id: int = 0) -> 'Reference':
        return cls(ReferenceKind.MANUAL_ADJUSTMENT, document_id)


def _as_quantity(value, *, allow_zero: bool = False) -> Decimal:
    """
    Coerce to a 3-place Decimal.

    Raises INVALID_QUANTITY for non-numbers, NaN/Infinity, values finer than
    QUANTITY_STEP, values above MAX_QUANTITY, negatives, and zero unless
    allow_zero.
    """
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value))
        exact = quantity.is_finite() and quantity == quantity.quantize(QUANTITY_STEP)
    except (InvalidOperation, TypeError, ValueError):
        raise StockError('INVALID_QUANTITY', requested=value)

    if not exact or quantity > MAX_QUANTITY:
        raise StockError('INVALID_QUANTITY', requested=value)
    if quantity < 0 or (quantity == 0 and not allow_zero):
        raise StockError('INVALID_QUANTITY', requested=quantity)
    return quantity.quantize(QUANTITY_STEP)


def _check_reference(reference: Reference) -> None:
    if reference.kind not in ReferenceKind.values:
        raise StockError('INVALID_REFERENCE', reference_kind=reference.kind)
    if reference.id is None or reference.id < 0:
        raise StockError('INVALID_REFERENCE', reference_id=reference.id)


def _check_catalog(project_id: int, material_id: int) -> None:
    """Unknown project or material raises NOT_FOUND (when validation is enabled)."""
    if not buildman_settings.VALIDATE_INPUT_MATERIALS:
        return

    catalog = get_catalog()
    if catalog.get_project(project_id) is None:
        raise StockError('NOT_FOUND', project_id=project_id)
    if catalog.get_material(material_id) is None:
        raise StockError('NOT_FOUND', material_id=material_id)


class StockMovements:
    """State-changing stock movement methods."""

    # ══════════════════════════════════════════════════════════════
    # LEDGER PRIMITIVES
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def _retrying(cls, operation, project_id: int, material_id: int):
        """
        Run a write, retrying on database-level conflicts.

        IntegrityError (a concurrent writer took the balance row or the next
        sequence) and OperationalError (serialization failure, deadlock,
        locked database) are retried up to MAX_WRITE_RETRIES attempts.
        StockError is never retried.
        """
        attempts = max(1, int(buildman_settings.MAX_WRITE_RETRIES))

        for attempt in range(1, attempts + 1):
            try:
                return operation()
            except (IntegrityError, OperationalError) as exc:
                if attempt == attempts:
                    raise StockError(
                        'CONCURRENT_MODIFICATION',
                        project_id=project_id,
                        material_id=material_id,
                        attempts=attempts,
                    ) from exc
                logger.warning(
                    "stock.retry",
                    extra={
                        "project_id": project_id,
                        "material_id": material_id,
                        "attempt": attempt,
                        "error": str(exc),
                    },
                )

    @classmethod
    def _lock_balance(cls, project_id: int, material_id: int) -> StockBalance:
        """Get (or create) the pair's balance row and lock it. Call inside atomic()."""
        balance, _ = StockBalance.objects.get_or_create(
            project_id=project_id,
            material_id=material_id,
        )
        return StockBalance.objects.select_for_update().get(pk=balance.pk)

    @classmethod
    def _append(cls, balance: StockBalance, direction: str, quantity: Decimal,
                reference: Reference, user=None, notes: str = '',
                invoice_id: str = '') -> StockMovement:
        """Write the next movement of a locked balance and move the cache with it."""
        current = balance.quantity

        if direction == Direction.OUT:
            if quantity > current:
                logger.info(
                    "stock.outbound.rejected",
                    extra={
                        "project_id": balance.project_id,
                        "material_id": balance.material_id,
                        "available": str(current),
                        "requested": str(quantity),
                    },
                )
                raise StockError(
                    'INSUFFICIENT_STOCK',
                    available=current,
                    requested=quantity,
                    project_id=balance.project_id,
                    material_id=balance.material_id,
                )
            new_balance = current - quantity
        else:
            new_balance = current + quantity
            if new_balance > MAX_QUANTITY:
                raise StockError(
                    'INVALID_QUANTITY',
                    available=current,
                    requested=quantity,
                    project_id=balance.project_id,
                    material_id=balance.material_id,
                )

        sequence = balance.last_sequence + 1
        movement = StockMovement.objects.create(
            material_id=balance.material_id,
            project_id=balance.project_id,
            direction=direction,
            quantity=quantity,
            reference_kind=reference.kind,
            reference_id=reference.id,
            invoice_id=invoice_id or '',
            sequence=sequence,
            balance_after=new_balance,
            performed_by=user,
            notes=notes or '',
        )

        balance.quantity = new_balance
        balance.last_sequence = sequence
        balance.save(update_fields=['quantity', 'last_sequence', 'updated_at'])
        return movement

    @classmethod
    def _write(cls, direction: str, project_id: int, material_id: int, quantity,
               reference: Reference, user=None, notes: str = '',
               invoice_id: str = '') -> StockMovement:
        """Validate and write one movement (with retries). Does not log."""
        quantity = _as_quantity(quantity)
        _check_reference(reference)
        _check_catalog(project_id, material_id)

        def write():
            with transaction.atomic():
                balance = cls._lock_balance(project_id, material_id)
                return cls._append(
                    balance, direction, quantity, reference,
                    user=user, notes=notes, invoice_id=invoice_id,
                )

        return cls._retrying(write, project_id, material_id)

    @staticmethod
    def _log_movement(movement: StockMovement) -> None:
        logger.info(
            f"stock.{'inbound' if movement.direction == Direction.IN else 'outbound'}",
            extra={
                "project_id": movement.project_id,
                "material_id": movement.material_id,
                "qty": str(movement.quantity),
                "balance_after": str(movement.balance_after),
                "reference": f"{movement.reference_kind}:{movement.reference_id}",
                "movement_id": movement.pk,
            },
        )

    @classmethod
    def _record(cls, direction: str, project_id: int, material_id: int, quantity,
                reference: Reference, user=None, notes: str = '',
                invoice_id: str = '') -> StockMovement:
        movement = cls._write(
            direction, project_id, material_id, quantity, reference,
            user=user, notes=notes, invoice_id=invoice_id,
        )
        cls._log_movement(movement)
        return movement

    # ══════════════════════════════════════════════════════════════
    # CORE: MOVEMENTS
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def record_inbound(cls, project_id: int, material_id: int, quantity,
                       reference: Reference, *, user=None, notes: str = '',
                       invoice_id: str = '') -> StockMovement:
        """
        Stock entry.

        Raises:
            StockError('INVALID_QUANTITY'): quantity <= 0, not a finite 3-place number, or the
                balance would exceed MAX_QUANTITY
            StockError('NOT_FOUND'): Unknown project/material
            StockError('CONCURRENT_MODIFICATION'): Retries exhausted

        Concurrency:
            - Runs under transaction.atomic()
            - Locks the pair's StockBalance with select_for_update()
            - Movement and balance are written together
        """
        return cls._record(
            Direction.IN, project_id, material_id, quantity, reference,
            user=user, notes=notes, invoice_id=invoice_id,
        )

    @classmethod
    def record_outbound(cls, project_id: int, material_id: int, quantity,
                        reference: Reference, *, user=None,
                        notes: str = '') -> StockMovement:
        """
        Stock exit.

        Raises:
            StockError('INSUFFICIENT_STOCK'): If quantity > current balance
            StockError('INVALID_QUANTITY'): If quantity <= 0

        Concurrency:
            - Runs under transaction.atomic()
            - Uses select_for_update() on the pair's StockBalance
            - Verifies the balance after the lock
        """
        return cls._record(
            Direction.OUT, project_id, material_id, quantity, reference,
            user=user, notes=notes,
        )

    @classmethod
    def consume_for_task(cls, project_id: int, material_id: int, task_id: int,
                         quantity, *, user=None) -> StockMovement:
        """Task-linked consumption (OUT)."""
        return cls.record_outbound(
            project_id, material_id, quantity, Reference.task(task_id),
            user=user, notes=f"Consumed by task #{task_id}",
        )

    @classmethod
    def receive_purchase_order(cls, order: PurchaseOrderTotal, invoice_id: str,
                               *, user=None) -> list[StockMovement]:
        """
        Stock IN for every line of a purchase order.

        All lines commit together or not at all.

        Raises:
            StockError('INVALID_STATUS'): PO is a draft or already closed
            StockError('INVALID_QUANTITY'): A line has quantity <= 0
        """
        status = str(getattr(order.status, 'value', order.status)).lower()
        if status not in RECEIVABLE_PO_STATUSES:
            raise StockError(
                'INVALID_STATUS',
                po_id=order.po_id,
                current=status,
                expected=sorted(RECEIVABLE_PO_STATUSES),
            )

        lines = [(line.material_id, _as_quantity(line.quantity)) for line in order.lines]
        label = order.po_number or order.po_id
        movements = []

        with transaction.atomic():
            for material_id, quantity in lines:
                movements.append(cls._write(
                    Direction.IN, order.project_id, material_id, quantity,
                    Reference.purchase_order(order.po_id),
                    user=user,
                    invoice_id=invoice_id,
                    notes=f"Stock IN from PO #{label}",
                ))

        # Nothing is logged for an order that rolled back
        for movement in movements:
            cls._log_movement(movement)

        logger.info(
            "stock.po.received",
            extra={
                "po_id": order.po_id,
                "project_id": order.project_id,
                "lines": len(movements),
                "invoice_id": invoice_id,
            },
        )
        return movements

    @classmethod
    def adjust(cls, project_id: int, material_id: int, new_quantity,
               reason: str, *, user=None) -> StockMovement | None:
        """
        Inventory adjustment after a physical count.

        Calculates delta under lock: new_quantity - current balance, and
        records it as an IN or OUT manual adjustment (reference id 0).

        Returns:
            The offsetting movement, or None when the count matches.

        Raises:
            StockError('REASON_REQUIRED'): If reason is empty
            StockError('INVALID_QUANTITY'): If new_quantity < 0
        """
        if not reason:
            raise StockError('REASON_REQUIRED')

        target = _as_quantity(new_quantity, allow_zero=True)
        _check_catalog(project_id, material_id)

        def write():
            with transaction.atomic():
                balance = cls._lock_balance(project_id, material_id)
                delta = target - balance.quantity

                if delta == 0:
                    return None

                direction = Direction.IN if delta > 0 else Direction.OUT
                return cls._append(
                    balance, direction, abs(delta), Reference.manual(),
                    user=user, notes=f"Adjustment: {reason}",
                )

        movement = cls._retrying(write, project_id, material_id)
        if movement is not None:
            logger.info(
                "stock.adjust",
                extra={
                    "project_id": project_id,
                    "material_id": material_id,
                    "delta": str(movement.signed_quantity),
                    "reason": reason,
                },
            )
        return movement

    # ══════════════════════════════════════════════════════════════
    # AUDIT
    # ══════════════════════════════════════════════════════════════

    @classmethod
    def reconcile(cls, project_id: int | None = None,
                  dry_run: bool = False) -> list[tuple[StockBalance, Decimal, Decimal]]:
        """
        Compare every cached balance with its ledger and repair drift.

        Returns:
            List of (balance, cached, ledger) for pairs that disagreed
        """
        balances = StockBalance.objects.all()
        if project_id is not None:
            balances = balances.for_project(project_id)

        drifted = []
        for pk in balances.order_by('pk').values_list('pk', flat=True):
            with transaction.atomic():
                balance = StockBalance.objects.select_for_update().get(pk=pk)
                cached = balance.quantity
                ledger = balance.ledger_total()

                if cached != ledger:
                    drifted.append((balance, cached, ledger))
                    if not dry_run:
                        balance.recalculate()

        return drifted
