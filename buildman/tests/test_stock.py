"""
Tests for the stock ledger API.
"""

import logging
from decimal import Decimal
from io import StringIO

import pytest
from django.core.management import call_command

from buildman import Reference, StockError, stock
from buildman.models import Direction, ReferenceKind, StockBalance, StockMovement
from buildman.protocols.costs import PurchaseOrderLine, PurchaseOrderStatus, PurchaseOrderTotal
from buildman.services.movements import MAX_QUANTITY


pytestmark = pytest.mark.django_db


class TestRecordInbound:
    """Tests for stock.record_inbound()."""

    def test_inbound_then_outbound(self, project, cement):
        """100 in, 30 out leaves 70 and the last movement says so."""
        stock.record_inbound(project, cement, Decimal('100'), Reference.purchase_order(1))
        assert stock.get_balance(project, cement) == Decimal('100')

        movement = stock.record_outbound(project, cement, Decimal('30'), Reference.task(7))

        assert stock.get_balance(project, cement) == Decimal('70')
        assert movement.balance_after == Decimal('70')
        assert movement.direction == Direction.OUT

    def test_inbound_creates_movement_and_balance(self, project, cement, user):
        """First inbound creates the balance row and sequence 1."""
        movement = stock.record_inbound(
            project, cement, Decimal('40'), Reference.purchase_order(3),
            user=user, invoice_id='INV-778', notes='Morning delivery',
        )

        assert movement.sequence == 1
        assert movement.reference_kind == ReferenceKind.PURCHASE_ORDER
        assert movement.reference_id == 3
        assert movement.invoice_id == 'INV-778'
        assert movement.performed_by == user

        balance = StockBalance.objects.get(project_id=project, material_id=cement)
        assert balance.quantity == Decimal('40')
        assert balance.last_sequence == 1

    def test_sequence_increases_per_pair(self, project, cement, steel):
        """Sequences are counted per (project, material)."""
        first = stock.record_inbound(project, cement, 5, Reference.manual())
        second = stock.record_inbound(project, cement, 5, Reference.manual())
        other = stock.record_inbound(project, steel, 5, Reference.manual())

        assert (first.sequence, second.sequence) == (1, 2)
        assert other.sequence == 1

    @pytest.mark.parametrize('quantity', [
        Decimal('0'), Decimal('-5'), 'abc', None,
        Decimal('NaN'), 'nan', float('nan'), Decimal('Infinity'),
    ])
    def test_inbound_invalid_quantity(self, project, cement, quantity):
        """Quantity must be a positive finite number."""
        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, cement, quantity, Reference.manual())

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not StockMovement.objects.exists()

    @pytest.mark.parametrize('quantity', [Decimal('0.0006'), Decimal('2.5004'), '0.0001'])
    def test_inbound_finer_than_three_places(self, project, cement, quantity):
        """Quantities are kept to 0.001 and never rounded on the way in."""
        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, cement, quantity, Reference.manual())

        assert exc.value.code == 'INVALID_QUANTITY'
        assert stock.get_balance(project, cement) == Decimal('0')

    def test_inbound_beyond_column_capacity(self, project, cement):
        """A quantity the balance column cannot hold is rejected before writing."""
        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, cement, Decimal('1e15'), Reference.manual())

        assert exc.value.code == 'INVALID_QUANTITY'
        assert not StockMovement.objects.exists()
        assert stock.get_balance(project, cement) == Decimal('0')

    def test_inbound_cannot_push_balance_past_capacity(self, project, cement):
        """The largest storable balance is accepted, one more unit is not."""
        stock.record_inbound(project, cement, MAX_QUANTITY, Reference.manual())

        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, cement, 1, Reference.manual())

        assert exc.value.code == 'INVALID_QUANTITY'
        assert exc.value.data['available'] == MAX_QUANTITY
        assert stock.get_balance(project, cement) == MAX_QUANTITY
        assert StockMovement.objects.count() == 1

    def test_manual_reference_without_document(self, project, cement):
        """Manual entries carry reference id 0."""
        movement = stock.record_inbound(project, cement, 10, Reference.manual())

        assert movement.reference_kind == ReferenceKind.MANUAL_ADJUSTMENT
        assert movement.reference_id == 0

    def test_invalid_reference(self, project, cement):
        """Unknown reference kinds and negative ids are rejected."""
        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, cement, 10, Reference('gift', 1))
        assert exc.value.code == 'INVALID_REFERENCE'

        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, cement, 10, Reference.task(-1))
        assert exc.value.code == 'INVALID_REFERENCE'

    def test_fractional_quantities(self, project, steel):
        """Quantities keep three decimal places."""
        stock.record_inbound(project, steel, Decimal('12.5'), Reference.manual())
        stock.record_outbound(project, steel, Decimal('0.25'), Reference.task(2))

        assert stock.get_balance(project, steel) == Decimal('12.250')

    def test_projects_are_isolated(self, project, other_project, cement):
        """Stock in one project is not visible in another."""
        stock.record_inbound(project, cement, 100, Reference.manual())

        assert stock.get_balance(other_project, cement) == Decimal('0')
        with pytest.raises(StockError) as exc:
            stock.record_outbound(other_project, cement, 1, Reference.task(1))
        assert exc.value.code == 'INSUFFICIENT_STOCK'


class TestRecordOutbound:
    """Tests for stock.record_outbound()."""

    def test_outbound_insufficient_stock(self, project, cement):
        """80 out against 70 fails and writes nothing."""
        stock.record_inbound(project, cement, Decimal('100'), Reference.purchase_order(1))
        stock.record_outbound(project, cement, Decimal('30'), Reference.task(7))

        with pytest.raises(StockError) as exc:
            stock.record_outbound(project, cement, Decimal('80'), Reference.task(8))

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('70')
        assert exc.value.requested == Decimal('80')
        assert stock.get_balance(project, cement) == Decimal('70')
        assert StockMovement.objects.for_pair(project, cement).count() == 2

    def test_outbound_exact_balance(self, project, cement):
        """Taking everything leaves zero, never below."""
        stock.record_inbound(project, cement, 25, Reference.manual())
        movement = stock.record_outbound(project, cement, 25, Reference.task(1))

        assert movement.balance_after == Decimal('0')
        assert stock.get_balance(project, cement) == Decimal('0')

    def test_outbound_without_any_stock(self, project, sand):
        """A pair that never received stock has nothing to issue."""
        with pytest.raises(StockError) as exc:
            stock.record_outbound(project, sand, 1, Reference.task(1))

        assert exc.value.code == 'INSUFFICIENT_STOCK'
        assert exc.value.available == Decimal('0')

    def test_consume_for_task(self, project, cement):
        """Task consumption is an OUT linked to the task."""
        stock.record_inbound(project, cement, 50, Reference.manual())
        movement = stock.consume_for_task(project, cement, task_id=44, quantity=Decimal('12'))

        assert movement.direction == Direction.OUT
        assert movement.reference_kind == ReferenceKind.TASK_CONSUMPTION
        assert movement.reference_id == 44
        assert movement.notes == 'Consumed by task #44'
        assert stock.consumed(project, cement) == Decimal('12')

    def test_error_as_dict(self, project, cement):
        """StockError serializes its context."""
        with pytest.raises(StockError) as exc:
            stock.record_outbound(project, cement, Decimal('5'), Reference.task(1))

        data = exc.value.as_dict()
        assert data['code'] == 'INSUFFICIENT_STOCK'
        assert data['data']['requested'] == '5.000'


class TestLedgerIntegrity:
    """The cached balance always equals the ledger."""

    def test_balance_matches_ledger(self, project, cement):
        """get_balance() == sum(IN) - sum(OUT) after any sequence of writes."""
        stock.record_inbound(project, cement, 100, Reference.purchase_order(1))
        stock.record_outbound(project, cement, Decimal('33.3'), Reference.task(1))
        stock.record_inbound(project, cement, Decimal('0.7'), Reference.manual())
        stock.record_outbound(project, cement, 50, Reference.task(2))

        assert stock.get_balance(project, cement) == stock.ledger_balance(project, cement)
        assert stock.get_balance(project, cement) == Decimal('17.4')

    def test_balance_after_chain(self, project, cement):
        """Each movement's balance_after follows from the previous one."""
        stock.record_inbound(project, cement, 10, Reference.manual())
        stock.record_outbound(project, cement, 4, Reference.task(1))
        stock.record_inbound(project, cement, 6, Reference.manual())

        previous = Decimal('0')
        for movement in StockMovement.objects.for_pair(project, cement).order_by('sequence'):
            assert movement.balance_after == previous + movement.signed_quantity
            previous = movement.balance_after

    def test_movement_is_immutable(self, project, cement):
        """Saved movements cannot be edited or deleted."""
        movement = stock.record_inbound(project, cement, 10, Reference.manual())

        movement.quantity = Decimal('99')
        with pytest.raises(ValueError):
            movement.save()

        with pytest.raises(ValueError):
            movement.delete()

        assert StockMovement.objects.get(pk=movement.pk).quantity == Decimal('10')


class TestListMovements:
    """Tests for stock.list_movements()."""

    def test_newest_first(self, project, cement):
        """History is ordered by time, newest first."""
        stock.record_inbound(project, cement, 10, Reference.manual())
        stock.record_outbound(project, cement, 3, Reference.task(1))
        stock.record_inbound(project, cement, 8, Reference.manual())

        history = stock.list_movements(project, cement)

        assert [m.sequence for m in history] == [3, 2, 1]

    def test_limit(self, project, cement):
        """Limit keeps only the newest N."""
        for _ in range(5):
            stock.record_inbound(project, cement, 1, Reference.manual())

        history = stock.list_movements(project, cement, limit=2)

        assert [m.sequence for m in history] == [5, 4]

    def test_all_materials_of_project(self, project, other_project, cement, steel):
        """Without material_id every material of the project is listed."""
        stock.record_inbound(project, cement, 1, Reference.manual())
        stock.record_inbound(project, steel, 1, Reference.manual())
        stock.record_inbound(other_project, cement, 1, Reference.manual())

        history = stock.list_movements(project)

        assert {m.material_id for m in history} == {cement, steel}
        assert all(m.project_id == project for m in history)

    def test_list_balances_skips_empty(self, project, cement, steel):
        """Only pairs with stock on hand are listed by default."""
        stock.record_inbound(project, cement, 5, Reference.manual())
        stock.record_inbound(project, steel, 5, Reference.manual())
        stock.record_outbound(project, steel, 5, Reference.task(1))

        assert [b.material_id for b in stock.list_balances(project)] == [cement]
        assert stock.list_balances(project, include_empty=True).count() == 2


class TestAdjust:
    """Tests for stock.adjust()."""

    def test_adjust_down(self, project, cement, user):
        """Physical count below the books records an OUT for the difference."""
        stock.record_inbound(project, cement, 70, Reference.manual())

        movement = stock.adjust(project, cement, Decimal('65'), 'Monthly count', user=user)

        assert movement.direction == Direction.OUT
        assert movement.quantity == Decimal('5')
        assert movement.reference_kind == ReferenceKind.MANUAL_ADJUSTMENT
        assert movement.notes == 'Adjustment: Monthly count'
        assert stock.get_balance(project, cement) == Decimal('65')

    def test_adjust_up(self, project, cement):
        """Physical count above the books records an IN."""
        movement = stock.adjust(project, cement, 12, 'Found in store room')

        assert movement.direction == Direction.IN
        assert stock.get_balance(project, cement) == Decimal('12')

    def test_adjust_no_change(self, project, cement):
        """Matching count writes nothing."""
        stock.record_inbound(project, cement, 20, Reference.manual())

        assert stock.adjust(project, cement, 20, 'Count') is None
        assert StockMovement.objects.count() == 1

    def test_adjust_requires_reason(self, project, cement):
        with pytest.raises(StockError) as exc:
            stock.adjust(project, cement, 10, '')

        assert exc.value.code == 'REASON_REQUIRED'

    def test_adjust_negative_count(self, project, cement):
        with pytest.raises(StockError) as exc:
            stock.adjust(project, cement, -1, 'Count')

        assert exc.value.code == 'INVALID_QUANTITY'


class TestReceivePurchaseOrder:
    """Tests for stock.receive_purchase_order()."""

    def _order(self, project, status, *lines):
        return PurchaseOrderTotal(
            po_id=12,
            project_id=project,
            status=status,
            total_amount=Decimal('48000'),
            po_number='PO-0012',
            lines=tuple(PurchaseOrderLine(m, Decimal(q)) for m, q in lines),
        )

    def test_receive_all_lines(self, project, cement, steel, user):
        """Every line becomes an IN movement referencing the PO."""
        order = self._order(project, 'approved', (cement, '50'), (steel, '500'))

        movements = stock.receive_purchase_order(order, 'INV-2024-118', user=user)

        assert len(movements) == 2
        assert all(m.reference_kind == ReferenceKind.PURCHASE_ORDER for m in movements)
        assert all(m.reference_id == 12 for m in movements)
        assert all(m.invoice_id == 'INV-2024-118' for m in movements)
        assert movements[0].notes == 'Stock IN from PO #PO-0012'
        assert stock.get_balance(project, cement) == Decimal('50')
        assert stock.get_balance(project, steel) == Decimal('500')

    def test_receive_delivered_enum_status(self, project, cement):
        """Status may be given as the enum."""
        order = self._order(project, PurchaseOrderStatus.DELIVERED, (cement, '10'))

        stock.receive_purchase_order(order, 'INV-1')

        assert stock.get_balance(project, cement) == Decimal('10')

    @pytest.mark.parametrize('status', ['created', 'closed'])
    def test_receive_wrong_status(self, project, cement, status):
        """Drafts and closed orders cannot be received."""
        order = self._order(project, status, (cement, '10'))

        with pytest.raises(StockError) as exc:
            stock.receive_purchase_order(order, 'INV-1')

        assert exc.value.code == 'INVALID_STATUS'
        assert not StockMovement.objects.exists()

    def test_receive_is_all_or_nothing(self, catalog, project, cement):
        """A failing line rolls back the lines before it."""
        order = self._order(project, 'approved', (cement, '50'), (999, '5'))

        with pytest.raises(StockError) as exc:
            stock.receive_purchase_order(order, 'INV-1')

        assert exc.value.code == 'NOT_FOUND'
        assert stock.get_balance(project, cement) == Decimal('0')
        assert not StockMovement.objects.exists()

    def test_receive_logs_after_commit(self, caplog, project, cement, steel):
        """One stock.inbound per line, then stock.po.received."""
        order = self._order(project, 'approved', (cement, '50'), (steel, '500'))

        with caplog.at_level(logging.INFO, logger='buildman'):
            stock.receive_purchase_order(order, 'INV-7')

        events = [r.getMessage() for r in caplog.records if r.name == 'buildman']
        assert events == ['stock.inbound', 'stock.inbound', 'stock.po.received']

    def test_rolled_back_order_logs_no_movements(self, caplog, catalog, project, cement):
        """Lines undone by a later failure are not reported as received."""
        order = self._order(project, 'approved', (cement, '50'), (999, '5'))

        with caplog.at_level(logging.INFO, logger='buildman'):
            with pytest.raises(StockError):
                stock.receive_purchase_order(order, 'INV-1')

        events = [r.getMessage() for r in caplog.records]
        assert 'stock.inbound' not in events
        assert 'stock.po.received' not in events


class TestCatalogValidation:
    """Unknown ids are rejected when validation is on."""

    def test_unknown_material(self, catalog, project):
        with pytest.raises(StockError) as exc:
            stock.record_inbound(project, 999, 10, Reference.manual())

        assert exc.value.code == 'NOT_FOUND'
        assert exc.value.data == {'material_id': 999}

    def test_unknown_project(self, catalog, cement):
        with pytest.raises(StockError) as exc:
            stock.record_inbound(77, cement, 10, Reference.manual())

        assert exc.value.code == 'NOT_FOUND'
        assert exc.value.data == {'project_id': 77}

    def test_validation_disabled(self, catalog, settings, project):
        """VALIDATE_INPUT_MATERIALS=False trusts the caller."""
        settings.BUILDMAN = {'VALIDATE_INPUT_MATERIALS': False}

        stock.record_inbound(project, 999, 10, Reference.manual())

        assert stock.get_balance(project, 999) == Decimal('10')


class TestReconcile:
    """Tests for stock.reconcile() and the reconcile_stock_balances command."""

    def _corrupt(self, project, material, quantity):
        StockBalance.objects.for_pair(project, material).update(quantity=Decimal(quantity))

    def test_reconcile_clean_ledger(self, project, cement):
        stock.record_inbound(project, cement, 10, Reference.manual())

        assert stock.reconcile() == []

    def test_reconcile_repairs_drift(self, project, cement):
        """A tampered cache is reset to the ledger total."""
        stock.record_inbound(project, cement, 10, Reference.manual())
        self._corrupt(project, cement, '3')

        drifted = stock.reconcile()

        assert len(drifted) == 1
        _, cached, ledger = drifted[0]
        assert cached == Decimal('3')
        assert ledger == Decimal('10')
        assert stock.get_balance(project, cement) == Decimal('10')

    def test_reconcile_dry_run(self, project, cement):
        """Dry run reports without repairing."""
        stock.record_inbound(project, cement, 10, Reference.manual())
        self._corrupt(project, cement, '3')

        assert len(stock.reconcile(dry_run=True)) == 1
        assert stock.get_balance(project, cement) == Decimal('3')

    def test_reconcile_single_project(self, project, other_project, cement):
        stock.record_inbound(project, cement, 10, Reference.manual())
        stock.record_inbound(other_project, cement, 10, Reference.manual())
        self._corrupt(project, cement, '1')
        self._corrupt(other_project, cement, '1')

        drifted = stock.reconcile(project_id=other_project)

        assert [b.project_id for b, _, _ in drifted] == [other_project]
        assert stock.get_balance(project, cement) == Decimal('1')

    def test_command(self, project, cement):
        stock.record_inbound(project, cement, 10, Reference.manual())
        self._corrupt(project, cement, '4')
        out = StringIO()

        call_command('reconcile_stock_balances', '--dry-run', stdout=out)
        assert '1 balance(s) would be repaired' in out.getvalue()
        assert stock.get_balance(project, cement) == Decimal('4')

        call_command('reconcile_stock_balances', stdout=out)
        assert '1 balance(s) repaired' in out.getvalue()
        assert stock.get_balance(project, cement) == Decimal('10')
