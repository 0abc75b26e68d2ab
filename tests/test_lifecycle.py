from decimal import Decimal

import pytest

from restaurant import lifecycle


class TestOrderTransitions:
    def test_kitchen_flow_is_allowed(self):
        flow = [lifecycle.PENDING, lifecycle.CONFIRMED, lifecycle.PREPARING,
                lifecycle.READY, lifecycle.SERVED, lifecycle.BILLED, lifecycle.COMPLETED]
        for current, target in zip(flow, flow[1:]):
            assert lifecycle.can_transition(current, target)

    @pytest.mark.parametrize('status', sorted(lifecycle.BILLABLE_STATUSES))
    def test_billing_allowed_from_any_confirmed_state(self, status):
        assert lifecycle.can_transition(status, lifecycle.BILLED)

    def test_pending_order_cannot_be_billed(self):
        assert not lifecycle.can_transition(lifecycle.PENDING, lifecycle.BILLED)

    def test_billed_order_cannot_be_cancelled(self):
        assert not lifecycle.can_transition(lifecycle.BILLED, lifecycle.CANCELLED)

    @pytest.mark.parametrize('status', [lifecycle.COMPLETED, lifecycle.CANCELLED])
    def test_terminal_statuses_have_no_way_out(self, status):
        assert lifecycle.allowed_transitions(status) == frozenset()
        assert not lifecycle.is_active(status)

    def test_skipping_the_kitchen_is_refused(self):
        with pytest.raises(lifecycle.InvalidTransition) as excinfo:
            lifecycle.validate_transition(lifecycle.CONFIRMED, lifecycle.SERVED)
        assert excinfo.value.code == 'invalid_transition'
        assert excinfo.value.current == lifecycle.CONFIRMED
        assert excinfo.value.target == lifecycle.SERVED

    @pytest.mark.parametrize('status', [lifecycle.CONFIRMED, lifecycle.BILLED])
    def test_moving_to_the_same_status_is_refused(self, status):
        assert not lifecycle.can_transition(status, status)
        with pytest.raises(lifecycle.InvalidTransition):
            lifecycle.validate_transition(status, status)

    def test_unknown_status_has_no_transitions(self):
        assert lifecycle.allowed_transitions('lost') == frozenset()


class TestEditing:
    def test_items_editable_until_billed(self):
        assert lifecycle.is_editable(lifecycle.PENDING)
        assert lifecycle.is_editable(lifecycle.SERVED)
        assert not lifecycle.is_editable(lifecycle.BILLED)

    def test_validate_editable_raises_for_closed_order(self):
        with pytest.raises(lifecycle.OrderNotEditable):
            lifecycle.validate_editable(lifecycle.COMPLETED)


class TestTotals:
    def test_total_is_sum_of_lines(self):
        total = lifecycle.calculate_total([(Decimal('10.00'), 2), (Decimal('2.50'), 1)])
        assert total == Decimal('22.50')

    def test_total_accepts_floats_and_rounds_to_cents(self):
        assert lifecycle.calculate_total([(0.1, 3)]) == Decimal('0.30')

    def test_empty_order_totals_zero(self):
        assert lifecycle.calculate_total([]) == Decimal('0.00')


class TestTableRules:
    @pytest.mark.parametrize('status', [lifecycle.TABLE_AVAILABLE, lifecycle.TABLE_RESERVED, lifecycle.TABLE_OCCUPIED])
    def test_placing_an_order_occupies_the_table(self, status):
        assert lifecycle.occupy_status(status) == lifecycle.TABLE_OCCUPIED

    def test_table_in_maintenance_cannot_take_orders(self):
        with pytest.raises(lifecycle.TableUnavailable):
            lifecycle.occupy_status(lifecycle.TABLE_MAINTENANCE)

    def test_table_with_active_orders_stays_occupied(self):
        with pytest.raises(lifecycle.TableConflict):
            lifecycle.validate_table_status(lifecycle.TABLE_OCCUPIED, lifecycle.TABLE_AVAILABLE, 1)
        lifecycle.validate_table_status(lifecycle.TABLE_OCCUPIED, lifecycle.TABLE_OCCUPIED, 1)

    def test_maintenance_only_returns_to_available(self):
        with pytest.raises(lifecycle.TableUnavailable):
            lifecycle.validate_table_status(lifecycle.TABLE_MAINTENANCE, lifecycle.TABLE_RESERVED, 0)
        lifecycle.validate_table_status(lifecycle.TABLE_MAINTENANCE, lifecycle.TABLE_AVAILABLE, 0)

    def test_unknown_table_status_is_refused(self):
        with pytest.raises(lifecycle.TableConflict):
            lifecycle.validate_table_status(lifecycle.TABLE_AVAILABLE, 'flooded', 0)

    def test_release_only_frees_occupied_tables_without_orders(self):
        assert lifecycle.released_status(lifecycle.TABLE_OCCUPIED, 0) == lifecycle.TABLE_AVAILABLE
        assert lifecycle.released_status(lifecycle.TABLE_OCCUPIED, 2) == lifecycle.TABLE_OCCUPIED
        assert lifecycle.released_status(lifecycle.TABLE_MAINTENANCE, 0) == lifecycle.TABLE_MAINTENANCE


class TestStaffDecisions:
    def test_pending_staff_can_be_approved_or_rejected(self):
        lifecycle.validate_staff_decision(lifecycle.STAFF_PENDING, lifecycle.STAFF_ACTIVE)
        lifecycle.validate_staff_decision(lifecycle.STAFF_PENDING, lifecycle.STAFF_REJECTED)

    def test_rejected_staff_can_be_reinstated(self):
        lifecycle.validate_staff_decision(lifecycle.STAFF_REJECTED, lifecycle.STAFF_ACTIVE)

    def test_approving_twice_is_refused(self):
        with pytest.raises(lifecycle.StaffDecisionError):
            lifecycle.validate_staff_decision(lifecycle.STAFF_ACTIVE, lifecycle.STAFF_ACTIVE)

    def test_nobody_goes_back_to_pending(self):
        with pytest.raises(lifecycle.StaffDecisionError):
            lifecycle.validate_staff_decision(lifecycle.STAFF_ACTIVE, lifecycle.STAFF_PENDING)
