"""Unit tests for the Order aggregate and its business rules."""

from datetime import date

import pytest

from cylinder_ledger.domain.exceptions import (
    EmptyOrder,
    EntityNotFoundError,
    InvalidQuantity,
    OrderLocked,
    ValidationError,
)
from cylinder_ledger.domain.model.order import Order, OrderStatus
from cylinder_ledger.domain.model.product import Product
from cylinder_ledger.domain.model.value_objects import Money

LPG_13 = Product(id="LPG-13", name="13kg Refill", price=Money.of("1200"))
LPG_6 = Product(id="LPG-6", name="6kg Refill", price=Money.of("650"))


def _order(status: OrderStatus = OrderStatus.DRAFT) -> Order:
    order = Order.create("CUST-1", "ADDR-1")
    order.id = 1
    order.add_line(LPG_13, 2)
    order.status = status
    return order


class TestOrderCreation:

    def test_happy_path(self):
        order = Order.create("CUST-1", "ADDR-1", notes="Gate B")
        assert order.customer_id == "CUST-1"
        assert order.delivery_address_id == "ADDR-1"
        assert order.status == OrderStatus.DRAFT
        assert order.lines == []
        assert order.total_amount == Money.zero()
        assert order.notes == "Gate B"

    def test_id_is_none_for_new_orders(self):
        assert Order.create("CUST-1", "ADDR-1").id is None  # assigned by repository

    def test_order_date_defaults_to_today(self):
        assert Order.create("CUST-1", "ADDR-1").order_date == date.today()

    def test_customer_required(self):
        with pytest.raises(ValidationError, match="Customer is required"):
            Order.create("  ", "ADDR-1")

    def test_address_required(self):
        with pytest.raises(ValidationError, match="Delivery address is required"):
            Order.create("CUST-1", "")


class TestOrderLines:

    def test_add_line_snapshots_catalog_price(self):
        order = Order.create("CUST-1", "ADDR-1")
        line = order.add_line(LPG_13, 3)
        assert line.line_id == 1
        assert line.unit_price == Money.of("1200")
        assert line.product_name == "13kg Refill"
        assert order.total_amount == Money.of("3600")

    def test_add_line_with_price_override(self):
        order = Order.create("CUST-1", "ADDR-1")
        order.add_line(LPG_13, 1, Money.of("1000"))
        assert order.total_amount == Money.of("1000")

    def test_total_is_sum_of_subtotals(self):
        order = Order.create("CUST-1", "ADDR-1")
        order.add_line(LPG_13, 2)
        order.add_line(LPG_6, 4)
        assert order.total_amount == Money.of("5000")

    def test_same_product_twice_rejected(self):
        order = _order()
        with pytest.raises(ValidationError, match="already on order"):
            order.add_line(LPG_13, 1)

    def test_zero_quantity_rejected(self):
        with pytest.raises(InvalidQuantity):
            _order().add_line(LPG_6, 0)

    def test_update_line_recomputes_total(self):
        order = _order()
        order.update_line(1, 5)
        assert order.lines[0].quantity.value == 5
        assert order.total_amount == Money.of("6000")

    def test_unknown_line(self):
        with pytest.raises(EntityNotFoundError, match="Line 9"):
            _order().update_line(9, 1)

    def test_remove_line_on_draft_may_empty_order(self):
        order = _order()
        order.remove_line(1)
        assert order.lines == []
        assert order.total_amount == Money.zero()

    def test_remove_last_line_on_confirmed_rejected(self):
        order = _order(OrderStatus.CONFIRMED)
        with pytest.raises(EmptyOrder):
            order.remove_line(1)
        assert len(order.lines) == 1

    def test_line_ids_keep_increasing(self):
        order = _order()
        order.add_line(LPG_6, 1)
        order.remove_line(1)
        line = order.add_line(LPG_13, 1)
        assert line.line_id == 3

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.EN_ROUTE, OrderStatus.DELIVERED, OrderStatus.INVOICED, OrderStatus.CANCELLED],
    )
    def test_lines_locked_after_dispatch_or_cancel(self, status):
        order = _order(status)
        with pytest.raises(OrderLocked):
            order.add_line(LPG_6, 1)
        with pytest.raises(OrderLocked):
            order.update_line(1, 3)
        with pytest.raises(OrderLocked):
            order.remove_line(1)


class TestOrderStatusChecks:

    def test_confirm_needs_lines(self):
        order = Order.create("CUST-1", "ADDR-1")
        with pytest.raises(EmptyOrder, match="no lines"):
            order.check_can_confirm()

    def test_schedule_needs_date(self):
        with pytest.raises(ValidationError, match="Scheduled date is required"):
            _order().check_can_schedule(None, date(2026, 3, 1))

    def test_schedule_in_past_rejected(self):
        with pytest.raises(ValidationError, match="in the past"):
            _order().check_can_schedule(date(2026, 2, 28), date(2026, 3, 1))

    def test_schedule_today_accepted(self):
        _order().check_can_schedule(date(2026, 3, 1), date(2026, 3, 1))

    def test_apply_status_records_history(self):
        order = _order()
        order.apply_status(OrderStatus.CONFIRMED, changed_by="jane", notes="phoned in")
        assert order.status == OrderStatus.CONFIRMED
        assert order.status_history[-1].status == OrderStatus.CONFIRMED
        assert order.status_history[-1].changed_by == "jane"
        assert order.status_history[-1].notes == "phoned in"

    def test_holds_reservation(self):
        assert _order(OrderStatus.CONFIRMED).holds_reservation
        assert _order(OrderStatus.SCHEDULED).holds_reservation
        assert not _order(OrderStatus.DRAFT).holds_reservation
        assert not _order(OrderStatus.EN_ROUTE).holds_reservation

    def test_terminal_statuses(self):
        assert OrderStatus.INVOICED.is_terminal
        assert OrderStatus.CANCELLED.is_terminal
        assert not OrderStatus.DELIVERED.is_terminal
