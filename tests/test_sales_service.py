from decimal import Decimal

import pytest

from marinedesk.config import parse_config
from marinedesk.context import build_context
from marinedesk.errors import NotFoundError, ValidationError
from marinedesk.services.sales_service import SaleLineInput


@pytest.fixture
def sales(ctx):
    return ctx.sales


def test_create_sale_appends_and_decrements_stock(sales, state, admin):
    sale = sales.create_sale(
        state,
        customer_id="C001",
        items=[SaleLineInput("P002", 2), SaleLineInput("P005", 3, Decimal("140"))],
        payment_method="Cash",
        created_by=admin.id,
    )
    assert sale.id.startswith("INV-")
    assert sale.total == Decimal("2") * 350 + Decimal("3") * 140
    assert sale.invoice_type == "Sale"
    assert sale.customer_name == "Ahmed"
    assert state.sales[sale.id] == sale
    assert state.products["P002"].stock == 48
    assert state.products["P005"].stock == 97


def test_total_includes_labor_and_marks_maintenance(sales, state, admin):
    sale = sales.create_sale(
        state,
        walk_in_name="Walk-in fisherman",
        items=[SaleLineInput("P006", 4)],
        labor_cost="200",
        created_by=admin.id,
    )
    assert sale.total == Decimal("460")
    assert sale.invoice_type == "Maintenance"
    assert sale.customer_id == "WALKIN"
    assert sale.customer_type == "WalkIn"


def test_duplicate_lines_are_merged(sales, state, admin):
    sale = sales.create_sale(
        state,
        customer_id="C001",
        items=[SaleLineInput("P002", 1), SaleLineInput("P002", 2)],
        created_by=admin.id,
    )
    assert len(sale.items) == 1
    assert sale.items[0].quantity == 3


def test_same_product_at_different_prices_stays_on_separate_lines(sales, state, admin):
    sale = sales.create_sale(
        state,
        customer_id="C001",
        items=[SaleLineInput("P002", 1, Decimal("300")), SaleLineInput("P002", 1)],
        created_by=admin.id,
    )
    assert [(it.quantity, it.price) for it in sale.items] == [(1, Decimal("300")), (1, Decimal("350"))]
    assert sale.total == Decimal("650")
    assert state.products["P002"].stock == 48


def test_stock_check_adds_up_lines_for_the_same_product(sales, state, admin):
    with pytest.raises(ValidationError):
        sales.create_sale(
            state,
            customer_id="C001",
            items=[SaleLineInput("P001", 3, Decimal("40000")), SaleLineInput("P001", 3)],
            created_by=admin.id,
        )
    assert state.sales == {}
    assert state.products["P001"].stock == 5


def test_labor_only_sale_requires_device(sales, state, admin):
    with pytest.raises(ValidationError):
        sales.create_sale(state, customer_id="C001", items=[], labor_cost="200", created_by=admin.id)
    assert state.sales == {}

    sale = sales.create_sale(
        state,
        customer_id="C001",
        items=[],
        labor_cost="200",
        maintenance_device="Mercury 90HP",
        created_by=admin.id,
    )
    assert sale.total == Decimal("200")
    assert sale.maintenance_device == "Mercury 90HP"


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(items=[SaleLineInput("P002", 1)]),
        dict(walk_in_name="   ", items=[SaleLineInput("P002", 1)]),
        dict(customer_id="C001", items=[]),
        dict(customer_id="C404", items=[SaleLineInput("P002", 1)]),
        dict(customer_id="C001", items=[SaleLineInput("P999", 1)]),
        dict(customer_id="C001", items=[SaleLineInput("P002", 0)]),
        dict(customer_id="C001", items=[SaleLineInput("P002", 1)], payment_method="Barter"),
    ],
)
def test_invalid_sales_leave_ledger_untouched(sales, state, admin, kwargs):
    with pytest.raises(ValidationError):
        sales.create_sale(state, created_by=admin.id, **kwargs)
    assert state.sales == {}
    assert state.products["P002"].stock == 50


def test_oversell_is_rejected_by_default(sales, state, admin):
    with pytest.raises(ValidationError):
        sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P001", 6)], created_by=admin.id)
    assert state.sales == {}
    assert state.products["P001"].stock == 5


def test_rejected_sales_do_not_use_up_invoice_numbers(sales, state, admin):
    with pytest.raises(ValidationError):
        sales.create_sale(state, customer_id="C404", items=[SaleLineInput("P002", 1)], created_by=admin.id)
    with pytest.raises(ValidationError):
        sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P001", 6)], created_by=admin.id)
    sale = sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P002", 1)], created_by=admin.id)
    assert sale.id == "INV-1001"


def test_selling_exactly_the_stock_leaves_zero(sales, state, admin):
    sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P001", 5)], created_by=admin.id)
    assert state.products["P001"].stock == 0


def test_oversell_allowed_when_configured(clock, config_data):
    config_data["business"]["allow_negative_stock"] = True
    cfg = parse_config(config_data)
    ctx = build_context(cfg, clock=clock)
    with ctx.store.transaction() as state:
        ctx.product_repo.create(state, product_id="P1", name="Boat", category="Boat", price="1000", stock=1)
        ctx.sales.create_sale(state, walk_in_name="x", items=[SaleLineInput("P1", 3)], created_by="U001")
        assert state.products["P1"].stock == -2


def test_build_sale_is_a_preview_without_mutation(sales, state, admin):
    sale = sales.build_sale(state, customer_id="C001", items=[SaleLineInput("P002", 1)], created_by=admin.id)
    assert sale.id == "PREVIEW"
    assert state.sales == {}
    assert state.products["P002"].stock == 50


def test_debt_payment_moves_balance_toward_zero(sales, state, admin):
    sale = sales.record_debt_payment(
        state, customer_id="C002", amount="5000", payment_method="Check", created_by=admin.id
    )
    assert state.customers["C002"].balance == Decimal("-10000")
    assert sale.total == Decimal("5000")
    assert sale.payment_method == "Check"
    assert sale.id.startswith("PAY-") and len(sale.id) == 10
    assert sale.items[0].product_id == "DEBT-PAYMENT"
    assert sale.items[0].price == Decimal("5000")
    assert state.sales[sale.id] == sale


def test_exact_payment_settles_and_overpayment_becomes_credit(sales, state, admin):
    sales.record_debt_payment(state, customer_id="C002", amount="15000", created_by=admin.id)
    assert state.customers["C002"].balance == Decimal("0")
    sales.record_debt_payment(state, customer_id="C002", amount="250", created_by=admin.id)
    assert state.customers["C002"].balance == Decimal("250")


@pytest.mark.parametrize(
    "customer_id, amount, method",
    [("C002", "0", "Cash"), ("C002", "-10", "Cash"), ("", "100", "Cash"), ("C404", "100", "Cash"), ("C002", "100", "Credit")],
)
def test_invalid_debt_payments_are_rejected(sales, state, admin, customer_id, amount, method):
    with pytest.raises(ValidationError):
        sales.record_debt_payment(
            state, customer_id=customer_id, amount=amount, payment_method=method, created_by=admin.id
        )
    assert state.sales == {}
    assert state.customers["C002"].balance == Decimal("-15000")


def test_delete_sale_does_not_compensate(sales, state, admin):
    sale = sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P002", 2)], created_by=admin.id)
    sales.delete_sale(state, sale.id)
    assert sale.id not in state.sales
    assert state.products["P002"].stock == 48
    with pytest.raises(NotFoundError):
        sales.delete_sale(state, sale.id)


def test_failed_sale_inside_transaction_rolls_back(ctx, admin):
    with pytest.raises(ValidationError):
        with ctx.store.transaction() as state:
            ctx.sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P002", 1)], created_by=admin.id)
            ctx.sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P001", 99)], created_by=admin.id)
    with ctx.store.session() as state:
        assert state.sales == {}
        assert state.products["P002"].stock == 50
