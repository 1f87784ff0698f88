from decimal import Decimal

import pytest

from marinedesk.domain import Supplier
from marinedesk.errors import ValidationError
from marinedesk.services.supply_service import SupplyLineInput


def test_receive_supply_updates_stock_and_prices(ctx, state, admin, clock):
    invoice = ctx.supply.receive_supply(
        state,
        supplier_name="Mercury container",
        items=[
            SupplyLineInput("P006", 20, Decimal("4.5"), Decimal("70")),
            SupplyLineInput("P001", 2, Decimal("6100"), Decimal("47000")),
        ],
        created_by=admin.id,
    )
    assert invoice.id == f"SUP-{int(clock().timestamp() * 1000)}"
    assert invoice.total_usd == Decimal("90") + Decimal("12200")
    assert invoice.total_lyd == Decimal("1400") + Decimal("94000")
    assert invoice.supplier_id == "S-MERCURY"
    assert state.supply_invoices[invoice.id] == invoice

    plugs = state.products["P006"]
    assert plugs.stock == 28
    assert plugs.cost_usd == Decimal("4.5")
    assert plugs.price == Decimal("70")
    assert state.products["P001"].stock == 7


def test_receive_supply_uses_registered_supplier(ctx, state, admin):
    ctx.supplier_repo.upsert(state, Supplier("S001", "Yamaha Japan", "+81-9000", "sales@yamaha.example"))
    invoice = ctx.supply.receive_supply(
        state,
        supplier_id="S001",
        items=[SupplyLineInput("P001", 1, Decimal("6000"), Decimal("45000"))],
        created_by=admin.id,
    )
    assert invoice.supplier_name == "Yamaha Japan"


@pytest.mark.parametrize(
    "items, supplier_name",
    [
        ([], "Mercury"),
        ([SupplyLineInput("P001", 1, Decimal("1"), Decimal("1"))], ""),
        ([SupplyLineInput("P999", 1, Decimal("1"), Decimal("1"))], "Mercury"),
        ([SupplyLineInput("P001", 0, Decimal("1"), Decimal("1"))], "Mercury"),
        ([SupplyLineInput("P001", 1, Decimal("-1"), Decimal("1"))], "Mercury"),
    ],
)
def test_invalid_supply_is_rejected_without_changes(ctx, state, admin, items, supplier_name):
    with pytest.raises(ValidationError):
        ctx.supply.receive_supply(state, supplier_name=supplier_name, items=items, created_by=admin.id)
    assert state.supply_invoices == {}
    assert state.products["P001"].stock == 5
