from decimal import Decimal

import pytest

from marinedesk import documents, permissions
from marinedesk.domain import User
from marinedesk.errors import PermissionDenied
from marinedesk.services.maintenance_service import materialize_invoice
from marinedesk.services.sales_service import SaleLineInput
from marinedesk.services.supply_service import SupplyLineInput


def test_invoice_document_carries_amounts_and_attribution(ctx, state, admin):
    sale = ctx.sales.create_sale(
        state,
        walk_in_name="Fisherman",
        items=[SaleLineInput("P002", 2)],
        labor_cost="149.6",
        maintenance_device="Outboard",
        created_by=admin.id,
    )
    doc = documents.invoice_document(sale, admin)
    assert doc["title"] == "Maintenance Invoice"
    assert doc["number"] == sale.id
    assert doc["date"] == "2024-05-20"
    assert doc["lines"][0]["amount_display"] == "700 LYD"
    assert doc["labor_cost"] == Decimal("149.6")
    assert doc["labor_cost_display"] == "150 LYD"
    assert doc["total"] == Decimal("849.6")
    assert doc["total_display"] == "850 LYD"
    assert doc["prepared_by"] == admin.name


def test_job_invoice_document(ctx, state, admin):
    svc = ctx.maintenance
    job = svc.create_job(state, customer_id="C001", technician="Omar", device_info="Boat", labor_cost="500")
    job = svc.save_job(state, svc.add_part(state, job, product_id="P005", quantity=2))
    doc = documents.invoice_document(materialize_invoice(job, created_by=admin.id), admin)
    assert doc["items_total"] == Decimal("300")
    assert doc["payment_method"] == "Credit"
    assert doc["device"] == "Boat"

    card = documents.job_card_document(job, admin)
    assert card["remaining_display"] == "800 LYD"
    assert card["completion_date"] is None


def test_supply_and_daily_report_documents(ctx, state, admin):
    invoice = ctx.supply.receive_supply(
        state,
        supplier_name="Mercury",
        items=[SupplyLineInput("P006", 3, Decimal("4.25"), Decimal("70"))],
        created_by=admin.id,
    )
    doc = documents.supply_document(invoice, admin)
    assert doc["total_usd_display"] == "$12.75"
    assert doc["total_lyd_display"] == "210 LYD"

    ctx.sales.create_sale(state, customer_id="C001", items=[SaleLineInput("P002", 1)], created_by=admin.id)
    report = documents.daily_report_document(ctx.sale_repo.list(state), "2024-05-20", admin)
    assert len(report["rows"]) == 1
    assert report["totals"]["cash"] == "350 LYD"


def test_permissions_are_capability_sets():
    admin = User("U1", "admin", "Admin", "Admin", frozenset())
    clerk = User("U2", "sales", "Clerk", "User", frozenset({"sales"}))
    tech = User("U3", "tech", "Tech", "User", frozenset({"maintenance"}))

    assert permissions.can(admin, "supply.receive")
    assert permissions.can(clerk, "sale.create")
    assert permissions.can(clerk, "debt.pay")
    assert not permissions.can(clerk, "maintenance.edit")
    assert permissions.can(tech, "maintenance.edit")
    assert permissions.can(tech, "catalog.view")
    assert not permissions.can(tech, "sale.view")
    assert not permissions.can(tech, "customer.view")
    with pytest.raises(PermissionDenied):
        permissions.require(tech, "sale.create")


def test_unknown_permissions_are_rejected():
    with pytest.raises(ValueError):
        permissions.normalize_permissions(["sales", "superpowers"])
