from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

from flask import Flask, jsonify, request

from marinedesk import documents, permissions
from marinedesk.config import AppConfig, ConfigError, load_config
from marinedesk.context import AppContext, build_context
from marinedesk.domain import User
from marinedesk.errors import DuplicateIdError, NotFoundError, PermissionDenied, ValidationError
from marinedesk.reports import (
    archive_search,
    customer_statement,
    daily_sales_totals,
    dashboard_summary,
    debt_exposure,
    inventory_valuation,
    low_stock,
    maintenance_exposure,
    sales_by_day,
)
from marinedesk.services.sales_service import SaleLineInput
from marinedesk.services.supply_service import SupplyLineInput
from marinedesk.store import Store

log = logging.getLogger(__name__)

app = Flask(__name__)

ctx: AppContext = None


def configure(cfg: AppConfig, store: Store | None = None, clock: Callable[[], datetime] = datetime.now) -> AppContext:
    global ctx
    ctx = build_context(cfg, store=store, clock=clock)
    return ctx


def to_json(obj):
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: to_json(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {str(k): to_json(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_json(v) for v in obj]
    if isinstance(obj, (set, frozenset)):
        return sorted(to_json(v) for v in obj)
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    return obj


def _body() -> dict:
    return request.get_json(silent=True) or {}


def _acting_user() -> User:
    return ctx.user(request.headers.get("X-User"))


def _authorize(action: str) -> User:
    user = _acting_user()
    permissions.require(user, action)
    return user


@app.errorhandler(ValidationError)
def _validation_error(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(ValueError)
def _bad_value(e):
    return jsonify({"error": str(e)}), 400


@app.errorhandler(PermissionDenied)
def _permission_denied(e):
    return jsonify({"error": str(e)}), 403


@app.errorhandler(NotFoundError)
def _not_found(e):
    return jsonify({"error": str(e)}), 404


@app.errorhandler(DuplicateIdError)
def _duplicate(e):
    return jsonify({"error": str(e)}), 409


@app.route("/health")
def health():
    return jsonify({"status": "ok", "name": ctx.cfg.name})


@app.route("/products")
def products_list():
    _authorize("catalog.view")
    with ctx.store.session() as state:
        rows = ctx.product_repo.list(state)
    return jsonify(to_json(rows))


@app.route("/products", methods=["POST"])
def products_new():
    _authorize("catalog.edit")
    data = _body()
    with ctx.store.transaction() as state:
        product = ctx.product_repo.create(
            state,
            name=str(data.get("name", "")),
            category=str(data.get("category", "")),
            price=data.get("price", "0"),
            cost_usd=data.get("cost_usd", "0"),
            stock=int(data.get("stock", 0)),
            min_stock=int(data.get("min_stock", 0)),
            location=str(data.get("location", "")),
            supplier_id=str(data.get("supplier_id", "")),
            product_id=data.get("id"),
        )
    return jsonify(to_json(product)), 201


@app.route("/products/<product_id>", methods=["PUT"])
def products_edit(product_id):
    _authorize("catalog.edit")
    with ctx.store.transaction() as state:
        product = ctx.product_repo.update(state, product_id, **_body())
    log.info("product %s edited", product_id)
    return jsonify(to_json(product))


@app.route("/products/<product_id>", methods=["DELETE"])
def products_delete(product_id):
    _authorize("catalog.edit")
    with ctx.store.transaction() as state:
        ctx.product_repo.delete(state, product_id)
    log.info("product %s deleted", product_id)
    return "", 204


@app.route("/customers")
def customers_list():
    _authorize("customer.view")
    with ctx.store.session() as state:
        rows = ctx.customer_repo.list(state)
    return jsonify(to_json(rows))


@app.route("/customers", methods=["POST"])
def customers_new():
    _authorize("customer.edit")
    data = _body()
    with ctx.store.transaction() as state:
        customer = ctx.customer_repo.create(
            state,
            name=str(data.get("name", "")),
            contact=str(data.get("contact", "")),
            type=str(data.get("type", "Permanent")),
            balance=data.get("balance", "0"),
            customer_id=data.get("id"),
        )
    return jsonify(to_json(customer)), 201


@app.route("/customers/<customer_id>", methods=["PUT"])
def customers_edit(customer_id):
    _authorize("customer.edit")
    with ctx.store.transaction() as state:
        customer = ctx.customer_repo.update(state, customer_id, **_body())
    log.info("customer %s edited balance=%s", customer_id, customer.balance)
    return jsonify(to_json(customer))


@app.route("/customers/<customer_id>", methods=["DELETE"])
def customers_delete(customer_id):
    _authorize("customer.edit")
    with ctx.store.transaction() as state:
        ctx.customer_repo.delete(state, customer_id)
    log.info("customer %s deleted", customer_id)
    return "", 204


@app.route("/customers/<customer_id>/statement")
def customers_statement(customer_id):
    _authorize("reports.view")
    with ctx.store.session() as state:
        customer = ctx.customer_repo.require(state, customer_id)
        statement = customer_statement(customer, ctx.sale_repo.list(state), ctx.maintenance_repo.list(state))
    return jsonify(to_json(statement))


def _sale_kwargs(data: dict, user: User) -> dict:
    try:
        items = [
            SaleLineInput(
                product_id=str(it["product_id"]),
                quantity=int(it.get("quantity", 1)),
                price=it.get("price"),
            )
            for it in data.get("items", [])
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid item line: {e}") from e
    return dict(
        customer_id=data.get("customer_id"),
        walk_in_name=data.get("walk_in_name"),
        items=items,
        labor_cost=data.get("labor_cost", "0"),
        payment_method=str(data.get("payment_method", "Cash")),
        maintenance_device=data.get("maintenance_device"),
        notes=data.get("notes"),
        created_by=user.id,
    )


@app.route("/sales")
def sales_list():
    _authorize("sale.view")
    with ctx.store.session() as state:
        rows = ctx.sale_repo.list(state, limit=request.args.get("limit", type=int))
    return jsonify(to_json(rows))


@app.route("/sales", methods=["POST"])
def sales_new():
    user = _authorize("sale.create")
    with ctx.store.transaction() as state:
        sale = ctx.sales.create_sale(state, **_sale_kwargs(_body(), user))
    return jsonify(to_json(sale)), 201


@app.route("/sales/preview", methods=["POST"])
def sales_preview():
    user = _authorize("sale.create")
    with ctx.store.session() as state:
        sale = ctx.sales.build_sale(state, **_sale_kwargs(_body(), user))
    return jsonify(to_json(documents.invoice_document(sale, user, company=ctx.cfg.business.company_name)))


@app.route("/sales/<sale_id>", methods=["DELETE"])
def sales_delete(sale_id):
    _authorize("sale.delete")
    with ctx.store.transaction() as state:
        ctx.sales.delete_sale(state, sale_id)
    return "", 204


@app.route("/sales/<sale_id>/document")
def sales_document(sale_id):
    user = _authorize("sale.view")
    with ctx.store.session() as state:
        sale = ctx.sale_repo.require(state, sale_id)
    return jsonify(to_json(documents.invoice_document(sale, user, company=ctx.cfg.business.company_name)))


@app.route("/debt-payments", methods=["POST"])
def debt_payments_new():
    user = _authorize("debt.pay")
    data = _body()
    with ctx.store.transaction() as state:
        sale = ctx.sales.record_debt_payment(
            state,
            customer_id=str(data.get("customer_id", "")),
            amount=data.get("amount", "0"),
            payment_method=str(data.get("payment_method", "Cash")),
            notes=data.get("notes"),
            created_by=user.id,
        )
        customer = ctx.customer_repo.require(state, sale.customer_id)
    return jsonify({"sale": to_json(sale), "balance": to_json(customer.balance)}), 201


@app.route("/maintenance")
def maintenance_board():
    _authorize("maintenance.view")
    with ctx.store.session() as state:
        board = ctx.maintenance.board(state, request.args.get("q", ""))
    return jsonify([{"status": status, "jobs": to_json(jobs)} for status, jobs in board])


@app.route("/maintenance", methods=["POST"])
def maintenance_new():
    _authorize("maintenance.edit")
    data = _body()
    with ctx.store.transaction() as state:
        job = ctx.maintenance.create_job(
            state,
            customer_id=str(data.get("customer_id", "")),
            technician=str(data.get("technician", "")),
            device_info=str(data.get("device_info", "")),
            service_type=str(data.get("service_type", "")),
            inspection_notes=str(data.get("inspection_notes", "")),
            labor_cost=data.get("labor_cost", "0"),
            paid_amount=data.get("paid_amount", "0"),
        )
        for part in data.get("parts", []):
            job = ctx.maintenance.add_part(
                state,
                job,
                product_id=str(part.get("product_id", "")),
                quantity=int(part.get("quantity", 1)),
                price=part.get("price"),
            )
        if data.get("status"):
            job = dataclasses.replace(job, status=str(data["status"]))
        job = ctx.maintenance.save_job(state, job)
    return jsonify(to_json(job)), 201


@app.route("/maintenance/<job_id>", methods=["PUT"])
def maintenance_edit(job_id):
    _authorize("maintenance.edit")
    with ctx.store.transaction() as state:
        job = ctx.maintenance.edit_job(state, job_id, **_body())
    return jsonify(to_json(job))


@app.route("/maintenance/<job_id>/parts", methods=["POST"])
def maintenance_part_add(job_id):
    _authorize("maintenance.edit")
    data = _body()
    with ctx.store.transaction() as state:
        job = ctx.maintenance.add_part(
            state,
            ctx.maintenance_repo.require(state, job_id),
            product_id=str(data.get("product_id", "")),
            quantity=int(data.get("quantity", 1)),
            price=data.get("price"),
        )
        job = ctx.maintenance.save_job(state, job)
    return jsonify(to_json(job)), 201


@app.route("/maintenance/<job_id>/parts/<int:index>", methods=["PUT"])
def maintenance_part_edit(job_id, index):
    _authorize("maintenance.edit")
    data = _body()
    quantity = data.get("quantity")
    with ctx.store.transaction() as state:
        job = ctx.maintenance.update_part(
            ctx.maintenance_repo.require(state, job_id),
            index,
            quantity=None if quantity is None else int(quantity),
            price=data.get("price"),
        )
        job = ctx.maintenance.save_job(state, job)
    return jsonify(to_json(job))


@app.route("/maintenance/<job_id>/parts/<int:index>", methods=["DELETE"])
def maintenance_part_delete(job_id, index):
    _authorize("maintenance.edit")
    with ctx.store.transaction() as state:
        job = ctx.maintenance.remove_part(ctx.maintenance_repo.require(state, job_id), index)
        job = ctx.maintenance.save_job(state, job)
    return jsonify(to_json(job))


@app.route("/maintenance/<job_id>/status", methods=["POST"])
def maintenance_status(job_id):
    _authorize("maintenance.edit")
    with ctx.store.transaction() as state:
        job = ctx.maintenance.change_status(state, job_id, str(_body().get("status", "")))
    return jsonify(to_json(job))


@app.route("/maintenance/<job_id>/payments", methods=["POST"])
def maintenance_payment(job_id):
    _authorize("maintenance.edit")
    with ctx.store.transaction() as state:
        job = ctx.maintenance.record_job_payment(state, job_id, _body().get("amount", "0"))
    return jsonify(to_json(job))


@app.route("/maintenance/<job_id>", methods=["DELETE"])
def maintenance_delete(job_id):
    _authorize("maintenance.edit")
    with ctx.store.transaction() as state:
        ctx.maintenance.delete_job(state, job_id)
    return "", 204


@app.route("/maintenance/<job_id>/invoice")
def maintenance_invoice(job_id):
    user = _authorize("maintenance.view")
    with ctx.store.session() as state:
        sale = ctx.maintenance.invoice_for(state, job_id, created_by=user.id)
    return jsonify(to_json(documents.invoice_document(sale, user, company=ctx.cfg.business.company_name)))


@app.route("/maintenance/<job_id>/card")
def maintenance_card(job_id):
    user = _authorize("maintenance.view")
    with ctx.store.session() as state:
        job = ctx.maintenance_repo.require(state, job_id)
    return jsonify(to_json(documents.job_card_document(job, user, company=ctx.cfg.business.company_name)))


@app.route("/supplies", methods=["POST"])
def supplies_new():
    user = _authorize("supply.receive")
    data = _body()
    try:
        lines = [
            SupplyLineInput(
                product_id=str(it["product_id"]),
                quantity=int(it.get("quantity", 1)),
                cost_usd=it.get("cost_usd", "0"),
                price_lyd=it.get("price_lyd", "0"),
            )
            for it in data.get("items", [])
        ]
    except (KeyError, TypeError, ValueError) as e:
        raise ValidationError(f"Invalid supply line: {e}") from e
    with ctx.store.transaction() as state:
        invoice = ctx.supply.receive_supply(
            state,
            items=lines,
            supplier_name=str(data.get("supplier_name", "")),
            supplier_id=data.get("supplier_id"),
            notes=data.get("notes"),
            created_by=user.id,
        )
    return jsonify(to_json(documents.supply_document(invoice, user, company=ctx.cfg.business.company_name))), 201


@app.route("/supplies/<invoice_id>/document")
def supplies_document(invoice_id):
    user = _authorize("archive.view")
    with ctx.store.session() as state:
        invoice = ctx.supply_repo.require(state, invoice_id)
    return jsonify(to_json(documents.supply_document(invoice, user, company=ctx.cfg.business.company_name)))


@app.route("/archive")
def archive():
    _authorize("archive.view")
    with ctx.store.session() as state:
        entries = archive_search(
            ctx.sale_repo.list(state),
            ctx.supply_repo.list(state),
            request.args.get("q", ""),
            request.args.get("kind", "All"),
        )
    return jsonify(
        [
            {"id": e.id, "date": e.date, "kind": e.kind, "party": e.party, "total": to_json(e.total)}
            for e in entries
        ]
    )


@app.route("/reports/daily")
def reports_daily():
    user = _authorize("reports.view")
    day = request.args.get("day") or ctx.clock().date().isoformat()
    with ctx.store.session() as state:
        sales = ctx.sale_repo.list(state)
    return jsonify(
        {
            "totals": to_json(daily_sales_totals(sales, day)),
            "document": to_json(
                documents.daily_report_document(sales, day, user, company=ctx.cfg.business.company_name)
            ),
        }
    )


@app.route("/reports/dashboard")
def reports_dashboard():
    _authorize("dashboard.view")
    today = ctx.clock().date()
    with ctx.store.session() as state:
        sales = ctx.sale_repo.list(state)
        products = ctx.product_repo.list(state)
        summary = dashboard_summary(
            today=today,
            sales=sales,
            customers=ctx.customer_repo.list(state),
            jobs=ctx.maintenance_repo.list(state),
            products=products,
        )
        summary["sales_last_7_days"] = sales_by_day(sales, today)
        summary["inventory"] = inventory_valuation(products)
    return jsonify(to_json(summary))


@app.route("/reports/exposure")
def reports_exposure():
    _authorize("reports.view")
    with ctx.store.session() as state:
        debts = debt_exposure(ctx.customer_repo.list(state))
        unpaid = maintenance_exposure(ctx.maintenance_repo.list(state))
        short = low_stock(ctx.product_repo.list(state))
    return jsonify(
        {
            "debts": to_json(debts),
            "maintenance": to_json(unpaid),
            "low_stock": to_json(short),
        }
    )


if __name__ == "__main__":
    try:
        cfg = load_config("config.toml")
        logging.basicConfig(level=cfg.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
        configure(cfg)
        app.run(debug=True, host="127.0.0.1", port=5000)
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        raise SystemExit(2)
