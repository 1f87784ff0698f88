from __future__ import annotations

from . import permissions
from .context import AppContext
from .domain import MAINTENANCE_STATUSES
from .errors import NotFoundError, PermissionDenied, ValidationError
from .importers import ImportFileError, import_customers_csv, import_products_json
from .money import format_lyd, format_usd
from .reports import (
    ARCHIVE_KINDS,
    archive_search,
    daily_sales_totals,
    dashboard_summary,
    debt_exposure,
    maintenance_exposure,
)
from .services.sales_service import SaleLineInput
from .services.supply_service import SupplyLineInput


def _prompt(msg: str) -> str:
    return input(msg).strip()


def _changes(labels: dict[str, str]) -> dict[str, str]:
    # empty answers keep the current value
    answers = {field: _prompt(label) for field, label in labels.items()}
    return {field: value for field, value in answers.items() if value}


def run_cli(ctx: AppContext, username: str | None = None) -> None:
    user = ctx.user(username)
    store = ctx.store

    while True:
        print(f"\n=== {ctx.cfg.name} ({user.name}) ===")
        print("1) List customers")
        print("2) List products (stock)")
        print("3) New sale invoice")
        print("4) Record debt payment")
        print("5) New maintenance job")
        print("6) Change job status")
        print("7) Record job payment")
        print("8) Maintenance board")
        print("9) Receive supply")
        print("10) Daily sales report")
        print("11) Dashboard")
        print("12) Import customers CSV")
        print("13) Import products JSON")
        print("14) Edit maintenance job")
        print("15) Edit customer")
        print("16) Delete customer")
        print("17) Edit product")
        print("18) Delete product")
        print("19) Invoice archive")
        print("0) Exit")

        choice = _prompt("> ")
        try:
            if choice == "0":
                return

            elif choice == "1":
                permissions.require(user, "customer.view")
                with store.session() as state:
                    rows = ctx.customer_repo.list(state, limit=50)
                for c in rows:
                    print(f"#{c.id} {c.name} contact={c.contact} type={c.type} balance={format_lyd(c.balance)}")

            elif choice == "2":
                permissions.require(user, "catalog.view")
                with store.session() as state:
                    rows = ctx.product_repo.list(state, limit=50)
                for p in rows:
                    flag = " LOW" if p.stock <= p.min_stock else ""
                    print(
                        f"#{p.id} {p.name} [{p.category}] price={format_lyd(p.price)} "
                        f"cost={format_usd(p.cost_usd)} stock={p.stock}{flag}"
                    )

            elif choice == "3":
                permissions.require(user, "sale.create")
                customer_id = _prompt("customer_id (empty for walk-in): ") or None
                walk_in = None if customer_id else _prompt("walk-in customer name: ")

                items: list[SaleLineInput] = []
                while True:
                    add = _prompt("Add product? (y/n): ").lower()
                    if add != "y":
                        break
                    pid = _prompt("  product_id: ")
                    qty = int(_prompt("  quantity: ") or "1")
                    price_in = _prompt("  price (empty for catalog price): ")
                    items.append(SaleLineInput(product_id=pid, quantity=qty, price=price_in or None))

                labor = _prompt("labor cost (0): ") or "0"
                device = _prompt("engine/boat details (optional): ") or None
                method = _prompt("payment method (Cash/Check/Transfer/Credit): ") or "Cash"
                notes = _prompt("notes (optional): ") or None

                with store.transaction() as state:
                    sale = ctx.sales.create_sale(
                        state,
                        customer_id=customer_id,
                        walk_in_name=walk_in,
                        items=items,
                        labor_cost=labor,
                        payment_method=method,
                        maintenance_device=device,
                        notes=notes,
                        created_by=user.id,
                    )
                print(f"Created {sale.id} total={format_lyd(sale.total)} ({sale.invoice_type})")

            elif choice == "4":
                permissions.require(user, "debt.pay")
                with store.session() as state:
                    for c in debt_exposure(ctx.customer_repo.list(state)).debtors:
                        print(f"  #{c.id} {c.name} owes {format_lyd(abs(c.balance))}")
                customer_id = _prompt("customer_id: ")
                amount = _prompt("amount: ")
                method = _prompt("method (Cash/Check/Transfer): ") or "Cash"

                with store.transaction() as state:
                    sale = ctx.sales.record_debt_payment(
                        state,
                        customer_id=customer_id,
                        amount=amount,
                        payment_method=method,
                        created_by=user.id,
                    )
                    balance = ctx.customer_repo.require(state, customer_id).balance
                print(f"Recorded {sale.id}. New balance {format_lyd(balance)}")

            elif choice == "5":
                permissions.require(user, "maintenance.edit")
                with store.transaction() as state:
                    job = ctx.maintenance.create_job(
                        state,
                        customer_id=_prompt("customer_id: "),
                        technician=_prompt("technician: "),
                        device_info=_prompt("device (boat/engine): "),
                        service_type=_prompt("service type: "),
                        inspection_notes=_prompt("inspection notes: "),
                        labor_cost=_prompt("labor cost (0): ") or "0",
                        paid_amount=_prompt("paid amount (0): ") or "0",
                    )
                    while _prompt("Add part? (y/n): ").lower() == "y":
                        pid = _prompt("  product_id: ")
                        qty = int(_prompt("  quantity: ") or "1")
                        price_in = _prompt("  price (empty for catalog price): ")
                        job = ctx.maintenance.add_part(
                            state, job, product_id=pid, quantity=qty, price=price_in or None
                        )
                    job = ctx.maintenance.save_job(state, job)
                print(f"Saved {job.id} total={format_lyd(job.total_cost)} remaining={format_lyd(job.remaining_amount)}")

            elif choice == "6":
                permissions.require(user, "maintenance.edit")
                job_id = _prompt("job_id: ")
                status = _prompt(f"status {list(MAINTENANCE_STATUSES)}: ")
                with store.transaction() as state:
                    job = ctx.maintenance.change_status(state, job_id, status)
                done = job.completion_date.isoformat(timespec="minutes") if job.completion_date else "-"
                print(f"{job.id} is now {job.status} (completed: {done})")

            elif choice == "7":
                permissions.require(user, "maintenance.edit")
                job_id = _prompt("job_id: ")
                amount = _prompt("amount: ")
                with store.transaction() as state:
                    job = ctx.maintenance.record_job_payment(state, job_id, amount)
                print(f"{job.id} paid={format_lyd(job.paid_amount)} remaining={format_lyd(job.remaining_amount)}")

            elif choice == "8":
                permissions.require(user, "maintenance.view")
                search = _prompt("search (optional): ")
                with store.session() as state:
                    board = ctx.maintenance.board(state, search)
                for status, jobs in board:
                    print(f"[{status}] {len(jobs)}")
                    for j in jobs:
                        print(f"  {j.id} {j.customer_name} - {j.device_info} remaining={format_lyd(j.remaining_amount)}")

            elif choice == "9":
                permissions.require(user, "supply.receive")
                supplier = _prompt("supplier name: ")
                lines: list[SupplyLineInput] = []
                while _prompt("Add product? (y/n): ").lower() == "y":
                    lines.append(
                        SupplyLineInput(
                            product_id=_prompt("  product_id: "),
                            quantity=int(_prompt("  quantity: ") or "1"),
                            cost_usd=_prompt("  cost USD: ") or "0",
                            price_lyd=_prompt("  sale price LYD: ") or "0",
                        )
                    )
                with store.transaction() as state:
                    invoice = ctx.supply.receive_supply(
                        state, supplier_name=supplier, items=lines, created_by=user.id
                    )
                print(f"Received {invoice.id}: {format_usd(invoice.total_usd)} / {format_lyd(invoice.total_lyd)}")

            elif choice == "10":
                permissions.require(user, "reports.view")
                day = _prompt("day YYYY-MM-DD (empty for today): ") or ctx.clock().date().isoformat()
                with store.session() as state:
                    totals = daily_sales_totals(ctx.sale_repo.list(state), day)
                print(
                    f"{totals.day}: {totals.count} invoices total={format_lyd(totals.total)} "
                    f"cash={format_lyd(totals.cash)} credit={format_lyd(totals.credit)} "
                    f"check={format_lyd(totals.check)} transfer={format_lyd(totals.transfer)}"
                )

            elif choice == "11":
                permissions.require(user, "dashboard.view")
                with store.session() as state:
                    summary = dashboard_summary(
                        today=ctx.clock().date(),
                        sales=ctx.sale_repo.list(state),
                        customers=ctx.customer_repo.list(state),
                        jobs=ctx.maintenance_repo.list(state),
                        products=ctx.product_repo.list(state),
                    )
                    unpaid = maintenance_exposure(ctx.maintenance_repo.list(state))
                print(f"Today's revenue: {format_lyd(summary['today_revenue'])}")
                print(f"Customer debts:  {format_lyd(summary['total_debts'])}")
                print(f"Active jobs:     {summary['active_jobs']}")
                print(f"Low stock items: {summary['low_stock']}")
                print(f"Unpaid jobs:     {unpaid.count} ({format_lyd(unpaid.total_remaining)})")

            elif choice == "12":
                permissions.require(user, "customer.edit")
                path = _prompt("path to customers.csv: ")
                with store.transaction() as state:
                    n = import_customers_csv(state, path, ctx.customer_repo)
                print(f"Imported customers: {n}")

            elif choice == "13":
                permissions.require(user, "catalog.edit")
                path = _prompt("path to products.json: ")
                with store.transaction() as state:
                    n = import_products_json(state, path, ctx.product_repo)
                print(f"Imported/updated products: {n}")

            elif choice == "14":
                permissions.require(user, "maintenance.edit")
                with store.transaction() as state:
                    job = ctx.maintenance_repo.require(state, _prompt("job_id: "))
                    for i, p in enumerate(job.parts_used):
                        print(f"  [{i}] {p.product_name} x{p.quantity} @ {format_lyd(p.price)}")
                    changes = _changes(
                        {
                            "technician": f"technician [{job.technician}]: ",
                            "device_info": f"device [{job.device_info}]: ",
                            "service_type": f"service type [{job.service_type}]: ",
                            "inspection_notes": f"inspection notes [{job.inspection_notes}]: ",
                            "labor_cost": f"labor cost [{job.labor_cost}]: ",
                            "paid_amount": f"paid amount [{job.paid_amount}]: ",
                        }
                    )
                    if changes:
                        job = ctx.maintenance.edit_job(state, job.id, **changes)
                    while True:
                        op = _prompt("parts: a) add  u) update  r) remove  (empty when done): ").lower()
                        if not op:
                            break
                        if op == "a":
                            job = ctx.maintenance.add_part(
                                state,
                                job,
                                product_id=_prompt("  product_id: "),
                                quantity=int(_prompt("  quantity: ") or "1"),
                                price=_prompt("  price (empty for catalog price): ") or None,
                            )
                        elif op == "u":
                            index = int(_prompt("  line #: "))
                            qty = _prompt("  quantity (empty keeps): ")
                            job = ctx.maintenance.update_part(
                                job,
                                index,
                                quantity=int(qty) if qty else None,
                                price=_prompt("  price (empty keeps): ") or None,
                            )
                        elif op == "r":
                            job = ctx.maintenance.remove_part(job, int(_prompt("  line #: ")))
                        else:
                            print("Unknown part action.")
                    job = ctx.maintenance.save_job(state, job)
                print(f"Saved {job.id} total={format_lyd(job.total_cost)} remaining={format_lyd(job.remaining_amount)}")

            elif choice == "15":
                permissions.require(user, "customer.edit")
                with store.transaction() as state:
                    c = ctx.customer_repo.require(state, _prompt("customer_id: "))
                    changes = _changes(
                        {
                            "name": f"name [{c.name}]: ",
                            "contact": f"contact [{c.contact}]: ",
                            "type": f"type Permanent/WalkIn [{c.type}]: ",
                            "balance": f"balance [{c.balance}]: ",
                        }
                    )
                    c = ctx.customer_repo.update(state, c.id, **changes)
                print(f"#{c.id} {c.name} balance={format_lyd(c.balance)}")

            elif choice == "16":
                permissions.require(user, "customer.edit")
                customer_id = _prompt("customer_id: ")
                with store.transaction() as state:
                    c = ctx.customer_repo.require(state, customer_id)
                    if _prompt(f"Delete {c.name}? (y/n): ").lower() == "y":
                        ctx.customer_repo.delete(state, customer_id)
                        print(f"Deleted #{customer_id}")

            elif choice == "17":
                permissions.require(user, "catalog.edit")
                with store.transaction() as state:
                    p = ctx.product_repo.require(state, _prompt("product_id: "))
                    changes = _changes(
                        {
                            "name": f"name [{p.name}]: ",
                            "category": f"category [{p.category}]: ",
                            "price": f"price LYD [{p.price}]: ",
                            "cost_usd": f"cost USD [{p.cost_usd}]: ",
                            "stock": f"stock [{p.stock}]: ",
                            "min_stock": f"min stock [{p.min_stock}]: ",
                            "location": f"location [{p.location}]: ",
                        }
                    )
                    p = ctx.product_repo.update(state, p.id, **changes)
                print(f"#{p.id} {p.name} price={format_lyd(p.price)} stock={p.stock}")

            elif choice == "18":
                permissions.require(user, "catalog.edit")
                product_id = _prompt("product_id: ")
                with store.transaction() as state:
                    p = ctx.product_repo.require(state, product_id)
                    if _prompt(f"Delete {p.name}? (y/n): ").lower() == "y":
                        ctx.product_repo.delete(state, product_id)
                        print(f"Deleted #{product_id}")

            elif choice == "19":
                permissions.require(user, "archive.view")
                search = _prompt("invoice number or name (optional): ")
                kind = _prompt(f"type {list(ARCHIVE_KINDS)} (All): ") or "All"
                with store.session() as state:
                    entries = archive_search(ctx.sale_repo.list(state), ctx.supply_repo.list(state), search, kind)
                for e in entries:
                    print(f"{e.id} {e.date[:10]} {e.kind:<11} {e.party} {format_lyd(e.total)}")
                if not entries:
                    print("No matching invoices.")

            else:
                print("Unknown choice.")

        except ValidationError as e:
            print(f"[INPUT ERROR] {e}")
        except NotFoundError as e:
            print(f"[NOT FOUND] {e}")
        except PermissionDenied as e:
            print(f"[DENIED] {e}")
        except ImportFileError as e:
            print(f"[IMPORT ERROR] {e}")
        except ValueError as e:
            print(f"[VALUE ERROR] {e}")
        except Exception as e:
            print(f"[ERROR] {type(e).__name__}: {e}")
