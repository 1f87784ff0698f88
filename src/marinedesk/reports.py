from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable

from .domain import PRODUCT_CATEGORIES, Customer, MaintenanceRecord, Product, Sale, SupplyInvoice
from .money import ZERO

ACTIVE_STATUSES = frozenset({"Entered", "Inspected", "In Progress"})
ARCHIVE_KINDS = ("All", "Sale", "Maintenance", "Supply")


@dataclass(frozen=True)
class DailyTotals:
    day: str
    count: int = 0
    total: Decimal = ZERO
    cash: Decimal = ZERO
    credit: Decimal = ZERO
    check: Decimal = ZERO
    transfer: Decimal = ZERO


@dataclass(frozen=True)
class InventoryValuation:
    total: Decimal
    by_category: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class DebtExposure:
    total: Decimal
    debtors: list[Customer]


@dataclass(frozen=True)
class MaintenanceExposure:
    count: int
    total_remaining: Decimal
    jobs: list[MaintenanceRecord]


@dataclass(frozen=True)
class ArchiveEntry:
    id: str
    date: str
    kind: str
    party: str
    total: Decimal
    document: Sale | SupplyInvoice


def _day_prefix(day: date | str) -> str:
    return day if isinstance(day, str) else day.isoformat()


def sales_on(sales: Iterable[Sale], day: date | str) -> list[Sale]:
    prefix = _day_prefix(day)
    return [s for s in sales if s.date.startswith(prefix)]


def daily_sales_totals(sales: Iterable[Sale], day: date | str) -> DailyTotals:
    """Sum the day's sales overall and per payment method.

    ``Credit`` sales count toward ``credit`` (debt-like); Sale and Maintenance
    invoices pool into the same figures.
    """
    todays = sales_on(sales, day)
    buckets = {"Cash": ZERO, "Credit": ZERO, "Check": ZERO, "Transfer": ZERO}
    for s in todays:
        buckets[s.payment_method] = buckets.get(s.payment_method, ZERO) + s.total
    return DailyTotals(
        day=_day_prefix(day),
        count=len(todays),
        total=sum((s.total for s in todays), ZERO),
        cash=buckets["Cash"],
        credit=buckets["Credit"],
        check=buckets["Check"],
        transfer=buckets["Transfer"],
    )


def sales_by_day(sales: Iterable[Sale], end_day: date, days: int = 7) -> list[tuple[str, Decimal]]:
    sales = list(sales)
    series = []
    for offset in range(days - 1, -1, -1):
        d = (end_day - timedelta(days=offset)).isoformat()
        series.append((d, sum((s.total for s in sales_on(sales, d)), ZERO)))
    return series


def inventory_valuation(products: Iterable[Product]) -> InventoryValuation:
    per_cat = {cat: ZERO for cat in PRODUCT_CATEGORIES}
    for p in products:
        per_cat[p.category] = per_cat.get(p.category, ZERO) + p.price * p.stock
    return InventoryValuation(
        total=sum(per_cat.values(), ZERO),
        by_category={cat: v for cat, v in per_cat.items() if v != 0},
    )


def low_stock(products: Iterable[Product]) -> list[Product]:
    return [p for p in products if p.stock <= p.min_stock]


def debt_exposure(customers: Iterable[Customer]) -> DebtExposure:
    debtors = [c for c in customers if c.balance < 0]
    return DebtExposure(total=sum((abs(c.balance) for c in debtors), ZERO), debtors=debtors)


def maintenance_exposure(jobs: Iterable[MaintenanceRecord]) -> MaintenanceExposure:
    unpaid = [j for j in jobs if j.remaining_amount > 0]
    return MaintenanceExposure(
        count=len(unpaid),
        total_remaining=sum((j.remaining_amount for j in unpaid), ZERO),
        jobs=unpaid,
    )


def maintenance_counts(jobs: Iterable[MaintenanceRecord]) -> dict[str, int]:
    jobs = list(jobs)
    return {
        "total": len(jobs),
        "active": sum(1 for j in jobs if j.status in ACTIVE_STATUSES),
        "finished": sum(1 for j in jobs if j.status == "Finished"),
        "delivered": sum(1 for j in jobs if j.status == "Delivered"),
    }


def customer_statement(
    customer: Customer, sales: Iterable[Sale], jobs: Iterable[MaintenanceRecord]
) -> dict:
    own_sales = [s for s in sales if s.customer_id == customer.id]
    own_jobs = [j for j in jobs if j.customer_id == customer.id]
    return {
        "customer": customer,
        "balance": customer.balance,
        "sales": own_sales,
        "sales_total": sum((s.total for s in own_sales), ZERO),
        "jobs": own_jobs,
        "jobs_count": len(own_jobs),
        "jobs_total_cost": sum((j.total_cost for j in own_jobs), ZERO),
    }


def dashboard_summary(
    *,
    today: date,
    sales: Iterable[Sale],
    customers: Iterable[Customer],
    jobs: Iterable[MaintenanceRecord],
    products: Iterable[Product],
) -> dict:
    return {
        "today_revenue": daily_sales_totals(sales, today).total,
        "total_debts": debt_exposure(customers).total,
        "active_jobs": maintenance_counts(jobs)["active"],
        "low_stock": len(low_stock(products)),
    }


def archive_search(
    sales: Iterable[Sale], supply_invoices: Iterable[SupplyInvoice], search: str = "", kind: str = "All"
) -> list[ArchiveEntry]:
    """Sales, maintenance and supply invoices in one newest-first list.

    ``search`` matches the invoice number or the customer/supplier name.
    ``kind`` is one of ARCHIVE_KINDS; Sale and Maintenance follow the sale's
    invoice_type.
    """
    if kind not in ARCHIVE_KINDS:
        raise ValueError(f"Unknown archive filter: {kind}")
    needle = search.strip().lower()

    entries = []
    if kind != "Supply":
        for s in sales:
            if kind != "All" and s.invoice_type != kind:
                continue
            if needle and needle not in s.id.lower() and needle not in s.customer_name.lower():
                continue
            entries.append(ArchiveEntry(s.id, s.date, s.invoice_type, s.customer_name, s.total, s))
    if kind in ("All", "Supply"):
        for inv in supply_invoices:
            if needle and needle not in inv.id.lower() and needle not in inv.supplier_name.lower():
                continue
            entries.append(
                ArchiveEntry(inv.id, inv.date.isoformat(), "Supply", inv.supplier_name, inv.total_lyd, inv)
            )
    entries.sort(key=lambda e: e.date, reverse=True)
    return entries
