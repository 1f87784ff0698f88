"""Finalized document objects handed to the print/PDF renderer.

Every builder is pure: it reads entities and returns plain dicts carrying both
the raw amounts and their display strings.
"""

from __future__ import annotations

from datetime import date

from .domain import MaintenanceRecord, Sale, SupplyInvoice, User
from .money import format_lyd, format_usd, line_total, lines_total
from .reports import daily_sales_totals, sales_on

COMPANY_NAME = "Al-Watanya Marine Systems"


def _attribution(user: User) -> dict:
    return {"prepared_by": user.name, "prepared_by_id": user.id}


def invoice_document(sale: Sale, user: User, *, company: str = COMPANY_NAME) -> dict:
    items_total = lines_total(sale.items)
    title = {
        "Maintenance": "Maintenance Invoice",
        "Supply": "Supply Invoice",
    }.get(sale.invoice_type, "Sales Invoice")
    return {
        "kind": "invoice",
        "company": company,
        "title": title,
        "number": sale.id,
        "date": sale.date[:10],
        "customer": {"id": sale.customer_id, "name": sale.customer_name, "type": sale.customer_type},
        "device": sale.maintenance_device,
        "lines": [
            {
                "product_id": it.product_id,
                "description": it.product_name,
                "quantity": it.quantity,
                "unit_price": it.price,
                "amount": line_total(it.price, it.quantity),
                "unit_price_display": format_lyd(it.price),
                "amount_display": format_lyd(line_total(it.price, it.quantity)),
            }
            for it in sale.items
        ],
        "items_total": items_total,
        "items_total_display": format_lyd(items_total),
        "labor_cost": sale.labor_cost,
        "labor_cost_display": format_lyd(sale.labor_cost),
        "total": sale.total,
        "total_display": format_lyd(sale.total),
        "payment_method": sale.payment_method,
        "notes": sale.notes,
        **_attribution(user),
    }


def supply_document(invoice: SupplyInvoice, user: User, *, company: str = COMPANY_NAME) -> dict:
    return {
        "kind": "supply",
        "company": company,
        "title": "Supply Invoice",
        "number": invoice.id,
        "date": invoice.date.date().isoformat(),
        "supplier": {"id": invoice.supplier_id, "name": invoice.supplier_name},
        "lines": [
            {
                "product_id": it.product_id,
                "description": it.product_name,
                "quantity": it.quantity,
                "cost_usd_display": format_usd(it.cost_usd),
                "price_lyd_display": format_lyd(it.price_lyd),
                "amount_usd_display": format_usd(line_total(it.cost_usd, it.quantity)),
            }
            for it in invoice.items
        ],
        "total_usd": invoice.total_usd,
        "total_usd_display": format_usd(invoice.total_usd),
        "total_lyd": invoice.total_lyd,
        "total_lyd_display": format_lyd(invoice.total_lyd),
        "notes": invoice.notes,
        **_attribution(user),
    }


def daily_report_document(sales, day: date | str, user: User, *, company: str = COMPANY_NAME) -> dict:
    sales = list(sales)
    totals = daily_sales_totals(sales, day)
    return {
        "kind": "daily_report",
        "company": company,
        "title": "Daily Sales Report",
        "date": totals.day,
        "rows": [
            {
                "number": s.id,
                "customer": s.customer_name,
                "device": s.maintenance_device or "-",
                "payment_method": s.payment_method,
                "total_display": format_lyd(s.total),
            }
            for s in sales_on(sales, day)
        ],
        "totals": {
            "total": format_lyd(totals.total),
            "cash": format_lyd(totals.cash),
            "credit": format_lyd(totals.credit),
            "check": format_lyd(totals.check),
            "transfer": format_lyd(totals.transfer),
        },
        **_attribution(user),
    }


def job_card_document(job: MaintenanceRecord, user: User, *, company: str = COMPANY_NAME) -> dict:
    return {
        "kind": "job_card",
        "company": company,
        "title": "Maintenance Job Card",
        "number": job.id,
        "date": job.date.date().isoformat(),
        "completion_date": job.completion_date.date().isoformat() if job.completion_date else None,
        "customer": job.customer_name,
        "device": job.device_info,
        "technician": job.technician,
        "service_type": job.service_type,
        "inspection_notes": job.inspection_notes,
        "status": job.status,
        "parts": [
            {
                "description": p.product_name,
                "quantity": p.quantity,
                "amount_display": format_lyd(line_total(p.price, p.quantity)),
            }
            for p in job.parts_used
        ],
        "labor_cost_display": format_lyd(job.labor_cost),
        "total_cost_display": format_lyd(job.total_cost),
        "paid_display": format_lyd(job.paid_amount),
        "remaining_display": format_lyd(job.remaining_amount),
        **_attribution(user),
    }
