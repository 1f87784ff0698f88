from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..domain import (
    COMPLETED_STATUSES,
    MAINTENANCE_STATUSES,
    MaintenancePart,
    MaintenanceRecord,
    Sale,
    SaleItem,
)
from ..errors import ValidationError
from ..money import ZERO, lines_total, to_decimal
from ..repositories.customer_repo import CustomerRepository
from ..repositories.maintenance_repo import MaintenanceRepository
from ..repositories.product_repo import ProductRepository
from ..store import State

log = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "customer_id",
    "technician",
    "device_info",
    "service_type",
    "inspection_notes",
    "status",
    "labor_cost",
    "paid_amount",
)


def recompute_financials(job: MaintenanceRecord) -> MaintenanceRecord:
    total_cost = job.labor_cost + lines_total(job.parts_used)
    return replace(job, total_cost=total_cost, remaining_amount=total_cost - job.paid_amount)


def apply_completion_date(job: MaintenanceRecord, now: datetime) -> MaintenanceRecord:
    """Keep completion_date set iff the job sits in Finished or Delivered.

    An existing date survives Finished -> Delivered; any earlier status clears it.
    """
    if job.status in COMPLETED_STATUSES:
        return replace(job, completion_date=job.completion_date or now)
    return replace(job, completion_date=None)


def materialize_invoice(job: MaintenanceRecord, *, created_by: str) -> Sale:
    """Project a job onto a printable Maintenance invoice. Nothing is posted."""
    items = tuple(
        SaleItem(product_id=p.product_id, product_name=p.product_name, quantity=p.quantity, price=p.price)
        for p in job.parts_used
    )
    labor = job.labor_cost or ZERO
    total = job.total_cost or labor + lines_total(items)
    date = job.completion_date or job.date
    return Sale(
        id=job.id,
        date=date.isoformat(),
        customer_id=job.customer_id,
        customer_name=job.customer_name,
        customer_type="Permanent",
        items=items,
        labor_cost=labor,
        total=total,
        payment_method="Credit" if job.remaining_amount > 0 else "Cash",
        status="Completed",
        invoice_type="Maintenance",
        maintenance_device=job.device_info,
        notes=job.inspection_notes,
        created_by=created_by,
    )


class MaintenanceService:
    def __init__(
        self,
        *,
        customer_repo: CustomerRepository,
        product_repo: ProductRepository,
        maintenance_repo: MaintenanceRepository,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.customer_repo = customer_repo
        self.product_repo = product_repo
        self.maintenance_repo = maintenance_repo
        self.clock = clock

    def create_job(
        self,
        state: State,
        *,
        customer_id: str = "",
        technician: str = "",
        device_info: str = "",
        service_type: str = "",
        inspection_notes: str = "",
        labor_cost=ZERO,
        paid_amount=ZERO,
    ) -> MaintenanceRecord:
        customer = self.customer_repo.get(state, customer_id) if customer_id else None
        job_id = state.ids.next("JOB", 4, lambda c: c in state.maintenance)
        job = MaintenanceRecord(
            id=job_id,
            date=self.clock(),
            customer_id=customer_id,
            customer_name=customer.name if customer else "",
            technician=technician,
            device_info=device_info,
            service_type=service_type,
            inspection_notes=inspection_notes,
            status="Entered",
            labor_cost=to_decimal(labor_cost),
            parts_used=(),
            total_cost=ZERO,
            paid_amount=to_decimal(paid_amount),
            remaining_amount=ZERO,
        )
        return recompute_financials(job)

    def add_part(
        self,
        state: State,
        job: MaintenanceRecord,
        *,
        product_id: str,
        quantity: int = 1,
        price: Optional[Decimal] = None,
    ) -> MaintenanceRecord:
        product = self.product_repo.require(state, product_id)
        part = MaintenancePart(
            product_id=product.id,
            product_name=product.name,
            quantity=int(quantity),
            price=product.price if price is None else to_decimal(price),
        )
        _check_part(part)
        return replace(job, parts_used=job.parts_used + (part,))

    def update_part(
        self,
        job: MaintenanceRecord,
        index: int,
        *,
        quantity: Optional[int] = None,
        price: Optional[Decimal] = None,
    ) -> MaintenanceRecord:
        parts = list(job.parts_used)
        if not 0 <= index < len(parts):
            raise ValidationError(f"No part line #{index} on job {job.id}.")
        part = parts[index]
        if quantity is not None:
            part = replace(part, quantity=int(quantity))
        if price is not None:
            part = replace(part, price=to_decimal(price))
        _check_part(part)
        parts[index] = part
        return replace(job, parts_used=tuple(parts))

    def remove_part(self, job: MaintenanceRecord, index: int) -> MaintenanceRecord:
        if not 0 <= index < len(job.parts_used):
            raise ValidationError(f"No part line #{index} on job {job.id}.")
        return replace(job, parts_used=job.parts_used[:index] + job.parts_used[index + 1 :])

    def save_job(self, state: State, job: MaintenanceRecord) -> MaintenanceRecord:
        if not (job.customer_id.strip() and job.device_info.strip() and job.technician.strip()):
            log.debug("job %s rejected: missing customer, device or technician", job.id)
            raise ValidationError("Customer, device and technician are required.")
        if job.status not in MAINTENANCE_STATUSES:
            raise ValidationError(f"Unknown maintenance status: {job.status}")
        if job.labor_cost < 0 or job.paid_amount < 0:
            raise ValidationError("Labor cost and paid amount cannot be negative.")
        customer = self.customer_repo.get(state, job.customer_id)
        if customer is None:
            raise ValidationError(f"Unknown customer: {job.customer_id}")

        job = replace(job, customer_name=customer.name)
        job = apply_completion_date(recompute_financials(job), self.clock())
        saved = self.maintenance_repo.save(state, job)
        log.info(
            "job %s saved status=%s total=%s remaining=%s",
            saved.id,
            saved.status,
            saved.total_cost,
            saved.remaining_amount,
        )
        return saved

    def edit_job(self, state: State, job_id: str, **changes) -> MaintenanceRecord:
        """Apply field edits to a stored job and save it through the same checks as a new one."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit job fields: {sorted(unknown)}")
        for key in ("labor_cost", "paid_amount"):
            if key in changes:
                changes[key] = to_decimal(changes[key])
        for key in set(changes) - {"labor_cost", "paid_amount"}:
            changes[key] = str(changes[key]).strip()
        job = self.maintenance_repo.require(state, job_id)
        return self.save_job(state, replace(job, **changes))

    def change_status(self, state: State, job_id: str, status: str) -> MaintenanceRecord:
        if status not in MAINTENANCE_STATUSES:
            raise ValidationError(f"Unknown maintenance status: {status}")
        job = self.maintenance_repo.require(state, job_id)
        previous = job.status
        job = apply_completion_date(recompute_financials(replace(job, status=status)), self.clock())
        saved = self.maintenance_repo.save(state, job)
        log.info("job %s moved %s -> %s", job_id, previous, status)
        return saved

    def record_job_payment(self, state: State, job_id: str, amount) -> MaintenanceRecord:
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Payment amount must be greater than zero.")
        job = self.maintenance_repo.require(state, job_id)
        return self.save_job(state, replace(job, paid_amount=job.paid_amount + amount))

    def delete_job(self, state: State, job_id: str) -> None:
        self.maintenance_repo.delete(state, job_id)
        log.info("job %s deleted", job_id)

    def board(self, state: State, search: str = "") -> list[tuple[str, list[MaintenanceRecord]]]:
        needle = search.strip().lower()
        jobs = [
            j
            for j in self.maintenance_repo.list(state)
            if not needle
            or needle in j.customer_name.lower()
            or needle in j.device_info.lower()
            or needle in j.id.lower()
        ]
        return [(status, [j for j in jobs if j.status == status]) for status in MAINTENANCE_STATUSES]

    def invoice_for(self, state: State, job_id: str, *, created_by: str) -> Sale:
        return materialize_invoice(self.maintenance_repo.require(state, job_id), created_by=created_by)


def _check_part(part: MaintenancePart) -> None:
    if part.quantity <= 0:
        raise ValidationError("Part quantity must be > 0.")
    if part.price < 0:
        raise ValidationError("Part price cannot be negative.")
