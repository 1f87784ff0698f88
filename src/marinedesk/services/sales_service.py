from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from ..domain import (
    DEBT_PAYMENT_METHODS,
    DEBT_PAYMENT_PRODUCT_ID,
    PAYMENT_METHODS,
    WALK_IN_CUSTOMER_ID,
    Sale,
    SaleItem,
)
from ..errors import ValidationError
from ..money import ZERO, lines_total, to_decimal
from ..repositories.customer_repo import CustomerRepository
from ..repositories.product_repo import ProductRepository
from ..repositories.sale_repo import SaleRepository
from ..store import State

log = logging.getLogger(__name__)

DEBT_PAYMENT_LABEL = "Settlement of previous debt"
DEBT_PAYMENT_NOTE = "Partial settlement of the customer's outstanding debt"


@dataclass
class SaleLineInput:
    product_id: str
    quantity: int = 1
    price: Optional[Decimal] = None


class SalesService:
    def __init__(
        self,
        *,
        customer_repo: CustomerRepository,
        product_repo: ProductRepository,
        sale_repo: SaleRepository,
        allow_negative_stock: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.customer_repo = customer_repo
        self.product_repo = product_repo
        self.sale_repo = sale_repo
        self.allow_negative_stock = allow_negative_stock
        self.clock = clock

    def build_sale(
        self,
        state: State,
        *,
        customer_id: str | None = None,
        walk_in_name: str | None = None,
        items: list[SaleLineInput],
        labor_cost=ZERO,
        payment_method: str = "Cash",
        maintenance_device: str | None = None,
        notes: str | None = None,
        created_by: str,
        sale_id: str = "PREVIEW",
    ) -> Sale:
        """Validate and price a sale without touching the ledger or stock."""
        if customer_id:
            customer = self.customer_repo.get(state, customer_id)
            if customer is None:
                raise ValidationError(f"Unknown customer: {customer_id}")
            customer_name, customer_type = customer.name, "Permanent"
        elif walk_in_name and walk_in_name.strip():
            customer_id, customer_name, customer_type = WALK_IN_CUSTOMER_ID, walk_in_name.strip(), "WalkIn"
        else:
            raise ValidationError("Please select a customer or enter a walk-in name.")

        labor_cost = to_decimal(labor_cost)
        if labor_cost < 0:
            raise ValidationError("Labor cost cannot be negative.")
        if payment_method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method: {payment_method}")

        lines = self._resolve_lines(state, items)
        if not lines and labor_cost <= 0:
            raise ValidationError("Add at least one product or a labor charge.")
        device = (maintenance_device or "").strip() or None
        if labor_cost > 0 and not lines and not device:
            raise ValidationError("Enter the engine or boat details for a labor-only invoice.")

        return Sale(
            id=sale_id,
            date=self.clock().isoformat(),
            customer_id=customer_id,
            customer_name=customer_name,
            customer_type=customer_type,
            items=lines,
            labor_cost=labor_cost,
            total=lines_total(lines) + labor_cost,
            payment_method=payment_method,
            status="Completed",
            invoice_type="Maintenance" if labor_cost > 0 else "Sale",
            maintenance_device=device,
            notes=(notes or "").strip() or None,
            created_by=created_by,
        )

    def create_sale(self, state: State, **kwargs) -> Sale:
        kwargs.pop("sale_id", None)
        sale = self.build_sale(state, **kwargs)
        if not self.allow_negative_stock:
            for product_id, qty in _quantities(sale.items).items():
                product = self.product_repo.require(state, product_id)
                if product.stock < qty:
                    log.debug("sale rejected: %s has %s, needs %s", product.id, product.stock, qty)
                    raise ValidationError(f"Not enough stock for {product.name}: have {product.stock}, need {qty}")

        # numbered only once it is known to commit
        sale = replace(sale, id=state.ids.next("INV", 4, lambda c: c in state.sales))

        self.sale_repo.append(state, sale)
        for item in sale.items:
            self.product_repo.decrease_stock(
                state,
                product_id=item.product_id,
                qty=item.quantity,
                allow_negative=self.allow_negative_stock,
            )
        log.info(
            "sale %s recorded customer=%s total=%s method=%s",
            sale.id,
            sale.customer_name,
            sale.total,
            sale.payment_method,
        )
        return sale

    def record_debt_payment(
        self,
        state: State,
        *,
        customer_id: str,
        amount,
        payment_method: str = "Cash",
        notes: str | None = None,
        created_by: str,
    ) -> Sale:
        amount = to_decimal(amount)
        if amount <= 0:
            raise ValidationError("Please enter a valid payment amount.")
        if payment_method not in DEBT_PAYMENT_METHODS:
            raise ValidationError(f"Debt payments cannot use method: {payment_method}")
        customer = self.customer_repo.get(state, customer_id) if customer_id else None
        if customer is None:
            raise ValidationError("Please select the customer.")

        sale = Sale(
            id=state.ids.next("PAY", 6, lambda c: c in state.sales),
            date=self.clock().isoformat(),
            customer_id=customer.id,
            customer_name=customer.name,
            customer_type=customer.type,
            items=(SaleItem(DEBT_PAYMENT_PRODUCT_ID, DEBT_PAYMENT_LABEL, 1, amount),),
            labor_cost=ZERO,
            total=amount,
            payment_method=payment_method,
            status="Completed",
            invoice_type="Sale",
            notes=(notes or "").strip() or DEBT_PAYMENT_NOTE,
            created_by=created_by,
        )
        self.sale_repo.append(state, sale)
        updated = self.customer_repo.adjust_balance(state, customer_id=customer.id, amount=amount)
        log.info(
            "debt payment %s customer=%s amount=%s balance %s -> %s",
            sale.id,
            customer.id,
            amount,
            customer.balance,
            updated.balance,
        )
        return sale

    def delete_sale(self, state: State, sale_id: str) -> Sale:
        # ledger-only removal: stock and balances stay as they are
        sale = self.sale_repo.delete(state, sale_id)
        log.info("sale %s deleted", sale_id)
        return sale

    def _resolve_lines(self, state: State, items: list[SaleLineInput]) -> tuple[SaleItem, ...]:
        # same product at the same price collapses into one line
        merged: dict[tuple[str, Decimal], SaleItem] = {}
        for it in items:
            if int(it.quantity) < 1:
                raise ValidationError("Item quantity must be at least 1.")
            product = self.product_repo.get(state, it.product_id)
            if product is None:
                raise ValidationError(f"Unknown product: {it.product_id}")
            price = product.price if it.price is None else to_decimal(it.price)
            if price < 0:
                raise ValidationError("Item price cannot be negative.")

            key = (product.id, price)
            existing = merged.get(key)
            qty = int(it.quantity) + (existing.quantity if existing is not None else 0)
            merged[key] = SaleItem(product.id, product.name, qty, price)
        return tuple(merged.values())


def _quantities(items) -> dict[str, int]:
    totals: dict[str, int] = {}
    for it in items:
        totals[it.product_id] = totals.get(it.product_id, 0) + it.quantity
    return totals
