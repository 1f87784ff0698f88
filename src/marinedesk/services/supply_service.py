from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable

from ..domain import SupplyInvoice, SupplyItem
from ..errors import ValidationError
from ..money import ZERO, line_total, to_decimal
from ..repositories.product_repo import ProductRepository
from ..repositories.supplier_repo import SupplierRepository
from ..repositories.supply_repo import SupplyInvoiceRepository
from ..store import State

log = logging.getLogger(__name__)

DEFAULT_SUPPLIER_ID = "S-MERCURY"


@dataclass
class SupplyLineInput:
    product_id: str
    quantity: int
    cost_usd: Decimal
    price_lyd: Decimal


class SupplyService:
    def __init__(
        self,
        *,
        product_repo: ProductRepository,
        supplier_repo: SupplierRepository,
        supply_repo: SupplyInvoiceRepository,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.product_repo = product_repo
        self.supplier_repo = supplier_repo
        self.supply_repo = supply_repo
        self.clock = clock

    def receive_supply(
        self,
        state: State,
        *,
        items: list[SupplyLineInput],
        supplier_name: str = "",
        supplier_id: str | None = None,
        notes: str | None = None,
        created_by: str,
    ) -> SupplyInvoice:
        if not items:
            raise ValidationError("Please add products to the supply invoice.")

        if supplier_id:
            supplier = self.supplier_repo.get(state, supplier_id)
            if supplier is None:
                raise ValidationError(f"Unknown supplier: {supplier_id}")
            supplier_name = supplier_name.strip() or supplier.name
        elif not supplier_name.strip():
            raise ValidationError("Supplier name cannot be empty.")

        lines = []
        for it in items:
            product = self.product_repo.get(state, it.product_id)
            if product is None:
                raise ValidationError(f"Unknown product: {it.product_id}")
            if int(it.quantity) < 1:
                raise ValidationError("Supply quantity must be at least 1.")
            cost_usd, price_lyd = to_decimal(it.cost_usd), to_decimal(it.price_lyd)
            if cost_usd < 0 or price_lyd < 0:
                raise ValidationError("Supply prices cannot be negative.")
            lines.append(SupplyItem(product.id, product.name, int(it.quantity), cost_usd, price_lyd))

        now = self.clock()
        invoice = SupplyInvoice(
            id=state.ids.timestamped("SUP", now, lambda c: c in state.supply_invoices),
            date=now,
            supplier_id=supplier_id or DEFAULT_SUPPLIER_ID,
            supplier_name=supplier_name.strip(),
            items=tuple(lines),
            total_usd=sum((line_total(ln.cost_usd, ln.quantity) for ln in lines), ZERO),
            total_lyd=sum((line_total(ln.price_lyd, ln.quantity) for ln in lines), ZERO),
            notes=(notes or "").strip() or None,
            created_by=created_by,
        )
        self.supply_repo.append(state, invoice)
        for ln in lines:
            # last write wins on pricing
            self.product_repo.receive_stock(
                state,
                product_id=ln.product_id,
                qty=ln.quantity,
                cost_usd=ln.cost_usd,
                price=ln.price_lyd,
            )
        log.info(
            "supply %s received from %s: %d lines, %s USD / %s LYD",
            invoice.id,
            invoice.supplier_name,
            len(lines),
            invoice.total_usd,
            invoice.total_lyd,
        )
        return invoice
