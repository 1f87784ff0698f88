from __future__ import annotations

from dataclasses import replace as evolve
from decimal import Decimal
from typing import Optional

from ..domain import PRODUCT_CATEGORIES, Product
from ..errors import ValidationError
from ..money import to_decimal
from ..store import State
from . import _memory

EDITABLE_FIELDS = ("name", "category", "price", "cost_usd", "stock", "min_stock", "location", "supplier_id")


def _check(product: Product) -> Product:
    if not product.name:
        raise ValidationError("Product name cannot be empty.")
    if product.category not in PRODUCT_CATEGORIES:
        raise ValidationError(f"Unknown product category: {product.category}")
    if product.price < 0 or product.cost_usd < 0:
        raise ValidationError("Product prices cannot be negative.")
    if product.min_stock < 0:
        raise ValidationError("Minimum stock cannot be negative.")
    return product


class ProductRepository:
    def create(
        self,
        state: State,
        *,
        name: str,
        category: str,
        price: Decimal,
        cost_usd: Decimal = Decimal("0"),
        stock: int = 0,
        min_stock: int = 0,
        location: str = "",
        supplier_id: str = "",
        product_id: str | None = None,
    ) -> Product:
        product = _check(
            Product(
                id=product_id or "",
                name=name.strip(),
                category=category,
                stock=int(stock),
                price=to_decimal(price),
                cost_usd=to_decimal(cost_usd),
                min_stock=int(min_stock),
                location=location.strip(),
                supplier_id=supplier_id.strip(),
            )
        )
        pid = product_id or state.ids.next("P", 4, lambda c: c in state.products)
        return _memory.insert(state.products, pid, evolve(product, id=pid), "product")

    def update(self, state: State, product_id: str, **changes) -> Product:
        """Edit catalog fields in place. Stock set here bypasses sales and supply."""
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit product fields: {sorted(unknown)}")
        for key in ("name", "category", "location", "supplier_id"):
            if key in changes:
                changes[key] = str(changes[key]).strip()
        for key in ("price", "cost_usd"):
            if key in changes:
                changes[key] = to_decimal(changes[key])
        for key in ("stock", "min_stock"):
            if key in changes:
                changes[key] = int(changes[key])
        product = _check(evolve(self.require(state, product_id), **changes))
        return self.save(state, product)

    def get(self, state: State, product_id: str) -> Optional[Product]:
        return state.products.get(product_id)

    def require(self, state: State, product_id: str) -> Product:
        return _memory.require(state.products, product_id, "product")

    def list(self, state: State, limit: int | None = None) -> list[Product]:
        rows = list(state.products.values())
        return rows if limit is None else rows[:limit]

    def save(self, state: State, product: Product) -> Product:
        return _memory.replace(state.products, product.id, product, "product")

    def delete(self, state: State, product_id: str) -> Product:
        product = self.require(state, product_id)
        del state.products[product_id]
        return product

    def decrease_stock(self, state: State, *, product_id: str, qty: int, allow_negative: bool = False) -> Product:
        product = self.require(state, product_id)
        if not allow_negative and product.stock < qty:
            raise ValidationError(
                f"Not enough stock for {product.name} ({product_id}): have {product.stock}, need {qty}"
            )
        return self.save(state, evolve(product, stock=product.stock - qty))

    def receive_stock(self, state: State, *, product_id: str, qty: int, cost_usd: Decimal, price: Decimal) -> Product:
        product = self.require(state, product_id)
        return self.save(
            state,
            evolve(product, stock=product.stock + qty, cost_usd=to_decimal(cost_usd), price=to_decimal(price)),
        )
