from __future__ import annotations

from dataclasses import replace as evolve
from decimal import Decimal
from typing import Optional

from ..domain import Customer
from ..errors import ValidationError
from ..money import to_decimal
from ..store import State
from . import _memory

CUSTOMER_TYPES = ("Permanent", "WalkIn")
EDITABLE_FIELDS = ("name", "contact", "type", "balance")


def _check(customer: Customer) -> Customer:
    if not customer.name:
        raise ValidationError("Customer name cannot be empty.")
    if customer.type not in CUSTOMER_TYPES:
        raise ValidationError(f"Unknown customer type: {customer.type}")
    return customer


class CustomerRepository:
    def create(
        self,
        state: State,
        *,
        name: str,
        contact: str = "",
        type: str = "Permanent",
        balance: Decimal = Decimal("0"),
        customer_id: str | None = None,
    ) -> Customer:
        customer = _check(
            Customer(
                id=customer_id or "",
                name=name.strip(),
                contact=contact.strip(),
                type=type,
                balance=to_decimal(balance),
            )
        )
        cid = customer_id or state.ids.next("C", 4, lambda c: c in state.customers)
        return _memory.insert(state.customers, cid, evolve(customer, id=cid), "customer")

    def update(self, state: State, customer_id: str, **changes) -> Customer:
        # a balance given here overwrites the ledger figure as entered
        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot edit customer fields: {sorted(unknown)}")
        for key in ("name", "contact", "type"):
            if key in changes:
                changes[key] = str(changes[key]).strip()
        if "balance" in changes:
            changes["balance"] = to_decimal(changes["balance"])
        customer = _check(evolve(self.require(state, customer_id), **changes))
        return self.save(state, customer)

    def get(self, state: State, customer_id: str) -> Optional[Customer]:
        return state.customers.get(customer_id)

    def require(self, state: State, customer_id: str) -> Customer:
        return _memory.require(state.customers, customer_id, "customer")

    def list(self, state: State, limit: int | None = None) -> list[Customer]:
        return _memory.newest_first(state.customers, limit)

    def save(self, state: State, customer: Customer) -> Customer:
        return _memory.replace(state.customers, customer.id, customer, "customer")

    def delete(self, state: State, customer_id: str) -> Customer:
        # sales and jobs keep their copied customer name
        customer = self.require(state, customer_id)
        del state.customers[customer_id]
        return customer

    def adjust_balance(self, state: State, *, customer_id: str, amount: Decimal) -> Customer:
        customer = self.require(state, customer_id)
        return self.save(state, evolve(customer, balance=customer.balance + to_decimal(amount)))
