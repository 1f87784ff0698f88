from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Iterator

from .domain import Customer, MaintenanceRecord, Product, Sale, Supplier, SupplyInvoice, User
from .ids import IdGenerator

COLLECTIONS = ("products", "customers", "suppliers", "users", "sales", "maintenance", "supply_invoices")


@dataclass
class State:
    products: dict[str, Product] = field(default_factory=dict)
    customers: dict[str, Customer] = field(default_factory=dict)
    suppliers: dict[str, Supplier] = field(default_factory=dict)
    users: dict[str, User] = field(default_factory=dict)
    sales: dict[str, Sale] = field(default_factory=dict)
    maintenance: dict[str, MaintenanceRecord] = field(default_factory=dict)
    supply_invoices: dict[str, SupplyInvoice] = field(default_factory=dict)
    ids: IdGenerator = field(default_factory=IdGenerator)

    def snapshot(self) -> dict[str, dict]:
        # entities are frozen, so copying the mappings is enough
        snap = {name: dict(getattr(self, name)) for name in COLLECTIONS}
        snap["ids"] = self.ids.counters()
        return snap

    def restore(self, snapshot: dict[str, dict]) -> None:
        self.ids.reset(snapshot["ids"])
        for name in COLLECTIONS:
            items = snapshot[name]
            coll = getattr(self, name)
            coll.clear()
            coll.update(items)


class Store:
    """Owns the in-memory collections and serializes access to them."""

    def __init__(self, state: State | None = None) -> None:
        self.state = state if state is not None else State()
        self._lock = threading.RLock()

    @contextmanager
    def session(self) -> Iterator[State]:
        with self._lock:
            yield self.state

    @contextmanager
    def transaction(self) -> Iterator[State]:
        with self._lock:
            snapshot = self.state.snapshot()
            try:
                yield self.state
            except Exception:
                self.state.restore(snapshot)
                raise
