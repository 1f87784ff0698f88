from __future__ import annotations

from typing import Optional

from ..domain import Supplier
from ..store import State
from . import _memory


class SupplierRepository:
    def upsert(self, state: State, supplier: Supplier) -> Supplier:
        state.suppliers[supplier.id] = supplier
        return supplier

    def get(self, state: State, supplier_id: str) -> Optional[Supplier]:
        return state.suppliers.get(supplier_id)

    def require(self, state: State, supplier_id: str) -> Supplier:
        return _memory.require(state.suppliers, supplier_id, "supplier")

    def list(self, state: State) -> list[Supplier]:
        return list(state.suppliers.values())
