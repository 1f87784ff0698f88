from __future__ import annotations

from typing import Optional

from ..domain import Sale
from ..store import State
from . import _memory


class SaleRepository:
    def append(self, state: State, sale: Sale) -> Sale:
        return _memory.insert(state.sales, sale.id, sale, "sale")

    def get(self, state: State, sale_id: str) -> Optional[Sale]:
        return state.sales.get(sale_id)

    def require(self, state: State, sale_id: str) -> Sale:
        return _memory.require(state.sales, sale_id, "sale")

    def list(self, state: State, limit: int | None = None) -> list[Sale]:
        return _memory.newest_first(state.sales, limit)

    def list_for_customer(self, state: State, customer_id: str) -> list[Sale]:
        return [s for s in self.list(state) if s.customer_id == customer_id]

    def delete(self, state: State, sale_id: str) -> Sale:
        sale = self.require(state, sale_id)
        del state.sales[sale_id]
        return sale
