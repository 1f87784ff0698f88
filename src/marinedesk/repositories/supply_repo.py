from __future__ import annotations

from ..domain import SupplyInvoice
from ..store import State
from . import _memory


class SupplyInvoiceRepository:
    def append(self, state: State, invoice: SupplyInvoice) -> SupplyInvoice:
        return _memory.insert(state.supply_invoices, invoice.id, invoice, "supply invoice")

    def require(self, state: State, invoice_id: str) -> SupplyInvoice:
        return _memory.require(state.supply_invoices, invoice_id, "supply invoice")

    def list(self, state: State, limit: int | None = None) -> list[SupplyInvoice]:
        return _memory.newest_first(state.supply_invoices, limit)
