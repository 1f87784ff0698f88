from __future__ import annotations

from typing import Optional

from ..domain import MaintenanceRecord
from ..store import State
from . import _memory


class MaintenanceRepository:
    def save(self, state: State, record: MaintenanceRecord) -> MaintenanceRecord:
        if record.id in state.maintenance:
            return _memory.replace(state.maintenance, record.id, record, "maintenance job")
        return _memory.insert(state.maintenance, record.id, record, "maintenance job")

    def get(self, state: State, job_id: str) -> Optional[MaintenanceRecord]:
        return state.maintenance.get(job_id)

    def require(self, state: State, job_id: str) -> MaintenanceRecord:
        return _memory.require(state.maintenance, job_id, "maintenance job")

    def list(self, state: State, limit: int | None = None) -> list[MaintenanceRecord]:
        return _memory.newest_first(state.maintenance, limit)

    def list_for_customer(self, state: State, customer_id: str) -> list[MaintenanceRecord]:
        return [m for m in self.list(state) if m.customer_id == customer_id]

    def delete(self, state: State, job_id: str) -> None:
        self.require(state, job_id)
        del state.maintenance[job_id]
