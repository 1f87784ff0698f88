from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from .config import AppConfig
from .domain import User
from .repositories.customer_repo import CustomerRepository
from .repositories.maintenance_repo import MaintenanceRepository
from .repositories.product_repo import ProductRepository
from .repositories.sale_repo import SaleRepository
from .repositories.supplier_repo import SupplierRepository
from .repositories.supply_repo import SupplyInvoiceRepository
from .repositories.user_repo import UserRepository
from .services.maintenance_service import MaintenanceService
from .services.sales_service import SalesService
from .services.supply_service import SupplyService
from .store import Store


@dataclass
class AppContext:
    cfg: AppConfig
    store: Store
    customer_repo: CustomerRepository
    product_repo: ProductRepository
    supplier_repo: SupplierRepository
    user_repo: UserRepository
    sale_repo: SaleRepository
    maintenance_repo: MaintenanceRepository
    supply_repo: SupplyInvoiceRepository
    sales: SalesService
    maintenance: MaintenanceService
    supply: SupplyService
    clock: Callable[[], datetime] = datetime.now

    def user(self, username: str | None = None) -> User:
        with self.store.session() as state:
            return self.user_repo.require_by_username(state, username or self.cfg.default_user)


def build_context(
    cfg: AppConfig,
    store: Store | None = None,
    clock: Callable[[], datetime] = datetime.now,
) -> AppContext:
    store = store or Store()
    customer_repo = CustomerRepository()
    product_repo = ProductRepository()
    supplier_repo = SupplierRepository()
    user_repo = UserRepository()
    sale_repo = SaleRepository()
    maintenance_repo = MaintenanceRepository()
    supply_repo = SupplyInvoiceRepository()

    with store.transaction() as state:
        for u in cfg.users:
            user_repo.upsert(state, u)

    return AppContext(
        cfg=cfg,
        store=store,
        customer_repo=customer_repo,
        product_repo=product_repo,
        supplier_repo=supplier_repo,
        user_repo=user_repo,
        sale_repo=sale_repo,
        maintenance_repo=maintenance_repo,
        supply_repo=supply_repo,
        sales=SalesService(
            customer_repo=customer_repo,
            product_repo=product_repo,
            sale_repo=sale_repo,
            allow_negative_stock=cfg.business.allow_negative_stock,
            clock=clock,
        ),
        maintenance=MaintenanceService(
            customer_repo=customer_repo,
            product_repo=product_repo,
            maintenance_repo=maintenance_repo,
            clock=clock,
        ),
        supply=SupplyService(
            product_repo=product_repo,
            supplier_repo=supplier_repo,
            supply_repo=supply_repo,
            clock=clock,
        ),
        clock=clock,
    )
