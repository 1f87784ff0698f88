from __future__ import annotations

import copy
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from marinedesk.config import parse_config
from marinedesk.context import build_context


class FixedClock:
    def __init__(self, moment: datetime) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment

    def advance(self, **kwargs) -> datetime:
        self.moment += timedelta(**kwargs)
        return self.moment


CONFIG = {
    "app": {"name": "MarineDesk Test", "log_level": "DEBUG", "default_user": "admin"},
    "business": {"company_name": "Test Marine", "allow_negative_stock": False},
    "users": [
        {"id": "U001", "username": "admin", "name": "Manager", "role": "Admin", "permissions": []},
        {
            "id": "U002",
            "username": "sales",
            "name": "Sales Clerk",
            "role": "User",
            "permissions": ["dashboard", "sales", "customers"],
        },
        {"id": "U003", "username": "tech", "name": "Engineer", "role": "User", "permissions": ["maintenance"]},
    ],
}


@pytest.fixture
def clock():
    return FixedClock(datetime(2024, 5, 20, 10, 30))


@pytest.fixture
def cfg():
    return parse_config(CONFIG)


@pytest.fixture
def ctx(cfg, clock):
    context = build_context(cfg, clock=clock)
    with context.store.transaction() as state:
        products = context.product_repo
        products.create(
            state, product_id="P001", name="Yamaha 200HP engine", category="Engine",
            price=Decimal("45000"), cost_usd=Decimal("6000"), stock=5, min_stock=2,
        )
        products.create(
            state, product_id="P002", name="Life jacket", category="Equipment",
            price=Decimal("350"), cost_usd=Decimal("40"), stock=50, min_stock=20,
        )
        products.create(
            state, product_id="P005", name="Engine oil 5L", category="Fluid",
            price=Decimal("150"), cost_usd=Decimal("15"), stock=100, min_stock=30,
        )
        products.create(
            state, product_id="P006", name="Spark plugs V8", category="SparePart",
            price=Decimal("65"), cost_usd=Decimal("5"), stock=8, min_stock=10,
        )
        customers = context.customer_repo
        customers.create(state, customer_id="C001", name="Ahmed", contact="0911234567")
        customers.create(
            state, customer_id="C002", name="Red Sea Co", contact="0929988776", balance=Decimal("-15000")
        )
    return context


@pytest.fixture
def state(ctx):
    return ctx.store.state


@pytest.fixture
def admin(ctx):
    return ctx.user("admin")


@pytest.fixture
def config_data():
    return copy.deepcopy(CONFIG)
