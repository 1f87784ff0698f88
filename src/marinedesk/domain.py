from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

ProductCategory = Literal["Engine", "Boat", "SparePart", "Equipment", "Maintenance", "Fluid"]
CustomerType = Literal["Permanent", "WalkIn"]
PaymentMethod = Literal["Cash", "Check", "Transfer", "Credit"]
SaleStatus = Literal["Completed", "Pending"]
InvoiceType = Literal["Sale", "Maintenance", "Supply"]
MaintenanceStatus = Literal["Entered", "Inspected", "In Progress", "Finished", "Delivered"]
Role = Literal["Admin", "User"]
Permission = Literal[
    "dashboard",
    "sales",
    "inventory",
    "maintenance",
    "customers",
    "accounting",
    "settings",
    "reports",
    "messages",
    "archive",
]

PRODUCT_CATEGORIES: tuple[ProductCategory, ...] = (
    "Engine",
    "Boat",
    "SparePart",
    "Equipment",
    "Maintenance",
    "Fluid",
)
PAYMENT_METHODS: tuple[PaymentMethod, ...] = ("Cash", "Check", "Transfer", "Credit")
DEBT_PAYMENT_METHODS: tuple[PaymentMethod, ...] = ("Cash", "Check", "Transfer")
MAINTENANCE_STATUSES: tuple[MaintenanceStatus, ...] = (
    "Entered",
    "Inspected",
    "In Progress",
    "Finished",
    "Delivered",
)
COMPLETED_STATUSES = frozenset({"Finished", "Delivered"})
ALL_PERMISSIONS: frozenset[str] = frozenset(
    {
        "dashboard",
        "sales",
        "inventory",
        "maintenance",
        "customers",
        "accounting",
        "settings",
        "reports",
        "messages",
        "archive",
    }
)

WALK_IN_CUSTOMER_ID = "WALKIN"
DEBT_PAYMENT_PRODUCT_ID = "DEBT-PAYMENT"


@dataclass(frozen=True)
class Product:
    id: str
    name: str
    category: ProductCategory
    stock: int
    price: Decimal
    cost_usd: Decimal
    min_stock: int
    location: str
    supplier_id: str


@dataclass(frozen=True)
class Customer:
    id: str
    name: str
    contact: str
    type: CustomerType
    balance: Decimal


@dataclass(frozen=True)
class Supplier:
    id: str
    name: str
    contact: str
    email: str


@dataclass(frozen=True)
class User:
    id: str
    username: str
    name: str
    role: Role
    permissions: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class SaleItem:
    product_id: str
    product_name: str
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class Sale:
    id: str
    date: str
    customer_id: str
    customer_name: str
    customer_type: CustomerType
    items: tuple[SaleItem, ...]
    labor_cost: Decimal
    total: Decimal
    payment_method: PaymentMethod
    status: SaleStatus
    invoice_type: InvoiceType
    created_by: str
    maintenance_device: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class MaintenancePart:
    product_id: str
    product_name: str
    quantity: int
    price: Decimal


@dataclass(frozen=True)
class MaintenanceRecord:
    id: str
    date: datetime
    customer_id: str
    customer_name: str
    technician: str
    device_info: str
    service_type: str
    inspection_notes: str
    status: MaintenanceStatus
    labor_cost: Decimal
    parts_used: tuple[MaintenancePart, ...]
    total_cost: Decimal
    paid_amount: Decimal
    remaining_amount: Decimal
    completion_date: Optional[datetime] = None


@dataclass(frozen=True)
class SupplyItem:
    product_id: str
    product_name: str
    quantity: int
    cost_usd: Decimal
    price_lyd: Decimal


@dataclass(frozen=True)
class SupplyInvoice:
    id: str
    date: datetime
    supplier_id: str
    supplier_name: str
    items: tuple[SupplyItem, ...]
    total_usd: Decimal
    total_lyd: Decimal
    created_by: str
    notes: Optional[str] = None
