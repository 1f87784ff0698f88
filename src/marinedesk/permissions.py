from __future__ import annotations

from .domain import ALL_PERMISSIONS, User
from .errors import PermissionDenied

# action -> any one of these permissions allows it
ACTIONS: dict[str, frozenset[str]] = {
    "sale.view": frozenset({"sales", "archive"}),
    "sale.create": frozenset({"sales"}),
    "sale.delete": frozenset({"sales"}),
    "debt.pay": frozenset({"accounting", "sales"}),
    "maintenance.view": frozenset({"maintenance"}),
    "maintenance.edit": frozenset({"maintenance"}),
    "supply.receive": frozenset({"inventory"}),
    # sale and job screens pick products from the catalog
    "catalog.view": frozenset({"inventory", "sales", "maintenance"}),
    "catalog.edit": frozenset({"inventory"}),
    "customer.view": frozenset({"customers"}),
    "customer.edit": frozenset({"customers"}),
    "archive.view": frozenset({"archive"}),
    "reports.view": frozenset({"reports"}),
    "dashboard.view": frozenset({"dashboard"}),
}


def has_permission(user: User, permission: str) -> bool:
    if user.role == "Admin":
        return True
    return permission in user.permissions


def can(user: User, action: str) -> bool:
    needed = ACTIONS.get(action)
    if needed is None:
        raise KeyError(f"Unknown action: {action}")
    return any(has_permission(user, p) for p in needed)


def require(user: User, action: str) -> None:
    if not can(user, action):
        raise PermissionDenied(f"User {user.username} is not allowed to {action}")


def normalize_permissions(values) -> frozenset[str]:
    perms = frozenset(str(v).strip() for v in values)
    unknown = perms - ALL_PERMISSIONS
    if unknown:
        raise ValueError(f"Unknown permissions: {sorted(unknown)}")
    return perms
