from __future__ import annotations

from typing import Optional, TypeVar

from ..errors import DuplicateIdError, NotFoundError

T = TypeVar("T")


def insert(coll: dict[str, T], key: str, obj: T, kind: str) -> T:
    if key in coll:
        raise DuplicateIdError(f"{kind} id already exists: {key}")
    coll[key] = obj
    return obj


def replace(coll: dict[str, T], key: str, obj: T, kind: str) -> T:
    if key not in coll:
        raise NotFoundError(f"Unknown {kind}: {key}")
    coll[key] = obj
    return obj


def require(coll: dict[str, T], key: str, kind: str) -> T:
    obj = coll.get(key)
    if obj is None:
        raise NotFoundError(f"Unknown {kind}: {key}")
    return obj


def newest_first(coll: dict[str, T], limit: Optional[int] = None) -> list[T]:
    rows = list(reversed(coll.values()))
    return rows if limit is None else rows[:limit]
