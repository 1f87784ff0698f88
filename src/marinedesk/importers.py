from __future__ import annotations

import csv
import json
from pathlib import Path

from .errors import ValidationError
from .repositories.customer_repo import CustomerRepository
from .repositories.product_repo import ProductRepository
from .store import State


class ImportFileError(Exception):
    pass


def import_customers_csv(state: State, path: str | Path, customer_repo: CustomerRepository) -> int:
    p = Path(path)
    if not p.exists():
        raise ImportFileError(f"File not found: {p}")

    count = 0
    with p.open("r", encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        required = {"name", "contact", "type", "balance"}
        if not required.issubset(set(reader.fieldnames or [])):
            raise ImportFileError(f"CSV must contain columns: {sorted(required)}")

        for row in reader:
            name = (row.get("name") or "").strip()
            if not name:
                continue
            ctype = (row.get("type") or "").strip() or "Permanent"
            try:
                customer_repo.create(
                    state,
                    name=name,
                    contact=(row.get("contact") or "").strip(),
                    type=ctype,
                    balance=(row.get("balance") or "0").strip(),
                    customer_id=(row.get("id") or "").strip() or None,
                )
            except (ValidationError, ValueError) as e:
                raise ImportFileError(f"Row {reader.line_num}: {e}") from e
            count += 1
    return count


def import_products_json(state: State, path: str | Path, product_repo: ProductRepository) -> int:
    p = Path(path)
    if not p.exists():
        raise ImportFileError(f"File not found: {p}")

    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ImportFileError(f"Invalid JSON: {e}") from e

    if not isinstance(data, list):
        raise ImportFileError("JSON must be a list of objects")

    count = 0
    for obj in data:
        if not isinstance(obj, dict):
            continue
        pid = str(obj.get("id", "")).strip()
        name = str(obj.get("name", "")).strip()
        if not pid or not name:
            continue
        if product_repo.get(state, pid) is not None:
            # re-import replaces the catalog row
            product_repo.delete(state, pid)
        try:
            product_repo.create(
                state,
                product_id=pid,
                name=name,
                category=str(obj.get("category", "SparePart")),
                price=str(obj.get("price", 0)),
                cost_usd=str(obj.get("cost_usd", 0)),
                stock=int(obj.get("stock", 0)),
                min_stock=int(obj.get("min_stock", 0)),
                location=str(obj.get("location", "")),
                supplier_id=str(obj.get("supplier_id", "")),
            )
        except (ValidationError, ValueError) as e:
            raise ImportFileError(f"Product {pid}: {e}") from e
        count += 1
    return count
