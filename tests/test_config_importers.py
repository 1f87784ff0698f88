import json
from decimal import Decimal

import pytest

from marinedesk.config import ConfigError, load_config, parse_config
from marinedesk.importers import ImportFileError, import_customers_csv, import_products_json


def test_load_config_reads_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(
        """
[app]
name = "Desk"
log_level = "debug"
default_user = "sales"

[business]
allow_negative_stock = true

[[users]]
id = "U002"
username = "sales"
name = "Clerk"
permissions = ["sales", "customers"]
""",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.name == "Desk"
    assert cfg.log_level == "DEBUG"
    assert cfg.business.allow_negative_stock is True
    assert cfg.users[0].permissions == frozenset({"sales", "customers"})
    assert cfg.users[0].role == "User"


def test_missing_config_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.toml")


def test_defaults_provide_an_admin():
    cfg = parse_config({})
    assert cfg.default_user == "admin"
    assert cfg.users[0].role == "Admin"


@pytest.mark.parametrize(
    "data",
    [
        {"users": [{"id": "U1"}]},
        {"users": [{"id": "U1", "username": "x", "permissions": ["flying"]}]},
        {"app": {"default_user": "ghost"}},
    ],
)
def test_invalid_config_raises(data):
    with pytest.raises(ConfigError):
        parse_config(data)


def test_import_customers_csv(ctx, state, tmp_path):
    path = tmp_path / "customers.csv"
    path.write_text(
        "id,name,contact,type,balance\n"
        "C010,Tripoli Fishing,0910000000,Permanent,-2500\n"
        ",Walk-in Ali,,WalkIn,0\n"
        ",,,,\n",
        encoding="utf-8",
    )
    assert import_customers_csv(state, path, ctx.customer_repo) == 2
    assert state.customers["C010"].balance == Decimal("-2500")


def test_import_customers_csv_requires_columns(ctx, state, tmp_path):
    path = tmp_path / "customers.csv"
    path.write_text("name\nAli\n", encoding="utf-8")
    with pytest.raises(ImportFileError):
        import_customers_csv(state, path, ctx.customer_repo)


def test_import_products_json_replaces_existing(ctx, state, tmp_path):
    path = tmp_path / "products.json"
    path.write_text(
        json.dumps(
            [
                {"id": "P005", "name": "Engine oil 5L", "category": "Fluid", "price": "160", "stock": 40},
                {"id": "P100", "name": "GPS Garmin", "category": "Equipment", "price": 3200, "cost_usd": 450},
                {"name": "no id"},
            ]
        ),
        encoding="utf-8",
    )
    assert import_products_json(state, path, ctx.product_repo) == 2
    assert state.products["P005"].price == Decimal("160")
    assert state.products["P005"].stock == 40
    assert state.products["P100"].cost_usd == Decimal("450")


def test_import_products_json_rejects_bad_rows(ctx, state, tmp_path):
    path = tmp_path / "products.json"
    path.write_text(json.dumps([{"id": "P200", "name": "Thing", "category": "Spaceship"}]), encoding="utf-8")
    with pytest.raises(ImportFileError):
        import_products_json(state, path, ctx.product_repo)
