from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from .domain import ALL_PERMISSIONS, User
from .permissions import normalize_permissions


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class BusinessConfig:
    company_name: str = "Al-Watanya Marine Systems"
    allow_negative_stock: bool = False


DEFAULT_ADMIN = User(
    id="U001",
    username="admin",
    name="General Manager",
    role="Admin",
    permissions=ALL_PERMISSIONS,
)


@dataclass(frozen=True)
class AppConfig:
    name: str
    log_level: str
    default_user: str
    business: BusinessConfig
    users: tuple[User, ...] = field(default_factory=lambda: (DEFAULT_ADMIN,))


def _parse_user(raw: dict) -> User:
    role = str(raw.get("role", "User"))
    if role not in ("Admin", "User"):
        raise ValueError(f"Unknown role: {role}")
    return User(
        id=str(raw["id"]),
        username=str(raw["username"]),
        name=str(raw.get("name", raw["username"])),
        role=role,
        permissions=normalize_permissions(raw.get("permissions", [])),
    )


def parse_config(data: dict) -> AppConfig:
    try:
        app = data.get("app", {})
        business = data.get("business", {})
        users = tuple(_parse_user(u) for u in data.get("users", [])) or (DEFAULT_ADMIN,)
        default_user = str(app.get("default_user", users[0].username))
        if default_user not in {u.username for u in users}:
            raise ConfigError(f"default_user {default_user!r} is not a configured user")
        return AppConfig(
            name=str(app.get("name", "MarineDesk")),
            log_level=str(app.get("log_level", "INFO")).upper(),
            default_user=default_user,
            business=BusinessConfig(
                company_name=str(business.get("company_name", BusinessConfig.company_name)),
                allow_negative_stock=bool(business.get("allow_negative_stock", False)),
            ),
            users=users,
        )
    except ConfigError:
        raise
    except KeyError as e:
        raise ConfigError(f"Missing config key: {e}") from e
    except Exception as e:
        raise ConfigError(f"Invalid config values: {e}") from e


def load_config(path: str | Path) -> AppConfig:
    p = Path(path)
    if not p.exists():
        raise ConfigError(f"Config file not found: {p.resolve()}")

    try:
        data = tomllib.loads(p.read_text(encoding="utf-8"))
    except Exception as e:
        raise ConfigError(f"Failed to read config TOML: {e}") from e

    return parse_config(data)
