from __future__ import annotations

import argparse
import logging

from marinedesk.cli import run_cli
from marinedesk.config import ConfigError, load_config
from marinedesk.context import build_context
from marinedesk.errors import NotFoundError


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Marine equipment back office")
    parser.add_argument("--config", default="config.toml")
    parser.add_argument("--user", default=None, help="username to act as (defaults to app.default_user)")
    args = parser.parse_args(argv)

    try:
        cfg = load_config(args.config)
        logging.basicConfig(
            level=cfg.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        ctx = build_context(cfg)
        run_cli(ctx, username=args.user)
        return 0
    except ConfigError as e:
        print(f"[CONFIG ERROR] {e}")
        return 2
    except NotFoundError as e:
        print(f"[LOGIN ERROR] {e}")
        return 3
    except KeyboardInterrupt:
        print("\nInterrupted.")
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
