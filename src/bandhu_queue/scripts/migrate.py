"""Apply the queue schema migrations."""
from __future__ import annotations

import argparse
import os

from alembic import command
from alembic.config import Config

from bandhu_queue.core.settings import settings

MIGRATIONS_DIR = os.path.abspath(
    os.path.join(os.path.dirname(__file__), "..", "..", "..", "migrations")
)


def build_config(database_url: str | None = None) -> Config:
    """Alembic config pointing at the bundled migrations and the configured database."""
    cfg = Config()
    cfg.set_main_option("script_location", MIGRATIONS_DIR)
    # ConfigParser interpolation treats '%' specially (URL-encoded passwords)
    url = database_url or settings.effective_database_url
    cfg.set_main_option("sqlalchemy.url", url.replace("%", "%%"))
    return cfg


def run_upgrade(revision: str = "head", database_url: str | None = None) -> None:
    command.upgrade(build_config(database_url), revision)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="Migrate the Retail Bandhu queue schema")
    parser.add_argument("revision", nargs="?", default="head", help="Target revision.")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL.")
    args = parser.parse_args(argv)

    run_upgrade(args.revision, args.database_url)
    print(f"[migrate] database upgraded to {args.revision}")


if __name__ == "__main__":
    main()
