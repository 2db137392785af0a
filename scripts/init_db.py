from __future__ import annotations

import argparse
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from golflottery.db.engine import DEFAULT_SQLITE_URL, make_engine
from golflottery.models import Base

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations for the lottery schema up to ``target_revision``."""
    ini_path = PROJECT_ROOT / "alembic.ini"
    alembic_cfg = Config(str(ini_path)) if ini_path.exists() else Config()
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", DEFAULT_SQLITE_URL.replace("%", "%%"))
    command.upgrade(alembic_cfg, target_revision)


def create_tables() -> None:
    """Create any missing lottery tables directly from the ORM metadata."""
    Base.metadata.create_all(make_engine())


def print_tables() -> None:
    engine = make_engine()
    insp = inspect(engine)
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))


def main() -> None:
    parser = argparse.ArgumentParser(description="Prepare the lottery database.")
    parser.add_argument(
        "--create-all",
        action="store_true",
        help="create tables from the models instead of running migrations",
    )
    parser.add_argument("--revision", default="head", help="migration target")
    args = parser.parse_args()

    if args.create_all:
        create_tables()
    else:
        upgrade_db(args.revision)
    print_tables()


if __name__ == "__main__":
    main()
