#!/usr/bin/env python3
"""
Create or drop the uploads table with Alembic.

Usage:
    python scripts/migrate.py              # upgrade to head
    python scripts/migrate.py downgrade    # one revision back
    python scripts/migrate.py downgrade base
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(project_root))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402

from uploader.config.settings import get_settings  # noqa: E402


def alembic_config() -> Config:
    settings = get_settings()
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option(
        "script_location", str(project_root / "migrations"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)
    return alembic_cfg


def run_migrations() -> int:
    """Upgrade the database to the latest revision."""
    print("Running database migrations...")
    try:
        command.upgrade(alembic_config(), "head")
    except Exception as e:
        print(f"✗ Migration failed: {e}", file=sys.stderr)
        return 1
    print("✓ Migrations completed successfully")
    return 0


def downgrade_migrations(revision: str = "-1") -> int:
    """
    Downgrade database migrations.

    Args:
        revision: Target revision (default: -1 for previous version)
    """
    print(f"Downgrading database to revision: {revision}...")
    try:
        command.downgrade(alembic_config(), revision)
    except Exception as e:
        print(f"✗ Downgrade failed: {e}", file=sys.stderr)
        return 1
    print("✓ Downgrade completed successfully")
    return 0


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "downgrade":
        revision = sys.argv[2] if len(sys.argv) > 2 else "-1"
        sys.exit(downgrade_migrations(revision))
    sys.exit(run_migrations())
