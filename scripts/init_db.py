from __future__ import annotations

from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from gatchacha.db.engine import get_sessionmaker, make_engine
from gatchacha.workflows import seed_system_templates


def upgrade_db(target_revision: str = "head") -> None:
    """Apply Alembic migrations up to the requested revision."""
    project_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(project_root / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(project_root / "alembic"))
    command.upgrade(alembic_cfg, target_revision)


def seed_templates() -> None:
    """Insert the built-in templates that are missing from the database."""
    Session = get_sessionmaker(make_engine())
    with Session.begin() as session:
        created = seed_system_templates(session)
    print(f"Seeded {len(created)} system template(s).")


def print_tables() -> None:
    """Inspect the configured database and print all table names."""
    engine = make_engine()
    insp = inspect(engine)
    print("Current tables:", ", ".join(sorted(insp.get_table_names())))


def main() -> None:
    """Apply migrations (default to head), seed templates and report the schema."""
    upgrade_db()
    seed_templates()
    print_tables()


if __name__ == "__main__":
    main()
