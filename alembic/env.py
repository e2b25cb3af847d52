"""Alembic environment for the gatchacha schema.

The database URL comes from ``alembic -x db_url=...`` when given, otherwise
from :data:`gatchacha.db.engine.DEFAULT_SQLITE_URL` (``DB_URL`` or the local
``dev.db``).
"""

from __future__ import annotations

import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from gatchacha.db.engine import DEFAULT_SQLITE_URL, make_engine  # noqa: E402
from gatchacha.db.utils import resolve_sqlite_url  # noqa: E402
from gatchacha.models import Base  # noqa: E402

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _database_url() -> str:
    override = context.get_x_argument(as_dictionary=True).get("db_url")
    if override:
        return resolve_sqlite_url(override, ROOT_DIR)
    return DEFAULT_SQLITE_URL


DATABASE_URL = _database_url()
# ConfigParser interpolation treats '%' specially.
config.set_main_option("sqlalchemy.url", DATABASE_URL.replace("%", "%%"))


def _configure_kwargs(dialect_name: str) -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        # SQLite cannot ALTER constraints such as tierN_count_non_negative in place.
        "render_as_batch": dialect_name == "sqlite",
    }


def run_migrations_offline() -> None:
    """Emit the gatchacha schema as SQL without connecting."""
    context.configure(
        url=DATABASE_URL,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_kwargs(DATABASE_URL.split(":", 1)[0].split("+", 1)[0]),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations through the gatchacha engine (SQLite FKs enforced)."""
    engine = make_engine(database_url=DATABASE_URL)
    try:
        with engine.connect() as connection:
            context.configure(
                connection=connection, **_configure_kwargs(connection.dialect.name)
            )
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
