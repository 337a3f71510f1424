"""
Migration environment for the shopping list API.

The database URL always comes from shoplist.config (DATABASE_URL in the
environment or .env), never from alembic.ini. SQLite runs in batch mode
so ALTER-style revisions work there too.
"""

import os
import sys
from logging.config import fileConfig

from alembic import context
from sqlalchemy import engine_from_config, pool

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from shoplist.config import settings  # noqa: E402
from shoplist.database import Base  # noqa: E402
import shoplist.models  # noqa: E402,F401  registers every table on Base.metadata

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata
IS_SQLITE = settings.DATABASE_URL.startswith("sqlite")


def _configure_options() -> dict:
    return {
        "target_metadata": target_metadata,
        "compare_type": True,
        "render_as_batch": IS_SQLITE,
    }


def run_migrations_offline() -> None:
    """Emit the SQL for `alembic upgrade --sql` without a connection."""
    context.configure(
        url=config.get_main_option("sqlalchemy.url"),
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        **_configure_options(),
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, **_configure_options())
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
