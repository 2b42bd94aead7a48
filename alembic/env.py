from logging.config import fileConfig

from sqlalchemy import engine_from_config
from sqlalchemy import pool

from alembic import context

# Base with every model registered on it
from app.db.base import Base

# DATABASE_URL comes from the app settings (.env), not alembic.ini
from app.core.config import settings

# ----------------------------------------------------------------------
# Alembic Config
# ----------------------------------------------------------------------

config = context.config
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

# SQLite cannot ALTER most things in place; batch mode recreates the table
RENDER_AS_BATCH = settings.DATABASE_URL.startswith("sqlite")

# ----------------------------------------------------------------------
# Run Migration Offline
# ----------------------------------------------------------------------
def run_migrations_offline():
    """Emit SQL to stdout instead of running it."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=RENDER_AS_BATCH,
    )

    with context.begin_transaction():
        context.run_migrations()

# ----------------------------------------------------------------------
# Run Migration Online
# ----------------------------------------------------------------------
def run_migrations_online():
    """Run against the configured database."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=RENDER_AS_BATCH,
        )

        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
