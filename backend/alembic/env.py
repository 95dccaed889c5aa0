"""
Alembic migration environment.
Supports both online (connected to DB) and offline (SQL script generation) modes.

The bookings exclusion constraint and the functional unique index on
property names live only in migrations. `include_object` hides them from
autogenerate so new revisions do not try to drop them.
"""

from logging.config import fileConfig
from sqlalchemy import engine_from_config, pool
from alembic import context

from app.db.base import Base
from app.models import User, AuthIdentity, Property, Booking  # noqa: F401 - Import models for autogenerate
from app.models.booking import OVERLAP_CONSTRAINT_NAME
from app.core.config import get_settings

config = context.config
settings = get_settings()

# Override sqlalchemy.url from settings
config.set_main_option("sqlalchemy.url", settings.DATABASE_URL_SYNC)

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata

MIGRATION_ONLY_OBJECTS = {OVERLAP_CONSTRAINT_NAME, "uq_properties_owner_name"}


def include_object(obj, name, type_, reflected, compare_to):
    if reflected and compare_to is None and name in MIGRATION_ONLY_OBJECTS:
        return False
    return True


def run_migrations_offline() -> None:
    """Generate SQL script without connecting to the database."""
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Run migrations against a live database connection."""
    connectable = engine_from_config(
        config.get_section(config.config_ini_section, {}),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            compare_type=True,
            include_object=include_object,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
