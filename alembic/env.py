"""
Alembic environment — migrations run against DATABASE_URL.
"""
from alembic import context

from scoutscan.config import DATABASE_URL
from scoutscan.database import Base, import_models, make_engine

import_models()
target_metadata = Base.metadata


def run_migrations_offline():
    context.configure(
        url=DATABASE_URL.replace('postgres://', 'postgresql://', 1),
        target_metadata=target_metadata,
        literal_binds=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    engine = make_engine(DATABASE_URL)
    with engine.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
