"""
Database engine + session factory construction.

Nothing here is a module-level singleton: create_app() and the RQ worker each
build their own engine and hand the session factory to the components that need
it (ScanStore, RetryQueue, ScanPipeline). Tests pass an in-memory SQLite factory.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase


class Base(DeclarativeBase):
    pass


def make_engine(database_url: str):
    """Create an engine with the right kwargs for SQLite vs Postgres."""
    # Hosted Postgres URLs often use postgres:// but SQLAlchemy 2.x requires postgresql://
    url = database_url.replace('postgres://', 'postgresql://', 1)

    if url.startswith('sqlite'):
        return create_engine(url, connect_args={'check_same_thread': False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


def make_session_factory(engine):
    """Return a sessionmaker bound to the engine."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def session_factory_from_url(database_url: str):
    """Engine + sessionmaker in one call (used by the RQ worker entry point)."""
    return make_session_factory(make_engine(database_url))


def import_models():
    """Import model modules so Base.metadata knows every table."""
    import scoutscan.models.scan  # noqa: F401
    import scoutscan.models.processed_item  # noqa: F401
    import scoutscan.models.queue_item  # noqa: F401
