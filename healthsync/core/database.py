"""
Database configuration and session management with dual database support.
Supports SQLite (default) and PostgreSQL (optional override).
"""
import logging

from sqlalchemy import event
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import make_url
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from healthsync.core.config import settings, PROJECT_ROOT
from healthsync.core.exceptions import StorageError
from healthsync.core.logging_config import _sanitize_data

logger = logging.getLogger(__name__)

# Get effective database URL and type
database_url = settings.effective_database_url
database_type = settings.database_type

logger.info(f"Using {database_type} database: {_sanitize_data(database_url)}")

if database_type == "sqlite":
    url = make_url(database_url)
    is_sqlite_memory = url.database in (None, "", ":memory:")

    engine_kwargs = {
        "echo": False,
        "connect_args": {"check_same_thread": False},
    }
    if is_sqlite_memory:
        engine_kwargs["poolclass"] = StaticPool

    engine = create_engine(database_url, **engine_kwargs)
    logger.info(f"Configured SQLite engine ({'in-memory' if is_sqlite_memory else 'file-based'})")

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        """Set SQLite-specific pragma settings for optimal performance."""
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        if not is_sqlite_memory:
            cursor.execute("PRAGMA journal_mode=WAL")  # Better concurrency
            cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.execute("PRAGMA temp_store=MEMORY")
        cursor.close()

else:
    engine_kwargs = {
        "echo": False,
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 10,
        "pool_recycle": 3600,  # Recycle connections every hour
    }

    engine = create_engine(database_url, **engine_kwargs)
    logger.info("Configured PostgreSQL engine with connection pooling")


def dialect_insert(session: Session, table):
    """
    Return an INSERT construct for ``table`` that supports ``on_conflict_do_update``.

    Both supported dialects implement ON CONFLICT natively, which is what makes
    the keyed upserts safe without any in-process locking.
    """
    dialect_name = session.get_bind().dialect.name
    if dialect_name == "postgresql":
        return postgresql.insert(table)
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    raise StorageError(f"Upsert is not supported for database dialect '{dialect_name}'")


def create_db_and_tables(force: bool = False):
    """Create database tables using Alembic migrations.

    ``force`` runs migrations even when RUN_MIGRATIONS_ON_STARTUP is off (admin CLI).
    """
    if not force and not settings.run_migrations_on_startup:
        logger.info("Skipping database migrations (RUN_MIGRATIONS_ON_STARTUP=false)")
        return

    # Import models so SQLModel.metadata is populated for the fallback path
    import healthsync.models  # noqa: F401

    try:
        logger.info("Running database migrations...")
        from alembic import command
        from alembic.config import Config

        alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        alembic_cfg.set_main_option("sqlalchemy.url", database_url)

        command.upgrade(alembic_cfg, "head")
        logger.info("Database migrations completed successfully")

    except Exception as exc:
        logger.error(exc)
        try:
            logger.info("Falling back to SQLModel create_all...")
            SQLModel.metadata.create_all(engine)
            logger.info("Database tables created successfully (fallback)")
        except Exception as e:
            logger.error(e)
            raise


def get_session():
    """Get database session."""
    with Session(engine) as session:
        yield session


def get_session_context():
    """
    Get database session as context manager.

    Use this outside request handling (CLI commands, scripts).

    Example:
        with get_session_context() as session:
            ...
    """
    return Session(engine)


def init_db():
    """Initialize database tables."""
    logger.info("Initializing database...")
    create_db_and_tables()
    logger.info("Database initialization completed")
