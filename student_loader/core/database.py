from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

from .config import Settings
from .exceptions import DatabaseConnectionError
import logging

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()


# =============================================================================
# DATABASE ENGINE CONFIGURATION
# =============================================================================

def build_engine(settings: Settings) -> Engine:
    """
    Create the engine (and its connection pool) for one loader run.

    SQLite files do not take pool sizing or a connect timeout, so those
    arguments are only passed to server databases.
    """
    options = {
        "echo": settings.DB_ECHO_SQL,
        "pool_pre_ping": True,  # Test connection before using (detect disconnects)
    }
    if not settings.is_sqlite:
        options.update(
            poolclass=QueuePool,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
            pool_recycle=settings.DB_POOL_RECYCLE,
            connect_args={
                "connect_timeout": settings.DB_CONNECT_TIMEOUT,
            },
        )

    engine = create_engine(settings.DATABASE_URL, **options)
    event.listen(engine, "connect", _on_connect)
    event.listen(engine, "checkout", _on_checkout)
    return engine


# =============================================================================
# SESSION CONFIGURATION
# =============================================================================

def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,  # Every record is committed explicitly
        autoflush=False,
        bind=engine,
        expire_on_commit=False
    )


# =============================================================================
# DATABASE UTILITIES
# =============================================================================

def check_database_connection(engine: Engine) -> None:
    """
    Run ``SELECT 1`` against the engine.

    Raises:
        DatabaseConnectionError: the database cannot be reached
    """
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        raise DatabaseConnectionError(str(e)) from e
    logger.debug("Database connection successful")


# =============================================================================
# EVENT LISTENERS
# =============================================================================

def _on_connect(dbapi_conn, connection_record):
    logger.debug("New database connection established")


def _on_checkout(dbapi_conn, connection_record, connection_proxy):
    logger.debug("Connection checked out from pool")
