import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Callable, TypeVar, Any, AsyncGenerator
from sqlalchemy import BigInteger, Boolean, Column, DateTime, Integer
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import text
from sqlalchemy.exc import (
    SQLAlchemyError,
    OperationalError,
    DisconnectionError,
    TimeoutError,
)
from asyncpg.exceptions import (
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .config import (
    DATABASE_URL,
    DB_RETRY_ATTEMPTS,
    DB_RETRY_DELAY,
    DB_RETRY_BACKOFF_FACTOR,
)
from .exceptions import DatabaseConnectionError, DatabaseTimeoutError

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    """Pool settings per backend: SQLite runs on a single shared connection."""
    if url.startswith("sqlite"):
        return {
            "echo": False,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "echo": False,
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 3600,  # reconnect every hour
        "pool_pre_ping": True,
    }


engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

# SQLite only auto-increments INTEGER primary keys
BigIntId = BigInteger().with_variant(Integer, "sqlite")


def utcnow() -> datetime:
    """Current time as naive UTC, the form every timestamp column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class AuditMixin:
    """Primary key, audit timestamps and the soft-delete flag shared by all tables"""

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
    is_deleted = Column(Boolean, nullable=False, default=False, index=True)


F = TypeVar("F", bound=Callable[..., Any])

# failures worth another attempt; anything else propagates at once
TRANSIENT_ERRORS = (
    DisconnectionError,
    TimeoutError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)
CONNECTION_ERRORS = (
    DisconnectionError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)


def _log_retry(retry_state: RetryCallState):
    exc = retry_state.outcome.exception()
    logger.warning(
        f"Database operation failed (attempt {retry_state.attempt_number}): {exc}",
        extra={
            "function": retry_state.fn.__name__ if retry_state.fn else None,
            "attempt": retry_state.attempt_number,
            "exception_type": type(exc).__name__,
        },
    )


def db_retry(
    max_attempts: int = None,
    delay: float = None,
    backoff_factor: float = DB_RETRY_BACKOFF_FACTOR,
) -> Callable[[F], F]:
    """
    Retry a coroutine on transient connection errors

    Args:
        max_attempts: Maximum attempts (defaults to config)
        delay: Initial delay between attempts (defaults to config)
        backoff_factor: Delay multiplier

    Once the attempts are used up the error surfaces as
    DatabaseConnectionError or DatabaseTimeoutError.
    """
    attempts = max_attempts or DB_RETRY_ATTEMPTS
    initial_delay = DB_RETRY_DELAY if delay is None else delay

    def decorator(func: F) -> F:
        retrying = retry(
            stop=stop_after_attempt(attempts),
            wait=wait_exponential(multiplier=initial_delay, exp_base=backoff_factor),
            retry=retry_if_exception_type(TRANSIENT_ERRORS),
            before_sleep=_log_retry,
            reraise=True,
        )(func)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                return await retrying(*args, **kwargs)
            except CONNECTION_ERRORS as e:
                logger.error(
                    f"{func.__name__} failed after {attempts} attempts: {e}",
                    extra={"function": func.__name__, "max_attempts": attempts},
                )
                raise DatabaseConnectionError(
                    f"Database connection failed after {attempts} attempts"
                )
            except TimeoutError:
                raise DatabaseTimeoutError(func.__name__, 30)

        return wrapper

    return decorator


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency providing one database session per request
    """
    session = async_session()

    try:
        yield session
    except Exception as e:
        await session.rollback()
        logger.error(f"Session error: {str(e)}")
        raise
    finally:
        await session.close()


class DatabaseManager:
    """Engine-level database operations"""

    @staticmethod
    @db_retry()
    async def create_tables():
        """Create all tables"""
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {str(e)}")
            raise

    @staticmethod
    @retry(
        stop=stop_after_attempt(DB_RETRY_ATTEMPTS),
        wait=wait_exponential(multiplier=DB_RETRY_DELAY, max=30),
        retry=retry_if_exception_type(DatabaseConnectionError),
    )
    async def check_connection():
        """Ping the database, retrying while it is unreachable"""
        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
            logger.info("Database connection check successful")
            return True
        except (OperationalError, DisconnectionError, OSError) as e:
            logger.error(f"Database connection check failed: {str(e)}")
            raise DatabaseConnectionError("Database connection check failed")

    @staticmethod
    async def ping() -> bool:
        """Single connection attempt, for health checks"""
        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (SQLAlchemyError, OSError) as e:
            logger.warning(f"Database ping failed: {str(e)}")
            return False

    @staticmethod
    async def close_connections():
        """Dispose of the engine's pool"""
        try:
            await engine.dispose()
            logger.info("Database connections closed successfully")
        except Exception as e:
            logger.error(f"Error closing database connections: {str(e)}")


db_manager = DatabaseManager()


class TransactionManager:
    """Runs one unit of work: commit when it succeeds, roll back otherwise"""

    def __init__(self, session: AsyncSession):
        self.session = session

    @db_retry()
    async def execute(self, operation: Callable, *args, **kwargs):
        try:
            result = await operation(self.session, *args, **kwargs)
            await self.session.commit()
            return result
        except Exception as e:
            await self.session.rollback()
            logger.debug(f"Transaction rolled back: {type(e).__name__}: {str(e)}")
            raise


async def with_db_transaction(
    session: AsyncSession, operation: Callable, *args, **kwargs
):
    """
    Run ``operation(session, *args, **kwargs)`` as a single transaction
    """
    transaction_manager = TransactionManager(session)
    return await transaction_manager.execute(operation, *args, **kwargs)


def db_operation(func: F) -> F:
    """
    Debug logging around read operations; SQLAlchemy errors are logged and re-raised
    """

    @wraps(func)
    async def wrapper(*args, **kwargs):
        operation_name = func.__name__

        try:
            logger.debug(f"Starting database operation: {operation_name}")
            result = await func(*args, **kwargs)
            logger.debug(f"Database operation completed: {operation_name}")
            return result

        except SQLAlchemyError as e:
            logger.error(
                f"SQLAlchemy error in {operation_name}: {str(e)}",
                extra={"operation": operation_name, "exception_type": type(e).__name__},
            )
            raise

    return wrapper
