import asyncio
import logging

from sqlalchemy import func, select

from app.core.config import ENVIRONMENT
from app.core.database import async_session, db_manager, engine, Base
from app.core.exceptions import DatabaseError
from app.admin.models import Config
from app.admin.services.configs import DEFAULT_CONFIGS, init_default_configs

logger = logging.getLogger(__name__)


async def seed_default_configs() -> int:
    async with async_session() as session:
        return await init_default_configs(session)


async def init_database():
    """Create tables and seed default configuration"""
    try:
        logger.info("Starting database initialization...")

        await db_manager.check_connection()
        logger.info("Database connection verified")

        await db_manager.create_tables()
        logger.info("Database tables created/verified")

        created = await seed_default_configs()
        logger.info(f"Default configs verified ({created} created)")

        logger.info("Database initialization completed successfully")

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Unexpected error during database initialization: {e}")
        raise DatabaseError(f"Database initialization failed: {str(e)}")


async def verify_database_setup():
    """Check that every default config key is present"""
    try:
        logger.info("Verifying database setup...")

        async with async_session() as session:
            keys = [key for key, *_ in DEFAULT_CONFIGS]
            result = await session.execute(
                select(func.count(Config.id)).where(Config.config_key.in_(keys))
            )
            count = result.scalar()

        if count != len(keys):
            raise DatabaseError(f"Expected {len(keys)} default configs, found {count}")

        logger.info(f"Database verification passed: {count} default configs found")
        return True

    except DatabaseError:
        raise
    except Exception as e:
        logger.error(f"Database verification failed: {e}")
        raise DatabaseError(f"Database verification failed: {str(e)}")


async def reset_database():
    """Drop and recreate everything (development and test only)"""
    if ENVIRONMENT not in ["development", "dev", "test"]:
        raise DatabaseError(
            "Database reset is only allowed in development or test environments",
            {"environment": ENVIRONMENT},
        )

    logger.warning("RESETTING DATABASE - ALL DATA WILL BE LOST!")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    logger.info("All tables dropped")

    await init_database()
    logger.info("Database reset completed")


if __name__ == "__main__":
    import sys

    from app.core.config import LOG_FORMAT, LOG_LEVEL
    from app.core.logging_utils import setup_logging

    setup_logging(LOG_LEVEL, LOG_FORMAT)

    commands = {
        "init": init_database,
        "verify": verify_database_setup,
        "reset": reset_database,
    }

    command = sys.argv[1] if len(sys.argv) > 1 else "init"
    if command not in commands:
        print(f"Unknown command: {command}")
        print(f"Available commands: {', '.join(commands)}")
        sys.exit(1)

    try:
        asyncio.run(commands[command]())
    except KeyboardInterrupt:
        logger.info("Database initialization cancelled by user")
    except Exception as e:
        logger.error(f"Database command '{command}' failed: {e}")
        sys.exit(1)
