"""
lecturehub/database.py
Database configuration: async engine, session factory and startup bootstrap
"""
import os
import logging
from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from dotenv import load_dotenv

# Import Base from orm.base to avoid circular imports
from lecturehub.orm.base import Base
import lecturehub.orm  # ensures all models are registered
from lecturehub.config.feature_flags import feature_flags

load_dotenv()

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./lecturehub.db")

if not DATABASE_URL:
    raise ValueError("DATABASE_URL environment variable is not set")

# SQLite has different pool needs than PostgreSQL
if "sqlite" in DATABASE_URL.lower():
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        connect_args={
            "timeout": 30.0,   # SQLite busy timeout in seconds
        }
    )
else:
    # PostgreSQL: append targets are locked with SELECT ... FOR UPDATE
    engine = create_async_engine(
        DATABASE_URL,
        echo=False,
        future=True,
        pool_pre_ping=True,
        pool_size=20,
        max_overflow=30,
        pool_timeout=30,
        pool_recycle=3600,      # Recycle connections after 1 hour
    )

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db():
    """Dependency for getting async database session"""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()


def get_session_factory() -> async_sessionmaker:
    """Dependency for operations that open several sessions of their own"""
    return AsyncSessionLocal


async def init_db():
    """
    Initialize database:
    1. Create tables if they don't exist
    2. Seed the discipline catalog (FEATURE_SEED_DISCIPLINES)
    3. Run one full module_count reconciliation sweep
    """
    from lecturehub.seed.disciplines import seed_disciplines
    from lecturehub.services.discipline_counter import reconcile_all_disciplines

    logger.info("Initializing database...")

    try:
        logger.info(f"Database dialect: {engine.url.get_backend_name()}")
        if engine.url.get_backend_name() == "sqlite":
            logger.warning("Running on SQLite: JSONB downgraded to JSON, row locks are no-ops.")

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        if feature_flags.FEATURE_SEED_DISCIPLINES:
            async with AsyncSessionLocal() as session:
                try:
                    await seed_disciplines(session)
                    counts = await reconcile_all_disciplines(session)
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
            logger.info(f"✓ Reconciled module counts for {len(counts)} disciplines")

        logger.info("✓ Database initialization complete")

    except Exception as e:
        logger.error(f"Database initialization failed: {str(e)}")
        raise


async def check_db() -> bool:
    """Return True when a trivial query succeeds."""
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


async def close_db():
    """Close database connection"""
    await engine.dispose()
    logger.info("Database connection closed")
