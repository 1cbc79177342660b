from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy import MetaData
from sqlalchemy.orm import declarative_base
from genshin_dictionary.config import get_database_url, settings

# PostgreSQL naming conventions
POSTGRES_INDEXES_NAMING_CONVENTION = {
    "ix": "%(column_0_label)s_idx",
    "uq": "%(table_name)s_%(column_0_name)s_key",
    "ck": "%(table_name)s_%(constraint_name)s_check",
    "fk": "%(table_name)s_%(column_0_name)s_fkey",
    "pk": "%(table_name)s_pkey",
}

metadata = MetaData(naming_convention=POSTGRES_INDEXES_NAMING_CONVENTION)

# Create Base class with naming conventions
Base = declarative_base(metadata=metadata)


def normalize_async_url(database_url: str) -> str:
    """Make sure a PostgreSQL URL uses the asyncpg driver"""
    if database_url.startswith("postgresql+psycopg2://"):
        return database_url.replace("postgresql+psycopg2://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return database_url


def create_engine_for_url(database_url: str) -> AsyncEngine:
    """
    Create the async engine backing the connection pool.

    The pool is sized from settings so that a whole insert batch can hold
    connections at once; SQLite keeps SQLAlchemy's defaults.
    """
    database_url = normalize_async_url(database_url)
    if database_url.startswith("sqlite"):
        return create_async_engine(database_url, echo=False)

    return create_async_engine(
        database_url,
        echo=False,
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=settings.DB_POOL_TIMEOUT,
        connect_args={
            "server_settings": {
                "timezone": "UTC"
            }
        } if database_url.startswith("postgresql+asyncpg") else {}
    )


def create_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine_for_url(get_database_url())

# Create AsyncSessionLocal class
AsyncSessionLocal = create_session_factory(engine)


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create every registered table that does not exist yet"""
    # Import models so they are registered with Base.metadata
    import genshin_dictionary.models  # noqa: F401

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Dependency to get async database session
async def get_db():
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
