from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base


Base = declarative_base()


def async_database_url(url: str) -> str:
    # Ensure we use the async driver
    return url.replace("postgresql://", "postgresql+asyncpg://")


def make_engine(url: str) -> AsyncEngine:
    engine = create_async_engine(async_database_url(url), echo=False)

    if engine.dialect.name == "sqlite":
        # SQLite only enforces ON DELETE CASCADE with foreign keys switched on
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Async session factory
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


async def create_tables(engine: AsyncEngine):
    # Imported for their side effect of registering tables on Base.metadata
    from taskboard.models import user, tasks  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
