import asyncio
import functools
import logging
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker
)

from .config import Settings
from .errors import AppError, StoreError
from .models import Base

logger = logging.getLogger(__name__)


# Converts driver/pool failures into StoreError so callers can tell
# "not found" (NotFoundError) apart from a transient failure
def store_operation(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except AppError:
            raise
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as e:
            logger.exception(f"Store operation {func.__name__} failed")
            raise StoreError(f"{func.__name__} failed: {e}") from e
    return wrapper


# Pool checkout waits are bounded by pool_timeout, single statements by
# command_timeout (asyncpg only)
def engine_options(
    url: str,
    echo: bool = False,
    pool_size: int = 5,
    max_overflow: int = 5,
    pool_timeout: int = 30,
    command_timeout: int = 30,
) -> dict:
    options = {"echo": echo, "pool_pre_ping": True}
    # SQLite drivers do not take queue pool sizing
    if not url.startswith("sqlite"):
        options.update(
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_timeout=pool_timeout,
        )
    if "+asyncpg" in url:
        options["connect_args"] = {"command_timeout": command_timeout}
    return options


class Database:
    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 5,
        pool_timeout: int = 30,
        command_timeout: int = 30,
    ):
        self._engine = create_async_engine(
            url,
            **engine_options(
                url, echo, pool_size, max_overflow, pool_timeout,
                command_timeout
            )
        )
        self._session_maker = async_sessionmaker(
            bind=self._engine, expire_on_commit=False
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(
            settings.database_url,
            echo=settings.db_echo,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_timeout=settings.db_pool_timeout,
            command_timeout=settings.db_command_timeout,
        )

    @property
    def engine(self):
        return self._engine

    # --- Create tables at startup ---
    async def create_all(self):
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized.")

    # --- New session, used as "async with database.session() as session" ---
    def session(self) -> AsyncSession:
        return self._session_maker()

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, OSError):
            logger.exception("Database ping failed")
            return False
        return True

    async def dispose(self):
        logger.info("Closing database connections...")
        await self._engine.dispose()


@store_operation
async def commit(session: AsyncSession):
    await session.commit()
