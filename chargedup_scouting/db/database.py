import logging
import os

from dotenv import load_dotenv
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

# Registers the match tables on SQLModel.metadata
import chargedup_scouting.models  # noqa: F401

load_dotenv()

logger = logging.getLogger(__name__)


def normalize_database_url(url: str) -> str:
    """Rewrite sync Postgres URLs to SQLAlchemy's ``+asyncpg`` driver."""
    if "+asyncpg" in url:
        return url
    if "+psycopg" in url:
        return url.replace("+psycopg", "+asyncpg")
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


DATABASE_URL = os.getenv("DB_URL")
if not DATABASE_URL:
    raise RuntimeError("DB_URL is not set in environment variables")

engine: AsyncEngine = create_async_engine(normalize_database_url(DATABASE_URL))


async def init_db():
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Scouting database ready at %s", engine.url.render_as_string(hide_password=True))


async def get_session():
    async with AsyncSession(engine) as session:
        yield session
