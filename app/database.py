from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from app.config import settings


def async_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return "postgresql+asyncpg://" + url[len(prefix):]
    return url


SQLALCHEMY_DATABASE_URL = async_url(settings.database_url)

engine_options = {"echo": False}
if SQLALCHEMY_DATABASE_URL.startswith("sqlite"):
    # aiosqlite connections are bound to the loop that opened them
    engine_options["poolclass"] = NullPool
else:
    engine_options["pool_pre_ping"] = True

engine = create_async_engine(SQLALCHEMY_DATABASE_URL, **engine_options)

# Objects stay usable after commit; routes reload what the response needs
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def get_db():
    async with AsyncSessionLocal() as db:
        yield db
