from datetime import datetime, timezone
from geoalchemy2 import Geography
from geoalchemy2.elements import WKTElement
from sqlalchemy import JSON, Text, text
from sqlalchemy.types import TypeDecorator
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool
from roadside.config import settings

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")

class GeoPoint(TypeDecorator):
    """
    WGS84 point stored as ``geography(POINT,4326)`` on PostgreSQL/PostGIS.

    Other dialects keep the EWKT text (``SRID=4326;POINT(lng lat)``) so the
    schema still creates without a spatial extension; proximity queries on
    those dialects read the plain latitude/longitude columns instead.
    """
    impl = Text
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "postgresql":
            return dialect.type_descriptor(Geography(geometry_type="POINT", srid=4326, spatial_index=False))
        return dialect.type_descriptor(Text())

    def process_bind_param(self, value, dialect):
        if dialect.name == "postgresql" or not isinstance(value, WKTElement):
            return value
        return f"SRID={value.srid};{value.data}"

def point_element(latitude: float, longitude: float) -> WKTElement:
    return WKTElement(f"POINT({longitude} {latitude})", srid=4326)

def utcnow() -> datetime:
    """Timezone-aware UTC timestamp for column defaults"""
    return datetime.now(timezone.utc)

def normalize_db_url(url: str) -> str:
    url = (url or "").strip()
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if url.startswith("postgres://"):
        return url.replace("postgres://", "postgresql+asyncpg://", 1)
    return url

def build_engine(url: str) -> AsyncEngine:
    return create_async_engine(
        normalize_db_url(url),
        echo=settings.DEBUG,
        poolclass=NullPool,
        future=True
    )

# Database engine
engine = build_engine(settings.DATABASE_URL)

# Session factory
async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False
)

# Base class for models
Base = declarative_base()

# ---- Dependencies ----
async def get_db():
    """Dependency for getting database sessions"""
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

# ---- Lifecycle ----
async def init_db():
    """Initialize database tables"""
    # Register every mapped class on Base.metadata before create_all
    import roadside.models  # noqa: F401

    async with engine.begin() as conn:
        if conn.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS postgis"))
        await conn.run_sync(Base.metadata.create_all)

async def close_db():
    """Close database connections"""
    await engine.dispose()
