from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from securevault.config import settings
import logging

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

url = settings.database_url or "sqlite:///./securevault.db"

if url.startswith("postgres://"):
    url = url.replace("postgres://", "postgresql+psycopg://", 1)
elif url.startswith("postgresql://"):
    url = url.replace("postgresql://", "postgresql+psycopg://", 1)

engine_kwargs = {}
if url.startswith("sqlite"):
    engine_kwargs["connect_args"] = {"check_same_thread": False}
    # an in-memory database only exists on its one connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        engine_kwargs["poolclass"] = StaticPool

engine = create_engine(
    url,
    pool_pre_ping=True,
    future=True,
    **engine_kwargs,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    expire_on_commit=False,
    bind=engine,
    future=True,
)

def init_db():
    from securevault.models import user, document  # noqa: F401
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready (%s)", engine.url.get_backend_name())
