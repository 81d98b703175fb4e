import os
from typing import Iterator
import logging
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url, URL
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

DB_USER = os.getenv("DB_USER", "app")
DB_PASS = os.getenv("DB_PASS", "app")
DB_NAME = os.getenv("DB_NAME", "appdb")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "5432")
DB_SCHEMA = os.getenv("DB_SCHEMA", "productos")

def resolve_database_url() -> str:
    """
    DATABASE_URL wins when set; otherwise build a psycopg3 URL from the DB_* vars
    with search_path pointing at our schema.
    """
    url = os.getenv("DATABASE_URL", "").strip()
    if url:
        return url
    options = f"-csearch_path={DB_SCHEMA},public"
    return (
        f"postgresql+psycopg://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
        f"?options={options}"
    )

def engine_options(url: URL) -> dict:
    if url.get_backend_name() == "sqlite":
        opts = {"connect_args": {"check_same_thread": False}}
        # in-memory: every session must see the same connection
        if url.database in (None, "", ":memory:"):
            opts["poolclass"] = StaticPool
        return opts
    return {"pool_pre_ping": True}

DATABASE_URL = resolve_database_url()
_url = make_url(DATABASE_URL)

engine = create_engine(_url, future=True, **engine_options(_url))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)

def init_db():
    """
    Ensure the schema exists (PostgreSQL only), then create tables (idempotent).
    Called once at application startup.
    """
    if engine.dialect.name == "postgresql":
        with engine.begin() as conn:
            conn.execute(text(f'CREATE SCHEMA IF NOT EXISTS "{DB_SCHEMA}"'))
    from .models import Base  # noqa
    Base.metadata.create_all(bind=engine)
    logger.info("tables ready on %s", engine.dialect.name)

def get_session() -> Iterator[Session]:
    """
    FastAPI dependency: yields a DB session, commits on success, rolls back on error.
    """
    s: Session = SessionLocal()
    try:
        yield s
        s.commit()
    except Exception:
        s.rollback()
        raise
    finally:
        s.close()
