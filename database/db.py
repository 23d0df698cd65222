# File: database/db.py
import os
import logging
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./papers.db")


def _apply_sqlite_pragmas(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA cache_size=-64000")  # 64MB
    cursor.execute("PRAGMA temp_store=MEMORY")
    cursor.execute("PRAGMA mmap_size=268435456")  # 256MB
    cursor.close()


def build_engine(url: str):
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
        )
        # WAL is meaningless for in-memory databases
        if ":memory:" not in url:
            event.listen(engine, "connect", _apply_sqlite_pragmas)
        return engine

    return create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_timeout=30,
        pool_pre_ping=True,
    )


engine = build_engine(DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def create_schema(bind=None):
    from database.models.paper_model import Paper
    Base.metadata.create_all(bind=bind or engine)


def init_db(bind=None) -> int:
    """
    Verify the store is reachable and populated before serving.
    Raises if the papers table is missing or the connection fails.
    """
    bind = bind or engine
    if not inspect(bind).has_table("papers"):
        raise RuntimeError(
            "Table 'papers' not found. Run: python scripts/init_db.py <csv>"
        )

    with bind.connect() as conn:
        count = conn.execute(text("SELECT COUNT(*) FROM papers")).scalar_one()

    logger.info(f"✓ Database connected. Total papers: {count}")
    return count
