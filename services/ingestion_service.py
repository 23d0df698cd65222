# File: services/ingestion_service.py
"""
Offline store maintenance: bulk load from a Retraction Watch CSV export and
batch pruning of the oldest records. Never called from the serving path.
"""
import csv
import logging
from typing import Callable, Iterable, Iterator, List, Optional
from sqlalchemy import insert, text
from sqlalchemy.engine import Engine

from database.db import Base
from database.models.paper_model import Paper, paper_to_row

logger = logging.getLogger(__name__)

BATCH_SIZE = 1000

Progress = Optional[Callable[[int, int], None]]


def read_records(csv_path: str) -> List[dict]:
    with open(csv_path, newline="", encoding="utf-8-sig") as fh:
        reader = csv.DictReader(fh)
        return [row for row in reader if any((v or "").strip() for v in row.values())]


def _unique_rows(records: Iterable[dict]) -> Iterator[dict]:
    seen = set()
    skipped = 0
    for record in records:
        row = paper_to_row(record)
        record_id = row["record_id"]
        if not record_id or record_id in seen:
            skipped += 1
            continue
        seen.add(record_id)
        yield row

    if skipped:
        logger.warning(f"Skipped {skipped} rows with missing or duplicate Record ID")


def rebuild_schema(bind: Engine):
    """Drop and recreate the papers table with its indexes."""
    Paper.__table__.drop(bind=bind, checkfirst=True)
    Base.metadata.create_all(bind=bind, tables=[Paper.__table__])


def load_records(bind: Engine, records: List[dict], batch_size: int = BATCH_SIZE, progress: Progress = None) -> int:
    rebuild_schema(bind)

    rows = list(_unique_rows(records))
    inserted = 0
    for start in range(0, len(rows), batch_size):
        batch = rows[start:start + batch_size]
        with bind.begin() as conn:
            conn.execute(insert(Paper.__table__), batch)
        inserted += len(batch)
        if progress:
            progress(inserted, len(rows))

    with bind.begin() as conn:
        conn.execute(text("ANALYZE papers"))

    logger.info(f"✓ Loaded {inserted} records")
    return inserted


def load_csv(bind: Engine, csv_path: str, batch_size: int = BATCH_SIZE, progress: Progress = None) -> int:
    logger.info(f"Initializing database from: {csv_path}")
    return load_records(bind, read_records(csv_path), batch_size=batch_size, progress=progress)


def prune_oldest(bind: Engine, delete_count: int, batch_size: int = BATCH_SIZE, progress: Progress = None) -> int:
    """Delete up to `delete_count` rows with the lowest record_id, in batches."""
    deleted = 0
    while deleted < delete_count:
        current_batch = min(batch_size, delete_count - deleted)
        with bind.begin() as conn:
            result = conn.execute(
                text(
                    "DELETE FROM papers WHERE record_id IN "
                    "(SELECT record_id FROM papers ORDER BY record_id LIMIT :batch)"
                ),
                {"batch": current_batch},
            )
        if result.rowcount == 0:
            logger.info("No more records to delete")
            break
        deleted += result.rowcount
        if progress:
            progress(deleted, delete_count)

    return deleted


def optimize_store(bind: Engine):
    """Reclaim space and refresh index statistics (SQLite)."""
    with bind.connect().execution_options(isolation_level="AUTOCOMMIT") as conn:
        conn.execute(text("VACUUM"))
        conn.execute(text("REINDEX"))
        conn.execute(text("ANALYZE papers"))
