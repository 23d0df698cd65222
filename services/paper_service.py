# File: services/paper_service.py
import math
import logging
from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy import text
from sqlalchemy.orm import Session

from database.models.paper_model import PAPER_COLUMNS, row_to_paper
from services.options_cache import OptionsCache
from services.query_builder import bind_params, build_where_clause, clean_filters

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 100
MAX_LIMIT = 500

DISTINCT_COLUMNS = ("article_type", "country", "journal", "publisher")

_SELECT_COLUMNS = ", ".join(PAPER_COLUMNS)


def clamp_limit(limit: Optional[int]) -> int:
    if not limit or limit < 1:
        return DEFAULT_LIMIT
    return min(limit, MAX_LIMIT)


def _page_response(total: int, page: int, limit: int, results: List[Dict]) -> Dict[str, Any]:
    return {
        "count": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit),
        "results": results,
    }


def _fetch_page(db: Session, where: str, params: List[str], page: int, limit: int) -> Dict[str, Any]:
    # Count and page are independent statements over a static dataset
    binds = bind_params(params)
    total = db.execute(text(f"SELECT COUNT(*) FROM papers {where}"), binds).scalar_one()

    binds.update({"limit": limit, "offset": (page - 1) * limit})
    rows = db.execute(
        text(
            f"SELECT {_SELECT_COLUMNS} FROM papers {where} "
            "ORDER BY record_id LIMIT :limit OFFSET :offset"
        ),
        binds,
    ).mappings().all()

    return _page_response(total, page, limit, [row_to_paper(row) for row in rows])


def count_papers(db: Session) -> int:
    return db.execute(text("SELECT COUNT(*) FROM papers")).scalar_one()


def list_page(db: Session, page: int = 1, limit: Optional[int] = DEFAULT_LIMIT) -> Dict[str, Any]:
    """One page of all records ordered by record_id."""
    limit = clamp_limit(limit)
    return _fetch_page(db, "", [], page, limit)


def search_page(
    db: Session,
    filters: Optional[Mapping[str, Any]],
    page: int = 1,
    limit: Optional[int] = DEFAULT_LIMIT,
) -> Dict[str, Any]:
    """
    One page of records matching `filters`.
    With no active filter this is identical to list_page.
    """
    limit = clamp_limit(limit)
    where, params = build_where_clause(filters)

    active = clean_filters(filters)
    if active:
        logger.debug(f"Active filters: {sorted(active)}")
        logger.debug(f"WHERE clause: {where}")

    return _fetch_page(db, where, params, page, limit)


def list_distinct_values(db: Session, column: str) -> List[str]:
    """
    Sorted distinct non-empty values of a dropdown column.
    Country holds ';'-joined lists, so its values are split and de-duplicated.
    """
    if column not in DISTINCT_COLUMNS:
        raise ValueError(f"Distinct values not available for column: {column}")

    rows = db.execute(
        text(
            f"SELECT DISTINCT {column} FROM papers "
            f"WHERE {column} IS NOT NULL AND {column} != '' "
            f"ORDER BY {column}"
        )
    ).scalars().all()

    if column != "country":
        return list(rows)

    countries = set()
    for value in rows:
        countries.update(part.strip() for part in value.split(";") if part.strip())
    return sorted(countries)


def load_filter_options(db: Session) -> Dict[str, List[str]]:
    return {
        "articleTypes": list_distinct_values(db, "article_type"),
        "countries": list_distinct_values(db, "country"),
        "journals": list_distinct_values(db, "journal"),
        "publishers": list_distinct_values(db, "publisher"),
    }


def get_filter_options(db: Session, cache: OptionsCache) -> Dict[str, List[str]]:
    return cache.get_or_load(lambda: load_filter_options(db))
