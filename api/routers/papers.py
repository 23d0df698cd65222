# File: api/routers/papers.py
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from api.dependencies.database import get_db
from api.models.paper_models import FilterOptions, PaperPage, SearchRequest
from services.options_cache import OptionsCache, get_options_cache
from services import paper_service

router = APIRouter()
logger = logging.getLogger(__name__)


def _parse_int(value: Optional[str], default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    return parsed or default


@router.get("/papers", response_model=PaperPage)
def list_papers(
    page: Optional[str] = None,
    limit: Optional[str] = None,
    db: Session = Depends(get_db),
):
    page_num = _parse_int(page, 1)
    limit_num = _parse_int(limit, paper_service.DEFAULT_LIMIT)

    try:
        return paper_service.list_page(db, page_num, limit_num)
    except Exception:
        logger.error("Error getting papers", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get papers")


@router.post("/search", response_model=PaperPage)
def search_papers(payload: SearchRequest, db: Session = Depends(get_db)):
    try:
        return paper_service.search_page(db, payload.filters(), payload.page, payload.limit)
    except Exception:
        logger.error("Error searching papers", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search papers")


@router.get("/options", response_model=FilterOptions)
def get_options(
    db: Session = Depends(get_db),
    cache: OptionsCache = Depends(get_options_cache),
):
    try:
        return paper_service.get_filter_options(db, cache)
    except Exception:
        logger.error("Error getting options", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get options")
