# File: api/routers/health.py
from datetime import datetime, timezone
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from api.dependencies.database import get_db
from services.paper_service import count_papers

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    try:
        papers_loaded = count_papers(db)
    except Exception as e:
        logger.error(f"Health check failed: {type(e).__name__}: {str(e)}")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": str(e)},
        )

    return {
        "status": "ok",
        "papersLoaded": papers_loaded,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
