from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text

from brandwire.database import get_db
from brandwire.models.brand import Brand
from brandwire.scheduler import IngestionScheduler, get_ingestion_scheduler

router = APIRouter()


@router.get("/health")
async def health_check(
    db: Session = Depends(get_db),
    scheduler: IngestionScheduler = Depends(get_ingestion_scheduler),
):
    """Database probe plus ingestion state; storage failures mark the service degraded."""
    eligible_brands = None
    try:
        db.execute(text("SELECT 1"))
        eligible_brands = len(Brand.find_eligible(db))
        db_status = "healthy"
    except Exception as e:
        db_status = f"unhealthy: {str(e)}"

    status = scheduler.status()
    return {
        "status": "ok" if db_status == "healthy" else "degraded",
        "database": db_status,
        "ingestion": {
            "scheduler": status["state"],
            "next_run": status["next_run"],
            "last_finished_at": status["last_finished_at"],
            "last_error": status["last_error"],
            "eligible_brands": eligible_brands,
        },
    }
