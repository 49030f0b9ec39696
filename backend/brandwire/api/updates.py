from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import Optional

from brandwire.api.dependencies import require_admin
from brandwire.database import get_db
from brandwire.models.brand import Brand
from brandwire.scheduler import IngestionScheduler, get_ingestion_scheduler
from brandwire.schemas.brand_update import (
    BrandUpdateCreate,
    BrandUpdateResponse,
    Pagination,
    UpdatesPage,
)
from brandwire.services.brand_updates import (
    BrandUpdateService,
    EMPTY_FOLLOW_MESSAGE,
    page_count,
)

router = APIRouter()


def _page_response(updates, total: int, page: int, limit: int) -> UpdatesPage:
    return UpdatesPage(
        updates=[BrandUpdateResponse.model_validate(u) for u in updates],
        pagination=Pagination(page=page, limit=limit, total=total, pages=page_count(total, limit)),
    )


# ==========================================
# User endpoints
# ==========================================

@router.get("/feed", response_model=UpdatesPage)
async def get_updates_feed(
    brand_ids: Optional[list[int]] = Query(None, description="Followed brand ids"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    """Updates from the brands a user follows, newest first."""
    if not brand_ids:
        return UpdatesPage(
            updates=[],
            pagination=Pagination(page=1, limit=limit, total=0, pages=0),
            message=EMPTY_FOLLOW_MESSAGE,
        )

    service = BrandUpdateService(db)
    updates, total = service.get_updates_for_brands(brand_ids, page=page, limit=limit)
    return _page_response(updates, total, page, limit)


@router.get("/brand/{brand_id}", response_model=UpdatesPage)
async def get_brand_updates(
    brand_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
):
    service = BrandUpdateService(db)
    updates, total = service.get_updates_for_brands([brand_id], page=page, limit=limit)
    return _page_response(updates, total, page, limit)


@router.post("/{update_id}/view")
async def track_view(update_id: int, db: Session = Depends(get_db)):
    update = BrandUpdateService(db).increment_view_count(update_id)
    if not update:
        raise HTTPException(status_code=404, detail="Update not found")
    return {"success": True, "view_count": update.view_count}


# ==========================================
# Admin endpoints
# ==========================================

@router.post("/admin/trigger-fetch", dependencies=[Depends(require_admin)])
async def trigger_fetch(scheduler: IngestionScheduler = Depends(get_ingestion_scheduler)):
    """Start an RSS fetch for all brands in the background."""
    outcome = scheduler.trigger_now()
    if outcome["started"]:
        return {"success": True, "started": True, "message": "RSS fetch started in background"}
    return {
        "success": False,
        "started": False,
        "message": f"RSS fetch not started: {outcome['reason']}",
    }


@router.post("/admin/create", dependencies=[Depends(require_admin)])
async def create_update(payload: BrandUpdateCreate, db: Session = Depends(get_db)):
    """Create an update by hand, for brands without a feed."""
    if not db.query(Brand).filter(Brand.id == payload.brand_id).first():
        raise HTTPException(status_code=404, detail="Brand not found")

    try:
        update = BrandUpdateService(db).create_manual_update(
            brand_id=payload.brand_id,
            title=payload.title,
            description=payload.description,
            source_url=payload.source_url,
            update_type=payload.update_type,
            image_url=payload.image_url,
            published_date=payload.published_date,
            posted_by=payload.posted_by,
        )
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    return {"success": True, "update": BrandUpdateResponse.model_validate(update)}


@router.delete("/admin/{update_id}", dependencies=[Depends(require_admin)])
async def delete_update(update_id: int, db: Session = Depends(get_db)):
    """Soft delete: the update stays stored but leaves every feed."""
    update = BrandUpdateService(db).deactivate(update_id)
    if not update:
        raise HTTPException(status_code=404, detail="Update not found")
    return {"success": True, "update": BrandUpdateResponse.model_validate(update)}


@router.get("/admin/stats", dependencies=[Depends(require_admin)])
async def get_update_stats(
    db: Session = Depends(get_db),
    scheduler: IngestionScheduler = Depends(get_ingestion_scheduler),
):
    stats = BrandUpdateService(db).get_stats()
    stats["recent_updates"] = [
        BrandUpdateResponse.model_validate(u) for u in stats["recent_updates"]
    ]
    stats["scheduler"] = scheduler.status()
    return {"success": True, "stats": stats}


@router.get("/admin/scheduler", dependencies=[Depends(require_admin)])
async def get_scheduler_status(scheduler: IngestionScheduler = Depends(get_ingestion_scheduler)):
    return scheduler.status()
