from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from brandwire.api.dependencies import require_admin
from brandwire.database import get_db
from brandwire.models.brand import Brand
from brandwire.schemas.brand import BrandRssResponse, BrandRssUpdate

router = APIRouter()


@router.get("/api/brands", response_model=list[BrandRssResponse])
async def list_brands(db: Session = Depends(get_db)):
    """Brands with their RSS ingestion configuration."""
    return db.query(Brand).order_by(Brand.name).all()


@router.put(
    "/api/brands/{brand_id}/rss",
    response_model=BrandRssResponse,
    dependencies=[Depends(require_admin)],
)
async def update_brand_rss(brand_id: int, payload: BrandRssUpdate, db: Session = Depends(get_db)):
    brand = db.query(Brand).filter(Brand.id == brand_id).first()
    if not brand:
        raise HTTPException(status_code=404, detail="Brand not found")

    if payload.rss_feed_url is not None:
        brand.rss_feed_url = payload.rss_feed_url.strip() or None
    if payload.rss_fetch_enabled is not None:
        brand.rss_fetch_enabled = payload.rss_fetch_enabled

    if brand.rss_fetch_enabled and not brand.rss_feed_url:
        db.rollback()
        raise HTTPException(status_code=400, detail="Cannot enable RSS fetching without a feed URL")

    db.commit()
    db.refresh(brand)
    return brand
