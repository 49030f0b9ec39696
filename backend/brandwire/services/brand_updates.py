from datetime import datetime
from typing import Optional, Sequence
import logging
import math

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from brandwire.config import get_settings
from brandwire.models.brand import Brand
from brandwire.models.brand_update import BrandUpdate, UpdateOrigin

logger = logging.getLogger(__name__)

EMPTY_FOLLOW_MESSAGE = "Follow some brands to see their updates!"


def page_count(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class BrandUpdateService:
    """Read and admin operations over stored brand updates."""

    def __init__(self, db: Session):
        self.db = db
        self.settings = get_settings()

    def _active_for_brands(self, brand_ids: Sequence[int]):
        return self.db.query(BrandUpdate).filter(
            BrandUpdate.brand_id.in_(list(brand_ids)),
            BrandUpdate.is_active == True,
        )

    def get_updates_for_brands(
        self,
        brand_ids: Sequence[int],
        page: int = 1,
        limit: int = 20,
    ) -> tuple[list[BrandUpdate], int]:
        """Active updates of the given brands, newest first, plus the total count."""
        if not brand_ids:
            return [], 0

        query = self._active_for_brands(brand_ids)
        total = query.count()
        updates = (
            query.options(joinedload(BrandUpdate.brand))
            .order_by(BrandUpdate.published_date.desc(), BrandUpdate.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return updates, total

    def increment_view_count(self, update_id: int) -> Optional[BrandUpdate]:
        update = self.db.query(BrandUpdate).filter(BrandUpdate.id == update_id).first()
        if not update:
            return None
        update.view_count = (update.view_count or 0) + 1
        self.db.commit()
        self.db.refresh(update)
        return update

    def create_manual_update(
        self,
        brand_id: int,
        title: str,
        description: str,
        source_url: str,
        update_type,
        image_url: Optional[str] = None,
        published_date: Optional[datetime] = None,
        posted_by: Optional[str] = None,
    ) -> BrandUpdate:
        """Create an admin-authored update. Raises ValueError on invalid fields."""
        update = BrandUpdate(
            brand_id=brand_id,
            title=title.strip(),
            description=description.strip(),
            image_url=image_url,
            source_url=source_url.strip(),
            update_type=update_type,
            published_date=published_date or datetime.utcnow(),
            origin=UpdateOrigin.MANUAL,
            posted_by=posted_by,
        )
        self.db.add(update)
        self.db.commit()
        self.db.refresh(update)
        logger.info(f"Manual update {update.id} created for brand {brand_id}")
        return update

    def deactivate(self, update_id: int) -> Optional[BrandUpdate]:
        update = self.db.query(BrandUpdate).filter(BrandUpdate.id == update_id).first()
        if not update:
            return None
        update.is_active = False
        self.db.commit()
        self.db.refresh(update)
        return update

    def get_stats(self, recent_limit: Optional[int] = None) -> dict:
        recent_limit = recent_limit or self.settings.recent_updates_limit
        active = BrandUpdate.is_active == True

        total_updates = self.db.query(func.count(BrandUpdate.id)).filter(active).scalar() or 0

        by_origin = (
            self.db.query(BrandUpdate.origin, func.count(BrandUpdate.id))
            .filter(active)
            .group_by(BrandUpdate.origin)
            .all()
        )
        by_type = (
            self.db.query(BrandUpdate.update_type, func.count(BrandUpdate.id))
            .filter(active)
            .group_by(BrandUpdate.update_type)
            .all()
        )

        recent = (
            self.db.query(BrandUpdate)
            .options(joinedload(BrandUpdate.brand))
            .filter(active)
            .order_by(BrandUpdate.published_date.desc())
            .limit(recent_limit)
            .all()
        )

        return {
            "total_updates": total_updates,
            "by_origin": {origin.value: count for origin, count in by_origin},
            "by_type": {update_type.value: count for update_type, count in by_type},
            "recent_updates": recent,
            "brands": self.get_brand_setup_counts(),
        }

    def get_brand_setup_counts(self) -> dict:
        has_url = (Brand.rss_feed_url.isnot(None)) & (Brand.rss_feed_url != "")
        return {
            "total": self.db.query(func.count(Brand.id)).scalar() or 0,
            "with_feed_url": self.db.query(func.count(Brand.id)).filter(has_url).scalar() or 0,
            "fetch_enabled": self.db.query(func.count(Brand.id)).filter(
                Brand.rss_fetch_enabled == True
            ).scalar() or 0,
            "eligible": len(Brand.find_eligible(self.db)),
        }
