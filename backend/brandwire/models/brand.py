from datetime import datetime

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from brandwire.database import Base


class Brand(Base):
    """
    A brand users can follow.

    Owned by the surrounding application. The ingestion pipeline only reads
    the RSS configuration and writes ``last_rss_fetch`` after each fetch.
    """
    __tablename__ = "brands"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), unique=True, nullable=False, index=True)
    description = Column(Text, nullable=True)
    logo_path = Column(String(500), nullable=True)
    website_url = Column(String(200), nullable=True)

    # RSS ingestion configuration
    rss_feed_url = Column(String(1024), nullable=True)
    rss_fetch_enabled = Column(Boolean, default=False, nullable=False)
    last_rss_fetch = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    updates = relationship("BrandUpdate", back_populates="brand", passive_deletes=True)

    @property
    def is_rss_configured(self) -> bool:
        return bool(self.rss_fetch_enabled and self.rss_feed_url)

    @classmethod
    def find_eligible(cls, db) -> list["Brand"]:
        """Brands with fetching enabled and a non-empty feed URL, in id order."""
        return db.query(cls).filter(
            cls.rss_fetch_enabled == True,
            cls.rss_feed_url.isnot(None),
            cls.rss_feed_url != "",
        ).order_by(cls.id).all()

    @classmethod
    def mark_fetched(cls, db, brand_id: int, fetched_at: datetime) -> None:
        db.query(cls).filter(cls.id == brand_id).update(
            {cls.last_rss_fetch: fetched_at},
            synchronize_session="fetch",
        )
        db.commit()
