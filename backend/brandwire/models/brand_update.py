from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship, validates
from sqlalchemy.sql import func
from brandwire.database import Base
import enum


class UpdateType(enum.Enum):
    PRODUCT_LAUNCH = "product_launch"
    COLLECTION = "collection"
    PRESS_RELEASE = "press_release"
    EVENT = "event"
    COLLABORATION = "collaboration"
    GENERAL = "general"


class UpdateOrigin(enum.Enum):
    FEED = "feed"
    MANUAL = "manual"
    API = "api"


class BrandUpdate(Base):
    __tablename__ = "brand_updates"

    id = Column(Integer, primary_key=True, index=True)

    brand_id = Column(
        Integer,
        ForeignKey("brands.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    image_url = Column(String(2048), nullable=True)
    source_url = Column(String(2048), nullable=False)

    update_type = Column(SQLEnum(UpdateType), default=UpdateType.GENERAL, nullable=False)
    published_date = Column(DateTime, nullable=False, index=True)

    # NULL for manual records; unique index allows many NULLs
    external_id = Column(String(2048), nullable=True, unique=True)
    origin = Column(SQLEnum(UpdateOrigin), default=UpdateOrigin.FEED, nullable=False)
    posted_by = Column(String(100), nullable=True)

    is_active = Column(Boolean, default=True, nullable=False)
    view_count = Column(Integer, default=0, nullable=False)
    like_count = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    brand = relationship("Brand", back_populates="updates")

    __table_args__ = (
        Index("ix_brand_updates_brand_published", "brand_id", "published_date"),
        Index("ix_brand_updates_published_active", "published_date", "is_active"),
    )

    @validates("title", "description", "source_url")
    def _validate_required_text(self, key, value):
        if value is None or not str(value).strip():
            raise ValueError(f"{key} is required")
        return value

    @classmethod
    def exists_by_external_id(cls, db, external_id: str) -> bool:
        return db.query(cls.id).filter(cls.external_id == external_id).first() is not None
