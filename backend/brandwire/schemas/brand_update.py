from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional

from brandwire.models.brand_update import UpdateType, UpdateOrigin


class BrandSummary(BaseModel):
    id: int
    name: str
    logo_path: Optional[str] = None

    class Config:
        from_attributes = True


class BrandUpdateResponse(BaseModel):
    id: int
    brand_id: int
    brand: Optional[BrandSummary] = None
    title: str
    description: str
    image_url: Optional[str] = None
    source_url: str
    update_type: UpdateType
    published_date: datetime
    origin: UpdateOrigin
    is_active: bool
    view_count: int
    like_count: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BrandUpdateCreate(BaseModel):
    brand_id: int
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    image_url: Optional[str] = None
    source_url: str = Field(min_length=1)
    update_type: UpdateType = UpdateType.GENERAL
    published_date: Optional[datetime] = None
    posted_by: Optional[str] = None


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class UpdatesPage(BaseModel):
    success: bool = True
    updates: list[BrandUpdateResponse]
    pagination: Pagination
    message: Optional[str] = None
