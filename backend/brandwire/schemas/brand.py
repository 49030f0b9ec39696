from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class BrandRssUpdate(BaseModel):
    rss_feed_url: Optional[str] = None
    rss_fetch_enabled: Optional[bool] = None


class BrandRssResponse(BaseModel):
    id: int
    name: str
    rss_feed_url: Optional[str] = None
    rss_fetch_enabled: bool
    last_rss_fetch: Optional[datetime] = None

    class Config:
        from_attributes = True
