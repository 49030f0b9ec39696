from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Any, Mapping, Optional, Protocol
import logging

import feedparser
import httpx

from brandwire.config import get_settings
from brandwire.models.brand_update import UpdateType

logger = logging.getLogger(__name__)

NOT_CONFIGURED_REASON = "RSS not configured"


class FeedFetchError(Exception):
    """Network or parse failure for a whole feed."""


class NormalizationError(Exception):
    """A raw feed entry is missing a field the pipeline requires."""


class UpdatePersistenceError(Exception):
    """An insert failed for a reason other than a duplicate external id."""


@dataclass
class UpdateDraft:
    brand_id: int
    external_id: str
    title: str
    description: str
    source_url: str
    published_date: datetime
    image_url: Optional[str] = None
    update_type: UpdateType = UpdateType.GENERAL


@dataclass
class SourceResult:
    success: bool
    new_updates: int = 0
    skipped_duplicates: int = 0
    item_errors: int = 0
    total_items: int = 0
    reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_configuration_skip(self) -> bool:
        return not self.success and self.reason is not None

    @classmethod
    def not_configured(cls) -> "SourceResult":
        return cls(success=False, reason=NOT_CONFIGURED_REASON)

    @classmethod
    def failed(cls, error: str) -> "SourceResult":
        return cls(success=False, error=error)

    def to_dict(self) -> dict:
        return {k: v for k, v in asdict(self).items() if v is not None}


@dataclass
class RunResult:
    total: int = 0
    successful: int = 0
    failed: int = 0
    skipped: int = 0
    total_new_updates: int = 0
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    brands: list[dict] = field(default_factory=list)

    def record(self, brand_id: int, brand_name: str, result: SourceResult) -> None:
        if result.success:
            self.successful += 1
            self.total_new_updates += result.new_updates
        elif result.is_configuration_skip:
            self.skipped += 1
        else:
            self.failed += 1
        self.brands.append({"id": brand_id, "name": brand_name, **result.to_dict()})

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "successful": self.successful,
            "failed": self.failed,
            "skipped": self.skipped,
            "total_new_updates": self.total_new_updates,
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
            "brands": self.brands,
        }


class FeedSource(Protocol):
    async def fetch_and_parse(self, url: str) -> list[Mapping[str, Any]]:
        ...


class FeedClient:
    """Fetches a feed over HTTP and parses it with feedparser."""

    def __init__(self, timeout: Optional[float] = None, user_agent: Optional[str] = None):
        settings = get_settings()
        self.timeout = timeout if timeout is not None else settings.rss_fetch_timeout_seconds
        self.user_agent = user_agent or settings.rss_user_agent

    async def fetch_and_parse(self, url: str) -> list[Mapping[str, Any]]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    url,
                    headers={"User-Agent": self.user_agent},
                    follow_redirects=True,
                )
                response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FeedFetchError(f"Timeout fetching {url}") from e
        except httpx.HTTPStatusError as e:
            raise FeedFetchError(f"HTTP {e.response.status_code} fetching {url}") from e
        except httpx.HTTPError as e:
            raise FeedFetchError(f"Could not reach {url}: {e}") from e

        feed = feedparser.parse(response.content)

        if feed.bozo and feed.bozo_exception:
            if not feed.entries:
                raise FeedFetchError(f"Malformed feed at {url}: {feed.bozo_exception}")
            logger.warning(f"Feed parse warning for {url}: {feed.bozo_exception}")

        if not feed.entries:
            logger.warning(f"No entries found in feed {url}")

        return list(feed.entries)
