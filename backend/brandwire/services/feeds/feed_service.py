from datetime import datetime
from typing import Awaitable, Callable, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
import asyncio
import logging

from brandwire.models.brand import Brand
from brandwire.services.feeds.base import (
    FeedClient,
    FeedFetchError,
    FeedSource,
    NormalizationError,
    RunResult,
    SourceResult,
    UpdatePersistenceError,
)
from brandwire.services.feeds.classifier import classify_update
from brandwire.services.feeds.dedup import DeduplicationGate, GateOutcome
from brandwire.services.feeds.normalizer import normalize_entry
from brandwire.config import get_settings

logger = logging.getLogger(__name__)


class BrandFeedService:
    """Pulls brand RSS feeds into ``brand_updates``."""

    def __init__(
        self,
        db: Session,
        feed_client: Optional[FeedSource] = None,
        request_delay: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.db = db
        self.settings = get_settings()
        self.feed_client = feed_client or FeedClient()
        self.gate = DeduplicationGate(db)
        self.request_delay = (
            request_delay if request_delay is not None else self.settings.rss_request_delay_seconds
        )
        self._sleep = sleep

    async def fetch_brand_updates(self, brand: Brand) -> SourceResult:
        """Fetch one brand's feed and store its new items. Never raises."""
        if not brand.is_rss_configured:
            logger.info(f"Skipping {brand.name} - RSS not configured")
            return SourceResult.not_configured()

        logger.info(f"Fetching RSS for {brand.name}")
        try:
            entries = await self.feed_client.fetch_and_parse(brand.rss_feed_url)
        except FeedFetchError as e:
            logger.error(f"Error fetching RSS for {brand.name}: {e}")
            return SourceResult.failed(str(e))
        except Exception as e:
            logger.error(f"Unexpected error fetching RSS for {brand.name}: {e}")
            return SourceResult.failed(str(e) or type(e).__name__)

        result = SourceResult(success=True, total_items=len(entries))

        for entry in entries:
            try:
                draft = normalize_entry(
                    entry,
                    brand.id,
                    max_description_length=self.settings.description_max_length,
                )
                draft.update_type = classify_update(draft.title, draft.description)

                if self.gate.admit(draft) is GateOutcome.DUPLICATE:
                    result.skipped_duplicates += 1
                else:
                    result.new_updates += 1
                    logger.debug(f"Saved: {draft.title}")

            except NormalizationError as e:
                result.item_errors += 1
                logger.warning(f"Rejected item from {brand.name}: {e}")
            except UpdatePersistenceError as e:
                result.item_errors += 1
                logger.error(f"Error storing item from {brand.name}: {e}")
            except Exception as e:
                result.item_errors += 1
                logger.error(f"Error processing item from {brand.name}: {e}")

        self._mark_fetched(brand)

        logger.info(
            f"{brand.name}: {result.new_updates} new, {result.skipped_duplicates} duplicates, "
            f"{result.item_errors} errors"
        )
        return result

    async def fetch_all_brand_updates(self) -> RunResult:
        """Fetch every eligible brand in turn, pacing requests between brands."""
        run = RunResult(started_at=datetime.utcnow())

        brands = Brand.find_eligible(self.db)
        run.total = len(brands)
        logger.info(f"Found {len(brands)} brands with RSS enabled")

        for index, brand in enumerate(brands):
            # Read before fetching; a rolled-back session would expire it
            brand_id, brand_name = brand.id, brand.name
            try:
                result = await self.fetch_brand_updates(brand)
            except Exception as e:
                logger.error(f"Exception fetching {brand_name}: {e}")
                result = SourceResult.failed(str(e) or type(e).__name__)

            run.record(brand_id, brand_name, result)

            if index < len(brands) - 1 and self.request_delay > 0:
                await self._sleep(self.request_delay)

        run.finished_at = datetime.utcnow()
        logger.info(
            f"RSS fetch complete: {run.successful} successful, {run.failed} failed, "
            f"{run.skipped} skipped, {run.total_new_updates} new updates"
        )
        return run

    def _mark_fetched(self, brand: Brand):
        try:
            Brand.mark_fetched(self.db, brand.id, datetime.utcnow())
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.warning(f"Could not record last fetch time for {brand.name}: {e}")
