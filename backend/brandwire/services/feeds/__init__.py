from brandwire.services.feeds.base import (
    FeedClient,
    FeedFetchError,
    NormalizationError,
    UpdatePersistenceError,
    UpdateDraft,
    SourceResult,
    RunResult,
)
from brandwire.services.feeds.normalizer import normalize_entry, clean_text, build_external_id
from brandwire.services.feeds.classifier import classify_update, CLASSIFICATION_RULES
from brandwire.services.feeds.dedup import DeduplicationGate, GateOutcome
from brandwire.services.feeds.feed_service import BrandFeedService

__all__ = [
    "FeedClient",
    "FeedFetchError",
    "NormalizationError",
    "UpdatePersistenceError",
    "UpdateDraft",
    "SourceResult",
    "RunResult",
    "normalize_entry",
    "clean_text",
    "build_external_id",
    "classify_update",
    "CLASSIFICATION_RULES",
    "DeduplicationGate",
    "GateOutcome",
    "BrandFeedService",
]
