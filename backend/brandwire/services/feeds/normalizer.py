"""
Turns raw feed entries into update drafts.

Works on any mapping: feedparser's ``FeedParserDict`` as well as plain dicts
shaped like other RSS libraries' output (``contentSnippet``, ``pubDate``,
``mediaContent.$.url`` ...). Every logical field has an ordered list of
places it may live; the first usable one wins.
"""
from datetime import datetime, timedelta, timezone
from time import struct_time
from typing import Any, Mapping, Optional
import re

from dateutil.parser import parse as parse_date

from brandwire.config import get_settings
from brandwire.services.feeds.base import NormalizationError, UpdateDraft

TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")
IMG_SRC_PATTERN = re.compile(r'<img[^>]+src="([^">]+)"', re.IGNORECASE)

HTML_ENTITIES = (
    ("&nbsp;", " "),
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
)

GUID_FIELDS = ("id", "guid")
SUMMARY_FIELDS = ("summary", "contentSnippet")
CONTENT_FIELDS = ("content", "content:encoded")
DESCRIPTION_FIELDS = ("description",)

PRIMARY_DATE_FIELDS = ("published_parsed", "published", "pubDate")
ALTERNATE_DATE_FIELDS = ("updated_parsed", "isoDate", "updated")

MEDIA_CONTENT_FIELDS = ("media_content", "mediaContent")
MEDIA_THUMBNAIL_FIELDS = ("media_thumbnail", "mediaThumbnail")

# Zone abbreviations dateutil does not resolve on its own
TZINFOS = {
    "EST": timezone(timedelta(hours=-5)),
    "EDT": timezone(timedelta(hours=-4)),
    "CST": timezone(timedelta(hours=-6)),
    "CDT": timezone(timedelta(hours=-5)),
    "MST": timezone(timedelta(hours=-7)),
    "MDT": timezone(timedelta(hours=-6)),
    "PST": timezone(timedelta(hours=-8)),
    "PDT": timezone(timedelta(hours=-7)),
    "GMT": timezone.utc,
    "UTC": timezone.utc,
    "BST": timezone(timedelta(hours=1)),
    "CET": timezone(timedelta(hours=1)),
    "CEST": timezone(timedelta(hours=2)),
}


def clean_text(text: Optional[str]) -> str:
    """Strip tags, decode common entities and collapse whitespace."""
    if not text:
        return ""
    text = TAG_PATTERN.sub("", text)
    for entity, replacement in HTML_ENTITIES:
        text = text.replace(entity, replacement)
    return WHITESPACE_PATTERN.sub(" ", text).strip()


def truncate(text: str, max_length: int) -> str:
    # str slicing is by code point, so no character is ever split
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip()


def build_external_id(brand_id: Any, item_key: str) -> str:
    return f"rss_{brand_id}_{item_key}"


def _text_value(value: Any) -> Optional[str]:
    """Read a text field that may be a string, a {"value": ...} dict or a list of those."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        inner = value.get("value")
        return inner if isinstance(inner, str) else None
    if isinstance(value, (list, tuple)):
        for part in value:
            text = _text_value(part)
            if text:
                return text
    return None


def _first_raw_text(entry: Mapping[str, Any], fields: tuple[str, ...]) -> Optional[str]:
    for name in fields:
        text = _text_value(entry.get(name))
        if text and text.strip():
            return text
    return None


def _first_clean_text(entry: Mapping[str, Any], fields: tuple[str, ...]) -> str:
    for name in fields:
        text = clean_text(_text_value(entry.get(name)))
        if text:
            return text
    return ""


def _url_attr(value: Any, keys: tuple[str, ...] = ("url",)) -> Optional[str]:
    """Read a URL attribute from a media reference in any of its shapes."""
    if not value:
        return None
    if isinstance(value, (list, tuple)):
        for part in value:
            url = _url_attr(part, keys)
            if url:
                return url
        return None
    if isinstance(value, Mapping):
        for key in keys:
            url = value.get(key)
            if isinstance(url, str) and url:
                return url
        # xml2js style: {"$": {"url": ...}}
        attrs = value.get("$")
        if isinstance(attrs, Mapping):
            return _url_attr(attrs, keys)
    return None


def extract_image_url(entry: Mapping[str, Any]) -> Optional[str]:
    for name in MEDIA_CONTENT_FIELDS:
        url = _url_attr(entry.get(name))
        if url:
            return url

    for name in MEDIA_THUMBNAIL_FIELDS:
        url = _url_attr(entry.get(name))
        if url:
            return url

    url = _url_attr(entry.get("enclosures"), ("href", "url")) or _url_attr(
        entry.get("enclosure"), ("url", "href")
    )
    if url:
        return url
    for link in entry.get("links") or []:
        if isinstance(link, Mapping) and link.get("rel") == "enclosure" and link.get("href"):
            return link["href"]

    for name in CONTENT_FIELDS + DESCRIPTION_FIELDS:
        raw = _text_value(entry.get(name))
        if raw:
            match = IMG_SRC_PATTERN.search(raw)
            if match:
                return match.group(1)

    return None


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _parse_date_value(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return _to_naive_utc(value)
    if isinstance(value, (struct_time, tuple)):
        # feedparser's *_parsed fields are already UTC
        try:
            return datetime(*value[:6])
        except (ValueError, TypeError):
            return None
    if isinstance(value, str):
        # Naive results (date-only strings, no zone) are taken as UTC
        try:
            return _to_naive_utc(parse_date(value.strip(), tzinfos=TZINFOS))
        except (ValueError, OverflowError):
            return None
    return None


def parse_published_date(entry: Mapping[str, Any], now: Optional[datetime] = None) -> datetime:
    for name in PRIMARY_DATE_FIELDS + ALTERNATE_DATE_FIELDS:
        parsed = _parse_date_value(entry.get(name))
        if parsed:
            return parsed
    return now or datetime.utcnow()


def normalize_entry(
    entry: Mapping[str, Any],
    brand_id: int,
    max_description_length: Optional[int] = None,
    now: Optional[datetime] = None,
) -> UpdateDraft:
    """Build an :class:`UpdateDraft` or raise :class:`NormalizationError`.

    The draft's ``update_type`` is left at its default; classification is a
    separate step.
    """
    if max_description_length is None:
        max_description_length = get_settings().description_max_length

    title = clean_text(_text_value(entry.get("title")))
    if not title:
        raise NormalizationError("entry has no title")

    link = entry.get("link")
    if not isinstance(link, str) or not link.strip():
        raise NormalizationError(f"entry '{title}' has no link")

    guid = _first_raw_text(entry, GUID_FIELDS)
    description = _first_clean_text(entry, SUMMARY_FIELDS + CONTENT_FIELDS + DESCRIPTION_FIELDS)

    return UpdateDraft(
        brand_id=brand_id,
        external_id=build_external_id(brand_id, guid or link),
        title=title,
        description=truncate(description, max_description_length),
        source_url=link,
        published_date=parse_published_date(entry, now),
        image_url=extract_image_url(entry),
    )
