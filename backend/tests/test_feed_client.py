"""Tests for FeedClient HTTP fetching and parsing."""
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from brandwire.services.feeds.base import FeedClient, FeedFetchError
from brandwire.services.feeds.normalizer import normalize_entry

FEED_URL = "https://acme.example.com/feed"

RSS_XML = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:media="http://search.yahoo.com/mrss/">
  <channel>
    <title>Acme News</title>
    <link>https://acme.example.com</link>
    <description>Latest from Acme</description>
    <item>
      <title>Spring &amp; Summer Collection</title>
      <link>https://acme.example.com/ss25</link>
      <guid>acme-ss25</guid>
      <description>&lt;p&gt;The new season is here&lt;/p&gt;</description>
      <pubDate>Wed, 05 Feb 2025 12:00:00 GMT</pubDate>
      <media:content url="https://img.acme.example.com/ss25.jpg" medium="image" />
    </item>
    <item>
      <title>Runner drop</title>
      <link>https://acme.example.com/runner</link>
      <description>Out Friday</description>
    </item>
  </channel>
</rss>
"""


def _mock_http(response=None, get_side_effect=None):
    mock_client = AsyncMock()
    if get_side_effect is not None:
        mock_client.get = AsyncMock(side_effect=get_side_effect)
    else:
        mock_client.get = AsyncMock(return_value=response)
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    return mock_client


def _response(content: bytes, status_code: int = 200):
    mock_response = MagicMock()
    mock_response.status_code = status_code
    mock_response.content = content
    if status_code >= 400:
        request = httpx.Request("GET", FEED_URL)
        mock_response.raise_for_status = MagicMock(side_effect=httpx.HTTPStatusError(
            f"Server error '{status_code}'",
            request=request,
            response=httpx.Response(status_code, request=request),
        ))
    else:
        mock_response.raise_for_status = MagicMock()
    return mock_response


class TestFeedClient:
    async def test_parses_rss_entries(self):
        mock_client = _mock_http(_response(RSS_XML))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            entries = await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

        assert len(entries) == 2
        assert entries[0]["title"] == "Spring & Summer Collection"
        assert entries[0]["link"] == "https://acme.example.com/ss25"

        call_kwargs = mock_client.get.call_args
        assert call_kwargs.args[0] == FEED_URL
        assert "User-Agent" in call_kwargs.kwargs["headers"]

    async def test_parsed_entries_normalize(self):
        mock_client = _mock_http(_response(RSS_XML))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            entries = await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

        draft = normalize_entry(entries[0], 4)
        assert draft.external_id == "rss_4_acme-ss25"
        assert draft.description == "The new season is here"
        assert draft.image_url == "https://img.acme.example.com/ss25.jpg"
        assert draft.published_date.year == 2025

        # no guid: the link identifies the item
        assert normalize_entry(entries[1], 4).external_id == "rss_4_https://acme.example.com/runner"

    async def test_http_error_status_raises(self):
        mock_client = _mock_http(_response(b"oops", status_code=500))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(FeedFetchError, match="HTTP 500"):
                await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

    async def test_timeout_raises(self):
        mock_client = _mock_http(get_side_effect=httpx.ReadTimeout("timed out"))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(FeedFetchError, match="Timeout"):
                await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

    async def test_connection_error_raises(self):
        mock_client = _mock_http(get_side_effect=httpx.ConnectError("name resolution failed"))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(FeedFetchError, match="Could not reach"):
                await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

    async def test_malformed_feed_without_entries_raises(self):
        mock_client = _mock_http(_response(b"Service temporarily unavailable, try again later"))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            with pytest.raises(FeedFetchError, match="Malformed"):
                await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

    async def test_empty_feed_returns_no_entries(self):
        empty = b'<?xml version="1.0"?><rss version="2.0"><channel><title>Quiet</title></channel></rss>'
        mock_client = _mock_http(_response(empty))

        with patch("brandwire.services.feeds.base.httpx.AsyncClient", return_value=mock_client):
            entries = await FeedClient(timeout=5).fetch_and_parse(FEED_URL)

        assert entries == []
