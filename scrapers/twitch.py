"""
Twitch VOD Chat Scraper
========================
Fetches the chat replay attached to a Twitch video-on-demand through
Twitch's GraphQL API (persisted query ``VideoCommentsByOffsetOrCursor``).

Comments are paged by *content offset* (seconds into the video) rather
than by cursor: each request asks for the comments at or after an offset,
and the next request starts at the offset of the last comment received.

Provides:
  - fetch_comments_page(): one validated GraphQL round trip
  - collect_range(): offset-paged collection, optionally bounded
  - fetch_messages(): a single page, no pagination
  - TwitchVodClient: incremental, sequential page-by-page consumption
"""

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

import aiohttp

from config.settings import get_setting
from scrapers.errors import CredentialError, SchemaError, TransportError
from utils.schema import CommentNode, CommentPage, parse_comments_response

logger = logging.getLogger(__name__)

# Suppress noisy logging
logging.getLogger("aiohttp").setLevel(logging.WARNING)

# ---------------------------------------------------------------------------
#  Constants
# ---------------------------------------------------------------------------

GQL_URL = "https://gql.twitch.tv/gql"
VIDEO_PAGE_URL = "https://www.twitch.tv/videos/{video_id}"

OPERATION_NAME = "VideoCommentsByOffsetOrCursor"
PERSISTED_QUERY_HASH = "b70a3591ff0f4e0313d126c6a1502d79a1c02baebb288227c582044aa76adf6a"

CLIENT_ID_MARKER = 'clientId="'

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/131.0.0.0 Safari/537.36"
)


@dataclass
class FetchResult:
    """Comments returned by one fetch, plus whether more pages follow."""

    nodes: list[CommentNode] = field(default_factory=list)
    has_next_page: bool = False


# ---------------------------------------------------------------------------
#  Helpers
# ---------------------------------------------------------------------------

def extract_video_id(url: str) -> str:
    """
    Extract the numeric VOD id from a Twitch URL or a bare id.
    Supports formats:
      2627596758
      https://www.twitch.tv/videos/2627596758
      https://m.twitch.tv/videos/2627596758?t=1h2m
      twitch.tv/videos/2627596758
    """
    if not url:
        return ""

    url = url.strip()
    if url.isdigit():
        return url

    if not url.startswith("http"):
        url = f"https://{url}"

    parsed = urlparse(url)
    if not parsed.hostname or not parsed.hostname.endswith("twitch.tv"):
        return ""

    match = re.search(r"/videos/(\d+)", parsed.path)
    if match:
        return match.group(1)

    return ""


def new_session(limit: int = 100) -> aiohttp.ClientSession:
    """Create a ClientSession allowing ``limit`` concurrent connections."""
    connector = aiohttp.TCPConnector(limit=limit, keepalive_timeout=30)
    return aiohttp.ClientSession(
        headers={"User-Agent": USER_AGENT},
        connector=connector,
    )


def build_payload(video_id: str, offset_seconds: float) -> list[dict]:
    """Build the batched GraphQL request body for one comment page."""
    return [
        {
            "operationName": OPERATION_NAME,
            "variables": {
                "videoID": video_id,
                "contentOffsetSeconds": offset_seconds,
            },
            "extensions": {
                "persistedQuery": {
                    "version": 1,
                    "sha256Hash": PERSISTED_QUERY_HASH,
                },
            },
        }
    ]


def _timeout() -> aiohttp.ClientTimeout:
    return aiohttp.ClientTimeout(total=get_setting("request_timeout"))


# ---------------------------------------------------------------------------
#  Network round trips
# ---------------------------------------------------------------------------

async def retrieve_client_id(video_id: str, session: aiohttp.ClientSession) -> str:
    """Scrape the public GraphQL Client ID from the VOD page HTML.

    Raises:
        TransportError: the video page could not be fetched
        CredentialError: no ``clientId="..."`` marker in the page
    """
    url = VIDEO_PAGE_URL.format(video_id=video_id)
    async with session.get(url, timeout=_timeout()) as resp:
        if not 200 <= resp.status < 300:
            raise TransportError(resp.status, url)
        html = await resp.text()

    start = html.find(CLIENT_ID_MARKER)
    if start == -1:
        raise CredentialError(f"Failed to find client ID in HTML for video {video_id}")

    start += len(CLIENT_ID_MARKER)
    end = html.find('"', start)
    client_id = html[start:end]
    logger.debug("Resolved client id for video %s", video_id)
    return client_id


async def fetch_comments_page(
    video_id: str,
    client_id: str,
    session: aiohttp.ClientSession,
    offset_seconds: float = 0,
) -> CommentPage | None:
    """POST one GraphQL request and return the validated comment page.

    Returns None when Twitch reports ``comments: null`` for the offset.
    Exactly one network call; no retries.

    Raises:
        TransportError: non-2xx status from the GraphQL endpoint
        SchemaError: response body does not match the comment page shape
    """
    headers = {"Client-ID": client_id}
    body = build_payload(video_id, offset_seconds)

    async with session.post(GQL_URL, json=body, headers=headers, timeout=_timeout()) as resp:
        if not 200 <= resp.status < 300:
            raise TransportError(resp.status, GQL_URL)
        try:
            data = await resp.json(content_type=None)
        except ValueError as e:
            raise SchemaError(f"GraphQL response is not JSON: {e}") from e

    page = parse_comments_response(data)
    logger.debug(
        "Video %s @%ss: %s comments",
        video_id, offset_seconds, "no" if page is None else len(page.edges),
    )
    return page


# ---------------------------------------------------------------------------
#  Pagination
# ---------------------------------------------------------------------------

async def collect_range(
    video_id: str,
    client_id: str,
    session: aiohttp.ClientSession,
    start_offset: float = 0,
    end_offset: float | None = None,
) -> list[CommentNode]:
    """Collect comments from ``start_offset`` up to ``end_offset`` (exclusive).

    Pages are requested sequentially, each starting at the offset of the
    last new comment of the previous page. Comments already seen (by id)
    are skipped; a page with nothing new advances the offset by one
    second so the loop cannot stall. With ``end_offset`` set, collection
    also stops once the next request offset reaches the bound.

    Without ``end_offset`` collection only stops when Twitch reports no
    next page, so an upstream that keeps answering ``hasNextPage: true``
    with old comments would never finish.
    """
    comments = []
    comment_ids_seen = set()
    offset = start_offset
    page_num = 0

    while True:
        page = await fetch_comments_page(video_id, client_id, session, offset)
        page_num += 1
        if page is None:
            break

        last_new = None
        for edge in page.edges:
            node = edge.node
            if node.id in comment_ids_seen:
                continue
            if end_offset is not None and node.content_offset_seconds >= end_offset:
                logger.debug(
                    "Range %s-%s of video %s done after %d pages (%d comments)",
                    start_offset, end_offset, video_id, page_num, len(comments),
                )
                return comments
            comment_ids_seen.add(node.id)
            comments.append(node)
            last_new = node

        if not page.page_info.has_next_page:
            break

        offset = last_new.content_offset_seconds if last_new else offset + 1
        if end_offset is not None and offset >= end_offset:
            break

    logger.debug(
        "Range %s-%s of video %s done after %d pages (%d comments)",
        start_offset, end_offset, video_id, page_num, len(comments),
    )
    return comments


async def fetch_messages(
    video_id: str,
    content_offset_seconds: float = 0,
    session: aiohttp.ClientSession | None = None,
) -> FetchResult:
    """Fetch a single page of comments at the given offset (no pagination)."""
    if session is None:
        async with new_session() as own_session:
            return await fetch_messages(video_id, content_offset_seconds, own_session)

    client_id = await retrieve_client_id(video_id, session)
    page = await fetch_comments_page(video_id, client_id, session, content_offset_seconds)
    if page is None:
        return FetchResult()
    return FetchResult(
        nodes=[edge.node for edge in page.edges],
        has_next_page=page.page_info.has_next_page,
    )


# ---------------------------------------------------------------------------
#  Sequential client
# ---------------------------------------------------------------------------

class TwitchVodClient:
    """
    Page-by-page chat reader for one VOD.

    Each fetch_next() call issues one request starting where the previous
    page ended and returns only comments not returned before. Once Twitch
    reports the last page, further calls return an empty result without
    touching the network.

    Use create_twitch_client() to build one; it resolves the Client ID.
    """

    def __init__(
        self,
        video_id: str,
        client_id: str,
        session: aiohttp.ClientSession,
        offset_seconds: float = 0,
        owns_session: bool = False,
    ):
        self.video_id = video_id
        self.client_id = client_id
        self.offset = offset_seconds
        self._session = session
        self._owns_session = owns_session
        self._has_next_page = True
        self._seen_ids = set()

    @property
    def has_next_page(self) -> bool:
        return self._has_next_page

    async def fetch_next(self) -> FetchResult:
        """Fetch the next page of comments."""
        if not self._has_next_page:
            return FetchResult(nodes=[], has_next_page=False)

        page = await fetch_comments_page(
            self.video_id, self.client_id, self._session, self.offset,
        )
        if page is None:
            self._has_next_page = False
            return FetchResult(nodes=[], has_next_page=False)

        nodes = [e.node for e in page.edges if e.node.id not in self._seen_ids]
        self._seen_ids.update(n.id for n in nodes)

        self.offset = nodes[-1].content_offset_seconds if nodes else self.offset + 1
        self._has_next_page = page.page_info.has_next_page

        return FetchResult(nodes=nodes, has_next_page=self._has_next_page)

    async def aclose(self):
        """Close the HTTP session if this client created it."""
        if self._owns_session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()


async def create_twitch_client(
    video_id: str,
    offset_seconds: float = 0,
    session: aiohttp.ClientSession | None = None,
) -> TwitchVodClient:
    """Resolve the Client ID for ``video_id`` and return a ready client.

    When no session is passed the client opens its own and closes it in
    aclose() / on leaving ``async with``.
    """
    owns_session = session is None
    if owns_session:
        session = new_session()

    try:
        client_id = await retrieve_client_id(video_id, session)
    except Exception:
        if owns_session:
            await session.close()
        raise

    return TwitchVodClient(
        video_id, client_id, session,
        offset_seconds=offset_seconds,
        owns_session=owns_session,
    )
