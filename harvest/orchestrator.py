"""
Parallel chat harvesting orchestrator — splits a VOD into offset ranges
and collects every range concurrently.

Flow:
  client id -> length (given, or probed) -> partition into chunks
  -> collect_range() per chunk, all at once -> merge (dedup + sort)
"""

import logging
import math
from dataclasses import dataclass

import aiohttp

from config.settings import get_setting
from harvest.probe import PROBE_OFFSETS, estimate_length
from scrapers.twitch import collect_range, new_session, retrieve_client_id
from utils.async_runner import gather_fail_fast
from utils.schema import CommentNode

logger = logging.getLogger(__name__)


@dataclass
class Range:
    """Half-open offset interval ``[start, end)`` in seconds."""

    start: float
    end: float


@dataclass
class HarvestProgress:
    total_chunks: int
    completed_chunks: int
    percentage: int


def partition_ranges(length_seconds: float, concurrency: int) -> list[Range]:
    """Split ``[0, length_seconds)`` into at most ``concurrency`` contiguous ranges.

    Every range is ``ceil(length / concurrency)`` seconds long except
    possibly the last. Ranges that would start at or past the end are
    dropped, so short videos get fewer chunks than requested.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")
    if length_seconds <= 0:
        return []

    chunk_size = math.ceil(length_seconds / concurrency)
    ranges = []
    for i in range(concurrency):
        start = i * chunk_size
        if start >= length_seconds:
            break
        ranges.append(Range(start=start, end=min(start + chunk_size, length_seconds)))
    return ranges


def merge_comments(chunks: list[list[CommentNode]]) -> list[CommentNode]:
    """Concatenate chunk outputs, drop repeated ids, sort by offset.

    The first occurrence of an id (chunk order, then page order) wins; the
    sort is stable so equal offsets keep arrival order.
    """
    merged = []
    seen_ids = set()
    for chunk in chunks:
        for node in chunk:
            if node.id in seen_ids:
                continue
            seen_ids.add(node.id)
            merged.append(node)

    return sorted(merged, key=lambda n: n.content_offset_seconds)


def _report(progress_callback, progress: HarvestProgress):
    """Send a progress event through the callback if one is set."""
    if not progress_callback:
        return
    try:
        progress_callback(progress)
    except Exception:
        logger.warning("Progress callback failed", exc_info=True)


async def harvest_ranges(
    video_id: str,
    client_id: str,
    session: aiohttp.ClientSession,
    ranges: list[Range],
    progress_callback=None,
    final_end: float | None = None,
) -> list[list[CommentNode]]:
    """Collect every range concurrently; results are in range order.

    Every range is collected with its own upper bound. ``final_end``, when
    given, replaces the bound of the last range only.
    """
    total = len(ranges)
    completed = 0

    async def collect_one(index: int, rng: Range) -> list[CommentNode]:
        nonlocal completed
        end = final_end if index == total - 1 and final_end is not None else rng.end
        nodes = await collect_range(video_id, client_id, session, rng.start, end)
        completed += 1
        _report(progress_callback, HarvestProgress(
            total_chunks=total,
            completed_chunks=completed,
            percentage=round(100 * completed / total),
        ))
        return nodes

    return await gather_fail_fast(
        collect_one(i, rng) for i, rng in enumerate(ranges)
    )


async def fetch_all_messages(
    video_id: str,
    concurrency: int | None = None,
    on_progress=None,
    length_seconds: float | None = None,
    session: aiohttp.ClientSession | None = None,
) -> list[CommentNode]:
    """Fetch the complete chat replay of a VOD, ordered by offset.

    Args:
        video_id: Twitch VOD id
        concurrency: Number of chunks, and so of concurrent requests
            (defaults to the ``concurrency`` setting, 128)
        on_progress: Called with a HarvestProgress after each chunk
        length_seconds: Known video length; skips the probe requests.
            Comments at or after it are not collected
        session: aiohttp session to reuse; one is created if omitted

    Returns:
        Deduplicated comments sorted by content offset

    Raises:
        TransportError, SchemaError, CredentialError: the first failure
            of any request aborts the harvest
    """
    if concurrency is None:
        concurrency = get_setting("concurrency")
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1, got {concurrency}")

    if session is None:
        limit = max(concurrency, len(PROBE_OFFSETS))
        async with new_session(limit=limit) as own_session:
            return await fetch_all_messages(
                video_id, concurrency, on_progress, length_seconds, own_session,
            )

    client_id = await retrieve_client_id(video_id, session)

    estimated = length_seconds is None
    if estimated:
        length_seconds = await estimate_length(video_id, client_id, session)

    if length_seconds <= 0:
        logger.info("Video %s: length unknown, collecting sequentially", video_id)
        comments = await collect_range(video_id, client_id, session, 0)
        return merge_comments([comments])

    ranges = partition_ranges(length_seconds, concurrency)
    logger.info(
        "Video %s: %ss split into %d chunks", video_id, length_seconds, len(ranges),
    )

    # an estimated length is the offset of the last comment seen
    final_end = length_seconds + 1 if estimated else length_seconds
    chunks = await harvest_ranges(
        video_id, client_id, session, ranges, on_progress, final_end=final_end,
    )
    comments = merge_comments(chunks)
    logger.info("Video %s: %d comments harvested", video_id, len(comments))
    return comments
