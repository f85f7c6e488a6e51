"""
Video length estimation. Twitch does not report a VOD's duration in the
comments API, so we probe a fixed ladder of offsets and look for the
first one where the comment stream ends.
"""

import logging
from dataclasses import dataclass

import aiohttp

from config.settings import get_setting
from scrapers.twitch import fetch_comments_page
from utils.async_runner import gather_fail_fast

logger = logging.getLogger(__name__)


def build_probe_offsets(
    interval: int | None = None,
    max_intervals: int | None = None,
) -> list[int]:
    """Offsets to probe: 0, hours 1-5, then every 4 hours up to the max.

    With the defaults (3600s, 48h) this yields 17 offsets.
    """
    if interval is None:
        interval = get_setting("probe_interval_seconds")
    if max_intervals is None:
        max_intervals = get_setting("max_video_hours")

    steps = [0, 1, 2, 3, 4, 5]
    steps += list(range(8, max_intervals + 1, 4))
    return [step * interval for step in steps if step <= max_intervals]


PROBE_OFFSETS = build_probe_offsets()


@dataclass
class Probe:
    """Outcome of a single speculative page fetch."""

    offset: float
    has_next_page: bool
    max_offset_seconds: float


async def run_probe(
    video_id: str,
    client_id: str,
    session: aiohttp.ClientSession,
    offset: float,
) -> Probe:
    page = await fetch_comments_page(video_id, client_id, session, offset)
    if page is None:
        return Probe(offset=offset, has_next_page=False, max_offset_seconds=offset)

    max_offset = page.edges[-1].node.content_offset_seconds if page.edges else offset
    return Probe(
        offset=offset,
        has_next_page=page.page_info.has_next_page,
        max_offset_seconds=max_offset,
    )


def select_length(probes: list[Probe]) -> float:
    """Pick a length estimate from probes given in ladder order.

    The first probe that hit the end of the stream gives the length. If
    every probe still had more pages, the video outlasts the ladder and
    twice the last probe's offset is used (an overestimate; ranges past
    the real end come back empty). No probes means 0.
    """
    if not probes:
        return 0

    for probe in probes:
        if not probe.has_next_page:
            return probe.max_offset_seconds

    return probes[-1].max_offset_seconds * 2


async def estimate_length(
    video_id: str,
    client_id: str,
    session: aiohttp.ClientSession,
    offsets: list[float] | None = None,
) -> float:
    """Estimate the VOD length in seconds by probing all offsets concurrently.

    A failed probe propagates its TransportError / SchemaError.
    """
    if offsets is None:
        offsets = PROBE_OFFSETS

    probes = await gather_fail_fast(
        run_probe(video_id, client_id, session, offset) for offset in offsets
    )
    length = select_length(list(probes))
    logger.info("Video %s: estimated length %ss from %d probes", video_id, length, len(probes))
    return length
