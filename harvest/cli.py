"""
Command-line chat harvester.

Usage:
    vod-chat-harvest 2627596758
    vod-chat-harvest https://www.twitch.tv/videos/2627596758 --concurrency 32
    vod-chat-harvest 2627596758 --length-seconds 7200 --format csv -o chat.csv
    vod-chat-harvest 2627596758 --single-page --offset 600
"""

import argparse
import asyncio
import logging
import sys
import time

from config.settings import get_setting
from harvest.orchestrator import fetch_all_messages
from scrapers.errors import VodChatError
from scrapers.twitch import extract_video_id, fetch_messages
from utils.common import export_csv_bytes, export_json_bytes

logger = logging.getLogger("harvest")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vod-chat-harvest",
        description="Download the chat replay of a Twitch VOD",
    )
    parser.add_argument("video", help="VOD id or twitch.tv/videos/<id> URL")
    parser.add_argument(
        "--concurrency", type=int, default=get_setting("concurrency"),
        help="Chunks fetched in parallel (default: %(default)s)",
    )
    parser.add_argument(
        "--length-seconds", type=float, default=None,
        help="Known video length; skips the length probes",
    )
    parser.add_argument(
        "--single-page", action="store_true",
        help="Fetch only one page of comments at --offset",
    )
    parser.add_argument("--offset", type=float, default=0, help="Offset for --single-page")
    parser.add_argument("--format", choices=["json", "csv"], default="json")
    parser.add_argument("--clean", action="store_true", help="Flatten comments to clean rows")
    parser.add_argument("-o", "--output", default="-", help="Output file (default: stdout)")
    parser.add_argument("--log-level", default=get_setting("log_level"))
    return parser


def _log_progress(progress):
    logger.info(
        "Chunks %d/%d (%d%%)",
        progress.completed_chunks, progress.total_chunks, progress.percentage,
    )


async def _run(args, video_id: str):
    if args.single_page:
        result = await fetch_messages(video_id, content_offset_seconds=args.offset)
        return result.nodes
    return await fetch_all_messages(
        video_id,
        concurrency=args.concurrency,
        on_progress=_log_progress,
        length_seconds=args.length_seconds,
    )


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    video_id = extract_video_id(args.video)
    if not video_id:
        logger.error("Not a Twitch VOD id or URL: %s", args.video)
        return 2
    if args.concurrency < 1:
        logger.error("--concurrency must be at least 1")
        return 2

    start = time.monotonic()
    try:
        nodes = asyncio.run(_run(args, video_id))
    except VodChatError as e:
        logger.error("Harvest failed: %s", e)
        return 1

    logger.info("Got %d comments in %.1fs", len(nodes), time.monotonic() - start)

    if args.format == "csv":
        data = export_csv_bytes(nodes, clean_mode=args.clean)
    else:
        data = export_json_bytes(nodes, clean_mode=args.clean)

    if args.output == "-":
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.write(b"\n")
    else:
        with open(args.output, "wb") as f:
            f.write(data)
        logger.info("Wrote %s", args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
