"""
Shared utilities for the VOD chat harvester.
"""

import csv
import io
import json

from utils.schema import CommentNode, to_clean, to_raw


def fmt_num(n) -> str:
    """Format a number with K/M suffixes for display."""
    if not isinstance(n, (int, float)):
        return str(n)
    if n >= 1_000_000:
        return f"{n / 1_000_000:.1f}M"
    if n >= 1_000:
        return f"{n / 1_000:.1f}K"
    return str(int(n))


def _rows(nodes: list[CommentNode], clean_mode: bool) -> list[dict]:
    return to_clean(nodes) if clean_mode else to_raw(nodes)


def export_csv_bytes(nodes: list[CommentNode], clean_mode: bool = True) -> bytes:
    """Export comments to CSV bytes (for a download button or file).
    Nested values (fragments, badges) are JSON-encoded in raw mode."""
    if not nodes:
        return b""
    rows = _rows(nodes, clean_mode)
    output = io.StringIO()
    fieldnames = list(rows[0].keys())
    writer = csv.DictWriter(output, fieldnames=fieldnames, extrasaction="ignore")
    writer.writeheader()
    for r in rows:
        row = {}
        for k, v in r.items():
            row[k] = json.dumps(v, ensure_ascii=False) if isinstance(v, (dict, list)) else v
        writer.writerow(row)
    return output.getvalue().encode("utf-8")


def export_json_bytes(nodes: list[CommentNode], clean_mode: bool = False) -> bytes:
    """Export comments to JSON bytes. Raw mode keeps Twitch's field names."""
    if not nodes:
        return b"[]"
    rows = _rows(nodes, clean_mode)
    return json.dumps(rows, indent=2, ensure_ascii=False, default=str).encode("utf-8")
