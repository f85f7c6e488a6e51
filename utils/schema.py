"""
Comment schema — validated Twitch GraphQL payload models plus a clean,
analysis-ready row format for export.
"""

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from scrapers.errors import SchemaError


class _Model(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Commenter(_Model):
    id: str
    login: str
    display_name: str = Field(alias="displayName")


class Emote(_Model):
    id: str
    emote_id: str = Field(alias="emoteID")
    from_: int = Field(alias="from")


class Fragment(_Model):
    emote: Emote | None = None
    text: str


class Badge(_Model):
    id: str
    set_id: str = Field(alias="setID")
    version: str


class Message(_Model):
    fragments: list[Fragment]
    user_badges: list[Badge] = Field(alias="userBadges")
    user_color: str | None = Field(default=None, alias="userColor")


class CommentNode(_Model):
    """A single chat message. ``id`` is the dedup key."""

    id: str
    commenter: Commenter | None = None
    content_offset_seconds: float = Field(alias="contentOffsetSeconds", ge=0)
    created_at: str = Field(alias="createdAt")
    message: Message


class CommentEdge(_Model):
    cursor: str
    node: CommentNode


class PageInfo(_Model):
    has_next_page: bool = Field(alias="hasNextPage")
    has_previous_page: bool = Field(alias="hasPreviousPage")


class CommentPage(_Model):
    edges: list[CommentEdge]
    page_info: PageInfo = Field(alias="pageInfo")


class _Video(_Model):
    comments: CommentPage | None


class _Data(_Model):
    video: _Video


class _BatchItem(_Model):
    data: _Data


_RESPONSE_ADAPTER = TypeAdapter(list[_BatchItem])


def parse_comments_response(payload) -> CommentPage | None:
    """Validate a raw GraphQL batch response.

    Returns the comment page of the first batch element, or None when the
    video reports ``comments: null`` (no more data).

    Raises:
        SchemaError: payload shape is wrong or the batch is empty.
    """
    try:
        batch = _RESPONSE_ADAPTER.validate_python(payload)
    except ValidationError as e:
        raise SchemaError("Failed to parse GraphQL response", e.errors()) from e

    if not batch:
        raise SchemaError("GraphQL response array is empty")

    return batch[0].data.video.comments


# ---------------------------------------------------------------------------
#  Clean rows
# ---------------------------------------------------------------------------

CLEAN_FIELDS = [
    "platform",
    "id",
    "offset",
    "timestamp",
    "username",
    "display_name",
    "text",
    "emotes",
    "badges",
    "color",
    "date",
]


def format_offset(seconds: float) -> str:
    """Render a video offset as H:MM:SS."""
    total = max(int(seconds), 0)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def normalize_comment(node: CommentNode) -> dict:
    """Flatten a CommentNode into a clean row."""
    commenter = node.commenter
    fragments = node.message.fragments
    return {
        "platform": "twitch",
        "id": node.id,
        "offset": node.content_offset_seconds,
        "timestamp": format_offset(node.content_offset_seconds),
        "username": commenter.login if commenter else "",
        "display_name": commenter.display_name if commenter else "",
        "text": "".join(f.text for f in fragments),
        "emotes": sum(1 for f in fragments if f.emote is not None),
        "badges": ",".join(f"{b.set_id}/{b.version}" for b in node.message.user_badges),
        "color": node.message.user_color or "",
        "date": node.created_at,
    }


def to_clean(nodes: list[CommentNode]) -> list[dict]:
    """Convert comment nodes to clean (analysis-ready) rows."""
    return [normalize_comment(n) for n in nodes]


def to_raw(nodes: list[CommentNode]) -> list[dict]:
    """Dump comment nodes using the wire field names."""
    return [n.model_dump(by_alias=True) for n in nodes]
