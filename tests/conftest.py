"""Shared fakes for the Twitch scraper tests.

FakeSession stands in for aiohttp.ClientSession: GET returns the video
page HTML, POST routes the requested contentOffsetSeconds to a handler
that returns either a raw GraphQL payload or a FakeResponse.
"""

import pytest

CLIENT_ID_HTML = '<html><script>window.__cfg={clientId="test-client-id",x:1}</script></html>'


def make_node(node_id, offset, text="hello", commenter=True, color=None):
    return {
        "id": node_id,
        "commenter": {
            "id": f"user-{node_id}",
            "login": f"login_{node_id}",
            "displayName": f"User {node_id}",
        } if commenter else None,
        "contentOffsetSeconds": offset,
        "createdAt": "2024-01-01T00:00:00Z",
        "message": {
            "fragments": [{"text": text, "emote": None}],
            "userBadges": [],
            "userColor": color,
        },
    }


def make_payload(nodes, has_next_page=False):
    """Wrap comment nodes in a one-element GraphQL batch response."""
    return [
        {
            "data": {
                "video": {
                    "comments": {
                        "edges": [{"cursor": f"c-{n['id']}", "node": n} for n in nodes],
                        "pageInfo": {
                            "hasNextPage": has_next_page,
                            "hasPreviousPage": False,
                        },
                    },
                },
            },
        }
    ]


def null_payload():
    return [{"data": {"video": {"comments": None}}}]


class FakeResponse:
    def __init__(self, status=200, payload=None, text=""):
        self.status = status
        self._payload = payload
        self._text = text

    async def json(self, content_type="application/json"):
        return self._payload

    async def text(self):
        return self._text

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, handler=None, html=CLIENT_ID_HTML, html_status=200):
        self.handler = handler
        self.html = html
        self.html_status = html_status
        self.offsets = []
        self.post_headers = []
        self.get_urls = []
        self.closed = False

    def get(self, url, **kwargs):
        self.get_urls.append(url)
        return FakeResponse(status=self.html_status, text=self.html)

    def post(self, url, json=None, headers=None, **kwargs):
        offset = json[0]["variables"]["contentOffsetSeconds"]
        self.offsets.append(offset)
        self.post_headers.append(headers or {})
        result = self.handler(offset)
        if isinstance(result, FakeResponse):
            return result
        return FakeResponse(payload=result)

    async def close(self):
        self.closed = True


class SyntheticVod:
    """A VOD with a fixed comment list, paged the way Twitch pages by offset.

    A request at offset ``t`` returns the first ``page_size`` comments with
    offset >= t, and hasNextPage tells whether more follow.
    """

    def __init__(self, offsets, page_size=3):
        self.comments = sorted(
            (make_node(f"m{i}", off) for i, off in enumerate(offsets)),
            key=lambda n: n["contentOffsetSeconds"],
        )
        self.page_size = page_size

    @property
    def ids(self):
        return {c["id"] for c in self.comments}

    def __call__(self, offset):
        remaining = [c for c in self.comments if c["contentOffsetSeconds"] >= offset]
        page = remaining[: self.page_size]
        return make_payload(page, has_next_page=len(remaining) > len(page))


@pytest.fixture
def synthetic_vod():
    # 12 comments over ~2h, a couple sharing an offset
    return SyntheticVod(
        [5, 40, 40, 300, 1200, 1800, 2500, 3601, 4000, 5400, 6000, 7000],
        page_size=3,
    )
