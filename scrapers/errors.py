"""
Error types raised by the Twitch VOD chat scraper.

None of these are retried or swallowed inside the scraper; they reach
the caller unchanged.
"""


class VodChatError(Exception):
    """Base class for every scraper failure."""


class TransportError(VodChatError):
    """Non-success HTTP status from the video page or the GraphQL endpoint."""

    def __init__(self, status_code: int, url: str, message: str | None = None):
        super().__init__(message or f"HTTP error {status_code} for {url}")
        self.status_code = status_code
        self.url = url


class SchemaError(VodChatError):
    """GraphQL response did not match the expected comment page shape."""

    def __init__(self, message: str, errors: list | None = None):
        super().__init__(message)
        self.errors = errors or []


class CredentialError(VodChatError):
    """Client ID could not be found in the video page HTML."""
