"""Error types raised by the search core and mapped to HTTP responses."""


SEARCH_ERROR_MESSAGE = "An error occurred while processing your search"
FOLLOW_UP_ERROR_MESSAGE = "An error occurred while processing your follow-up question"


class SearchError(Exception):
    """Base error for search requests. Carries the HTTP status it maps to.

    ``detail`` is the message given when raised, None when the default applies.
    """

    status_code = 500
    default_message = SEARCH_ERROR_MESSAGE

    def __init__(self, message: str | None = None):
        self.detail = message or None
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInputError(SearchError):
    """A required field is missing or empty."""

    status_code = 400
    default_message = "Invalid input"


class SessionNotFoundError(SearchError):
    """The presented session identifier is not registered."""

    status_code = 404
    default_message = "Chat session not found"


class UpstreamError(SearchError):
    """The language model call failed (network, timeout, quota, API status)."""


class RenderingError(SearchError):
    """The markdown renderer rejected the normalized text."""

    default_message = "Failed to render the model response"
