"""API request/response models."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model using camelCase field names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Source(CamelModel):
    """A web page cited by the answer."""

    title: str
    url: str
    snippet: str = ""


class FollowUpRequest(CamelModel):
    """Request body for the follow-up endpoint.

    Fields are optional here so a missing field returns 400 with a message.
    """

    session_id: str | None = Field(None, description="Session ID from the first search")
    query: str | None = Field(None, description="The follow-up question")


class SearchResponse(CamelModel):
    """Response body for the search endpoint."""

    session_id: str
    summary: str
    sources: list[Source]


class FollowUpResponse(CamelModel):
    """Response body for the follow-up endpoint."""

    summary: str
    sources: list[Source]


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    message: str
