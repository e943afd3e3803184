"""Data models for captured HTTP traffic.

Capture files (HAR) are loaded into these models before ingestion.
Field aliases follow the HAR camelCase names so entries validate as-is.
"""

from pydantic import BaseModel, ConfigDict, Field


class HarModel(BaseModel):
    """Base for HAR objects: accepts camelCase aliases and ignores unknown keys."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class QueryParam(HarModel):
    """A single query string parameter as recorded by the browser."""

    name: str
    value: str = ""


class PostData(HarModel):
    """Request payload. ``text`` is absent for binary uploads."""

    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str | None = None
    encoding: str | None = None  # "base64" or None


class Content(HarModel):
    """Response payload."""

    mime_type: str | None = Field(default=None, alias="mimeType")
    text: str | None = None
    encoding: str | None = None


class CapturedRequest(HarModel):
    method: str  # GET / POST / PUT / DELETE / PATCH
    url: str
    query_string: list[QueryParam] = Field(default_factory=list, alias="queryString")
    post_data: PostData | None = Field(default=None, alias="postData")
    body_size: int = Field(default=0, alias="bodySize")


class CapturedResponse(HarModel):
    status: int
    content: Content = Field(default_factory=Content)
    body_size: int = Field(default=0, alias="bodySize")


class Transaction(HarModel):
    """One observed HTTP exchange (a HAR ``log.entries`` item)."""

    request: CapturedRequest
    response: CapturedResponse
