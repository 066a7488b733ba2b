# This project was developed with assistance from AI tools.
"""Error body returned by every failing route (RFC 7807 Problem Details)."""

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    type: str = Field(default="about:blank", description="Problem type URI; always about:blank here.")
    title: str = Field(description="Status phrase, e.g. 'Conflict'.")
    status: int
    detail: str = Field(default="", description="What went wrong for this request.")
    request_id: str = Field(default="", description="Echoes X-Request-ID, or a generated UUID.")
