"""Response models shared by the HTTP endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Error(BaseModel):
    """The details of an error."""

    model_config = ConfigDict(extra="forbid")

    code: int = Field(..., examples=[1404], gt=0)
    detail: Optional[str] = Field(None, examples=["A more detailed optional message showing what the problem was"])
    message: str = Field(..., examples=["Something went wrong - please try again later"])


class ErrorResponse(BaseModel):
    """The body of every error response."""

    model_config = ConfigDict(extra="forbid")

    error: Error


class Version(BaseModel):
    """The version of the running service."""

    version: str
