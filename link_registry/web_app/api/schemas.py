"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field
from datetime import datetime


class RegisterRequest(BaseModel):
    """Request to register a URL under an id."""

    id: str = Field("", description="Optional id; derived from the URL when empty")
    url: str = Field("", description="The URL to register")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {"url": "https://example.com/very/long/path/to/resource"},
                {"id": "abc123", "url": "http://example.com"},
            ]
        }
    }


class Payload(BaseModel):
    """Body of every registry response, successful or not."""

    id: str = Field("", description="Link id")
    url: str = Field("", description="Original URL")
    error: str = Field("", description="Error message, empty on success")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(..., description="Overall status")
    database: str = Field(..., description="Database status")
    timestamp: datetime = Field(..., description="Check timestamp")
