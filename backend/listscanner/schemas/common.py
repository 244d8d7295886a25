"""
List Scanner Backend — Shared Response Schemas
===============================================

Error body and health check response, shared by every router.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    Body of every error response.

    Example:
        {
            "error": "no_items_detected",
            "message": "No list items detected. Ensure your list is clearly written.",
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    ocr: str = Field(description="OCR engine status: available, unavailable, circuit_open")
    live_queries: int = Field(description="Open live query subscriptions")
    uptime_seconds: float = Field(description="Seconds since service started")
