"""
Faxon Portal API — Shared Response Schemas
===========================================

What:  Envelope models shared by every route (success message, error, health).
Why:   The frontend branches on `success` alone, so every body carries it.
"""

from typing import Optional

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain success envelope: `{"success": true, "message": "..."}`."""
    success: bool = Field(default=True)
    message: str = Field(description="Human-readable outcome")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "success": false,
            "error": "not_found",
            "message": "Document not found or unauthorized",
            "request_id": "3f9a1c2e"
        }
    """
    success: bool = Field(default=False)
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for probes and monitoring."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    asset_storage: str = Field(description="Supabase Storage: configured, not_configured")
    document_storage: str = Field(description="Zoho WorkDrive: configured, not_configured")
    mailer: str = Field(description="Brevo e-mail: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
