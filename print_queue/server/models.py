"""Pydantic response models for the HTTP service.

WHY: The health endpoint is polled by the process supervisor and by
operators; a typed schema keeps its shape stable and documents it in
the generated OpenAPI page.

RULES:
- All fields use Field(description=...) for OpenAPI documentation
- Python 3.9+ compatible (no PEP 604 unions)
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Liveness information for the bot process."""

    status: str = Field(description="Always 'ok' when the server is running.")
    version: str = Field(description="print-queue package version.")
    queue_length: int = Field(description="Number of entries currently waiting.")
    backup_in_sync: bool = Field(
        description="False when the last snapshot write failed.",
    )
