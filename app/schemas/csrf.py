"""Schemas for CSRF token issuance."""

from pydantic import BaseModel, Field


class CsrfTokenResponse(BaseModel):
    """Opaque token to send back in the X-CSRF-Token header of the next mutating request."""

    token: str = Field(..., description="Encrypted reference to a single-use CSRF token")
