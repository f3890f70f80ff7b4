"""
Pydantic schemas for waitlist capture.
"""
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class LeadRequest(BaseModel):
    """Body of POST /leads."""
    email: EmailStr = Field(..., description="Email to add to the waitlist")
    source: Optional[str] = Field("landing_page", description="Where the signup came from")
