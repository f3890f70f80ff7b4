"""
Pydantic schemas for idea generation.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator


MAX_EMAIL_LENGTH = 254


class GenerationRequest(BaseModel):
    """Body of POST /ideas/generate."""
    email: EmailStr = Field(..., description="Email of the signed-in user")
    preferences: Optional[str] = Field(None, max_length=1000, description="What the user wants to build")
    constraints: Optional[str] = Field(None, max_length=1000, description="Limits the idea must respect")
    industry: Optional[str] = Field(None, max_length=100, description="Target industry")
    budget: Optional[str] = Field(None, max_length=100, description="Available budget")
    difficulty_level: Optional[str] = Field(
        None, max_length=100, alias="difficultyLevel", description="Desired execution difficulty"
    )

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_length(cls, v: Any) -> Any:
        if isinstance(v, str) and not 1 <= len(v) <= MAX_EMAIL_LENGTH:
            raise ValueError(f"Email must be between 1 and {MAX_EMAIL_LENGTH} characters")
        return v

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "email": "founder@example.com",
                "preferences": "B2B tools for small clinics",
                "constraints": "Solo founder, no hardware",
                "industry": "Healthcare",
                "budget": "Under $10k",
                "difficultyLevel": "Medium"
            }
        }


class ValidationData(BaseModel):
    market_trends: List[str]
    competitor_analysis: str
    demand_indicators: List[str]


class IdeaContent(BaseModel):
    """Shape a model response must have to be stored as an idea."""
    title: str = Field(..., min_length=1)
    problem: str = Field(..., min_length=1)
    solution: str = Field(..., min_length=1)
    market_size: str = Field(..., min_length=1)
    target_audience: str = Field(..., min_length=1)
    revenue_streams: List[str]
    validation_data: ValidationData

    @field_validator("target_audience", mode="before")
    @classmethod
    def join_target_audience(cls, v: Any) -> Any:
        """Models sometimes answer with a list of audiences."""
        if isinstance(v, list) and all(isinstance(item, str) for item in v):
            return ", ".join(v)
        return v
