from datetime import datetime
from typing import Optional, Dict, List
from uuid import UUID, uuid4
from sqlmodel import Field, SQLModel, Column, JSON


class GeneratedIdea(SQLModel, table=True):
    __tablename__ = "generated_ideas"

    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=254, index=True, nullable=False)
    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    market_size: str = Field(nullable=False)
    target_audience: str = Field(nullable=False)
    revenue_streams: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    validation_data: Dict = Field(default_factory=dict, sa_column=Column(JSON))
    preferences: Optional[str] = None
    constraints: Optional[str] = None
    industry: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)
