from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field, SQLModel


class EmailLead(SQLModel, table=True):
    __tablename__ = "email_leads"

    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(max_length=254, unique=True, nullable=False)
    source: str = Field(default="landing_page", max_length=50)
    created_at: datetime = Field(default_factory=datetime.utcnow)
