from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4
from sqlmodel import Field, SQLModel


class SavedIdea(SQLModel, table=True):
    __tablename__ = "saved_ideas"

    id: Optional[UUID] = Field(default_factory=uuid4, primary_key=True)
    user_email: str = Field(max_length=254, index=True, nullable=False)
    # Lookup only; generated_ideas rows are not owned through this column
    idea_id: UUID = Field(index=True, nullable=False)
    title: str = Field(nullable=False)
    description: str = Field(nullable=False)
    is_liked: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
