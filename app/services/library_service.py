"""
Library (saved ideas) queries and maintenance
"""
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.logging_config import logger
from app.models import GeneratedIdea, SavedIdea


class LibraryService:
    """Reads and maintains a user's saved ideas"""

    async def list_saved_ideas(self, session: AsyncSession, email: str) -> List[Dict[str, Any]]:
        """
        Saved ideas of a user, newest first, merged with their generated idea

        Args:
            session: Database session
            email: Owner's email

        Returns:
            List of saved idea dicts, each with a `generated_idea` entry that is
            None when the referenced idea cannot be found
        """
        result = await session.execute(
            select(SavedIdea)
            .where(SavedIdea.user_email == email)
            .order_by(SavedIdea.created_at.desc())
        )
        saved_ideas = result.scalars().all()
        if not saved_ideas:
            return []

        details: Dict[UUID, Dict[str, Any]] = {}
        idea_ids = [saved.idea_id for saved in saved_ideas]
        try:
            generated_result = await session.execute(
                select(GeneratedIdea).where(GeneratedIdea.id.in_(idea_ids))
            )
            details = {idea.id: idea.model_dump() for idea in generated_result.scalars().all()}
        except Exception as e:
            logger.error(f"Error loading generated ideas for library of {email}: {str(e)}")

        merged = []
        for saved in saved_ideas:
            entry = saved.model_dump()
            entry["generated_idea"] = details.get(saved.idea_id)
            merged.append(entry)
        return merged

    async def toggle_like(self, session: AsyncSession, email: str, saved_id: UUID) -> Optional[SavedIdea]:
        """
        Flip the liked flag of a saved idea owned by the user

        Returns:
            The updated SavedIdea, or None if the user has no such entry
        """
        result = await session.execute(
            select(SavedIdea)
            .where(SavedIdea.id == saved_id)
            .where(SavedIdea.user_email == email)
        )
        saved = result.scalar_one_or_none()
        if saved is None:
            return None

        saved.is_liked = not saved.is_liked
        session.add(saved)
        await session.commit()
        return saved

    async def reconcile(self, session: AsyncSession, email: str) -> int:
        """
        Create library entries for generated ideas that have none

        Repairs library writes that failed after their idea was stored.

        Returns:
            Number of entries created
        """
        pointed_ids = select(SavedIdea.idea_id).where(SavedIdea.user_email == email)
        result = await session.execute(
            select(GeneratedIdea)
            .where(GeneratedIdea.email == email)
            .where(GeneratedIdea.id.not_in(pointed_ids))
            .order_by(GeneratedIdea.created_at)
        )
        missing = result.scalars().all()

        for idea in missing:
            session.add(SavedIdea(
                user_email=email,
                idea_id=idea.id,
                title=idea.title,
                description=idea.description,
                is_liked=False,
                created_at=idea.created_at,
            ))

        if missing:
            await session.commit()
            logger.info(f"Reconciled {len(missing)} library entries for {email}")
        return len(missing)

    async def count_generated(self, session: AsyncSession, email: str) -> int:
        result = await session.execute(
            select(func.count()).select_from(GeneratedIdea).where(GeneratedIdea.email == email)
        )
        return int(result.scalar_one())

    async def count_saved(self, session: AsyncSession, email: str) -> int:
        result = await session.execute(
            select(func.count()).select_from(SavedIdea).where(SavedIdea.user_email == email)
        )
        return int(result.scalar_one())


library_service = LibraryService()


def get_library_service() -> LibraryService:
    """Dependency returning the library service"""
    return library_service
