"""
Persistence of generated ideas and their library entries
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import PersistenceError
from app.logging_config import logger
from app.models import GeneratedIdea, SavedIdea
from app.schemas import IdeaContent
from app.services.validation import SanitizedRequest


class IdeaWriter:
    """
    Writes a GeneratedIdea, then a SavedIdea pointer in a separate commit.

    Only the first write is required. A failed library write is logged and
    left for the reconciliation pass in LibraryService.
    """

    async def write(self, session: AsyncSession, idea: IdeaContent, request: SanitizedRequest) -> GeneratedIdea:
        """
        Persist a validated idea

        Args:
            session: Database session
            idea: Validated model output
            request: Sanitized request the idea was generated for

        Returns:
            The stored GeneratedIdea, detached from the session

        Raises:
            PersistenceError: If the GeneratedIdea row cannot be written
        """
        generated = GeneratedIdea(
            email=request.email,
            title=idea.title,
            description=idea.solution,
            market_size=idea.market_size,
            target_audience=idea.target_audience,
            revenue_streams=list(idea.revenue_streams),
            validation_data=idea.validation_data.model_dump(),
            preferences=request.preferences,
            constraints=request.constraints,
            industry=request.industry,
        )

        try:
            session.add(generated)
            await session.commit()
        except Exception as e:
            await session.rollback()
            logger.error(f"Database save error for {request.email}: {str(e)}")
            raise PersistenceError() from e

        # Keep the committed row usable even if the library write rolls back
        session.expunge(generated)
        logger.info(f"Saved generated idea {generated.id} for {request.email}")

        await self.save_to_library(session, generated)
        return generated

    async def save_to_library(self, session: AsyncSession, generated: GeneratedIdea) -> Optional[SavedIdea]:
        """
        Best-effort write of the library pointer for a generated idea

        Returns:
            The SavedIdea, or None if the write failed
        """
        try:
            saved = SavedIdea(
                user_email=generated.email,
                idea_id=generated.id,
                title=generated.title,
                description=generated.description,
                is_liked=False,
            )
            session.add(saved)
            await session.commit()
            return saved
        except Exception as e:
            await session.rollback()
            logger.error(
                f"Library save error for idea {generated.id}: {str(e)}",
                extra={
                    "event": "library_write_failed",
                    "idea_id": str(generated.id),
                    "email": generated.email,
                }
            )
            return None


idea_writer = IdeaWriter()


def get_idea_writer() -> IdeaWriter:
    """Dependency returning the idea writer"""
    return idea_writer
