"""
Idea generation pipeline.

Runs one generation request through validation, rate limiting, quota,
market research, generation, schema validation, persistence and cache
invalidation, in that order. Any stage that fails stops the request with
an IdeaServiceError describing what the caller can do about it.
"""
import asyncio
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.auth import AuthenticatedUser
from app.config import settings
from app.errors import AuthenticationError, GenerationError, GenerationTimeout, QuotaExceeded
from app.logging_config import logger
from app.models import GeneratedIdea
from app.schemas import IdeaContent
from app.services.ai_service import AIService
from app.services.idea_writer import IdeaWriter
from app.services.market_research import MarketResearchClient
from app.services.quota_service import QuotaEvaluator
from app.services.rate_limiter import RateLimiter
from app.services.subscription_service import SubscriptionProvider
from app.services.validation import (
    SanitizedRequest,
    ensure_email_matches,
    sanitize_request,
    validate_idea_content,
    validate_request,
)
from app.services.view_cache import CacheInvalidator


GENERATION_OPERATION = "idea_generation"
UNLIMITED = "unlimited"


def build_research_query(request: SanitizedRequest) -> str:
    """Search query for market research around the caller's interests"""
    parts = ["startup opportunities", request.industry or "", request.preferences or "",
             "market trends business ideas"]
    return " ".join(" ".join(parts).split())


class IdeaGenerationPipeline:
    """Orchestrates a single idea generation request"""

    def __init__(
        self,
        rate_limiter: RateLimiter,
        quota_evaluator: QuotaEvaluator,
        subscription_provider: SubscriptionProvider,
        market_research: MarketResearchClient,
        ai_service: Optional[AIService],
        writer: IdeaWriter,
        invalidator: CacheInvalidator,
        generation_rate_limit: Optional[int] = None,
        deadline: Optional[float] = None,
    ):
        self.rate_limiter = rate_limiter
        self.quota_evaluator = quota_evaluator
        self.subscription_provider = subscription_provider
        self.market_research = market_research
        self.ai_service = ai_service
        self.writer = writer
        self.invalidator = invalidator
        self.generation_rate_limit = generation_rate_limit or settings.generation_rate_limit
        self.deadline = deadline or settings.generation_deadline

    async def generate(
        self,
        user: Optional[AuthenticatedUser],
        payload: Any,
        session: AsyncSession,
    ) -> Dict[str, Any]:
        """
        Generate, store and return one idea for the caller

        Args:
            user: Session user, None for anonymous callers
            payload: Decoded JSON request body
            session: Database session

        Returns:
            Response body with the new idea and the caller's remaining ideas

        Raises:
            IdeaServiceError: Subclass matching the stage that failed
        """
        if user is None:
            raise AuthenticationError()

        request = validate_request(payload)
        ensure_email_matches(request, user)

        await self.rate_limiter.check(GENERATION_OPERATION, user.id, self.generation_rate_limit)

        sanitized = sanitize_request(request)

        has_subscription = await self.subscription_provider.has_active_subscription(session, user.id)
        quota = await self.quota_evaluator.evaluate(session, sanitized.email, has_subscription)
        if not quota.can_generate:
            logger.info(f"Generation blocked by {quota.limit_kind} limit for {sanitized.email}")
            raise QuotaExceeded(
                self.quota_evaluator.limit_message(quota),
                remainingIdeas=quota.remaining,
                limitType=quota.limit_kind,
            )

        try:
            parsed = await asyncio.wait_for(self._research_and_generate(sanitized), timeout=self.deadline)
        except asyncio.TimeoutError as e:
            logger.error(f"Idea generation exceeded {self.deadline}s deadline for {sanitized.email}")
            raise GenerationTimeout() from e

        idea = validate_idea_content(parsed)
        generated = await self.writer.write(session, idea, sanitized)
        self.invalidator.invalidate_user_views(sanitized.email)

        logger.info(f"Generated idea {generated.id} for {sanitized.email}")

        if quota.is_unlimited:
            remaining: Any = UNLIMITED
        else:
            remaining = max(0, quota.remaining - 1)

        return {
            "success": True,
            "idea": self._idea_body(generated, idea),
            "remainingIdeas": remaining,
        }

    async def _research_and_generate(self, request: SanitizedRequest) -> Dict[str, Any]:
        if self.ai_service is None:
            logger.error("Generation requested but the AI service is not configured")
            raise GenerationError()

        snippets = await self.market_research.search(build_research_query(request))
        return await self.ai_service.generate_idea(
            snippets,
            preferences=request.preferences,
            constraints=request.constraints,
            industry=request.industry,
            budget=request.budget,
            difficulty=request.difficulty_level,
        )

    @staticmethod
    def _idea_body(generated: GeneratedIdea, idea: IdeaContent) -> Dict[str, Any]:
        return {
            "id": str(generated.id),
            "title": idea.title,
            "problem": idea.problem,
            "solution": idea.solution,
            "market_size": idea.market_size,
            "target_audience": idea.target_audience,
            "revenue_streams": list(idea.revenue_streams),
            "validation_data": idea.validation_data.model_dump(),
        }
