# Business logic services package
from .rate_limiter import RateLimiter, InMemoryRateLimiter
from .subscription_service import SubscriptionProvider, DatabaseSubscriptionProvider
from .quota_service import QuotaEvaluator, QuotaStatus
from .market_research import MarketResearchClient, ResearchSnippet
from .ai_service import AIService
from .view_cache import ViewCache, CacheInvalidator
from .idea_writer import IdeaWriter
from .library_service import LibraryService
from .lead_service import LeadService
from .idea_pipeline import IdeaGenerationPipeline

__all__ = [
    "RateLimiter",
    "InMemoryRateLimiter",
    "SubscriptionProvider",
    "DatabaseSubscriptionProvider",
    "QuotaEvaluator",
    "QuotaStatus",
    "MarketResearchClient",
    "ResearchSnippet",
    "AIService",
    "ViewCache",
    "CacheInvalidator",
    "IdeaWriter",
    "LibraryService",
    "LeadService",
    "IdeaGenerationPipeline"
]
