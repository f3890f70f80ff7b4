# Request and response schemas package
from .idea import GenerationRequest, IdeaContent, ValidationData
from .lead import LeadRequest

__all__ = ["GenerationRequest", "IdeaContent", "ValidationData", "LeadRequest"]
