"""
Domain errors raised by the idea generation pipeline.

Each error knows the HTTP status it maps to and how to render itself as the
JSON error body returned to the caller.
"""
from typing import Any, Dict, List, Optional


class IdeaServiceError(Exception):
    """Base class for errors that are reported to the caller"""

    status_code = 500
    error = "Internal server error"
    default_message: Optional[str] = None

    def __init__(self, message: Optional[str] = None, **extra: Any):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message or self.error)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.message:
            body["message"] = self.message
        body.update(self.extra)
        return body


class ValidationError(IdeaServiceError):
    status_code = 400
    error = "Invalid input data"

    def __init__(self, details: List[Dict[str, str]], message: Optional[str] = None):
        super().__init__(message, details=details)
        self.details = details

    @property
    def fields(self) -> List[str]:
        return [detail["field"] for detail in self.details]


class AuthorizationError(IdeaServiceError):
    status_code = 403
    error = "Email mismatch"
    default_message = "The email in the request does not belong to the signed-in account."


class AuthenticationError(AuthorizationError):
    status_code = 401
    error = "Authentication required"
    default_message = "Please sign in to generate ideas."


class RateLimitExceeded(IdeaServiceError):
    status_code = 429
    error = "Rate limit exceeded"
    default_message = "Too many requests. Please wait a moment before generating another idea."


class QuotaExceeded(IdeaServiceError):
    status_code = 429
    error = "Generation limit reached"
    default_message = "You have reached your generation limit. Upgrade to Pro for unlimited idea generations!"


class QuotaCheckError(IdeaServiceError):
    status_code = 503
    error = "Usage check failed"
    default_message = "We could not verify your remaining ideas right now. Please try again in a moment."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, retryable=True)


class UpstreamUnavailable(IdeaServiceError):
    """Search dependency failure; always degraded to fallback content"""

    status_code = 503
    error = "Market research unavailable"


class UpstreamRateLimited(IdeaServiceError):
    status_code = 429
    error = "Rate limit exceeded"
    default_message = "Too many requests. Please wait a moment and try again, or upgrade to Pro for higher limits."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, requiresUpgrade=True)


class UpstreamCreditsExhausted(IdeaServiceError):
    status_code = 402
    error = "API credits exhausted"
    default_message = (
        "Our AI service is temporarily unavailable due to high demand. "
        "Please upgrade to Premium for priority access and unlimited idea generation."
    )

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, requiresUpgrade=True)


class GenerationError(IdeaServiceError):
    status_code = 503
    error = "External API error"
    default_message = "Failed to generate idea. Please try again."


class ContentParseError(GenerationError):
    error = "Invalid AI response"
    default_message = "The AI returned an unreadable idea. Please try again."


class SchemaValidationError(GenerationError):
    error = "Invalid AI response"
    default_message = "The AI returned an incomplete idea. Please try again."


class GenerationTimeout(GenerationError):
    error = "Generation timed out"
    default_message = "Generating your idea took too long. Please try again."


class PersistenceError(IdeaServiceError):
    status_code = 500
    error = "Failed to save idea to database"
    default_message = "Your idea could not be saved. Please try again."
