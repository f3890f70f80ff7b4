"""
Validation of generation requests and of model replies
"""
import html
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.auth import AuthenticatedUser
from app.errors import AuthorizationError, SchemaValidationError, ValidationError
from app.logging_config import logger
from app.schemas import GenerationRequest, IdeaContent


@dataclass(frozen=True)
class SanitizedRequest:
    email: str
    preferences: Optional[str] = None
    constraints: Optional[str] = None
    industry: Optional[str] = None
    budget: Optional[str] = None
    difficulty_level: Optional[str] = None


def sanitize_html(content: str) -> str:
    """Encode HTML special characters so injected markup is inert"""
    return html.escape(content, quote=True)


def _sanitize_optional(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    return sanitize_html(value)


def _error_details(error: PydanticValidationError) -> List[Dict[str, str]]:
    details = []
    for item in error.errors():
        location = [str(part) for part in item.get("loc", ())]
        details.append({
            "field": ".".join(location) or "body",
            "message": item.get("msg", "Invalid value"),
        })
    return details


def validate_request(payload: Any) -> GenerationRequest:
    """
    Validate a raw request payload

    Args:
        payload: Decoded JSON body

    Returns:
        Validated GenerationRequest

    Raises:
        ValidationError: Listing every field at fault
    """
    if not isinstance(payload, dict):
        raise ValidationError([{"field": "body", "message": "Request body must be a JSON object"}])

    try:
        return GenerationRequest.model_validate(payload)
    except PydanticValidationError as e:
        raise ValidationError(_error_details(e)) from e


def ensure_email_matches(request: GenerationRequest, user: AuthenticatedUser) -> None:
    """
    Raises:
        AuthorizationError: If the request email is not the caller's
    """
    if str(request.email).lower() != user.email.lower():
        raise AuthorizationError()


def sanitize_request(request: GenerationRequest) -> SanitizedRequest:
    """Neutralize markup in every free-text field"""
    return SanitizedRequest(
        email=str(request.email).lower(),
        preferences=_sanitize_optional(request.preferences),
        constraints=_sanitize_optional(request.constraints),
        industry=_sanitize_optional(request.industry),
        budget=_sanitize_optional(request.budget),
        difficulty_level=_sanitize_optional(request.difficulty_level),
    )


def validate_idea_content(parsed: Dict[str, Any]) -> IdeaContent:
    """
    Check a recovered model reply against the idea shape

    Args:
        parsed: Object recovered from the model output

    Returns:
        IdeaContent with target_audience flattened to a string

    Raises:
        SchemaValidationError: If a field is missing or has the wrong shape
    """
    try:
        return IdeaContent.model_validate(parsed)
    except PydanticValidationError as e:
        details = _error_details(e)
        logger.error(
            "Model reply failed schema validation",
            extra={"fields": [detail["field"] for detail in details]}
        )
        raise SchemaValidationError() from e
