"""
AI service for generating structured startup ideas with the OpenAI chat API
"""
import asyncio
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

import openai
from openai import AsyncOpenAI

from app.config import settings
from app.errors import GenerationError, UpstreamCreditsExhausted, UpstreamRateLimited
from app.logging_config import logger
from app.services.json_recovery import recover_json
from app.services.market_research import ResearchSnippet


MAX_SNIPPETS = 2
SNIPPET_TITLE_CHARS = 80
SNIPPET_SUMMARY_CHARS = 150
PREFERENCE_CHARS = 80
INDUSTRY_CHARS = 40
DETAIL_CHARS = 40

CREDIT_EXHAUSTION_MARKERS = (
    "insufficient_quota",
    "exceeded your current quota",
    "credit balance is too low",
)


def _truncate(value: Optional[str], limit: int, default: str) -> str:
    if not value:
        return default
    return value[:limit]


class AIService:
    """Service for generating startup ideas from market research using a chat model"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        max_attempts: int = 2,
        backoff_min: float = 1.0,
        backoff_max: float = 8.0,
        backoff_factor: float = 2.0,
    ):
        """
        Initialize AI service

        Args:
            api_key: OpenAI API key (uses settings if not provided)
            model: Chat model name
            max_tokens: Completion token bound
            temperature: Sampling temperature
            max_attempts: Total API attempts including the first call
            backoff_min: First retry delay in seconds
            backoff_max: Upper bound for a retry delay in seconds
            backoff_factor: Multiplier applied per retry
        """
        self.api_key = api_key or settings.openai_api_key
        if not self.api_key:
            raise ValueError("OpenAI API key is required")

        self.client = AsyncOpenAI(api_key=self.api_key)
        self.model = model or settings.openai_model
        self.max_tokens = max_tokens or settings.generation_max_tokens
        self.temperature = settings.generation_temperature if temperature is None else temperature
        self.max_attempts = max_attempts
        self.backoff_min = backoff_min
        self.backoff_max = backoff_max
        self.backoff_factor = backoff_factor
        self.prompt_template = self._load_prompt_template()

        logger.info(f"AI service initialized with {self.model}")

    def _load_prompt_template(self) -> str:
        """
        Load prompt template from file

        Returns:
            Prompt template string
        """
        try:
            prompt_file = Path("prompts/idea_prompt.txt")
            if not prompt_file.exists():
                return self._get_default_prompt_template()

            with open(prompt_file, 'r', encoding='utf-8') as f:
                template = f.read()

            logger.info("Loaded prompt template from file")
            return template

        except Exception as e:
            logger.warning(f"Error loading prompt template: {str(e)}, using default")
            return self._get_default_prompt_template()

    def _get_default_prompt_template(self) -> str:
        """
        Get default prompt template as fallback

        Returns:
            Default prompt template
        """
        return """Generate a startup idea based on these market insights:
{market_insights}

Preferences: {preferences}
Constraints: {constraints}
Industry: {industry}
Budget: {budget}
Difficulty: {difficulty}

Respond only with valid JSON in exactly this format, no additional text:
{{
  "title": "Startup name",
  "problem": "Problem statement",
  "solution": "Solution description",
  "market_size": "Market size estimate",
  "target_audience": "Target audience",
  "revenue_streams": ["Stream 1", "Stream 2", "Stream 3"],
  "validation_data": {{
    "market_trends": ["Trend 1", "Trend 2", "Trend 3"],
    "competitor_analysis": "Competitor analysis",
    "demand_indicators": ["Indicator 1", "Indicator 2", "Indicator 3"]
  }}
}}"""

    def build_prompt(
        self,
        snippets: Sequence[ResearchSnippet],
        preferences: Optional[str] = None,
        constraints: Optional[str] = None,
        industry: Optional[str] = None,
        budget: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> str:
        """
        Compose the generation prompt with every input truncated for token economy

        Returns:
            Prompt text
        """
        insights = "\n".join(
            f"- {snippet.title[:SNIPPET_TITLE_CHARS]}: {snippet.summary[:SNIPPET_SUMMARY_CHARS]}"
            for snippet in list(snippets)[:MAX_SNIPPETS]
        ) or "- None available"

        return self.prompt_template.format(
            market_insights=insights,
            preferences=_truncate(preferences, PREFERENCE_CHARS, "None"),
            constraints=_truncate(constraints, PREFERENCE_CHARS, "None"),
            industry=_truncate(industry, INDUSTRY_CHARS, "Any"),
            budget=_truncate(budget, DETAIL_CHARS, "Any"),
            difficulty=_truncate(difficulty, DETAIL_CHARS, "Any"),
        )

    async def generate_idea(
        self,
        snippets: Sequence[ResearchSnippet],
        preferences: Optional[str] = None,
        constraints: Optional[str] = None,
        industry: Optional[str] = None,
        budget: Optional[str] = None,
        difficulty: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Generate a startup idea

        Args:
            snippets: Market research snippets (only the first two are used)
            preferences: Sanitized user preferences
            constraints: Sanitized user constraints
            industry: Sanitized target industry
            budget: Sanitized budget
            difficulty: Sanitized difficulty level

        Returns:
            The JSON object recovered from the model reply, unvalidated

        Raises:
            UpstreamRateLimited: If the model API rate limits the call
            UpstreamCreditsExhausted: If the account has no credits left
            GenerationError: If the API keeps failing
            ContentParseError: If the reply holds no parseable JSON object
        """
        prompt = self.build_prompt(snippets, preferences, constraints, industry, budget, difficulty)
        response = await self._call_openai_api(prompt)

        content = self._extract_content(response)
        tokens_used = response.usage.total_tokens if getattr(response, "usage", None) else 0
        logger.debug(f"Generation reply received, tokens used: {tokens_used}")

        return recover_json(content)

    def _extract_content(self, response: Any) -> str:
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError, TypeError):
            logger.error("Unexpected response format from generation API")
            return ""

    def _backoff_delay(self, retry_number: int) -> float:
        delay = self.backoff_min * (self.backoff_factor ** (retry_number - 1))
        return min(delay, self.backoff_max)

    @staticmethod
    def _is_credit_exhaustion(error: openai.APIError) -> bool:
        code = getattr(error, "code", None) or ""
        text = f"{code} {str(error)}".lower()
        return any(marker in text for marker in CREDIT_EXHAUSTION_MARKERS)

    async def _call_openai_api(self, prompt: str) -> Any:
        """
        Make API call to OpenAI with bounded retry

        Rate limiting stops the loop immediately instead of spending the
        remaining attempts.

        Args:
            prompt: The prompt to send

        Returns:
            OpenAI response object
        """
        last_error: Optional[Exception] = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return await self.client.chat.completions.create(
                    model=self.model,
                    messages=[
                        {
                            "role": "user",
                            "content": prompt
                        }
                    ],
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                )

            except openai.RateLimitError as e:
                if self._is_credit_exhaustion(e):
                    logger.error(f"OpenAI credits exhausted: {str(e)}")
                    raise UpstreamCreditsExhausted() from e
                logger.warning(f"OpenAI rate limit hit, not retrying: {str(e)}")
                raise UpstreamRateLimited() from e

            except openai.APIError as e:
                if self._is_credit_exhaustion(e):
                    logger.error(f"OpenAI credits exhausted: {str(e)}")
                    raise UpstreamCreditsExhausted() from e
                last_error = e
                logger.warning(f"OpenAI API error on attempt {attempt}: {str(e)}")

            if attempt < self.max_attempts:
                wait_time = self._backoff_delay(attempt)
                logger.debug(f"Waiting {wait_time:.2f} seconds before generation retry")
                await asyncio.sleep(wait_time)

        logger.error(f"OpenAI API failed after {self.max_attempts} attempts: {str(last_error)}")
        raise GenerationError() from last_error


_ai_service: Optional[AIService] = None


def get_ai_service() -> Optional[AIService]:
    """Dependency returning the shared AI service, None when it is not configured"""
    global _ai_service
    if _ai_service is None:
        try:
            _ai_service = AIService()
        except ValueError as e:
            logger.warning(f"AI service not available: {str(e)}")
            return None
    return _ai_service
