"""AI translation client.

Wraps a ``TextGenerationProvider`` with the translation prompt, answer
cleanup and rate-limit aware retries. Every failure leaves this module as a
``ProviderError``; ``retryable`` tells whether it was a rate-limit signal.
"""
import logging
from typing import Optional

import httpx
import openai

from localehub.config import get_settings
from localehub.exceptions import ProviderError
from localehub.metrics import PROVIDER_ATTEMPTS, PROVIDER_RETRIES
from localehub.services.providers import GeminiProvider, OpenAIProvider, TextGenerationProvider
from localehub.utils.retry import RetryPolicy, Sleep, default_sleep

logger = logging.getLogger(__name__)

LANGUAGE_NAMES = {
    "en": "English",
    "id": "Indonesian",
    "zh": "Chinese",
    "ja": "Japanese",
    "ko": "Korean",
    "es": "Spanish",
    "fr": "French",
    "de": "German",
    "pt": "Portuguese",
    "ru": "Russian",
    "ar": "Arabic",
    "hi": "Hindi",
    "th": "Thai",
    "vi": "Vietnamese",
    "it": "Italian",
    "nl": "Dutch",
    "pl": "Polish",
    "tr": "Turkish",
    "sv": "Swedish",
    "da": "Danish",
    "fi": "Finnish",
    "no": "Norwegian",
}

RATE_LIMIT_MARKERS = (
    "429",
    "too many requests",
    "rate_limit",
    "rate limit",
    "quota",
    "resource_exhausted",
)


def language_name(locale: str) -> str:
    """Human-readable language name; unknown codes pass through unchanged."""
    return LANGUAGE_NAMES.get(locale, locale)


def build_translation_prompt(text: str, target_locale: str, source_locale: Optional[str] = None) -> str:
    target = language_name(target_locale)
    if source_locale:
        header = f"Translate the following text from {language_name(source_locale)} to {target}."
    else:
        header = f"Translate the following text to {target}."
    return (
        f"{header}\n"
        "Only return the translated text, nothing else. "
        "Keep placeholders such as {name} or %s unchanged.\n\n"
        f"Text: {text}"
    )


def strip_surrounding_quotes(text: str) -> str:
    """Remove one layer of matching quotes the model sometimes wraps its answer in."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "'"):
        return text[1:-1]
    return text


def is_retryable_error(error: BaseException) -> bool:
    """True when the error signals HTTP 429, a rate limit or an exhausted quota."""
    if isinstance(error, ProviderError):
        return error.retryable
    if isinstance(error, openai.RateLimitError):
        return True
    status = getattr(error, "status_code", None)
    if status is None and isinstance(error, httpx.HTTPStatusError):
        status = error.response.status_code
    if status == 429:
        return True
    message = str(error).lower()
    return any(marker in message for marker in RATE_LIMIT_MARKERS)


class AITranslationClient:
    """Translate single strings through an AI provider.

    Args:
        provider: Backend that turns a prompt into text
        policy: Retry policy for rate-limited calls
        sleep: Awaitable used for backoff waits
    """

    def __init__(
        self,
        provider: TextGenerationProvider,
        policy: Optional[RetryPolicy] = None,
        sleep: Sleep = default_sleep,
    ):
        self.provider = provider
        self.policy = policy or RetryPolicy(base_delay=provider.default_retry_base_delay)
        self.sleep = sleep

    @property
    def provider_name(self) -> str:
        return self.provider.name

    async def translate(self, text: str, target_locale: str, source_locale: Optional[str] = None) -> str:
        prompt = build_translation_prompt(text, target_locale, source_locale)
        retries_done = 0
        while True:
            try:
                answer = await self._generate(prompt)
            except ProviderError as e:
                if not self.policy.should_retry(e, retries_done):
                    PROVIDER_ATTEMPTS.labels(provider=self.provider_name, outcome="failed").inc()
                    raise
                PROVIDER_ATTEMPTS.labels(provider=self.provider_name, outcome="rate_limited").inc()
                PROVIDER_RETRIES.labels(provider=self.provider_name).inc()
                retries_done += 1
                delay = self.policy.delay_for(retries_done)
                logger.warning(
                    f"{self.provider_name} rate limited translating to {target_locale}, "
                    f"retry {retries_done}/{self.policy.max_retries} in {delay:.1f}s"
                )
                await self.sleep(delay)
                continue

            PROVIDER_ATTEMPTS.labels(provider=self.provider_name, outcome="succeeded").inc()
            return answer

    async def _generate(self, prompt: str) -> str:
        try:
            raw = await self.provider.generate(prompt)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(
                f"{self.provider_name} request failed: {e}",
                retryable=is_retryable_error(e),
                provider=self.provider_name,
            ) from e

        answer = strip_surrounding_quotes((raw or "").strip())
        if not answer.strip():
            raise ProviderError(f"{self.provider_name} returned an empty translation", provider=self.provider_name)
        return answer


def create_provider(name: Optional[str] = None) -> TextGenerationProvider:
    settings = get_settings()
    name = (name or settings.ai_provider).lower()
    if name == "gemini":
        return GeminiProvider()
    return OpenAIProvider()


def request_interval_for(provider: TextGenerationProvider) -> float:
    """Pacing delay between consecutive provider calls."""
    configured = get_settings().ai_request_interval_seconds
    return provider.default_request_interval if configured is None else configured


def get_translation_client(provider: Optional[TextGenerationProvider] = None) -> AITranslationClient:
    settings = get_settings()
    provider = provider or create_provider()
    base_delay = settings.ai_retry_base_delay
    policy = RetryPolicy(
        max_retries=settings.ai_max_retries,
        base_delay=provider.default_retry_base_delay if base_delay is None else base_delay,
        max_delay=settings.ai_retry_max_delay,
    )
    return AITranslationClient(provider, policy=policy)
