from typing import Optional

import httpx

from localehub.config import get_settings
from localehub.exceptions import ProviderError
from localehub.services.providers.base import TextGenerationProvider

settings = get_settings()

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


class GeminiProvider(TextGenerationProvider):
    """Google Gemini via its REST endpoint.

    The free tier allows a handful of requests per minute, hence the long
    backoff base and pacing interval.
    """

    name = "gemini"
    default_retry_base_delay = 10.0
    default_request_interval = 4.0

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = settings.gemini_api_key if api_key is None else api_key
        self.model = model or settings.gemini_model

    async def generate(self, prompt: str) -> str:
        if not self.api_key:
            raise ProviderError("Gemini API not configured. Please set GEMINI_API_KEY", provider=self.name)

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": settings.ai_temperature,
                "maxOutputTokens": settings.ai_max_tokens,
            },
        }
        async with httpx.AsyncClient(timeout=settings.ai_request_timeout) as client:
            response = await client.post(
                GEMINI_URL.format(model=self.model),
                headers={"x-goog-api-key": self.api_key},
                json=payload,
            )
            if response.is_error:
                # Status only; the response text can echo request details
                raise ProviderError(
                    f"Gemini request failed with HTTP {response.status_code}",
                    retryable=response.status_code == 429,
                    provider=self.name,
                )
            data = response.json()

        candidates = data.get("candidates") or []
        if not candidates:
            raise ProviderError("Gemini translation returned no candidates", provider=self.name)
        parts = candidates[0].get("content", {}).get("parts", [])
        if not parts or "text" not in parts[0]:
            raise ProviderError("Gemini translation returned no text", provider=self.name)
        return parts[0]["text"].strip()
