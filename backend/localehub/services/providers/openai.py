from typing import Optional

from openai import AsyncOpenAI

from localehub.config import get_settings
from localehub.exceptions import ProviderError
from localehub.services.providers.base import TextGenerationProvider

settings = get_settings()

SYSTEM_PROMPT = (
    "You are a professional translator. Provide only the translation without any "
    "additional explanations, notes, or surrounding quotes."
)


class OpenAIProvider(TextGenerationProvider):
    """Chat completions through the OpenAI API."""

    name = "openai"
    default_retry_base_delay = 1.0
    default_request_interval = 0.1

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = settings.openai_api_key if api_key is None else api_key
        self.model = model or settings.openai_model
        self._client = None

    @property
    def client(self) -> Optional[AsyncOpenAI]:
        if not self.api_key:
            return None
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=settings.ai_request_timeout)
        return self._client

    async def generate(self, prompt: str) -> str:
        client = self.client
        if client is None:
            raise ProviderError("OpenAI API not configured. Please set OPENAI_API_KEY", provider=self.name)

        response = await client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
        )
        if not response.choices:
            return ""
        return (response.choices[0].message.content or "").strip()
