from localehub.services.providers.base import TextGenerationProvider
from localehub.services.providers.gemini import GeminiProvider
from localehub.services.providers.openai import OpenAIProvider
