from abc import ABC, abstractmethod


class TextGenerationProvider(ABC):
    """Abstract base class for AI text providers: prompt in, text out."""

    name: str = "provider"

    # Backoff base and pacing interval suited to the provider's rate limits
    default_retry_base_delay: float = 1.0
    default_request_interval: float = 0.1

    @abstractmethod
    async def generate(self, prompt: str) -> str:
        """Return the provider's answer to ``prompt``."""
        pass
