"""Error taxonomy shared by the statistics engine and the translation orchestrator."""

from typing import Optional


class LocaleHubError(RuntimeError):
    """Base class for domain errors."""


class NotFoundError(LocaleHubError):
    """Raised when a referenced key, feature or project does not exist."""

    def __init__(self, entity: str, entity_id: object) -> None:
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class InvalidInputError(LocaleHubError):
    """Raised for malformed scope or locale input, before any provider call."""


class NoSourceAvailableError(LocaleHubError):
    """Raised when a key has no non-empty translation to translate from."""

    def __init__(self, key_id: object) -> None:
        super().__init__(f"No source translation available for key {key_id}")
        self.key_id = key_id


class ProviderError(LocaleHubError):
    """Raised when the AI provider call fails.

    ``retryable`` is True for rate-limit / quota signals; callers retry those
    with backoff and record everything else as a terminal failure.
    """

    def __init__(self, message: str, retryable: bool = False, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.retryable = retryable
        self.provider = provider
