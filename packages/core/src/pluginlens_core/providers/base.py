"""Base completion client implementing the Template Method pattern.

All providers share the same call algorithm:
    complete() → _call_with_retry() → _call_api()   ← only this differs per provider

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw API call and return the text response

Retry and logging live here so they are defined once and inherited by every
provider. Which optional request parameters are sent is decided by the model
capability table, not by the provider.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod

from pluginlens_core.providers.capabilities import ModelCapabilities, capabilities_for

logger = logging.getLogger(__name__)

_MAX_RETRIES = 3
_TEMPERATURE = 0.2
_MAX_OUTPUT_TOKENS = 1500


class BaseCompletionClient(ABC):
    MAX_RETRIES: int = _MAX_RETRIES

    def __init__(
        self,
        model: str,
        max_output_tokens: int = _MAX_OUTPUT_TOKENS,
        temperature: float = _TEMPERATURE,
    ):
        self.model = model
        self.max_output_tokens = max_output_tokens
        self.temperature = temperature

    @property
    def capabilities(self) -> ModelCapabilities:
        return capabilities_for(self.model)

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def complete(self, prompt: str) -> str | None:
        """Send ``prompt`` as a single user message and return the generated text.

        Returns None when every attempt failed. An empty string means the
        service answered with no content; callers treat the two differently.
        """
        return self._call_with_retry(prompt)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each provider                                #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str) -> str:
        """Make a single API call and return the raw text response.

        It should raise on failure; _call_with_retry handles retries and logging.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _call_with_retry(self, prompt: str) -> str | None:
        """Retry _call_api up to MAX_RETRIES times with exponential backoff."""
        for attempt in range(self.MAX_RETRIES):
            try:
                return self._call_api(prompt)
            except Exception as e:
                if attempt == self.MAX_RETRIES - 1:
                    logger.error(
                        "%s API failed after %d attempts: %s",
                        self.__class__.__name__,
                        self.MAX_RETRIES,
                        e,
                    )
                    return None
                delay = 2**attempt
                logger.warning(
                    "%s API error (attempt %d/%d): %s. Retrying in %ds...",
                    self.__class__.__name__,
                    attempt + 1,
                    self.MAX_RETRIES,
                    e,
                    delay,
                )
                time.sleep(delay)
        return None
