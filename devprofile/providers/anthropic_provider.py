"""Anthropic (Claude) AI provider."""

from __future__ import annotations

import logging

import anthropic

from devprofile.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderModelError,
    ProviderQuotaError,
    ProviderUnavailableError,
)
from devprofile.prompts import JSON_ONLY_SUFFIX

from .base import BaseProvider, GenerateOptions

logger = logging.getLogger("devprofile.providers.anthropic")


class AnthropicProvider(BaseProvider):
    name = "anthropic"

    def _create_client(self) -> anthropic.AsyncAnthropic:
        return anthropic.AsyncAnthropic(api_key=self.api_key)

    async def generate(self, system: str, user: str, options: GenerateOptions) -> str:
        """Send a message and return the text of the first text block.

        No structured output mode, so the user turn ends with an explicit
        JSON-only instruction. Temperature is left at the API default.
        """
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=options.max_tokens,
                system=system,
                messages=[{"role": "user", "content": user + JSON_ONLY_SUFFIX}],
            )
        except anthropic.AuthenticationError as e:
            raise ProviderAuthError(
                "Anthropic API key is invalid or expired.\n"
                "Check ANTHROPIC_API_KEY or run: devprofile config set-key anthropic",
                provider=self.name,
                model=self.model,
            ) from e
        except anthropic.RateLimitError as e:
            raise ProviderQuotaError(
                "Anthropic rate limit exceeded. Wait and retry.",
                provider=self.name,
                model=self.model,
            ) from e
        except anthropic.NotFoundError as e:
            raise ProviderModelError(
                f"Model '{self.model}' not found on Anthropic.",
                provider=self.name,
                model=self.model,
            ) from e
        except anthropic.APIConnectionError as e:
            raise ProviderUnavailableError(
                f"Cannot reach the Anthropic API: {e}",
                provider=self.name,
                model=self.model,
            ) from e
        except anthropic.APIError as e:
            raise ProviderError(
                f"Anthropic API error: {e}",
                provider=self.name,
                model=self.model,
            ) from e

        for block in message.content:
            if block.type == "text":
                return block.text
        logger.warning("Anthropic response for %s had no text block", self.model)
        return ""
