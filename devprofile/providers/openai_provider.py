"""OpenAI chat-completions provider.

Requests a JSON-object response format and is the one provider whose
in-flight request can be cancelled.
"""
from __future__ import annotations

import logging

import openai

from devprofile.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderModelError,
    ProviderQuotaError,
    ProviderUnavailableError,
)

from .base import BaseProvider, GenerateOptions, run_cancellable

logger = logging.getLogger("devprofile.providers.openai")


class OpenAIProvider(BaseProvider):
    name = "openai"
    supports_cancellation = True

    def _create_client(self) -> openai.AsyncOpenAI:
        # base_url=None keeps the SDK default endpoint
        return openai.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url or None)

    async def generate(self, system: str, user: str, options: GenerateOptions) -> str:
        """Send a chat completion and return the response text."""
        request = self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            temperature=options.temperature,
            max_tokens=options.max_tokens,
            response_format={"type": "json_object"},
        )

        try:
            if options.cancellation is not None:
                response = await run_cancellable(request, options.cancellation)
            else:
                response = await request
        except openai.AuthenticationError as e:
            raise ProviderAuthError(
                "OpenAI API key is invalid or expired.\n"
                "Check OPENAI_API_KEY or run: devprofile config set-key openai",
                provider=self.name,
                model=self.model,
            ) from e
        except openai.RateLimitError as e:
            raise ProviderQuotaError(
                "OpenAI rate limit or quota exceeded. Wait and retry.",
                provider=self.name,
                model=self.model,
            ) from e
        except openai.NotFoundError as e:
            raise ProviderModelError(
                f"Model '{self.model}' not found on OpenAI.\n"
                "Set via: OPENAI_MODEL=model-name or --model flag",
                provider=self.name,
                model=self.model,
            ) from e
        except openai.APIConnectionError as e:
            raise ProviderUnavailableError(
                f"Cannot reach the OpenAI API: {e}",
                provider=self.name,
                model=self.model,
            ) from e
        except openai.APIError as e:
            raise ProviderError(
                f"OpenAI API error: {e}",
                provider=self.name,
                model=self.model,
            ) from e

        if not response.choices:
            logger.warning("OpenAI returned no choices for %s", self.model)
            return ""
        return response.choices[0].message.content or ""
