"""Google Gemini AI provider."""
from __future__ import annotations

import logging

from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from devprofile.errors import (
    ProviderAuthError,
    ProviderError,
    ProviderModelError,
    ProviderQuotaError,
)
from devprofile.prompts import JSON_ONLY_SUFFIX

from .base import BaseProvider, GenerateOptions

logger = logging.getLogger("devprofile.providers.gemini")

# Available Gemini models for easy reference
GEMINI_MODELS = {
    "gemini-2.0-flash-exp": "Experimental fast model (default)",
    "gemini-2.0-flash": "Fast, versatile",
    "gemini-2.0-flash-lite": "Fastest, lowest cost",
    "gemini-1.5-pro": "Previous gen pro model",
}


class GeminiProvider(BaseProvider):
    name = "gemini"

    def _create_client(self) -> genai.Client:
        return genai.Client(api_key=self.api_key)

    async def generate(self, system: str, user: str, options: GenerateOptions) -> str:
        """Run a single-turn generation and return the response text.

        Gemini gets one prompt: system and user text are concatenated.
        """
        config = types.GenerateContentConfig(
            temperature=options.temperature,
            max_output_tokens=options.max_tokens,
            response_mime_type="application/json",
        )
        contents = f"{system}\n\n{user}{JSON_ONLY_SUFFIX}"

        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        except genai_errors.APIError as e:
            err_msg = str(e).lower()
            if e.code == 429 or "resource_exhausted" in err_msg or "quota" in err_msg:
                raise ProviderQuotaError(
                    "Gemini quota exceeded.\n"
                    "Check billing at https://ai.google.dev/gemini-api/docs/rate-limits",
                    provider=self.name, model=self.model,
                ) from e
            if e.code in (401, 403) or ("invalid" in err_msg and "key" in err_msg):
                raise ProviderAuthError(
                    "Gemini API key invalid.\n"
                    "Check that GEMINI_API_KEY is valid and the "
                    "Generative Language API is enabled.",
                    provider=self.name, model=self.model,
                ) from e
            if e.code == 404 or "not found" in err_msg:
                available = "\n".join(f"  {m} - {d}" for m, d in GEMINI_MODELS.items())
                raise ProviderModelError(
                    f"Model '{self.model}' not found.\n"
                    f"Available models:\n{available}\n\n"
                    "Set via: GEMINI_MODEL=model-name or --model flag",
                    provider=self.name, model=self.model,
                ) from e
            raise ProviderError(
                f"Gemini API error: {e}",
                provider=self.name, model=self.model,
            ) from e

        return response.text or ""
