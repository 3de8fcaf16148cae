"""AI Provider Protocol and Base Class."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol, TypeVar, runtime_checkable

from devprofile.cancellation import CancellationToken
from devprofile.core.config_service import ProviderSettings
from devprofile.errors import CancelledError

T = TypeVar("T")

DEFAULT_TEMPERATURE = 0.3
DEFAULT_MAX_TOKENS = 4000


@dataclass(frozen=True)
class GenerateOptions:
    """Per-call generation options shared by every provider."""
    temperature: float = DEFAULT_TEMPERATURE
    max_tokens: int = DEFAULT_MAX_TOKENS
    cancellation: Optional[CancellationToken] = None


@runtime_checkable
class AIProvider(Protocol):
    """Protocol that all AI providers must satisfy."""

    name: str
    model: str
    supports_cancellation: bool

    async def generate(self, system: str, user: str, options: GenerateOptions) -> str: ...


class BaseProvider:
    """Common base for AI providers to reduce initialization boilerplate.

    Settings are passed in explicitly; providers never read the environment.
    The SDK client is built on first use unless one is injected.
    """

    name: str = ""
    supports_cancellation: bool = False

    def __init__(self, settings: ProviderSettings, client: Any = None):
        self.api_key = settings.api_key
        self.model = settings.model
        self.base_url = settings.base_url
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Any:
        raise NotImplementedError

    def is_available(self) -> bool:
        return bool(self.api_key)

    async def generate(self, system: str, user: str, options: GenerateOptions) -> str:
        raise NotImplementedError


async def run_cancellable(request: Awaitable[T], token: CancellationToken) -> T:
    """Await ``request`` unless ``token`` fires first.

    When the token wins, the in-flight request task is cancelled, which
    closes the underlying HTTP exchange, and CancelledError is raised.
    """
    task = asyncio.ensure_future(request)
    waiter = asyncio.ensure_future(token.wait())
    try:
        done, _ = await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()
    raise CancelledError(token.reason)
