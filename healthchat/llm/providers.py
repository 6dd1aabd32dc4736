# healthchat/llm/providers.py
"""
Chat-completion providers.

Every provider exposes `await provider.invoke(messages)` and returns a
`Completion`. SDK failures are re-raised as `ProviderError` carrying the
SDK's own message, so the route handles one exception type.

Providers build their SDK client on first use. A missing key or endpoint
therefore fails the first request instead of application startup.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from anthropic import AnthropicError, AsyncAnthropic
from openai import AsyncAzureOpenAI, OpenAIError

from healthchat.config import Settings

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """The completion provider could not produce a reply."""


@dataclass(frozen=True)
class Completion:
    content: str


class CompletionProvider(ABC):
    name = "base"

    @abstractmethod
    async def invoke(self, messages: Sequence[Dict[str, str]]) -> Completion:
        """Send `messages` to the model and return its reply."""


class AzureOpenAIProvider(CompletionProvider):
    """
    Azure OpenAI chat completions.

    Parameters
    ----------
    settings : Settings
        Supplies key, instance name, deployment, API version, temperature
        and max tokens.
    client : AsyncAzureOpenAI, optional
        Pre-built client (tests pass a mock).
    """

    name = "azure"

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self._settings = settings
        self._client = client

    def _get_client(self):
        if self._client is None:
            try:
                self._client = AsyncAzureOpenAI(
                    api_key=self._settings.azure_api_key,
                    azure_endpoint=self._settings.azure_endpoint,
                    azure_deployment=self._settings.azure_deployment,
                    api_version=self._settings.azure_api_version,
                )
            except (OpenAIError, ValueError) as exc:
                raise ProviderError(str(exc)) from exc
        return self._client

    async def invoke(self, messages: Sequence[Dict[str, str]]) -> Completion:
        client = self._get_client()
        try:
            response = await client.chat.completions.create(
                model=self._settings.azure_deployment,
                messages=list(messages),
                temperature=self._settings.temperature,
                max_tokens=self._settings.max_tokens,
            )
        except OpenAIError as exc:
            raise ProviderError(str(exc)) from exc

        if not response.choices or not response.choices[0].message.content:
            raise ProviderError("Model returned an empty response")
        return Completion(content=response.choices[0].message.content)


def _extract_text_from_blocks(blocks: List[Any]) -> str:
    """Concatenate the `.text` of every text block in a Claude response."""
    texts = []
    for b in blocks:
        if getattr(b, "type", None) == "text":
            texts.append(b.text)
    return "\n".join(texts).strip()


class AnthropicProvider(CompletionProvider):
    """
    Anthropic Messages API.

    Claude takes the system prompt as a separate parameter, so system
    turns are lifted out of the message list before the call.
    """

    name = "anthropic"

    def __init__(self, settings: Settings, client: Optional[Any] = None):
        self._settings = settings
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = AsyncAnthropic(api_key=self._settings.anthropic_api_key)
        return self._client

    async def invoke(self, messages: Sequence[Dict[str, str]]) -> Completion:
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        conversation = [
            {"role": m["role"], "content": m["content"]}
            for m in messages
            if m["role"] != "system"
        ]
        try:
            response = await self._get_client().messages.create(
                model=self._settings.anthropic_model,
                max_tokens=self._settings.max_tokens,
                temperature=self._settings.temperature,
                system=system,
                messages=conversation,
            )
        except AnthropicError as exc:
            raise ProviderError(str(exc)) from exc

        text = _extract_text_from_blocks(response.content)
        if not text:
            raise ProviderError("Model returned an empty response")
        return Completion(content=text)


_PROVIDERS = {
    AzureOpenAIProvider.name: AzureOpenAIProvider,
    AnthropicProvider.name: AnthropicProvider,
}


def build_provider(settings: Settings) -> CompletionProvider:
    """
    Instantiate the provider named by `settings.llm_provider`.

    Raises
    ------
    ValueError
        If the name is not a known provider.
    """
    try:
        provider_cls = _PROVIDERS[settings.llm_provider]
    except KeyError:
        raise ValueError(
            f"Unknown LLM_PROVIDER {settings.llm_provider!r}; "
            f"expected one of {sorted(_PROVIDERS)}"
        ) from None
    logger.info("Using completion provider %s", provider_cls.name)
    return provider_cls(settings)
