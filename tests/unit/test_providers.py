from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from anthropic import APIConnectionError as AnthropicConnectionError
from openai import APIConnectionError

from healthchat.config import Settings
from healthchat.llm.providers import (
    AnthropicProvider,
    AzureOpenAIProvider,
    ProviderError,
    build_provider,
)

MESSAGES = [
    {"role": "system", "content": "Be helpful."},
    {"role": "user", "content": "How much water should I drink?"},
]


def _azure_client(create):
    client = MagicMock()
    client.chat.completions.create = create
    return client


def _azure_response(content):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


@pytest.fixture
def azure_settings():
    return Settings(
        azure_api_key="test-key",
        instance_name="my-instance",
        azure_deployment="gpt-4o",
    )


class TestAzureOpenAIProvider:

    @pytest.mark.asyncio
    async def test_invoke_passes_generation_config(self, azure_settings):
        create = AsyncMock(return_value=_azure_response("About 2 litres a day."))
        provider = AzureOpenAIProvider(azure_settings, client=_azure_client(create))

        completion = await provider.invoke(MESSAGES)

        assert completion.content == "About 2 litres a day."
        create.assert_awaited_once_with(
            model="gpt-4o",
            messages=MESSAGES,
            temperature=1.0,
            max_tokens=4096,
        )

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_provider_error(self, azure_settings):
        request = httpx.Request("POST", "https://my-instance.openai.azure.com/")
        create = AsyncMock(side_effect=APIConnectionError(request=request))
        provider = AzureOpenAIProvider(azure_settings, client=_azure_client(create))

        with pytest.raises(ProviderError, match="Connection error"):
            await provider.invoke(MESSAGES)

    @pytest.mark.asyncio
    async def test_empty_reply_is_an_error(self, azure_settings):
        create = AsyncMock(return_value=_azure_response(None))
        provider = AzureOpenAIProvider(azure_settings, client=_azure_client(create))

        with pytest.raises(ProviderError, match="empty response"):
            await provider.invoke(MESSAGES)

    @pytest.mark.asyncio
    async def test_missing_credentials_fail_on_first_call(self, monkeypatch):
        for var in ("AZURE_OPENAI_API_KEY", "AZURE_OPENAI_AD_TOKEN", "AZURE_OPENAI_ENDPOINT"):
            monkeypatch.delenv(var, raising=False)
        provider = AzureOpenAIProvider(Settings())

        with pytest.raises(ProviderError):
            await provider.invoke(MESSAGES)

    def test_endpoint_from_instance_name(self, azure_settings):
        assert azure_settings.azure_endpoint == "https://my-instance.openai.azure.com/"
        assert Settings().azure_endpoint is None


class TestAnthropicProvider:

    @pytest.mark.asyncio
    async def test_system_turn_is_lifted(self):
        client = MagicMock()
        client.messages.create = AsyncMock(return_value=SimpleNamespace(content=[
            SimpleNamespace(type="text", text="Roughly eight glasses."),
        ]))
        provider = AnthropicProvider(Settings(anthropic_model="claude-test"), client=client)

        completion = await provider.invoke(MESSAGES)

        assert completion.content == "Roughly eight glasses."
        kwargs = client.messages.create.await_args.kwargs
        assert kwargs["system"] == "Be helpful."
        assert kwargs["messages"] == [MESSAGES[1]]
        assert kwargs["model"] == "claude-test"
        assert kwargs["max_tokens"] == 4096

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_provider_error(self):
        request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=AnthropicConnectionError(request=request))
        provider = AnthropicProvider(Settings(), client=client)

        with pytest.raises(ProviderError):
            await provider.invoke(MESSAGES)


class TestBuildProvider:

    def test_default_is_azure(self):
        assert isinstance(build_provider(Settings()), AzureOpenAIProvider)

    def test_anthropic(self):
        assert isinstance(build_provider(Settings(llm_provider="anthropic")), AnthropicProvider)

    def test_unknown_provider(self):
        with pytest.raises(ValueError, match="Unknown LLM_PROVIDER"):
            build_provider(Settings(llm_provider="bogus"))
