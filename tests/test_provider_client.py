"""Unit tests for the provider adapter."""

import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from config.settings import Settings
from zcal.core.errors import ProviderError
from zcal.core.provider_client import (
    FinalMessage,
    MockChatProvider,
    OpenAIChatProvider,
    ProviderClient,
    get_provider_client,
)
from zcal.models.schemas import ChatCompletionRequest, ProviderMessage


class TestChat:
    """Tests for ProviderClient.chat."""

    @pytest.mark.asyncio
    async def test_system_message_becomes_system_prompt(self, provider_client, provider):
        provider.reply = "hello"
        request = ChatCompletionRequest(
            model="gpt-4o",
            messages=[
                ProviderMessage(role="system", content="Be brief."),
                ProviderMessage(role="user", content="Hi"),
            ],
            max_tokens=50,
        )

        await provider_client.chat(request)

        call = provider.calls[0]
        assert call["system"] == "Be brief."
        assert call["messages"] == [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}]
        assert call["max_tokens"] == 50

    @pytest.mark.asyncio
    async def test_default_max_tokens(self, provider_client, provider):
        provider.reply = "x"
        request = ChatCompletionRequest(model="gpt-4o", messages=[ProviderMessage(role="user", content="Hi")])

        await provider_client.chat(request)

        assert provider.calls[0]["max_tokens"] == 4096

    @pytest.mark.asyncio
    async def test_response_defaults(self, provider_client, provider):
        provider.reply = "hello"
        request = ChatCompletionRequest(model="gpt-4o", messages=[ProviderMessage(role="user", content="Hi")])

        response = await provider_client.chat(request)

        assert response.id.startswith("chatcmpl-")
        assert response.object == "chat.completion"
        assert response.model == "gpt-4o"
        assert response.created > 0
        assert response.choices[0].message.role == "assistant"
        assert response.choices[0].message.content == "hello"
        assert response.choices[0].finish_reason == "stop"
        assert response.usage.model_dump() == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}

    @pytest.mark.asyncio
    async def test_response_keeps_provider_fields(self, provider_client, provider):
        provider.reply = FinalMessage(
            id="abc",
            content=[{"type": "text", "text": "one"}, {"type": "image"}, {"type": "text", "text": "two"}],
            finish_reason="length",
            usage={"prompt_tokens": 3, "completion_tokens": 4, "total_tokens": 7},
        )
        request = ChatCompletionRequest(model="gpt-4o", messages=[ProviderMessage(role="user", content="Hi")])

        response = await provider_client.chat(request)

        assert response.id == "abc"
        assert response.choices[0].message.content == "one\ntwo"
        assert response.choices[0].finish_reason == "length"
        assert response.usage.total_tokens == 7


class TestContentBlocks:
    """Tests for message content normalization."""

    def test_string_becomes_text_block(self, provider_client):
        assert provider_client.ensure_content_blocks("hi") == [{"type": "text", "text": "hi"}]

    def test_image_block_camel_case_media_type(self, provider_client):
        blocks = provider_client.ensure_content_blocks([
            {"type": "image", "source": {"type": "base64", "mediaType": "image/png", "data": "QUJD"}},
        ])

        assert blocks == [
            {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "QUJD"}},
        ]

    def test_openai_image_url_block(self, provider_client):
        blocks = provider_client.ensure_content_blocks([
            {"type": "image_url", "image_url": {"url": "https://example.com/a.jpg"}},
        ])

        assert blocks == [{"type": "image", "source": {"type": "url", "url": "https://example.com/a.jpg"}}]

    def test_unknown_block_rejected(self, provider_client):
        with pytest.raises(ValueError):
            provider_client.ensure_content_blocks([{"type": "audio"}])


class TestOpenAIWireFormat:
    """Tests for translation to the chat completions wire format."""

    def test_text_only_message_is_string(self):
        message = {"role": "user", "content": [{"type": "text", "text": "a"}, {"type": "text", "text": "b"}]}

        assert OpenAIChatProvider._to_wire_message(message) == {"role": "user", "content": "a\nb"}

    def test_image_becomes_data_url(self):
        message = {
            "role": "user",
            "content": [
                {"type": "text", "text": "What is this?"},
                {"type": "image", "source": {"type": "base64", "media_type": "image/png", "data": "QUJD"}},
            ],
        }

        wire = OpenAIChatProvider._to_wire_message(message)

        assert wire["content"] == [
            {"type": "text", "text": "What is this?"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,QUJD"}},
        ]

    def test_requires_api_key(self):
        with pytest.raises(ValueError, match="OpenAI API key is required"):
            OpenAIChatProvider(api_key="")


def fake_completion(choices, usage=None):
    return SimpleNamespace(id="chatcmpl-123", choices=choices, usage=usage)


class TestOpenAIChatProvider:
    """Tests for OpenAIChatProvider.complete against a fake SDK client."""

    @pytest.fixture
    def create(self):
        return AsyncMock()

    @pytest.fixture
    def provider(self, create):
        provider = OpenAIChatProvider(api_key="sk-test")
        provider._client = SimpleNamespace(chat=SimpleNamespace(completions=SimpleNamespace(create=create)))
        return provider

    @pytest.mark.asyncio
    async def test_no_choices_raises_provider_error(self, provider, create):
        create.return_value = fake_completion(choices=[])

        with pytest.raises(ProviderError, match="Unexpected response from chat provider"):
            await provider.complete("gpt-4o", "", [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}], 50)

    @pytest.mark.asyncio
    async def test_maps_choice_and_usage(self, provider, create):
        usage = MagicMock()
        usage.model_dump.return_value = {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}
        choice = SimpleNamespace(message=SimpleNamespace(content="Hello!"), finish_reason="stop")
        create.return_value = fake_completion(choices=[choice], usage=usage)

        final = await provider.complete("gpt-4o", "", [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}], 50)

        assert final.id == "chatcmpl-123"
        assert final.content == "Hello!"
        assert final.finish_reason == "stop"
        assert final.usage == {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7}

    @pytest.mark.asyncio
    async def test_missing_content_and_usage(self, provider, create):
        choice = SimpleNamespace(message=SimpleNamespace(content=None), finish_reason="length")
        create.return_value = fake_completion(choices=[choice])

        final = await provider.complete("gpt-4o", "", [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}], 50)

        assert final.content == ""
        assert final.usage is None

    @pytest.mark.asyncio
    async def test_system_message_sent_first(self, provider, create):
        choice = SimpleNamespace(message=SimpleNamespace(content="ok"), finish_reason="stop")
        create.return_value = fake_completion(choices=[choice])

        await provider.complete(
            "gpt-4o",
            "You are a chef.",
            [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}],
            1000,
        )

        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["max_tokens"] == 1000
        assert "temperature" not in kwargs
        assert kwargs["messages"] == [
            {"role": "system", "content": "You are a chef."},
            {"role": "user", "content": "Hi"},
        ]

    @pytest.mark.asyncio
    async def test_temperature_forwarded(self, provider, create):
        choice = SimpleNamespace(message=SimpleNamespace(content="ok"), finish_reason="stop")
        create.return_value = fake_completion(choices=[choice])

        await provider.complete("gpt-4o", "", [{"role": "user", "content": [{"type": "text", "text": "Hi"}]}], 50, 0.2)

        kwargs = create.await_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["messages"][0]["role"] == "user"


class TestGetProviderClient:
    """Tests for provider selection from settings."""

    def test_mock_mode(self):
        client = get_provider_client(Settings(use_mock=True, model="gpt-4o-mini"))

        assert isinstance(client.provider, MockChatProvider)
        assert client.model == "gpt-4o-mini"

    def test_openai_mode(self):
        client = get_provider_client(Settings(use_mock=False, openai_api_key="sk-test"))

        assert isinstance(client.provider, OpenAIChatProvider)

    def test_openai_mode_without_key(self):
        with pytest.raises(ValueError):
            get_provider_client(Settings(use_mock=False, openai_api_key=""))


class TestMockProvider:
    """Tests for the mock provider."""

    @pytest.mark.asyncio
    async def test_vision_reply_contains_json(self):
        client = ProviderClient(MockChatProvider())

        reply = await client.chat_with_vision("QUJD", "What is this?")

        assert '"healthScore"' in reply
