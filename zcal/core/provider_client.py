"""Provider adapter between internal chat messages and the model API."""

import json
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from openai import AsyncOpenAI

from config.settings import Settings
from zcal.core.errors import ProviderError
from zcal.models.schemas import (
    ChatCompletionRequest,
    ChatCompletionResponse,
    CompletionChoice,
    CompletionMessage,
    CompletionUsage,
    ProviderMessage,
)

logger = logging.getLogger(__name__)

ContentBlock = Dict[str, Any]


@dataclass
class FinalMessage:
    """The provider's final assistant message, before reshaping."""
    content: Union[str, List[ContentBlock]]
    id: Optional[str] = None
    finish_reason: Optional[str] = None
    usage: Optional[Dict[str, int]] = None


class BaseChatProvider(ABC):
    """Abstract base class for chat model providers."""

    @abstractmethod
    async def complete(
        self,
        model: str,
        system: str,
        messages: List[Dict[str, Any]],
        max_tokens: int,
        temperature: Optional[float] = None,
    ) -> FinalMessage:
        """Run one chat completion over normalized messages."""
        pass

    @abstractmethod
    def get_name(self) -> str:
        """Get provider name."""
        pass


class OpenAIChatProvider(BaseChatProvider):
    """Chat provider backed by the OpenAI chat completions API."""

    def __init__(self, api_key: str):
        if not api_key:
            raise ValueError("OpenAI API key is required")
        self._client = AsyncOpenAI(api_key=api_key)

    async def complete(
        self,
        model: str,
        system: str,
        messages: List[Dict[str, Any]],
        max_tokens: int,
        temperature: Optional[float] = None,
    ) -> FinalMessage:
        wire_messages = []
        if system:
            wire_messages.append({"role": "system", "content": system})
        wire_messages.extend(self._to_wire_message(msg) for msg in messages)

        params: Dict[str, Any] = {
            "model": model,
            "messages": wire_messages,
            "max_tokens": max_tokens,
        }
        if temperature is not None:
            params["temperature"] = temperature

        completion = await self._client.chat.completions.create(**params)
        if not completion.choices:
            raise ProviderError("Unexpected response from chat provider")

        choice = completion.choices[0]
        usage = completion.usage.model_dump() if completion.usage else None
        return FinalMessage(
            id=completion.id,
            content=choice.message.content or "",
            finish_reason=choice.finish_reason,
            usage=usage,
        )

    @staticmethod
    def _to_wire_message(message: Dict[str, Any]) -> Dict[str, Any]:
        blocks = message["content"]
        if all(block["type"] == "text" for block in blocks):
            return {"role": message["role"], "content": "\n".join(block["text"] for block in blocks)}

        parts = []
        for block in blocks:
            if block["type"] == "text":
                parts.append({"type": "text", "text": block["text"]})
                continue
            source = block["source"]
            if source["type"] == "url":
                url = source["url"]
            else:
                url = f"data:{source['media_type']};base64,{source['data']}"
            parts.append({"type": "image_url", "image_url": {"url": url}})
        return {"role": message["role"], "content": parts}

    def get_name(self) -> str:
        return "openai"


class MockChatProvider(BaseChatProvider):
    """Mock provider for testing and running without an API key."""

    async def complete(
        self,
        model: str,
        system: str,
        messages: List[Dict[str, Any]],
        max_tokens: int,
        temperature: Optional[float] = None,
    ) -> FinalMessage:
        blocks = [block for msg in messages for block in msg["content"]]
        if any(block["type"] == "image" for block in blocks):
            return FinalMessage(content=self._food_response())

        prompt = "\n".join(block["text"] for block in blocks if block["type"] == "text")
        if "estimatedCalories" in prompt:
            return FinalMessage(content=self._recipe_response(prompt))

        last_user = next(
            (msg for msg in reversed(messages) if msg["role"] == "user"), None
        )
        text = ""
        if last_user:
            text = " ".join(b["text"] for b in last_user["content"] if b["type"] == "text")
        return FinalMessage(content=self._chat_response(text))

    @staticmethod
    def _food_response() -> str:
        payload = {
            "name": "Apple",
            "calories": 95,
            "macros": {"protein": "0g", "carbs": "25g", "fat": "0g"},
            "healthScore": 90,
            "insights": "A fresh apple is a low-calorie, high-fiber snack.",
        }
        return f"Here is the analysis:\n```json\n{json.dumps(payload, indent=2)}\n```"

    @staticmethod
    def _recipe_response(prompt: str) -> str:
        payload = {
            "recipe": "Simple Skillet\n1. Chop the ingredients.\n2. Saute in olive oil for 10 minutes.\n3. Season and serve.",
            "estimatedCalories": 420,
            "preparationTime": "20 minutes",
        }
        return json.dumps(payload)

    @staticmethod
    def _chat_response(text: str) -> str:
        lowered = text.lower()
        ingredients = [
            name for name in ("egg", "rice", "beans", "chicken", "tomato", "spinach")
            if name in lowered
        ]
        if not ingredients:
            return "I'd be happy to help you cook something healthy! What ingredients do you have?"
        ing_str = ", ".join(ingredients)
        return (
            f"With {ing_str} you could make a quick healthy bowl. "
            "Cook the grains, saute the rest with garlic and olive oil, and combine. "
            "Estimated total: 450 calories, about 25 minutes."
        )

    def get_name(self) -> str:
        return "mock"


class ProviderClient:
    """Translates internal chat requests into provider calls and back."""

    def __init__(
        self,
        provider: BaseChatProvider,
        model: str = "gpt-4o",
        vision_max_tokens: int = 500,
        text_max_tokens: int = 1000,
    ):
        self.provider = provider
        self.model = model
        self.vision_max_tokens = vision_max_tokens
        self.text_max_tokens = text_max_tokens

    async def chat(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Run a chat-completion style request through the provider."""
        system = ""
        filtered: List[ProviderMessage] = []
        for message in request.messages:
            if message.role == "system":
                system = self.content_to_text(message.content)
                continue
            filtered.append(message)

        final = await self.provider.complete(
            model=request.model,
            system=system,
            messages=self.normalize_messages(filtered),
            max_tokens=request.max_tokens or 4096,
            temperature=request.temperature,
        )
        return self._to_completion_response(final, request.model)

    async def chat_with_vision(
        self,
        image_base64: str,
        prompt: str,
        system_prompt: Optional[str] = None,
        media_type: str = "image/jpeg",
    ) -> str:
        """Ask about a single base64 image; returns the reply text."""
        messages = [
            ProviderMessage(
                role="user",
                content=[
                    {"type": "text", "text": prompt},
                    {
                        "type": "image",
                        "source": {"type": "base64", "media_type": media_type, "data": image_base64},
                    },
                ],
            )
        ]
        final = await self.provider.complete(
            model=self.model,
            system=system_prompt or "",
            messages=self.normalize_messages(messages),
            max_tokens=self.vision_max_tokens,
        )
        return self.content_to_text(final.content)

    async def chat_text(self, user_message: str, system_prompt: Optional[str] = None) -> str:
        """Single-turn text prompt; returns the reply text."""
        messages = [ProviderMessage(role="user", content=user_message)]
        final = await self.provider.complete(
            model=self.model,
            system=system_prompt or "",
            messages=self.normalize_messages(messages),
            max_tokens=self.text_max_tokens,
        )
        return self.content_to_text(final.content)

    def normalize_messages(self, messages: List[ProviderMessage]) -> List[Dict[str, Any]]:
        return [
            {"role": msg.role, "content": self.ensure_content_blocks(msg.content)}
            for msg in messages
        ]

    def ensure_content_blocks(self, content: Union[str, List[ContentBlock]]) -> List[ContentBlock]:
        if isinstance(content, str):
            return [{"type": "text", "text": content}]
        return [self._to_content_block(block) for block in content]

    @staticmethod
    def _to_content_block(block: ContentBlock) -> ContentBlock:
        block_type = block.get("type")
        if block_type == "text":
            return {"type": "text", "text": block.get("text") or ""}

        if block_type == "image":
            source = block.get("source") or {}
            if source.get("type") == "url":
                return {"type": "image", "source": {"type": "url", "url": source["url"]}}
            return {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": source.get("media_type") or source.get("mediaType") or "image/jpeg",
                    "data": source.get("data", ""),
                },
            }

        if block_type == "image_url":
            url = (block.get("image_url") or {}).get("url", "")
            return {"type": "image", "source": {"type": "url", "url": url}}

        raise ValueError(f"Unsupported content block type: {block_type}")

    @staticmethod
    def content_to_text(content: Union[str, List[ContentBlock]]) -> str:
        if isinstance(content, str):
            return content
        return "\n".join(
            block.get("text") or "" for block in content if block.get("type") == "text"
        )

    def _to_completion_response(self, final: FinalMessage, model: str) -> ChatCompletionResponse:
        usage = CompletionUsage(**final.usage) if final.usage else CompletionUsage()
        return ChatCompletionResponse(
            id=final.id or f"chatcmpl-{uuid.uuid4().hex}",
            created=int(time.time()),
            model=model,
            choices=[
                CompletionChoice(
                    message=CompletionMessage(content=self.content_to_text(final.content)),
                    finish_reason=final.finish_reason or "stop",
                )
            ],
            usage=usage,
        )


def get_provider_client(settings: Settings) -> ProviderClient:
    """Build the provider client for the configured backend."""
    if settings.use_mock:
        logger.info("Using mock chat provider")
        provider: BaseChatProvider = MockChatProvider()
    else:
        provider = OpenAIChatProvider(api_key=settings.openai_api_key)

    return ProviderClient(
        provider=provider,
        model=settings.model,
        vision_max_tokens=settings.vision_max_tokens,
        text_max_tokens=settings.chat_max_tokens,
    )
