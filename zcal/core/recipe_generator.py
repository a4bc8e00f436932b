"""Recipe chat and ingredient-based recipe agent."""

import logging
import re
from typing import List, Optional

from config.settings import PROMPT_TEMPLATES
from zcal.core.errors import AgentError
from zcal.core.json_extraction import coerce_number, extract_json_object, strip_thousands
from zcal.core.provider_client import ProviderClient
from zcal.models.schemas import (
    ChatCompletionRequest,
    ChatMessage,
    ProviderMessage,
    RecipeSuggestionResponse,
)

logger = logging.getLogger(__name__)

CALORIES_PATTERN = re.compile(r"(\d+)\s*(?:kcal|calories|calorias|cal)\b", re.IGNORECASE)
TIME_PATTERN = re.compile(
    r"(\d+\s*(?:minutes|minutos|mins|min|hours|hour|hrs|hr|h))\b", re.IGNORECASE
)


class RecipeGeneratorAgent:
    """Healthy-recipe chef: multi-turn chat and one-shot suggestions."""

    def __init__(self, client: ProviderClient, max_tokens: int = 1000):
        self.client = client
        self.max_tokens = max_tokens
        self.system_prompt = PROMPT_TEMPLATES["chef_system"]

    async def generate_chat_response(self, messages: List[ChatMessage]) -> str:
        """Continue the conversation and return the assistant's reply."""
        full_messages = [ProviderMessage(role="system", content=self.system_prompt)]
        full_messages.extend(
            ProviderMessage(role=message.role, content=message.content)
            for message in messages
        )

        request = ChatCompletionRequest(
            model=self.client.model,
            messages=full_messages,
            max_tokens=self.max_tokens,
        )
        try:
            response = await self.client.chat(request)
        except Exception as e:
            logger.error(f"Error generating chat response: {e}")
            raise AgentError("Failed to generate recipe response") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    async def generate_recipe(self, ingredients: List[str]) -> RecipeSuggestionResponse:
        """Suggest one recipe for the given ingredients."""
        prompt = PROMPT_TEMPLATES["recipe_suggestion"].format(ingredients=", ".join(ingredients))
        try:
            reply = await self.client.chat_text(prompt, self.system_prompt)
        except Exception as e:
            logger.error(f"Error generating recipe: {e}")
            raise AgentError("Failed to generate recipe") from e

        return self.parse_recipe_reply(reply)

    def parse_recipe_reply(self, reply: str) -> RecipeSuggestionResponse:
        parsed = extract_json_object(reply)
        if parsed is not None and parsed.get("recipe"):
            calories = coerce_number(parsed.get("estimatedCalories")) or 0
            prep_time = parsed.get("preparationTime")
            return RecipeSuggestionResponse(
                recipe=str(parsed["recipe"]),
                estimated_calories=int(calories),
                preparation_time=str(prep_time) if prep_time else None,
            )

        return RecipeSuggestionResponse(
            recipe=reply.strip(),
            estimated_calories=self.extract_calories(reply),
            preparation_time=self.extract_preparation_time(reply),
        )

    @staticmethod
    def extract_calories(text: str) -> int:
        match = CALORIES_PATTERN.search(strip_thousands(text))
        return int(match.group(1)) if match else 0

    @staticmethod
    def extract_preparation_time(text: str) -> Optional[str]:
        match = TIME_PATTERN.search(text)
        return match.group(1) if match else None
