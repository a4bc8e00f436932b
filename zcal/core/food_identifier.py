"""Food identification agent."""

import logging
import math
import re
from typing import Any, Dict

from config.settings import PROMPT_TEMPLATES
from zcal.core.errors import AgentError, InvalidRequestError
from zcal.core.image_processor import ImageProcessor
from zcal.core.json_extraction import coerce_number, extract_json_object, strip_thousands
from zcal.core.provider_client import ProviderClient
from zcal.models.schemas import (
    FoodIdentificationRequest,
    FoodIdentificationResponse,
    FoodMacros,
)

logger = logging.getLogger(__name__)

CALORIES_PATTERN = re.compile(r"(\d+)\s*(?:calorias|calories|kcal)", re.IGNORECASE)

# Share of calories per macro and kcal per gram.
MACRO_RATIOS = {
    "protein": (0.3, 4),
    "carbs": (0.4, 4),
    "fat": (0.3, 9),
}

# (upper calorie bound, score), checked in order.
HEALTH_SCORE_BUCKETS = [
    (250, 85),
    (500, 75),
    (750, 65),
    (1000, 55),
]
HEALTH_SCORE_CEILING = 45
HEALTH_SCORE_DEFAULT = 50

INSIGHTS_LIMIT = 280
NAME_LIMIT = 60


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _format_grams(value: float) -> str:
    if value == int(value):
        return f"{int(value)}g"
    return f"{value:g}g"


class FoodIdentifierAgent:
    """Identifies food in an image and reports calories, macros and a health score."""

    def __init__(self, client: ProviderClient, max_image_size_mb: float = 5):
        self.client = client
        self.max_image_size_mb = max_image_size_mb

    async def identify_food(self, request: FoodIdentificationRequest) -> FoodIdentificationResponse:
        if not ImageProcessor.validate_base64_image(request.image):
            raise InvalidRequestError("Invalid base64 image format")

        if not ImageProcessor.validate_image_size(request.image, self.max_image_size_mb):
            raise InvalidRequestError(f"Image size exceeds {self.max_image_size_mb:g}MB limit")

        clean_image = ImageProcessor.clean_base64_string(request.image)
        media_type = ImageProcessor.media_type(request.image)

        try:
            reply = await self.client.chat_with_vision(
                clean_image,
                PROMPT_TEMPLATES["food_user"],
                PROMPT_TEMPLATES["food_system"],
                media_type=media_type,
            )
        except Exception as e:
            logger.error(f"Error identifying food: {e}")
            raise AgentError("Failed to identify food from image") from e

        return self.parse_reply(reply)

    def parse_reply(self, reply: str) -> FoodIdentificationResponse:
        """Turn the model's reply into a response, JSON first, text as fallback."""
        parsed = extract_json_object(reply)
        if parsed is not None:
            return self.normalize_response(parsed)

        logger.info("No JSON object in model reply, falling back to text parsing")
        return self.parse_text_response(reply)

    def parse_text_response(self, text: str) -> FoodIdentificationResponse:
        match = CALORIES_PATTERN.search(strip_thousands(text))
        calories = int(match.group(1)) if match else 0

        return self.normalize_response({
            "name": self.extract_likely_food_name(text),
            "calories": calories,
            "macros": self.estimate_macros(calories),
            "healthScore": self.estimate_health_score(calories),
            "insights": text[:INSIGHTS_LIMIT],
        })

    def normalize_response(self, data: Dict[str, Any]) -> FoodIdentificationResponse:
        """Fill missing or malformed fields with heuristic defaults."""
        calories = coerce_number(data.get("calories"))
        if calories is None:
            calories = 0.0
        if calories == int(calories):
            calories = int(calories)

        raw_macros = data.get("macros")
        if not isinstance(raw_macros, dict):
            raw_macros = {}
        estimated = self.estimate_macros(calories)
        macros = {}
        for key in MACRO_RATIOS:
            value = raw_macros.get(key)
            if isinstance(value, str) and value.strip():
                macros[key] = value.strip()
            elif coerce_number(value) is not None:
                macros[key] = _format_grams(coerce_number(value))
            else:
                macros[key] = estimated[key]

        score = coerce_number(data.get("healthScore", data.get("health_score")))
        if score is None:
            health_score = self.estimate_health_score(calories)
        else:
            health_score = _round_half_up(min(100.0, max(0.0, score)))

        return FoodIdentificationResponse(
            name=str(data.get("name") or data.get("food") or "Unknown"),
            calories=calories,
            macros=FoodMacros(**macros),
            health_score=health_score,
            insights=str(data.get("insights") or data.get("description") or "No insights available."),
        )

    @staticmethod
    def estimate_macros(calories: float) -> Dict[str, str]:
        """Split calories into macros with fixed ratios."""
        if not calories or calories <= 0:
            return {key: "0g" for key in MACRO_RATIOS}

        return {
            key: f"{max(0, _round_half_up(calories * share / kcal_per_gram))}g"
            for key, (share, kcal_per_gram) in MACRO_RATIOS.items()
        }

    @staticmethod
    def estimate_health_score(calories: float) -> int:
        if not calories or calories <= 0:
            return HEALTH_SCORE_DEFAULT

        for bound, score in HEALTH_SCORE_BUCKETS:
            if calories < bound:
                return score
        return HEALTH_SCORE_CEILING

    @staticmethod
    def extract_likely_food_name(text: str) -> str:
        first_line = re.split(r"[\n.]", text)[0].strip()
        if first_line and len(first_line) <= NAME_LIMIT:
            return first_line
        return "Identified food"
