"""
Configuration settings for the Z-Cal API.
Values come from the environment (prefix ZCAL_) or a local .env file.
"""

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ZCAL_",
        extra="ignore",
        populate_by_name=True,
    )

    # Application settings
    app_name: str = "z-cal-api"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Server settings
    host: str = "0.0.0.0"
    port: int = Field(default=8000, validation_alias=AliasChoices("PORT", "ZCAL_PORT"))

    # Provider settings
    openai_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("OPENAI_API_KEY", "ZCAL_OPENAI_API_KEY"),
    )
    model: str = "gpt-4o"
    use_mock: bool = False

    # Inference settings
    chat_max_tokens: int = 1000
    vision_max_tokens: int = 500

    # Image limits
    max_image_size_mb: float = 5


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Prompt templates for the agents
PROMPT_TEMPLATES = {
    "food_system": """You are a nutrition expert specialized in food recognition.
Your job is to analyze food images and provide a concise nutritional report containing:
1. The name of the food (English)
2. Estimated calories for the visible portion
3. A macro breakdown (protein, carbs, fat) expressed as strings including the unit (e.g. "25g")
4. A health score from 0 (unhealthy) to 100 (optimal)
5. Actionable insights on why the score was assigned

Return your answer using this exact JSON structure:
{
  "name": "food name",
  "calories": number,
  "macros": {
    "protein": "string with unit",
    "carbs": "string with unit",
    "fat": "string with unit"
  },
  "healthScore": number_between_0_and_100,
  "insights": "brief nutritional insight"
}""",

    "food_user": (
        "Identify the food in this image and provide calories, macro distribution, "
        "a health score (0-100), and concise nutrition insights following the required JSON schema."
    ),

    "chef_system": """You are a chef focused on healthy, nutritious recipes.
Your task is to engage in a conversation to help users create delicious and wholesome meals using their available ingredients.
Discuss ingredients, preferences, and generate recipes when appropriate.
When providing a recipe, include:
1. Recipe title
2. Ingredient list with quantities
3. Detailed preparation steps
4. Estimated total calories
5. Approximate prep time

Keep the conversation natural and helpful.""",

    "recipe_suggestion": """Create one healthy recipe that uses these ingredients: {ingredients}

You may add common pantry staples. Return your answer using this exact JSON structure:
{{
  "recipe": "title, ingredient list with quantities and numbered steps as plain text",
  "estimatedCalories": number,
  "preparationTime": "e.g. 25 minutes"
}}""",
}
