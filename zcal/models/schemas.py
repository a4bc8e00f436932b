"""Pydantic models for API request/response schemas."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    """A single chat message."""
    role: Literal["user", "assistant", "system"] = Field(description="Message role")
    content: str = Field(description="Message content")


class FoodMacros(BaseModel):
    """Macro breakdown, each value a string with its unit (e.g. "25g")."""
    protein: str = Field(description="Protein amount")
    carbs: str = Field(description="Carbohydrate amount")
    fat: str = Field(description="Fat amount")


class FoodIdentificationRequest(BaseModel):
    """Request body for the /api/identify-food endpoint."""
    image: str = Field(description="Base64 image, bare or as a data URL")

    @field_validator("image")
    @classmethod
    def image_not_empty(cls, value: str) -> str:
        if not value:
            raise ValueError("Image field is required")
        return value


class FoodIdentificationResponse(BaseModel):
    """Nutrition report for an identified food."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(description="Food name")
    calories: Union[int, float] = Field(description="Estimated calories of the visible portion")
    macros: FoodMacros = Field(description="Macro breakdown")
    health_score: int = Field(alias="healthScore", ge=0, le=100, description="Health score from 0 to 100")
    insights: str = Field(description="Short nutritional insight")


class RecipeChatRequest(BaseModel):
    """Request body for the /api/generate-recipe endpoint."""
    messages: List[ChatMessage] = Field(description="Conversation so far, oldest first")

    @field_validator("messages")
    @classmethod
    def messages_not_empty(cls, value: List[ChatMessage]) -> List[ChatMessage]:
        if not value:
            raise ValueError("Messages field is required and must be a non-empty array of chat messages")
        return value


class RecipeChatResponse(BaseModel):
    """Response body for the /api/generate-recipe endpoint."""
    response: str = Field(description="Assistant reply")


class RecipeSuggestionRequest(BaseModel):
    """Request body for the /api/suggest-recipe endpoint."""
    ingredients: List[str] = Field(description="Available ingredients")

    @field_validator("ingredients")
    @classmethod
    def ingredients_not_empty(cls, value: List[str]) -> List[str]:
        cleaned = [ing.strip() for ing in value]
        if not cleaned or not all(cleaned):
            raise ValueError("Ingredients field is required and must be a non-empty array of strings")
        return cleaned


class RecipeSuggestionResponse(BaseModel):
    """A single generated recipe."""
    model_config = ConfigDict(populate_by_name=True)

    recipe: str = Field(description="Recipe text")
    estimated_calories: int = Field(default=0, alias="estimatedCalories", description="Estimated total calories")
    preparation_time: Optional[str] = Field(default=None, alias="preparationTime", description="Approximate prep time")


class HealthResponse(BaseModel):
    """Response body for the /health endpoint."""
    status: str = Field(description="Service status")
    service: str = Field(description="Service name")
    version: str = Field(description="API version")
    model: str = Field(description="Configured provider model")
    timestamp: datetime = Field(description="Server time")


# Provider-facing shapes, mirroring a chat-completion API.

class ProviderMessage(BaseModel):
    """A message as sent to the provider; content may be a list of blocks."""
    role: Literal["user", "assistant", "system"]
    content: Union[str, List[Dict[str, Any]]]


class ChatCompletionRequest(BaseModel):
    model: str
    messages: List[ProviderMessage]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


class CompletionMessage(BaseModel):
    role: str = "assistant"
    content: str


class CompletionChoice(BaseModel):
    index: int = 0
    message: CompletionMessage
    finish_reason: str = "stop"


class CompletionUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class ChatCompletionResponse(BaseModel):
    id: str
    object: str = "chat.completion"
    created: int
    model: str
    choices: List[CompletionChoice]
    usage: CompletionUsage = Field(default_factory=CompletionUsage)
