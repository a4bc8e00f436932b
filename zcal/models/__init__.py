"""API models for the Z-Cal application."""

from .schemas import (
    ChatMessage,
    FoodMacros,
    FoodIdentificationRequest,
    FoodIdentificationResponse,
    RecipeChatRequest,
    RecipeChatResponse,
    RecipeSuggestionRequest,
    RecipeSuggestionResponse,
    HealthResponse,
)

__all__ = [
    "ChatMessage",
    "FoodMacros",
    "FoodIdentificationRequest",
    "FoodIdentificationResponse",
    "RecipeChatRequest",
    "RecipeChatResponse",
    "RecipeSuggestionRequest",
    "RecipeSuggestionResponse",
    "HealthResponse",
]
