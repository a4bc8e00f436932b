"""Core application modules."""

from .food_identifier import FoodIdentifierAgent
from .recipe_generator import RecipeGeneratorAgent
from .provider_client import ProviderClient, get_provider_client

__all__ = ["FoodIdentifierAgent", "RecipeGeneratorAgent", "ProviderClient", "get_provider_client"]
