"""FastAPI application for the Z-Cal API."""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.settings import get_settings
from zcal.core.errors import ZcalError
from zcal.core.food_identifier import FoodIdentifierAgent
from zcal.core.provider_client import ProviderClient, get_provider_client
from zcal.core.recipe_generator import RecipeGeneratorAgent
from zcal.models.schemas import (
    FoodIdentificationRequest,
    FoodIdentificationResponse,
    HealthResponse,
    RecipeChatRequest,
    RecipeChatResponse,
    RecipeSuggestionRequest,
    RecipeSuggestionResponse,
)

settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)

provider_client: Optional[ProviderClient] = None
food_agent: Optional[FoodIdentifierAgent] = None
recipe_agent: Optional[RecipeGeneratorAgent] = None

# Messages for missing or wrongly typed top-level fields.
REQUIRED_FIELD_MESSAGES = {
    "image": "Image field is required",
    "messages": "Messages field is required and must be a non-empty array of chat messages",
    "ingredients": "Ingredients field is required and must be a non-empty array of strings",
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global provider_client, food_agent, recipe_agent

    logger.info(f"Starting {settings.app_name} v{settings.app_version}...")

    provider_client = get_provider_client(settings)
    food_agent = FoodIdentifierAgent(provider_client, max_image_size_mb=settings.max_image_size_mb)
    recipe_agent = RecipeGeneratorAgent(provider_client, max_tokens=settings.chat_max_tokens)
    logger.info(f"Agents initialized with {provider_client.provider.get_name()} provider, model {settings.model}")

    logger.info("Available endpoints:")
    logger.info("   GET  /health - Health check")
    logger.info("   POST /api/identify-food - Identify food from image")
    logger.info("   POST /api/generate-recipe - Recipe chat")
    logger.info("   POST /api/suggest-recipe - Recipe from ingredients")

    yield

    logger.info(f"Shutting down {settings.app_name}...")


app = FastAPI(
    title="Z-Cal API",
    description="Food identification and healthy recipe chat backed by an LLM provider",
    version=settings.app_version,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"

    error = errors[0]
    loc = error.get("loc", ())
    if error.get("type") == "json_invalid" or len(loc) <= 1:
        return "Invalid JSON body"

    field = loc[1]
    if len(loc) == 2 and field in REQUIRED_FIELD_MESSAGES and error.get("type") != "value_error":
        return REQUIRED_FIELD_MESSAGES[field]

    message = error.get("msg", "Invalid value")
    if message.startswith("Value error, "):
        return message[len("Value error, "):]
    path = ".".join(str(part) for part in loc[1:])
    return f"Invalid {path}: {message}"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    """Render body validation failures as 400 {error}."""
    return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors (404, 405, handler errors) as {error}."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def get_food_agent() -> FoodIdentifierAgent:
    if food_agent is None:
        raise HTTPException(status_code=503, detail="Food identifier not initialized")
    return food_agent


def get_recipe_agent() -> RecipeGeneratorAgent:
    if recipe_agent is None:
        raise HTTPException(status_code=503, detail="Recipe generator not initialized")
    return recipe_agent


@app.get("/", response_model=HealthResponse, tags=["Health"])
@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check():
    """Check service health and status."""
    return HealthResponse(
        status="healthy",
        service=settings.app_name,
        version=settings.app_version,
        model=settings.model,
        timestamp=datetime.now(timezone.utc),
    )


@app.post("/api/identify-food", response_model=FoodIdentificationResponse, tags=["Food"])
async def identify_food(
    request: FoodIdentificationRequest,
    agent: FoodIdentifierAgent = Depends(get_food_agent),
):
    """
    Identify the food in an image.

    - **image**: base64 image, bare or as a data URL (max 5MB decoded)
    """
    try:
        return await agent.identify_food(request)
    except ZcalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Error in identify_food")
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")


@app.post("/api/generate-recipe", response_model=RecipeChatResponse, tags=["Recipes"])
async def generate_recipe(
    request: RecipeChatRequest,
    agent: RecipeGeneratorAgent = Depends(get_recipe_agent),
):
    """
    Chat with the healthy-recipe chef.

    - **messages**: conversation so far, oldest first
    """
    try:
        result = await agent.generate_chat_response(request.messages)
    except ZcalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Error in generate_recipe")
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")

    return RecipeChatResponse(response=result)


@app.post("/api/suggest-recipe", response_model=RecipeSuggestionResponse, tags=["Recipes"])
async def suggest_recipe(
    request: RecipeSuggestionRequest,
    agent: RecipeGeneratorAgent = Depends(get_recipe_agent),
):
    """
    Suggest a single recipe for a list of ingredients.

    - **ingredients**: available ingredients
    """
    try:
        return await agent.generate_recipe(request.ingredients)
    except ZcalError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.exception("Error in suggest_recipe")
        raise HTTPException(status_code=500, detail=str(e) or "Internal server error")


def main():
    """Run the API with uvicorn."""
    import uvicorn
    uvicorn.run(
        "zcal.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    main()
