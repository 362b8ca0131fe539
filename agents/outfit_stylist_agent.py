"""Outfit stylist that asks the generative model for a weather-aware outfit."""
from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, List, Optional, Sequence

from pydantic import BaseModel, Field, field_validator

from ootd_app.config import MissingCredentialError
from ootd_app.logging_config import get_logger, log_event, operation_context
from logic.prompts import WEATHER_UNAVAILABLE, outfit_prompt
from logic.validation import AlternativeOutfit, OutfitSuggestion, extract_json_object
from models.clothing_item import ClothingItem
from tools.genai_client import GenerativeModelClient
from tools.weather_provider import WeatherProvider

logger = get_logger(__name__)


class CatalogSnapshotItem(BaseModel):
    """Closet item as sent to the model: no image payload."""

    id: str = Field(min_length=1)
    category: str
    subCategory: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    dominantColors: List[str] = Field(default_factory=list)
    hasPattern: Optional[bool] = None
    patternDescription: Optional[str] = None


class InspirationSnapshot(BaseModel):
    description: str
    items: List[CatalogSnapshotItem] = Field(default_factory=list)


class OutfitIdeaRequest(BaseModel):
    """Inputs gathered by the client for one outfit request."""

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    occasion: Optional[str] = None
    closet_items: Optional[List[CatalogSnapshotItem]] = None
    inspiration_items: Optional[List[InspirationSnapshot]] = None

    @field_validator("occasion")
    @classmethod
    def _blank_occasion(cls, value: Optional[str]) -> Optional[str]:
        return value.strip() if value and value.strip() else None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def catalog_ids(self) -> List[str]:
        return [item.id for item in self.closet_items or []]


class OutfitStylist:
    """Builds one prompt per request and parses the reply into an :class:`OutfitSuggestion`."""

    def __init__(
        self,
        model_client: GenerativeModelClient,
        weather_provider: Optional[WeatherProvider] = None,
    ) -> None:
        self.model_client = model_client
        self.weather_provider = weather_provider

    def lookup_weather(self, request: OutfitIdeaRequest) -> str:
        """Describe the weather at the request coordinates; failures are non-fatal."""

        if not request.has_coordinates or self.weather_provider is None:
            return WEATHER_UNAVAILABLE
        try:
            return self.weather_provider.describe(request.latitude, request.longitude)
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "weather_lookup_failed",
                reason=type(exc).__name__,
                details=str(exc),
            )
            return WEATHER_UNAVAILABLE

    def build_prompt(self, request: OutfitIdeaRequest, weather: str) -> str:
        closet = [item.model_dump() for item in request.closet_items or []]
        inspirations = [entry.model_dump() for entry in request.inspiration_items or []]
        return outfit_prompt(
            weather=weather,
            occasion=request.occasion,
            closet_items=closet or None,
            inspirations=inspirations or None,
        )

    def generate_outfit_idea(self, request: OutfitIdeaRequest) -> OutfitSuggestion:
        """Return a structured suggestion.

        Raises:
            MissingCredentialError: when no model API key is configured. This
                check happens before any network call and is not converted
                into the fallback suggestion.
        """

        if not self.model_client.configured:
            raise MissingCredentialError(
                "No Gemini API key found. Please set GEMINI_API_KEY in your environment."
            )

        with operation_context("agent:stylist.generate_outfit_idea") as correlation_id:
            catalog_ids = request.catalog_ids()
            log_event(
                logger,
                level=logging.INFO,
                event="agent_call_started",
                agent="stylist",
                method="generate_outfit_idea",
                correlation_id=correlation_id,
                catalog_size=len(catalog_ids),
                has_occasion=request.occasion is not None,
            )

            weather = self.lookup_weather(request)
            prompt = self.build_prompt(request, weather)
            try:
                reply = self.model_client.generate([prompt])
                suggestion = OutfitSuggestion.from_model_payload(extract_json_object(reply), catalog_ids)
            except Exception as exc:
                log_event(
                    logger,
                    logging.WARNING,
                    "outfit_fallback",
                    correlation_id=correlation_id,
                    reason=type(exc).__name__,
                    details=str(exc),
                )
                return OutfitSuggestion.fallback(catalog_ids)

            log_event(
                logger,
                level=logging.INFO,
                event="agent_call_completed",
                agent="stylist",
                method="generate_outfit_idea",
                correlation_id=correlation_id,
                item_count=len(suggestion.item_ids),
                alternatives=len(suggestion.alternative_outfits),
            )
            return suggestion


def cycle_outfits(suggestion: OutfitSuggestion) -> Iterator[AlternativeOutfit]:
    """Yield the primary suggestion followed by each alternate."""

    yield AlternativeOutfit(
        outfit_description=suggestion.outfit_description,
        item_ids=list(suggestion.item_ids),
        reason="Primary suggestion",
    )
    yield from suggestion.alternative_outfits


def outfit_at(suggestion: OutfitSuggestion, index: int) -> AlternativeOutfit:
    """Outfit shown after ``index`` presses of "try another", wrapping around."""

    options = list(cycle_outfits(suggestion))
    return options[index % len(options)]


def resolve_outfit_items(item_ids: Sequence[str], closet: Sequence[ClothingItem]) -> List[ClothingItem]:
    """Map identifiers onto the live closet, skipping ones that no longer exist."""

    by_id: Dict[str, ClothingItem] = {item.id: item for item in closet}
    return [by_id[item_id] for item_id in item_ids if item_id in by_id]


def snapshot_request(
    closet: Sequence[ClothingItem],
    inspirations: Sequence[Any] = (),
    latitude: Optional[float] = None,
    longitude: Optional[float] = None,
    occasion: Optional[str] = None,
    ignore_closet: bool = False,
) -> OutfitIdeaRequest:
    """Build a request from live models, stripping image payloads."""

    closet_items = None
    if not ignore_closet and closet:
        closet_items = [item.sanitized() for item in closet]
    inspiration_items = [entry.sanitized() for entry in inspirations] or None
    return OutfitIdeaRequest.model_validate(
        {
            "latitude": latitude,
            "longitude": longitude,
            "occasion": occasion,
            "closet_items": closet_items,
            "inspiration_items": inspiration_items,
        }
    )


__all__ = [
    "CatalogSnapshotItem",
    "InspirationSnapshot",
    "OutfitIdeaRequest",
    "OutfitStylist",
    "cycle_outfits",
    "outfit_at",
    "resolve_outfit_items",
    "snapshot_request",
]
