"""OOTD app bootstrap."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Executor
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from ootd_app.config import AppConfig, MissingCredentialError
from ootd_app.logging_config import configure_logging, get_logger, log_event, operation_context
from agents.background_remover import BackgroundRemover
from agents.intake_pipeline import IntakePipeline
from agents.item_tagger import ItemTagger
from agents.outfit_stylist_agent import (
    OutfitStylist,
    outfit_at,
    resolve_outfit_items,
    snapshot_request,
)
from logic.closet_analysis import GroupGap, analyze_closet_gaps, organize_closet
from logic.validation import AlternativeOutfit, OutfitSuggestion
from memory.user_data import UserDataManager
from models.clothing_item import ClothingItem, Inspiration
from models.preferences import UserPreferences
from tools.background_removal_client import ReplicateClient
from tools.checkout import FREE_ITEM_LIMIT, checkout_links, requires_upgrade
from tools.document_store import DocumentStore, FirestoreDocumentStore
from tools.genai_client import GenerativeModelClient
from tools.local_storage import JSONFileLocalStorage, LocalStorage
from tools.object_storage import GCSObjectStorage, ObjectStorage
from tools.weather_provider import OpenWeatherProvider, WeatherProvider

LOGGER = get_logger(__name__)


class OnboardingIncompleteError(ValueError):
    """Raised when outfit generation is attempted before the closet is seeded."""


class UpgradeRequiredError(RuntimeError):
    """Raised when a free account reaches its closet item limit."""


class OOTDApp:
    """Wires together the stylist workflows, providers and the synced closet.

    Providers are constructed from configuration without touching the
    network; missing credentials only surface when a workflow needs them.
    """

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        user_data: UserDataManager | None = None,
        document_store: DocumentStore | None = None,
        local_storage: LocalStorage | None = None,
        object_storage: ObjectStorage | None = None,
        background_client: ReplicateClient | None = None,
        tagging_client: GenerativeModelClient | None = None,
        outfit_client: GenerativeModelClient | None = None,
        weather_provider: WeatherProvider | None = None,
        executor: Executor | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or AppConfig.from_env()
        configure_logging()

        self.tagging_client = tagging_client or GenerativeModelClient(
            self.config.gemini_api_key, self.config.tagging_model
        )
        self.outfit_client = outfit_client or GenerativeModelClient(
            self.config.gemini_api_key, self.config.outfit_model
        )
        self.weather_provider = weather_provider or self._build_weather_provider()
        self.object_storage = object_storage or self._build_object_storage()
        self.background_client = background_client or self._build_background_client()

        self.background_remover = BackgroundRemover(
            storage=self.object_storage, client=self.background_client, sleep=sleep
        )
        self.tagger = ItemTagger(self.tagging_client)
        self.intake = IntakePipeline(self.background_remover, self.tagger)
        self.stylist = OutfitStylist(self.outfit_client, self.weather_provider)

        if user_data is None:
            user_data = UserDataManager(
                local_storage=local_storage or JSONFileLocalStorage(self.config.local_storage_dir),
                document_store=document_store or self._build_document_store(),
                executor=executor,
            )
        self.user_data = user_data
        self.premium = False
        self.last_suggestion: Optional[OutfitSuggestion] = None
        self.suggestion_index = 0
        self.user_data.set_identity(None)

    def _build_weather_provider(self) -> Optional[WeatherProvider]:
        if not self.config.weather_api_key:
            return None
        return OpenWeatherProvider(api_key=self.config.weather_api_key)

    def _build_object_storage(self) -> Optional[ObjectStorage]:
        if not self.config.storage_bucket:
            return None
        return GCSObjectStorage(self.config.storage_bucket, self.config.google_credentials_path)

    def _build_background_client(self) -> Optional[ReplicateClient]:
        if not self.config.replicate_api_token:
            return None
        return ReplicateClient(api_token=self.config.replicate_api_token)

    def _build_document_store(self) -> Optional[DocumentStore]:
        if not (self.config.firestore_project or self.config.google_credentials_path):
            return None
        return FirestoreDocumentStore(
            project=self.config.firestore_project,
            credentials_path=self.config.google_credentials_path,
        )

    # Identity

    def sign_in(self, uid: str, premium: bool = False) -> None:
        if not uid:
            raise ValueError("uid is required to sign in")
        self.premium = premium
        self._reset_suggestions()
        self.user_data.set_identity(uid)

    def sign_out(self) -> None:
        self.premium = False
        self._reset_suggestions()
        self.user_data.set_identity(None)

    def _reset_suggestions(self) -> None:
        self.last_suggestion = None
        self.suggestion_index = 0

    # Closet

    @property
    def closet_items(self) -> List[ClothingItem]:
        return self.user_data.closet_items

    @property
    def preferences(self) -> UserPreferences:
        return self.user_data.preferences

    def remove_background(self, photo_data_uri: str) -> str:
        return self.background_remover.remove_background(photo_data_uri)

    def add_closet_item(self, photo_data_uri: str) -> ClothingItem:
        """Run intake on one photo and add the result to the closet.

        Raises:
            UpgradeRequiredError: when a free account already holds
                ``FREE_ITEM_LIMIT`` items and testing mode is off.
            UnsupportedImageError: when the upload is not a supported data URI.
        """

        item_count = len(self.user_data.closet_items)
        if not self.config.testing_mode and requires_upgrade(item_count, self.premium):
            log_event(LOGGER, logging.INFO, "upgrade_required", item_count=item_count)
            raise UpgradeRequiredError(
                f"Free accounts can store up to {FREE_ITEM_LIMIT} items. Upgrade to add more."
            )

        with operation_context("app:add_closet_item") as correlation_id:
            item = self.intake.add_item(photo_data_uri, gender=self.preferences.gender)
            self.user_data.add_closet_item(item)
            log_event(
                LOGGER,
                logging.INFO,
                "app_call_completed",
                method="add_closet_item",
                correlation_id=correlation_id,
                item_count=item_count + 1,
            )
            return item

    def remove_closet_item(self, item_id: str) -> None:
        self.user_data.remove_closet_item(item_id)

    def organized_closet(self) -> Dict[str, Dict[str, List[ClothingItem]]]:
        return organize_closet(self.closet_items)

    def closet_gaps(self) -> List[GroupGap]:
        return analyze_closet_gaps(self.closet_items, self.preferences.gender)

    def update_preferences(self, updates: Mapping[str, Any]) -> UserPreferences:
        return self.user_data.update_preferences(updates)

    # Outfits

    def generate_outfit(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        occasion: Optional[str] = None,
        ignore_closet: bool = False,
    ) -> OutfitSuggestion:
        """Ask the stylist for an outfit built from the current closet snapshot."""

        closet = self.closet_items
        if not self.config.testing_mode and len(closet) < FREE_ITEM_LIMIT:
            raise OnboardingIncompleteError(
                f"Add at least {FREE_ITEM_LIMIT} items to your closet before generating outfits."
            )

        with operation_context("app:generate_outfit") as correlation_id:
            request = snapshot_request(
                closet,
                self.user_data.inspirations,
                latitude=latitude,
                longitude=longitude,
                occasion=occasion,
                ignore_closet=ignore_closet,
            )
            suggestion = self.stylist.generate_outfit_idea(request)
            self.last_suggestion = suggestion
            self.suggestion_index = 0
            log_event(
                LOGGER,
                logging.INFO,
                "app_call_completed",
                method="generate_outfit",
                correlation_id=correlation_id,
                ignore_closet=ignore_closet,
                item_count=len(suggestion.item_ids),
            )
            return suggestion

    def _require_suggestion(self) -> OutfitSuggestion:
        if self.last_suggestion is None:
            raise ValueError("No outfit has been generated yet")
        return self.last_suggestion

    def current_outfit(self) -> Tuple[AlternativeOutfit, List[ClothingItem]]:
        """The outfit on screen and the closet items it still resolves to."""

        outfit = outfit_at(self._require_suggestion(), self.suggestion_index)
        return outfit, resolve_outfit_items(outfit.item_ids, self.closet_items)

    def next_outfit(self) -> Tuple[AlternativeOutfit, List[ClothingItem]]:
        self._require_suggestion()
        self.suggestion_index += 1
        return self.current_outfit()

    def save_inspiration(self, suggestion_index: Optional[int] = None) -> Inspiration:
        """Save the liked outfit with its items copied from the live closet."""

        suggestion = self._require_suggestion()
        index = self.suggestion_index if suggestion_index is None else suggestion_index
        outfit = outfit_at(suggestion, index)
        items = resolve_outfit_items(outfit.item_ids, self.closet_items)
        return self.user_data.add_inspiration(outfit.outfit_description, items)

    # Account

    def checkout_links(self) -> Dict[str, str]:
        return checkout_links(self.user_data.uid)

    def geocode(self, query: str) -> Optional[Tuple[float, float]]:
        """Resolve a manually entered location into coordinates."""

        self.config.require("weather_api_key")
        provider = self.weather_provider
        if not isinstance(provider, OpenWeatherProvider):
            raise MissingCredentialError("Geocoding requires the OpenWeather provider")
        return provider.geocode(query)

    def close(self) -> None:
        self.user_data.close()


__all__ = ["OOTDApp", "OnboardingIncompleteError", "UpgradeRequiredError"]
