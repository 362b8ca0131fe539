"""Intake pipeline: background removal, then tagging, then a new closet item."""

from __future__ import annotations

import logging
from typing import Optional

from ootd_app.logging_config import get_logger, log_event, operation_context
from agents.background_remover import BackgroundRemover
from agents.item_tagger import ItemTagger
from logic.image_codec import InvalidDataURIError, decode_data_uri
from models.clothing_item import ClothingItem, new_item_id

logger = get_logger(__name__)


class UnsupportedImageError(ValueError):
    """Raised when an upload is not a PNG, JPEG or WEBP data URI."""


class IntakePipeline:
    """Turns one uploaded photo into a catalogued :class:`ClothingItem`."""

    def __init__(self, background_remover: BackgroundRemover, tagger: ItemTagger) -> None:
        self.background_remover = background_remover
        self.tagger = tagger

    def add_item(self, photo_data_uri: str, gender: Optional[str] = None) -> ClothingItem:
        try:
            decode_data_uri(photo_data_uri)
        except InvalidDataURIError as exc:
            raise UnsupportedImageError(
                "Invalid file type. Please upload a PNG, JPG, or WEBP image."
            ) from exc

        with operation_context("agent:intake.add_item") as correlation_id:
            processed = self.background_remover.remove_background(photo_data_uri)
            tags = self.tagger.tag_clothing_item(processed, gender=gender)
            item = ClothingItem(
                id=new_item_id(),
                photo_data_uri=processed,
                category=tags.category,
                sub_category=tags.sub_category,
                tags=list(tags.tags),
                dominant_colors=list(tags.dominant_colors),
                has_pattern=tags.has_pattern,
                pattern_description=tags.pattern_description or "",
            )
            log_event(
                logger,
                level=logging.INFO,
                event="agent_call_completed",
                agent="intake",
                method="add_item",
                correlation_id=correlation_id,
                background_removed=processed != photo_data_uri,
                category=item.category,
            )
            return item


__all__ = ["IntakePipeline", "UnsupportedImageError"]
