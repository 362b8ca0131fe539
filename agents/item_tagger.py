"""Vision-model tagging of a single clothing photo."""

from __future__ import annotations

import logging
from typing import Optional

from ootd_app.logging_config import get_logger, log_event, operation_context
from logic.image_codec import decode_data_uri
from logic.prompts import tagging_prompt
from logic.validation import TagResult, extract_json_object
from tools.genai_client import GenerativeModelClient, image_part

LOGGER = get_logger(__name__)


class ItemTagger:
    """Classify category, colors and pattern; never raises."""

    def __init__(self, model_client: GenerativeModelClient) -> None:
        self.model_client = model_client

    def tag_clothing_item(self, photo_data_uri: str, gender: Optional[str] = None) -> TagResult:
        with operation_context("agent:item_tagger.tag_clothing_item") as correlation_id:
            try:
                image = decode_data_uri(photo_data_uri)
                reply = self.model_client.generate(
                    [tagging_prompt(gender), image_part(image.mime_type, image.data)]
                )
                result = TagResult.from_model_payload(extract_json_object(reply))
            except Exception as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "tagging_fallback",
                    correlation_id=correlation_id,
                    reason=type(exc).__name__,
                    details=str(exc),
                )
                return TagResult.unknown()

            log_event(
                LOGGER,
                logging.INFO,
                "tagging_completed",
                correlation_id=correlation_id,
                category=result.category,
                tag_count=len(result.tags),
            )
            return result


__all__ = ["ItemTagger"]
