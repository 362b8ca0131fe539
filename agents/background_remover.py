"""Background removal through a hosted inference job.

The workflow uploads the photo so the provider can fetch it, submits a job,
polls its status URL on a fixed schedule, then downloads and shrinks the
transparent PNG. Every failure degrades to returning the caller's original
image.
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable, Optional

from ootd_app.logging_config import get_logger, log_event, operation_context
from logic.image_codec import (
    MAX_DATA_URI_LENGTH,
    MAX_DIMENSION,
    decode_data_uri,
    encode_data_uri,
    resize_to_png,
)
from logic.polling import PollPolicy, PollStatus, poll_until
from tools.background_removal_client import BackgroundRemovalError, Prediction, ReplicateClient
from tools.object_storage import ObjectStorage

LOGGER = get_logger(__name__)
STORAGE_PREFIX = "background-removal"


def _classify(prediction: Prediction) -> PollStatus:
    if prediction.succeeded:
        return "succeeded"
    if prediction.failed:
        return "failed"
    return "pending"


def unique_storage_key(extension: str) -> str:
    return f"{STORAGE_PREFIX}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:7]}.{extension}"


class BackgroundRemover:
    """Produce a transparent-background copy of a clothing photo, or the original."""

    def __init__(
        self,
        storage: Optional[ObjectStorage],
        client: Optional[ReplicateClient],
        poll_policy: PollPolicy | None = None,
        sleep: Callable[[float], None] = time.sleep,
        max_dimension: int = MAX_DIMENSION,
        max_data_uri_length: int = MAX_DATA_URI_LENGTH,
    ) -> None:
        self.storage = storage
        self.client = client
        self.poll_policy = poll_policy or PollPolicy()
        self.sleep = sleep
        self.max_dimension = max_dimension
        self.max_data_uri_length = max_data_uri_length

    def remove_background(self, photo_data_uri: str) -> str:
        """Return the processed data URI, or ``photo_data_uri`` unchanged on any failure."""

        with operation_context("agent:background_remover.remove_background") as correlation_id:
            try:
                result = self._run(photo_data_uri)
            except Exception as exc:
                log_event(
                    LOGGER,
                    logging.WARNING,
                    "background_removal_fallback",
                    correlation_id=correlation_id,
                    reason=type(exc).__name__,
                    details=str(exc),
                )
                return photo_data_uri

            log_event(
                LOGGER,
                logging.INFO,
                "background_removal_completed",
                correlation_id=correlation_id,
                result_length=len(result),
            )
            return result

    def _run(self, photo_data_uri: str) -> str:
        if self.client is None:
            raise BackgroundRemovalError("REPLICATE_API_TOKEN is not set in the environment.")
        if self.storage is None:
            raise BackgroundRemovalError("No object storage configured for background removal.")

        image = decode_data_uri(photo_data_uri)
        key = unique_storage_key(image.extension)
        image_url = self.storage.upload(key, image.data, content_type=image.mime_type, public=True)

        status_url = self.client.submit(image_url)
        outcome = poll_until(
            fetch=lambda: self.client.poll(status_url),
            classify=_classify,
            policy=self.poll_policy,
            sleep=self.sleep,
        )
        if outcome.status == "failed":
            raise BackgroundRemovalError("Background removal failed.")
        if not outcome.succeeded or outcome.payload is None or outcome.payload.output_url is None:
            raise BackgroundRemovalError(f"Background removal timed out after {outcome.attempts} attempts.")

        downloaded = self.client.download(outcome.payload.output_url)
        result = encode_data_uri(resize_to_png(downloaded, self.max_dimension), "image/png")
        if len(result) > self.max_data_uri_length:
            raise BackgroundRemovalError(
                f"Processed image is too large to analyze ({len(result)} characters)."
            )
        return result


__all__ = ["BackgroundRemover", "STORAGE_PREFIX", "unique_storage_key"]
