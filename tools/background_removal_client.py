"""HTTP client for the hosted background-removal model."""

from __future__ import annotations

import logging
from typing import List, Optional, Union

import requests
from pydantic import BaseModel, ValidationError

from tools.observability import instrument_provider

LOGGER = logging.getLogger(__name__)

PREDICTIONS_URL = "https://api.replicate.com/v1/predictions"
# 851-labs/background-remover
BACKGROUND_REMOVER_VERSION = "a029dff38972b5fda4ec5d75d7d1cd25aeff621d2cf4946a41055d7db66b80bc"
FAILED_STATUSES = {"failed", "canceled"}


class BackgroundRemovalError(RuntimeError):
    """Raised for any provider-side failure of a background-removal job."""


class _PredictionUrls(BaseModel):
    get: Optional[str] = None


class _SubmitResponse(BaseModel):
    urls: _PredictionUrls = _PredictionUrls()


class Prediction(BaseModel):
    """Status snapshot of one inference job."""

    status: Optional[str] = "starting"
    output: Union[str, List[str], None] = None
    error: Optional[str] = None

    @property
    def output_url(self) -> Optional[str]:
        if isinstance(self.output, list):
            return self.output[0] if self.output else None
        return self.output or None

    @property
    def succeeded(self) -> bool:
        return self.status == "succeeded" and self.output_url is not None

    @property
    def failed(self) -> bool:
        return self.status in FAILED_STATUSES


class ReplicateClient:
    """Submit, poll and download background-removal predictions."""

    def __init__(
        self,
        api_token: str,
        version: str = BACKGROUND_REMOVER_VERSION,
        timeout_seconds: float = 30.0,
        session: requests.Session | None = None,
    ) -> None:
        if not api_token:
            raise ValueError("api_token is required for the background-removal provider")
        self.api_token = api_token
        self.version = version
        self.timeout_seconds = timeout_seconds
        self.session = session or requests.Session()

    def _headers(self) -> dict:
        return {"Authorization": f"Token {self.api_token}"}

    @instrument_provider("replicate", "submit")
    def submit(self, image_url: str) -> str:
        """Start a prediction for ``image_url`` and return its status URL."""

        try:
            response = self.session.post(
                PREDICTIONS_URL,
                json={"version": self.version, "input": {"image": image_url}},
                headers={**self._headers(), "Content-Type": "application/json"},
                timeout=self.timeout_seconds,
            )
            response.raise_for_status()
            parsed = _SubmitResponse.model_validate(response.json())
        except requests.RequestException as exc:
            raise BackgroundRemovalError(f"Failed to start background removal prediction: {exc}") from exc
        except (ValidationError, ValueError) as exc:
            raise BackgroundRemovalError("Prediction response was malformed") from exc
        if not parsed.urls.get:
            raise BackgroundRemovalError("Failed to start background removal prediction.")
        return parsed.urls.get

    def poll(self, status_url: str) -> Prediction:
        try:
            response = self.session.get(status_url, headers=self._headers(), timeout=self.timeout_seconds)
            response.raise_for_status()
            return Prediction.model_validate(response.json())
        except requests.RequestException as exc:
            raise BackgroundRemovalError(f"Polling prediction failed: {exc}") from exc
        except (ValidationError, ValueError) as exc:
            raise BackgroundRemovalError("Prediction status was malformed") from exc

    @instrument_provider("replicate", "download")
    def download(self, url: str) -> bytes:
        try:
            response = self.session.get(url, timeout=self.timeout_seconds)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise BackgroundRemovalError(f"Downloading result image failed: {exc}") from exc
        return response.content


__all__ = [
    "BACKGROUND_REMOVER_VERSION",
    "BackgroundRemovalError",
    "Prediction",
    "ReplicateClient",
]
