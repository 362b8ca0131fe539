"""Thin wrapper over the Gemini generative model SDK."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

import google.generativeai as genai

from ootd_app.config import MissingCredentialError
from tools.observability import instrument_provider

ContentPart = Union[str, Dict[str, Any]]


def image_part(mime_type: str, data: bytes) -> Dict[str, Any]:
    """Inline image blob accepted by ``generate_content``."""

    return {"mime_type": mime_type, "data": data}


class GenerativeModelClient:
    """Send prompt parts to one Gemini model and return the reply text."""

    def __init__(self, api_key: Optional[str], model_name: str) -> None:
        self.api_key = api_key
        self.model_name = model_name
        self._model: Optional[genai.GenerativeModel] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_model(self) -> genai.GenerativeModel:
        if not self.api_key:
            raise MissingCredentialError(
                "No Gemini API key found. Please set GEMINI_API_KEY in your environment."
            )
        if self._model is None:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self.model_name)
        return self._model

    @instrument_provider("gemini", "generate_content")
    def generate(self, parts: Sequence[ContentPart]) -> str:
        model = self._get_model()
        contents: List[ContentPart] = list(parts)
        response = model.generate_content(contents)
        return response.text or ""


__all__ = ["ContentPart", "GenerativeModelClient", "image_part"]
