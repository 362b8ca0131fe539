"""Shared fakes for provider-free tests."""

import io
import json
from concurrent.futures import Executor, Future
from typing import Any, List, Optional, Sequence

import pytest
from PIL import Image

from logic.image_codec import encode_data_uri
from models.clothing_item import ClothingItem
from ootd_app.app import OOTDApp
from ootd_app.config import AppConfig
from tools.background_removal_client import Prediction
from tools.document_store import InMemoryDocumentStore
from tools.local_storage import InMemoryLocalStorage
from tools.weather_provider import MockWeatherProvider

STATUS_URL = "https://api.replicate.com/v1/predictions/job-1"
OUTPUT_URL = "https://replicate.delivery/job-1/out.png"
TAG_REPLY = json.dumps(
    {
        "category": "top",
        "subCategory": "linen shirt",
        "tags": ["summer"],
        "dominantColors": ["#F5F5DC"],
        "hasPattern": False,
        "patternDescription": "",
    }
)


def png_bytes(size=(64, 32), color=(200, 30, 30, 255)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGBA", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def png_data_uri(size=(64, 32)) -> str:
    return encode_data_uri(png_bytes(size), "image/png")


def make_item(item_id: str, category: str = "top", sub_category: str = "t-shirt", **extra: Any) -> ClothingItem:
    return ClothingItem(
        id=item_id,
        photo_data_uri=png_data_uri((4, 4)),
        category=category,
        sub_category=sub_category,
        tags=extra.pop("tags", ["casual"]),
        dominant_colors=extra.pop("dominant_colors", ["#FFFFFF"]),
        **extra,
    )


class FakeModelClient:
    """Stands in for GenerativeModelClient and records the prompt parts it receives."""

    def __init__(self, reply: str = "", error: Optional[Exception] = None, configured: bool = True) -> None:
        self.reply = reply
        self.error = error
        self._configured = configured
        self.calls: List[List[Any]] = []

    @property
    def configured(self) -> bool:
        return self._configured

    def generate(self, parts: Sequence[Any]) -> str:
        self.calls.append(list(parts))
        if self.error is not None:
            raise self.error
        return self.reply


class FakeReplicateClient:
    """Scripted prediction statuses; the last status repeats once the script runs out."""

    def __init__(self, statuses: Sequence[Prediction], output: bytes = b"") -> None:
        self.statuses = list(statuses)
        self.output = output
        self.submitted: List[str] = []
        self.polls = 0
        self.downloads: List[str] = []

    def submit(self, image_url: str) -> str:
        self.submitted.append(image_url)
        return STATUS_URL

    def poll(self, status_url: str) -> Prediction:
        assert status_url == STATUS_URL
        index = min(self.polls, len(self.statuses) - 1)
        self.polls += 1
        return self.statuses[index]

    def download(self, url: str) -> bytes:
        self.downloads.append(url)
        return self.output


class ImmediateExecutor(Executor):
    """Runs submitted writes inline so persistence effects are visible immediately."""

    def submit(self, fn, *args, **kwargs) -> Future:
        future: Future = Future()
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:  # noqa: BLE001 - surfaced through the future
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future


@pytest.fixture
def immediate_executor() -> ImmediateExecutor:
    return ImmediateExecutor()


def build_app(testing_mode: bool = False, outfit_reply: str = "", **overrides: Any) -> OOTDApp:
    """App with in-memory stores and scripted model replies; no background-removal provider."""

    config = overrides.pop("config", None) or AppConfig(gemini_api_key="test-key", testing_mode=testing_mode)
    options = {
        "local_storage": InMemoryLocalStorage(),
        "document_store": InMemoryDocumentStore(),
        "tagging_client": FakeModelClient(reply=TAG_REPLY),
        "outfit_client": FakeModelClient(reply=outfit_reply),
        "weather_provider": MockWeatherProvider("overcast, 9°C"),
        "executor": ImmediateExecutor(),
    }
    options.update(overrides)
    return OOTDApp(config, **options)


def seed(app: OOTDApp, count: int) -> None:
    for index in range(count):
        app.user_data.add_closet_item(make_item(f"item-{index}"))
