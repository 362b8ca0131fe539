"""Background-removal workflow and provider client coverage."""

import base64
import io
from typing import List

import pytest
import requests
from PIL import Image

from agents.background_remover import BackgroundRemover
from logic.image_codec import decode_data_uri, encode_data_uri
from logic.polling import PollPolicy
from tools.background_removal_client import BackgroundRemovalError, Prediction, ReplicateClient
from tools.object_storage import InMemoryObjectStorage

from conftest import OUTPUT_URL, FakeReplicateClient, png_bytes, png_data_uri


def _remover(client, storage=None, sleeps: List[float] | None = None, **kwargs) -> BackgroundRemover:
    recorded = sleeps if sleeps is not None else []
    return BackgroundRemover(
        storage=storage if storage is not None else InMemoryObjectStorage(),
        client=client,
        sleep=recorded.append,
        **kwargs,
    )


def _image_size(data_uri: str):
    with Image.open(io.BytesIO(decode_data_uri(data_uri).data)) as image:
        return image.size


def test_successful_removal_uploads_polls_and_resizes() -> None:
    storage = InMemoryObjectStorage()
    client = FakeReplicateClient(
        [Prediction(status="starting"), Prediction(status="processing"), Prediction(status="succeeded", output=OUTPUT_URL)],
        output=png_bytes((1024, 512)),
    )
    sleeps: List[float] = []
    original = png_data_uri((40, 40))

    result = _remover(client, storage, sleeps).remove_background(original)

    assert result.startswith("data:image/png;base64,")
    assert result != original
    assert _image_size(result) == (512, 256)
    assert sleeps == [1.5, 1.5]
    assert client.downloads == [OUTPUT_URL]

    (key,) = storage.objects.keys()
    assert key.startswith("background-removal/")
    assert key.endswith(".png")
    assert client.submitted == [f"{storage.base_url}/{key}"]


def test_jpeg_uploads_use_jpg_extension() -> None:
    storage = InMemoryObjectStorage()
    client = FakeReplicateClient([Prediction(status="failed", error="boom")])
    jpeg = encode_data_uri(png_bytes(), "image/jpeg")

    _remover(client, storage).remove_background(jpeg)

    (key,) = storage.objects.keys()
    assert key.endswith(".jpg")


def test_small_outputs_are_not_enlarged() -> None:
    client = FakeReplicateClient([Prediction(status="succeeded", output=[OUTPUT_URL])], output=png_bytes((100, 50)))

    result = _remover(client).remove_background(png_data_uri())

    assert _image_size(result) == (100, 50)


def test_failed_prediction_returns_original() -> None:
    client = FakeReplicateClient([Prediction(status="processing"), Prediction(status="failed", error="model error")])
    original = png_data_uri()

    assert _remover(client).remove_background(original) == original
    assert client.downloads == []


def test_canceled_prediction_returns_original() -> None:
    client = FakeReplicateClient([Prediction(status="canceled")])
    original = png_data_uri()

    assert _remover(client).remove_background(original) == original


def test_timeout_returns_original_after_twenty_polls() -> None:
    client = FakeReplicateClient([Prediction(status="processing")])
    sleeps: List[float] = []
    original = png_data_uri()

    assert _remover(client, sleeps=sleeps).remove_background(original) == original
    assert client.polls == 20
    assert len(sleeps) == 20


def test_missing_token_returns_original_without_uploading() -> None:
    storage = InMemoryObjectStorage()
    original = png_data_uri()

    assert BackgroundRemover(storage=storage, client=None).remove_background(original) == original
    assert storage.objects == {}


def test_oversized_result_returns_original() -> None:
    client = FakeReplicateClient([Prediction(status="succeeded", output=OUTPUT_URL)], output=png_bytes((300, 300)))
    original = png_data_uri()

    result = _remover(client, max_data_uri_length=100).remove_background(original)

    assert result == original


def test_invalid_data_uri_returns_input_unchanged() -> None:
    client = FakeReplicateClient([Prediction(status="succeeded", output=OUTPUT_URL)])

    assert _remover(client).remove_background("not-a-data-uri") == "not-a-data-uri"
    assert client.submitted == []


def test_poll_policy_is_configurable() -> None:
    client = FakeReplicateClient([Prediction(status="processing")])

    _remover(client, poll_policy=PollPolicy(max_attempts=3, interval_seconds=0)).remove_background(png_data_uri())

    assert client.polls == 3


class _FakeResponse:
    def __init__(self, payload=None, status_code: int = 200, content: bytes = b"") -> None:
        self.payload = payload
        self.status_code = status_code
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.payload


class _FakeSession:
    def __init__(self, post_response: _FakeResponse, get_response: _FakeResponse | None = None) -> None:
        self.post_response = post_response
        self.get_response = get_response
        self.posts: List[dict] = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.posts.append({"url": url, "json": json, "headers": headers})
        return self.post_response

    def get(self, url, headers=None, timeout=None):
        return self.get_response


def test_replicate_client_submits_version_and_returns_status_url() -> None:
    session = _FakeSession(_FakeResponse({"id": "job-1", "urls": {"get": "https://api.replicate.com/v1/predictions/job-1"}}))
    client = ReplicateClient(api_token="r8_token", session=session)

    status_url = client.submit("https://storage.googleapis.com/bucket/key.png")

    assert status_url.endswith("/job-1")
    sent = session.posts[0]
    assert sent["json"]["input"] == {"image": "https://storage.googleapis.com/bucket/key.png"}
    assert sent["json"]["version"] == client.version
    assert sent["headers"]["Authorization"] == "Token r8_token"


def test_replicate_client_requires_status_url() -> None:
    client = ReplicateClient(api_token="r8_token", session=_FakeSession(_FakeResponse({"id": "job-1"})))

    with pytest.raises(BackgroundRemovalError):
        client.submit("https://example.com/image.png")


def test_replicate_client_wraps_http_errors() -> None:
    client = ReplicateClient(api_token="r8_token", session=_FakeSession(_FakeResponse({}, status_code=401)))

    with pytest.raises(BackgroundRemovalError):
        client.submit("https://example.com/image.png")


def test_replicate_client_parses_poll_status() -> None:
    session = _FakeSession(
        _FakeResponse({}), _FakeResponse({"status": "succeeded", "output": [OUTPUT_URL, "extra"]})
    )
    prediction = ReplicateClient(api_token="r8_token", session=session).poll("https://api.replicate.com/x")

    assert prediction.succeeded
    assert prediction.output_url == OUTPUT_URL


def test_null_status_keeps_polling() -> None:
    session = _FakeSession(_FakeResponse({}), _FakeResponse({"status": None, "output": None}))
    prediction = ReplicateClient(api_token="r8_token", session=session).poll("https://api.replicate.com/x")

    assert prediction.status is None
    assert not prediction.succeeded
    assert not prediction.failed

    client = FakeReplicateClient(
        [prediction, Prediction(status="succeeded", output=OUTPUT_URL)],
        output=png_bytes((16, 16)),
    )
    sleeps: List[float] = []

    result = _remover(client, sleeps=sleeps).remove_background(png_data_uri((40, 40)))

    assert _image_size(result) == (16, 16)
    assert client.polls == 2
    assert sleeps == [1.5]


def test_replicate_client_requires_token() -> None:
    with pytest.raises(ValueError):
        ReplicateClient(api_token="")


def test_decode_rejects_unsupported_mime_type() -> None:
    payload = base64.b64encode(b"GIF89a").decode("ascii")

    with pytest.raises(ValueError):
        decode_data_uri(f"data:image/gif;base64,{payload}")
