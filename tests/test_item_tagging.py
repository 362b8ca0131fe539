"""Vision tagging and reply validation."""

import json

import pytest

from agents.item_tagger import ItemTagger
from logic.prompts import tagging_prompt
from logic.validation import ModelReplyError, TagResult, extract_json_object
from ootd_app.config import MissingCredentialError

from conftest import FakeModelClient, png_data_uri

VALID_REPLY = {
    "category": "top",
    "subCategory": "crew neck t-shirt",
    "tags": ["casual", "cotton", 3],
    "dominantColors": ["#FFFFFF", "white"],
    "hasPattern": False,
    "patternDescription": "",
}


def test_tagger_parses_json_embedded_in_prose() -> None:
    client = FakeModelClient(reply=f"Sure! Here is the analysis:\n```json\n{json.dumps(VALID_REPLY)}\n```")

    result = ItemTagger(client).tag_clothing_item(png_data_uri(), gender="female")

    assert result.category == "top"
    assert result.sub_category == "crew neck t-shirt"
    assert result.tags == ["casual", "cotton"]
    assert result.dominant_colors == ["#FFFFFF"]
    assert result.has_pattern is False

    prompt, image = client.calls[0]
    assert "User Gender: female" in prompt
    assert image["mime_type"] == "image/png"
    assert isinstance(image["data"], bytes)


def test_tagger_prompt_without_gender_uses_general_categories() -> None:
    assert "Not specified" in tagging_prompt(None)
    assert "Not specified" in tagging_prompt("prefer-not-to-say")
    assert "non-binary-specific" in tagging_prompt("non-binary")


def test_missing_fields_are_defaulted() -> None:
    client = FakeModelClient(reply='{"category": "shoes", "hasPattern": "yes", "patternDescription": 5}')

    result = ItemTagger(client).tag_clothing_item(png_data_uri())

    assert result.category == "shoes"
    assert result.sub_category == "unknown"
    assert result.tags == []
    assert result.dominant_colors == []
    assert result.has_pattern is False
    assert result.pattern_description == ""


@pytest.mark.parametrize(
    "client",
    [
        FakeModelClient(reply="I could not identify the clothing item."),
        FakeModelClient(reply="{not json}"),
        FakeModelClient(error=RuntimeError("quota exceeded")),
        FakeModelClient(error=MissingCredentialError("no key"), configured=False),
    ],
)
def test_tagger_degrades_to_unknown(client: FakeModelClient) -> None:
    result = ItemTagger(client).tag_clothing_item(png_data_uri())

    assert result == TagResult.unknown()
    assert result.to_response() == {
        "category": "unknown",
        "subCategory": "unknown",
        "tags": [],
        "dominantColors": [],
        "hasPattern": False,
        "patternDescription": "",
    }


def test_invalid_photo_degrades_without_calling_the_model() -> None:
    client = FakeModelClient(reply=json.dumps(VALID_REPLY))

    assert ItemTagger(client).tag_clothing_item("data:text/plain;base64,aGk=") == TagResult.unknown()
    assert client.calls == []


def test_extract_json_object_is_greedy_between_outer_braces() -> None:
    text = 'prefix {"a": {"b": 1}} suffix'
    assert extract_json_object(text) == {"a": {"b": 1}}

    with pytest.raises(ModelReplyError):
        extract_json_object('first {"a": 1} then {"b": 2}')
    with pytest.raises(ModelReplyError):
        extract_json_object("")
    with pytest.raises(ModelReplyError):
        extract_json_object("[1, 2]")
