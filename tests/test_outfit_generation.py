"""Outfit-idea generation, fallbacks and alternate cycling."""

import json

import pytest

from agents.outfit_stylist_agent import (
    OutfitStylist,
    cycle_outfits,
    outfit_at,
    resolve_outfit_items,
    snapshot_request,
)
from logic.prompts import WEATHER_UNAVAILABLE
from logic.validation import FALLBACK_DESCRIPTION, OutfitSuggestion
from models.clothing_item import Inspiration
from ootd_app.config import MissingCredentialError
from tools.weather_provider import MockWeatherProvider, WeatherProvider, WeatherUnavailableError

from conftest import FakeModelClient, make_item

CLOSET = [
    make_item("tee", "top", "white t-shirt", tags=["casual", "cotton"]),
    make_item("jeans", "bottom", "blue jeans", dominant_colors=["#1F3A93"]),
    make_item("sneakers", "shoes", "white sneakers"),
    make_item("blazer", "outerwear", "navy blazer"),
]

BRUNCH_REPLY = {
    "outfitDescription": "A relaxed white tee with blue jeans and clean sneakers suits a sunny brunch.",
    "itemIds": ["tee", "jeans", "sneakers", "ghost"],
    "missingItems": ["sunglasses", {"name": "straw hat", "description": "Shade for the terrace"}],
    "weatherWarnings": [],
    "alternativeOutfits": [
        {"outfitDescription": "Smarter take", "itemIds": ["tee", "blazer", "missing"], "reason": "Adds polish"},
    ],
}


class _BrokenWeather(WeatherProvider):
    def describe(self, latitude: float, longitude: float) -> str:
        raise WeatherUnavailableError("Weather API unreachable")


def test_brunch_outfit_uses_weather_occasion_and_closet_ids() -> None:
    client = FakeModelClient(reply="Here you go: " + json.dumps(BRUNCH_REPLY))
    weather = MockWeatherProvider("clear sky, 21°C")
    request = snapshot_request(CLOSET, latitude=48.85, longitude=2.35, occasion="brunch")

    suggestion = OutfitStylist(client, weather).generate_outfit_idea(request)

    assert suggestion.item_ids == ["tee", "jeans", "sneakers"]
    assert suggestion.alternative_outfits[0].item_ids == ["tee", "blazer"]
    assert [item.name for item in suggestion.missing_items] == ["sunglasses", "straw hat"]
    assert weather.calls == [(48.85, 2.35)]

    (prompt,) = client.calls[0]
    assert "Weather: clear sky, 21°C" in prompt
    assert "Occasion: brunch" in prompt
    assert "- ID: tee, Category: top, Item: white t-shirt" in prompt
    assert "data:image" not in prompt


def test_missing_credentials_raise_before_any_call() -> None:
    client = FakeModelClient(reply=json.dumps(BRUNCH_REPLY), configured=False)
    weather = MockWeatherProvider()

    with pytest.raises(MissingCredentialError):
        OutfitStylist(client, weather).generate_outfit_idea(snapshot_request(CLOSET, latitude=1.0, longitude=2.0))

    assert client.calls == []
    assert weather.calls == []


@pytest.mark.parametrize(
    "client",
    [
        FakeModelClient(reply="Sorry, I cannot help with that."),
        FakeModelClient(error=RuntimeError("model overloaded")),
    ],
)
def test_unusable_reply_yields_fallback_with_first_two_ids(client: FakeModelClient) -> None:
    suggestion = OutfitStylist(client).generate_outfit_idea(snapshot_request(CLOSET))

    assert suggestion.outfit_description == FALLBACK_DESCRIPTION
    assert suggestion.item_ids == ["tee", "jeans"]
    assert suggestion.missing_items == []
    assert suggestion.alternative_outfits == []


def test_empty_closet_switches_to_general_advice() -> None:
    reply = {"outfitDescription": "Start with a white tee and jeans.", "itemIds": ["tee"], "missingItems": ["white t-shirt"]}
    client = FakeModelClient(reply=json.dumps(reply))

    suggestion = OutfitStylist(client).generate_outfit_idea(snapshot_request([]))

    assert suggestion.item_ids == []
    assert suggestion.missing_items[0].name == "white t-shirt"
    (prompt,) = client.calls[0]
    assert "CREATE GENERAL OUTFIT" in prompt
    assert "Weather: " + WEATHER_UNAVAILABLE in prompt


def test_reply_without_json_and_no_closet_yields_empty_fallback() -> None:
    client = FakeModelClient(reply="I would suggest something comfortable.")

    suggestion = OutfitStylist(client).generate_outfit_idea(snapshot_request([]))

    assert suggestion.outfit_description == FALLBACK_DESCRIPTION
    assert suggestion.item_ids == []
    assert suggestion.missing_items == []
    assert suggestion.weather_warnings == []
    assert suggestion.alternative_outfits == []


def test_ignore_closet_sends_no_inventory() -> None:
    client = FakeModelClient(reply=json.dumps({"outfitDescription": "General idea"}))

    OutfitStylist(client).generate_outfit_idea(snapshot_request(CLOSET, ignore_closet=True))

    (prompt,) = client.calls[0]
    assert "Available Items" not in prompt
    assert "CREATE GENERAL OUTFIT" in prompt


def test_weather_failure_is_not_fatal() -> None:
    client = FakeModelClient(reply=json.dumps(BRUNCH_REPLY))

    suggestion = OutfitStylist(client, _BrokenWeather()).generate_outfit_idea(
        snapshot_request(CLOSET, latitude=10.0, longitude=10.0)
    )

    assert suggestion.item_ids == ["tee", "jeans", "sneakers"]
    assert f"Weather: {WEATHER_UNAVAILABLE}" in client.calls[0][0]


def test_zero_coordinates_still_look_up_weather() -> None:
    weather = MockWeatherProvider()
    client = FakeModelClient(reply=json.dumps(BRUNCH_REPLY))

    OutfitStylist(client, weather).generate_outfit_idea(snapshot_request(CLOSET, latitude=0.0, longitude=0.0))

    assert weather.calls == [(0.0, 0.0)]


def test_inspirations_are_sent_as_descriptions_without_images() -> None:
    liked = Inspiration(id="insp-1", description="Monochrome navy layers", items=[CLOSET[3]])
    client = FakeModelClient(reply=json.dumps(BRUNCH_REPLY))

    request = snapshot_request(CLOSET, inspirations=[liked])
    OutfitStylist(client).generate_outfit_idea(request)

    assert "Style Inspiration: Monochrome navy layers" in client.calls[0][0]
    assert request.inspiration_items[0].items[0].id == "blazer"


def test_out_of_range_coordinates_are_rejected() -> None:
    with pytest.raises(ValueError):
        snapshot_request(CLOSET, latitude=120.0, longitude=0.0)


def test_cycling_wraps_around_and_skips_stale_ids() -> None:
    suggestion = OutfitSuggestion.from_model_payload(BRUNCH_REPLY, ["tee", "jeans", "sneakers", "blazer"])

    options = list(cycle_outfits(suggestion))
    assert len(options) == 2
    assert options[0].reason == "Primary suggestion"
    assert outfit_at(suggestion, 2).item_ids == options[0].item_ids

    live_closet = [item for item in CLOSET if item.id != "jeans"]
    resolved = resolve_outfit_items(outfit_at(suggestion, 0).item_ids, live_closet)
    assert [item.id for item in resolved] == ["tee", "sneakers"]
