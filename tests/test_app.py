"""App wiring: gating, identity switches and saved outfits."""

import json

import pytest

from ootd_app.app import OOTDApp, OnboardingIncompleteError, UpgradeRequiredError
from ootd_app.config import AppConfig, MissingCredentialError

from conftest import TAG_REPLY, FakeModelClient, ImmediateExecutor, build_app, png_data_uri, seed


def test_construction_needs_no_credentials(tmp_path) -> None:
    app = OOTDApp(AppConfig(local_storage_dir=str(tmp_path)), executor=ImmediateExecutor())

    assert app.background_client is None
    assert app.object_storage is None
    assert app.weather_provider is None
    assert app.user_data.backend_kind == "local"
    assert app.user_data.document_store is None


def test_add_item_runs_intake_with_background_fallback() -> None:
    app = build_app()
    photo = png_data_uri()

    item = app.add_closet_item(photo)

    assert item.photo_data_uri == photo
    assert item.sub_category == "linen shirt"
    assert [entry.id for entry in app.closet_items] == [item.id]


def test_tagging_uses_stored_gender() -> None:
    tagger = FakeModelClient(reply=TAG_REPLY)
    app = build_app(tagging_client=tagger)
    app.update_preferences({"gender": "male"})

    app.add_closet_item(png_data_uri())

    assert "User Gender: male" in tagger.calls[0][0]


def test_unsupported_upload_is_rejected() -> None:
    app = build_app()

    with pytest.raises(ValueError):
        app.add_closet_item("data:image/gif;base64,R0lGODlh")


def test_free_limit_requires_upgrade_unless_premium_or_testing() -> None:
    app = build_app()
    seed(app, 5)

    with pytest.raises(UpgradeRequiredError):
        app.add_closet_item(png_data_uri())

    app.sign_in("paid-user", premium=True)
    seed(app, 5)
    assert app.add_closet_item(png_data_uri()).category == "top"

    testing = build_app(testing_mode=True)
    seed(testing, 5)
    assert testing.add_closet_item(png_data_uri()).category == "top"


def test_generation_requires_onboarding_unless_testing_mode() -> None:
    app = build_app(outfit_reply=json.dumps({"itemIds": ["item-0"]}))
    seed(app, 4)

    with pytest.raises(OnboardingIncompleteError):
        app.generate_outfit()

    seed(app, 5)
    assert app.generate_outfit().item_ids == ["item-0"]


def test_generate_sends_sanitized_snapshot_and_weather() -> None:
    outfit_client = FakeModelClient(reply=json.dumps({"itemIds": ["item-1"]}))
    app = build_app(testing_mode=True, outfit_client=outfit_client)
    seed(app, 2)

    app.generate_outfit(latitude=40.0, longitude=-3.7, occasion="  ")

    (prompt,) = outfit_client.calls[0]
    assert "Weather: overcast, 9°C" in prompt
    assert "Occasion" not in prompt
    assert "base64" not in prompt


def test_missing_gemini_key_surfaces_for_outfits() -> None:
    app = build_app(testing_mode=True, outfit_client=FakeModelClient(configured=False))

    with pytest.raises(MissingCredentialError):
        app.generate_outfit()


def test_save_inspiration_copies_live_items_and_skips_stale_ids() -> None:
    reply = {
        "outfitDescription": "Layered neutrals",
        "itemIds": ["item-0", "item-1"],
        "alternativeOutfits": [{"outfitDescription": "Just the tee", "itemIds": ["item-2"], "reason": "Simpler"}],
    }
    app = build_app(testing_mode=True, outfit_reply=json.dumps(reply))
    seed(app, 3)
    app.generate_outfit()
    app.remove_closet_item("item-1")

    outfit, items = app.current_outfit()
    assert outfit.outfit_description == "Layered neutrals"
    assert [item.id for item in items] == ["item-0"]

    saved = app.save_inspiration()
    assert saved.description == "Layered neutrals"
    assert [item.id for item in saved.items] == ["item-0"]

    alternate, _ = app.next_outfit()
    assert alternate.reason == "Simpler"
    assert app.next_outfit()[0].outfit_description == "Layered neutrals"
    assert len(app.user_data.inspirations) == 1


def test_save_without_suggestion_is_an_error() -> None:
    with pytest.raises(ValueError):
        build_app().save_inspiration()


def test_sign_in_and_out_switch_backends_and_links() -> None:
    app = build_app()
    seed(app, 1)

    app.sign_in("user-42")
    assert app.user_data.backend_kind == "remote"
    assert app.closet_items == []
    assert app.checkout_links()["monthly"].endswith("client_reference_id=user-42")

    app.sign_out()
    assert app.user_data.backend_kind == "local"
    assert [item.id for item in app.closet_items] == ["item-0"]
    assert "client_reference_id" not in app.checkout_links()["monthly"]


def test_geocode_requires_weather_key() -> None:
    with pytest.raises(MissingCredentialError, match="OPENWEATHER_API_KEY"):
        build_app().geocode("Paris")
