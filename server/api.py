"""FastAPI server exposing the stylist workflows for deployment."""

import os
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from ootd_app.app import OOTDApp, UpgradeRequiredError
from ootd_app.config import MissingCredentialError
from ootd_app.logging_config import configure_logging, get_logger
from logic.closet_analysis import overall_completion
from tools.weather_provider import WeatherUnavailableError

LOGGER = get_logger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PhotoRequest(_CamelModel):
    """Request payload carrying one uploaded photo."""

    photo_data_uri: str = Field(..., alias="photoDataUri", min_length=1)


class OutfitGenerateRequest(_CamelModel):
    """Request payload for one outfit suggestion."""

    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    occasion: Optional[str] = None
    ignore_closet: bool = Field(False, alias="ignoreCloset")


class InspirationRequest(_CamelModel):
    suggestion_index: Optional[int] = Field(None, alias="suggestionIndex", ge=0)


class IdentityRequest(_CamelModel):
    """Switch between a signed-in user (``uid``) and the guest closet (``null``)."""

    uid: Optional[str] = None
    premium: bool = False


class GeocodeRequest(_CamelModel):
    query: str = Field(..., min_length=1)


def _outfit_payload(app: OOTDApp) -> Dict[str, Any]:
    outfit, items = app.current_outfit()
    return {
        "index": app.suggestion_index,
        "outfit": outfit.to_response(),
        "items": [item.to_document() for item in items],
    }


def create_api(ootd_app: OOTDApp | None = None) -> FastAPI:
    """Build the API around ``ootd_app``; the default app is created on first request."""

    holder: Dict[str, OOTDApp] = {}
    if ootd_app is not None:
        holder["app"] = ootd_app

    def get_ootd_app() -> OOTDApp:
        if "app" not in holder:
            holder["app"] = OOTDApp()
        return holder["app"]

    api = FastAPI(title="OOTD Stylist", version="0.1.0")

    def _error(status_code: int) -> Callable[[Request, Exception], JSONResponse]:
        def handler(_request: Request, exc: Exception) -> JSONResponse:
            return JSONResponse(status_code=status_code, content={"detail": str(exc)})

        return handler

    api.add_exception_handler(MissingCredentialError, _error(503))
    api.add_exception_handler(UpgradeRequiredError, _error(402))
    api.add_exception_handler(WeatherUnavailableError, _error(503))
    api.add_exception_handler(ValueError, _error(400))

    @api.exception_handler(RequestValidationError)
    async def validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})

    @api.get("/healthz")
    async def healthcheck() -> dict:
        """Lightweight readiness probe for Cloud Run."""

        config = get_ootd_app().config
        return {
            "status": "ok",
            "service": "ootd-stylist",
            "environment": config.environment or "local",
            "tagging_model": config.tagging_model,
            "outfit_model": config.outfit_model,
        }

    @api.post("/remove-background")
    def remove_background(request: PhotoRequest) -> dict:
        """Return a transparent-background copy of the photo, or the photo itself."""

        return {"photoDataUri": get_ootd_app().remove_background(request.photo_data_uri)}

    @api.post("/closet/items")
    def add_closet_item(request: PhotoRequest) -> dict:
        return get_ootd_app().add_closet_item(request.photo_data_uri).to_document()

    @api.delete("/closet/items/{item_id}")
    def remove_closet_item(item_id: str) -> dict:
        get_ootd_app().remove_closet_item(item_id)
        return {"status": "ok", "id": item_id}

    @api.get("/closet")
    def get_closet() -> dict:
        app = get_ootd_app()
        organized = app.organized_closet()
        return {
            "loading": app.user_data.loading,
            "items": [item.to_document() for item in app.closet_items],
            "organized": {
                group: {sub: [item.id for item in items] for sub, items in subs.items()}
                for group, subs in organized.items()
            },
        }

    @api.get("/closet/gaps")
    def get_closet_gaps() -> dict:
        app = get_ootd_app()
        return {
            "overallCompletion": overall_completion(app.closet_items),
            "categories": [gap.to_dict() for gap in app.closet_gaps()],
        }

    @api.post("/outfits/generate")
    def generate_outfit(request: OutfitGenerateRequest) -> dict:
        """Generate an outfit for the current closet, weather and occasion."""

        suggestion = get_ootd_app().generate_outfit(
            latitude=request.latitude,
            longitude=request.longitude,
            occasion=request.occasion,
            ignore_closet=request.ignore_closet,
        )
        return suggestion.to_response()

    @api.get("/outfits/current")
    def current_outfit() -> dict:
        return _outfit_payload(get_ootd_app())

    @api.post("/outfits/next")
    def next_outfit() -> dict:
        app = get_ootd_app()
        app.next_outfit()
        return _outfit_payload(app)

    @api.get("/inspirations")
    def list_inspirations() -> dict:
        return {"inspirations": [entry.to_document() for entry in get_ootd_app().user_data.inspirations]}

    @api.post("/inspirations")
    def save_inspiration(request: InspirationRequest) -> dict:
        return get_ootd_app().save_inspiration(request.suggestion_index).to_document()

    @api.get("/preferences")
    def get_preferences() -> dict:
        return get_ootd_app().preferences.to_document()

    @api.patch("/preferences")
    def update_preferences(updates: Dict[str, Any]) -> dict:
        return get_ootd_app().update_preferences(updates).to_document()

    @api.post("/identity")
    def set_identity(request: IdentityRequest) -> dict:
        app = get_ootd_app()
        if request.uid:
            app.sign_in(request.uid, premium=request.premium)
        else:
            app.sign_out()
        return {"signedIn": bool(request.uid), "backend": app.user_data.backend_kind}

    @api.get("/checkout/links")
    def get_checkout_links() -> dict:
        return get_ootd_app().checkout_links()

    @api.post("/geocode")
    def geocode(request: GeocodeRequest) -> dict:
        coordinates = get_ootd_app().geocode(request.query)
        if coordinates is None:
            raise HTTPException(status_code=404, detail="Location not found")
        latitude, longitude = coordinates
        return {"latitude": latitude, "longitude": longitude}

    return api


configure_logging()
app = create_api()


def get_app() -> FastAPI:
    """Expose the FastAPI instance for ASGI servers."""

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("server.api:app", host="0.0.0.0", port=int(os.getenv("PORT", "8080")), reload=False)
