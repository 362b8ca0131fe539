"""Weather lookup by coordinates, used as context for outfit ideas."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from tools.observability import instrument_provider


LOGGER = logging.getLogger(__name__)
CURRENT_WEATHER_URL = "https://api.openweathermap.org/data/2.5/weather"
GEOCODING_URL = "https://api.openweathermap.org/geo/1.0/direct"


class WeatherUnavailableError(RuntimeError):
    """Raised when a weather description cannot be produced."""


class _WeatherCondition(BaseModel):
    description: str = "unknown"


class _Wind(BaseModel):
    speed: float = 0.0


class _Main(BaseModel):
    temp: float
    feels_like: Optional[float] = None
    humidity: Optional[float] = None


class _CurrentWeatherResponse(BaseModel):
    main: _Main
    wind: _Wind = _Wind()
    weather: List[_WeatherCondition] = []


class _GeocodingEntry(BaseModel):
    lat: float
    lon: float
    name: str = ""


_GEOCODING_RESULTS = TypeAdapter(List[_GeocodingEntry])


class WeatherProvider(ABC):
    """Abstract weather provider interface."""

    @abstractmethod
    def describe(self, latitude: float, longitude: float) -> str:
        """Return a short human-readable description of current conditions."""


class OpenWeatherProvider(WeatherProvider):
    """OpenWeather provider with schema validation."""

    def __init__(self, api_key: str | None = None, timeout_seconds: float = 5.0, units: str = "metric") -> None:
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.units = units

    def _unit_symbol(self) -> str:
        return {"metric": "°C", "imperial": "°F"}.get(self.units, "K")

    def _wind_unit(self) -> str:
        return "mph" if self.units == "imperial" else "m/s"

    def _format(self, payload: _CurrentWeatherResponse) -> str:
        condition = payload.weather[0].description if payload.weather else "unknown"
        symbol = self._unit_symbol()
        parts = [f"{condition}, {payload.main.temp:.0f}{symbol}"]
        if payload.main.feels_like is not None:
            parts[0] += f" (feels like {payload.main.feels_like:.0f}{symbol})"
        if payload.main.humidity is not None:
            parts.append(f"humidity {payload.main.humidity:.0f}%")
        parts.append(f"wind {payload.wind.speed:.1f} {self._wind_unit()}")
        return ", ".join(parts)

    @instrument_provider("openweather", "describe")
    def describe(self, latitude: float, longitude: float) -> str:
        if not self.api_key:
            raise WeatherUnavailableError("No weather API key configured")

        params = {
            "lat": latitude,
            "lon": longitude,
            "appid": self.api_key,
            "units": self.units,
        }
        try:
            response = requests.get(CURRENT_WEATHER_URL, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            parsed = _CurrentWeatherResponse.model_validate(response.json())
        except requests.RequestException as exc:
            LOGGER.error("Weather API unreachable", exc_info=exc)
            raise WeatherUnavailableError("Weather API unreachable") from exc
        except (ValidationError, ValueError) as exc:
            LOGGER.error("Weather payload schema validation failed", exc_info=exc)
            raise WeatherUnavailableError("Weather payload was malformed") from exc
        return self._format(parsed)

    @instrument_provider("openweather", "geocode")
    def geocode(self, query: str) -> Optional[Tuple[float, float]]:
        """Resolve a city name typed by the user into coordinates."""

        if not query or not query.strip():
            return None
        if not self.api_key:
            raise WeatherUnavailableError("No weather API key configured")

        params = {"q": query.strip(), "limit": 1, "appid": self.api_key}
        try:
            response = requests.get(GEOCODING_URL, params=params, timeout=self.timeout_seconds)
            response.raise_for_status()
            entries = _GEOCODING_RESULTS.validate_python(response.json())
        except requests.RequestException as exc:
            LOGGER.error("Geocoding API unreachable", exc_info=exc)
            raise WeatherUnavailableError("Geocoding API unreachable") from exc
        except (ValidationError, ValueError) as exc:
            LOGGER.error("Geocoding payload schema validation failed", exc_info=exc)
            raise WeatherUnavailableError("Geocoding payload was malformed") from exc
        if not entries:
            return None
        return entries[0].lat, entries[0].lon


class MockWeatherProvider(WeatherProvider):
    """Offline deterministic weather provider for local runs and tests."""

    def __init__(self, description: str = "clear sky, 18°C") -> None:
        self.description = description
        self.calls: List[Tuple[float, float]] = []

    def describe(self, latitude: float, longitude: float) -> str:
        self.calls.append((latitude, longitude))
        return self.description


__all__ = [
    "MockWeatherProvider",
    "OpenWeatherProvider",
    "WeatherProvider",
    "WeatherUnavailableError",
]
