"""Pydantic schemas and helpers for validating free-text model replies.

Both AI workflows receive prose that is expected to embed one JSON object.
Parsing happens once per workflow: extract the object, then validate it into
a schema whose validators substitute a default for anything missing or
malformed, so callers never observe partial data.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator

UNKNOWN_LABEL = "unknown"
PLACEHOLDER_DESCRIPTION = "A stylish outfit suggestion"
FALLBACK_DESCRIPTION = "A stylish outfit suggestion based on your preferences and available items."


class ModelReplyError(ValueError):
    """Raised when a model reply does not contain a parseable JSON object."""


def extract_json_object(text: str | None) -> Dict[str, Any]:
    """Parse the span from the first ``{`` through the last ``}`` of ``text``."""

    if not text:
        raise ModelReplyError("Model reply was empty")
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise ModelReplyError("Failed to find a JSON object in the model reply")
    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        raise ModelReplyError(f"Failed to parse model reply as JSON: {exc.msg}") from exc
    if not isinstance(parsed, dict):
        raise ModelReplyError("Model reply JSON is not an object")
    return parsed


def _strings(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, str)]


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


class _ReplyModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_response(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class TagResult(_ReplyModel):
    """Best-effort classification of one clothing photo."""

    category: str = UNKNOWN_LABEL
    sub_category: str = Field(UNKNOWN_LABEL, alias="subCategory")
    tags: List[str] = Field(default_factory=list)
    dominant_colors: List[str] = Field(default_factory=list, alias="dominantColors")
    has_pattern: bool = Field(False, alias="hasPattern")
    pattern_description: str = Field("", alias="patternDescription")

    @field_validator("category", "sub_category", mode="before")
    @classmethod
    def _label(cls, value: Any) -> str:
        return _text(value, UNKNOWN_LABEL)

    @field_validator("tags", mode="before")
    @classmethod
    def _tags(cls, value: Any) -> List[str]:
        return _strings(value)

    @field_validator("dominant_colors", mode="before")
    @classmethod
    def _hex_colors(cls, value: Any) -> List[str]:
        return [color for color in _strings(value) if color.startswith("#")]

    @field_validator("has_pattern", mode="before")
    @classmethod
    def _flag(cls, value: Any) -> bool:
        return value if isinstance(value, bool) else False

    @field_validator("pattern_description", mode="before")
    @classmethod
    def _pattern(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @classmethod
    def unknown(cls) -> "TagResult":
        return cls()

    @classmethod
    def from_model_payload(cls, payload: Dict[str, Any]) -> "TagResult":
        return cls.model_validate(payload)


class MissingItem(_ReplyModel):
    """A wardrobe item the stylist recommends adding."""

    name: str
    description: str = ""
    image_url: str = Field("", alias="imageUrl")

    @field_validator("description", "image_url", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""


class AlternativeOutfit(_ReplyModel):
    outfit_description: str = Field("", alias="outfitDescription")
    item_ids: List[str] = Field(default_factory=list, alias="itemIds")
    reason: str = ""

    @field_validator("outfit_description", "reason", mode="before")
    @classmethod
    def _optional_text(cls, value: Any) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("item_ids", mode="before")
    @classmethod
    def _ids(cls, value: Any) -> List[str]:
        return _strings(value)


class OutfitSuggestion(_ReplyModel):
    """Structured outfit idea with optional gap notes and alternates."""

    outfit_description: str = Field(PLACEHOLDER_DESCRIPTION, alias="outfitDescription")
    item_ids: List[str] = Field(default_factory=list, alias="itemIds")
    missing_items: List[MissingItem] = Field(default_factory=list, alias="missingItems")
    weather_warnings: List[str] = Field(default_factory=list, alias="weatherWarnings")
    alternative_outfits: List[AlternativeOutfit] = Field(default_factory=list, alias="alternativeOutfits")

    @field_validator("outfit_description", mode="before")
    @classmethod
    def _description(cls, value: Any) -> str:
        return _text(value, PLACEHOLDER_DESCRIPTION)

    @field_validator("item_ids", "weather_warnings", mode="before")
    @classmethod
    def _string_members(cls, value: Any) -> List[str]:
        return _strings(value)

    @field_validator("missing_items", mode="before")
    @classmethod
    def _missing(cls, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return []
        entries: List[Dict[str, Any]] = []
        for entry in value:
            if isinstance(entry, str) and entry.strip():
                entries.append({"name": entry.strip()})
            elif isinstance(entry, dict) and isinstance(entry.get("name"), str) and entry["name"].strip():
                entries.append(entry)
        return entries

    @field_validator("alternative_outfits", mode="before")
    @classmethod
    def _alternatives(cls, value: Any) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return []
        return [entry for entry in value if isinstance(entry, dict)]

    @classmethod
    def from_model_payload(
        cls, payload: Dict[str, Any], catalog_ids: Optional[Sequence[str]] = None
    ) -> "OutfitSuggestion":
        """Validate a reply and drop identifiers absent from the request snapshot."""

        parsed = cls.model_validate(payload)
        allowed = set(catalog_ids or [])
        alternatives = [
            alternative.model_copy(update={"item_ids": _restrict(alternative.item_ids, allowed)})
            for alternative in parsed.alternative_outfits
        ]
        return parsed.model_copy(
            update={"item_ids": _restrict(parsed.item_ids, allowed), "alternative_outfits": alternatives}
        )

    @classmethod
    def fallback(cls, catalog_ids: Optional[Sequence[str]] = None) -> "OutfitSuggestion":
        """Deterministic suggestion used whenever the model reply is unusable."""

        return cls(
            outfit_description=FALLBACK_DESCRIPTION,
            item_ids=list(catalog_ids or [])[:2],
        )


def _restrict(item_ids: Iterable[str], allowed: set) -> List[str]:
    return [item_id for item_id in item_ids if item_id in allowed]


__all__ = [
    "AlternativeOutfit",
    "FALLBACK_DESCRIPTION",
    "MissingItem",
    "ModelReplyError",
    "OutfitSuggestion",
    "PLACEHOLDER_DESCRIPTION",
    "TagResult",
    "UNKNOWN_LABEL",
    "extract_json_object",
]
