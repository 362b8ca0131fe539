"""User preference model with default population and partial merges."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Literal, Mapping, Optional, get_args

Gender = Literal["male", "female", "non-binary", "prefer-not-to-say"]
GENDERS = get_args(Gender)
SIZE_SLOTS = ("tops", "bottoms", "shoes")

_FIELD_KEYS = {
    "gender": "gender",
    "stylePreferences": "style_preferences",
    "sizePreferences": "size_preferences",
    "colorPreferences": "color_preferences",
    "occasionPreferences": "occasion_preferences",
}


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, str)]


def _sizes(value: Any) -> Dict[str, str]:
    if not isinstance(value, Mapping):
        return {}
    return {slot: value[slot] for slot in SIZE_SLOTS if isinstance(value.get(slot), str)}


def validate_gender(value: Any) -> Optional[str]:
    if value is None:
        return None
    if value not in GENDERS:
        raise ValueError(f"Unsupported gender value: {value!r}")
    return value


@dataclass(frozen=True)
class UserPreferences:
    """Per-identity styling preferences."""

    gender: Optional[str] = None
    style_preferences: List[str] = field(default_factory=list)
    size_preferences: Dict[str, str] = field(default_factory=dict)
    color_preferences: List[str] = field(default_factory=list)
    occasion_preferences: List[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        validate_gender(self.gender)

    def merge(self, updates: Mapping[str, Any]) -> "UserPreferences":
        """Return a copy with ``updates`` applied; keys may be camelCase or snake_case."""

        changes: Dict[str, Any] = {}
        for key, value in updates.items():
            attribute = _FIELD_KEYS.get(key, key)
            if attribute not in _FIELD_KEYS.values():
                raise ValueError(f"Unknown preference field: {key}")
            if attribute == "gender":
                changes[attribute] = validate_gender(value)
            elif attribute == "size_preferences":
                changes[attribute] = {**self.size_preferences, **_sizes(value)}
            else:
                changes[attribute] = _string_list(value)
        return replace(self, **changes)

    def to_document(self) -> Dict[str, Any]:
        document: Dict[str, Any] = {
            "stylePreferences": list(self.style_preferences),
            "sizePreferences": dict(self.size_preferences),
            "colorPreferences": list(self.color_preferences),
            "occasionPreferences": list(self.occasion_preferences),
        }
        if self.gender is not None:
            document["gender"] = self.gender
        return document

    @classmethod
    def from_document(cls, document: Any) -> "UserPreferences":
        """Build preferences from stored JSON, defaulting malformed fields."""

        if not isinstance(document, Mapping):
            raise ValueError("Preferences document must be a JSON object")
        gender = document.get("gender")
        return cls(
            gender=gender if gender in GENDERS else None,
            style_preferences=_string_list(document.get("stylePreferences")),
            size_preferences=_sizes(document.get("sizePreferences")),
            color_preferences=_string_list(document.get("colorPreferences")),
            occasion_preferences=_string_list(document.get("occasionPreferences")),
        )


def default_preferences() -> UserPreferences:
    return UserPreferences()


__all__ = ["Gender", "GENDERS", "UserPreferences", "default_preferences", "validate_gender"]
