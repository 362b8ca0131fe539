"""Closet item and saved-outfit data models."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, str)]


def new_item_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class ClothingItem:
    """A catalogued piece of clothing.

    Items are replace-only: a changed item is a new instance stored under the
    same identifier. The image payload is a self-contained base64 data URI.
    """

    id: str
    photo_data_uri: str
    category: str
    sub_category: str
    tags: List[str] = field(default_factory=list)
    dominant_colors: List[str] = field(default_factory=list)
    has_pattern: bool = False
    pattern_description: str = ""

    def to_document(self) -> Dict[str, Any]:
        """Serialise using the camelCase keys shared by every store."""

        return {
            "id": self.id,
            "photoDataUri": self.photo_data_uri,
            "category": self.category,
            "subCategory": self.sub_category,
            "tags": list(self.tags),
            "dominantColors": list(self.dominant_colors),
            "hasPattern": self.has_pattern,
            "patternDescription": self.pattern_description or "",
        }

    def sanitized(self) -> Dict[str, Any]:
        """Return the document without the image payload.

        Closet snapshots sent to the outfit model never carry images.
        """

        document = self.to_document()
        document.pop("photoDataUri")
        return document

    @classmethod
    def from_document(cls, document: Mapping[str, Any], item_id: str | None = None) -> "ClothingItem":
        identifier = item_id or document.get("id")
        if not identifier:
            raise ValueError("Clothing item document is missing an id")
        pattern_description = document.get("patternDescription")
        return cls(
            id=str(identifier),
            photo_data_uri=str(document.get("photoDataUri") or ""),
            category=str(document.get("category") or "unknown"),
            sub_category=str(document.get("subCategory") or "unknown"),
            tags=_string_list(document.get("tags")),
            dominant_colors=_string_list(document.get("dominantColors")),
            has_pattern=bool(document.get("hasPattern", False)),
            pattern_description=pattern_description if isinstance(pattern_description, str) else "",
        )


@dataclass(frozen=True)
class Inspiration:
    """An outfit the user liked and saved; immutable once created."""

    id: str
    description: str
    items: List[ClothingItem] = field(default_factory=list)

    def to_document(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "items": [item.to_document() for item in self.items],
        }

    def sanitized(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "items": [item.sanitized() for item in self.items],
        }

    @classmethod
    def from_document(cls, document: Mapping[str, Any], inspiration_id: str | None = None) -> "Inspiration":
        identifier = inspiration_id or document.get("id")
        if not identifier:
            raise ValueError("Inspiration document is missing an id")
        raw_items = document.get("items") if isinstance(document.get("items"), list) else []
        items = [ClothingItem.from_document(raw) for raw in raw_items if isinstance(raw, Mapping) and raw.get("id")]
        return cls(id=str(identifier), description=str(document.get("description") or ""), items=items)


def parse_item_documents(documents: Any) -> List[ClothingItem]:
    """Parse a list of stored item documents, skipping malformed entries."""

    if not isinstance(documents, list):
        return []
    items: List[ClothingItem] = []
    for document in documents:
        if isinstance(document, Mapping) and document.get("id"):
            items.append(ClothingItem.from_document(document))
    return items


def parse_inspiration_documents(documents: Any) -> List[Inspiration]:
    if not isinstance(documents, list):
        return []
    return [
        Inspiration.from_document(document)
        for document in documents
        if isinstance(document, Mapping) and document.get("id")
    ]


__all__ = [
    "ClothingItem",
    "Inspiration",
    "new_item_id",
    "parse_inspiration_documents",
    "parse_item_documents",
]
