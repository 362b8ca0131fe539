"""Persistence strategies for the closet and preferences of one identity."""
from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, List, Optional

from ootd_app.logging_config import get_logger, log_event
from models.clothing_item import (
    ClothingItem,
    Inspiration,
    parse_inspiration_documents,
    parse_item_documents,
)
from models.preferences import UserPreferences, default_preferences
from tools.document_store import Document, DocumentStore, Unsubscribe
from tools.local_storage import LocalStorage

LOGGER = get_logger(__name__)

CLOSET_KEY = "closetItems"
INSPIRATIONS_KEY = "inspirationItems"
PREFERENCES_KEY = "userPreferences"


class SnapshotListener:
    """Receives whole-view replacements from a backend."""

    def closet_changed(self, items: List[ClothingItem]) -> None:
        raise NotImplementedError

    def inspirations_changed(self, inspirations: List[Inspiration]) -> None:
        raise NotImplementedError

    def preferences_changed(self, preferences: UserPreferences) -> None:
        raise NotImplementedError


class PersistenceBackend:
    """Read/write contract shared by the remote and local stores."""

    kind = "abstract"

    def attach(self, listener: SnapshotListener) -> None:
        raise NotImplementedError

    def detach(self) -> None:
        raise NotImplementedError

    def save_item(self, item: ClothingItem) -> None:
        raise NotImplementedError

    def delete_item(self, item_id: str) -> None:
        raise NotImplementedError

    def save_inspiration(self, inspiration: Inspiration) -> None:
        raise NotImplementedError

    def save_preferences(self, preferences: UserPreferences) -> None:
        raise NotImplementedError


def _parse_preferences(document: Any, source: str) -> UserPreferences:
    try:
        return UserPreferences.from_document(document)
    except ValueError as exc:
        log_event(LOGGER, logging.WARNING, "preferences_parse_failed", source=source, details=str(exc))
        return default_preferences()


class RemoteBackend(PersistenceBackend):
    """Signed-in identity: real-time documents under ``users/<uid>``."""

    kind = "remote"

    def __init__(self, store: DocumentStore, uid: str) -> None:
        if not uid:
            raise ValueError("uid is required for the remote backend")
        self.store = store
        self.uid = uid
        self.closet_path = f"users/{uid}/closet"
        self.inspirations_path = f"users/{uid}/inspirations"
        self.preferences_path = f"users/{uid}/preferences/user"
        self._unsubscribers: List[Unsubscribe] = []

    def attach(self, listener: SnapshotListener) -> None:
        self.detach()

        def on_closet(documents: List[tuple]) -> None:
            listener.closet_changed(
                [ClothingItem.from_document(document, item_id=doc_id) for doc_id, document in documents]
            )

        def on_inspirations(documents: List[tuple]) -> None:
            listener.inspirations_changed(
                [Inspiration.from_document(document, inspiration_id=doc_id) for doc_id, document in documents]
            )

        def on_preferences(document: Optional[Document]) -> None:
            if document is None:
                defaults = default_preferences()
                self.store.set(self.preferences_path, defaults.to_document())
                listener.preferences_changed(defaults)
                return
            listener.preferences_changed(_parse_preferences(document, "remote"))

        self._unsubscribers = [
            self.store.watch_collection(self.closet_path, on_closet),
            self.store.watch_collection(self.inspirations_path, on_inspirations),
            self.store.watch_document(self.preferences_path, on_preferences),
        ]

    def detach(self) -> None:
        unsubscribers, self._unsubscribers = self._unsubscribers, []
        for unsubscribe in unsubscribers:
            unsubscribe()

    def save_item(self, item: ClothingItem) -> None:
        self.store.set(f"{self.closet_path}/{item.id}", item.to_document())

    def delete_item(self, item_id: str) -> None:
        self.store.delete(f"{self.closet_path}/{item_id}")

    def save_inspiration(self, inspiration: Inspiration) -> None:
        self.store.set(f"{self.inspirations_path}/{inspiration.id}", inspiration.to_document())

    def save_preferences(self, preferences: UserPreferences) -> None:
        self.store.set(self.preferences_path, preferences.to_document(), merge=True)


class LocalBackend(PersistenceBackend):
    """Guest identity: JSON arrays and objects in device storage."""

    kind = "local"

    # Shared by every instance so two backends over one storage never interleave a read and a write.
    _lock = threading.Lock()

    def __init__(self, storage: LocalStorage) -> None:
        self.storage = storage

    def _read(self, key: str, default: Callable[[], Any]) -> Any:
        raw = self.storage.get_item(key)
        if raw is None:
            return default()
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            log_event(LOGGER, logging.WARNING, "local_storage_corrupt", key=key, details=exc.msg)
            return default()

    def attach(self, listener: SnapshotListener) -> None:
        items = parse_item_documents(self._read(CLOSET_KEY, list))
        inspirations = parse_inspiration_documents(self._read(INSPIRATIONS_KEY, list))
        raw_preferences = self._read(PREFERENCES_KEY, lambda: None)
        preferences = (
            default_preferences() if raw_preferences is None else _parse_preferences(raw_preferences, "local")
        )
        listener.closet_changed(items)
        listener.inspirations_changed(inspirations)
        listener.preferences_changed(preferences)

    def detach(self) -> None:
        return None

    def _stored_documents(self, key: str) -> List[Document]:
        stored = self._read(key, list)
        if not isinstance(stored, list):
            return []
        return [document for document in stored if isinstance(document, dict)]

    def save_item(self, item: ClothingItem) -> None:
        with self._lock:
            documents = [doc for doc in self._stored_documents(CLOSET_KEY) if doc.get("id") != item.id]
            documents.append(item.to_document())
            self.storage.set_item(CLOSET_KEY, json.dumps(documents))

    def delete_item(self, item_id: str) -> None:
        with self._lock:
            documents = [doc for doc in self._stored_documents(CLOSET_KEY) if doc.get("id") != item_id]
            self.storage.set_item(CLOSET_KEY, json.dumps(documents))

    def save_inspiration(self, inspiration: Inspiration) -> None:
        with self._lock:
            documents = self._stored_documents(INSPIRATIONS_KEY)
            documents.append(inspiration.to_document())
            self.storage.set_item(INSPIRATIONS_KEY, json.dumps(documents))

    def save_preferences(self, preferences: UserPreferences) -> None:
        self.storage.set_item(PREFERENCES_KEY, json.dumps(preferences.to_document()))


__all__ = [
    "CLOSET_KEY",
    "INSPIRATIONS_KEY",
    "LocalBackend",
    "PREFERENCES_KEY",
    "PersistenceBackend",
    "RemoteBackend",
    "SnapshotListener",
]
