"""Document store abstractions with real-time listeners.

Paths are slash separated, alternating collection and document segments as
in Firestore (``users/<uid>/closet/<item_id>``).
"""
from __future__ import annotations

import copy
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from tools.observability import instrument_provider

Document = Dict[str, Any]
DocumentListener = Callable[[Optional[Document]], None]
CollectionListener = Callable[[List[Tuple[str, Document]]], None]
Unsubscribe = Callable[[], None]


def _merge(base: Document, updates: Document) -> Document:
    merged = dict(base)
    for key, value in updates.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class DocumentStore:
    """Interface for per-identity documents and item collections."""

    def get(self, path: str) -> Optional[Document]:
        raise NotImplementedError

    def set(self, path: str, data: Document, merge: bool = False) -> None:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        raise NotImplementedError

    def watch_document(self, path: str, on_change: DocumentListener) -> Unsubscribe:
        """Call ``on_change`` with the current document (or ``None``) now and on every change."""
        raise NotImplementedError

    def watch_collection(self, path: str, on_change: CollectionListener) -> Unsubscribe:
        """Call ``on_change`` with ``(id, document)`` pairs now and on every change."""
        raise NotImplementedError


class FirestoreDocumentStore(DocumentStore):
    """Cloud Firestore backed store; the client is created on first use."""

    def __init__(self, project: Optional[str] = None, credentials_path: Optional[str] = None) -> None:
        self.project = project
        self.credentials_path = credentials_path
        self._client = None

    def _get_client(self):
        if self._client is None:
            from google.cloud import firestore

            if self.credentials_path:
                self._client = firestore.Client.from_service_account_json(
                    self.credentials_path, project=self.project
                )
            else:
                self._client = firestore.Client(project=self.project)
        return self._client

    @instrument_provider("firestore", "get")
    def get(self, path: str) -> Optional[Document]:
        snapshot = self._get_client().document(path).get()
        return snapshot.to_dict() if snapshot.exists else None

    @instrument_provider("firestore", "set")
    def set(self, path: str, data: Document, merge: bool = False) -> None:
        self._get_client().document(path).set(data, merge=merge)

    @instrument_provider("firestore", "delete")
    def delete(self, path: str) -> None:
        self._get_client().document(path).delete()

    def watch_document(self, path: str, on_change: DocumentListener) -> Unsubscribe:
        def _on_snapshot(snapshots, _changes, _read_time) -> None:
            for snapshot in snapshots:
                on_change(snapshot.to_dict() if snapshot.exists else None)

        watch = self._get_client().document(path).on_snapshot(_on_snapshot)
        return watch.unsubscribe

    def watch_collection(self, path: str, on_change: CollectionListener) -> Unsubscribe:
        def _on_snapshot(snapshots, _changes, _read_time) -> None:
            on_change([(snapshot.id, snapshot.to_dict() or {}) for snapshot in snapshots])

        watch = self._get_client().collection(path).on_snapshot(_on_snapshot)
        return watch.unsubscribe


class InMemoryDocumentStore(DocumentStore):
    """Process-local store whose listeners fire synchronously on each write."""

    def __init__(self) -> None:
        self._documents: Dict[str, Document] = {}
        self._document_listeners: Dict[str, List[DocumentListener]] = {}
        self._collection_listeners: Dict[str, List[CollectionListener]] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _parent(path: str) -> str:
        return path.rsplit("/", 1)[0] if "/" in path else ""

    def _collection(self, path: str) -> List[Tuple[str, Document]]:
        prefix = f"{path}/"
        return [
            (doc_path[len(prefix):], copy.deepcopy(document))
            for doc_path, document in sorted(self._documents.items())
            if doc_path.startswith(prefix) and "/" not in doc_path[len(prefix):]
        ]

    def _notify(self, path: str) -> None:
        document = copy.deepcopy(self._documents.get(path))
        for listener in list(self._document_listeners.get(path, [])):
            listener(document)
        parent = self._parent(path)
        listeners = list(self._collection_listeners.get(parent, []))
        if listeners:
            snapshot = self._collection(parent)
            for listener in listeners:
                listener(snapshot)

    def get(self, path: str) -> Optional[Document]:
        with self._lock:
            document = self._documents.get(path)
            return copy.deepcopy(document) if document is not None else None

    def set(self, path: str, data: Document, merge: bool = False) -> None:
        with self._lock:
            current = self._documents.get(path)
            if merge and current is not None:
                self._documents[path] = _merge(current, copy.deepcopy(data))
            else:
                self._documents[path] = copy.deepcopy(data)
            self._notify(path)

    def delete(self, path: str) -> None:
        with self._lock:
            if self._documents.pop(path, None) is not None:
                self._notify(path)

    def watch_document(self, path: str, on_change: DocumentListener) -> Unsubscribe:
        with self._lock:
            self._document_listeners.setdefault(path, []).append(on_change)
            on_change(self.get(path))

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._document_listeners.get(path, [])
                if on_change in listeners:
                    listeners.remove(on_change)

        return unsubscribe

    def watch_collection(self, path: str, on_change: CollectionListener) -> Unsubscribe:
        with self._lock:
            self._collection_listeners.setdefault(path, []).append(on_change)
            on_change(self._collection(path))

        def unsubscribe() -> None:
            with self._lock:
                listeners = self._collection_listeners.get(path, [])
                if on_change in listeners:
                    listeners.remove(on_change)

        return unsubscribe

    def listener_count(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._document_listeners.values()) + sum(
                len(v) for v in self._collection_listeners.values()
            )


__all__ = [
    "CollectionListener",
    "Document",
    "DocumentListener",
    "DocumentStore",
    "FirestoreDocumentStore",
    "InMemoryDocumentStore",
    "Unsubscribe",
]
