"""In-memory closet and preferences view kept in sync with the active backend.

The view is the source of truth for the UI. Mutations update it
synchronously and hand the matching backend write to an executor; a failed
write is logged and the optimistic change stays in place. Backend snapshots
replace the view wholesale, so the last writer wins.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Set

from ootd_app.logging_config import get_logger, log_event
from memory.backends import LocalBackend, PersistenceBackend, RemoteBackend, SnapshotListener
from models.clothing_item import ClothingItem, Inspiration, new_item_id
from models.preferences import UserPreferences, default_preferences
from tools.document_store import DocumentStore
from tools.local_storage import LocalStorage

LOGGER = get_logger(__name__)


class _ScopedListener(SnapshotListener):
    """Forwards snapshots only while its backend is still the active one."""

    def __init__(self, manager: "UserDataManager", generation: int) -> None:
        self.manager = manager
        self.generation = generation

    def closet_changed(self, items: List[ClothingItem]) -> None:
        self.manager._apply(self.generation, closet=items)

    def inspirations_changed(self, inspirations: List[Inspiration]) -> None:
        self.manager._apply(self.generation, inspirations=inspirations)

    def preferences_changed(self, preferences: UserPreferences) -> None:
        self.manager._apply(self.generation, preferences=preferences)


class UserDataManager:
    """Catalog, saved outfits and preferences for the current identity."""

    def __init__(
        self,
        local_storage: LocalStorage,
        document_store: Optional[DocumentStore] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self.local_storage = local_storage
        self.document_store = document_store
        self._owns_executor = executor is None
        self.executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="ootd-persist")
        self._lock = threading.RLock()
        self._generation = 0
        self._backend: Optional[PersistenceBackend] = None
        self._pending: Set[Future] = set()
        self.uid: Optional[str] = None
        self.loading = True
        self._closet: List[ClothingItem] = []
        self._inspirations: List[Inspiration] = []
        self._preferences = default_preferences()

    @property
    def closet_items(self) -> List[ClothingItem]:
        with self._lock:
            return list(self._closet)

    @property
    def inspirations(self) -> List[Inspiration]:
        with self._lock:
            return list(self._inspirations)

    @property
    def preferences(self) -> UserPreferences:
        with self._lock:
            return self._preferences

    @property
    def backend_kind(self) -> Optional[str]:
        return self._backend.kind if self._backend else None

    def set_identity(self, uid: Optional[str]) -> None:
        """Switch to ``uid`` (``None`` for a guest) and re-subscribe.

        Writes still queued for the previous identity finish first, so the new
        backend never loads a snapshot that is missing them.
        """

        self.flush()
        with self._lock:
            if self._backend is not None:
                self._backend.detach()
            self._generation += 1
            generation = self._generation
            self.uid = uid
            self.loading = True
            self._closet = []
            self._inspirations = []
            self._preferences = default_preferences()
            if uid and self.document_store is not None:
                backend: PersistenceBackend = RemoteBackend(self.document_store, uid)
            else:
                backend = LocalBackend(self.local_storage)
            self._backend = backend

        log_event(LOGGER, logging.INFO, "identity_changed", backend=backend.kind, signed_in=bool(uid))
        backend.attach(_ScopedListener(self, generation))
        with self._lock:
            if generation == self._generation and backend.kind == "local":
                self.loading = False

    def _apply(
        self,
        generation: int,
        closet: Optional[List[ClothingItem]] = None,
        inspirations: Optional[List[Inspiration]] = None,
        preferences: Optional[UserPreferences] = None,
    ) -> None:
        with self._lock:
            if generation != self._generation:
                return
            if closet is not None:
                self._closet = list(closet)
            if inspirations is not None:
                self._inspirations = list(inspirations)
            if preferences is not None:
                self._preferences = preferences
                self.loading = False

    def _require_backend(self) -> PersistenceBackend:
        if self._backend is None:
            raise RuntimeError("No identity selected; call set_identity first")
        return self._backend

    def _persist(self, operation: str, write: Callable[[], Any]) -> Future:
        future = self.executor.submit(write)
        with self._lock:
            self._pending.add(future)

        def _report(done: Future) -> None:
            with self._lock:
                self._pending.discard(done)
            exc = done.exception()
            if exc is not None:
                log_event(
                    LOGGER,
                    logging.ERROR,
                    "persistence_write_failed",
                    operation=operation,
                    reason=type(exc).__name__,
                    details=str(exc),
                )

        future.add_done_callback(_report)
        return future

    def add_closet_item(self, item: ClothingItem) -> Future:
        with self._lock:
            backend = self._require_backend()
            self._closet = [existing for existing in self._closet if existing.id != item.id] + [item]
        return self._persist("save_item", lambda: backend.save_item(item))

    def remove_closet_item(self, item_id: str) -> Future:
        with self._lock:
            backend = self._require_backend()
            self._closet = [item for item in self._closet if item.id != item_id]
        return self._persist("delete_item", lambda: backend.delete_item(item_id))

    def add_inspiration(self, description: str, items: Sequence[ClothingItem]) -> Inspiration:
        inspiration = Inspiration(id=new_item_id(), description=description, items=list(items))
        with self._lock:
            backend = self._require_backend()
            self._inspirations = self._inspirations + [inspiration]
        self._persist("save_inspiration", lambda: backend.save_inspiration(inspiration))
        return inspiration

    def update_preferences(self, updates: Mapping[str, Any]) -> UserPreferences:
        with self._lock:
            backend = self._require_backend()
            merged = self._preferences.merge(updates)
            self._preferences = merged
        self._persist("save_preferences", lambda: backend.save_preferences(merged))
        return merged

    def update_gender(self, gender: Optional[str]) -> UserPreferences:
        return self.update_preferences({"gender": gender})

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait for queued writes; ``False`` if some were still running at ``timeout``."""

        with self._lock:
            pending = list(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "uid": self.uid,
                "backend": self.backend_kind,
                "loading": self.loading,
                "closetItems": [item.to_document() for item in self._closet],
                "inspirations": [entry.to_document() for entry in self._inspirations],
                "preferences": self._preferences.to_document(),
            }

    def close(self) -> None:
        with self._lock:
            if self._backend is not None:
                self._backend.detach()
        if self._owns_executor and isinstance(self.executor, ThreadPoolExecutor):
            self.executor.shutdown(wait=True)


__all__ = ["UserDataManager"]
