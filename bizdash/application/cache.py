"""In-process cache of authenticated source handles."""
from __future__ import annotations

import threading

from bizdash.domain.models import AuthenticatedHandle
from bizdash.domain.repositories import HandleCache


class InMemoryHandleCache(HandleCache):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._handles: dict[tuple[int, int], AuthenticatedHandle] = {}

    def get(self, source_id: int, user_id: int) -> AuthenticatedHandle | None:
        with self._lock:
            return self._handles.get((source_id, user_id))

    def put(self, source_id: int, user_id: int, handle: AuthenticatedHandle) -> None:
        with self._lock:
            self._handles[(source_id, user_id)] = handle

    def invalidate(self, source_id: int, user_id: int) -> None:
        with self._lock:
            self._handles.pop((source_id, user_id), None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
