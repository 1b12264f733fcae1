# This file implements the session-scoped entity cache shared by every dashboard panel.
# It exists so independently rendered panels asking for the same model data trigger one network call.
# Entries are keyed by (resource kind, entity key); the pending fetch task itself is cached,
# so concurrent callers for a key attach to it instead of starting a second request.
# Failures are logged and stored as display-ready messages, never re-raised to the panel.

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from src.forecast_dashboard.ui_text import failure_message

LOGGER = logging.getLogger("forecast_dashboard.entity_store")

CacheKey = tuple[str, str]
Fetcher = Callable[[], Awaitable[Any]]


class CacheStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class CacheEntry:
    status: CacheStatus
    value: Any = None
    error: str | None = None


@dataclass(frozen=True)
class ResourceView:
    """What a panel reads for one resource: the value, a loading flag, and an error message."""

    value: Any = None
    is_loading: bool = False
    error: str | None = None


class EntityStore:
    """Per-session cache of fetched entities with at-most-one in-flight fetch per key.

    Entries are replaced as whole immutable records, so a reader never sees a
    status without its matching value or error. READY entries are served until
    `clear` or `reset`; FAILED entries are fetched again on the next request.
    """

    def __init__(
        self, *, message_builder: Callable[[str, str], str] = failure_message
    ) -> None:
        self._message_builder = message_builder
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._in_flight: dict[CacheKey, asyncio.Task[Any]] = {}

    async def get_or_fetch(
        self,
        kind: str,
        key: str,
        fetcher: Fetcher,
        *,
        error_message: str | None = None,
    ) -> Any | None:
        """Return the cached value, join the pending fetch, or start one.

        Returns None when the fetch fails; the entry then holds the display message.
        """

        cache_key = (kind, key)
        entry = self._entries.get(cache_key)
        if entry is not None and entry.status is CacheStatus.READY:
            return entry.value

        task = self._in_flight.get(cache_key)
        if task is None:
            self._entries[cache_key] = CacheEntry(status=CacheStatus.LOADING)
            task = asyncio.ensure_future(self._run_fetch(cache_key, fetcher, error_message))
            self._in_flight[cache_key] = task

        # A waiter being cancelled must not cancel the fetch other panels are waiting on.
        return await asyncio.shield(task)

    def peek(self, kind: str, key: str) -> CacheEntry | None:
        return self._entries.get((kind, key))

    def status(self, kind: str, key: str) -> CacheStatus:
        entry = self._entries.get((kind, key))
        return CacheStatus.IDLE if entry is None else entry.status

    def view(self, kind: str, key: str) -> ResourceView:
        entry = self._entries.get((kind, key))
        if entry is None:
            return ResourceView()
        return ResourceView(
            value=entry.value if entry.status is CacheStatus.READY else None,
            is_loading=entry.status is CacheStatus.LOADING,
            error=entry.error if entry.status is CacheStatus.FAILED else None,
        )

    def ready_values(self, kind: str) -> dict[str, Any]:
        return {
            entry_key: entry.value
            for (entry_kind, entry_key), entry in self._entries.items()
            if entry_kind == kind and entry.status is CacheStatus.READY
        }

    def clear(self, kind: str, key: str | None = None) -> None:
        """Drop one entry, or every entry of a kind when no key is given.

        A fetch still in flight for a cleared key is detached: it completes for
        its current waiters but does not write its result back.
        """

        targets = [
            cache_key
            for cache_key in set(self._entries) | set(self._in_flight)
            if cache_key[0] == kind and (key is None or cache_key[1] == key)
        ]
        for cache_key in targets:
            self._entries.pop(cache_key, None)
            self._in_flight.pop(cache_key, None)

    def reset(self) -> None:
        self._entries.clear()
        self._in_flight.clear()

    async def _run_fetch(
        self, cache_key: CacheKey, fetcher: Fetcher, error_message: str | None
    ) -> Any | None:
        kind, key = cache_key
        task = asyncio.current_task()
        try:
            value = await fetcher()
        except asyncio.CancelledError:
            if self._owns(cache_key, task):
                self._entries.pop(cache_key, None)
                self._in_flight.pop(cache_key, None)
            raise
        except Exception as exc:
            LOGGER.warning("Fetch failed for %s/%s: %r", kind, key, exc)
            if self._owns(cache_key, task):
                self._entries[cache_key] = CacheEntry(
                    status=CacheStatus.FAILED,
                    error=error_message or self._message_builder(kind, key),
                )
                self._in_flight.pop(cache_key, None)
            return None

        if self._owns(cache_key, task):
            self._entries[cache_key] = CacheEntry(status=CacheStatus.READY, value=value)
            self._in_flight.pop(cache_key, None)
        return value

    def _owns(self, cache_key: CacheKey, task: asyncio.Task[Any] | None) -> bool:
        return task is not None and self._in_flight.get(cache_key) is task
