"""Debounced database-file watcher with asyncio queue bridge."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
import threading

from watchdog.events import PatternMatchingEventHandler
from watchdog.observers import Observer

from folio.store.sqlite_store import SqliteDocumentStore


LOGGER = logging.getLogger(__name__)


class DebouncedStoreHandler(PatternMatchingEventHandler):
    """Collapse bursts of writes to the database files into one signal."""

    def __init__(
        self,
        *,
        db_path: Path,
        loop: asyncio.AbstractEventLoop,
        queue: asyncio.Queue[Path],
        debounce_seconds: float = 0.25,
    ) -> None:
        name = db_path.name
        super().__init__(
            patterns=[f"*{name}", f"*{name}-wal"],
            ignore_directories=True,
            case_sensitive=True,
        )
        self._db_path = db_path
        self._loop = loop
        self._queue = queue
        self._debounce_seconds = debounce_seconds
        self._timer: threading.Timer | None = None
        self._lock = threading.Lock()

    def _emit(self) -> None:
        with self._lock:
            self._timer = None
        self._loop.call_soon_threadsafe(self._queue.put_nowait, self._db_path)

    def _schedule(self) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self._debounce_seconds, self._emit)
            timer.daemon = True
            self._timer = timer
            timer.start()

    def on_modified(self, event) -> None:  # type: ignore[override]
        self._schedule()

    def on_created(self, event) -> None:  # type: ignore[override]
        self._schedule()

    def close(self) -> None:
        with self._lock:
            timer = self._timer
            self._timer = None
        if timer is not None:
            timer.cancel()


class StoreChangeWatcher:
    """Poll a SQLite store for foreign writes whenever its files change."""

    def __init__(self, store: SqliteDocumentStore, debounce_seconds: float = 0.25) -> None:
        self._store = store
        self._db_path = store.db_path.resolve()
        self._debounce_seconds = debounce_seconds
        self._queue: asyncio.Queue[Path] | None = None
        self._handler: DebouncedStoreHandler | None = None
        self._observer: Observer | None = None
        self._consumer_task: asyncio.Task[None] | None = None

    async def _consume(self) -> None:
        assert self._queue is not None
        while True:
            path = await self._queue.get()
            try:
                delivered = self._store.poll_changes()
                if delivered:
                    LOGGER.debug("Delivered %d changed document(s) after write to %s", delivered, path.name)
            except Exception:  # pragma: no cover
                LOGGER.exception("Polling store changes failed for %s", path)
            finally:
                self._queue.task_done()

    async def start(self) -> None:
        if self._observer is not None:
            return
        watch_dir = self._db_path.parent
        if not watch_dir.is_dir():
            raise ValueError(f"Database directory does not exist: {watch_dir}")

        loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._handler = DebouncedStoreHandler(
            db_path=self._db_path,
            loop=loop,
            queue=self._queue,
            debounce_seconds=self._debounce_seconds,
        )

        observer = Observer()
        observer.schedule(self._handler, str(watch_dir), recursive=False)
        observer.start()
        self._observer = observer
        self._consumer_task = asyncio.create_task(self._consume())

    def stop(self) -> None:
        observer = self._observer
        if observer is not None:
            observer.stop()
            observer.join(timeout=5.0)
            self._observer = None

        if self._handler is not None:
            self._handler.close()
            self._handler = None

        if self._consumer_task is not None:
            self._consumer_task.cancel()
            self._consumer_task = None
