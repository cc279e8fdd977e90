"""
Asset index and task coordinator.

The Engine owns the shared asset index and the flags that serialise work
across backends:

- one listing task at a time; a newer refresh asks the running one to stop
  and waits on a condition variable until it has
- one mutating task (extract or clear) at a time; a second request while
  one runs is rejected and returns None

Every shared field has its own lock and no critical section spans two of
them. Accessors return copies.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Union

from core.locales import DEFAULT_LOCALE, format_message
from core.logging import get_logger
from core.paths import create_temp_dir, remove_tree
from core.settings import UserSettings

from .asset_signatures import Category
from .classification import slice_asset
from .decompression import maybe_decompress
from .exceptions import AssetNotFoundError, ExtractorError
from .models import AssetInfo
from .sources.base import AssetSource
from .sources.registry import SourceRegistry
from .workers import TaskHandle

LOGGER = get_logger("extractors.engine")

# Categories covered by extract_all, in order
EXTRACT_ALL_CATEGORIES = (Category.MUSIC, Category.ALL)


class _ListingCallbacks:
    """Routes source progress into the engine for one refresh pass."""

    def __init__(self, engine: "Engine", generation: int):
        self._engine = engine
        self._generation = generation

    def on_progress(self, current: int, total: int, message: str = "") -> None:
        self._engine._report_progress(current, total, message or "filtering-files")

    def on_error(self, error: str, details: str = "") -> None:
        self._engine._set_status(error, error=details)

    def is_cancelled(self) -> bool:
        return self._engine._listing_cancelled(self._generation)


class _MutationCallbacks:
    """Routes source progress into the engine during clear_cache."""

    def __init__(self, engine: "Engine"):
        self._engine = engine

    def on_progress(self, current: int, total: int, message: str = "") -> None:
        self._engine._report_progress(current, total, message or "deleting-files")

    def on_error(self, error: str, details: str = "") -> None:
        self._engine._set_status(error, error=details)

    def is_cancelled(self) -> bool:
        return False


class Engine:
    """
    Coordinates refresh, extraction and cache clearing over a set of sources.

    Usage:
        engine = Engine([DatabaseSource(settings), DirectorySource(settings)], settings)
        engine.refresh(Category.IMAGES, wait=True)
        engine.extract_dir(Path("out"), Category.IMAGES, wait=True)
    """

    def __init__(
        self,
        sources: Union[SourceRegistry, Sequence[AssetSource]],
        settings: UserSettings,
        locale: str = DEFAULT_LOCALE,
        temp_directory: Optional[str] = None,
    ):
        self._registry = sources if isinstance(sources, SourceRegistry) else SourceRegistry(sources)
        self._settings = settings
        self._locale = locale
        self._temp_directory = temp_directory
        self._temp_dir: Optional[Path] = None
        self._temp_lock = threading.Lock()

        self._file_list_lock = threading.Lock()
        self._file_list: List[AssetInfo] = []
        self._filtered_lock = threading.Lock()
        self._filtered_file_list: List[AssetInfo] = []
        self._status_lock = threading.Lock()
        self._status = self._message("idling")
        self._progress_lock = threading.Lock()
        self._progress = 1.0
        self._repaint_lock = threading.Lock()
        self._repaint_requested = False

        # Listing handoff: running / stop-requested / generation
        self._list_cond = threading.Condition()
        self._list_running = False
        self._stop_list = False
        self._list_generation = 0

        self._task_lock = threading.Lock()
        self._task_running = False

    # ------------------------------------------------------------------
    # Shared state helpers
    # ------------------------------------------------------------------

    @property
    def sources(self) -> SourceRegistry:
        return self._registry

    @property
    def locale(self) -> str:
        return self._locale

    def _message(self, key: str, **kwargs) -> str:
        return format_message(key, self._locale, **kwargs)

    def _request_repaint(self) -> None:
        with self._repaint_lock:
            self._repaint_requested = True

    def _set_status(self, key: str, **kwargs) -> None:
        text = self._message(key, **kwargs)
        with self._status_lock:
            self._status = text
        self._request_repaint()

    def _set_progress(self, value: float) -> None:
        with self._progress_lock:
            self._progress = min(1.0, max(0.0, value))
        self._request_repaint()

    def _report_progress(self, current: int, total: int, key: str) -> None:
        self._set_progress(current / total if total else 1.0)
        self._set_status(key, item=current, total=total)

    def _placeholder(self) -> AssetInfo:
        return AssetInfo(name=self._message("no-files"))

    def _replace_file_list(self, entries: List[AssetInfo]) -> None:
        with self._file_list_lock:
            self._file_list = list(entries)
        self._request_repaint()

    def _append_file(self, asset: AssetInfo, echo: bool) -> None:
        with self._file_list_lock:
            self._file_list.append(asset)
        if echo:
            print(asset.name, flush=True)
        self._request_repaint()

    def _try_begin_task(self) -> bool:
        with self._task_lock:
            if self._task_running:
                return False
            self._task_running = True
            return True

    def _end_task(self) -> None:
        with self._task_lock:
            self._task_running = False

    def _listing_cancelled(self, generation: int) -> bool:
        with self._list_cond:
            return self._stop_list or generation != self._list_generation

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    @property
    def file_list(self) -> List[AssetInfo]:
        with self._file_list_lock:
            return list(self._file_list)

    @property
    def filtered_file_list(self) -> List[AssetInfo]:
        with self._filtered_lock:
            return list(self._filtered_file_list)

    @property
    def status(self) -> str:
        with self._status_lock:
            return self._status

    @property
    def progress(self) -> float:
        with self._progress_lock:
            return self._progress

    @property
    def list_task_running(self) -> bool:
        with self._list_cond:
            return self._list_running

    @property
    def stop_list_requested(self) -> bool:
        with self._list_cond:
            return self._stop_list

    @property
    def task_running(self) -> bool:
        with self._task_lock:
            return self._task_running

    def take_repaint_request(self) -> bool:
        """Return whether a repaint was requested and clear the flag."""
        with self._repaint_lock:
            requested = self._repaint_requested
            self._repaint_requested = False
            return requested

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------

    def refresh(self, category: Category, *, echo: bool = False, wait: bool = False) -> TaskHandle:
        """
        Rebuild the index for ``category`` on a background thread.

        A refresh already in progress is asked to stop; this one starts once
        it has. If yet another refresh arrives before this one starts, this
        one exits without touching the index.

        Args:
            category: Category to list
            echo: Print each asset name as it is found (console list mode)
            wait: Block until the pass has finished
        """
        with self._list_cond:
            self._list_generation += 1
            generation = self._list_generation
            if self._list_running:
                self._stop_list = True
            self._list_cond.notify_all()
        handle = TaskHandle(f"refresh-{category.value}", self._refresh_body, category, generation, echo)
        handle.start()
        if wait:
            handle.join()
        return handle

    def _refresh_body(self, category: Category, generation: int, echo: bool) -> None:
        with self._list_cond:
            # A superseded waiter must leave without touching the stop flag
            while generation == self._list_generation and self._list_running:
                self._stop_list = True
                self._list_cond.wait()
            if generation != self._list_generation:
                LOGGER.debug("Refresh of %s superseded before it started", category.value)
                return
            self._list_running = True
            self._stop_list = False

        callbacks = _ListingCallbacks(self, generation)
        try:
            self._replace_file_list([])
            for source in self._registry:
                if callbacks.is_cancelled():
                    break
                try:
                    count = source.enumerate(category, lambda asset: self._append_file(asset, echo), callbacks)
                    LOGGER.info("Listed %d %s assets from %s", count, category.value, source.name)
                except ExtractorError as exc:
                    LOGGER.error("Listing %s failed: %s", source.name, exc)
                    self._set_status("failed-listing-files", error=str(exc))
        finally:
            cancelled = callbacks.is_cancelled()
            with self._list_cond:
                self._list_running = False
                self._list_cond.notify_all()
        if not cancelled:
            self._set_progress(1.0)
            self._set_status("idling")

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def read_asset(self, asset: AssetInfo) -> bytes:
        """Read an asset from its owning source and decompress it."""
        source = self._registry.for_origin(asset.origin)
        if source is None:
            raise AssetNotFoundError(asset.name)
        return maybe_decompress(source.read(asset), asset.name)

    def extract_asset_to_bytes(self, asset: AssetInfo) -> bytes:
        payload, _ = slice_asset(asset.category, self.read_asset(asset))
        return payload

    def extract_to_file(self, asset: AssetInfo, destination: Path, add_extension: bool = True) -> Path:
        """
        Write ``asset``'s payload to ``destination``.

        The extension is replaced by the one matching the detected signature
        when ``add_extension`` is set. The asset's last-modified time is
        copied to the file when known.

        Returns:
            Path actually written
        """
        payload, extension = slice_asset(asset.category, self.read_asset(asset))
        destination = Path(destination)
        if add_extension and extension:
            destination = destination.with_suffix(f".{extension}")
        destination.write_bytes(payload)

        if asset.last_modified is not None:
            timestamp = asset.last_modified.timestamp()
            try:
                os.utime(destination, (timestamp, timestamp))
            except OSError as exc:
                LOGGER.error("Failed to write file modification time for %s: %s", destination, exc)
        return destination

    def _start_mutating(self, name: str, body: Callable[[], None], wait: bool) -> Optional[TaskHandle]:
        if not self._try_begin_task():
            LOGGER.info("Ignoring %s request: another task is running", name)
            return None

        def run() -> None:
            try:
                body()
            finally:
                self._end_task()

        handle = TaskHandle(name, run)
        try:
            handle.start()
        except RuntimeError:
            self._end_task()
            raise
        if wait:
            handle.join()
        return handle

    def _extract_dir_body(self, destination: Path, category: Category, use_alias: bool, refresh_first: bool) -> bool:
        """Extract one category. False if the destination could not be created."""
        try:
            destination.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            LOGGER.error("Error creating directory %s: %s", destination, exc)
            self._set_status("failed-opening-file", error=str(exc))
            return False

        if refresh_first:
            self.refresh(category, wait=True)

        entries = [
            entry for entry in self.file_list
            if not entry.is_placeholder and (category is Category.ALL or entry.category is category)
        ]
        total = len(entries)
        LOGGER.info("Extracting %d %s assets to %s", total, category.value, destination)
        for count, entry in enumerate(entries, start=1):
            self._set_progress(count / total)
            name = entry.name
            if use_alias:
                name = self._settings.get_asset_alias(entry.name) or entry.name
            try:
                self.extract_to_file(entry, destination / name, True)
            except (ExtractorError, OSError) as exc:
                LOGGER.error("Error extracting file (%d/%d) %s: %s", count, total, entry.name, exc)
            self._set_status("extracting-files", item=count, total=total)
        return True

    def extract_dir(
        self,
        destination: Path,
        category: Category,
        *,
        wait: bool = False,
        use_alias: bool = False,
    ) -> Optional[TaskHandle]:
        """
        Extract every indexed asset of ``category`` into ``destination``.

        Returns None without doing anything when another extract or clear is
        running. Per-file failures are logged and the batch continues.
        """
        refresh_first = self._settings.get_bool("refresh_before_extract", False)

        def body() -> None:
            if self._extract_dir_body(Path(destination), category, use_alias, refresh_first):
                self._set_status("all-extracted")

        return self._start_mutating(f"extract-{category.value}", body, wait=wait)

    def extract_all(self, destination: Path, *, wait: bool = False, use_alias: bool = False) -> Optional[TaskHandle]:
        """Refresh and extract music, then everything else, as one task."""

        def body() -> None:
            for category in EXTRACT_ALL_CATEGORIES:
                if not self._extract_dir_body(Path(destination), category, use_alias, True):
                    return
            self._set_status("all-extracted")

        return self._start_mutating("extract-all", body, wait=wait)

    # ------------------------------------------------------------------
    # Cache clearing, swap and copy
    # ------------------------------------------------------------------

    def clear_cache(self, *, wait: bool = False) -> Optional[TaskHandle]:
        """
        Delete every source's content.

        Each source is cleared independently. The index is reset to a single
        "no files" placeholder whatever the outcome.
        """

        def body() -> None:
            callbacks = _MutationCallbacks(self)
            try:
                for source in self._registry:
                    try:
                        source.clear(callbacks)
                    except (ExtractorError, OSError) as exc:
                        LOGGER.error("Failed to clear %s: %s", source.name, exc)
                        self._set_status("failed-deleting-file", error=str(exc))
            finally:
                self._replace_file_list([self._placeholder()])
                with self._filtered_lock:
                    self._filtered_file_list = []
            self._set_status("idling")

        return self._start_mutating("clear-cache", body, wait=wait)

    def _apply_to_sources(self, operation: str, a: AssetInfo, b: AssetInfo) -> Optional[str]:
        """Run swap/copy on every source. Returns None if any succeeded, else the last error."""
        succeeded = False
        last_error = ""
        for source in self._registry:
            try:
                getattr(source, operation)(a, b)
                succeeded = True
            except ExtractorError as exc:
                LOGGER.debug("%s %s/%s in %s failed: %s", operation, a.name, b.name, source.name, exc)
                last_error = str(exc)
        return None if succeeded else last_error

    def swap_assets(self, a: AssetInfo, b: AssetInfo) -> bool:
        """Swap two assets' contents. True if any source swapped them."""
        error = self._apply_to_sources("swap", a, b)
        if error is None:
            self._set_status("swapped", asset_a=a.name, asset_b=b.name)
            return True
        LOGGER.error("Failed to swap %s and %s: %s", a.name, b.name, error)
        self._set_status("failed-opening-file", error=error)
        return False

    def copy_assets(self, a: AssetInfo, b: AssetInfo) -> bool:
        """Overwrite ``b`` with ``a``'s content. True if any source copied it."""
        error = self._apply_to_sources("copy", a, b)
        if error is None:
            self._set_status("copied", asset_a=a.name, asset_b=b.name)
            return True
        LOGGER.error("Failed to copy %s to %s: %s", a.name, b.name, error)
        self._set_status("failed-opening-file", error=error)
        return False

    # ------------------------------------------------------------------
    # Lookup and filtering
    # ------------------------------------------------------------------

    def filter_file_list(self, query: str) -> List[AssetInfo]:
        """Recompute the filtered index: case-insensitive match on name or alias."""
        needle = query.lower()
        matches = []
        for asset in self.file_list:
            alias = self._settings.get_asset_alias(asset.name) or ""
            if needle in asset.name.lower() or needle in alias.lower():
                matches.append(asset)
        with self._filtered_lock:
            self._filtered_file_list = matches
        self._request_repaint()
        return list(matches)

    def create_asset_info(self, asset_id: str, category: Category) -> AssetInfo:
        """Resolve an id through the sources, or describe it without an origin."""
        for source in self._registry:
            try:
                info = source.lookup(asset_id, category)
            except ExtractorError as exc:
                LOGGER.debug("Lookup of %s in %s failed: %s", asset_id, source.name, exc)
                continue
            if info is not None:
                return info
        return AssetInfo(name=asset_id, size=0, category=category)

    # ------------------------------------------------------------------
    # Temp directory and shutdown
    # ------------------------------------------------------------------

    @property
    def temp_dir(self) -> Path:
        with self._temp_lock:
            if self._temp_dir is None:
                self._temp_dir = create_temp_dir(self._temp_directory)
            return self._temp_dir

    def clean_up(self) -> None:
        """Remove the temp directory and release source handles."""
        with self._temp_lock:
            temp_dir = self._temp_dir
            self._temp_dir = None
        if temp_dir is not None:
            try:
                if remove_tree(temp_dir):
                    LOGGER.info("Done cleaning up directory")
            except OSError as exc:
                LOGGER.error("Failed to clean up directory: %s", exc)
        self._registry.close_all()
