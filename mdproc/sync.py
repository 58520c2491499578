#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

sync.py (mdproc)

- Wakes up every poll interval and asks the database for text classes
  that have an uploaded file but no processed file.
- For each one: reads the markdown, localizes every linked resource,
  rewrites the links, writes processed_<name> next to the original and
  records it in text_class.proc_file_name.

Failures never stop the worker. A document whose processed file or
database update fails keeps an empty proc_file_name and is simply picked
up again on the next pass. Downloads and writes use fixed file names, so
repeating them overwrites the same files.

Passes never overlap: ticks that come due while a pass is running
collapse into a single pending tick, like a ticker channel with a
one-slot buffer.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from mdproc.config_utils import SyncConfig
from mdproc.errors import MdprocError, StoreError, write_failed_error
from mdproc.links import extract_links
from mdproc.localizer import ResourceLocalizer
from mdproc.paths import DocumentPaths
from mdproc.rewriter import rewrite_document
from mdproc.store import PendingDocument, TextClassStore

log = logging.getLogger(__name__)


@dataclass
class PassReport:
    """Outcome of one synchronization pass"""
    discovered: int = 0
    processed: int = 0
    failed: int = 0


def next_deadline(previous: float, now: float, interval: float) -> Tuple[float, int]:
    """
    Work out when the next pass is due.

    Args:
        previous: Tick time the pass that just finished was started for
        now: Current clock reading
        interval: Poll interval in seconds

    Returns:
        (deadline, dropped). When the pass overran one or more ticks the
        latest of them is kept as the pending tick (deadline <= now, so
        the next pass starts at once) and the rest are counted as dropped.
    """
    deadline = previous + interval
    if deadline > now:
        return deadline, 0
    missed = int(math.floor((now - deadline) / interval))
    return deadline + missed * interval, missed


class DocumentProcessor:
    """Localizes and rewrites a single text class."""

    def __init__(self, config: SyncConfig, store: TextClassStore,
                 localizer: ResourceLocalizer):
        self.config = config
        self.store = store
        self.localizer = localizer

    def paths_for(self, doc: PendingDocument) -> DocumentPaths:
        return DocumentPaths.for_document(
            self.config, doc.class_id, doc.course_id, doc.grade_id
        )

    def localize_text(self, markdown_text: str, paths: DocumentPaths) -> str:
        """Localize every link in markdown_text and return the rewritten text."""
        localization = self.localizer.begin(paths)
        for link in extract_links(markdown_text):
            localization.localize(link.url)
        return rewrite_document(markdown_text, localization.mapping)

    def write_processed(self, path: str, text: str):
        dest = Path(path)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            dest.write_text(text, encoding="utf-8")
        except OSError as e:
            raise write_failed_error(dest, e) from e

    def process(self, doc: PendingDocument) -> bool:
        """
        Process one document end to end.

        Returns:
            True when the processed file was written and recorded
        """
        log.info("Processing file: %s", doc.source_path)
        try:
            markdown_text = Path(doc.source_path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            log.error("Error reading file %s: %s", doc.source_path, e)
            return False

        paths = self.paths_for(doc)
        processed_text = self.localize_text(markdown_text, paths)
        processed_path = paths.processed_path(doc.source_path)

        # File first: a row must never point at a file that is not there
        try:
            self.write_processed(processed_path, processed_text)
        except MdprocError as e:
            log.error("Unable to write processed file: %s", e.short())
            return False
        log.info("Saved processed file to %s", processed_path)

        try:
            updated = self.store.mark_processed(doc.class_id, processed_path)
        except StoreError as e:
            log.error("Unable to update text class %s: %s", doc.class_id, e.short())
            return False
        return updated


class Synchronizer:
    """
    Runs synchronization passes on a fixed period until stopped.

    Everything the worker needs comes in through the constructor, so
    several independently configured instances can coexist (tests).
    """

    def __init__(
        self,
        config: SyncConfig,
        store: Optional[TextClassStore] = None,
        localizer: Optional[ResourceLocalizer] = None,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
    ):
        self.config = config
        self.store = store if store is not None else TextClassStore(config.db_path)
        self.localizer = localizer if localizer is not None else ResourceLocalizer(config)
        self.processor = DocumentProcessor(config, self.store, self.localizer)
        self.clock = clock
        self._lock = threading.Lock()
        self._running = False
        self._stop = stop_event if stop_event is not None else threading.Event()

    @property
    def running(self) -> bool:
        """True while a pass is in progress."""
        return self._running

    def stop(self):
        """Ask run() to return; a stop requested before run() starts is kept."""
        self._stop.set()

    def run_pass(self) -> Optional[PassReport]:
        """
        Discover pending documents and process each of them.

        Returns:
            PassReport, or None if another pass was already running
        """
        with self._lock:
            if self._running:
                log.info("Pass already running, skipping this tick")
                return None
            self._running = True
        try:
            return self._process_pending()
        finally:
            with self._lock:
                self._running = False

    def _process_pending(self) -> PassReport:
        report = PassReport()
        log.debug("Pulling data from database")
        try:
            pending = self.store.pending_documents()
        except StoreError as e:
            log.error("Unable to read pending text classes: %s", e.short())
            return report

        report.discovered = len(pending)
        for doc in pending:
            try:
                ok = self.processor.process(doc)
            except Exception:
                # One broken document must not take the others down with it
                log.exception("Unexpected error processing text class %s", doc.class_id)
                ok = False
            if ok:
                report.processed += 1
            else:
                report.failed += 1

        if report.discovered:
            log.info("Pass complete: %d processed, %d failed",
                     report.processed, report.failed)
        return report

    def run(self, max_passes: Optional[int] = None) -> int:
        """
        Tick forever (or for max_passes passes), one pass per tick.

        Returns:
            Number of passes run
        """
        interval = self.config.poll_interval
        passes = 0
        deadline = self.clock() + interval
        while max_passes is None or passes < max_passes:
            wait = deadline - self.clock()
            if wait > 0 and self._stop.wait(wait):
                break
            if self._stop.is_set():
                break

            self.run_pass()
            passes += 1

            deadline, dropped = next_deadline(deadline, self.clock(), interval)
            if dropped:
                log.debug("Pass overran the poll interval, dropped %d tick(s)", dropped)
        return passes
