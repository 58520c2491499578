#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

log_utils.py

Logging setup with level icons, plus the fence helper used to bracket
phases (worker start, each synchronization pass) in the console output.
"""

import logging
from datetime import datetime


# Message-only; no per-line timestamps
LOG_FORMAT = "%(message)s"
VERBOSE_FORMAT = "%(name)s: %(message)s"

LEVEL_ICONS = {
    logging.DEBUG: "🔍",
    logging.INFO: "✔️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
}

# Third-party loggers that are chatty at DEBUG
QUIET_LOGGERS = ("urllib3", "charset_normalizer")


class IconLogFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        icon = LEVEL_ICONS.get(record.levelno, "✔️")
        base = super().format(record)
        return f"{icon} {base}"


def setup_logging(verbosity: int) -> None:
    level = logging.INFO
    fmt = LOG_FORMAT
    if verbosity >= 1:
        fmt = VERBOSE_FORMAT
    if verbosity >= 2:
        level = logging.DEBUG

    handler = logging.StreamHandler()
    formatter = IconLogFormatter(fmt)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(level)
    root.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# -----------------------------------------------------------------------------
# Fence helper for visual phase markers
# -----------------------------------------------------------------------------

DOT_LINE = "." * 70  # ~70-column visual separator


def fence(label: str) -> None:
    """
    Print a visual fence with a timestamped label.
    """
    ts = datetime.now().strftime("%H:%M:%S")
    print(DOT_LINE)
    print(f"[{ts}] {label}")
    print()
