#!/usr/bin/env python3
"""
# mdproc
# Copyright (c) 2026 Dale Chapman
# Licensed under the MIT License. See LICENSE in the project root.

errors.py

Exception classes for the text class synchronizer.

All exceptions include:
- Clear error description
- Actionable suggestions
- Relevant context

Only ConfigurationError ever reaches the user. Everything else is caught
where it happens, logged, and the worker moves on to the next link,
document or tick.
"""
from pathlib import Path
from typing import Optional, Dict, Any


class MdprocError(Exception):
    """Base exception for all mdproc errors"""

    def __init__(
        self,
        message: str,
        suggestion: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        self.message = message
        self.suggestion = suggestion
        self.context = context or {}
        self.cause = cause
        super().__init__(self.format_message())

    def format_message(self) -> str:
        """Format error with all details"""
        lines = [
            "",
            "=" * 70,
            f"❌ {self.__class__.__name__}",
            "=" * 70,
            "",
            self.message,
        ]

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        if self.suggestion:
            lines.append("")
            lines.append("💡 Suggestion:")
            lines.append(f"  {self.suggestion}")

        if self.cause:
            lines.append("")
            lines.append(f"Caused by: {type(self.cause).__name__}: {self.cause}")

        lines.append("")
        lines.append("=" * 70)
        lines.append("")

        return "\n".join(lines)

    def short(self) -> str:
        """One-line form for log records"""
        if self.cause:
            return f"{self.message} ({type(self.cause).__name__}: {self.cause})"
        return self.message


class ConfigurationError(MdprocError):
    """Configuration is missing or invalid"""
    pass


class FetchError(MdprocError):
    """A remote resource could not be downloaded"""
    pass


class StorageError(MdprocError):
    """A local file or directory could not be written"""
    pass


class StoreError(MdprocError):
    """The metadata database could not be read or updated"""
    pass


# Specific error factory functions

def invalid_setting_error(
    name: str,
    value: Any,
    expected: str,
    source: Optional[str] = None
) -> ConfigurationError:
    """Create error for a setting with an unusable value"""
    return ConfigurationError(
        message=f"Invalid value for '{name}': {value!r}",
        suggestion=(
            f"Expected {expected}.\n\n"
            "Set it in one of these places:\n"
            "  - command line option\n"
            "  - MDPROC_* environment variable\n"
            "  - mdproc.yaml in the working directory"
        ),
        context={
            "setting": name,
            "value": value,
            "source": source or "default",
        }
    )


def fetch_failed_error(url: str, cause: Exception) -> FetchError:
    """Create error for a failed download"""
    return FetchError(
        message=f"Unable to download {url}",
        suggestion=(
            "The link is left unchanged in the processed document.\n"
            "It will not be retried until the document is re-uploaded."
        ),
        context={"url": url},
        cause=cause
    )


def write_failed_error(path: Path, cause: Exception) -> StorageError:
    """Create error for a failed file write"""
    return StorageError(
        message=f"Unable to write {path}",
        suggestion="Check that the sync directory exists and is writable",
        context={"path": str(path)},
        cause=cause
    )


def store_failed_error(operation: str, db_path: str, cause: Exception) -> StoreError:
    """Create error for a failed database statement"""
    return StoreError(
        message=f"Unable to {operation}",
        suggestion=(
            f"Check that {db_path} exists and contains the text_class table.\n"
            "Run: mdproc init-db to create the schema"
        ),
        context={"database": db_path, "operation": operation},
        cause=cause
    )
