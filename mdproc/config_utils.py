# config_utils.py - YAML Configuration System for mdproc
"""
mdproc configuration utilities with YAML file support.

Configuration Resolution Order (highest to lowest priority):
1. Command line options (mdproc -D / --dir / -p / -b / -A)
2. Environment variables (MDPROC_DB, MDPROC_DIR, etc.)
3. mdproc.yaml in the working directory
4. ~/.mdproc/config.yaml (global defaults)

The result is an immutable SyncConfig that is handed to the Synchronizer
at construction; nothing in the pipeline reads settings from globals.

Usage:
    from mdproc.config_utils import get_config

    config = get_config(overrides={"poll_interval_ms": 1000})
    print(config.destination_root)
    print(config.base_path)
"""

import os
from pathlib import Path
from dataclasses import dataclass
from typing import Optional, Dict, Any

import yaml

from mdproc.errors import ConfigurationError, invalid_setting_error


DEFAULT_DB_PATH = "./ecommunity.db"
DEFAULT_DESTINATION_ROOT = "sync/"
DEFAULT_POLL_INTERVAL_MS = 5000
DEFAULT_BASE_PATH = "http://localhost:3000/static/"
DEFAULT_USER_AGENT = ""

CONFIG_FILE_NAME = "mdproc.yaml"

# Setting name -> environment variable
ENV_VARS = {
    "db_path": "MDPROC_DB",
    "destination_root": "MDPROC_DIR",
    "poll_interval_ms": "MDPROC_POLL_MS",
    "base_path": "MDPROC_BASE_PATH",
    "user_agent": "MDPROC_USER_AGENT",
    "request_timeout": "MDPROC_TIMEOUT",
}

SETTING_NAMES = tuple(ENV_VARS)


def normalize_dir(value: str) -> str:
    """Append the trailing slash that path and URL concatenation relies on."""
    if not value.endswith("/"):
        return value + "/"
    return value


@dataclass(frozen=True)
class SyncConfig:
    """Complete synchronizer configuration"""
    db_path: str = DEFAULT_DB_PATH
    destination_root: str = DEFAULT_DESTINATION_ROOT
    base_path: str = DEFAULT_BASE_PATH
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    user_agent: str = DEFAULT_USER_AGENT
    # None keeps the requests default (no timeout)
    request_timeout: Optional[float] = None

    def __post_init__(self):
        if not self.destination_root:
            raise invalid_setting_error("destination_root", self.destination_root,
                                        "a directory path")
        if not self.base_path:
            raise invalid_setting_error("base_path", self.base_path, "a URL prefix")
        if self.poll_interval_ms <= 0:
            raise invalid_setting_error("poll_interval_ms", self.poll_interval_ms,
                                        "a positive number of milliseconds")
        if self.request_timeout is not None and self.request_timeout <= 0:
            raise invalid_setting_error("request_timeout", self.request_timeout,
                                        "a positive number of seconds")
        object.__setattr__(self, "destination_root", normalize_dir(self.destination_root))
        object.__setattr__(self, "base_path", normalize_dir(self.base_path))

    @property
    def poll_interval(self) -> float:
        """Polling interval in seconds"""
        return self.poll_interval_ms / 1000.0


def _coerce(name: str, value: Any, source: str) -> Any:
    """Convert raw YAML/env values to the type each setting expects."""
    if name == "poll_interval_ms":
        try:
            return int(value)
        except (TypeError, ValueError) as e:
            raise invalid_setting_error(name, value, "an integer", source) from e
    if name == "request_timeout":
        if value in (None, "", "none"):
            return None
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise invalid_setting_error(name, value, "a number of seconds", source) from e
    if value is None:
        return ""
    return str(value)


class ConfigLoader:
    """Load configuration from multiple sources"""

    def __init__(self, work_dir: Optional[Path] = None):
        self.work_dir = Path(work_dir) if work_dir else Path.cwd()
        self.values: Dict[str, Any] = {}
        self.extra: Dict[str, Any] = {}
        # Track where values came from (for debugging)
        self.sources: Dict[str, str] = {}

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> SyncConfig:
        """Load configuration from all sources in priority order"""
        # Load in reverse priority (lowest first, higher overwrites)
        self._load_global_config()
        self._load_yaml_config()
        self._load_env_vars()
        self._apply_overrides(overrides or {})

        return SyncConfig(**self.values)

    def _set(self, name: str, value: Any, source: str):
        self.values[name] = _coerce(name, value, source)
        self.sources[name] = source

    def _load_global_config(self):
        """Load ~/.mdproc/config.yaml if it exists"""
        global_config = Path.home() / ".mdproc" / "config.yaml"
        if global_config.exists():
            self._load_yaml_file(global_config, "global")

    def _load_yaml_config(self):
        """Load mdproc.yaml from the working directory"""
        yaml_path = self.work_dir / CONFIG_FILE_NAME
        if yaml_path.exists():
            self._load_yaml_file(yaml_path, CONFIG_FILE_NAME)

    def _load_yaml_file(self, path: Path, source_name: str):
        """Load settings from a YAML file"""
        try:
            data = yaml.safe_load(path.read_text()) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(
                message=f"Failed to parse {path}",
                suggestion="Fix the YAML syntax or remove the file",
                context={"file": str(path)},
                cause=e,
            )
        if not isinstance(data, dict):
            raise ConfigurationError(
                message=f"{path} must contain a mapping of settings",
                context={"file": str(path)},
            )

        for key, value in data.items():
            if key in SETTING_NAMES:
                self._set(key, value, source_name)
            else:
                self.extra[key] = value

    def _load_env_vars(self):
        """Load from environment variables"""
        for name, env_var in ENV_VARS.items():
            value = os.environ.get(env_var)
            if value is not None and value != "":
                self._set(name, value, f"env:{env_var}")

    def _apply_overrides(self, overrides: Dict[str, Any]):
        """Apply explicit values (CLI options); None means not given"""
        for name, value in overrides.items():
            if value is None:
                continue
            if name not in SETTING_NAMES:
                raise ConfigurationError(
                    message=f"Unknown setting '{name}'",
                    context={"known_settings": ", ".join(SETTING_NAMES)},
                )
            self._set(name, value, "cli")


# ============================================================================
# Public API
# ============================================================================

def get_config(
    work_dir: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> SyncConfig:
    """
    Get complete synchronizer configuration.

    Args:
        work_dir: Directory holding mdproc.yaml (defaults to cwd)
        overrides: Explicit values, typically from command line options

    Returns:
        SyncConfig with all settings resolved

    Raises:
        ConfigurationError: If a value is missing or malformed
    """
    loader = ConfigLoader(work_dir)
    return loader.load(overrides)


def describe_config(
    work_dir: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None
) -> Dict[str, Dict[str, Any]]:
    """
    Resolve configuration and report each value with its source.

    Returns:
        {setting: {"value": ..., "source": ...}}
    """
    loader = ConfigLoader(work_dir)
    config = loader.load(overrides)
    report = {}
    for name in SETTING_NAMES:
        report[name] = {
            "value": getattr(config, name),
            "source": loader.sources.get(name, "default"),
        }
    return report


def create_config_template(include_comments: bool = True) -> str:
    """
    Generate a mdproc.yaml template.

    Args:
        include_comments: Whether to include explanatory comments

    Returns:
        YAML string ready to write to file
    """
    if include_comments:
        return f'''# mdproc Configuration File

# sqlite database shared with the wiki backend
db_path: {DEFAULT_DB_PATH}

# Root of the synchronized files (uploads, processed files, assets/)
destination_root: {DEFAULT_DESTINATION_ROOT}

# URL prefix under which the file server exposes destination_root/assets/
base_path: {DEFAULT_BASE_PATH}

# Milliseconds between synchronization passes
poll_interval_ms: {DEFAULT_POLL_INTERVAL_MS}

# User-Agent header sent when downloading resources
user_agent: ""

# Seconds before a download is abandoned (omit for no timeout)
# request_timeout: 30
'''
    else:
        return f'''db_path: {DEFAULT_DB_PATH}
destination_root: {DEFAULT_DESTINATION_ROOT}
base_path: {DEFAULT_BASE_PATH}
poll_interval_ms: {DEFAULT_POLL_INTERVAL_MS}
user_agent: ""
'''
