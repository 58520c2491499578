"""
mdproc - Resource synchronizer for wiki text classes

Teachers upload markdown text classes through the wiki backend. This
package runs the background worker that downloads every resource those
documents link to, stores it under the sync directory, and writes a
processed copy of each document whose links point at the local copies.
"""

__version__ = "1.0.0"
__author__ = "Dale Chapman"
__license__ = "MIT"

# Make key utilities easily importable
from .config_utils import SyncConfig, get_config
from .errors import MdprocError, ConfigurationError

__all__ = [
    "__version__",
    "SyncConfig",
    "get_config",
    "MdprocError",
    "ConfigurationError",
]
