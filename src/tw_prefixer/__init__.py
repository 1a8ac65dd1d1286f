"""tw-prefixer — prefix utility CSS classes across markup, scripts and stylesheets."""

from .prefixer import Prefixer, PrefixerConfig
from .classifier import add_prefix, is_utility_class
from .backup import BackupStore
from .runner import PrefixRunner, RunStats
from .config import configure_logging, create_runner, load_config, load_from_yaml
from .types import ClassChange, ConfigError, RewriteResult

__all__ = [
    "Prefixer", "PrefixerConfig",
    "add_prefix", "is_utility_class",
    "BackupStore",
    "PrefixRunner", "RunStats",
    "configure_logging", "create_runner", "load_config", "load_from_yaml",
    "ClassChange", "ConfigError", "RewriteResult",
]
__version__ = "0.1.0"
