"""Prefixer — the main API.

Usage:
    from tw_prefixer import Prefixer, PrefixerConfig

    prefixer = Prefixer(PrefixerConfig(prefix="tw-"))

    prefixer.add_prefix("md:hover:bg-red-500")   # "md:hover:tw-bg-red-500"

    result = prefixer.rewrite('<div class="flex myWidget">', "index.html")
    print(result.text)       # '<div class="tw-flex myWidget">'
    print(result.count)      # 1
"""

from __future__ import annotations
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePath

from .classifier import add_prefix
from .patterns import passes_for
from .types import ConfigError, RewriteResult

logger = logging.getLogger(__name__)

_PREFIX_RE = re.compile(r"[A-Za-z0-9_-]+")

# Configured level name -> logging level
LOG_LEVELS: dict[str, int] = {
    "silent": logging.CRITICAL + 10,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
}

DEFAULT_IGNORE = frozenset({"swiper", "swiper-wrapper", "swiper-slide"})

# Examples shown by `tw-prefixer test`
SAMPLE_TOKENS = (
    "bg-red-500",
    "hover:bg-red-500",
    "md:hover:bg-red-500",
    "!-mt-4",
    "hover:!-translate-x-2",
    "bg-gray",
    "w-[100px]",
    "!-left-[60%]",
    "group-hover:opacity-50",
    "peer-focus:ring-2",
    "myCustomClass",
    "my_custom_class",
    "dark:hover:!-rotate-45",
    "two-bg-red-500",
)


def validate_prefix(prefix: str) -> str:
    """Check a prefix; returns it unchanged or raises ConfigError."""
    if not isinstance(prefix, str):
        raise ConfigError("prefix must be a string")
    stem = prefix[:-1] if prefix.endswith("-") else prefix
    if not _PREFIX_RE.fullmatch(stem):
        raise ConfigError(
            f"invalid prefix {prefix!r}: only letters, digits, hyphens and underscores are allowed"
        )
    return prefix


@dataclass
class PrefixerConfig:
    """Configuration for the Prefixer."""
    prefix: str = "tw-"
    # Base classes that are never prefixed (third-party components etc.)
    ignore_classes: set[str] = field(default_factory=lambda: set(DEFAULT_IGNORE))
    log_level: str = "info"           # silent | error | warn | info | debug

    def __post_init__(self) -> None:
        validate_prefix(self.prefix)
        if self.log_level not in LOG_LEVELS:
            raise ConfigError(f"log level must be one of: {', '.join(LOG_LEVELS)}")
        self.ignore_classes = set(self.ignore_classes)


class Prefixer:
    """Rewrites utility class names in markup, script and stylesheet text.

    Stateless apart from its config; one instance can be reused for any
    number of files.
    """

    def __init__(self, config: PrefixerConfig | None = None) -> None:
        self.config = config or PrefixerConfig()

    @property
    def prefix(self) -> str:
        return self.config.prefix

    def add_prefix(self, token: str) -> str:
        """Rewrite a single class token."""
        return add_prefix(token, self.config.prefix, self.config.ignore_classes)

    def rewrite(self, text: str, path: str | PurePath) -> RewriteResult:
        """Rewrite every class list in ``text``, dialect chosen by ``path``.

        Files with an unknown extension come back unchanged.
        """
        result = RewriteResult(text=text)
        for rewrite_pass in passes_for(path):
            result.text, changes = rewrite_pass(
                result.text, self.config.prefix, self.config.ignore_classes,
            )
            result.changes.extend(changes)

        if result.changes:
            logger.debug("%s: %d class(es) rewritten", path, result.count)
        return result

    def sample(self, tokens: tuple[str, ...] | list[str] | None = None) -> list[tuple[str, str]]:
        """Return (token, rewritten) pairs for a demo table."""
        return [(t, self.add_prefix(t)) for t in (tokens or SAMPLE_TOKENS)]
