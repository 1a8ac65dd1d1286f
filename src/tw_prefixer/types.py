"""Core types."""

from __future__ import annotations
from dataclasses import dataclass, field


class ConfigError(ValueError):
    """Raised at construction time for an invalid prefix or log level."""


@dataclass(frozen=True, slots=True)
class ClassChange:
    """A single class token that was rewritten."""
    dialect: str           # "markup" | "script" | "selector" | "apply"
    start: int             # offset of the enclosing region
    original: str
    rewritten: str


@dataclass(slots=True)
class RewriteResult:
    """Result of rewriting one text blob."""
    text: str                                            # rewritten text
    changes: list[ClassChange] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.changes)
