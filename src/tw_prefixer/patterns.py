"""Extractors — locate class lists in raw text and splice rewritten ones back.

Each pass is a plain regex substitution over the whole blob.  Nothing
outside a matched region is touched, and a region whose tokens all stay
the same is returned byte-for-byte, so a second run over already
prefixed files is a no-op.

There is deliberately no HTML/CSS/JS parsing here: unterminated or
ambiguous regions either don't match or match up to the nearest
terminator, and processing simply moves on.
"""

from __future__ import annotations
import re
from pathlib import PurePath
from typing import AbstractSet, Callable

from .classifier import add_prefix
from .types import ClassChange

# A pass: (text, prefix, ignore) -> (new_text, changes)
Pass = Callable[[str, str, AbstractSet[str]], tuple[str, list[ClassChange]]]

# class="..." / class='...' (not :class, v-bind:class, data-class, className)
_MARKUP_CLASS = re.compile(
    r"(?<![\w:.-])class\s*=\s*(?P<q>[\"'])(?P<value>[^\"']*)(?P=q)",
    re.IGNORECASE,
)

# className="..." / className='...' / className={"..."} / className={`...`}
_SCRIPT_CLASS = re.compile(
    r"className\s*=\s*(?:"
    r"(?P<q>[\"'])(?P<value>[^\"'`]*)(?P=q)"
    r"|\{\s*(?P<bq>[\"'`])(?P<braced>[^\"'`]*)(?P=bq)\s*\})",
    re.IGNORECASE,
)

# .name at line start or after whitespace / "," / "{"
_SELECTOR = re.compile(
    r"(?:^|(?<=[\s,{]))\.(?P<name>(?![0-9])[A-Za-z0-9_-]+)",
    re.MULTILINE,
)

# @apply a b c;  (terminated by ";" or a brace)
_APPLY = re.compile(r"@apply\s+(?P<classes>[^;{}]+)(?P<semi>;*)")

# Template syntax inside a markup attribute value
_MARKUP_DYNAMIC = ("${", "{{", "<?", "{%")
# Dynamic className expressions
_SCRIPT_DYNAMIC = ("${", "?")


def _rewrite_tokens(
    value: str,
    dialect: str,
    start: int,
    prefix: str,
    ignore: AbstractSet[str],
    changes: list[ClassChange],
) -> str | None:
    """Rewrite a whitespace-separated class list.

    Returns the new list joined by single spaces, or None when no token
    changed (the caller then keeps the region as it was).
    """
    found: list[ClassChange] = []
    out: list[str] = []
    for token in value.split():
        new = add_prefix(token, prefix, ignore)
        if new != token:
            found.append(ClassChange(dialect, start, token, new))
        out.append(new)
    if not found:
        return None
    changes.extend(found)
    return " ".join(out)


def _splice(m: re.Match, group: str, replacement: str) -> str:
    """Replace one named group inside the full match text."""
    whole = m.group(0)
    lo = m.start(group) - m.start()
    hi = m.end(group) - m.start()
    return whole[:lo] + replacement + whole[hi:]


def rewrite_markup(text: str, prefix: str, ignore: AbstractSet[str]) -> tuple[str, list[ClassChange]]:
    """Prefix tokens inside ``class="..."`` attributes."""
    changes: list[ClassChange] = []

    def _sub(m: re.Match) -> str:
        value = m.group("value")
        if any(marker in value for marker in _MARKUP_DYNAMIC):
            return m.group(0)
        new = _rewrite_tokens(value, "markup", m.start(), prefix, ignore, changes)
        return m.group(0) if new is None else _splice(m, "value", new)

    return _MARKUP_CLASS.sub(_sub, text), changes


def rewrite_script(text: str, prefix: str, ignore: AbstractSet[str]) -> tuple[str, list[ClassChange]]:
    """Prefix tokens inside literal ``className`` values.

    Template interpolation (``${``) and conditionals (``?``) are left alone.
    """
    changes: list[ClassChange] = []

    def _sub(m: re.Match) -> str:
        group = "value" if m.group("value") is not None else "braced"
        value = m.group(group)
        if any(marker in value for marker in _SCRIPT_DYNAMIC):
            return m.group(0)
        new = _rewrite_tokens(value, "script", m.start(), prefix, ignore, changes)
        return m.group(0) if new is None else _splice(m, group, new)

    return _SCRIPT_CLASS.sub(_sub, text), changes


def rewrite_selectors(text: str, prefix: str, ignore: AbstractSet[str]) -> tuple[str, list[ClassChange]]:
    """Prefix ``.class`` selectors in stylesheets.

    Selectors are taken to be real classes, so only the ignore list and
    the already-prefixed check apply here.
    """
    changes: list[ClassChange] = []

    def _sub(m: re.Match) -> str:
        name = m.group("name")
        if name in ignore or name.startswith(prefix):
            return m.group(0)
        new = prefix + name
        changes.append(ClassChange("selector", m.start(), name, new))
        return "." + new

    return _SELECTOR.sub(_sub, text), changes


def rewrite_apply(text: str, prefix: str, ignore: AbstractSet[str]) -> tuple[str, list[ClassChange]]:
    """Prefix tokens in ``@apply`` directives."""
    changes: list[ClassChange] = []

    def _sub(m: re.Match) -> str:
        classes = m.group("classes")
        # Braces never reach the class list: the pattern stops at them
        new = _rewrite_tokens(classes, "apply", m.start(), prefix, ignore, changes)
        if new is None:
            return m.group(0)
        # Keep the whitespace before a closing brace when ";" was missing
        tail = "" if m.group("semi") else classes[len(classes.rstrip()):]
        return f"@apply {new};{tail}"

    return _APPLY.sub(_sub, text), changes


# Extension -> ordered passes.  Unknown extensions get no passes.
_MARKUP: tuple[Pass, ...] = (rewrite_markup,)
_STYLESHEET: tuple[Pass, ...] = (rewrite_selectors, rewrite_apply)
_SCRIPT: tuple[Pass, ...] = (rewrite_script, rewrite_markup)

DIALECTS: dict[str, tuple[Pass, ...]] = {
    ".html": _MARKUP,
    ".htm": _MARKUP,
    ".php": _MARKUP,
    ".vue": _MARKUP,
    ".svelte": _MARKUP,
    ".css": _STYLESHEET,
    ".scss": _STYLESHEET,
    ".sass": _STYLESHEET,
    ".js": _SCRIPT,
    ".jsx": _SCRIPT,
    ".mjs": _SCRIPT,
    ".cjs": _SCRIPT,
    ".ts": _SCRIPT,
    ".tsx": _SCRIPT,
}


def passes_for(path: str | PurePath) -> tuple[Pass, ...]:
    """Return the rewrite passes for a file, chosen by extension."""
    return DIALECTS.get(PurePath(path).suffix.lower(), ())
