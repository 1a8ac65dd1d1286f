"""Class-name classification and prefixing.

A token looks like ``[modifier:]*[!]base`` where only ``base`` is ever
rewritten:

    md:hover:bg-red-500      ->  md:hover:tw-bg-red-500
    hover:!-translate-x-2    ->  hover:!tw--translate-x-2
    group-hover:opacity-50   ->  group-hover:tw-opacity-50

When in doubt a token is left alone: prefixing a class that belongs to
some other naming system breaks it silently.
"""

from __future__ import annotations
import re
from typing import AbstractSet

_CAMEL_CASE = re.compile(r"[a-z][A-Z]")
_FRAMEWORK_PREFIX = re.compile(r"^(?:ng-|v-|data-|aria-|role-)")

# Leading group-*/peer-* variants, greedy up to the last such segment
_GROUP_MODIFIER = re.compile(r"^(.*group-[^:]*:)(.+)$", re.DOTALL)
_PEER_MODIFIER = re.compile(r"^(.*peer-[^:]*:)(.+)$", re.DOTALL)


def is_utility_class(base_class: str, ignore: AbstractSet[str] = frozenset()) -> bool:
    """Return True if ``base_class`` looks like a utility class.

    ``base_class`` is the part after the last ``:``; a single leading
    ``!`` is stripped before checking.
    """
    name = base_class[1:] if base_class.startswith("!") else base_class

    if name in ignore:
        return False
    # camelCase: JS identifiers used as class names
    if _CAMEL_CASE.search(name):
        return False
    # snake_case, unless the underscore lives inside an arbitrary value
    if "_" in name and "[" not in name:
        return False
    if len(name) < 2 or name[0].isupper() or name[0].isdigit() or "__" in name:
        return False
    if _FRAMEWORK_PREFIX.match(name):
        return False
    return True


def split_modifiers(token: str) -> tuple[str, str]:
    """Split a token at its last ``:`` into (modifier chain, base class)."""
    idx = token.rfind(":")
    return token[:idx + 1], token[idx + 1:]


def add_prefix(token: str, prefix: str, ignore: AbstractSet[str] = frozenset()) -> str:
    """Insert ``prefix`` in front of the base class of ``token``.

    Tokens already containing ``prefix`` anywhere are returned as-is, which
    makes the rewrite idempotent.
    """
    if prefix in token:
        return token

    # Peel group-*/peer-* variants one at a time; they are kept verbatim
    head = ""
    rest = token
    while True:
        m = _GROUP_MODIFIER.match(rest) or _PEER_MODIFIER.match(rest)
        if m is None:
            break
        head += m.group(1)
        rest = m.group(2)

    chain, base = split_modifiers(rest)
    if not is_utility_class(base, ignore):
        return token

    if base.startswith("!"):
        return f"{head}{chain}!{prefix}{base[1:]}"
    return f"{head}{chain}{prefix}{base}"
