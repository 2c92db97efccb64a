"""Environment variable interpolation over a parsed YAML value tree.

Every string leaf of the tree is rewritten in place:

1. If an environment variable named after the leaf's position exists, it
   replaces the whole value. The name is the chain of mapping keys from the
   root, upper-cased and joined with ``_``, so ``logger.default_level`` is
   overridden by ``LOGGER_DEFAULT_LEVEL``. Sequence items share the name of
   the sequence itself.
2. Otherwise ``${NAME}`` and ``${NAME:fallback}`` markers are expanded.
   ``\\${X}`` keeps the marker literally; ``\\\\${X}`` yields one backslash
   followed by the expanded value. A marker without a closing brace is kept
   as is, and an unset variable without fallback expands to nothing.

When the rewrite changed the text, the result is retyped: unsigned integer,
then float, then ``true``/``false``. Untouched literals keep their type.

Note that in YAML double-quoted scalars every backslash in the examples
above must itself be doubled.
"""
from __future__ import annotations

import re
from typing import Any, Iterable, Sequence, Union

from loguru import logger

from tierconf.config.env import env_var

MARKER = "${"
PATH_SEPARATOR = "_"

_U64_MAX = 2 ** 64 - 1
_UINT_RE = re.compile(r"\+?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)",
    re.IGNORECASE,
)

Scalar = Union[int, float, bool, str]


def env_path_name(path: Sequence[str]) -> str:
    """Render a key path as the positional override variable name."""
    return PATH_SEPARATOR.join(segment.upper() for segment in path)


def expand_markers(value: str) -> str:
    """Expand ``${...}`` markers in a single string."""
    parts = value.split(MARKER)
    acc = parts[0]

    for part in parts[1:]:
        if acc.endswith("\\\\"):
            # escaped escape: keep one backslash, still substitute
            acc = acc[:-1]
        elif acc.endswith("\\"):
            acc = acc[:-1] + MARKER + part
            continue

        inner, closed, tail = part.partition("}")
        if not closed:
            acc += MARKER + part
            continue

        name, has_fallback, fallback = inner.partition(":")
        resolved = env_var(name)
        if resolved is not None:
            acc += resolved
        elif has_fallback:
            acc += fallback
        acc += tail

    return acc


def subst_string(path: Sequence[str], value: str) -> str:
    """Resolve one string leaf: positional override first, then markers."""
    override = env_var(env_path_name(path)) if path else None
    if override is not None:
        return override
    return expand_markers(value)


def coerce_scalar(text: str) -> Scalar:
    """Retype a rewritten string as u64, float or bool when it parses as one."""
    if _UINT_RE.fullmatch(text):
        number = int(text)
        if number <= _U64_MAX:
            return number
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    if text == "true":
        return True
    if text == "false":
        return False
    return text


def substitute(node: Any, path: Iterable[str] = ()) -> Any:
    """Rewrite every string leaf under ``node`` and return the resulting node.

    Containers are modified in place and returned as the same object; a
    string root comes back as its replacement.
    """
    path = tuple(path)

    if isinstance(node, str):
        resolved = subst_string(path, node)
        if resolved == node:
            return node
        coerced = coerce_scalar(resolved)
        logger.trace("Substituted config value at {!r}", env_path_name(path) or "<root>")
        return coerced

    if isinstance(node, dict):
        for key in node:
            node[key] = substitute(node[key], path + (str(key).upper(),))
        return node

    if isinstance(node, list):
        for index, item in enumerate(node):
            node[index] = substitute(item, path)
        return node

    return node
