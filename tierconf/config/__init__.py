"""Layered configuration loading.

Resolves typed configuration from YAML documents with the following layers:
1. An embedded baseline document (lowest priority)
2. An optional runtime document, located directly or through an environment variable
3. Positional environment overrides and ``${VAR}`` markers inside either document

Main components:
- substitution.py: environment interpolation over the parsed value tree
- schema.py: line-aware decoding into dataclasses
- loader.py: load_str / load_path / load_env primitives
- merge.py: baseline/override merge per field kind
- layered.py: the embed -> load -> merge composition
"""
from __future__ import annotations

from .layered import load_layered, read_embedded
from .loader import load_env, load_path, load_str, resolve_tree
from .merge import FieldKind, field_kind, merge
from .schema import section_name
from .substitution import coerce_scalar, expand_markers, subst_string, substitute

__all__ = [
    "load_str",
    "load_path",
    "load_env",
    "resolve_tree",
    "merge",
    "FieldKind",
    "field_kind",
    "load_layered",
    "read_embedded",
    "section_name",
    "substitute",
    "subst_string",
    "expand_markers",
    "coerce_scalar",
]
