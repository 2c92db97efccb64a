"""Structural decoding of a composed YAML node tree into dataclasses.

Decoding works on nodes rather than on plain Python values so that every
mismatch can be reported with the line it comes from.
"""
from __future__ import annotations

import dataclasses
import re
import sys
import typing
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from yaml.constructor import SafeConstructor
from yaml.nodes import MappingNode, Node, ScalarNode, SequenceNode

from tierconf.core.exceptions import ConfigDeserializeError, TierconfError

_NULL_TAG = "tag:yaml.org,2002:null"
_STR_TAG = "tag:yaml.org,2002:str"
_BOOL_TAG = "tag:yaml.org,2002:bool"
_INT_TAG = "tag:yaml.org,2002:int"
_FLOAT_TAG = "tag:yaml.org,2002:float"

if sys.version_info >= (3, 10):
    from types import UnionType
    _UNION_TYPES: Tuple[Any, ...] = (typing.Union, UnionType)
else:
    _UNION_TYPES = (typing.Union,)


def is_dataclass_type(tp: Any) -> bool:
    return isinstance(tp, type) and dataclasses.is_dataclass(tp)


def is_optional(tp: Any) -> bool:
    """True for ``Optional[T]`` and unions containing ``None``."""
    return typing.get_origin(tp) in _UNION_TYPES and type(None) in typing.get_args(tp)


def optional_arms(tp: Any) -> Tuple[Any, ...]:
    """The non-None members of a union annotation."""
    return tuple(arg for arg in typing.get_args(tp) if arg is not type(None))


def section_name(cls: type) -> str:
    """snake_case form of a class name, used as its document section key."""
    name = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", cls.__name__)
    name = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    return name.lower()


class StrictBoolLoader(yaml.SafeLoader):
    """SafeLoader that resolves only ``true``/``false`` as booleans.

    ``yes``, ``no``, ``on`` and ``off`` stay strings, so a level such as
    ``noisy: off`` reaches a ``str`` field unchanged.
    """


StrictBoolLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _BOOL_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
StrictBoolLoader.add_implicit_resolver(
    _BOOL_TAG,
    re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"),
    list("tTfF"),
)


def load_yaml(text: str) -> Any:
    """Parse YAML text into plain Python values."""
    return yaml.load(text, Loader=StrictBoolLoader)


def compose(text: str) -> Optional[Node]:
    """Compose YAML text into a node tree (None for an empty document)."""
    loader = StrictBoolLoader(text)
    try:
        return loader.get_single_node()
    finally:
        loader.dispose()


def node_line(node: Optional[Node]) -> Optional[int]:
    if node is None:
        return None
    return node.start_mark.line + 1


def _location(node: Optional[Node]) -> str:
    if node is None:
        return ""
    mark = node.start_mark
    return f" at line {mark.line + 1} column {mark.column + 1}"


def _type_name(tp: Any) -> str:
    if tp is bool:
        return "a boolean"
    if tp is int:
        return "an integer"
    if tp is float:
        return "a floating point number"
    if tp in (str, Path):
        return "a string"
    if is_dataclass_type(tp):
        return f"struct {tp.__name__}"
    origin = typing.get_origin(tp)
    if origin in (list, tuple):
        return "a sequence"
    if origin is dict:
        return "a map"
    return getattr(tp, "__name__", str(tp))


class NodeDecoder:
    """Decodes nodes against type annotations."""

    def __init__(self) -> None:
        self._constructor = SafeConstructor()

    def decode(self, tp: Any, node: Optional[Node], where: str = "") -> Any:
        if node is None:
            if tp is Any or is_optional(tp):
                return None
            raise self._error(where, "invalid type: empty document, expected " + _type_name(tp), None)

        if tp is Any or tp is object:
            return self._constructor.construct_object(node, deep=True)

        if typing.get_origin(tp) in _UNION_TYPES:
            return self._decode_union(tp, node, where)

        if is_dataclass_type(tp):
            return self._decode_dataclass(tp, node, where)

        origin = typing.get_origin(tp)
        if tp in (list, tuple) or origin in (list, tuple):
            return self._decode_sequence(tp, node, where)
        if tp is dict or origin is dict:
            return self._decode_mapping(tp, node, where)

        return self._decode_scalar(tp, node, where)

    def _decode_union(self, tp: Any, node: Node, where: str) -> Any:
        if self._is_null(node):
            if is_optional(tp):
                return None
            raise self._mismatch(where, node, _type_name(tp))

        arms = optional_arms(tp)
        if len(arms) == 1:
            return self.decode(arms[0], node, where)

        for arm in arms:
            try:
                return self.decode(arm, node, where)
            except ConfigDeserializeError:
                continue
        expected = " or ".join(_type_name(arm) for arm in arms)
        raise self._mismatch(where, node, expected)

    def _decode_dataclass(self, cls: type, node: Node, where: str) -> Any:
        if not isinstance(node, MappingNode):
            raise self._mismatch(where, node, _type_name(cls))

        hints = typing.get_type_hints(cls)
        fields = {f.name: f for f in dataclasses.fields(cls) if f.init}
        entries = self.entries_of(node)

        if getattr(cls, "__deny_unknown_fields__", False):
            for key, (key_node, _) in entries.items():
                if key not in fields:
                    expected = ", ".join(f"`{name}`" for name in fields)
                    raise self._error(
                        where,
                        f"unknown field `{key}`, expected one of {expected}",
                        key_node,
                    )

        kwargs: Dict[str, Any] = {}
        for name, field in fields.items():
            tp = hints[name]
            if name in entries:
                kwargs[name] = self.decode(tp, entries[name][1], _join(where, name))
            elif field.default is not dataclasses.MISSING or field.default_factory is not dataclasses.MISSING:
                continue
            elif is_optional(tp):
                kwargs[name] = None
            else:
                raise self._error(where, f"missing field `{name}`", node)

        try:
            return cls(**kwargs)
        except (TypeError, ValueError, TierconfError) as e:
            raise self._error(where, str(e), node) from e

    def _decode_sequence(self, tp: Any, node: Node, where: str) -> Any:
        if not isinstance(node, SequenceNode):
            raise self._mismatch(where, node, _type_name(tp))

        args = typing.get_args(tp)
        origin = typing.get_origin(tp) or tp

        if origin is tuple and args and args[-1] is not Ellipsis:
            if len(args) != len(node.value):
                raise self._error(
                    where,
                    f"invalid length {len(node.value)}, expected a sequence of {len(args)} elements",
                    node,
                )
            return tuple(
                self.decode(arg, item, f"{where}[{index}]")
                for index, (arg, item) in enumerate(zip(args, node.value))
            )

        item_tp = args[0] if args else Any
        items = [self.decode(item_tp, item, f"{where}[{index}]") for index, item in enumerate(node.value)]
        return tuple(items) if origin is tuple else items

    def _decode_mapping(self, tp: Any, node: Node, where: str) -> Dict[Any, Any]:
        if not isinstance(node, MappingNode):
            raise self._mismatch(where, node, _type_name(tp))

        args = typing.get_args(tp)
        key_tp, value_tp = args if args else (Any, Any)
        result: Dict[Any, Any] = {}
        for key_node, value_node in node.value:
            key = self.decode(key_tp, key_node, where)
            result[key] = self.decode(value_tp, value_node, _join(where, str(key)))
        return result

    def _decode_scalar(self, tp: Any, node: Node, where: str) -> Any:
        if not isinstance(node, ScalarNode) or self._is_null(node):
            raise self._mismatch(where, node, _type_name(tp))

        if tp in (str, Path):
            if node.tag == _STR_TAG:
                return tp(node.value)
            raise self._mismatch(where, node, _type_name(tp))

        value = self._constructor.construct_object(node, deep=True)
        if tp is bool:
            if node.tag == _BOOL_TAG:
                return value
        elif tp is int:
            if node.tag == _INT_TAG:
                return value
        elif tp is float:
            if node.tag in (_INT_TAG, _FLOAT_TAG):
                return float(value)
        elif isinstance(tp, type) and isinstance(value, tp):
            return value
        raise self._mismatch(where, node, _type_name(tp))

    def entries_of(self, node: MappingNode) -> Dict[str, Tuple[Node, Node]]:
        entries: Dict[str, Tuple[Node, Node]] = {}
        for key_node, value_node in node.value:
            key = self._constructor.construct_object(key_node, deep=True)
            entries[str(key)] = (key_node, value_node)
        return entries

    @staticmethod
    def _is_null(node: Node) -> bool:
        return isinstance(node, ScalarNode) and node.tag == _NULL_TAG

    def describe(self, node: Node) -> str:
        if isinstance(node, MappingNode):
            return "map"
        if isinstance(node, SequenceNode):
            return "sequence"
        if node.tag == _NULL_TAG:
            return "unit value"
        if node.tag == _BOOL_TAG:
            return f"boolean `{node.value}`"
        if node.tag == _INT_TAG:
            return f"integer `{node.value}`"
        if node.tag == _FLOAT_TAG:
            return f"floating point `{node.value}`"
        return f'string "{node.value}"'

    def _mismatch(self, where: str, node: Node, expected: str) -> ConfigDeserializeError:
        return self._error(where, f"invalid type: {self.describe(node)}, expected {expected}", node)

    @staticmethod
    def _error(where: str, message: str, node: Optional[Node]) -> ConfigDeserializeError:
        prefix = f"{where}: " if where else ""
        return ConfigDeserializeError(f"{prefix}{message}{_location(node)}", node_line(node))


def _join(where: str, name: str) -> str:
    return f"{where}.{name}" if where else name


def decode(cls: Any, node: Optional[Node], section: Optional[str] = None) -> Any:
    """Decode ``node`` into ``cls``, optionally from one top-level section.

    Raises:
        ConfigDeserializeError: carrying the reason and the offending line
    """
    decoder = NodeDecoder()
    if section is None:
        return decoder.decode(cls, node)

    if not isinstance(node, MappingNode):
        found = "empty document" if node is None else decoder.describe(node)
        raise ConfigDeserializeError(
            f"invalid type: {found}, expected a map with field `{section}`{_location(node)}",
            node_line(node),
        )
    entries = decoder.entries_of(node)
    if section not in entries:
        raise ConfigDeserializeError(f"missing field `{section}`{_location(node)}", node_line(node))
    return decoder.decode(cls, entries[section][1], section)
