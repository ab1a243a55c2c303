"""
Payload serialization for stored runs.

Payloads are written as JSON. Values JSON cannot represent exactly are
wrapped in single-key tag objects so that ``loads(dumps(value)) == value``
holds for nested mappings, sequences and scalars:

- tuples          -> {"__tuple__": [...]}
- sets            -> {"__set__": [...]}
- frozensets      -> {"__frozenset__": [...]}
- bytes           -> {"__bytes__": "<base64>"}
- non-str keys    -> {"__map__": [[key, value], ...]}
- dicts whose only key is a tag -> {"__dict__": {...}}
"""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping
from typing import cast


_TUPLE = "__tuple__"
_SET = "__set__"
_FROZENSET = "__frozenset__"
_BYTES = "__bytes__"
_MAP = "__map__"
_DICT = "__dict__"

_TAGS = frozenset({_TUPLE, _SET, _FROZENSET, _BYTES, _MAP, _DICT})


def _sorted_items(values: set[object] | frozenset[object]) -> list[object]:
    try:
        return sorted(values)  # type: ignore[type-var]
    except TypeError:
        return list(values)


def _encode(value: object) -> object:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, list):
        return [_encode(item) for item in value]
    if isinstance(value, tuple):
        return {_TUPLE: [_encode(item) for item in value]}
    if isinstance(value, frozenset):
        return {_FROZENSET: [_encode(item) for item in _sorted_items(value)]}
    if isinstance(value, set):
        return {_SET: [_encode(item) for item in _sorted_items(value)]}
    if isinstance(value, (bytes, bytearray)):
        return {_BYTES: base64.b64encode(bytes(value)).decode("ascii")}
    if isinstance(value, Mapping):
        typed_value = cast(Mapping[object, object], value)
        if all(isinstance(key, str) for key in typed_value):
            encoded = {cast(str, key): _encode(item) for key, item in typed_value.items()}
            if len(encoded) == 1 and next(iter(encoded)) in _TAGS:
                return {_DICT: encoded}
            return encoded
        return {_MAP: [[_encode(key), _encode(item)] for key, item in typed_value.items()]}
    raise TypeError(f"Cannot serialize value of type {type(value).__name__}")


def _hashable(value: object) -> object:
    if isinstance(value, list):
        return tuple(_hashable(item) for item in value)
    if isinstance(value, dict):
        return tuple((key, _hashable(item)) for key, item in value.items())
    return value


def _decode(value: object) -> object:
    if isinstance(value, list):
        return [_decode(item) for item in value]
    if not isinstance(value, dict):
        return value
    typed_value = cast(dict[str, object], value)
    if len(typed_value) == 1:
        tag, inner = next(iter(typed_value.items()))
        if tag == _TUPLE:
            return tuple(_decode(item) for item in _require_list(inner, tag))
        if tag == _SET:
            return {_hashable(_decode(item)) for item in _require_list(inner, tag)}
        if tag == _FROZENSET:
            return frozenset(_hashable(_decode(item)) for item in _require_list(inner, tag))
        if tag == _BYTES:
            if not isinstance(inner, str):
                raise ValueError(f"{tag} expects a base64 string")
            return base64.b64decode(inner.encode("ascii"))
        if tag == _MAP:
            decoded: dict[object, object] = {}
            for pair in _require_list(inner, tag):
                if not isinstance(pair, list) or len(pair) != 2:
                    raise ValueError(f"{tag} expects [key, value] pairs")
                decoded[_hashable(_decode(pair[0]))] = _decode(pair[1])
            return decoded
        if tag == _DICT:
            if not isinstance(inner, dict):
                raise ValueError(f"{tag} expects an object")
            return {key: _decode(item) for key, item in cast(dict[str, object], inner).items()}
    return {key: _decode(item) for key, item in typed_value.items()}


def _require_list(value: object, tag: str) -> list[object]:
    if not isinstance(value, list):
        raise ValueError(f"{tag} expects a list")
    return cast(list[object], value)


def dumps(value: object) -> str:
    """Serialize ``value`` to JSON text.

    Raises:
        TypeError: If the value contains an unsupported type.
    """
    return json.dumps(_encode(value), ensure_ascii=False, separators=(",", ":"))


def loads(text: str | bytes) -> object:
    """Deserialize text produced by :func:`dumps`.

    Raises:
        ValueError: If the text is not valid JSON or a tag is malformed.
    """
    return _decode(json.loads(text))
