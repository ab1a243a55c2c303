"""Tests for payload serialization."""

from __future__ import annotations

import json
import math

import pytest

from store.codec import dumps, loads


def test_profile_payload_round_trip() -> None:
    payload = {
        "main()": {"ct": 1, "wt": 1520, "cpu": 1400, "mu": 2048, "pmu": 4096},
        "main()==>foo": {"ct": 3, "wt": 120},
        "foo==>bar": {"ct": 3, "wt": 40.5},
    }
    assert loads(dumps(payload)) == payload


def test_output_is_json_text() -> None:
    text = dumps({"main()==>foo": {"ct": 1}})
    assert json.loads(text) == {"main()==>foo": {"ct": 1}}


def test_tuples_and_nested_sequences_keep_their_type() -> None:
    payload = {"edge": (1, 120, [2, (3, 4)]), "empty": ()}
    decoded = loads(dumps(payload))
    assert decoded == payload
    assert isinstance(decoded["edge"], tuple)
    assert isinstance(decoded["edge"][2], list)
    assert isinstance(decoded["edge"][2][1], tuple)


def test_non_string_keys() -> None:
    payload = {1: "one", (2, 3): {"nested": True}, None: 0.5}
    assert loads(dumps(payload)) == payload


def test_sets_and_bytes() -> None:
    payload = {"tags": {"b", "a"}, "frozen": frozenset({1, 2}), "raw": b"\x00\xff"}
    decoded = loads(dumps(payload))
    assert decoded == payload
    assert isinstance(decoded["frozen"], frozenset)


def test_dict_using_tag_name_is_escaped() -> None:
    payload = {"__tuple__": [1, 2]}
    decoded = loads(dumps(payload))
    assert decoded == payload
    assert isinstance(decoded["__tuple__"], list)


def test_special_floats() -> None:
    decoded = loads(dumps([math.inf, -math.inf]))
    assert decoded == [math.inf, -math.inf]
    assert math.isnan(loads(dumps(math.nan)))


def test_unsupported_type_raises() -> None:
    with pytest.raises(TypeError):
        dumps({"fn": object()})


def test_malformed_text_raises_value_error() -> None:
    with pytest.raises(ValueError):
        loads("{not json")
    with pytest.raises(ValueError):
        loads('{"__tuple__": 5}')
