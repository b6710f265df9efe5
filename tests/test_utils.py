from __future__ import annotations

from treeconf.utils import deep_merge, parse_bool, parse_scalar


def test_deep_merge_simple():
    base = {"a": 1, "b": 2}
    override = {"b": 3, "c": 4}

    result = deep_merge(base, override)

    assert result == {"a": 1, "b": 3, "c": 4}
    # Ensure original dicts are not mutated
    assert base == {"a": 1, "b": 2}
    assert override == {"b": 3, "c": 4}


def test_deep_merge_nested():
    base = {
        "a": {"x": 1, "y": 2},
        "b": 1,
    }
    override = {
        "a": {"y": 42, "z": 99},
        "c": 3,
    }

    result = deep_merge(base, override)

    assert result == {
        "a": {"x": 1, "y": 42, "z": 99},
        "b": 1,
        "c": 3,
    }


def test_parse_scalar_converts_bools_and_numbers():
    assert parse_scalar("Yes") is True
    assert parse_scalar("off") is False
    assert parse_scalar("42") == 42
    assert parse_scalar("0.5") == 0.5
    assert parse_scalar("localhost") == "localhost"


def test_parse_bool_returns_none_for_other_words():
    assert parse_bool(" TRUE ") is True
    assert parse_bool("no") is False
    assert parse_bool("maybe") is None
