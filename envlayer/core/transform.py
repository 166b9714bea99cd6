"""
Key/value transform: snapshot entries -> dotted key paths with typed values.

Inference order is boolean, integer, float, list, string. Integers are tried
before floats so whole numbers never widen; lists are opt-in per key and
otherwise fall through to string.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from envlayer.config.configs import PATH_DELIMITER, EnvironmentRules
from envlayer.types.values import (
    ENVIRONMENT_ORIGIN,
    I64_MAX,
    I64_MIN,
    KeyPath,
    Origin,
    Value,
    ValueKind,
)

# Strict literal grammars; int()/float() alone also accept whitespace and "1_000"
_INT_RE = re.compile(r"[+-]?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)
_BOOL_LITERALS = {"true": True, "false": False}


def normalize_key(raw_key: str, rules: EnvironmentRules) -> KeyPath:
    key = raw_key.lower()
    pattern = rules.strip_pattern
    if key.startswith(pattern):
        key = key[len(pattern) :]
    if rules.key_separator:
        key = key.replace(rules.key_separator, PATH_DELIMITER)
    return key


def parse_bool(text: str) -> bool | None:
    return _BOOL_LITERALS.get(text.lower())


def parse_i64(text: str) -> int | None:
    if _INT_RE.fullmatch(text) is None:
        return None
    number = int(text)
    if not I64_MIN <= number <= I64_MAX:
        return None
    return number


def parse_f64(text: str) -> float | None:
    if _FLOAT_RE.fullmatch(text) is None:
        return None
    return float(text)


def infer_value(
    key_path: KeyPath,
    text: str,
    rules: EnvironmentRules,
    origin: Origin = ENVIRONMENT_ORIGIN,
) -> Value:
    """Infer the typed value for one entry; anything unmatched stays a string."""
    if not rules.try_parsing:
        return Value(ValueKind.STRING, text, origin)

    as_bool = parse_bool(text)
    if as_bool is not None:
        return Value(ValueKind.BOOLEAN, as_bool, origin)

    as_int = parse_i64(text)
    if as_int is not None:
        return Value(ValueKind.I64, as_int, origin)

    as_float = parse_f64(text)
    if as_float is not None:
        return Value(ValueKind.FLOAT, as_float, origin)

    if rules.is_list_key(key_path):
        items = tuple(
            Value(ValueKind.STRING, piece, origin)
            for piece in text.split(rules.list_separator)  # type: ignore[arg-type]
        )
        return Value(ValueKind.ARRAY, items, origin)

    return Value(ValueKind.STRING, text, origin)


def transform(
    snapshot: Mapping[str, str],
    rules: EnvironmentRules,
    origin: Origin = ENVIRONMENT_ORIGIN,
) -> dict[KeyPath, Value]:
    """
    Build the key path -> Value mapping for ``snapshot``.

    Raw keys are visited in sorted order, so if two of them normalize to the same
    path the result is still deterministic (the later key wins). Neither input is
    mutated.
    """
    result: dict[KeyPath, Value] = {}
    for raw_key in sorted(snapshot):
        key_path = normalize_key(raw_key, rules)
        result[key_path] = infer_value(key_path, snapshot[raw_key], rules, origin)
    return result
