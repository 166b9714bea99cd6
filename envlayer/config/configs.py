"""
Configuration types for the environment source.

Provides the immutable rule set that drives key normalization and value
inference. Every ``with_*`` method returns a new value; nothing is mutated.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from envlayer.errors.errors import ConfigurationError

DEFAULT_KEY_SEPARATOR = "__"
DEFAULT_PREFIX_SEPARATOR = "_"
DEFAULT_LIST_SEPARATOR = ","
PATH_DELIMITER = "."


@dataclass(frozen=True)
class EnvironmentRules:
    """
    Immutable rules for turning raw environment entries into key paths and values.

    Example:
        rules = (
            EnvironmentRules(prefix="ZALLET")
            .with_key_separator("__")
            .with_list_parse_key("rpc.bind")
        )
    """

    prefix: str

    # Key handling
    key_separator: str = DEFAULT_KEY_SEPARATOR  # becomes "." in key paths
    prefix_separator: str = DEFAULT_PREFIX_SEPARATOR  # between prefix and the rest

    # Value handling
    try_parsing: bool = True
    list_separator: Optional[str] = DEFAULT_LIST_SEPARATOR
    list_parse_keys: Optional[frozenset[str]] = None  # None: no key is list-parsed

    def __post_init__(self) -> None:
        for name in ("prefix", "key_separator", "prefix_separator"):
            value = getattr(self, name)
            if not isinstance(value, str):
                raise ConfigurationError(
                    f"{name} must be a string",
                    field=name,
                    value=value,
                )
        if self.list_separator is not None:
            if not isinstance(self.list_separator, str) or not self.list_separator:
                raise ConfigurationError(
                    "list_separator must be a non-empty string",
                    field="list_separator",
                    value=self.list_separator,
                )
        if self.list_parse_keys is not None:
            # Accept any iterable of keys but store a frozenset
            keys = frozenset(self.list_parse_keys)
            if any(not isinstance(k, str) or not k for k in keys):
                raise ConfigurationError(
                    "list_parse_keys must contain non-empty strings",
                    field="list_parse_keys",
                    value=sorted(map(str, keys)),
                )
            object.__setattr__(self, "list_parse_keys", keys)

    # --- builder ---------------------------------------------

    def with_key_separator(self, separator: str) -> EnvironmentRules:
        """Set the separator for nested keys (default: "__")."""
        return replace(self, key_separator=separator)

    def with_prefix_separator(self, separator: str) -> EnvironmentRules:
        """Set the separator between prefix and key (default: "_")."""
        return replace(self, prefix_separator=separator)

    def with_try_parsing(self, try_parsing: bool) -> EnvironmentRules:
        """Enable or disable typed inference (default: enabled)."""
        return replace(self, try_parsing=bool(try_parsing))

    def with_list_separator(self, separator: str) -> EnvironmentRules:
        """Set the list separator (default: ",")."""
        return replace(self, list_separator=separator)

    def with_list_parse_key(self, key: str) -> EnvironmentRules:
        """Register one processed key path whose value is split into a list."""
        keys = set(self.list_parse_keys or ())
        keys.add(key)
        return replace(self, list_parse_keys=frozenset(keys))

    # --- derived ---------------------------------------------

    @property
    def strip_pattern(self) -> str:
        """Lower-cased prefix plus prefix separator, removed from processed keys."""
        return f"{self.prefix.lower()}{self.prefix_separator}"

    def is_list_key(self, key_path: str) -> bool:
        return (
            self.list_separator is not None
            and self.list_parse_keys is not None
            and key_path in self.list_parse_keys
        )
