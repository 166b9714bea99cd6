from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Optional

from envlayer.config.configs import EnvironmentRules
from envlayer.core.snapshot import EnvironmentSnapshot, Predicate, RawText, take_snapshot
from envlayer.core.transform import transform
from envlayer.ports.source import Source
from envlayer.types.values import ENVIRONMENT_ORIGIN, KeyPath, Value

_LOGGER = logging.getLogger(__name__)


def accept_all(_suffix: str) -> bool:
    return True


class SafeEnvironment(Source):
    """
    Environment-backed source that never fails on non-Unicode entries.

    The environment is read once, in ``with_prefix_and_filter``. Every later
    ``collect`` works from that snapshot, so values set after construction are
    not seen. Builder methods return new sources sharing the same snapshot.
    """

    def __init__(self, rules: EnvironmentRules, snapshot: EnvironmentSnapshot) -> None:
        self._rules = rules
        self._snapshot = snapshot

    @classmethod
    def with_prefix_and_filter(
        cls,
        prefix: str,
        predicate: Predicate = accept_all,
        *,
        environ: Optional[Mapping[RawText, RawText]] = None,
    ) -> SafeEnvironment:
        """
        Snapshot the environment and keep "<prefix>_" entries whose suffix passes
        ``predicate``.

        Raises ConfigurationError for a non-string prefix. Malformed environment
        entries never raise; they are dropped.
        """
        rules = EnvironmentRules(prefix=prefix)
        snapshot = take_snapshot(prefix, predicate, environ)
        return cls(rules, snapshot)

    # --- builder ---------------------------------------------

    def separator(self, separator: str) -> SafeEnvironment:
        """Set the separator for nested keys (default: "__")."""
        return SafeEnvironment(self._rules.with_key_separator(separator), self._snapshot)

    def prefix_separator(self, prefix_separator: str) -> SafeEnvironment:
        """Set the prefix separator (default: "_")."""
        return SafeEnvironment(self._rules.with_prefix_separator(prefix_separator), self._snapshot)

    def try_parsing(self, try_parsing: bool) -> SafeEnvironment:
        """Enable/disable parsing of primitive types (default: true)."""
        return SafeEnvironment(self._rules.with_try_parsing(try_parsing), self._snapshot)

    def list_separator(self, separator: str) -> SafeEnvironment:
        """Set the list separator for comma-separated values (default: ",")."""
        return SafeEnvironment(self._rules.with_list_separator(separator), self._snapshot)

    def with_list_parse_key(self, key: str) -> SafeEnvironment:
        """Add a processed key path whose value should be parsed as a list."""
        return SafeEnvironment(self._rules.with_list_parse_key(key), self._snapshot)

    # --- Source ----------------------------------------------

    @property
    def rules(self) -> EnvironmentRules:
        return self._rules

    @property
    def snapshot(self) -> EnvironmentSnapshot:
        return self._snapshot

    def clone(self) -> SafeEnvironment:
        return SafeEnvironment(self._rules, self._snapshot)

    def collect(self) -> dict[KeyPath, Value]:
        """
        Return key path -> Value for the snapshot.

        Declared to raise CollectError for host compatibility; the environment
        source itself has no failing path.
        """
        collected = transform(self._snapshot, self._rules, ENVIRONMENT_ORIGIN)
        _LOGGER.debug(
            "env_collected",
            extra={
                "event": "env_collected",
                "prefix": self._rules.prefix,
                "keys_total": len(collected),
            },
        )
        return collected

    def __repr__(self) -> str:
        return f"SafeEnvironment(rules={self._rules!r}, entries={len(self._snapshot)})"
