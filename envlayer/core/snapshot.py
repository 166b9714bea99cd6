"""
Snapshot & filter for process environment variables.

Purpose:
    - Read the process environment exactly once, as raw platform-native pairs
    - Drop entries that are not valid Unicode instead of failing
    - Keep only "<PREFIX>_" keys whose remainder passes a caller predicate

The snapshot is fixed once taken. Later changes to the environment, from this
thread or any other, are never observed through it.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from typing import Callable, Optional, Union

_LOGGER = logging.getLogger(__name__)

RawText = Union[bytes, str]
Predicate = Callable[[str], bool]


class EnvironmentSnapshot(Mapping[str, str]):
    """
    Read-only mapping of original-case key -> value.

    Populated once at construction; there is no way to refresh or mutate it, so
    it can be shared between readers without locking.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Mapping[str, str]) -> None:
        self._entries: dict[str, str] = dict(entries)

    def __getitem__(self, key: str) -> str:
        return self._entries[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        # values may hold secrets
        return f"EnvironmentSnapshot(keys={sorted(self._entries)!r})"


def read_process_environment() -> dict[RawText, RawText]:
    """
    Copy the raw process environment in a single step.

    On POSIX ``os.environ`` and ``os.environb`` share one backing dict of raw
    bytes; ``dict.copy`` on it runs without releasing the GIL, so concurrent
    ``os.environ`` writers cannot interleave with the copy. On Windows the
    backing dict holds ``str`` pairs.
    """
    environ = os.environb if os.supports_bytes_environ else os.environ
    backing = getattr(environ, "_data", None)
    if isinstance(backing, dict):
        return backing.copy()
    # Interpreters without the private backing dict
    return dict(environ)


def to_text(raw: RawText) -> Optional[str]:
    """
    Losslessly convert a raw environment key or value to text.

    Returns None when ``raw`` is not valid Unicode: bytes that are not strict
    UTF-8, or str carrying lone surrogates (Windows, or surrogateescape
    decoding upstream).
    """
    if isinstance(raw, bytes):
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            return None
    try:
        raw.encode("utf-8")
    except UnicodeEncodeError:
        return None
    return raw


def take_snapshot(
    prefix: str,
    predicate: Predicate,
    environ: Optional[Mapping[RawText, RawText]] = None,
) -> EnvironmentSnapshot:
    """
    Filter one read of the environment down to Unicode-safe "<prefix>_" entries.

    ``environ`` defaults to a fresh copy of the process environment; tests pass
    their own mapping of bytes or str pairs. Exceptions raised by ``predicate``
    propagate unchanged.
    """
    raw_entries = read_process_environment() if environ is None else dict(environ)
    key_prefix = f"{prefix}_"

    kept: dict[str, str] = {}
    dropped = {"non_unicode_key": 0, "prefix": 0, "predicate": 0, "non_unicode_value": 0}

    for raw_key, raw_value in raw_entries.items():
        key = to_text(raw_key)
        if key is None:
            dropped["non_unicode_key"] += 1
            continue
        if not key.startswith(key_prefix):
            dropped["prefix"] += 1
            continue
        if not predicate(key[len(key_prefix) :]):
            dropped["predicate"] += 1
            continue
        value = to_text(raw_value)
        if value is None:
            dropped["non_unicode_value"] += 1
            continue
        kept[key] = value

    _LOGGER.debug(
        "env_snapshot_taken",
        extra={
            "event": "env_snapshot_taken",
            "prefix": prefix,
            "entries_seen": len(raw_entries),
            "entries_kept": len(kept),
            "dropped": dropped,
        },
    )
    return EnvironmentSnapshot(kept)
