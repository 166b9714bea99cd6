"""ConfigProvider Port Interface.

Contract: Retrieve configuration values by dotted key path.
"""

from __future__ import annotations

from typing import Any, Protocol


class ConfigProvider(Protocol):
    def get(self, key: str) -> Any: ...

    """
    Fetch a configuration value using a dotted key path (e.g. "rpc.bind").
    Returns the plain Python value resolved across all layered sources.
    """
