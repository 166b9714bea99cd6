"""Telemetry Port Interface.

Contract: Log structured events. A single log(event, **fields) call per event.
"""

from __future__ import annotations

from typing import Any, Protocol


class Telemetry(Protocol):
    def log(self, event: str, **fields: Any) -> None: ...
