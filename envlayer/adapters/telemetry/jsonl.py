"""JSON Lines Telemetry adapter.

Implements the Telemetry port by appending structured JSON objects (one per
line) to a sink file. Secret-looking fields are redacted before writing.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping

import orjson


class JsonlTelemetry:
    _REDACTION_TOKEN = "***REDACTED***"
    _DEFAULT_SECRET_KEYS = frozenset(
        {
            "api_key",
            "api_secret",
            "secret",
            "password",
            "token",
            "auth_token",
        }
    )

    def __init__(
        self,
        session_id: str,
        sink_path: Path,
        secret_keys: Iterable[str] = _DEFAULT_SECRET_KEYS,
    ) -> None:
        self._session_id = str(session_id)
        self._sink_path = sink_path if isinstance(sink_path, Path) else Path(sink_path)
        # a bare string would otherwise be treated as a set of characters
        if isinstance(secret_keys, str):
            secret_keys = (secret_keys,)
        self._secret_keys = frozenset(secret_keys)

    def log(self, event: str, **fields: Any) -> None:
        if not event:
            raise ValueError("Telemetry event name must be non-empty")

        sanitized_fields, redacted = self._sanitize_fields(fields)

        record: dict[str, Any] = {
            "event": event,
            "session_id": self._session_id,
            **sanitized_fields,
        }
        if redacted:
            record["redacted_fields"] = sorted(redacted)

        self._write_record(record)

    def _sanitize_fields(self, fields: Mapping[str, Any]) -> tuple[dict[str, Any], set[str]]:
        sanitized: dict[str, Any] = {}
        redacted: set[str] = set()
        for key, value in fields.items():
            if key in self._secret_keys:
                sanitized[key] = self._REDACTION_TOKEN
                redacted.add(key)
            else:
                sanitized[key] = value

        return sanitized, redacted

    def _write_record(self, record: Mapping[str, Any]) -> None:
        payload = orjson.dumps(record, option=orjson.OPT_SORT_KEYS, default=str)
        self._sink_path.parent.mkdir(parents=True, exist_ok=True)
        with self._sink_path.open("ab") as handle:
            handle.write(payload + b"\n")
