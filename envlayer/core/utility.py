import hashlib
import json
from typing import Any, Dict, Iterable, Mapping, Sequence

from pydantic import ValidationError

REDACTED: str = "***REDACTED***"
SECRET_SEGMENTS: frozenset[str] = frozenset(
    {
        "key",
        "api_key",
        "secret",
        "password",
        "passphrase",
        "token",
        "auth_token",
    }
)


def deep_merge(a: Mapping[str, Any], b: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def insert_path(tree: Dict[str, Any], dotted_path: str, value: Any) -> str:
    """Populate ``tree`` with ``value`` located at ``dotted_path``; return the path actually used.

    Empty segments are skipped, so ``"a..b"`` lands at ``"a.b"``.
    """

    segments = [segment for segment in dotted_path.split(".") if segment]
    if not segments:
        raise ValueError(f"Key path {dotted_path!r} has no non-empty segment")

    cursor: Dict[str, Any] = tree
    for segment in segments[:-1]:
        existing = cursor.get(segment)
        if existing is None:
            next_node: Dict[str, Any] = {}
            cursor[segment] = next_node
            cursor = next_node
        elif isinstance(existing, dict):
            cursor = existing
        else:
            raise ValueError(
                f"Cannot nest '{dotted_path}': segment '{segment}' is already a value"
            )

    leaf = segments[-1]
    if isinstance(cursor.get(leaf), dict):
        raise ValueError(f"Cannot assign '{dotted_path}': existing node at '{leaf}' is a mapping")
    cursor[leaf] = value
    return ".".join(segments)


def flatten(tree: Mapping[str, Any], *, _prefix: tuple[str, ...] = ()) -> Dict[str, Any]:
    """
    Return dotted path -> leaf value for every non-mapping value in ``tree``.

    Lists and scalars count as single leaves (e.g. ``{"rpc": {"bind": [..]}}`` →
    ``{"rpc.bind": [..]}``).
    """
    flat: Dict[str, Any] = {}
    for key, value in tree.items():
        path = _prefix + (str(key),)
        if isinstance(value, Mapping):
            flat.update(flatten(value, _prefix=path))
        else:
            flat[".".join(path)] = value
    return flat


def sort_mapping(obj: Any) -> Any:
    if isinstance(obj, Mapping):
        return {k: sort_mapping(obj[k]) for k in sorted(obj)}
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes, bytearray)):
        return [sort_mapping(item) for item in obj]
    if isinstance(obj, (set, frozenset)):
        # sets have no deterministic order
        return sorted(sort_mapping(item) for item in obj)
    return obj


def compute_hash(cfg: Mapping[str, Any]) -> str:
    canonical = sort_mapping(cfg)
    payload = json.dumps(canonical, separators=(",", ":"), ensure_ascii=True)
    return hashlib.sha256(payload.encode("utf-8")).hexdigest()


def is_secret_path(path: str, secret_segments: Iterable[str] = SECRET_SEGMENTS) -> bool:
    """True when the last segment of ``path`` names a secret (``rpc.auth.password``)."""
    leaf = path.rsplit(".", 1)[-1]
    return leaf in frozenset(secret_segments) or leaf.endswith(("_key", "_secret", "_token"))


def redact_paths(
    flat: Mapping[str, Any], secret_segments: Iterable[str] = SECRET_SEGMENTS
) -> tuple[Dict[str, Any], int]:
    """Copy ``flat`` replacing secret-looking entries with ``REDACTED``; return copy and count."""
    segments = frozenset(secret_segments)
    redacted: Dict[str, Any] = {}
    count = 0
    for path, value in flat.items():
        if is_secret_path(path, segments):
            redacted[path] = REDACTED
            count += 1
        else:
            redacted[path] = value
    return redacted, count


def validation_error_parser(error: ValidationError) -> list[dict[str, str]]:
    parsed_error = [
        {
            "component": "config.resolver.deserialize",
            "path": ".".join(map(str, err["loc"])),
            "message": err["msg"],
            "error_type": err["type"],
        }
        for err in error.errors()
    ]
    return parsed_error
