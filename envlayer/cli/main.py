"""envlayer CLI entrypoint.

Subcommands: collect.

Prints what the environment source would contribute for a prefix, as JSON.
Secret-looking values are redacted unless --reveal is passed.
"""

from __future__ import annotations

import argparse
import sys
import uuid
from pathlib import Path
from typing import Any, Callable, Optional, Sequence, TextIO

import orjson

from envlayer.adapters.safe_environment import SafeEnvironment, accept_all
from envlayer.adapters.telemetry.jsonl import JsonlTelemetry
from envlayer.config.resolver import ConfigBuilder
from envlayer.core.utility import flatten, insert_path, redact_paths
from envlayer.errors.errors import EnvLayerError
from envlayer.ports.telemetry import Telemetry


def build_parser() -> argparse.ArgumentParser:
    """
    Return the top-level CLI argument parser.
    """
    p = argparse.ArgumentParser(prog="envlayer")
    sub = p.add_subparsers(dest="command", required=True)

    collect = sub.add_parser("collect", help="Show typed values collected from the environment")
    collect.add_argument("--prefix", required=True, help="Variable prefix, e.g. ZALLET")
    collect.add_argument("--key-separator", default=None, help='Nesting separator (default "__")')
    collect.add_argument(
        "--prefix-separator", default=None, help='Separator after the prefix (default "_")'
    )
    collect.add_argument(
        "--no-parse", dest="try_parsing", action="store_false", help="Keep every value a string"
    )
    collect.add_argument("--list-separator", default=None, help='List separator (default ",")')
    collect.add_argument(
        "--list-key",
        dest="list_keys",
        action="append",  # builds a list containing each key path
        default=[],
        metavar="KEY.PATH",
        help="Key path whose value is split into a list (may be repeated)",
    )
    collect.add_argument(
        "--only",
        action="append",
        default=[],
        metavar="SUFFIX",
        help="Only accept this variable suffix after '<PREFIX>_' (may be repeated)",
    )
    collect.add_argument("--nested", action="store_true", help="Print a nested tree")
    collect.add_argument("--reveal", action="store_true", help="Do not redact secret values")
    collect.add_argument("--events", type=Path, default=None, help="JSONL telemetry sink")
    return p


def _predicate(only: Sequence[str]) -> Callable[[str], bool]:
    if not only:
        return accept_all
    allowed = frozenset(only)
    return lambda suffix: suffix in allowed


def build_source(args: argparse.Namespace) -> SafeEnvironment:
    """Translate parsed flags into a configured SafeEnvironment."""
    source = SafeEnvironment.with_prefix_and_filter(args.prefix, _predicate(args.only))
    if args.key_separator is not None:
        source = source.separator(args.key_separator)
    if args.prefix_separator is not None:
        source = source.prefix_separator(args.prefix_separator)
    if args.list_separator is not None:
        source = source.list_separator(args.list_separator)
    for key in args.list_keys:
        source = source.with_list_parse_key(key)
    return source.try_parsing(args.try_parsing)


def run_collect(
    args: argparse.Namespace,
    out: TextIO,
    telemetry: Optional[Telemetry] = None,
) -> int:
    source = build_source(args)
    collected = {path: value.into_python() for path, value in source.collect().items()}

    redacted_count = 0
    if not args.reveal:
        collected, redacted_count = redact_paths(collected)

    payload: dict[str, Any]
    if args.nested:
        resolved = ConfigBuilder(telemetry=telemetry).add_source(source).build()
        # redact the resolved leaves; their paths can differ from the collected ones
        leaves = flatten(resolved.tree)
        if not args.reveal:
            leaves, redacted_count = redact_paths(leaves)
        payload = {}
        for path, value in leaves.items():
            insert_path(payload, path, value)
    else:
        payload = collected

    if telemetry is not None:
        telemetry.log(
            "cli_collect",
            prefix=args.prefix,
            keys_total=len(collected),
            redacted_count=redacted_count,
            nested=args.nested,
        )

    out.write(orjson.dumps(payload, option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS).decode())
    out.write("\n")
    return 0


def main(argv: list[str] | None = None, out: TextIO | None = None) -> int:
    """CLI entrypoint wrapper compatible with setuptools scripts."""
    parser = build_parser()
    args = parser.parse_args(argv)
    out = out if out is not None else sys.stdout

    telemetry: Optional[Telemetry] = None
    if args.events is not None:
        telemetry = JsonlTelemetry(session_id=str(uuid.uuid4()), sink_path=args.events)

    try:
        return run_collect(args, out, telemetry)
    except EnvLayerError as exc:
        if telemetry is not None:
            telemetry.log("cli_error", command=args.command, message=str(exc))
        print(f"envlayer: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
