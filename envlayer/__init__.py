"""
Safe environment-variable source for layered configuration.

Reads the process environment once, drops anything that is not valid Unicode,
and turns "<PREFIX>_" variables into dotted key paths with typed values.

Components:
- SafeEnvironment: the source; snapshot at construction, collect() on demand
- EnvironmentRules: immutable key/value rules (separators, parsing, list keys)
- take_snapshot / transform: the two pipeline stages, usable on their own
- ConfigBuilder: layers several sources into one nested tree

Usage:
    from envlayer import SafeEnvironment

    source = (
        SafeEnvironment.with_prefix_and_filter("ZALLET", lambda suffix: True)
        .with_list_parse_key("rpc.bind")
    )
    values = source.collect()  # {"rpc.bind": Value(ARRAY, ...), ...}
"""

from envlayer.adapters.safe_environment import SafeEnvironment, accept_all
from envlayer.config.configs import EnvironmentRules
from envlayer.config.resolver import ConfigBuilder, MappingSource, ResolvedConfig
from envlayer.core.snapshot import EnvironmentSnapshot, take_snapshot
from envlayer.core.transform import transform
from envlayer.errors.errors import (
    CollectError,
    ConfigResolutionError,
    ConfigurationError,
    EnvLayerError,
)
from envlayer.types.values import ENVIRONMENT_ORIGIN, Value, ValueKind

__all__ = [
    # Main entry point
    "SafeEnvironment",
    "EnvironmentRules",
    "accept_all",
    # Pipeline stages
    "EnvironmentSnapshot",
    "take_snapshot",
    "transform",
    # Layering
    "ConfigBuilder",
    "MappingSource",
    "ResolvedConfig",
    # Types
    "Value",
    "ValueKind",
    "ENVIRONMENT_ORIGIN",
    # Errors
    "EnvLayerError",
    "ConfigurationError",
    "CollectError",
    "ConfigResolutionError",
]
