from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence, TypeVar

from pydantic import BaseModel, ValidationError

from ..core.utility import (
    compute_hash,
    deep_merge,
    flatten,
    insert_path,
    sort_mapping,
    validation_error_parser,
)
from ..errors.errors import ConfigResolutionError
from ..ports.source import Source
from ..ports.telemetry import Telemetry
from ..types.values import KeyPath, Origin, Value

"""
Purpose:
    - Layer value sources (defaults, files, environment) into one nested tree
    - Track which source supplied every leaf
    - Validate the tree into a pydantic model on request
"""

ModelT = TypeVar("ModelT", bound=BaseModel)


class MappingSource(Source):
    """Source over a nested Python mapping, e.g. defaults or parsed file data."""

    def __init__(self, tree: Mapping[str, Any], origin: Origin) -> None:
        self._tree = dict(tree)
        self._origin = origin

    def clone(self) -> MappingSource:
        return MappingSource(self._tree, self._origin)

    def collect(self) -> dict[KeyPath, Value]:
        return {
            path: Value.from_python(value, self._origin)
            for path, value in flatten(self._tree).items()
        }


@dataclass(frozen=True)
class ResolvedConfig:
    tree: Mapping[str, Any]
    origins: Mapping[KeyPath, Optional[Origin]]
    config_hash: str
    keys_total: int

    def get(self, key: str) -> Any:
        """Return the value at dotted ``key``; KeyError when absent."""
        node: Any = self.tree
        for segment in key.split("."):
            if not isinstance(node, Mapping) or segment not in node:
                raise KeyError(key)
            node = node[segment]
        return node

    def try_deserialize(self, model_cls: type[ModelT]) -> ModelT:
        try:
            return model_cls.model_validate(dict(self.tree))
        except ValidationError as exc:
            parsed = validation_error_parser(exc)
            raise ConfigResolutionError(
                f"Configuration does not match {model_cls.__name__}",
                errors=parsed,
                component="config.resolver",
            ) from exc


class ConfigBuilder:
    """
    Immutable builder: ``add_source`` returns a new builder, ``build`` resolves.

    Later sources override earlier ones; nested mappings merge key by key.
    """

    def __init__(
        self,
        sources: Sequence[Source] = (),
        telemetry: Optional[Telemetry] = None,
    ) -> None:
        self._sources: tuple[Source, ...] = tuple(sources)
        self._telemetry = telemetry

    def add_source(self, source: Source) -> ConfigBuilder:
        return ConfigBuilder((*self._sources, source.clone()), self._telemetry)

    @property
    def sources(self) -> tuple[Source, ...]:
        return self._sources

    def build(self) -> ResolvedConfig:
        tree: dict[str, Any] = {}
        origins: dict[KeyPath, Optional[Origin]] = {}

        for source in self._sources:
            layer: dict[str, Any] = {}
            # sorted so conflicts inside one source are reported the same way every run
            for path, value in sorted(source.collect().items()):
                try:
                    leaf_path = insert_path(layer, path, value.into_python())
                except ValueError as exc:
                    self._log(
                        "config_resolution_error",
                        step="layering",
                        path=path,
                        origin=value.origin,
                        message=str(exc),
                    )
                    raise ConfigResolutionError(
                        str(exc), path=path, component="config.resolver"
                    ) from exc
                origins[leaf_path] = value.origin
            tree = deep_merge(tree, layer)

        internal = sort_mapping(tree)
        leaves = flatten(internal)
        # drop origins of paths shadowed by a later mapping or scalar
        live_origins = {path: origins.get(path) for path in sorted(leaves)}
        config_hash = compute_hash(internal)

        self._log(
            "config_resolved",
            config_hash=config_hash,
            keys_total=len(leaves),
            sources=len(self._sources),
        )
        return ResolvedConfig(
            tree=MappingProxyType(internal),
            origins=MappingProxyType(live_origins),
            config_hash=config_hash,
            keys_total=len(leaves),
        )

    def _log(self, event: str, **fields: Any) -> None:
        if self._telemetry is not None:
            self._telemetry.log(event, **fields)
