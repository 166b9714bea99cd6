"""Source Port Interface.

Contract: a named value source that the layering host can duplicate and collect.
``collect`` returns a mapping of dot-delimited key path -> typed ``Value``, each
value tagged with the source's provenance string.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from envlayer.types.values import KeyPath, Value


@runtime_checkable
class Source(Protocol):
    def clone(self) -> "Source": ...

    def collect(self) -> dict[KeyPath, Value]: ...
