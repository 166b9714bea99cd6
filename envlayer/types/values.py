"""
define canonical value types
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

# -------- Aliases (clarify intent) --------
KeyPath = str  # dot-delimited, e.g. "rpc.bind"
Origin = str  # provenance tag, e.g. "the environment"
Scalar = Union[bool, int, float, str]

ENVIRONMENT_ORIGIN: Origin = "the environment"

I64_MIN = -(2**63)
I64_MAX = 2**63 - 1

# -------- Enums --------


class ValueKind(str, Enum):
    """Kinds of value a source may hand to the layering host."""

    BOOLEAN = "boolean"
    I64 = "i64"
    FLOAT = "float"
    STRING = "string"
    ARRAY = "array"


@dataclass(frozen=True, slots=True)
class Value:
    """
    A typed configuration value tagged with where it came from.

    ARRAY values hold a tuple of ``Value`` elements so the whole thing stays
    hashable and immutable.
    """

    kind: ValueKind
    value: Union[Scalar, tuple["Value", ...]]
    origin: Origin | None = None

    def __post_init__(self) -> None:
        expected = _KIND_TYPES[self.kind]
        # bool is a subclass of int, keep I64 and BOOLEAN apart
        if self.kind is not ValueKind.BOOLEAN and isinstance(self.value, bool):
            raise TypeError(f"{self.kind.value} value must not be a bool")
        if not isinstance(self.value, expected):
            raise TypeError(
                f"{self.kind.value} value must be {expected.__name__}, "
                f"got {type(self.value).__name__}"
            )
        if self.kind is ValueKind.I64 and not I64_MIN <= self.value <= I64_MAX:
            raise ValueError(f"i64 value out of range: {self.value}")

    def into_python(self) -> Any:
        """Unwrap to a plain Python object (lists for arrays)."""
        if self.kind is ValueKind.ARRAY:
            return [item.into_python() for item in self.value]  # type: ignore[union-attr]
        return self.value

    @classmethod
    def from_python(cls, obj: Any, origin: Origin | None = None) -> "Value":
        if isinstance(obj, Value):
            return obj
        if isinstance(obj, bool):
            return cls(ValueKind.BOOLEAN, obj, origin)
        if isinstance(obj, int):
            return cls(ValueKind.I64, obj, origin)
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj, origin)
        if isinstance(obj, str):
            return cls(ValueKind.STRING, obj, origin)
        if isinstance(obj, (list, tuple)):
            return cls(
                ValueKind.ARRAY, tuple(cls.from_python(item, origin) for item in obj), origin
            )
        raise TypeError(f"Unsupported value type: {type(obj).__name__}")


_KIND_TYPES: dict[ValueKind, type] = {
    ValueKind.BOOLEAN: bool,
    ValueKind.I64: int,
    ValueKind.FLOAT: float,
    ValueKind.STRING: str,
    ValueKind.ARRAY: tuple,
}
