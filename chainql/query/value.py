"""Typed SQL literal values.

``Value`` is the tagged union every bound parameter travels as.  Host
primitives convert losslessly via :meth:`Value.of`::

    Value.of(18)        # Value(kind=ValueKind.INT, data=18)
    Value.of(None)      # Value(kind=ValueKind.NULL, data=None)
    Value.raw("NOW()")  # inlined verbatim, never bound
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class ValueKind(str, Enum):
    """The discriminator for each literal type."""

    NULL = "null"
    BOOL = "bool"
    INT = "int64"
    FLOAT = "float64"
    TEXT = "text"
    BYTES = "bytes"
    RAW = "raw"


@dataclass(frozen=True)
class Value:
    """An immutable SQL literal.

    Attributes:
        kind: Which variant of the union this value is.
        data: The host object (``None`` for NULL, the fragment for RAW).
    """

    kind: ValueKind
    data: Any = None

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def of(cls, obj: Any) -> Value:
        """Convert a host primitive to a :class:`Value`.

        Args:
            obj: ``None``, ``bool``, ``int``, ``float``, ``str`` or a byte
                sequence.  An existing :class:`Value` is returned unchanged.

        Raises:
            TypeError: For unsupported host types.
            ValueError: For integers outside the signed 64-bit range.
        """
        if isinstance(obj, Value):
            return obj
        if obj is None:
            return cls(ValueKind.NULL)
        # bool before int: bool is an int subclass.
        if isinstance(obj, bool):
            return cls(ValueKind.BOOL, obj)
        if isinstance(obj, int):
            if not _INT64_MIN <= obj <= _INT64_MAX:
                raise ValueError(f"Integer {obj} does not fit in a signed 64-bit value.")
            return cls(ValueKind.INT, obj)
        if isinstance(obj, float):
            return cls(ValueKind.FLOAT, obj)
        if isinstance(obj, str):
            return cls(ValueKind.TEXT, obj)
        if isinstance(obj, (bytes, bytearray, memoryview)):
            return cls(ValueKind.BYTES, bytes(obj))
        raise TypeError(f"Cannot convert {type(obj).__name__} to a SQL value.")

    @classmethod
    def raw(cls, fragment: str) -> Value:
        """Wrap a trusted SQL fragment that is inlined without binding.

        Never pass user input here.
        """
        return cls(ValueKind.RAW, fragment)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def is_null(self) -> bool:
        return self.kind is ValueKind.NULL

    @property
    def is_raw(self) -> bool:
        return self.kind is ValueKind.RAW

    def unwrap(self) -> Any:
        """Return the host object handed to the database driver."""
        return self.data

    def __str__(self) -> str:
        if self.kind is ValueKind.NULL:
            return "NULL"
        return repr(self.data)
