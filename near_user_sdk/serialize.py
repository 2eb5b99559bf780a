"""
Binary serialization for transactions.

Little-endian fixed-width integers, u32 length prefixes for strings and
vectors, u8 tags for enums and options.
"""
import struct
from typing import Callable, Iterable, List, Optional, TypeVar

T = TypeVar('T')

_U128_MAX = (1 << 128) - 1


class BinaryWriter:
    """Accumulates serialized fields in order."""

    def __init__(self):
        self._parts: List[bytes] = []

    def _check(self, value: int, bits: int) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Expected an integer, got {type(value).__name__}")
        if value < 0 or value >= (1 << bits):
            raise ValueError(f"Value {value} does not fit in u{bits}")

    def u8(self, value: int) -> "BinaryWriter":
        self._check(value, 8)
        self._parts.append(struct.pack("<B", value))
        return self

    def u32(self, value: int) -> "BinaryWriter":
        self._check(value, 32)
        self._parts.append(struct.pack("<I", value))
        return self

    def u64(self, value: int) -> "BinaryWriter":
        self._check(value, 64)
        self._parts.append(struct.pack("<Q", value))
        return self

    def u128(self, value: int) -> "BinaryWriter":
        self._check(value, 128)
        self._parts.append((value & _U128_MAX).to_bytes(16, "little"))
        return self

    def fixed_bytes(self, value: bytes, length: int) -> "BinaryWriter":
        if len(value) != length:
            raise ValueError(f"Expected {length} bytes, got {len(value)}")
        self._parts.append(bytes(value))
        return self

    def dynamic_bytes(self, value: bytes) -> "BinaryWriter":
        self.u32(len(value))
        self._parts.append(bytes(value))
        return self

    def string(self, value: str) -> "BinaryWriter":
        return self.dynamic_bytes(value.encode("utf-8"))

    def option(self, value: Optional[T], write: Callable[[T], object]) -> "BinaryWriter":
        if value is None:
            return self.u8(0)
        self.u8(1)
        write(value)
        return self

    def vec(self, items: Iterable[T], write: Callable[[T], object]) -> "BinaryWriter":
        items = list(items)
        self.u32(len(items))
        for item in items:
            write(item)
        return self

    def getvalue(self) -> bytes:
        return b"".join(self._parts)
