"""Decoding of raw Modbus register bytes into float values."""

from __future__ import annotations

from enum import Enum
from struct import unpack_from
from typing import Callable, Dict, Tuple

from exporter_runtime.errors import (
    InsufficientRegistersError,
    MissingBitOffsetError,
    UnsupportedDataTypeError,
)


class DataType(str, Enum):
    """Wire data types a metric can be declared with. All are big-endian."""

    FLOAT16 = "float16"
    FLOAT32 = "float32"
    INT16 = "int16"
    INT32 = "int32"
    UINT16 = "uint16"
    BOOL = "bool"


def _unpacker(fmt: str) -> Callable[[bytes], float]:
    def _unpack(raw: bytes) -> float:
        return float(unpack_from(fmt, raw)[0])

    return _unpack


# data type -> (minimum byte count, decoder over the leading bytes)
_DECODERS: Dict[DataType, Tuple[int, Callable[[bytes], float]]] = {
    DataType.FLOAT16: (2, _unpacker(">e")),
    DataType.FLOAT32: (4, _unpacker(">f")),
    DataType.INT16: (2, _unpacker(">h")),
    DataType.INT32: (4, _unpacker(">i")),
    DataType.UINT16: (2, _unpacker(">H")),
}


def decode(data_type: DataType | str, raw: bytes, bit_offset: int | None = None) -> float:
    """
    Decode the leading bytes of ``raw`` according to ``data_type``.

    Bool reads the first 16-bit word and tests the bit at ``bit_offset``
    (0 is the least significant bit), returning 1.0 or 0.0.

    Raises:
        UnsupportedDataTypeError: ``data_type`` is not a known ``DataType``.
        InsufficientRegistersError: ``raw`` is shorter than the type needs.
        MissingBitOffsetError: a bool is decoded without ``bit_offset``.
    """
    try:
        kind = DataType(data_type)
    except ValueError as exc:
        raise UnsupportedDataTypeError(data_type) from exc

    if kind is DataType.BOOL:
        return _decode_bool(raw, bit_offset)

    width, unpack = _DECODERS[kind]
    if len(raw) < width:
        raise InsufficientRegistersError(width, len(raw))
    return unpack(raw)


def _decode_bool(raw: bytes, bit_offset: int | None) -> float:
    if len(raw) < 2:
        raise InsufficientRegistersError(2, len(raw))
    if bit_offset is None:
        raise MissingBitOffsetError()

    (word,) = unpack_from(">H", raw)
    return 1.0 if word & (1 << bit_offset) else 0.0
