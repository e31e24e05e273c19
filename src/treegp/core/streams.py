"""Helpers for the big-endian binary streams used by save/load."""

import struct
from typing import BinaryIO, Tuple

from .errors import MalformedStreamError


def write_struct(stream: BinaryIO, fmt: str, *values) -> None:
    stream.write(struct.pack(fmt, *values))


def read_struct(stream: BinaryIO, fmt: str, what: str = 'record') -> Tuple:
    """Read exactly one `fmt` record, raising MalformedStreamError on short reads."""
    size = struct.calcsize(fmt)
    data = stream.read(size)
    if data is None or len(data) != size:
        got = 0 if not data else len(data)
        raise MalformedStreamError(f"Truncated {what}: expected {size} bytes, got {got}")
    try:
        return struct.unpack(fmt, data)
    except struct.error as e:
        raise MalformedStreamError(f"Cannot decode {what}: {e}") from e
