"""
Big-endian binary stream used for the persisted form of tasks.

Layout of the composite values:
    string:    u32 byte length, UTF-8 bytes
    timestamp: i64 microseconds since the Unix epoch (UTC),
               i32 UTC offset in seconds,
               string IANA zone key (empty for fixed-offset zones)
"""
import struct
from datetime import datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from update_scheduler.errors import MalformedTaskData

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_U32 = struct.Struct(">I")
_I32 = struct.Struct(">i")
_U64 = struct.Struct(">Q")
_I64 = struct.Struct(">q")


class StreamWriter:
    def __init__(self):
        self._buffer = bytearray()

    def getvalue(self) -> bytes:
        return bytes(self._buffer)

    def write_u32(self, value: int) -> None:
        self._buffer += _U32.pack(value)

    def write_i32(self, value: int) -> None:
        self._buffer += _I32.pack(value)

    def write_u64(self, value: int) -> None:
        self._buffer += _U64.pack(value)

    def write_i64(self, value: int) -> None:
        self._buffer += _I64.pack(value)

    def write_raw(self, data: bytes) -> None:
        self._buffer += data

    def write_string(self, value: str) -> None:
        encoded = value.encode("utf-8")
        self.write_u32(len(encoded))
        self.write_raw(encoded)

    def write_datetime(self, value: datetime) -> None:
        if value.tzinfo is None:
            raise ValueError("Cannot serialize a naive datetime")
        offset = value.utcoffset() or timedelta(0)
        self.write_i64((value - EPOCH) // timedelta(microseconds=1))
        self.write_i32(int(offset.total_seconds()))
        key = value.tzinfo.key if isinstance(value.tzinfo, ZoneInfo) else ""
        self.write_string(key)


class StreamReader:
    def __init__(self, data: bytes):
        self._data = memoryview(data)
        self._pos = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self._pos

    def at_end(self) -> bool:
        return self.remaining == 0

    def read_raw(self, size: int) -> bytes:
        if size < 0:
            raise MalformedTaskData(f"Negative length {size} in task data")
        if size > self.remaining:
            raise MalformedTaskData(
                f"Task data truncated: needed {size} bytes at offset {self._pos}, {self.remaining} left")
        chunk = self._data[self._pos:self._pos + size].tobytes()
        self._pos += size
        return chunk

    def _unpack(self, fmt: struct.Struct) -> int:
        return fmt.unpack(self.read_raw(fmt.size))[0]

    def read_u32(self) -> int:
        return self._unpack(_U32)

    def read_i32(self) -> int:
        return self._unpack(_I32)

    def read_u64(self) -> int:
        return self._unpack(_U64)

    def read_i64(self) -> int:
        return self._unpack(_I64)

    def read_string(self) -> str:
        raw = self.read_raw(self.read_u32())
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedTaskData(f"Invalid string in task data: {e}") from e

    def read_datetime(self) -> datetime:
        micros = self.read_i64()
        offset = self.read_i32()
        key = self.read_string()
        try:
            instant = EPOCH + timedelta(microseconds=micros)
            zone = _zone_for_key(key) or timezone(timedelta(seconds=offset))
            return instant.astimezone(zone)
        except (OverflowError, ValueError) as e:
            raise MalformedTaskData(f"Invalid timestamp in task data: {e}") from e

    def expect_end(self) -> None:
        if not self.at_end():
            raise MalformedTaskData(f"{self.remaining} unexpected trailing byte(s) in task data")


def _zone_for_key(key: str) -> Optional[ZoneInfo]:
    if not key:
        return None
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError):
        return None
