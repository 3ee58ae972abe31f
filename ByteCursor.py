from typing import Optional

import pstutils
from exceptions import OutOfBoundsException


class ByteCursor:
    """ByteCursor: a read-only view over a byte sequence and a read position.
    Every read is bounds checked and a failed read leaves the position untouched."""

    data: bytes
    offset: int

    def __init__(self, data: bytes, offset: int = 0) -> None:

        self.data = bytes(data)
        self.offset = 0
        self.seek(offset)

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def has(self, n_bytes: int) -> bool:
        return 0 <= n_bytes <= self.remaining

    def seek(self, offset: int) -> None:

        if offset < 0 or offset > len(self.data):
            raise OutOfBoundsException(
                f'Seek to {offset} outside of {len(self.data)} bytes')
        self.offset = offset

    def skip(self, n_bytes: int) -> None:

        self.__check(n_bytes)
        self.offset += n_bytes

    def read_bytes(self, n_bytes: int) -> bytes:

        self.__check(n_bytes)
        value_bytes: bytes = self.data[self.offset:self.offset + n_bytes]
        self.offset += n_bytes
        return value_bytes

    def read_u8(self) -> int:

        return self.read_bytes(1)[0]

    def read_u16_le(self) -> int:

        return pstutils.unpack_integer('<H', self.read_bytes(2))

    def read_u32_le(self, n_bytes: int = 4) -> int:
        """Unsigned little-endian read of 1 to 4 bytes"""

        if n_bytes < 1 or n_bytes > 4:
            raise ValueError(f'Cannot read a {n_bytes} byte integer')
        return pstutils.unpack_le(self.read_bytes(n_bytes))

    def read_i32_le(self) -> int:

        return pstutils.unpack_integer('<i', self.read_bytes(4))

    def peek_remaining(self, n_bytes: Optional[int] = None) -> bytes:
        """Returns the unread bytes (or the next n_bytes of them) without moving"""

        if n_bytes is None:
            return self.data[self.offset:]
        self.__check(n_bytes)
        return self.data[self.offset:self.offset + n_bytes]

    def __check(self, n_bytes: int) -> None:

        if n_bytes < 0 or n_bytes > self.remaining:
            raise OutOfBoundsException(
                f'Read of {n_bytes} bytes at offset {self.offset} overruns {len(self.data)} bytes')

    def __len__(self) -> int:

        return len(self.data)

    def __repr__(self) -> str:

        return f'ByteCursor offset: {self.offset}, length: {len(self.data)}'
