# Copyright (c) 2013-2025, Andrea Zoppi
# All rights reserved.
#
# Redistribution and use in source and binary forms, with or without
# modification, are permitted provided that the following conditions are met:
#
# 1. Redistributions of source code must retain the above copyright notice,
#    this list of conditions and the following disclaimer.
#
# 2. Redistributions in binary form must reproduce the above copyright
#    notice, this list of conditions and the following disclaimer in the
#    documentation and/or other materials provided with the distribution.
#
# THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS"
# AND ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE
# IMPLIED WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE
# ARE DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE
# LIABLE FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR
# CONSEQUENTIAL DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF
# SUBSTITUTE GOODS OR SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS
# INTERRUPTION) HOWEVER CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN
# CONTRACT, STRICT LIABILITY, OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE)
# ARISING IN ANY WAY OUT OF THE USE OF THIS SOFTWARE, EVEN IF ADVISED OF THE
# POSSIBILITY OF SUCH DAMAGE.

r"""Contiguous memory segments.

A segment is a contiguous run of bytes anchored at an absolute start address.
Segments are the building blocks of a sparse memory image, and they know how
to serialize themselves as Intel HEX records for each presentation format.
"""

import io
import struct
from typing import IO
from typing import Callable
from typing import Iterator
from typing import Mapping
from typing import Tuple

from .base import DEFAULT_LINE_LENGTH
from .base import DEFAULT_START_CODE
from .base import AnyBytes
from .base import ByteOrder
from .base import IhexFormat
from .base import IhexRangeError
from .base import IhexValueError
from .records import create_data_record
from .records import create_extended_linear_address_record
from .records import create_extended_segment_address_record
from .utils import chop

_BYTEORDER_PREFIX: Mapping[str, str] = {
    'little': '<',
    'big': '>',
}


def validate_address_and_length(address: int, length: int) -> None:
    r"""Checks that an address range is not negative.

    Raises:
        IhexRangeError: Negative address or length.
    """

    if address < 0:
        raise IhexRangeError(f'address must be non-negative, got {address}')
    if length < 0:
        raise IhexRangeError(f'length must be non-negative, got {length}')


def validate_line_length(line_length: int) -> int:
    r"""Checks the number of data bytes per record.

    Returns:
        int: `line_length`.

    Raises:
        IhexValueError: Not within 1 and 255.
    """

    if line_length > 0xFF:
        raise IhexValueError(f'lines cannot be longer than 255 bytes, got {line_length}')
    if line_length < 1:
        raise IhexValueError(f'lines cannot be shorter than 1 byte, got {line_length}')
    return line_length


class MemorySegment:
    r"""Memory segment.

    A segment consists of a start address and a contiguous block of bytes.
    All the addresses taken by the methods are absolute, unless stated
    otherwise.

    Args:
        address (int):
            Start address; non-negative.

        length (int):
            Initial length, zero-filled.

    Examples:
        >>> from ihexseg.segment import MemorySegment
        >>> segment = MemorySegment.from_bytes(0x100, b'abc')
        >>> segment.address, segment.end_address, len(segment)
        (256, 259, 3)
        >>> segment.append_uint16(0x1234, byteorder='big')
        >>> segment.data
        b'abc\x124'
    """

    def __init__(self, address: int, length: int = 0):

        address = address.__index__()
        length = length.__index__()
        validate_address_and_length(address, length)

        self._address: int = address
        self._data: bytearray = bytearray(length)
        self._line_length: int = DEFAULT_LINE_LENGTH

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, MemorySegment):
            return NotImplemented
        return self._address == other._address and self._data == other._data

    def __iter__(self) -> Iterator[int]:

        return iter(self._data)

    def __len__(self) -> int:

        return len(self._data)

    def __repr__(self) -> str:

        return f'<{type(self).__name__} [0x{self._address:X}, 0x{self.end_address:X})>'

    @classmethod
    def from_bytes(cls, address: int, data: AnyBytes) -> 'MemorySegment':
        r"""Creates a segment holding a copy of `data` at `address`."""

        segment = cls(address)
        segment.append_all(data)
        return segment

    @property
    def address(self) -> int:
        r"""int: First valid address of the segment."""

        return self._address

    @property
    def end_address(self) -> int:
        r"""int: One past the last valid address of the segment."""

        return self._address + len(self._data)

    @property
    def data(self) -> bytes:
        r"""bytes: Copy of the segment contents."""

        return bytes(self._data)

    @property
    def line_length(self) -> int:
        r"""int: Number of data bytes per record, within 1 and 255."""

        return self._line_length

    @line_length.setter
    def line_length(self, line_length: int) -> None:

        self._line_length = validate_line_length(line_length)

    def items(self) -> Iterator[Tuple[int, int]]:
        r"""Iterates over ``(address, value)`` pairs.

        Examples:
            >>> list(MemorySegment.from_bytes(5, b'\x01\x02').items())
            [(5, 1), (6, 2)]
        """

        return enumerate(self._data, self._address)

    def slice(self, start: int, stop: int) -> bytes:
        r"""Reads bytes by offsets relative to the start address."""

        return bytes(self._data[start:stop])

    def is_in_range(self, position: int, size: int) -> bool:
        r"""Checks if `size` bytes can be read from `position`."""

        return self._address <= position and position + size <= self.end_address

    def overlaps(self, other: 'MemorySegment') -> bool:
        r"""Checks if two segments overlap or touch.

        The end addresses are taken as inclusive, so that segments touching
        each other can be combined without a gap.

        Examples:
            >>> a = MemorySegment(0, 4)
            >>> a.overlaps(MemorySegment(4, 4))
            True
            >>> a.overlaps(MemorySegment(5, 4))
            False
        """

        return self._address <= other.end_address and other._address <= self.end_address

    def byte(self, position: int) -> int:
        r"""Reads the byte at `position`.

        Raises:
            IhexRangeError: `position` outside the segment.
        """

        if not self.is_in_range(position, 1):
            raise IhexRangeError(f'address {position} is out of range '
                                 f'[{self._address}, {self.end_address})')
        return self._data[position - self._address]

    def write_byte(self, position: int, value: int) -> None:
        r"""Modifies a byte already present in the segment.

        Raises:
            IhexRangeError: `position` outside the segment, or `value` not
                a byte.
        """

        if not self.is_in_range(position, 1):
            raise IhexRangeError(f'address {position} is out of range '
                                 f'[{self._address}, {self.end_address})')
        if not 0 <= value <= 0xFF:
            raise IhexRangeError(f'byte value out of range: {value}')
        self._data[position - self._address] = value

    def fill(self, value: int) -> None:
        r"""Fills the whole segment with `value`."""

        if not 0 <= value <= 0xFF:
            raise IhexRangeError(f'byte value out of range: {value}')
        self._data[:] = bytes((value,)) * len(self._data)

    def resize(self, new_address: int, new_length: int) -> None:
        r"""Re-anchors the segment.

        The segment is moved to start at `new_address` with `new_length` bytes.
        The bytes of the old range which are still within the new range keep
        their addresses; any other bytes are zero.

        Examples:
            >>> segment = MemorySegment.from_bytes(4, b'abcd')
            >>> segment.resize(2, 4)
            >>> segment.data
            b'\x00\x00ab'
        """

        new_address = new_address.__index__()
        new_length = new_length.__index__()
        validate_address_and_length(new_address, new_length)

        old_address = self._address
        old_data = self._data
        old_length = len(old_data)

        if new_address == old_address:
            if new_length >= old_length:
                old_data.extend(bytes(new_length - old_length))
            else:
                del old_data[new_length:]
            return

        data = bytearray(new_length)
        start = max(old_address, new_address)
        endex = min(old_address + old_length, new_address + new_length)
        if start < endex:
            data[(start - new_address):(endex - new_address)] = \
                old_data[(start - old_address):(endex - old_address)]

        self._address = new_address
        self._data = data

    def append(self, value: int) -> None:
        r"""Appends a byte at the end."""

        if not 0 <= value <= 0xFF:
            raise IhexRangeError(f'byte value out of range: {value}')
        self._data.append(value)

    def append_all(self, data: AnyBytes) -> None:
        r"""Appends bytes at the end.

        Raises:
            IhexRangeError: Some item is not a byte value.
        """

        try:
            chunk = bytes(data)
        except ValueError as exc:
            raise IhexRangeError('byte value out of range') from exc
        self._data.extend(chunk)

    def combine(self, other: 'MemorySegment') -> None:
        r"""Combines this segment with another one.

        The segment grows to cover the union of both ranges, then all the
        bytes of `other` are written onto it, overwriting existing ones.

        Examples:
            >>> a = MemorySegment.from_bytes(0, b'abcd')
            >>> a.combine(MemorySegment.from_bytes(2, b'XYZ'))
            >>> a.address, a.data
            (0, b'abXYZ')
        """

        if other is self:
            return

        new_address = min(self._address, other._address)
        new_endex = max(self.end_address, other.end_address)
        self.resize(new_address, new_endex - new_address)

        offset = other._address - new_address
        self._data[offset:(offset + len(other._data))] = other._data

    def _append_packed(self, fmt: str, value, byteorder: ByteOrder) -> None:

        try:
            prefix = _BYTEORDER_PREFIX[byteorder]
        except KeyError:
            raise IhexValueError(f'invalid byte order: {byteorder!r}') from None

        try:
            chunk = struct.pack(prefix + fmt, value)
        except (struct.error, OverflowError) as exc:
            raise IhexRangeError(f'value {value!r} does not fit format {fmt!r}') from exc

        self._data.extend(chunk)

    def append_int8(self, value: int) -> None:

        self._append_packed('b', value, 'little')

    def append_int16(self, value: int, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('h', value, byteorder)

    def append_int32(self, value: int, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('i', value, byteorder)

    def append_int64(self, value: int, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('q', value, byteorder)

    def append_uint8(self, value: int) -> None:

        self._append_packed('B', value, 'little')

    def append_uint16(self, value: int, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('H', value, byteorder)

    def append_uint32(self, value: int, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('I', value, byteorder)

    def append_uint64(self, value: int, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('Q', value, byteorder)

    def append_float32(self, value: float, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('f', value, byteorder)

    def append_float64(self, value: float, byteorder: ByteOrder = 'little') -> None:

        self._append_packed('d', value, byteorder)

    def serialize(
        self,
        stream: IO,
        format: IhexFormat = IhexFormat.I32HEX,
        start_code: str = DEFAULT_START_CODE,
        last_block: int = 0,
    ) -> int:
        r"""Writes the segment as records onto a text stream.

        Args:
            stream (text IO):
                Output stream.

            format (:class:`IhexFormat`):
                Presentation format.

            start_code (str):
                Record mark.

            last_block (int):
                Address block of the last extension record already written.

        Returns:
            int: Address block of the last extension record written.
        """

        serializer = SEGMENT_SERIALIZERS[format]
        return serializer(stream, self, start_code, self._line_length, last_block)

    def to_file_contents(
        self,
        format: IhexFormat = IhexFormat.I32HEX,
        start_code: str = DEFAULT_START_CODE,
    ) -> str:
        r"""Converts the segment into a block of records.

        Examples:
            >>> segment = MemorySegment.from_bytes(0x10030, b'\x02\x33\x7A')
            >>> print(segment.to_file_contents(), end='')
            :020000040001F9
            :0300300002337A1E
        """

        stream = io.StringIO()
        self.serialize(stream, format=format, start_code=start_code)
        return stream.getvalue()


def segment_to_i8hex(
    stream: IO,
    segment: MemorySegment,
    start_code: str = DEFAULT_START_CODE,
    line_length: int = DEFAULT_LINE_LENGTH,
    last_block: int = 0,
) -> int:
    r"""Writes a segment as I8HEX records.

    Only *data* records are written, so the whole segment must lie within
    the 16-bit address space.

    Raises:
        IhexRangeError: Segment beyond address ``0xFFFF``.
        IhexValueError: Invalid `line_length`.
    """

    validate_line_length(line_length)
    if segment.end_address > IhexFormat.I8HEX.endex_max:
        raise IhexRangeError(f'address range [{segment.address}, {segment.end_address}) '
                             f'cannot be represented as I8HEX (max. range: [0, 65536))')

    write = stream.write
    for address, chunk in chop(segment.data, line_length, segment.address):
        write(create_data_record(address, chunk, start_code))
    return last_block


def segment_to_i16hex(
    stream: IO,
    segment: MemorySegment,
    start_code: str = DEFAULT_START_CODE,
    line_length: int = DEFAULT_LINE_LENGTH,
    last_block: int = 0,
) -> int:
    r"""Writes a segment as I16HEX records.

    An *Extended Segment Address* record precedes the first data record of
    each 64 KiB block different from `last_block`.

    Raises:
        IhexRangeError: Segment beyond address 1048560.
        IhexValueError: Invalid `line_length`.
    """

    validate_line_length(line_length)
    if segment.end_address > IhexFormat.I16HEX.endex_max:
        raise IhexRangeError(f'address range [{segment.address}, {segment.end_address}) '
                             f'cannot be represented as I16HEX (max. range: [0, 1048560))')

    write = stream.write
    for address, chunk in chop(segment.data, line_length, segment.address):
        block = address & 0xF0000
        if block != last_block:
            write(create_extended_segment_address_record(block, start_code))
            last_block = block
        write(create_data_record(address & 0xFFFF, chunk, start_code))
    return last_block


def segment_to_i32hex(
    stream: IO,
    segment: MemorySegment,
    start_code: str = DEFAULT_START_CODE,
    line_length: int = DEFAULT_LINE_LENGTH,
    last_block: int = 0,
) -> int:
    r"""Writes a segment as I32HEX records.

    An *Extended Linear Address* record precedes the first data record of
    each 64 KiB block different from `last_block`.

    Raises:
        IhexRangeError: Segment beyond the 32-bit address space.
        IhexValueError: Invalid `line_length`.
    """

    validate_line_length(line_length)
    if segment.end_address > IhexFormat.I32HEX.endex_max:
        raise IhexRangeError(f'address range [{segment.address}, {segment.end_address}) '
                             f'cannot be represented as I32HEX')

    write = stream.write
    for address, chunk in chop(segment.data, line_length, segment.address):
        block = address & 0xFFFF0000
        if block != last_block:
            write(create_extended_linear_address_record(block, start_code))
            last_block = block
        write(create_data_record(address & 0xFFFF, chunk, start_code))
    return last_block


SEGMENT_SERIALIZERS: Mapping[IhexFormat, Callable[..., int]] = {
    IhexFormat.I8HEX: segment_to_i8hex,
    IhexFormat.I16HEX: segment_to_i16hex,
    IhexFormat.I32HEX: segment_to_i32hex,
}
r"""Segment serializer for each presentation format."""
