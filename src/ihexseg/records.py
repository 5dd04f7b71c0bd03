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

r"""Intel HEX records.

A record is one line of an Intel HEX file::

    :LLAAAATTDD...DDCC

where ``LL`` is the byte count, ``AAAA`` the 16-bit address, ``TT`` the
record type (*tag*), ``DD...`` the payload and ``CC`` the checksum, each byte
written as two hexadecimal digits.

The checksum is the two's complement of the 8-bit sum of all the other record
bytes, so that the sum of every byte of a valid record is zero modulo 256.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import enum
import sys
from typing import IO
from typing import Mapping
from typing import Optional
from typing import Type
from typing import TypeVar

from .base import DEFAULT_START_CODE
from .base import AnyBytes
from .base import IhexRangeError
from .base import IhexValueError
from .base import colorize_tokens
from .utils import hexlify
from .utils import unhexlify

RECORD_TEXT_MIN: int = 11
r"""Length of the shortest record text, including the record mark."""

EOF_RAW: bytes = b'\x00\x00\x00\x01\xFF'
r"""Raw bytes of the End Of File record."""


def checksum_of(data: AnyBytes) -> int:
    r"""Computes the checksum of raw record bytes.

    Args:
        data (bytes):
            Raw record bytes, checksum excluded.

    Returns:
        int: Two's complement of the 8-bit sum of `data`.

    Examples:
        >>> checksum_of(b'\x03\x00\x30\x00\x02\x33\x7A')
        30
    """

    return (0x100 - (sum(data) & 0xFF)) & 0xFF


def append_checksum(data: AnyBytes) -> bytes:
    r"""Appends the checksum to raw record bytes.

    Returns:
        bytes: `data` followed by its checksum byte, summing to zero modulo 256.

    Examples:
        >>> append_checksum(b'\x00\x00\x00\x01')
        b'\x00\x00\x00\x01\xff'
    """

    return bytes(data) + bytes((checksum_of(data),))


def is_valid_checksum(data: AnyBytes) -> bool:
    r"""Tells whether raw record bytes carry a valid checksum.

    Args:
        data (bytes):
            Raw record bytes, trailing checksum byte included.

    Returns:
        bool: The sum of all the bytes is zero modulo 256.

    Examples:
        >>> is_valid_checksum(b'\x00\x00\x00\x01\xFF')
        True
        >>> is_valid_checksum(b'\x00\x00\x00\x01\xFE')
        False
    """

    return not (sum(data) & 0xFF)


class IhexTag(enum.IntEnum):
    r"""Intel HEX record type."""

    DATA = 0
    r"""Binary data."""

    END_OF_FILE = 1
    r"""End Of File."""

    EXTENDED_SEGMENT_ADDRESS = 2
    r"""Extended Segment Address."""

    START_SEGMENT_ADDRESS = 3
    r"""Start Segment Address."""

    EXTENDED_LINEAR_ADDRESS = 4
    r"""Extended Linear Address."""

    START_LINEAR_ADDRESS = 5
    r"""Start Linear Address."""

    def is_data(self) -> bool:
        r"""Tells whether this is a Data record tag.

        Examples:
            >>> IhexTag.DATA.is_data()
            True
            >>> IhexTag.END_OF_FILE.is_data()
            False
        """

        return self == self.DATA

    def is_eof(self) -> bool:
        r"""Tells whether this is an End Of File record tag.

        Examples:
            >>> IhexTag.END_OF_FILE.is_eof()
            True
            >>> IhexTag.DATA.is_eof()
            False
        """

        return self == self.END_OF_FILE

    def is_extension(self) -> bool:
        r"""Tells whether this is an Extended Address record tag.

        Examples:
            >>> IhexTag.EXTENDED_LINEAR_ADDRESS.is_extension()
            True
            >>> IhexTag.EXTENDED_SEGMENT_ADDRESS.is_extension()
            True
            >>> IhexTag.DATA.is_extension()
            False
        """

        return ((self == self.EXTENDED_SEGMENT_ADDRESS) or
                (self == self.EXTENDED_LINEAR_ADDRESS))

    def is_file_termination(self) -> bool:
        r"""Tells whether this tag terminates the file; only End Of File does."""

        return self.is_eof()

    def is_start(self) -> bool:
        r"""Tells whether this is a Start Address record tag.

        Examples:
            >>> IhexTag.START_LINEAR_ADDRESS.is_start()
            True
            >>> IhexTag.START_SEGMENT_ADDRESS.is_start()
            True
            >>> IhexTag.DATA.is_start()
            False
        """

        return ((self == self.START_SEGMENT_ADDRESS) or
                (self == self.START_LINEAR_ADDRESS))


class StartSegmentAddress:
    r"""Start Segment Address.

    For 80x86 CPUs, this is the start address of the execution, as the
    ``CS:IP`` register pair.

    Attributes:
        code_segment (int):
            Initial value of the code segment register; 16 bits.

        instruction_pointer (int):
            Initial value of the instruction pointer register; 16 bits.
    """

    def __init__(self, code_segment: int = 0, instruction_pointer: int = 0):

        self.code_segment: int = code_segment
        self.instruction_pointer: int = instruction_pointer

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, StartSegmentAddress):
            return NotImplemented
        return (self.code_segment == other.code_segment and
                self.instruction_pointer == other.instruction_pointer)

    def __repr__(self) -> str:

        return (f'{type(self).__name__}(code_segment=0x{self.code_segment:04X}, '
                f'instruction_pointer=0x{self.instruction_pointer:04X})')

    @property
    def linear(self) -> int:
        r"""int: Equivalent 20-bit linear address, ``CS * 16 + IP``.

        Examples:
            >>> hex(StartSegmentAddress(0x1234, 0x0010).linear)
            '0x12350'
        """

        return (self.code_segment << 4) + self.instruction_pointer


def _build_data(address: int, data: AnyBytes) -> bytes:

    address = address.__index__()
    if not 0 <= address <= 0xFFFF:
        raise IhexRangeError(f'address {address} does not fit in two bytes')

    size = len(data)
    if size > 0xFF:
        raise IhexRangeError(f'a data record holds at most 255 bytes, got {size}')

    header = bytes((size, address >> 8, address & 0xFF, IhexTag.DATA))
    return append_checksum(header + bytes(data))


def _build_extended_segment_address(address: int) -> bytes:

    computed = address.__index__() >> 4
    if not 0 <= computed <= 0xFFFF:
        raise IhexRangeError(f'address {address} divided by 16 does not fit in two bytes')

    return append_checksum(bytes((0x02, 0x00, 0x00, IhexTag.EXTENDED_SEGMENT_ADDRESS,
                                  computed >> 8, computed & 0xFF)))


def _build_extended_linear_address(address: int) -> bytes:

    # upper half only, anything beyond 32 bits is dropped
    computed = (address.__index__() >> 16) & 0xFFFF
    return append_checksum(bytes((0x02, 0x00, 0x00, IhexTag.EXTENDED_LINEAR_ADDRESS,
                                  computed >> 8, computed & 0xFF)))


def _build_start_segment_address(code_segment: int, instruction_pointer: int) -> bytes:

    code_segment = code_segment.__index__()
    if not 0 <= code_segment <= 0xFFFF:
        raise IhexRangeError(f'code segment {code_segment} does not fit in two bytes')

    instruction_pointer = instruction_pointer.__index__()
    if not 0 <= instruction_pointer <= 0xFFFF:
        raise IhexRangeError(f'instruction pointer {instruction_pointer} does not fit in two bytes')

    return append_checksum(bytes((0x04, 0x00, 0x00, IhexTag.START_SEGMENT_ADDRESS,
                                  code_segment >> 8, code_segment & 0xFF,
                                  instruction_pointer >> 8, instruction_pointer & 0xFF)))


def _build_start_linear_address(address: int) -> bytes:

    address = address.__index__()
    if not 0 <= address <= 0xFFFFFFFF:
        raise IhexRangeError(f'address {address} does not fit in four bytes')

    header = bytes((0x04, 0x00, 0x00, IhexTag.START_LINEAR_ADDRESS))
    return append_checksum(header + address.to_bytes(4, byteorder='big'))


def _render(raw: AnyBytes, start_code: str) -> str:

    return start_code + hexlify(raw) + '\n'


def create_data_record(
    address: int,
    data: AnyBytes,
    start_code: str = DEFAULT_START_CODE,
) -> str:
    r"""Creates a Data record line.

    Args:
        address (int):
            16-bit record address.

        data (bytes):
            Up to 255 payload bytes.

        start_code (str):
            Record mark.

    Returns:
        str: Record line, newline included.

    Raises:
        IhexRangeError: Address or payload size overflow.

    Examples:
        >>> create_data_record(0x0030, b'\x02\x33\x7A')
        ':0300300002337A1E\n'
    """

    return _render(_build_data(address, data), start_code)


def create_extended_segment_address_record(
    address: int,
    start_code: str = DEFAULT_START_CODE,
) -> str:
    r"""Creates an Extended Segment Address record line.

    The payload is `address` divided by 16, which is then added (times 16) to
    the addresses of the following data records, reaching up to 1 MiB.

    Raises:
        IhexRangeError: `address` divided by 16 does not fit in 16 bits.

    Examples:
        >>> create_extended_segment_address_record(0x12000)
        ':020000021200EA\n'
    """

    return _render(_build_extended_segment_address(address), start_code)


def create_extended_linear_address_record(
    address: int,
    start_code: str = DEFAULT_START_CODE,
) -> str:
    r"""Creates an Extended Linear Address record line.

    The payload holds the upper 16 bits of the 32-bit `address`; higher bits
    are truncated without errors.

    Examples:
        >>> create_extended_linear_address_record(0xFFFF0000)
        ':02000004FFFFFC\n'
    """

    return _render(_build_extended_linear_address(address), start_code)


def create_start_segment_address_record(
    code_segment: int,
    instruction_pointer: int,
    start_code: str = DEFAULT_START_CODE,
) -> str:
    r"""Creates a Start Segment Address record line.

    Raises:
        IhexRangeError: A register value does not fit in 16 bits.

    Examples:
        >>> create_start_segment_address_record(0x0000, 0x3800)
        ':0400000300003800C1\n'
    """

    return _render(_build_start_segment_address(code_segment, instruction_pointer), start_code)


def create_start_linear_address_record(
    address: int,
    start_code: str = DEFAULT_START_CODE,
) -> str:
    r"""Creates a Start Linear Address record line.

    Raises:
        IhexRangeError: `address` does not fit in 32 bits.

    Examples:
        >>> create_start_linear_address_record(0xCD)
        ':04000005000000CD2A\n'
    """

    return _render(_build_start_linear_address(address), start_code)


def create_end_of_file_record(start_code: str = DEFAULT_START_CODE) -> str:
    r"""Creates the End Of File record line.

    Examples:
        >>> create_end_of_file_record()
        ':00000001FF\n'
    """

    return f'{start_code}00000001FF\n'


Self = TypeVar('Self', bound='IhexRecord')


class IhexRecord:
    r"""Intel HEX record object.

    Attributes:
        tag (:class:`IhexTag`):
            Record type.

        address (int):
            16-bit record address field.

        data (bytes):
            Payload.

        count (int):
            Declared byte count; it should equal ``len(data)``.

        checksum (int):
            Declared checksum byte.

    Args:
        tag (:class:`IhexTag`):
            See :attr:`tag` attribute.

        address (int):
            See :attr:`address` attribute.

        data (bytes):
            See :attr:`data` attribute.

        count (int):
            See :attr:`count` attribute.
            ``Ellipsis`` initializes :attr:`count` via :meth:`compute_count`.

        checksum (int):
            See :attr:`checksum` attribute.
            ``Ellipsis`` initializes :attr:`checksum` via
            :meth:`compute_checksum`.

        validate (bool):
            If true, :meth:`validate` is called upon initialization.
    """

    Tag: Type[IhexTag] = IhexTag

    def __init__(
        self,
        tag: IhexTag,
        address: int = 0,
        data: AnyBytes = b'',
        count=Ellipsis,
        checksum=Ellipsis,
        validate: bool = True,
    ):

        self.tag: IhexTag = tag
        self.address: int = address.__index__()
        self.data: bytes = bytes(data)
        self.count: int = 0
        self.checksum: int = 0

        if count is Ellipsis:
            self.update_count()
        else:
            self.count = count.__index__()

        if checksum is Ellipsis:
            self.update_checksum()
        else:
            self.checksum = checksum.__index__()

        if validate:
            self.validate()

    def __bytes__(self) -> bytes:
        r"""Raw record bytes.

        Returns:
            bytes: Count, address, tag, payload, checksum.

        Examples:
            >>> bytes(IhexRecord.create_end_of_file())
            b'\x00\x00\x00\x01\xff'
        """

        header = bytes((self.count, self.address >> 8, self.address & 0xFF, self.tag))
        return header + self.data + bytes((self.checksum,))

    def __eq__(self, other: object) -> bool:

        if not isinstance(other, IhexRecord):
            return NotImplemented
        return (self.tag == other.tag and
                self.address == other.address and
                self.data == other.data and
                self.count == other.count and
                self.checksum == other.checksum)

    def __repr__(self) -> str:

        return (f'<{type(self).__name__} tag:={self.tag!r} address:=0x{self.address:04X} '
                f'count:={self.count} data:={self.data!r} checksum:=0x{self.checksum:02X}>')

    def __str__(self) -> str:
        r"""Serializes the record into a line.

        Examples:
            >>> str(IhexRecord.create_end_of_file())
            ':00000001FF\n'
        """

        return self.to_line()

    @property
    def text_length(self) -> int:
        r"""int: Number of characters of the serialized record.

        It includes the record mark, not the line terminator.
        """

        return 2 * (self.count + 5) + 1

    def compute_checksum(self) -> int:
        r"""Computes the checksum field value.

        Examples:
            >>> record = IhexRecord.create_data(0x0030, b'\x02\x33\x7A')
            >>> hex(record.compute_checksum())
            '0x1e'
        """

        header = bytes((self.count & 0xFF, (self.address >> 8) & 0xFF,
                        self.address & 0xFF, self.tag & 0xFF))
        return checksum_of(header + self.data)

    def compute_count(self) -> int:

        return len(self.data)

    def update_checksum(self: Self) -> Self:

        self.checksum = self.compute_checksum()
        return self

    def update_count(self: Self) -> Self:

        self.count = self.compute_count()
        return self

    def validate(self: Self) -> Self:
        r"""Validates consistency of the record.

        Returns:
            :class:`IhexRecord`: *self*.

        Raises:
            IhexRangeError: A field does not fit its size.
            IhexValueError: Bad checksum, bad byte count, or a payload size
                not suitable for the record type.

        Examples:
            >>> record = IhexRecord.parse(':0100000000FF')
            >>> record.count = 2
            >>> record.checksum = 0xFE
            >>> record.validate()
            Traceback (most recent call last):
                ...
            ihexseg.base.IhexValueError: byte count error: declared 2, got 1
        """

        if not 0 <= self.address <= 0xFFFF:
            raise IhexRangeError('address overflow')

        if not 0 <= self.count <= 0xFF:
            raise IhexRangeError('count overflow')

        if not 0 <= self.checksum <= 0xFF:
            raise IhexRangeError('checksum overflow')

        data_size = len(self.data)
        if data_size > 0xFF:
            raise IhexRangeError('data size overflow')

        if not is_valid_checksum(bytes(self)):
            raise IhexValueError('checksum error')

        if self.count != data_size:
            raise IhexValueError(f'byte count error: declared {self.count}, got {data_size}')

        return self

    @classmethod
    def create_data(cls: Type[Self], address: int, data: AnyBytes) -> Self:
        r"""Creates a Data record.

        Examples:
            >>> record = IhexRecord.create_data(0x0030, b'\x02\x33\x7A')
            >>> str(record)
            ':0300300002337A1E\n'
        """

        return cls.from_bytes(_build_data(address, data))

    @classmethod
    def create_end_of_file(cls: Type[Self]) -> Self:

        return cls.from_bytes(EOF_RAW)

    @classmethod
    def create_extended_linear_address(cls: Type[Self], address: int) -> Self:
        r"""Creates an Extended Linear Address record.

        Args:
            address (int):
                32-bit address; its upper half is stored.

        Examples:
            >>> record = IhexRecord.create_extended_linear_address(0x12340000)
            >>> str(record)
            ':020000041234B4\n'
        """

        return cls.from_bytes(_build_extended_linear_address(address))

    @classmethod
    def create_extended_segment_address(cls: Type[Self], address: int) -> Self:
        r"""Creates an Extended Segment Address record.

        Args:
            address (int):
                20-bit address; it is stored divided by 16.

        Examples:
            >>> record = IhexRecord.create_extended_segment_address(0x12340)
            >>> str(record)
            ':020000021234B6\n'
        """

        return cls.from_bytes(_build_extended_segment_address(address))

    @classmethod
    def create_start_linear_address(cls: Type[Self], address: int) -> Self:

        return cls.from_bytes(_build_start_linear_address(address))

    @classmethod
    def create_start_segment_address(
        cls: Type[Self],
        code_segment: int,
        instruction_pointer: int,
    ) -> Self:

        return cls.from_bytes(_build_start_segment_address(code_segment, instruction_pointer))

    @classmethod
    def from_bytes(cls: Type[Self], raw: AnyBytes) -> Self:
        r"""Decodes raw record bytes.

        Args:
            raw (bytes):
                Count, address, tag, payload and checksum bytes.

        Returns:
            :class:`IhexRecord`: Decoded record.

        Raises:
            IhexValueError: Too short, bad checksum, bad byte count, or unknown
                record type.

        Examples:
            >>> IhexRecord.from_bytes(b'\x00\x00\x00\x01\xFF').tag
            <IhexTag.END_OF_FILE: 1>
        """

        size = len(raw)
        if size < 5:
            raise IhexValueError(f'record too short: expected at least 5 bytes, got {size}')

        if not is_valid_checksum(raw):
            raise IhexValueError('checksum error')

        if raw[0] != size - 5:
            raise IhexValueError(f'byte count error: declared {raw[0]}, got {size - 5}')

        try:
            tag = cls.Tag(raw[3])
        except ValueError as exc:
            raise IhexValueError(f'unknown record type: expected 0-5, got {raw[3]}') from exc

        return cls(tag,
                   address=(raw[1] << 8) | raw[2],
                   data=raw[4:-1],
                   count=raw[0],
                   checksum=raw[-1],
                   validate=False)

    @classmethod
    def parse(
        cls: Type[Self],
        line: str,
        start_code: str = DEFAULT_START_CODE,
    ) -> Self:
        r"""Parses a record from a line.

        Any characters before the first record mark are ignored, as well as
        any characters after the record.

        Args:
            line (str):
                Line of text holding a record.

            start_code (str):
                Record mark.

        Returns:
            :class:`IhexRecord`: Parsed record.

        Raises:
            IhexValueError: Record mark not found, or malformed record.

        Examples:
            >>> record = IhexRecord.parse(':0300300002337a1e\n')
            >>> record.tag, hex(record.address), record.data
            (<IhexTag.DATA: 0>, '0x30', b'\x023z')
        """

        offset = line.find(start_code)
        if offset < 0:
            raise IhexValueError(f'record mark {start_code!r} not found')

        return parse_record(line, offset, start_code=start_code, record_type=cls)

    def print(
        self: Self,
        stream: Optional[IO] = None,
        color: bool = False,
        start_code: str = DEFAULT_START_CODE,
    ) -> Self:
        r"""Prints a record.

        The record is converted into tokens (eventually colorized) then joined
        and written onto a text stream (*stdout* by default).

        Examples:
            >>> _ = IhexRecord.create_data(0x1234, b'abc').print()
            :0312340061626391
        """

        if stream is None:
            stream = sys.stdout
        tokens = self.to_tokens(start_code=start_code)
        if color:
            tokens = colorize_tokens(tokens)
        stream.writelines(tokens.values())
        return self

    def to_line(self, start_code: str = DEFAULT_START_CODE) -> str:
        r"""Serializes the record into a line.

        Examples:
            >>> record = IhexRecord.parse(':0100000000FF')
            >>> record.to_line(start_code='@')
            '@0100000000FF\n'
        """

        return _render(bytes(self), start_code)

    def to_tokens(self, start_code: str = DEFAULT_START_CODE) -> Mapping[str, str]:

        return {
            'begin': start_code,
            'count': f'{self.count & 0xFF:02X}',
            'address': f'{self.address & 0xFFFF:04X}',
            'tag': f'{self.tag & 0xFF:02X}',
            'data': hexlify(self.data),
            'checksum': f'{self.checksum & 0xFF:02X}',
            'end': '\n',
        }

    def _read_payload(self, tag: IhexTag, size: int) -> int:

        if self.tag != tag or len(self.data) != size:
            raise IhexValueError(f'{self.tag.name} record with {len(self.data)} data bytes '
                                 f'does not hold a {tag.name} ({size} data bytes required)')
        return int.from_bytes(self.data, byteorder='big')

    @property
    def extended_segment_address(self) -> int:
        r"""int: Address offset of an Extended Segment Address record.

        The payload value multiplied by 16.

        Examples:
            >>> hex(IhexRecord.parse(':020000021200EA').extended_segment_address)
            '0x12000'
        """

        return self._read_payload(IhexTag.EXTENDED_SEGMENT_ADDRESS, 2) << 4

    @property
    def extended_linear_address(self) -> int:
        r"""int: Address offset of an Extended Linear Address record.

        Examples:
            >>> hex(IhexRecord.parse(':02000004FFFFFC').extended_linear_address)
            '0xffff0000'
        """

        return self._read_payload(IhexTag.EXTENDED_LINEAR_ADDRESS, 2) << 16

    @property
    def start_linear_address(self) -> int:
        r"""int: Execution start address of a Start Linear Address record.

        Examples:
            >>> hex(IhexRecord.parse(':04000005000000CD2A').start_linear_address)
            '0xcd'
        """

        return self._read_payload(IhexTag.START_LINEAR_ADDRESS, 4)

    @property
    def start_segment_address(self) -> StartSegmentAddress:
        r""":class:`StartSegmentAddress`: ``CS:IP`` pair of a Start Segment Address record."""

        value = self._read_payload(IhexTag.START_SEGMENT_ADDRESS, 4)
        return StartSegmentAddress(value >> 16, value & 0xFFFF)


def parse_record(
    source: str,
    offset: int = 0,
    start_code: str = DEFAULT_START_CODE,
    record_type: Type[IhexRecord] = IhexRecord,
) -> IhexRecord:
    r"""Parses the record starting at an offset of a text buffer.

    The record mark must be at ``source[offset]``.
    Only the characters of the record itself are read, so that this function
    can be called while scanning a whole file buffer.

    Args:
        source (str):
            Text buffer.

        offset (int):
            Index of the record mark within `source`.

        start_code (str):
            Record mark.

        record_type (type):
            Record class to instantiate.

    Returns:
        :class:`IhexRecord`: Parsed record; see :attr:`IhexRecord.text_length`
        to skip past it.

    Raises:
        IhexValueError: Missing record mark, truncated record, invalid
            hexadecimal digits, bad checksum, bad byte count, unknown record
            type.

    Examples:
        >>> text = 'junk\n:00000001FF\n'
        >>> parse_record(text, 5).tag
        <IhexTag.END_OF_FILE: 1>
    """

    available = len(source) - offset
    if available < RECORD_TEXT_MIN:
        raise IhexValueError(f'record too short: the shortest record is {RECORD_TEXT_MIN} '
                             f'characters, got {max(available, 0)}')

    if source[offset] != start_code:
        raise IhexValueError(f'record mark {start_code!r} not found at offset {offset}, '
                             f'got {source[offset]!r}')

    try:
        count = unhexlify(source[(offset + 1):(offset + 3)])[0]
    except ValueError as exc:
        raise IhexValueError(f'invalid byte count digits: {source[(offset + 1):(offset + 3)]!r}') from exc

    expected = 2 * count + RECORD_TEXT_MIN
    if available < expected:
        raise IhexValueError(f'record too short: expected {expected} characters, got {available}')

    try:
        raw = unhexlify(source[(offset + 1):(offset + expected)])
    except ValueError as exc:
        raise IhexValueError(f'invalid hexadecimal digits: {exc}') from exc

    return record_type.from_bytes(raw)
