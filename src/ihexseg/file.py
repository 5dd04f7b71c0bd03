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

r"""Intel HEX file object.

See Also:
    `<https://en.wikipedia.org/wiki/Intel_HEX>`_
"""

import io
from typing import IO
from typing import List
from typing import Optional
from typing import Sequence

from .base import DEFAULT_LINE_LENGTH
from .base import DEFAULT_START_CODE
from .base import IhexFormat
from .base import IhexRangeError
from .container import SegmentContainer
from .parser import IhexParser
from .parser import validate_start_code
from .records import StartSegmentAddress
from .records import create_end_of_file_record
from .records import create_start_linear_address_record
from .records import create_start_segment_address_record
from .segment import SEGMENT_SERIALIZERS
from .segment import validate_line_length


class IhexFile(SegmentContainer):
    r"""Intel HEX file.

    To parse a file, read it as a string and call :meth:`from_string`.
    To write a file, create an empty one, add data via :meth:`add_all` or
    :meth:`add_segment`, then call :meth:`to_file_contents`.

    Attributes:
        start_segment_address (:class:`StartSegmentAddress`):
            Start address of the execution for 80x86 CPUs, if any.

        start_linear_address (int):
            Start address of the execution, if any.

    Examples:
        >>> from ihexseg import IhexFile
        >>> file = IhexFile.from_data(b'abc', address=0x1234)
        >>> file.start_linear_address = 0xCAFE
        >>> print(file.to_file_contents(), end='')
        :040000050000CAFE2F
        :0312340061626391
        :00000001FF
    """

    FILE_EXT: Sequence[str] = [
        # General purpose:
        '.hex', '.mcs', '.int', '.ihex', '.ihe', '.ihx',
        # Platform specific:
        '.h80', '.h86', '.a43', '.a90',
        # Split, banked, or paged:
        '.hxl', '.hxh',
        # Binary or Intel hex:
        '.obj', '.obl', '.obh', '.rom', '.eep',
    ]
    r"""Common file extensions of Intel HEX files."""

    def __init__(self, address: Optional[int] = None, length: Optional[int] = None):

        super().__init__(address, length)

        self.start_segment_address: Optional[StartSegmentAddress] = None
        self.start_linear_address: Optional[int] = None
        self._start_code: str = DEFAULT_START_CODE
        self._line_length: int = DEFAULT_LINE_LENGTH

    def __str__(self) -> str:

        return f'"Intel HEX" : {{ {super().__str__()} }}'

    @classmethod
    def from_string(
        cls,
        data: str,
        start_code: Optional[str] = None,
        allow_duplicate_addresses: bool = False,
    ) -> 'IhexFile':
        r"""Parses Intel HEX records from a string.

        Lines without the record mark are ignored; within a line, characters
        before the record mark are ignored.
        Parsing stops at the *End Of File* record.

        Args:
            data (str):
                Intel HEX text.

            start_code (str):
                Record mark; if ``None``, the standard ``:`` is used.
                If provided, it is stored into :attr:`start_code`.

            allow_duplicate_addresses (bool):
                If false, records sharing any address raise an error.
                If true, the last record wins.

        Returns:
            :class:`IhexFile`: Parsed file.

        Raises:
            IhexValueError: Malformed input, with the offending line number.
            IhexRangeError: Duplicated addresses, when not allowed.

        Examples:
            >>> file = IhexFile.from_string(':0300300002337A1E\n:00000001FF\n')
            >>> [(s.address, s.data) for s in file.segments]
            [(48, b'\x023z')]
        """

        file = cls()
        if start_code is not None:
            file.start_code = start_code

        parser = IhexParser(file.start_code, allow_duplicate_addresses)
        container = parser.parse(data)

        file.segments.extend(container.segments)
        file.start_segment_address = parser.start_segment_address
        file.start_linear_address = parser.start_linear_address
        return file

    @property
    def format(self) -> IhexFormat:
        r"""Smallest presentation format able to represent the file.

        Examples:
            >>> IhexFile.from_data(b'abc', address=0xFFFD).format
            <IhexFormat.I8HEX: 'i8hex'>
            >>> IhexFile.from_data(b'abc', address=0xFFFE).format
            <IhexFormat.I16HEX: 'i16hex'>
        """

        max_address = self.max_address
        for format in (IhexFormat.I8HEX, IhexFormat.I16HEX):
            if max_address <= format.endex_max:
                return format
        return IhexFormat.I32HEX

    @property
    def line_length(self) -> int:
        r"""int: Number of data bytes per data record, within 1 and 255."""

        return self._line_length

    @line_length.setter
    def line_length(self, line_length: int) -> None:

        self._line_length = validate_line_length(line_length)

    @property
    def start_code(self) -> str:
        r"""str: Record mark; the standard is ``:``."""

        return self._start_code

    @start_code.setter
    def start_code(self, start_code: str) -> None:

        self._start_code = validate_start_code(start_code)

    def file_extensions(self) -> List[str]:
        r"""Lists the common file extensions of Intel HEX files."""

        return list(self.FILE_EXT)

    def serialize(self, stream: IO, format: IhexFormat = IhexFormat.I32HEX) -> None:
        r"""Writes all the records onto a text stream.

        Start address records come first, then the data of each segment, then
        the *End Of File* record.
        The segments must be sorted.
        """

        start_code = self._start_code
        write = stream.write

        if self.start_linear_address is not None:
            write(create_start_linear_address_record(self.start_linear_address, start_code))

        if self.start_segment_address is not None:
            write(create_start_segment_address_record(self.start_segment_address.code_segment,
                                                      self.start_segment_address.instruction_pointer,
                                                      start_code))

        serializer = SEGMENT_SERIALIZERS[format]
        last_block = 0
        for segment in self.segments:
            last_block = serializer(stream, segment, start_code, self._line_length, last_block)

        write(create_end_of_file_record(start_code))

    def to_file_contents(
        self,
        format: IhexFormat = IhexFormat.I32HEX,
        start_code: Optional[str] = None,
        allow_duplicate_addresses: bool = False,
    ) -> str:
        r"""Converts the file into Intel HEX text.

        Args:
            format (:class:`IhexFormat`):
                Presentation format.

            start_code (str):
                Record mark; if provided, it is stored into :attr:`start_code`.

            allow_duplicate_addresses (bool):
                If false, overlapping segments raise an error.

        Returns:
            str: Intel HEX text.

        Raises:
            IhexRangeError: Overlapping segments when not allowed, or data
                beyond the range of `format`.
        """

        if start_code is not None:
            self.start_code = start_code

        self.sort_segments()
        if not allow_duplicate_addresses and not self.validate_segments_are_unique():
            raise IhexRangeError('there are overlapping segments in the file')

        stream = io.StringIO()
        self.serialize(stream, format=format)
        return stream.getvalue()
