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

r"""Intel HEX text parser.

The parser scans a text buffer in a single forward pass, looking for record
marks.
Each record is decoded in place and dispatched according to its type:

* *Data* records become segments, at the record address plus the current
  address extensions;
* *Extended Segment Address* and *Extended Linear Address* records replace
  the respective address extension;
* *Start Segment Address* and *Start Linear Address* records are stored,
  at most once each;
* the *End Of File* record stops the scan; anything after it is ignored.

Characters outside records are ignored, so blank lines and comments may
appear between records.
"""

import logging
from typing import Optional

from .base import DEFAULT_START_CODE
from .base import IhexValueError
from .container import SegmentContainer
from .container import SegmentContainerBuilder
from .records import IhexRecord
from .records import IhexTag
from .records import StartSegmentAddress
from .records import parse_record
from .segment import MemorySegment

logger = logging.getLogger(__name__)


def validate_start_code(start_code: str) -> str:
    r"""Checks that a record mark is a single character.

    Raises:
        IhexValueError: Invalid record mark length.
    """

    if len(start_code) != 1:
        raise IhexValueError(f'the record mark can only be 1 character long, '
                             f'got {len(start_code)}: {start_code!r}')
    return start_code


class IhexParser:
    r"""Intel HEX parser.

    A parser object holds the state of a single parse; please create a new
    one for each text buffer.

    Attributes:
        extended_segment_address (int):
            Address offset set by the last *Extended Segment Address* record,
            already multiplied by 16.

        extended_linear_address (int):
            Address offset set by the last *Extended Linear Address* record,
            already multiplied by 65536.

        start_segment_address (:class:`StartSegmentAddress`):
            Value of the *Start Segment Address* record, if any.

        start_linear_address (int):
            Value of the *Start Linear Address* record, if any.

        line_number (int):
            1-based number of the line being parsed.

    Args:
        start_code (str):
            Record mark; a single character.

        allow_duplicate_addresses (bool):
            If false, data records sharing any address raise an error;
            if true, the last one wins.

    Examples:
        >>> from ihexseg.parser import IhexParser
        >>> parser = IhexParser()
        >>> container = parser.parse(':03DA7A0061626383\n'
        ...                          ':040000050000CAFE2F\n'
        ...                          ':00000001FF\n')
        >>> [(s.address, s.data) for s in container.segments]
        [(55930, b'abc')]
        >>> hex(parser.start_linear_address)
        '0xcafe'
    """

    def __init__(
        self,
        start_code: str = DEFAULT_START_CODE,
        allow_duplicate_addresses: bool = False,
    ):

        self.start_code: str = validate_start_code(start_code)
        self.allow_duplicate_addresses: bool = allow_duplicate_addresses

        self.extended_segment_address: int = 0
        self.extended_linear_address: int = 0
        self.start_segment_address: Optional[StartSegmentAddress] = None
        self.start_linear_address: Optional[int] = None
        self.line_number: int = 1

        self._builder = SegmentContainerBuilder()
        self._done: bool = False

    def parse(self, data: str) -> SegmentContainer:
        r"""Parses a text buffer.

        Args:
            data (str):
                Intel HEX text.

        Returns:
            :class:`SegmentContainer`: Parsed data, merged into segments.

        Raises:
            IhexValueError: Malformed record, duplicated start address record,
                or missing *End Of File* record. The message tells the line
                number of the offending record.
            IhexRangeError: Duplicated data addresses, when not allowed.
        """

        start_code = self.start_code
        offset = 0
        last_offset = 0
        records = 0

        while not self._done:
            offset = data.find(start_code, offset)
            if offset < 0:
                break

            self.line_number += data.count('\n', last_offset, offset)
            try:
                record = parse_record(data, offset, start_code=start_code)
                self.dispatch(record)
            except ValueError as exc:
                raise IhexValueError(f'parsing error on line {self.line_number}: {exc}') from exc

            records += 1
            last_offset = offset
            offset += record.text_length

        if not self._done:
            raise IhexValueError('missing end of file record')

        logger.debug('parsed %d record(s) up to line %d', records, self.line_number)
        return self._builder.build(allow_duplicate_addresses=self.allow_duplicate_addresses)

    def dispatch(self, record: IhexRecord) -> None:
        r"""Applies a decoded record to the parser state.

        Raises:
            IhexValueError: Duplicated start address record, or a payload not
                suitable for the record type.
        """

        tag = record.tag

        if tag == IhexTag.DATA:
            address = record.address + self.extended_linear_address + self.extended_segment_address
            self._builder.add(MemorySegment.from_bytes(address, record.data))

        elif tag == IhexTag.END_OF_FILE:
            self._done = True

        elif tag == IhexTag.EXTENDED_SEGMENT_ADDRESS:
            self.extended_segment_address = record.extended_segment_address

        elif tag == IhexTag.START_SEGMENT_ADDRESS:
            if self.start_segment_address is not None:
                raise IhexValueError('start segment address record occurs more than once')
            self.start_segment_address = record.start_segment_address

        elif tag == IhexTag.EXTENDED_LINEAR_ADDRESS:
            self.extended_linear_address = record.extended_linear_address

        elif tag == IhexTag.START_LINEAR_ADDRESS:
            if self.start_linear_address is not None:
                raise IhexValueError('start linear address record occurs more than once')
            self.start_linear_address = record.start_linear_address

        else:  # pragma: no cover
            raise IhexValueError(f'unsupported record type: {tag!r}')
