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

r"""Sparse memory images as sorted lists of segments.

A :class:`SegmentContainer` keeps its segments sorted by start address, and
merges any segments overlapping or touching each other, so that each
contiguous run of bytes is held by exactly one segment.

A :class:`SegmentContainerBuilder` collects lots of small segments (e.g. one
per parsed data record) and merges them all at once, which is much faster
than adding them one by one to a container.
"""

import bisect
import logging
from typing import List
from typing import Optional
from typing import Tuple

from bytesparse import Memory
from bytesparse.base import ImmutableMemory

from .base import AnyBytes
from .base import IhexRangeError
from .segment import MemorySegment

logger = logging.getLogger(__name__)


class SegmentContainer:
    r"""Sorted list of non-overlapping memory segments.

    Args:
        address (int):
            Start address of an initial zero-filled segment.

        length (int):
            Length of the initial segment.
            If either `address` or `length` is ``None`` or negative, the
            container starts empty.

    Examples:
        >>> from ihexseg.container import SegmentContainer
        >>> container = SegmentContainer()
        >>> container.add_all(0x10, b'abc')
        >>> container.add_all(0x13, b'xyz')
        >>> container.add_all(0x40, b'!')
        >>> [(s.address, s.data) for s in container.segments]
        [(16, b'abcxyz'), (64, b'!')]
        >>> container.max_address
        65
    """

    def __init__(self, address: Optional[int] = None, length: Optional[int] = None):

        self._segments: List[MemorySegment] = []

        if address is not None and length is not None and address >= 0 and length >= 0:
            self.add_segment(MemorySegment(address, length))

    def __str__(self) -> str:
        r"""Lists the segment ranges.

        Examples:
            >>> container = SegmentContainer.from_data(b'abc', address=5)
            >>> str(container)
            '"segments": [{"start": 5, "end": 8}]'
        """

        ranges = ', '.join(f'{{"start": {segment.address}, "end": {segment.end_address}}}'
                           for segment in self._segments)
        return f'"segments": [{ranges}]'

    @classmethod
    def from_data(cls, data: AnyBytes, address: int = 0):
        r"""Creates a container with a single segment holding `data`."""

        container = cls()
        container.add_all(address, data)
        return container

    @classmethod
    def from_memory(cls, memory: ImmutableMemory):
        r"""Creates a container from a :class:`bytesparse.Memory`.

        Each contiguous block of `memory` becomes a segment.

        Examples:
            >>> from bytesparse import Memory
            >>> memory = Memory.from_blocks([[1, b'abc'], [10, b'xyz']])
            >>> container = SegmentContainer.from_memory(memory)
            >>> [(s.address, s.data) for s in container.segments]
            [(1, b'abc'), (10, b'xyz')]
        """

        container = cls()
        for start, view in memory.blocks():
            container.add_segment(MemorySegment.from_bytes(start, view))
        return container

    @property
    def segments(self) -> List[MemorySegment]:
        r"""list: Segments held by the container.

        To add data, please call :meth:`add_segment` or :meth:`add_all`.
        """

        return self._segments

    @property
    def max_address(self) -> int:
        r"""int: Greatest segment end address; zero if empty."""

        return max((segment.end_address for segment in self._segments), default=0)

    def add_all(self, address: int, data: AnyBytes) -> None:
        r"""Writes `data` at `address`.

        Any data previously stored at the same addresses is overwritten.
        """

        self.add_segment(MemorySegment.from_bytes(address, data))

    def add_segment(self, segment: MemorySegment) -> None:
        r"""Adds a segment, overwriting data previously stored in its range.

        The segment is combined with the first existing segment overlapping or
        touching it, if any; then the segments are sorted and merged again.
        The container takes ownership of `segment`.
        """

        for old in self._segments:
            if old.overlaps(segment):
                old.combine(segment)
                break
        else:
            self._segments.append(segment)

        self.sort_segments()
        self.merge_segments()

    def merge_segments(self) -> None:
        r"""Merges overlapping or touching segments.

        The segments must be sorted.
        Where addresses are duplicated, the data of the segment starting at
        the lower address is retained.
        """

        segments = self._segments
        if len(segments) < 2:
            return

        merged = [segments[0]]
        for segment in segments[1:]:
            last = merged[-1]
            if segment.overlaps(last):
                segment.combine(last)
                merged[-1] = segment
            else:
                merged.append(segment)

        segments[:] = merged

    def sort_segments(self) -> None:
        r"""Sorts the segments by increasing start address."""

        self._segments.sort(key=lambda segment: segment.address)

    def validate_segments_are_unique(self) -> bool:
        r"""Tells whether no two segments share any address.

        Examples:
            >>> container = SegmentContainer.from_data(b'abc')
            >>> container.segments.append(MemorySegment.from_bytes(2, b'x'))
            >>> container.validate_segments_are_unique()
            False
        """

        segments = self._segments
        for i in range(len(segments)):
            a = segments[i]
            for k in range(i + 1, len(segments)):
                b = segments[k]
                if a.address < b.end_address and b.address < a.end_address:
                    return False
        return True

    def segment_is_new(self, segment: MemorySegment) -> bool:
        r"""Tells whether `segment` shares no address with stored segments."""

        for old in self._segments:
            if old.address < segment.end_address and segment.address < old.end_address:
                return False
        return True

    def byte(self, position: int) -> int:
        r"""Reads the byte at `position`.

        Raises:
            IhexRangeError: No segment holds `position`.
        """

        for segment in self._segments:
            if segment.is_in_range(position, 1):
                return segment.byte(position)
        raise IhexRangeError(f'address {position} is not within any segment')

    def write_byte(self, position: int, value: int) -> None:
        r"""Writes the byte at `position`, creating or growing a segment."""

        segment = MemorySegment(position)
        segment.append(value)
        self.add_segment(segment)

    def to_memory(self) -> Memory:
        r"""Converts the segments into a :class:`bytesparse.Memory`.

        Examples:
            >>> container = SegmentContainer.from_data(b'abc', address=5)
            >>> [[start, data] for start, data in container.to_memory().to_blocks()]
            [[5, b'abc']]
        """

        return Memory.from_blocks([[segment.address, segment.data]
                                   for segment in self._segments if len(segment)])


class SegmentContainerBuilder:
    r"""Lazy builder of a :class:`SegmentContainer`.

    Segments are only collected by :meth:`add`; all the merging work is done
    once by :meth:`build`.

    Examples:
        >>> from ihexseg.container import SegmentContainerBuilder
        >>> builder = SegmentContainerBuilder()
        >>> builder.add(MemorySegment.from_bytes(3, b'def'))
        >>> builder.add(MemorySegment.from_bytes(0, b'abc'))
        >>> container = builder.build()
        >>> [(s.address, s.data) for s in container.segments]
        [(0, b'abcdef')]
    """

    def __init__(self):

        self._segments: List[MemorySegment] = []

    def __len__(self) -> int:

        return len(self._segments)

    def add(self, segment: MemorySegment) -> None:
        r"""Collects a segment."""

        self._segments.append(segment)

    def build(self, allow_duplicate_addresses: bool = False) -> SegmentContainer:
        r"""Builds a container from all the collected segments.

        Contiguous ranges are computed first; one zero-filled segment is then
        allocated for each range, and the collected segments are written
        onto them in the order they were added, so that the last one wins
        on duplicated addresses.

        Args:
            allow_duplicate_addresses (bool):
                If false, overlapping segments raise an error.

        Returns:
            :class:`SegmentContainer`: Built container.

        Raises:
            IhexRangeError: Overlapping segments, when not allowed.
        """

        ranges = self._get_ranges(allow_duplicate_addresses)
        logger.debug('building %d segment(s) from %d chunk(s)', len(ranges), len(self._segments))

        container = SegmentContainer()
        targets = container.segments
        for start, endex in ranges:
            targets.append(MemorySegment(start, endex - start))

        starts = [start for start, _ in ranges]
        for segment in self._segments:
            if not len(segment):
                continue
            index = bisect.bisect_right(starts, segment.address) - 1
            targets[index].combine(segment)

        return container

    def _get_ranges(self, allow_duplicate_addresses: bool) -> List[Tuple[int, int]]:

        ranges: List[Tuple[int, int]] = []
        for segment in sorted(self._segments, key=lambda s: s.address):
            start = segment.address
            endex = segment.end_address
            if start == endex:
                continue

            if ranges:
                last_start, last_endex = ranges[-1]
                if start <= last_endex:
                    if start < min(last_endex, endex) and not allow_duplicate_addresses:
                        raise IhexRangeError(f'the address range [{start}, {endex}) '
                                             f'of a record is not unique')
                    ranges[-1] = (last_start, max(last_endex, endex))
                    continue

            ranges.append((start, endex))
        return ranges

