import io

import pytest

from ihexseg.base import IhexFormat
from ihexseg.base import IhexRangeError
from ihexseg.base import IhexValueError
from ihexseg.segment import SEGMENT_SERIALIZERS
from ihexseg.segment import MemorySegment
from ihexseg.segment import segment_to_i8hex
from ihexseg.segment import segment_to_i16hex
from ihexseg.segment import segment_to_i32hex
from ihexseg.segment import validate_address_and_length
from ihexseg.segment import validate_line_length


def test_validate_address_and_length():
    validate_address_and_length(0, 0)
    validate_address_and_length(0xFFFFFFFF, 1)

    with pytest.raises(IhexRangeError, match='address must be non-negative'):
        validate_address_and_length(-1, 0)

    with pytest.raises(IhexRangeError, match='length must be non-negative'):
        validate_address_and_length(0, -1)


def test_validate_line_length():
    assert validate_line_length(1) == 1
    assert validate_line_length(255) == 255

    with pytest.raises(IhexValueError, match='shorter than 1 byte'):
        validate_line_length(0)

    with pytest.raises(IhexValueError, match='longer than 255 bytes'):
        validate_line_length(256)


class TestMemorySegment:

    def test___init__(self):
        segment = MemorySegment(0x100, 4)
        assert segment.address == 0x100
        assert segment.end_address == 0x104
        assert len(segment) == 4
        assert segment.data == b'\x00\x00\x00\x00'
        assert segment.line_length == 16

    def test___init__empty(self):
        segment = MemorySegment(0x100)
        assert segment.address == 0x100
        assert segment.end_address == 0x100
        assert len(segment) == 0

    def test___init__raises(self):
        with pytest.raises(IhexRangeError):
            MemorySegment(-1)

        with pytest.raises(IhexRangeError):
            MemorySegment(0, -1)

    def test___eq__(self):
        assert MemorySegment.from_bytes(1, b'abc') == MemorySegment.from_bytes(1, b'abc')
        assert MemorySegment.from_bytes(1, b'abc') != MemorySegment.from_bytes(2, b'abc')
        assert MemorySegment.from_bytes(1, b'abc') != MemorySegment.from_bytes(1, b'abd')
        assert MemorySegment.from_bytes(1, b'abc') != b'abc'

    def test___iter__(self):
        assert list(MemorySegment.from_bytes(1, b'abc')) == [0x61, 0x62, 0x63]

    def test___repr__(self):
        assert repr(MemorySegment.from_bytes(0x10, b'abc')) == '<MemorySegment [0x10, 0x13)>'

    def test_from_bytes(self):
        data = bytearray(b'abc')
        segment = MemorySegment.from_bytes(5, data)
        data[0] = 0
        assert segment.data == b'abc'

    def test_from_bytes_raises(self):
        with pytest.raises(IhexRangeError, match='byte value out of range'):
            MemorySegment.from_bytes(0, [0, 256])

    def test_line_length(self):
        segment = MemorySegment(0)
        segment.line_length = 32
        assert segment.line_length == 32

        with pytest.raises(IhexValueError):
            segment.line_length = 0

    def test_items(self):
        segment = MemorySegment.from_bytes(5, b'\x01\x02')
        assert list(segment.items()) == [(5, 1), (6, 2)]

    def test_slice(self):
        segment = MemorySegment.from_bytes(5, b'abcdef')
        assert segment.slice(1, 3) == b'bc'
        assert segment.slice(4, 100) == b'ef'

    def test_is_in_range(self):
        segment = MemorySegment(10, 5)
        assert segment.is_in_range(10, 5) is True
        assert segment.is_in_range(14, 1) is True
        assert segment.is_in_range(15, 1) is False
        assert segment.is_in_range(9, 1) is False
        assert segment.is_in_range(12, 4) is False

    def test_overlaps(self):
        segment = MemorySegment(10, 5)
        assert segment.overlaps(MemorySegment(12, 1)) is True
        assert segment.overlaps(MemorySegment(5, 20)) is True
        assert segment.overlaps(MemorySegment(15, 5)) is True
        assert segment.overlaps(MemorySegment(5, 5)) is True
        assert segment.overlaps(MemorySegment(16, 5)) is False
        assert segment.overlaps(MemorySegment(0, 9)) is False

    def test_byte(self):
        segment = MemorySegment.from_bytes(10, b'abc')
        assert segment.byte(10) == 0x61
        assert segment.byte(12) == 0x63

        with pytest.raises(IhexRangeError, match='out of range'):
            segment.byte(13)

        with pytest.raises(IhexRangeError, match='out of range'):
            segment.byte(9)

    def test_write_byte(self):
        segment = MemorySegment.from_bytes(10, b'abc')
        segment.write_byte(11, 0x42)
        assert segment.data == b'aBc'

        with pytest.raises(IhexRangeError, match='out of range'):
            segment.write_byte(13, 0)

        with pytest.raises(IhexRangeError, match='byte value'):
            segment.write_byte(10, 0x100)

    def test_fill(self):
        segment = MemorySegment(0, 3)
        segment.fill(0xFF)
        assert segment.data == b'\xFF\xFF\xFF'

        with pytest.raises(IhexRangeError, match='byte value'):
            segment.fill(-1)

    def test_resize_grow_same_address(self):
        segment = MemorySegment.from_bytes(4, b'abcd')
        segment.resize(4, 6)
        assert segment.address == 4
        assert segment.data == b'abcd\x00\x00'

    def test_resize_shrink_same_address(self):
        segment = MemorySegment.from_bytes(4, b'abcd')
        segment.resize(4, 2)
        assert segment.data == b'ab'

    def test_resize_move_down(self):
        segment = MemorySegment.from_bytes(4, b'abcd')
        segment.resize(2, 4)
        assert segment.address == 2
        assert segment.data == b'\x00\x00ab'

    def test_resize_move_up(self):
        segment = MemorySegment.from_bytes(4, b'abcd')
        segment.resize(6, 4)
        assert segment.address == 6
        assert segment.data == b'cd\x00\x00'

    def test_resize_disjoint(self):
        segment = MemorySegment.from_bytes(4, b'abcd')
        segment.resize(100, 2)
        assert segment.address == 100
        assert segment.data == b'\x00\x00'

    def test_resize_raises(self):
        segment = MemorySegment.from_bytes(4, b'abcd')
        with pytest.raises(IhexRangeError):
            segment.resize(-1, 2)

    def test_append(self):
        segment = MemorySegment(3)
        segment.append(0x61)
        segment.append(0x62)
        assert segment.data == b'ab'
        assert segment.end_address == 5

        with pytest.raises(IhexRangeError, match='byte value'):
            segment.append(256)

    def test_append_all(self):
        segment = MemorySegment.from_bytes(3, b'ab')
        segment.append_all(b'cd')
        segment.append_all(bytearray(b'e'))
        segment.append_all(memoryview(b'f'))
        segment.append_all([0x67])
        assert segment.data == b'abcdefg'

    def test_combine_overlap(self):
        a = MemorySegment.from_bytes(0, b'abcd')
        a.combine(MemorySegment.from_bytes(2, b'XYZ'))
        assert a.address == 0
        assert a.data == b'abXYZ'

    def test_combine_before(self):
        a = MemorySegment.from_bytes(4, b'abcd')
        a.combine(MemorySegment.from_bytes(0, b'XYZ'))
        assert a.address == 0
        assert a.data == b'XYZ\x00abcd'

    def test_combine_touching(self):
        a = MemorySegment.from_bytes(0, b'ab')
        a.combine(MemorySegment.from_bytes(2, b'cd'))
        assert a.data == b'abcd'

    def test_combine_inside(self):
        a = MemorySegment.from_bytes(0, b'abcdef')
        a.combine(MemorySegment.from_bytes(2, b'X'))
        assert a.address == 0
        assert a.data == b'abXdef'

    def test_combine_self(self):
        a = MemorySegment.from_bytes(0, b'ab')
        a.combine(a)
        assert a.data == b'ab'

    def test_append_ints_little(self):
        segment = MemorySegment(0)
        segment.append_int8(-1)
        segment.append_uint8(0x80)
        segment.append_int16(-2)
        segment.append_uint16(0x1234)
        segment.append_int32(-3)
        segment.append_uint32(0x12345678)
        segment.append_int64(-4)
        segment.append_uint64(0x0123456789ABCDEF)
        assert segment.data == (b'\xFF\x80'
                                b'\xFE\xFF\x34\x12'
                                b'\xFD\xFF\xFF\xFF\x78\x56\x34\x12'
                                b'\xFC\xFF\xFF\xFF\xFF\xFF\xFF\xFF'
                                b'\xEF\xCD\xAB\x89\x67\x45\x23\x01')

    def test_append_ints_big(self):
        segment = MemorySegment(0)
        segment.append_int16(-2, byteorder='big')
        segment.append_uint16(0x1234, byteorder='big')
        segment.append_uint32(0x12345678, byteorder='big')
        segment.append_uint64(0x0123456789ABCDEF, byteorder='big')
        assert segment.data == (b'\xFF\xFE\x12\x34'
                                b'\x12\x34\x56\x78'
                                b'\x01\x23\x45\x67\x89\xAB\xCD\xEF')

    def test_append_floats(self):
        segment = MemorySegment(0)
        segment.append_float32(1.0)
        segment.append_float64(-2.0, byteorder='big')
        assert segment.data == (b'\x00\x00\x80\x3F'
                                b'\xC0\x00\x00\x00\x00\x00\x00\x00')

    def test_append_ints_raises(self):
        segment = MemorySegment(0)
        with pytest.raises(IhexRangeError, match='does not fit'):
            segment.append_uint8(256)

        with pytest.raises(IhexRangeError, match='does not fit'):
            segment.append_int16(0x8000)

        with pytest.raises(IhexRangeError, match='does not fit'):
            segment.append_uint32(-1)

        with pytest.raises(IhexValueError, match='invalid byte order'):
            segment.append_uint16(0, byteorder='middle')

        assert len(segment) == 0

    def test_serialize(self):
        stream = io.StringIO()
        segment = MemorySegment.from_bytes(0x10030, b'\x02\x33\x7A')
        last_block = segment.serialize(stream)
        assert last_block == 0x10000
        assert stream.getvalue() == (':020000040001F9\n'
                                     ':0300300002337A1E\n')

    def test_serialize_last_block(self):
        stream = io.StringIO()
        segment = MemorySegment.from_bytes(0x10030, b'\x02\x33\x7A')
        last_block = segment.serialize(stream, last_block=0x10000)
        assert last_block == 0x10000
        assert stream.getvalue() == ':0300300002337A1E\n'

    def test_serialize_line_length(self):
        stream = io.StringIO()
        segment = MemorySegment.from_bytes(0, b'abcde')
        segment.line_length = 2
        segment.serialize(stream, format=IhexFormat.I8HEX)
        assert stream.getvalue() == (':0200000061623B\n'
                                     ':02000200636435\n'
                                     ':010004006596\n')

    def test_to_file_contents(self):
        segment = MemorySegment.from_bytes(0x10030, b'\x02\x33\x7A')
        assert segment.to_file_contents() == (':020000040001F9\n'
                                              ':0300300002337A1E\n')
        assert segment.to_file_contents(start_code='@') == ('@020000040001F9\n'
                                                            '@0300300002337A1E\n')

    def test_to_file_contents_empty(self):
        assert MemorySegment(0x12345678).to_file_contents() == ''


def test_segment_serializers():
    assert SEGMENT_SERIALIZERS[IhexFormat.I8HEX] is segment_to_i8hex
    assert SEGMENT_SERIALIZERS[IhexFormat.I16HEX] is segment_to_i16hex
    assert SEGMENT_SERIALIZERS[IhexFormat.I32HEX] is segment_to_i32hex


def test_segment_to_i8hex():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0xFFFD, b'abc')
    assert segment_to_i8hex(stream, segment) == 0
    assert stream.getvalue() == ':03FFFD00616263DB\n'


def test_segment_to_i8hex_raises():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0xFFFE, b'abc')
    with pytest.raises(IhexRangeError, match='I8HEX'):
        segment_to_i8hex(stream, segment)
    assert stream.getvalue() == ''

    with pytest.raises(IhexValueError):
        segment_to_i8hex(stream, MemorySegment(0, 1), line_length=0)


def test_segment_to_i16hex():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0x1FFFE, b'abcd')
    assert segment_to_i16hex(stream, segment, line_length=2) == 0x20000
    assert stream.getvalue() == (':020000021000EC\n'
                                 ':02FFFE0061623E\n'
                                 ':020000022000DC\n'
                                 ':02000000636437\n')


def test_segment_to_i16hex_first_block():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0x30, b'\x02\x33\x7A')
    assert segment_to_i16hex(stream, segment) == 0
    assert stream.getvalue() == ':0300300002337A1E\n'


def test_segment_to_i16hex_raises():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(1048560 - 1, b'ab')
    with pytest.raises(IhexRangeError, match='I16HEX'):
        segment_to_i16hex(stream, segment)

    segment = MemorySegment.from_bytes(1048560 - 2, b'ab')
    segment_to_i16hex(stream, segment)


def test_segment_to_i32hex():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0x1FFFE, b'abcd')
    assert segment_to_i32hex(stream, segment, line_length=2) == 0x20000
    assert stream.getvalue() == (':020000040001F9\n'
                                 ':02FFFE0061623E\n'
                                 ':020000040002F8\n'
                                 ':02000000636437\n')


def test_segment_to_i32hex_raises():
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0xFFFFFFFF, b'ab')
    with pytest.raises(IhexRangeError, match='I32HEX'):
        segment_to_i32hex(stream, segment)

    segment = MemorySegment.from_bytes(0xFFFFFFFE, b'ab')
    assert segment_to_i32hex(stream, segment) == 0xFFFF0000


@pytest.mark.parametrize('format', list(IhexFormat))
@pytest.mark.parametrize('length, line_length', [
    (0, 16), (1, 1), (15, 16), (16, 16), (17, 16),
    (255, 255), (256, 255), (1000, 7), (4096, 32),
])
def test_serializers_chunk_count(format, length, line_length):
    stream = io.StringIO()
    segment = MemorySegment.from_bytes(0x100, bytes(i & 0xFF for i in range(length)))
    SEGMENT_SERIALIZERS[format](stream, segment, line_length=line_length)
    lines = stream.getvalue().splitlines()

    assert len(lines) == -(-length // line_length)
    counts = [int(line[1:3], 16) for line in lines]
    assert all(count == line_length for count in counts[:-1])
    assert sum(counts) == length
