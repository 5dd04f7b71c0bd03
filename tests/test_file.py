import io
import time

import pytest
from bytesparse import Memory

from ihexseg import IhexFile
from ihexseg.base import IhexFormat
from ihexseg.base import IhexRangeError
from ihexseg.base import IhexValueError
from ihexseg.records import StartSegmentAddress
from ihexseg.segment import MemorySegment

MIB = 0x100000


def _blocks(file):
    return [[segment.address, segment.data] for segment in file.segments]


@pytest.fixture(scope='module')
def mib_file():
    file = IhexFile(0, 0)
    file.add_all(0, bytes(i & 0xFF for i in range(MIB)))
    return file


class TestIhexFile:

    def test___init__(self):
        file = IhexFile()
        assert file.segments == []
        assert file.start_segment_address is None
        assert file.start_linear_address is None
        assert file.start_code == ':'
        assert file.line_length == 16

    def test___str__(self):
        file = IhexFile.from_data(b'abc', address=5)
        assert str(file) == '"Intel HEX" : { "segments": [{"start": 5, "end": 8}] }'

    def test_file_extensions(self):
        extensions = IhexFile().file_extensions()
        assert '.hex' in extensions
        assert '.ihex' in extensions
        assert extensions == list(IhexFile.FILE_EXT)

    def test_line_length(self):
        file = IhexFile()
        file.line_length = 255
        assert file.line_length == 255

        with pytest.raises(IhexValueError):
            file.line_length = 256

        with pytest.raises(IhexValueError):
            file.line_length = 0

    def test_start_code(self):
        file = IhexFile()
        file.start_code = '@'
        assert file.start_code == '@'

        with pytest.raises(IhexValueError, match='1 character long'):
            file.start_code = '::'

    def test_format(self):
        assert IhexFile().format == IhexFormat.I8HEX
        assert IhexFile.from_data(b'abc', address=0xFFFD).format == IhexFormat.I8HEX
        assert IhexFile.from_data(b'abc', address=0xFFFE).format == IhexFormat.I16HEX
        assert IhexFile.from_data(b'ab', address=1048558).format == IhexFormat.I16HEX
        assert IhexFile.from_data(b'ab', address=1048559).format == IhexFormat.I32HEX

    def test_from_memory(self):
        memory = Memory.from_blocks([[0x1234, b'abc'], [0xABCD5678, b'xyz']])
        file = IhexFile.from_memory(memory)
        assert isinstance(file, IhexFile)
        assert _blocks(file) == [[0x1234, b'abc'], [0xABCD5678, b'xyz']]
        assert file.to_memory().to_blocks() == memory.to_blocks()

    def test_from_string(self):
        file = IhexFile.from_string(':04000005000000CD2A\n'
                                    ':0400000300003800C1\n'
                                    ':020000021200EA\n'
                                    ':0300300002337A1E\n'
                                    ':00000001FF\n')
        assert _blocks(file) == [[0x12030, b'\x02\x33\x7A']]
        assert file.start_linear_address == 0xCD
        assert file.start_segment_address == StartSegmentAddress(0, 0x3800)

    def test_from_string_empty_data_record(self):
        file = IhexFile.from_string(':00010000FF\n:00000001FF\n')
        assert file.segments == []
        assert file.max_address == 0
        assert file.to_memory().to_blocks() == Memory().to_blocks()
        assert file.to_file_contents() == ':00000001FF\n'

    def test_from_string_start_code(self):
        file = IhexFile.from_string('@0300300002337A1E\n@00000001FF\n', start_code='@')
        assert file.start_code == '@'
        assert _blocks(file) == [[0x30, b'\x02\x33\x7A']]

    def test_from_string_raises_start_code(self):
        with pytest.raises(IhexValueError, match='1 character long'):
            IhexFile.from_string(':00000001FF\n', start_code='')

    def test_from_string_raises_missing_eof(self):
        # the record itself is well formed, but the buffer is not terminated
        with pytest.raises(ValueError, match='missing end of file record'):
            IhexFile.from_string(':0100000000FF')

    def test_from_string_raises_duplicates(self):
        text = ':0300300002337A1E\n:0300300002337A1E\n:00000001FF\n'
        with pytest.raises(IhexRangeError):
            IhexFile.from_string(text)

        file = IhexFile.from_string(text, allow_duplicate_addresses=True)
        assert _blocks(file) == [[0x30, b'\x02\x33\x7A']]

    def test_to_file_contents_empty(self):
        assert IhexFile().to_file_contents() == ':00000001FF\n'

    def test_to_file_contents_start_addresses(self):
        file = IhexFile.from_data(b'abc', address=0x1234)
        file.start_linear_address = 0xCAFE
        file.start_segment_address = StartSegmentAddress(0, 0x3800)
        assert file.to_file_contents() == (':040000050000CAFE2F\n'
                                           ':0400000300003800C1\n'
                                           ':0312340061626391\n'
                                           ':00000001FF\n')

    def test_to_file_contents_start_code(self):
        file = IhexFile.from_data(b'abc', address=0x1234)
        assert file.to_file_contents(start_code='@') == ('@0312340061626391\n'
                                                         '@00000001FF\n')
        assert file.start_code == '@'

    def test_to_file_contents_line_length(self):
        file = IhexFile.from_data(b'abcde')
        file.line_length = 2
        assert file.to_file_contents(IhexFormat.I8HEX) == (':0200000061623B\n'
                                                           ':02000200636435\n'
                                                           ':010004006596\n'
                                                           ':00000001FF\n')

    def test_to_file_contents_chains_extensions(self):
        file = IhexFile()
        file.add_all(0x10000, b'a')
        file.add_all(0x10010, b'b')
        file.add_all(0x30000, b'c')
        assert file.to_file_contents() == (':020000040001F9\n'
                                           ':01000000619E\n'
                                           ':01001000628D\n'
                                           ':020000040003F7\n'
                                           ':01000000639C\n'
                                           ':00000001FF\n')

    def test_to_file_contents_i16hex(self):
        file = IhexFile.from_data(b'\x02\x33\x7A', address=0x12030)
        assert file.to_file_contents(IhexFormat.I16HEX) == (':020000021000EC\n'
                                                            ':0320300002337AFE\n'
                                                            ':00000001FF\n')

    def test_to_file_contents_raises_format(self):
        file = IhexFile.from_data(b'abc', address=0xFFFE)
        with pytest.raises(IhexRangeError, match='I8HEX'):
            file.to_file_contents(IhexFormat.I8HEX)

        file = IhexFile.from_data(b'abc', address=1048560)
        with pytest.raises(IhexRangeError, match='I16HEX'):
            file.to_file_contents(IhexFormat.I16HEX)

    def test_to_file_contents_raises_overlaps(self):
        file = IhexFile.from_data(b'abc')
        file.segments.append(MemorySegment.from_bytes(1, b'x'))
        with pytest.raises(IhexRangeError, match='overlapping segments'):
            file.to_file_contents()

        text = file.to_file_contents(allow_duplicate_addresses=True)
        assert text == (':03000000616263D7\n'
                        ':010001007886\n'
                        ':00000001FF\n')

    def test_serialize(self):
        stream = io.StringIO()
        IhexFile.from_data(b'abc', address=0x1234).serialize(stream)
        assert stream.getvalue() == ':0312340061626391\n:00000001FF\n'

    @pytest.mark.parametrize('format', list(IhexFormat))
    def test_round_trip(self, format):
        file = IhexFile()
        file.add_all(0x0000, b'\x00\x01\x02')
        file.add_all(0x1000, bytes(range(256)))
        file.add_all(0xFFE0, b'end of the first block')
        file.start_segment_address = StartSegmentAddress(0x1234, 0x5678)
        file.line_length = 7
        text = file.to_file_contents(format)

        other = IhexFile.from_string(text)
        assert _blocks(other) == _blocks(file)
        assert other.start_segment_address == file.start_segment_address
        assert other.start_linear_address is None

        assert IhexFile.from_string(text.lower()).to_memory() == file.to_memory()

    def test_bytesparse_round_trip(self):
        memory = Memory()
        memory.write(0x08000000, b'firmware')
        memory.write(0x08010000 - 3, b'crossing')
        memory.write(0x1FFF0000, b'options')

        file = IhexFile.from_memory(memory)
        text = file.to_file_contents()
        assert IhexFile.from_string(text).to_memory().to_blocks() == memory.to_blocks()


class TestIhexFilePerformance:

    def test_serialize_1mib(self, mib_file):
        assert len(mib_file.segments) == 1
        assert mib_file.max_address == MIB

        start = time.perf_counter()
        text = mib_file.to_file_contents()
        elapsed = time.perf_counter() - start

        assert len(text) == 2883836
        assert elapsed < 1.0

    @pytest.mark.parametrize('lower', [False, True])
    def test_parse_1mib(self, mib_file, lower):
        text = mib_file.to_file_contents()
        if lower:
            text = text.lower()

        start = time.perf_counter()
        file = IhexFile.from_string(text)
        elapsed = time.perf_counter() - start

        assert len(file.segments) == 1
        assert file.max_address == MIB
        data = file.segments[0].data
        assert all(data[i] == i & 0xFF for i in range(0, MIB, 4099))
        assert data == mib_file.segments[0].data
        assert elapsed < 1.0
