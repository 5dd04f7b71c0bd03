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

r"""Definitions shared by the record codec and the segment model."""

import enum
from typing import Any
from typing import Mapping
from typing import Union

import colorama

try:
    from typing import TypeAlias
except ImportError:  # pragma: no cover
    TypeAlias = Any  # Python < 3.10

from typing import Literal

AnyBytes: TypeAlias = Union[bytes, bytearray, memoryview]
ByteOrder: TypeAlias = Literal['big', 'little']

DEFAULT_START_CODE: str = ':'
r"""Standard record mark."""

DEFAULT_LINE_LENGTH: int = 16
r"""Default number of data bytes per data record."""


class IhexError(Exception):
    r"""Intel HEX error.

    Root of the errors raised by this package.
    """


class IhexValueError(IhexError, ValueError):
    r"""Malformed input.

    Raised for bad checksums, bad byte counts, unknown record types,
    truncated records, duplicated start address records, missing record marks,
    and invalid settings (record mark length, line length).
    """


class IhexRangeError(IhexError, ValueError):
    r"""Value out of range.

    Raised when a value does not fit its target field, when a presentation
    format cannot represent an address range, or when segments overlap while
    unique addresses are required.
    """


class IhexFormat(enum.Enum):
    r"""Presentation format of an Intel HEX file.

    Each format trades addressable range for record type vocabulary.
    """

    I8HEX = 'i8hex'
    r"""Data and End Of File records only; 16-bit addresses."""

    I16HEX = 'i16hex'
    r"""Adds Extended Segment Address records; about 1 MiB."""

    I32HEX = 'i32hex'
    r"""Adds Extended Linear Address records; 4 GiB."""

    @property
    def endex_max(self) -> int:
        r"""int: Greatest exclusive end address the format can represent.

        Examples:
            >>> from ihexseg.base import IhexFormat
            >>> hex(IhexFormat.I8HEX.endex_max)
            '0x10000'
            >>> IhexFormat.I16HEX.endex_max
            1048560
        """

        return _FORMAT_ENDEX_MAX[self]


_FORMAT_ENDEX_MAX: Mapping[IhexFormat, int] = {
    IhexFormat.I8HEX: 0x10000,
    IhexFormat.I16HEX: 0xFFFF * 16,
    IhexFormat.I32HEX: 0x100000000,
}

TOKEN_COLOR_CODES: Mapping[str, str] = {
    '':         colorama.Style.RESET_ALL,
    '<':        colorama.Style.RESET_ALL,
    '>':        colorama.Style.RESET_ALL,
    'address':  colorama.Fore.RED,
    'begin':    colorama.Fore.YELLOW,
    'checksum': colorama.Fore.MAGENTA,
    'count':    colorama.Fore.BLUE,
    'data':     colorama.Fore.CYAN,
    'dataalt':  colorama.Fore.LIGHTCYAN_EX,
    'end':      colorama.Style.RESET_ALL,
    'tag':      colorama.Fore.GREEN,
}
r"""ANSI color codes for each possible token type."""


def colorize_tokens(
    tokens: Mapping[str, str],
    altdata: bool = True,
) -> Mapping[str, str]:
    r"""Prepends ANSI color codes to record field tokens.

    For each token within `tokens`, its key is used to look up the ANSI color
    code from :data:`TOKEN_COLOR_CODES`.
    The retrieved code is prepended to the token.
    Empty tokens are dropped.

    Args:
        tokens (dict):
            A mapping of each token key name to token string.

        altdata (bool):
            If true, it alternates each byte (two hex digits) between the ANSI
            color codes mapped with keys ``data`` (even byte index) and
            ``dataalt`` (odd byte index).
            If false, only the ``data`` code is prepended.

    Returns:
        dict: `tokens` with prepended ANSI color codes.

    Examples:
        >>> from ihexseg.base import colorize_tokens
        >>> from ihexseg.records import IhexRecord
        >>> tokens = IhexRecord.create_end_of_file().to_tokens()
        >>> colorized = colorize_tokens(tokens)
        >>> colorized['tag']
        '\x1b[32m01'
    """

    codes = TOKEN_COLOR_CODES
    colorized = {}
    colorized.setdefault('<', codes['<'])

    for key, value in tokens.items():
        if key not in codes:
            key = ''
        if value:
            code = codes[key]

            if key == 'data' and altdata:
                altcode = codes['dataalt']
                parts = []
                for i in range(0, len(value), 2):
                    parts.append(altcode if i & 2 else code)
                    parts.append(value[i:(i + 2)])
                colorized[key] = ''.join(parts)
            else:
                colorized[key] = code + value

    colorized.setdefault('>', codes['>'])
    return colorized
