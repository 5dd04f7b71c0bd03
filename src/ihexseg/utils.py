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

r"""Generic utility functions."""

import binascii
import re
from typing import Any
from typing import Iterator
from typing import Mapping
from typing import Optional
from typing import Tuple
from typing import Union

from .base import AnyBytes

SUFFIX_SCALE: Mapping[str, int] = {
    'k': 2**10,
    'm': 2**20,
    'g': 2**30,

    'kib': 2**10,
    'mib': 2**20,
    'gib': 2**30,

    'kb': 10**3,
    'mb': 10**6,
    'gb': 10**9,
}
r"""Integer suffix to scale factor."""

INT_REGEX = re.compile(r'^\s*(?P<sign>[+-]?)\s*'
                       r'(?P<prefix>(0x|0b|0o|0)?)'
                       r'(?P<value>[a-f0-9]+)'
                       r'(?P<suffix>h?)'
                       r'\s*(?P<scale>(k|m|g|kib|mib|gib|kb|mb|gb)?)\s*$')


def chop(
    vector: AnyBytes,
    window: int,
    start: int = 0,
) -> Iterator[Tuple[int, AnyBytes]]:
    r"""Chops a vector into addressed windows.

    Iterates through the vector grouping its items into windows of up to
    `window` items, each paired with its absolute address.

    Args:
        vector (items):
            Vector to chop.

        window (int):
            Window length.

        start (int):
            Address of the first item of `vector`.

    Yields:
        (int, items): Window address and `vector` slice.

    Examples:
        >>> list(chop(b'ABCDEFG', 2, 10))
        [(10, b'AB'), (12, b'CD'), (14, b'EF'), (16, b'G')]
    """

    window = int(window)
    if window <= 0:
        raise ValueError('non-positive window')

    for offset in range(0, len(vector), window):
        yield start + offset, vector[offset:(offset + window)]


def hexlify(
    data: AnyBytes,
    upper: bool = True,
) -> str:
    r"""Converts raw bytes into a hexadecimal string.

    Args:
        data (bytes):
            Source byte string.

        upper (bool):
            Uppercase hexadecimal string.

    Returns:
        str: Hexadecimal string, two digits per byte.

    Examples:
        >>> hexlify(b'\xAA\xBB\xCC')
        'AABBCC'
        >>> hexlify(b'\xAA\xBB\xCC', upper=False)
        'aabbcc'
    """

    hexstr = binascii.hexlify(data).decode('ascii')
    if upper:
        hexstr = hexstr.upper()
    return hexstr


def unhexlify(
    hexstr: Union[str, AnyBytes],
) -> bytes:
    r"""Converts a hexadecimal string into raw bytes.

    Digits are case-insensitive.

    Args:
        hexstr (str):
            Source hexadecimal string, with an even number of digits.

    Returns:
        bytes: Raw byte string.

    Raises:
        ValueError: Odd length, or non-hexadecimal characters.

    Examples:
        >>> unhexlify('AABBCC')
        b'\xaa\xbb\xcc'
        >>> unhexlify('aaBBcc')
        b'\xaa\xbb\xcc'
    """

    return binascii.unhexlify(hexstr)


def parse_int(
    value: Union[str, Any],
) -> Optional[int]:
    r"""Parses an integer.

    Args:
        value:
            A generic object to convert to integer.
            In case `value` is a :obj:`str` (case-insensitive), it can be
            either prefixed with ``0x`` or postfixed with ``h`` to convert
            from a hexadecimal representation, or prefixed with ``0b`` from
            binary; a prefix of only ``0`` converts from octal.
            A further suffix applies a scale factor as per
            :data:`SUFFIX_SCALE`.
            A ``None`` value evaluates as ``None``.
            Any other object class will call the standard :func:`int`.

    Returns:
        int: None if `value` is ``None``, its integer conversion otherwise.

    Examples:
        >>> parse_int('-0xABk')
        -175104

        >>> parse_int('10h')
        16

        >>> parse_int(None) is None
        True

        >>> parse_int(135.7)
        135
    """

    if value is None:
        return None

    elif isinstance(value, str):
        value = value.lower()
        m = INT_REGEX.match(value)
        if not m:
            raise ValueError(f'invalid syntax: {value!r}')
        g = m.groupdict()
        sign = g['sign']
        prefix = g['prefix']
        digits = g['value']
        suffix = g['suffix']
        scale = g['scale']
        if prefix in ('0b', '0o') and suffix == 'h':
            raise ValueError(f'invalid syntax: {value!r}')

        if prefix == '0x' or suffix == 'h':
            i = int(digits, 16)
        elif prefix == '0b':
            i = int(digits, 2)
        elif prefix == '0' or prefix == '0o':
            i = int(digits, 8)
        else:
            i = int(digits, 10)

        i *= SUFFIX_SCALE.get(scale or '', 1)

        if sign == '-':
            i = -i

        return i

    else:
        return int(value)
