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

"""
Module that contains the command line app.

Why does this file exist, and why not put this in __main__?

  You might be tempted to import things from __main__ later, but that will cause
  problems: the code will get executed twice:

  - When you run `python -m ihexseg` python will execute
    ``__main__.py`` as a script. That means there won't be any
    ``ihexseg.__main__`` in ``sys.modules``.
  - When you import __main__ it will get executed again (as a module) because
    there's no ``ihexseg.__main__`` in ``sys.modules``.

  Also see (1) from https://click.palletsprojects.com/en/stable/setuptools/#setuptools-integration
"""

import logging
from typing import Optional

import click

from .__init__ import __version__
from .base import DEFAULT_START_CODE
from .base import IhexError
from .base import IhexFormat
from .base import IhexValueError
from .file import IhexFile
from .records import IhexRecord
from .utils import parse_int


class BasedIntParamType(click.ParamType):
    name = 'integer'

    def convert(self, value, param, ctx):
        try:
            return parse_int(value)
        except ValueError:
            self.fail(f'invalid integer: {value!r}', param, ctx)


BASED_INT = BasedIntParamType()

FILE_PATH_IN = click.Path(dir_okay=False, allow_dash=True, readable=True, exists=True)
FILE_PATH_OUT = click.Path(dir_okay=False, allow_dash=True, writable=True)

FORMAT_CHOICE = click.Choice([format.value for format in IhexFormat])


# ----------------------------------------------------------------------------

def read_text(path: str) -> str:

    with click.open_file(path, 'rt') as stream:
        return stream.read()


def load_file(
    path: str,
    start_code: Optional[str] = None,
    allow_duplicate_addresses: bool = False,
) -> IhexFile:

    data = read_text(path)
    try:
        return IhexFile.from_string(data, start_code=start_code,
                                    allow_duplicate_addresses=allow_duplicate_addresses)
    except IhexError as exc:
        raise click.ClickException(f'{path}: {exc}') from exc


def print_version(ctx, _, value):

    if not value or ctx.resilient_parsing:
        return

    click.echo(str(__version__))
    ctx.exit()


# ============================================================================

@click.group()
@click.option('--version', is_flag=True, is_eager=True, expose_value=False,
              callback=print_version, help="""
    Prints the package version number.
""")
@click.option('--verbose', is_flag=True, help="""
    Logs debug messages onto the standard error.
""")
def main(verbose: bool) -> None:
    """
    A set of command line utilities for Intel HEX files.

    Being built with `Click <https://click.palletsprojects.com/en/stable/>`_, all the
    commands follow POSIX-like syntax rules, as well as reserving the virtual
    file path ``-`` for command chaining via standard output/input buffering.
    """

    if verbose:
        logging.basicConfig(level=logging.DEBUG)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-f', '--format', 'output_format', type=FORMAT_CHOICE, help="""
    Output presentation format.
    By default it is the smallest format able to hold the data.
""")
@click.option('-w', '--width', type=BASED_INT, help="""
    Sets the number of data bytes per data record, within 1 and 255.
""")
@click.option('-s', '--start-code', default=DEFAULT_START_CODE, show_default=True, help="""
    Record mark, for both the input and the output files.
""")
@click.option('--allow-duplicates', is_flag=True, help="""
    Accepts records writing the same addresses; the last one wins.
""")
@click.argument('infile', type=FILE_PATH_IN)
@click.argument('outfile', type=FILE_PATH_OUT)
def convert(
    output_format: Optional[str],
    width: Optional[int],
    start_code: str,
    allow_duplicates: bool,
    infile: str,
    outfile: str,
) -> None:
    r"""Reformats an Intel HEX file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.

    ``OUTFILE`` is the path of the output file.
    Set to ``-`` to write to standard output.
    """

    file = load_file(infile, start_code, allow_duplicates)
    try:
        if width is not None:
            file.line_length = width
        format = IhexFormat(output_format) if output_format else file.format
        text = file.to_file_contents(format=format,
                                     allow_duplicate_addresses=allow_duplicates)
    except IhexError as exc:
        raise click.ClickException(str(exc)) from exc

    with click.open_file(outfile, 'wt') as stream:
        stream.write(text)


# ----------------------------------------------------------------------------

@main.command()
@click.option('-s', '--start-code', default=DEFAULT_START_CODE, show_default=True, help="""
    Record mark.
""")
@click.argument('infile', type=FILE_PATH_IN)
def info(
    start_code: str,
    infile: str,
) -> None:
    r"""Prints information about an Intel HEX file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    file = load_file(infile, start_code)

    click.echo(f'format: {file.format.value}')
    click.echo(f'max_address: 0x{file.max_address:08X}')

    if file.start_linear_address is not None:
        click.echo(f'start_linear_address: 0x{file.start_linear_address:08X}')

    if file.start_segment_address is not None:
        ssa = file.start_segment_address
        click.echo(f'start_segment_address: 0x{ssa.code_segment:04X}:0x{ssa.instruction_pointer:04X}')

    click.echo('segments:')
    for segment in file.segments:
        click.echo(f'- [0x{segment.address:08X}, 0x{segment.end_address:08X})')


# ----------------------------------------------------------------------------

@main.command(name='print')
@click.option('-s', '--start-code', default=DEFAULT_START_CODE, show_default=True, help="""
    Record mark.
""")
@click.option('--color', is_flag=True, help="""
    Colorizes the record fields with ANSI escape codes.
""")
@click.argument('infile', type=FILE_PATH_IN)
def print_(
    start_code: str,
    color: bool,
    infile: str,
) -> None:
    r"""Prints the records of an Intel HEX file.

    Lines without the record mark are skipped.
    Printing stops after the *End Of File* record.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    stream = click.get_text_stream('stdout')

    for line_number, line in enumerate(read_text(infile).splitlines(), 1):
        if start_code not in line:
            continue
        try:
            record = IhexRecord.parse(line, start_code=start_code)
        except IhexValueError as exc:
            raise click.ClickException(f'{infile}: parsing error on line {line_number}: {exc}') from exc

        record.print(stream=stream, color=color, start_code=start_code)
        if record.tag.is_eof():
            break


# ----------------------------------------------------------------------------

@main.command()
@click.option('-s', '--start-code', default=DEFAULT_START_CODE, show_default=True, help="""
    Record mark.
""")
@click.option('--allow-duplicates', is_flag=True, help="""
    Accepts records writing the same addresses.
""")
@click.argument('infile', type=FILE_PATH_IN)
def validate(
    start_code: str,
    allow_duplicates: bool,
    infile: str,
) -> None:
    r"""Validates an Intel HEX file.

    ``INFILE`` is the path of the input file.
    Set to ``-`` to read from standard input.
    """

    load_file(infile, start_code, allow_duplicates)
