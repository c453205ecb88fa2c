"""
slotdump - Binary Image Inspector
=================================

Prints the data entries and code slots of an image produced by slotasm.

Usage Examples
--------------
    $ slotdump program.bin
    $ slotdump program.bin -o program.dump
    $ slotdump program.bin --symbols program.sym
"""

import sys
from pathlib import Path
from typing import Optional

import click

from slotasm import __version__
from slotasm.cli.errors import ExitCode, handle_cli_exception
from slotasm.disassembler import SlotDisassembler


def read_symbol_file(path: Path) -> dict[int, str]:
    """Read a `name 0xADDR` symbol file written by slotasm -s."""
    symbols = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        parts = line.split()
        if len(parts) != 2:
            raise click.BadParameter(f"malformed symbol line '{line}'", param_hint="--symbols")
        try:
            symbols.setdefault(int(parts[1], 16), parts[0])
        except ValueError:
            raise click.BadParameter(
                f"invalid address in symbol line '{line}'", param_hint="--symbols"
            ) from None
    return symbols


@click.command()
@click.argument(
    "image",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output file (default: stdout)",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Symbol file used to annotate label operands",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="slotdump")
def main(
    image: Path,
    output: Optional[Path],
    symbols: Optional[Path],
    verbose: bool,
) -> None:
    """
    Show the contents of the binary IMAGE.

    Data entries are listed with their load offset and bytes; every code
    slot is shown with its address, bytes and mnemonic ("???" for an
    unknown opcode).
    """
    try:
        data = image.read_bytes()
        if verbose:
            click.echo(f"Input file: {image} ({len(data)} bytes)", err=True)

        symbol_table = read_symbol_file(symbols) if symbols else None
        disasm = SlotDisassembler(symbol_table=symbol_table)
        result = f"; Image {image.name}: {len(data)} bytes\n" + disasm.dump_image(data)
    except Exception as e:
        handle_cli_exception(e, verbose=verbose)

    if output:
        try:
            output.write_text(result, encoding="utf-8")
        except OSError as e:
            click.echo(f"Error writing {output}: {e}", err=True)
            sys.exit(ExitCode.BUILD_ERROR)
        if verbose:
            click.echo(f"Output written to: {output}", err=True)
    else:
        click.echo(result, nl=False)


if __name__ == "__main__":
    main()
