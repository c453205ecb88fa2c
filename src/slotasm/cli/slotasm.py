"""
slotasm - Slot Assembler Command-Line Interface
===============================================

Usage Examples
--------------
Basic assembly:
    $ slotasm program.asm program.bin

Generate all output files:
    $ slotasm program.asm program.bin -l program.lst -s program.sym

With include paths:
    $ slotasm -I ./lib -I ./common program.asm program.bin

Verbose mode (logs every encoded slot):
    $ slotasm -v program.asm program.bin
"""

import logging
from pathlib import Path
from typing import Callable, Optional

import click

from slotasm import __version__
from slotasm.assembler import Assembler
from slotasm.assembler.opcodes import SLOT_SIZE
from slotasm.cli.errors import handle_cli_exception
from slotasm.config import AssemblerConfig
from slotasm.errors import OutputWriteError


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )


def write_outputs(
    targets: list[tuple[str, Path, Callable[[Path], None]]],
    verbose: bool,
) -> None:
    """
    Write each (kind, path, writer) target in order.

    If a write fails, the files already written by this call are removed
    before the error propagates.
    """
    written: list[Path] = []
    try:
        for kind, path, writer in targets:
            writer(path)
            written.append(path)
            if verbose:
                click.echo(f"Wrote {kind} to {path}")
    except OutputWriteError:
        for path in written:
            path.unlink(missing_ok=True)
        raise


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "source",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.argument(
    "output",
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate listing file",
)
@click.option(
    "-s", "--symbols",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Generate symbol file",
)
@click.option(
    "-I", "--include",
    multiple=True,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help="Add include search path (can be repeated)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="slotasm")
def main(
    source: Path,
    output: Path,
    listing: Optional[Path],
    symbols: Optional[Path],
    include: tuple[Path, ...],
    verbose: bool,
) -> None:
    """
    Assemble SOURCE into the binary image OUTPUT.

    The image holds the data section (preloaded bytes) followed by one
    4-byte slot per instruction. No file is written if assembly fails.

    \b
    Examples:
        slotasm prog.asm prog.bin                # Image only
        slotasm prog.asm prog.bin -l prog.lst    # With listing
        slotasm -I lib/ prog.asm prog.bin        # Add include path
    """
    setup_logging(verbose)

    config = AssemblerConfig.from_env()
    config.listing = listing is not None
    for inc_path in include:
        config.add_include_path(inc_path)

    asm = Assembler(config=config, verbose=verbose)

    try:
        if verbose:
            click.echo(f"Assembling {source}...")

        asm.assemble_file(source)

        targets = [("binary", output, asm.write_binary)]
        if listing:
            targets.append(("listing", listing, asm.write_listing))
        if symbols:
            targets.append(("symbols", symbols, asm.write_symbols))
        write_outputs(targets, verbose)

        if verbose:
            slots = len(asm.get_code_segment()) // SLOT_SIZE
            click.echo(
                f"Assembly complete: {slots} instructions, "
                f"{len(asm.get_data_table())} data entries"
            )
            click.echo(f"Defined {len(asm.get_symbols())} labels")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="Assembly")


if __name__ == "__main__":
    main()
