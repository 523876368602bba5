"""
shcc - SHC Compiler Command-Line Interface
==========================================

This module implements the command-line driver for the SHC compiler.
Each input file is compiled independently; a failure in one file is
reported and the remaining files are still compiled.

Usage Examples
--------------
Basic compilation (writes prog.c):
    $ shcc prog.shc

Several files at once:
    $ shcc a.shc b.shc c.shc

With output file (single input only):
    $ shcc prog.shc -o out.c

Self-check the parser before generating:
    $ shcc --roundtrip prog.shc

Verbose mode:
    $ shcc -v prog.shc
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from shc import __version__
from shc.ast import ASTPrinter
from shc.cli.errors import ExitCode, handle_cli_exception
from shc.compiler import ShcCompiler, CompilerOptions
from shc.printer import SourcePrinter


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_files",
    nargs=-1,
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output C file (default: input.c; single input only)",
)
@click.option(
    "--roundtrip",
    is_flag=True,
    help="Pretty-print, re-parse and compare the AST before generating",
)
@click.option(
    "--pretty",
    is_flag=True,
    help="Print the program as formatted SHC and exit",
)
@click.option(
    "--ast",
    is_flag=True,
    help="Print AST and exit (for debugging)",
)
@click.option(
    "--globals", "emit_globals",
    is_flag=True,
    help="Emit top-level variable declarations into the C output",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="shcc")
def main(
    input_files: tuple[Path, ...],
    output: Optional[Path],
    roundtrip: bool,
    pretty: bool,
    ast: bool,
    emit_globals: bool,
    verbose: bool,
) -> None:
    """
    Compile SHC source files to C.

    INPUT_FILES are SHC source files; each one is written next to
    itself with a .c suffix.

    \b
    Examples:
        shcc prog.shc                # Outputs prog.c
        shcc prog.shc -o out.c       # Specify output file
        shcc --ast prog.shc          # Dump the AST
        shcc --pretty prog.shc       # Reformat as SHC
        shcc -v a.shc b.shc          # Verbose, several files
    """
    if output is not None and len(input_files) > 1:
        raise click.UsageError("-o/--output can only be used with a single input file")

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
    )

    options = CompilerOptions(
        emit_globals=emit_globals,
        verify_roundtrip=roundtrip,
    )
    compiler = ShcCompiler(options)

    exit_code = ExitCode.SUCCESS
    for input_file in input_files:
        try:
            _compile_one(compiler, input_file, output, pretty, ast, verbose)
        except Exception as e:
            exit_code = max(exit_code, handle_cli_exception(e, verbose))

    sys.exit(exit_code)


def _compile_one(
    compiler: ShcCompiler,
    input_file: Path,
    output: Optional[Path],
    pretty: bool,
    ast: bool,
    verbose: bool,
) -> None:
    if verbose:
        click.echo(f"Compiling {input_file}...")

    result = compiler.compile_file(input_file)

    if verbose:
        click.echo(f"Tokenized: {result.token_count} tokens")
        click.echo(f"Parsed: {len(result.functions)} functions, {len(result.globals)} globals")
        if compiler.options.verify_roundtrip:
            click.echo("Round-trip check passed")

    # Inspection modes print instead of writing C
    if ast or pretty:
        if ast:
            click.echo(ASTPrinter().print(result.functions))
        if pretty:
            text = result.pretty or SourcePrinter(compiler.options.indent).print_program(
                result.functions, result.globals
            )
            click.echo(text, nl=False)
        return

    written = compiler.write_output(result, output)

    if verbose:
        click.echo(f"Wrote {len(result.output)} bytes to {written}")

    click.echo(f"Compiled {input_file} -> {written}")


if __name__ == "__main__":
    main()
