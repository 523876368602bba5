"""
SHC Compiler Main Module
========================

This module provides the main compiler interface for SHC.
It orchestrates the complete compilation process:

    Source → Lex → Parse → (Round-trip check) → Generate → C

Usage
-----
Command line:
    $ shcc prog.shc -o prog.c

Programmatic:
    >>> from shc import compile_shc
    >>> c_source = compile_shc('fun main() : int { return 0; }')

Error Handling
--------------
The compiler is fail-fast: the first lexical, syntax, name or code
generation error aborts the current file and is raised as a single
ShcError subclass. Nothing is written for a failed file.
"""

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Union

from shc.ast import Function, Variable
from shc.codegen import CodeGenerator
from shc.errors import CodeGenError
from shc.lexer import Lexer, Token
from shc.parser import Parser
from shc.printer import check_roundtrip

logger = logging.getLogger(__name__)


@dataclass
class CompilerOptions:
    """
    Compiler configuration options.

    Attributes:
        emit_globals: Emit top-level variable declarations before the
                      function forward declarations
        verify_roundtrip: Pretty-print the AST, re-parse it and compare
                          before generating code
        indent: Indentation unit for generated C and printed SHC
        output_suffix: Suffix that replaces the source suffix on output
    """
    emit_globals: bool = False
    verify_roundtrip: bool = False
    indent: str = "    "
    output_suffix: str = ".c"


@dataclass
class CompilerResult:
    """
    Result of a compilation.

    Attributes:
        filename: Source filename
        success: True if compilation succeeded
        output: Generated C source
        functions: Parsed functions in source order
        globals: Top-level variable declarations in source order
        token_count: Number of tokens the parser consumed (EOF excluded)
        pretty: Pretty-printed SHC (only when the round-trip check ran)
    """
    filename: str = ""
    success: bool = False
    output: str = ""
    functions: list[Function] = field(default_factory=list)
    globals: list[Variable] = field(default_factory=list)
    token_count: int = 0
    pretty: str = ""


class ShcCompiler:
    """
    SHC to C compiler.

    Example:
        compiler = ShcCompiler()
        result = compiler.compile_file("prog.shc")
        compiler.write_output(result)

    Attributes:
        options: Compiler configuration options
    """

    def __init__(self, options: Optional[CompilerOptions] = None):
        self.options = options or CompilerOptions()

    def compile_source(self, source: str, filename: str = "<input>") -> CompilerResult:
        """
        Compile SHC source code to C.

        Args:
            source: SHC source code string
            filename: Source filename for error messages

        Returns:
            CompilerResult containing the C output

        Raises:
            ShcError: If compilation fails
        """
        return self._compile(Lexer(source, filename))

    def compile_file(self, filepath: Union[str, Path]) -> CompilerResult:
        """
        Compile an SHC source file to C.

        Raises:
            ShcError: If compilation fails; an unreadable file raises
                      SourceReadError
        """
        logger.debug(f"Reading {filepath}")
        return self._compile(Lexer.from_file(filepath))

    def output_path(self, result: CompilerResult) -> Path:
        """Default output path: the source path with the output suffix."""
        return Path(result.filename).with_suffix(self.options.output_suffix)

    def write_output(
        self,
        result: CompilerResult,
        output: Optional[Union[str, Path]] = None,
    ) -> Path:
        """
        Write generated C next to the source (or to ``output``).

        The text goes to a temporary file in the target directory which
        is then renamed over the destination, so a reader never sees a
        partially written file.

        Returns:
            The path written
        """
        path = Path(output) if output is not None else self.output_path(result)

        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(result.output)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        logger.debug(f"Wrote {len(result.output)} bytes to {path}")
        return path

    def _compile(self, lexer: Lexer) -> CompilerResult:
        filename = lexer.filename
        result = CompilerResult(filename=filename)
        source_lines = lexer.source.splitlines()

        parser = Parser(lexer, source_lines)
        result.functions = parser.parse_program()
        result.globals = parser.globals
        result.token_count = parser.token_count
        logger.debug(f"{filename}: {result.token_count} tokens")

        if self.options.verify_roundtrip:
            result.pretty = check_roundtrip(
                result.functions, filename, result.globals, self.options.indent
            )

        generator = CodeGenerator(self.options.indent)
        globals = result.globals if self.options.emit_globals else None
        try:
            result.output = generator.generate(result.functions, globals)
        except CodeGenError as e:
            if e.location is not None and 0 < e.location.line <= len(source_lines):
                e.with_source_line(source_lines[e.location.line - 1])
            raise

        result.success = True
        return result


# =============================================================================
# Convenience Functions
# =============================================================================

def lex(source: str, filename: str = "<input>") -> Iterator[Token]:
    """
    Tokenize SHC source.

    The stream ends with an EOF token, or with an ERROR token whose value
    is the error message.
    """
    return Lexer(source, filename).tokenize()


def parse(source: str, filename: str = "<input>") -> list[Function]:
    """
    Parse SHC source into functions.

    Raises:
        ShcError: On the first lexical, syntax or name error
    """
    return Parser(Lexer(source, filename)).parse_program()


def generate(
    functions: list[Function],
    globals: Optional[list[Variable]] = None,
    indent: str = "    ",
) -> str:
    """
    Generate C source text from parsed functions.

    Raises:
        CodeGenError: On an unsupported type or invalid indirection
    """
    return CodeGenerator(indent).generate(functions, globals)


def compile_shc(source: str, filename: str = "<input>") -> str:
    """
    Compile SHC source code to C.

    Example:
        >>> print(compile_shc('fun main() : int { return 0; }'))
        #include <stdio.h>
        ...
    """
    return ShcCompiler().compile_source(source, filename).output


def compile_file(
    filepath: Union[str, Path],
    output_path: Optional[Union[str, Path]] = None,
) -> str:
    """
    Compile an SHC source file to C, optionally writing the result.

    Raises:
        ShcError: If compilation fails
    """
    compiler = ShcCompiler()
    result = compiler.compile_file(filepath)

    if output_path:
        compiler.write_output(result, output_path)

    return result.output
