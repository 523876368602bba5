"""
SHC Command-Line Interface
==========================

- **shcc**: SHC to C compiler driver

The tool is a Click-based CLI application; exit codes are shared
through ``shc.cli.errors.ExitCode``.
"""

__all__ = ["shcc"]
