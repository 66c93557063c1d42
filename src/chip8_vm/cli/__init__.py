"""
chip8_vm Command-Line Interface
===============================

This package provides command-line tools for the CHIP-8 VM:

- **chip8run**: headless ROM runner

Each tool is implemented as a Click-based CLI application with
comprehensive help and error reporting.
"""

__all__ = ["chip8run"]
