"""
CHIP-8 VM Error Hierarchy
=========================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from Chip8Error, allowing callers to catch every
VM-related error with a single except clause if desired.

Exception Hierarchy
-------------------
Chip8Error (base)
├── RomError (program image handling)
│   └── RomSizeError - ROM does not fit in memory above the load address
└── MachineError (fatal at execute time, halts the machine)
    ├── StackUnderflowError - subroutine return with an empty call stack
    └── MemoryBoundsError - fetch or access outside the 4 KiB memory

Design Philosophy
-----------------
Decode-time anomalies never raise: an unrecognized opcode decodes to a
no-op. MachineError subclasses are raised by the executor and caught by
the step driver, which turns them into a HALTED step event. They carry the
program counter and opcode of the failing instruction when known, so the
message reads like:

    $0204 [$00EE]: stack underflow: return with empty call stack
"""

from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class Chip8Error(Exception):
    """
    Base exception for all CHIP-8 VM errors.

        try:
            emu.load_rom_file("pong.ch8")
        except Chip8Error as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# ROM Exceptions
# =============================================================================

class RomError(Chip8Error):
    """Base exception for program image problems."""
    pass


class RomSizeError(RomError):
    """
    ROM image is too large to fit in memory.

    Programs are loaded at $200, so at most 4096 - 512 = 3584 bytes fit.

    Attributes:
        size: Size of the rejected image in bytes
        capacity: Number of bytes available above the load address
    """

    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(
            f"ROM is {size} bytes but only {capacity} bytes fit above the load address"
        )


# =============================================================================
# Machine (execute-time) Exceptions
# =============================================================================

class MachineError(Chip8Error):
    """
    Fatal execution error. The machine cannot continue after one of these.

    Attributes:
        message: The error description
        pc: Address of the instruction that failed (optional)
        opcode: Raw opcode of the instruction that failed (optional)
    """

    def __init__(
        self,
        message: str,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.message = message
        self.pc = pc
        self.opcode = opcode
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        if self.pc is None:
            return self.message
        if self.opcode is None:
            return f"${self.pc:04X}: {self.message}"
        return f"${self.pc:04X} [${self.opcode:04X}]: {self.message}"

    def at(self, pc: int, opcode: Optional[int]) -> "MachineError":
        """Attach instruction location (used by the step driver)."""
        self.pc = pc
        self.opcode = opcode
        self.args = (self._format_message(),)
        return self

    def __str__(self) -> str:
        return self._format_message()


class StackUnderflowError(MachineError):
    """Subroutine return executed with an empty call stack."""

    def __init__(self, pc: Optional[int] = None, opcode: Optional[int] = None):
        super().__init__("stack underflow: return with empty call stack", pc, opcode)


class MemoryBoundsError(MachineError):
    """
    Memory access outside the fixed memory array.

    Attributes:
        address: The offending address
    """

    def __init__(
        self,
        address: int,
        pc: Optional[int] = None,
        opcode: Optional[int] = None,
    ):
        self.address = address
        super().__init__(f"memory access out of bounds at ${address:04X}", pc, opcode)
