"""
chip8_vm - CHIP-8 Virtual Machine
=================================

This package provides an emulator for the CHIP-8 virtual machine, a
16-bit register-based instruction set originally used on 1970s hobby
computers and still a popular first emulation target.

Main Components
---------------
- **emulator**: the machine itself
    Decoder, executor, memory, display, keyboard, timers and the step
    driver that ties them together

- **cli**: command-line tools
    `chip8run` runs a ROM headlessly and dumps the display

Quick Start
-----------
Run a ROM:
    >>> from chip8_vm import Emulator
    >>> emu = Emulator()
    >>> emu.load_rom_file("maze.ch8")
    >>> event = emu.run(max_steps=10_000)
    >>> print(emu.display_text)

Or from the command line:
    $ chip8run maze.ch8 --steps 10000 --text
    $ chip8run pong.ch8 --key W --screenshot pong.png

Reference Documentation
-----------------------
- Cowgod's CHIP-8 Technical Reference: http://devernay.free.fr/hacks/chip8/C8TECH10.HTM

Version History
---------------
1.0.0 - Initial release
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from chip8_vm.errors import (
    Chip8Error,
    RomError,
    RomSizeError,
    MachineError,
    StackUnderflowError,
    MemoryBoundsError,
)

from chip8_vm.emulator import (
    Emulator,
    EmulatorConfig,
    StepEvent,
    StepReason,
    HaltReason,
    RunState,
    Keyboard,
    Display,
    decode,
)

__all__ = [
    # Version info
    "__version__",
    # Exception hierarchy
    "Chip8Error",
    "RomError",
    "RomSizeError",
    "MachineError",
    "StackUnderflowError",
    "MemoryBoundsError",
    # Emulator
    "Emulator",
    "EmulatorConfig",
    "StepEvent",
    "StepReason",
    "HaltReason",
    "RunState",
    "Keyboard",
    "Display",
    "decode",
]
