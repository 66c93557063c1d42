"""
CHIP-8 Virtual Machine
======================

An emulator for the CHIP-8 instruction set: 35 16-bit opcodes, 4 KiB of
memory, sixteen 8-bit registers, a 64x32 monochrome display, a 16-key
keypad and two countdown timers.

Quick Start
-----------

Basic usage::

    >>> from chip8_vm.emulator import Emulator, EmulatorConfig
    >>> emu = Emulator(EmulatorConfig(seed=42))
    >>> emu.load_rom_file("maze.ch8")
    >>> event = emu.run(max_steps=5_000)
    >>> print(emu.display_text)

Driving it from a host loop::

    >>> frame = bytearray(64 * 32 * 4)
    >>> while not emu.is_halted:
    ...     emu.keyboard.key_down("W")    # host input between steps
    ...     event = emu.step(frame)       # frame now holds RGBA pixels
    ...     present(frame)

Module Structure
----------------

- `emulator.py`: Emulator step driver and EmulatorConfig
- `instruction.py`: opcode decoder and instruction variants
- `cpu.py`: MachineState and Executor
- `memory.py`: 4 KiB memory with font table
- `display.py`: 64x32 XOR framebuffer
- `keyboard.py`: keypad state and host key map
- `timers.py`: delay and sound timers
- `events.py`: step outcomes and halt reasons
"""

# Main entry point
from .emulator import Emulator, EmulatorConfig

# Step results
from .events import HaltReason, RunState, StepEvent, StepReason

# Machine state and execution
from .cpu import Executor, MachineState, FLAG, NUM_REGISTERS
from .instruction import Instruction, NoOp, decode

# Components
from .memory import Memory, FONT, MEMORY_SIZE, PROGRAM_START
from .display import Display, DISPLAY_WIDTH, DISPLAY_HEIGHT
from .keyboard import Keyboard, KeyboardProtocol, HOST_KEYMAP, resolve_key
from .timers import Timers

__all__ = [
    # Main API
    "Emulator",
    "EmulatorConfig",

    # Events
    "StepEvent",
    "StepReason",
    "HaltReason",
    "RunState",

    # Execution
    "Executor",
    "MachineState",
    "FLAG",
    "NUM_REGISTERS",
    "Instruction",
    "NoOp",
    "decode",

    # Memory
    "Memory",
    "FONT",
    "MEMORY_SIZE",
    "PROGRAM_START",

    # Display
    "Display",
    "DISPLAY_WIDTH",
    "DISPLAY_HEIGHT",

    # Keyboard
    "Keyboard",
    "KeyboardProtocol",
    "HOST_KEYMAP",
    "resolve_key",

    # Timers
    "Timers",
]
