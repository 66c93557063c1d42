"""
CHIP-8 VM - Step Driver
=======================

This module provides the `Emulator` class that ties the machine state,
decoder, executor, keyboard and timers together behind a small API.

One step:
    1. fetch the big-endian word at PC
    2. advance PC by 2
    3. decode (unknown opcodes become NoOp and are logged)
    4. execute against the machine state and keyboard
    5. decrement both timers
    6. export the display into the caller's frame, if one was given

Fatal errors during fetch or execute (stack underflow, memory bounds)
move the driver to the HALTED state. Further steps do nothing and return
the same halt event until reset() is called.

Example usage:
    >>> from chip8_vm.emulator import Emulator
    >>> emu = Emulator()
    >>> emu.load_rom_file("maze.ch8")
    >>> event = emu.run(max_steps=10_000)
    >>> print(emu.display_text)

The driver imposes no pacing. Hosts decide how often to call step().
"""

import logging
import os
import random
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, MutableSequence, Optional, Union

from ..errors import MachineError
from .cpu import Executor, MachineState
from .display import Display
from .events import HaltReason, RunState, StepEvent, StepReason
from .instruction import NoOp, WaitKey, decode
from .keyboard import Keyboard
from .memory import PROGRAM_START

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmulatorConfig:
    """
    Configuration for emulator initialization.

    Attributes:
        rom_path: Optional ROM file loaded by the constructor
        seed: Seed for the CXNN random source. None gives a fresh,
              unseeded source; any integer makes runs reproducible.
        log_unknown_opcodes: Log a warning for each unrecognized opcode

    Example:
        >>> config = EmulatorConfig(rom_path=Path("pong.ch8"), seed=1234)
    """
    rom_path: Optional[Path] = None
    seed: Optional[int] = None
    log_unknown_opcodes: bool = True

    @classmethod
    def from_env(cls) -> "EmulatorConfig":
        """
        Create EmulatorConfig from environment variables.

        Environment variables (all optional):
            CHIP8_ROM: ROM file to load
            CHIP8_SEED: Random seed (integer)
            CHIP8_LOG_UNKNOWN: "0", "false" or "no" disables unknown-opcode logging

        Raises:
            ValueError: If CHIP8_SEED is not an integer
        """
        rom_path = None
        if rom := os.environ.get("CHIP8_ROM"):
            rom_path = Path(rom)

        seed = None
        if seed_text := os.environ.get("CHIP8_SEED"):
            try:
                seed = int(seed_text, 0)
            except ValueError:
                raise ValueError(f"CHIP8_SEED must be an integer, got {seed_text!r}") from None

        log_unknown = os.environ.get("CHIP8_LOG_UNKNOWN", "1").strip().lower()

        return cls(
            rom_path=rom_path,
            seed=seed,
            log_unknown_opcodes=log_unknown not in ("0", "false", "no"),
        )


class Emulator:
    """
    CHIP-8 machine with a fetch-decode-execute step driver.

    Attributes:
        config: The EmulatorConfig used to initialize this instance
        state: Current MachineState (replaced by reset())
        executor: The instruction executor
        keyboard: Keypad state, owned by the host

    Example:
        >>> emu = Emulator(EmulatorConfig(seed=0))
        >>> emu.load_rom(bytes([0x60, 0x2A, 0x12, 0x02]))  # V0 = $2A; loop
        >>> event = emu.step()
        >>> emu.registers["v0"]
        42
    """

    def __init__(
        self,
        config: Optional[EmulatorConfig] = None,
        keyboard: Optional[Keyboard] = None,
    ):
        """
        Initialize the emulator.

        Args:
            config: EmulatorConfig. If None, defaults are used.
            keyboard: Keypad to read from. If None, a new Keyboard is created.

        Raises:
            FileNotFoundError: If config.rom_path does not exist
            RomSizeError: If config.rom_path is too large
        """
        self.config = config or EmulatorConfig()
        self.keyboard = keyboard or Keyboard()
        self.executor = Executor(random.Random(self.config.seed))
        self.state = MachineState()

        self._rom: Optional[bytes] = None
        self._status = RunState.READY
        self._halt_event: Optional[StepEvent] = None
        self._total_steps = 0

        if self.config.rom_path:
            self.load_rom_file(self.config.rom_path)

    # =========================================================================
    # Program Loading
    # =========================================================================

    def load_rom(self, data: bytes) -> None:
        """
        Copy a program image into memory at $200.

        The image is remembered and reloaded by reset().

        Raises:
            RomSizeError: If the image does not fit in memory
        """
        data = bytes(data)
        self.state.memory.load(PROGRAM_START, data)
        self._rom = data
        logger.info(f"Loaded {len(data)}-byte ROM at ${PROGRAM_START:04X}")

    def load_rom_file(self, path: Union[str, Path]) -> None:
        """
        Load a ROM file from disk.

        Raises:
            FileNotFoundError: If the file does not exist
            RomSizeError: If the file is too large
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"ROM file not found: {path}")
        self.load_rom(path.read_bytes())

    def load_bytes(self, data: bytes, address: int) -> None:
        """
        Write raw bytes into memory without touching the stored ROM.

        Useful for injecting sprites or test data.

        Raises:
            MemoryBoundsError: If the data runs past $FFF
        """
        self.state.memory.write_bytes(address, data)

    # =========================================================================
    # Execution Control
    # =========================================================================

    def reset(self) -> None:
        """
        Reset to power-on state.

        Memory, registers, stack, display and timers are recreated, the
        last loaded ROM is copied back in and the driver returns to READY.
        The keyboard is left alone since the host owns it.
        """
        self.state = MachineState()
        if self._rom is not None:
            self.state.memory.load(PROGRAM_START, self._rom)
        self._status = RunState.READY
        self._halt_event = None
        self._total_steps = 0
        logger.debug("Machine reset")

    def step(self, frame: Optional[MutableSequence[int]] = None) -> StepEvent:
        """
        Execute one fetch-decode-execute-timer cycle.

        Args:
            frame: Optional RGBA buffer (64 * 32 * 4 bytes) that receives
                   the display after the step

        Returns:
            StepEvent with reason STEP, WAITING_FOR_KEY or HALTED
        """
        if self._status is RunState.HALTED:
            logger.debug("step() called on halted machine")
            return self._halt_event

        state = self.state
        pc = state.pc
        opcode: Optional[int] = None

        try:
            opcode = state.memory.read_word(pc)
            state.pc = (pc + 2) & 0xFFFF

            instruction = decode(opcode)
            if isinstance(instruction, NoOp) and self.config.log_unknown_opcodes:
                logger.warning(f"Unknown opcode ${opcode:04X} at ${pc:04X}")

            self.executor.execute(state, instruction, self.keyboard)
        except MachineError as e:
            event = self._halt(e.at(pc, opcode))
            if frame is not None:
                state.display.export_into(frame)
            return event

        state.timers.tick()
        self._total_steps += 1

        if frame is not None:
            state.display.export_into(frame)

        if isinstance(instruction, WaitKey) and state.pc == pc:
            return StepEvent(
                StepReason.WAITING_FOR_KEY,
                address=pc,
                opcode=opcode,
                instruction=instruction,
            )
        return StepEvent(
            StepReason.STEP,
            address=pc,
            opcode=opcode,
            instruction=instruction,
        )

    def run(self, max_steps: int = 1_000_000) -> StepEvent:
        """
        Step until the machine halts or max_steps steps have executed.

        Returns:
            The halt event, or a MAX_STEPS event
        """
        for _ in range(max_steps):
            event = self.step()
            if event.halted:
                return event

        return StepEvent(
            StepReason.MAX_STEPS,
            address=self.state.pc,
            message=f"Reached max steps ({max_steps})",
        )

    def _halt(self, error: MachineError) -> StepEvent:
        self._status = RunState.HALTED
        self._halt_event = StepEvent(
            StepReason.HALTED,
            address=error.pc,
            opcode=error.opcode,
            halt_reason=HaltReason.from_error(error),
            error=error,
        )
        logger.error(f"Machine halted: {error}")
        return self._halt_event

    # =========================================================================
    # Keyboard Input
    # =========================================================================

    def press_key(self, key: Union[int, str]) -> None:
        """Press a key (keypad index 0-15 or host key name)."""
        self.keyboard.key_down(key)

    def release_key(self, key: Union[int, str]) -> None:
        """Release a key (keypad index 0-15 or host key name)."""
        self.keyboard.key_up(key)

    # =========================================================================
    # Display Output
    # =========================================================================

    @property
    def display(self) -> Display:
        return self.state.display

    @property
    def display_text(self) -> str:
        """Display as text, '#' for lit pixels and '.' for dark ones."""
        return self.state.display.get_text()

    @property
    def display_pixels(self) -> bytes:
        """RGBA pixel buffer (4 bytes per pixel)."""
        return self.state.display.get_pixel_buffer()

    def render_display(self, scale: int = 8) -> bytes:
        """Render display to PNG bytes."""
        return self.state.display.render_image(scale=scale)

    # =========================================================================
    # Memory Access
    # =========================================================================

    def read_byte(self, address: int) -> int:
        return self.state.memory.read(address)

    def read_bytes(self, address: int, count: int) -> bytes:
        return self.state.memory.read_bytes(address, count)

    # =========================================================================
    # State Inspection
    # =========================================================================

    @property
    def registers(self) -> Dict[str, int]:
        """
        Current register values.

        Returns:
            Dictionary with keys v0-vf, pc, i, dt, st
        """
        return self.state.register_dict()

    @property
    def pc(self) -> int:
        return self.state.pc

    @property
    def status(self) -> RunState:
        return self._status

    @property
    def is_halted(self) -> bool:
        return self._status is RunState.HALTED

    @property
    def halt_event(self) -> Optional[StepEvent]:
        """The event that halted the machine, or None while READY."""
        return self._halt_event

    @property
    def total_steps(self) -> int:
        """Steps executed since the last reset (halting steps excluded)."""
        return self._total_steps

    def __repr__(self) -> str:
        return (
            f"Emulator(status={self._status.name}, "
            f"pc=${self.state.pc:04X}, "
            f"steps={self._total_steps})"
        )
