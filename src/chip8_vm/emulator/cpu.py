"""
CHIP-8 Machine State and Executor
=================================

MachineState is the single aggregate the executor mutates:
- 4 KiB memory (font at $000, program at $200)
- 16 8-bit registers V0-VF; VF doubles as the carry/borrow/collision flag
- 16-bit program counter (starts at $200) and address register I
- unbounded call stack of return addresses
- 64x32 display buffer
- delay and sound timers

Executor applies one decoded instruction to a MachineState. It never
fetches or advances the PC past the current instruction on its own; the
step driver has already moved PC to the next instruction before calling
execute(), so skips add 2 and the key wait subtracts 2.

Flag convention (VF is always written after the result, so an operation
targeting VF itself leaves the flag value there):
- Add:          VF = 1 if the sum overflowed 8 bits, else 0
- Sub/SubRev:   VF = 1 if no borrow was needed, else 0
- Shifts:       VF = the bit shifted out
- Draw:         VF = 1 if any pixel went from on to off, else 0
"""

import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..errors import StackUnderflowError
from .display import Display
from .instruction import (
    Add,
    AddAddress,
    AddImm,
    And,
    Assign,
    Call,
    Clear,
    Draw,
    DumpRegisters,
    FontAddress,
    GetDelay,
    Instruction,
    Jump,
    JumpOffset,
    LoadRegisters,
    NoOp,
    Or,
    Random,
    Return,
    SetAddress,
    SetDelay,
    SetImm,
    SetSound,
    ShiftLeft,
    ShiftRight,
    SkipEqImm,
    SkipEqReg,
    SkipKeyDown,
    SkipKeyUp,
    SkipNeImm,
    SkipNeReg,
    StoreDecimal,
    Sub,
    SubReverse,
    WaitKey,
    Xor,
)
from .keyboard import KeyboardProtocol
from .memory import FONT_ADDRESS, GLYPH_SIZE, MEMORY_SIZE, PROGRAM_START, Memory
from .timers import Timers

NUM_REGISTERS = 16
FLAG = 0xF


@dataclass
class MachineState:
    """
    Complete mutable state of one machine.

    Attributes:
        memory: Memory image (font preloaded)
        registers: V0-VF, each 0-255
        pc: Program counter
        i: Address register
        stack: Saved return addresses, last element is the top
        display: Framebuffer
        timers: Delay and sound timers
    """
    memory: Memory = field(default_factory=Memory)
    registers: bytearray = field(default_factory=lambda: bytearray(NUM_REGISTERS))
    pc: int = PROGRAM_START
    i: int = 0
    stack: List[int] = field(default_factory=list)
    display: Display = field(default_factory=Display)
    timers: Timers = field(default_factory=Timers)

    @property
    def vf(self) -> int:
        """Flag register."""
        return self.registers[FLAG]

    def register_dict(self) -> Dict[str, int]:
        """Registers as a name -> value mapping ('v0' .. 'vf', 'pc', 'i', 'dt', 'st')."""
        result = {f"v{index:x}": value for index, value in enumerate(self.registers)}
        result.update({
            "pc": self.pc,
            "i": self.i,
            "dt": self.timers.delay,
            "st": self.timers.sound,
        })
        return result


class Executor:
    """
    Applies decoded instructions to a MachineState.

    The executor holds no machine state of its own, only the random
    number source used by the Random instruction.

    Example:
        >>> state = MachineState()
        >>> Executor().execute(state, SetImm(0, 0x2A), Keyboard())
        >>> state.registers[0]
        42
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Args:
            rng: Random source for CXNN. Pass a seeded random.Random for
                 reproducible runs; defaults to an unseeded one.
        """
        self.rng = rng or random.Random()

    # ========================================
    # ALU Operations
    # ========================================

    @staticmethod
    def _add8(a: int, b: int) -> tuple[int, int]:
        """Add, return (result, carry)."""
        result = a + b
        return result & 0xFF, 1 if result > 0xFF else 0

    @staticmethod
    def _sub8(a: int, b: int) -> tuple[int, int]:
        """Subtract, return (result, not_borrow)."""
        return (a - b) & 0xFF, 0 if b > a else 1

    # ========================================
    # Instruction Execution
    # ========================================

    def execute(
        self,
        state: MachineState,
        instruction: Instruction,
        keyboard: KeyboardProtocol,
    ) -> None:
        """
        Execute one instruction.

        Args:
            state: Machine to mutate; PC already points past the instruction
            instruction: Decoded instruction
            keyboard: Key state, read only

        Raises:
            StackUnderflowError: Return with an empty call stack
            MemoryBoundsError: Memory access beyond $FFF
        """
        v = state.registers
        memory = state.memory

        match instruction:
            # ============================================
            # Flow Control
            # ============================================
            case Clear():
                state.display.clear()
            case Return():
                if not state.stack:
                    raise StackUnderflowError()
                state.pc = state.stack.pop()
            case Jump(address):
                state.pc = address
            case Call(address):
                state.stack.append(state.pc)
                state.pc = address
            case JumpOffset(address):
                state.pc = (address + v[0]) % MEMORY_SIZE

            # ============================================
            # Conditional Skips
            # ============================================
            case SkipEqImm(x, value):
                if v[x] == value:
                    self._skip(state)
            case SkipNeImm(x, value):
                if v[x] != value:
                    self._skip(state)
            case SkipEqReg(x, y):
                if v[x] == v[y]:
                    self._skip(state)
            case SkipNeReg(x, y):
                if v[x] != v[y]:
                    self._skip(state)
            case SkipKeyDown(x):
                if keyboard.is_key_down(v[x]):
                    self._skip(state)
            case SkipKeyUp(x):
                if not keyboard.is_key_down(v[x]):
                    self._skip(state)

            # ============================================
            # Register Loads and ALU
            # ============================================
            case SetImm(x, value):
                v[x] = value
            case AddImm(x, value):
                v[x] = (v[x] + value) & 0xFF
            case Assign(x, y):
                v[x] = v[y]
            case Or(x, y):
                v[x] |= v[y]
            case And(x, y):
                v[x] &= v[y]
            case Xor(x, y):
                v[x] ^= v[y]
            case Add(x, y):
                v[x], carry = self._add8(v[x], v[y])
                v[FLAG] = carry
            case Sub(x, y):
                v[x], not_borrow = self._sub8(v[x], v[y])
                v[FLAG] = not_borrow
            case SubReverse(x, y):
                v[x], not_borrow = self._sub8(v[y], v[x])
                v[FLAG] = not_borrow
            case ShiftRight(x):
                lsb = v[x] & 0x01
                v[x] >>= 1
                v[FLAG] = lsb
            case ShiftLeft(x):
                msb = (v[x] & 0x80) >> 7
                v[x] = (v[x] << 1) & 0xFF
                v[FLAG] = msb
            case Random(x, mask):
                v[x] = self.rng.getrandbits(8) & mask

            # ============================================
            # Address Register and Graphics
            # ============================================
            case SetAddress(address):
                state.i = address
            case AddAddress(x):
                state.i = (state.i + v[x]) & 0xFFFF
            case FontAddress(x):
                state.i = FONT_ADDRESS + v[x] * GLYPH_SIZE
            case Draw(x, y, height):
                rows = memory.read_bytes(state.i, height)
                collision = state.display.draw_sprite(v[x], v[y], rows)
                v[FLAG] = 1 if collision else 0

            # ============================================
            # Timers and Input
            # ============================================
            case GetDelay(x):
                v[x] = state.timers.delay
            case SetDelay(x):
                state.timers.delay = v[x]
            case SetSound(x):
                state.timers.sound = v[x]
            case WaitKey(x):
                key = keyboard.first_key_down()
                if key is None:
                    # Re-run this instruction next step
                    state.pc = (state.pc - 2) & 0xFFFF
                else:
                    v[x] = key

            # ============================================
            # Memory Transfers
            # ============================================
            case StoreDecimal(x):
                value = v[x]
                memory.write_bytes(state.i, (value // 100, value // 10 % 10, value % 10))
            case DumpRegisters(x):
                memory.write_bytes(state.i, v[:x + 1])
            case LoadRegisters(x):
                v[:x + 1] = memory.read_bytes(state.i, x + 1)

            case NoOp():
                pass

    @staticmethod
    def _skip(state: MachineState) -> None:
        state.pc = (state.pc + 2) & 0xFFFF
