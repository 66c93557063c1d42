"""
CHIP-8 Instruction Decoder
==========================

Maps a raw 16-bit opcode to one of a closed set of instruction variants.
Each variant is a frozen dataclass carrying only its own operands, so the
executor can dispatch with a single structural `match`.

Opcode fields (nibbles written most significant first):

    0x1NNN   address   lower 12 bits
    0x3XNN   x, value  register index, immediate byte
    0x8XY4   x, y      two register indices
    0xDXYN   height    lowest nibble

Decoding is total: every 16-bit value yields exactly one variant.
Opcodes that match no defined pattern become NoOp(opcode).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Instruction:
    """Base class for all decoded instructions."""


# =============================================================================
# Flow Control
# =============================================================================

@dataclass(frozen=True)
class Clear(Instruction):
    """00E0 - clear the display."""


@dataclass(frozen=True)
class Return(Instruction):
    """00EE - return from subroutine."""


@dataclass(frozen=True)
class Jump(Instruction):
    """1NNN - jump to address."""
    address: int


@dataclass(frozen=True)
class Call(Instruction):
    """2NNN - call subroutine at address."""
    address: int


@dataclass(frozen=True)
class JumpOffset(Instruction):
    """BNNN - jump to address + V0."""
    address: int


# =============================================================================
# Conditional Skips
# =============================================================================

@dataclass(frozen=True)
class SkipEqImm(Instruction):
    """3XNN - skip next if Vx == NN."""
    x: int
    value: int


@dataclass(frozen=True)
class SkipNeImm(Instruction):
    """4XNN - skip next if Vx != NN."""
    x: int
    value: int


@dataclass(frozen=True)
class SkipEqReg(Instruction):
    """5XY0 - skip next if Vx == Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class SkipNeReg(Instruction):
    """9XY0 - skip next if Vx != Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class SkipKeyDown(Instruction):
    """EX9E - skip next if key Vx is down."""
    x: int


@dataclass(frozen=True)
class SkipKeyUp(Instruction):
    """EXA1 - skip next if key Vx is not down."""
    x: int


# =============================================================================
# Register Loads and ALU
# =============================================================================

@dataclass(frozen=True)
class SetImm(Instruction):
    """6XNN - Vx = NN."""
    x: int
    value: int


@dataclass(frozen=True)
class AddImm(Instruction):
    """7XNN - Vx += NN (wrapping, VF untouched)."""
    x: int
    value: int


@dataclass(frozen=True)
class Assign(Instruction):
    """8XY0 - Vx = Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class Or(Instruction):
    """8XY1 - Vx |= Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class And(Instruction):
    """8XY2 - Vx &= Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class Xor(Instruction):
    """8XY3 - Vx ^= Vy."""
    x: int
    y: int


@dataclass(frozen=True)
class Add(Instruction):
    """8XY4 - Vx += Vy, VF = carry."""
    x: int
    y: int


@dataclass(frozen=True)
class Sub(Instruction):
    """8XY5 - Vx -= Vy, VF = not borrow."""
    x: int
    y: int


@dataclass(frozen=True)
class ShiftRight(Instruction):
    """8XY6 - VF = lsb(Vx), Vx >>= 1."""
    x: int


@dataclass(frozen=True)
class SubReverse(Instruction):
    """8XY7 - Vx = Vy - Vx, VF = not borrow."""
    x: int
    y: int


@dataclass(frozen=True)
class ShiftLeft(Instruction):
    """8XYE - VF = msb(Vx), Vx <<= 1."""
    x: int


@dataclass(frozen=True)
class Random(Instruction):
    """CXNN - Vx = random byte & NN."""
    x: int
    mask: int


# =============================================================================
# Address Register, Graphics, Timers, Memory
# =============================================================================

@dataclass(frozen=True)
class SetAddress(Instruction):
    """ANNN - I = NNN."""
    address: int


@dataclass(frozen=True)
class Draw(Instruction):
    """DXYN - draw N-row sprite from [I] at (Vx, Vy)."""
    x: int
    y: int
    height: int


@dataclass(frozen=True)
class GetDelay(Instruction):
    """FX07 - Vx = delay timer."""
    x: int


@dataclass(frozen=True)
class WaitKey(Instruction):
    """FX0A - wait for a key press, Vx = key."""
    x: int


@dataclass(frozen=True)
class SetDelay(Instruction):
    """FX15 - delay timer = Vx."""
    x: int


@dataclass(frozen=True)
class SetSound(Instruction):
    """FX18 - sound timer = Vx."""
    x: int


@dataclass(frozen=True)
class AddAddress(Instruction):
    """FX1E - I += Vx."""
    x: int


@dataclass(frozen=True)
class FontAddress(Instruction):
    """FX29 - I = address of font glyph for digit Vx."""
    x: int


@dataclass(frozen=True)
class StoreDecimal(Instruction):
    """FX33 - [I], [I+1], [I+2] = decimal digits of Vx."""
    x: int


@dataclass(frozen=True)
class DumpRegisters(Instruction):
    """FX55 - [I+i] = Vi for i in 0..=X."""
    x: int


@dataclass(frozen=True)
class LoadRegisters(Instruction):
    """FX65 - Vi = [I+i] for i in 0..=X."""
    x: int


@dataclass(frozen=True)
class NoOp(Instruction):
    """Unrecognized opcode. Executes as nothing."""
    opcode: int


# =============================================================================
# Decoder
# =============================================================================

# Low-byte selectors for the EX.. and FX.. families
_KEY_OPS = {
    0x9E: SkipKeyDown,
    0xA1: SkipKeyUp,
}

_MISC_OPS = {
    0x07: GetDelay,
    0x0A: WaitKey,
    0x15: SetDelay,
    0x18: SetSound,
    0x1E: AddAddress,
    0x29: FontAddress,
    0x33: StoreDecimal,
    0x55: DumpRegisters,
    0x65: LoadRegisters,
}

# Low-nibble selectors for the 8XY. ALU family
_ALU_OPS = {
    0x0: Assign,
    0x1: Or,
    0x2: And,
    0x3: Xor,
    0x4: Add,
    0x5: Sub,
    0x7: SubReverse,
}


def decode(opcode: int) -> Instruction:
    """
    Decode a 16-bit opcode into an instruction.

    Args:
        opcode: Raw instruction word (only the low 16 bits are used)

    Returns:
        The matching Instruction variant, or NoOp(opcode) if the opcode
        matches no defined pattern

    Example:
        >>> decode(0x8124)
        Add(x=1, y=2)
        >>> decode(0x5121)
        NoOp(opcode=20769)
    """
    opcode &= 0xFFFF
    family = opcode >> 12
    x = (opcode >> 8) & 0xF
    y = (opcode >> 4) & 0xF
    n = opcode & 0xF
    nn = opcode & 0xFF
    nnn = opcode & 0xFFF

    match family:
        case 0x0:
            if opcode == 0x00E0:
                return Clear()
            if opcode == 0x00EE:
                return Return()
        case 0x1:
            return Jump(nnn)
        case 0x2:
            return Call(nnn)
        case 0x3:
            return SkipEqImm(x, nn)
        case 0x4:
            return SkipNeImm(x, nn)
        case 0x5:
            if n == 0x0:
                return SkipEqReg(x, y)
        case 0x6:
            return SetImm(x, nn)
        case 0x7:
            return AddImm(x, nn)
        case 0x8:
            if n in _ALU_OPS:
                return _ALU_OPS[n](x, y)
            if n == 0x6:
                return ShiftRight(x)
            if n == 0xE:
                return ShiftLeft(x)
        case 0x9:
            if n == 0x0:
                return SkipNeReg(x, y)
        case 0xA:
            return SetAddress(nnn)
        case 0xB:
            return JumpOffset(nnn)
        case 0xC:
            return Random(x, nn)
        case 0xD:
            return Draw(x, y, n)
        case 0xE:
            if nn in _KEY_OPS:
                return _KEY_OPS[nn](x)
        case 0xF:
            if nn in _MISC_OPS:
                return _MISC_OPS[nn](x)

    return NoOp(opcode)
