"""
Memory Subsystem for the CHIP-8 VM
==================================

Memory Map:
    $000-$04F  Built-in font glyphs (16 glyphs x 5 bytes)
    $050-$1FF  Unused (historically the interpreter itself)
    $200-$FFF  Program image and working memory

Memory is a fixed 4096-byte array. Unlike real 8-bit hardware there is no
address wrapping: any access outside $000-$FFF raises MemoryBoundsError so
that a runaway program halts instead of silently corrupting state.
"""

from typing import Iterable

from ..errors import MemoryBoundsError, RomSizeError


MEMORY_SIZE = 0x1000
PROGRAM_START = 0x200
FONT_ADDRESS = 0x000
GLYPH_SIZE = 5

# =============================================================================
# FONT GLYPHS
# =============================================================================
# 4x5 hexadecimal digits 0-F. One byte per row, pixels in the high nibble.

FONT = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])


class Memory:
    """
    Flat 4 KiB memory with the font preloaded.

    Example:
        >>> mem = Memory()
        >>> mem.load(PROGRAM_START, bytes([0x00, 0xE0]))
        >>> hex(mem.read_word(PROGRAM_START))
        '0xe0'
    """

    def __init__(self):
        self._data = bytearray(MEMORY_SIZE)
        self._data[FONT_ADDRESS:FONT_ADDRESS + len(FONT)] = FONT

    def __len__(self) -> int:
        return MEMORY_SIZE

    def _check(self, address: int) -> None:
        if not 0 <= address < MEMORY_SIZE:
            raise MemoryBoundsError(address)

    def read(self, address: int) -> int:
        """
        Read byte from memory.

        Raises:
            MemoryBoundsError: If address is outside $000-$FFF
        """
        self._check(address)
        return self._data[address]

    def write(self, address: int, value: int) -> None:
        """
        Write byte to memory (value masked to 8 bits).

        Raises:
            MemoryBoundsError: If address is outside $000-$FFF
        """
        self._check(address)
        self._data[address] = value & 0xFF

    def read_word(self, address: int) -> int:
        """Read 16-bit word (big-endian)."""
        hi = self.read(address)
        lo = self.read(address + 1)
        return (hi << 8) | lo

    def read_bytes(self, address: int, count: int) -> bytes:
        """Read `count` bytes; the whole range must be in bounds."""
        if count > 0:
            self._check(address)
            self._check(address + count - 1)
        return bytes(self._data[address:address + count])

    def write_bytes(self, address: int, data: Iterable[int]) -> None:
        """Write a run of bytes; the whole range is checked before writing."""
        data = bytes(data)
        if data:
            self._check(address)
            self._check(address + len(data) - 1)
        self._data[address:address + len(data)] = data

    def load(self, address: int, data: bytes) -> None:
        """
        Copy a program image verbatim into memory.

        Raises:
            RomSizeError: If the image does not fit between address and $FFF
        """
        capacity = MEMORY_SIZE - address
        if len(data) > capacity:
            raise RomSizeError(len(data), capacity)
        self._data[address:address + len(data)] = data

    def dump(self) -> bytes:
        """Copy of the whole memory image."""
        return bytes(self._data)
