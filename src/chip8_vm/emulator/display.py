"""
Display Buffer for the CHIP-8 VM
================================

A 64x32 monochrome grid. Cells are only ever changed by clearing the whole
screen or by XOR-drawing sprites; there is no direct "set pixel".

Sprite drawing:
- Sprites are 8 pixels wide and 1-15 rows tall, one byte per row
- Bits are read most-significant first (bit 7 is the leftmost pixel)
- Coordinates wrap around both edges (no clipping)
- A collision is any pixel going from on to off

Export formats for the presentation layer:
- get_pixel_grid(): rows of booleans
- get_pixel_buffer(): RGBA bytes, 4 per pixel (on = opaque white, off = 0)
- get_text(): text grid, one line per row
- render_image(): PNG image bytes (requires Pillow)
"""

import io
from typing import List, MutableSequence, Sequence, Tuple

from PIL import Image

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32
BYTES_PER_PIXEL = 4
SPRITE_WIDTH = 8


class Display:
    """
    Monochrome framebuffer with XOR sprite drawing.

    Example:
        >>> d = Display()
        >>> d.draw_sprite(0, 0, bytes([0xFF]))
        False
        >>> d.draw_sprite(0, 0, bytes([0xFF]))
        True
        >>> d.lit_count
        0
    """

    def __init__(self):
        self._pixels: List[List[bool]] = [
            [False] * DISPLAY_WIDTH for _ in range(DISPLAY_HEIGHT)
        ]

    @property
    def width(self) -> int:
        return DISPLAY_WIDTH

    @property
    def height(self) -> int:
        return DISPLAY_HEIGHT

    @property
    def lit_count(self) -> int:
        """Number of pixels currently on."""
        return sum(sum(row) for row in self._pixels)

    # =========================================================================
    # Mutation
    # =========================================================================

    def clear(self) -> None:
        """Turn every pixel off."""
        for row in self._pixels:
            for x in range(DISPLAY_WIDTH):
                row[x] = False

    def toggle(self, x: int, y: int) -> bool:
        """
        XOR a lit sprite bit onto the pixel at (x, y).

        Coordinates wrap modulo the display size.

        Returns:
            True if the pixel went from on to off (collision)
        """
        x %= DISPLAY_WIDTH
        y %= DISPLAY_HEIGHT
        was_on = self._pixels[y][x]
        self._pixels[y][x] = not was_on
        return was_on

    def draw_sprite(self, x: int, y: int, rows: Sequence[int]) -> bool:
        """
        XOR-draw a sprite with its top-left corner at (x, y).

        Args:
            x: Left column (wrapped)
            y: Top row (wrapped)
            rows: One byte per sprite row, MSB is the leftmost pixel

        Returns:
            True if any pixel turned off
        """
        collision = False
        for row_index, bits in enumerate(rows):
            for column in range(SPRITE_WIDTH):
                if bits & (0x80 >> column):
                    # Toggle every lit bit; collision is sticky across the sprite
                    if self.toggle(x + column, y + row_index):
                        collision = True
        return collision

    # =========================================================================
    # Queries and Export
    # =========================================================================

    def get_pixel(self, x: int, y: int) -> bool:
        """
        Get pixel state.

        Raises:
            IndexError: If (x, y) is outside the display
        """
        if not (0 <= x < DISPLAY_WIDTH and 0 <= y < DISPLAY_HEIGHT):
            raise IndexError(f"pixel ({x}, {y}) outside {DISPLAY_WIDTH}x{DISPLAY_HEIGHT} display")
        return self._pixels[y][x]

    def get_pixel_grid(self) -> Tuple[Tuple[bool, ...], ...]:
        """Immutable copy of the grid, indexed [y][x]."""
        return tuple(tuple(row) for row in self._pixels)

    def get_pixel_buffer(self) -> bytes:
        """
        Get the RGBA pixel buffer.

        Returns:
            DISPLAY_WIDTH * DISPLAY_HEIGHT * 4 bytes, row-major. Each channel
            of an on pixel is 0xFF, each channel of an off pixel is 0x00.
        """
        on = b"\xff" * BYTES_PER_PIXEL
        off = b"\x00" * BYTES_PER_PIXEL
        return b"".join(
            on if pixel else off
            for row in self._pixels
            for pixel in row
        )

    def export_into(self, frame: MutableSequence[int]) -> None:
        """
        Write the RGBA buffer into a caller-owned frame.

        Raises:
            ValueError: If the frame has the wrong size
        """
        expected = DISPLAY_WIDTH * DISPLAY_HEIGHT * BYTES_PER_PIXEL
        if len(frame) != expected:
            raise ValueError(f"frame must be {expected} bytes, got {len(frame)}")
        frame[:] = self.get_pixel_buffer()

    def get_text(self, on: str = "#", off: str = ".") -> str:
        """
        Get display content as text, one line per row.

        Args:
            on: Character for a lit pixel
            off: Character for a dark pixel
        """
        return "\n".join(
            "".join(on if pixel else off for pixel in row)
            for row in self._pixels
        )

    def render_image(self, scale: int = 8) -> bytes:
        """
        Render display as a PNG image.

        Args:
            scale: Size in screen pixels of one display pixel

        Returns:
            PNG image bytes, white pixels on black
        """
        img = Image.new("L", (DISPLAY_WIDTH, DISPLAY_HEIGHT), color=0)
        img.putdata([
            255 if pixel else 0
            for row in self._pixels
            for pixel in row
        ])
        if scale > 1:
            img = img.resize(
                (DISPLAY_WIDTH * scale, DISPLAY_HEIGHT * scale),
                Image.Resampling.NEAREST,
            )

        buffer = io.BytesIO()
        img.save(buffer, format="PNG")
        return buffer.getvalue()
