"""
Delay and Sound Timers
======================

Two independent 8-bit countdown timers. Each machine step decrements both
by one, stopping at zero. The sound timer is tracked only as a value; a
host may gate a beeper on `sound_active`.
"""

from dataclasses import dataclass


@dataclass
class Timers:
    """
    Delay/sound countdown pair.

    Example:
        >>> t = Timers(delay=1)
        >>> t.tick(); t.tick()
        >>> t.delay
        0
    """
    delay: int = 0
    sound: int = 0

    def __setattr__(self, name: str, value: int) -> None:
        # Both timers are 8-bit registers
        super().__setattr__(name, value & 0xFF)

    def tick(self) -> None:
        """Decrement both timers, saturating at zero."""
        if self.delay > 0:
            self.delay -= 1
        if self.sound > 0:
            self.sound -= 1

    @property
    def sound_active(self) -> bool:
        """True while the sound timer is running."""
        return self.sound > 0

    def reset(self) -> None:
        self.delay = 0
        self.sound = 0
