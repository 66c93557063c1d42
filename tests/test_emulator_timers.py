"""
Timer Unit Tests
================

Tests for the delay and sound countdown timers.
"""

from chip8_vm.emulator import Timers


class TestTimers:
    """Tests for Timers."""

    def test_defaults(self):
        t = Timers()
        assert t.delay == 0
        assert t.sound == 0
        assert not t.sound_active

    def test_tick_decrements_both(self):
        t = Timers(delay=5, sound=2)
        t.tick()
        assert (t.delay, t.sound) == (4, 1)

    def test_tick_saturates_at_zero(self):
        t = Timers(delay=1, sound=0)
        t.tick()
        t.tick()
        assert (t.delay, t.sound) == (0, 0)

    def test_independent(self):
        t = Timers(delay=3, sound=1)
        t.tick()
        assert t.delay == 2
        assert t.sound == 0
        assert not t.sound_active

    def test_values_masked_to_8_bits(self):
        t = Timers()
        t.delay = 0x1FF
        assert t.delay == 0xFF

    def test_reset(self):
        t = Timers(delay=9, sound=9)
        t.reset()
        assert (t.delay, t.sound) == (0, 0)
