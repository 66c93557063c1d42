"""
Emulator Integration Tests
==========================

End-to-end tests of the step driver: small programs are loaded at $200
and stepped through the full fetch-decode-execute-timer cycle.

These verify:
- Program loading, reset and configuration
- Step results (STEP, WAITING_FOR_KEY, HALTED, MAX_STEPS)
- Timer decay across steps
- Fatal errors halting the machine
- Display export into a caller-owned frame
- Logging of unknown opcodes and halts
"""

import logging

import pytest
from chip8_vm import (
    Emulator,
    EmulatorConfig,
    HaltReason,
    Keyboard,
    RomSizeError,
    RunState,
    StepReason,
    StackUnderflowError,
    MemoryBoundsError,
)
from chip8_vm.emulator.instruction import NoOp, WaitKey


def rom(*words: int) -> bytes:
    """Assemble big-endian opcode words into a ROM image."""
    return b"".join(word.to_bytes(2, "big") for word in words)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def emu():
    """Emulator with a fixed random seed."""
    return Emulator(EmulatorConfig(seed=1234))


@pytest.fixture
def make_emu():
    """Factory for an emulator preloaded with opcode words."""
    def _make(*words, **config):
        emulator = Emulator(EmulatorConfig(seed=1234, **config))
        emulator.load_rom(rom(*words))
        return emulator
    return _make


# =============================================================================
# Loading and Configuration
# =============================================================================

class TestLoading:
    """Tests for ROM loading and the constructor."""

    def test_power_on(self, emu):
        assert emu.pc == 0x200
        assert emu.status is RunState.READY
        assert not emu.is_halted
        assert emu.halt_event is None
        assert emu.total_steps == 0

    def test_load_rom(self, emu):
        emu.load_rom(rom(0x00E0, 0x1200))
        assert emu.read_bytes(0x200, 4) == b"\x00\xe0\x12\x00"

    def test_load_rom_too_large(self, emu):
        with pytest.raises(RomSizeError):
            emu.load_rom(bytes(4096 - 0x200 + 1))

    def test_load_rom_file(self, emu, tmp_path):
        path = tmp_path / "test.ch8"
        path.write_bytes(rom(0x6042))
        emu.load_rom_file(path)
        emu.step()
        assert emu.registers["v0"] == 0x42

    def test_load_rom_file_missing(self, emu, tmp_path):
        with pytest.raises(FileNotFoundError):
            emu.load_rom_file(tmp_path / "missing.ch8")

    def test_config_rom_path(self, tmp_path):
        path = tmp_path / "test.ch8"
        path.write_bytes(rom(0x6142))
        emulator = Emulator(EmulatorConfig(rom_path=path))
        assert emulator.read_byte(0x200) == 0x61

    def test_load_bytes(self, emu):
        emu.load_bytes(b"\x01\x02", 0x300)
        assert emu.read_bytes(0x300, 2) == b"\x01\x02"

    def test_load_bytes_out_of_bounds(self, emu):
        with pytest.raises(MemoryBoundsError):
            emu.load_bytes(b"\x01\x02", 0xFFF)

    def test_custom_keyboard(self):
        keyboard = Keyboard()
        emulator = Emulator(keyboard=keyboard)
        emulator.press_key("W")
        assert keyboard.is_key_down(0x5)
        emulator.release_key(0x5)
        assert not keyboard.is_key_down(0x5)

    def test_repr(self, emu):
        assert repr(emu) == "Emulator(status=READY, pc=$0200, steps=0)"


class TestConfigFromEnv:
    """Tests for EmulatorConfig.from_env()."""

    def test_defaults(self, monkeypatch):
        for name in ("CHIP8_ROM", "CHIP8_SEED", "CHIP8_LOG_UNKNOWN"):
            monkeypatch.delenv(name, raising=False)
        config = EmulatorConfig.from_env()
        assert config == EmulatorConfig()

    def test_values(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CHIP8_ROM", str(tmp_path / "pong.ch8"))
        monkeypatch.setenv("CHIP8_SEED", "0x10")
        monkeypatch.setenv("CHIP8_LOG_UNKNOWN", "false")
        config = EmulatorConfig.from_env()
        assert config.rom_path == tmp_path / "pong.ch8"
        assert config.seed == 16
        assert config.log_unknown_opcodes is False

    def test_bad_seed(self, monkeypatch):
        monkeypatch.setenv("CHIP8_SEED", "abc")
        with pytest.raises(ValueError, match="CHIP8_SEED"):
            EmulatorConfig.from_env()


# =============================================================================
# Stepping
# =============================================================================

class TestStep:
    """Tests for single steps."""

    def test_step_advances_pc(self, make_emu):
        emulator = make_emu(0x6A05, 0x6B06)
        event = emulator.step()
        assert event.reason is StepReason.STEP
        assert event.address == 0x200
        assert event.opcode == 0x6A05
        assert emulator.pc == 0x202
        assert emulator.registers["va"] == 0x05
        assert emulator.total_steps == 1

    def test_call_and_return(self, make_emu):
        emulator = make_emu(
            0x2206,  # $200: call $206
            0x6101,  # $202: V1 = 1
            0x1204,  # $204: loop
            0x6007,  # $206: V0 = 7
            0x00EE,  # $208: return
        )
        for _ in range(4):
            emulator.step()
        assert emulator.registers["v0"] == 7
        assert emulator.registers["v1"] == 1
        assert emulator.pc == 0x204
        assert emulator.state.stack == []

    def test_skip(self, make_emu):
        emulator = make_emu(0x3000, 0x6001, 0x6102)
        emulator.step()
        assert emulator.pc == 0x204
        emulator.step()
        assert emulator.registers["v0"] == 0
        assert emulator.registers["v1"] == 2

    def test_bcd_then_load(self, make_emu):
        emulator = make_emu(0x60FF, 0xA300, 0xF033, 0xF265)
        emulator.run(4)
        regs = emulator.registers
        assert (regs["v0"], regs["v1"], regs["v2"]) == (2, 5, 5)
        assert regs["i"] == 0x300

    def test_seeded_random_reproducible(self):
        """Two emulators with the same seed produce the same CXNN values."""
        results = []
        for _ in range(2):
            emulator = Emulator(EmulatorConfig(seed=7))
            emulator.load_rom(rom(*[0xC0FF + (n << 8) for n in range(8)]))
            emulator.run(8)
            results.append([emulator.registers[f"v{n:x}"] for n in range(8)])
        assert results[0] == results[1]


class TestTimers:
    """Timers decrement once per executed step."""

    def test_delay_decays_to_zero(self, make_emu):
        emulator = make_emu(0x6003, 0xF015, 0x1204)
        emulator.step()
        emulator.step()
        # Set to 3, then the same step ticks once
        assert emulator.registers["dt"] == 2
        emulator.step()
        emulator.step()
        assert emulator.registers["dt"] == 0
        emulator.step()
        assert emulator.registers["dt"] == 0

    def test_sound_decays(self, make_emu):
        emulator = make_emu(0x6002, 0xF018, 0x1204)
        emulator.run(2)
        assert emulator.registers["st"] == 1
        emulator.step()
        assert emulator.registers["st"] == 0

    def test_timers_tick_while_waiting_for_key(self, make_emu):
        emulator = make_emu(0x6005, 0xF015, 0xF00A)
        emulator.run(2)
        assert emulator.registers["dt"] == 4
        event = emulator.step()
        assert event.reason is StepReason.WAITING_FOR_KEY
        assert emulator.registers["dt"] == 3


class TestWaitForKey:
    """Tests for the FX0A polling behavior."""

    def test_waits_then_stores_key(self, make_emu):
        emulator = make_emu(0xF30A)
        for _ in range(3):
            event = emulator.step()
            assert event.reason is StepReason.WAITING_FOR_KEY
            assert isinstance(event.instruction, WaitKey)
            assert emulator.pc == 0x200
        emulator.press_key(0xB)
        event = emulator.step()
        assert event.reason is StepReason.STEP
        assert emulator.registers["v3"] == 0xB
        assert emulator.pc == 0x202


class TestUnknownOpcode:
    """Unknown opcodes are no-ops that only advance PC."""

    def test_state_unchanged(self, make_emu):
        emulator = make_emu(0x5121)
        before = emulator.registers
        event = emulator.step()
        after = emulator.registers
        assert event.reason is StepReason.STEP
        assert isinstance(event.instruction, NoOp)
        assert after["pc"] == 0x202
        del before["pc"], after["pc"]
        assert after == before

    def test_logs_warning(self, make_emu, caplog):
        emulator = make_emu(0x5121)
        with caplog.at_level(logging.WARNING, logger="chip8_vm"):
            emulator.step()
        assert "Unknown opcode $5121 at $0200" in caplog.text

    def test_logging_disabled(self, make_emu, caplog):
        emulator = make_emu(0x5121, log_unknown_opcodes=False)
        with caplog.at_level(logging.WARNING, logger="chip8_vm"):
            emulator.step()
        assert "Unknown opcode" not in caplog.text


# =============================================================================
# Halting
# =============================================================================

class TestHalt:
    """Fatal errors move the driver to HALTED."""

    def test_stack_underflow(self, make_emu):
        emulator = make_emu(0x00EE)
        event = emulator.step()
        assert event.halted
        assert event.reason is StepReason.HALTED
        assert event.halt_reason is HaltReason.STACK_UNDERFLOW
        assert event.address == 0x200
        assert event.opcode == 0x00EE
        assert isinstance(event.error, StackUnderflowError)
        assert str(event.error).startswith("$0200 [$00EE]:")
        assert emulator.status is RunState.HALTED
        assert emulator.total_steps == 0

    def test_fetch_out_of_bounds(self, make_emu):
        """A jump to $FFF halts on the next fetch."""
        emulator = make_emu(0x1FFF)
        emulator.step()
        event = emulator.step()
        assert event.halt_reason is HaltReason.MEMORY_BOUNDS
        assert event.address == 0xFFF
        assert event.opcode is None
        assert event.error.address == 0x1000

    def test_access_out_of_bounds(self, make_emu):
        emulator = make_emu(0xAFFF, 0xF155)
        event = emulator.run(10)
        assert event.halt_reason is HaltReason.MEMORY_BOUNDS
        assert event.address == 0x202

    def test_halted_stays_halted(self, make_emu):
        emulator = make_emu(0x00EE)
        first = emulator.step()
        emulator.state.timers.delay = 5
        second = emulator.step()
        assert second is first
        assert emulator.pc == 0x202
        assert emulator.registers["dt"] == 5
        assert emulator.halt_event is first

    def test_halt_does_not_tick_timers(self, make_emu):
        emulator = make_emu(0x6009, 0xF015, 0x00EE)
        emulator.run(10)
        assert emulator.registers["dt"] == 8

    def test_halt_logged(self, make_emu, caplog):
        emulator = make_emu(0x00EE)
        with caplog.at_level(logging.ERROR, logger="chip8_vm"):
            emulator.step()
        assert "Machine halted" in caplog.text

    def test_run_returns_halt_event(self, make_emu):
        emulator = make_emu(0x6001, 0x00EE)
        event = emulator.run(100)
        assert event.halted
        assert emulator.total_steps == 1
        assert "stack underflow" in str(event)


class TestRun:
    """Tests for run()."""

    def test_max_steps(self, make_emu):
        emulator = make_emu(0x1200)
        event = emulator.run(max_steps=50)
        assert event.reason is StepReason.MAX_STEPS
        assert not event.halted
        assert emulator.total_steps == 50
        assert str(event) == "Reached max steps (50)"

    def test_zero_steps(self, make_emu):
        emulator = make_emu(0x00EE)
        event = emulator.run(0)
        assert event.reason is StepReason.MAX_STEPS
        assert not emulator.is_halted


class TestReset:
    """Tests for reset()."""

    def test_reset_restores_power_on(self, make_emu):
        emulator = make_emu(0x6A05, 0xA000, 0xD015, 0x00EE)
        emulator.run(10)
        assert emulator.is_halted
        emulator.reset()
        assert emulator.status is RunState.READY
        assert emulator.halt_event is None
        assert emulator.pc == 0x200
        assert emulator.total_steps == 0
        assert emulator.registers["va"] == 0
        assert emulator.display.lit_count == 0

    def test_reset_reloads_rom(self, make_emu):
        emulator = make_emu(0x6A05)
        emulator.load_bytes(b"\xAA", 0x300)
        emulator.reset()
        assert emulator.read_byte(0x200) == 0x6A
        assert emulator.read_byte(0x300) == 0x00
        emulator.step()
        assert emulator.registers["va"] == 0x05

    def test_reset_keeps_keyboard(self, make_emu):
        emulator = make_emu(0xF00A)
        emulator.press_key(3)
        emulator.reset()
        emulator.step()
        assert emulator.registers["v0"] == 3


# =============================================================================
# Display Output
# =============================================================================

class TestDisplayOutput:
    """Tests for drawing through the step driver."""

    def test_frame_export(self, make_emu):
        emulator = make_emu(0xA000, 0xD015)
        frame = bytearray(64 * 32 * 4)
        emulator.step(frame)
        assert frame == bytes(len(frame))
        emulator.step(frame)
        assert frame[0:4] == b"\xff\xff\xff\xff"
        assert frame == emulator.display_pixels

    def test_draw_twice_sets_flag(self, make_emu):
        emulator = make_emu(0xA000, 0xD015, 0xD015)
        emulator.run(3)
        assert emulator.registers["vf"] == 1
        assert emulator.display.lit_count == 0

    def test_display_text(self, make_emu):
        emulator = make_emu(0xA000, 0xD015)
        emulator.run(2)
        lines = emulator.display_text.splitlines()
        assert lines[0].startswith("####.")
        assert lines[1].startswith("#..#.")

    def test_render_display(self, make_emu):
        emulator = make_emu(0x00E0)
        emulator.step()
        assert emulator.render_display(scale=2)[:4] == b"\x89PNG"
