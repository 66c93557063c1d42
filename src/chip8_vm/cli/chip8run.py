"""
chip8run - Headless CHIP-8 ROM Runner
=====================================

Runs a ROM for a fixed number of steps without a window, then reports
how the machine ended up. Handy for smoke-testing ROMs and for grabbing
screenshots in scripts.

Usage Examples
--------------
Run 10,000 steps and print the display as text:
    $ chip8run maze.ch8 --steps 10000 --text

Hold keypad keys (hex digit or QWERTY host key) while running:
    $ chip8run pong.ch8 --key 1 --key 0xC

Save a PNG screenshot at 10x scale:
    $ chip8run ibm.ch8 --screenshot ibm.png --scale 10

Run at roughly the speed of real hardware:
    $ chip8run maze.ch8 --rate 500
"""

import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click

from chip8_vm import __version__
from chip8_vm.cli.errors import ExitCode, handle_cli_exception
from chip8_vm.emulator import Emulator, EmulatorConfig, StepEvent, StepReason, resolve_key

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def _parse_keys(ctx: click.Context, param: click.Parameter, value: tuple[str, ...]) -> list[int]:
    """Resolve --key values to keypad indices."""
    keys = []
    for key in value:
        text = key
        # A single hex digit names a keypad key, not a host key
        if len(key) == 1 and key.upper() in "0123456789ABCDEF":
            text = f"0x{key}"
        try:
            keys.append(resolve_key(text))
        except ValueError as e:
            raise click.BadParameter(str(e), ctx=ctx, param=param)
    return keys


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "rom_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-n", "--steps",
    type=click.IntRange(min=0),
    default=10_000,
    show_default=True,
    help="Maximum number of steps to execute",
)
@click.option(
    "-r", "--rate",
    type=click.FloatRange(min=0),
    default=0.0,
    help="Steps per second (0 = as fast as possible)",
)
@click.option(
    "--seed",
    type=int,
    default=None,
    help="Seed for the random-number instruction (reproducible runs)",
)
@click.option(
    "-k", "--key",
    "keys",
    multiple=True,
    callback=_parse_keys,
    help="Hold a keypad key: hex digit 0-F, or a host key name (Q, W, R, S, Z, X, V...). Repeatable.",
)
@click.option(
    "-s", "--screenshot",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write the final display to a PNG file",
)
@click.option(
    "--scale",
    type=click.IntRange(min=1),
    default=8,
    show_default=True,
    help="Screenshot pixel scale",
)
@click.option(
    "-t", "--text",
    is_flag=True,
    help="Print the final display as text",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output (debug logging, register dump)",
)
@click.version_option(version=__version__, prog_name="chip8run")
def main(
    rom_file: Path,
    steps: int,
    rate: float,
    seed: Optional[int],
    keys: list[int],
    screenshot: Optional[Path],
    scale: int,
    text: bool,
    verbose: bool,
) -> None:
    """
    Run a CHIP-8 ROM headlessly.

    ROM_FILE is the program image, loaded at $200.

    \b
    Examples:
        chip8run maze.ch8 --text
        chip8run pong.ch8 -k 1 -n 50000 -s pong.png
    """
    setup_logging(verbose)

    try:
        emu = Emulator(EmulatorConfig(rom_path=rom_file, seed=seed))
        for key in keys:
            emu.press_key(key)
        if keys:
            logger.debug(f"Holding keys: {', '.join(f'{k:X}' for k in keys)}")

        if verbose:
            click.echo(f"Loaded {rom_file} ({rom_file.stat().st_size} bytes)")

        if rate > 0:
            event = _run_paced(emu, steps, rate)
        else:
            event = emu.run(steps)

        if verbose:
            click.echo(f"Executed {emu.total_steps} steps: {event}")
            regs = emu.registers
            click.echo(" ".join(f"{name.upper()}={value:02X}" for name, value in regs.items()
                                if name.startswith("v")))
            click.echo(f"PC=${regs['pc']:04X} I=${regs['i']:04X} DT={regs['dt']} ST={regs['st']}")

        if text:
            click.echo(emu.display_text)

        if screenshot:
            screenshot.write_bytes(emu.render_display(scale=scale))
            if verbose:
                click.echo(f"Wrote screenshot to {screenshot}")

    except Exception as e:
        handle_cli_exception(e, verbose=verbose, error_type="ROM")

    if event.halted:
        click.echo(f"Halted: {event.error}", err=True)
        sys.exit(ExitCode.MACHINE_ERROR)


def _run_paced(emu: Emulator, steps: int, rate: float) -> StepEvent:
    """Step at a fixed rate using wall-clock sleeps."""
    period = 1.0 / rate
    deadline = time.monotonic()
    for _ in range(steps):
        event = emu.step()
        if event.halted:
            return event
        deadline += period
        delay = deadline - time.monotonic()
        if delay > 0:
            time.sleep(delay)
    return StepEvent(
        StepReason.MAX_STEPS,
        address=emu.pc,
        message=f"Reached max steps ({steps})",
    )


if __name__ == "__main__":
    main()
