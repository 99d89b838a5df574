#!/usr/bin/env python3
"""
CHIP-8 interpreter -- command-line entry point.

Parses command-line arguments, creates the machine from a ROM file, and
launches the pygame display window.

Usage examples::

    # Run a ROM with default settings
    chip8emu roms/pong.ch8

    # Faster CPU, bigger window
    chip8emu roms/pong.ch8 --cycles 15 --scale 20

    # Reproducible run that halts on unknown opcodes
    chip8emu roms/test.ch8 --strict --seed 1

    # Print ROM metadata and a disassembly preview without launching
    chip8emu roms/pong.ch8 --info
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from typing import Optional

from chip8emu.core.errors import FatalExecutionError, RomLoadError
from chip8emu.core.logger import LOG_DEBUG, LOG_INFO, LOG_WARNING, ConsoleLogger
from chip8emu.core.machine import DEFAULT_CYCLES_PER_FRAME
from chip8emu.shell.services.machine_factory import MachineFactory
from chip8emu.shell.services.rom_bytes_service import RomBytesService

_MIN_CYCLES: int = 1
_MAX_CYCLES: int = 100
_DEBUG_FRAMES: int = 5
_DISASSEMBLY_LINES: int = 16


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _parse_colour(text: str) -> int:
    """Parse ``RRGGBB`` / ``#RRGGBB`` / ``0xRRGGBB`` into an int."""
    value = text.strip().lstrip("#")
    if value.lower().startswith("0x"):
        value = value[2:]
    try:
        colour = int(value, 16)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid colour: {text!r}") from None
    if not 0 <= colour <= 0xFFFFFF or len(value) != 6:
        raise argparse.ArgumentTypeError(f"colour must be six hex digits: {text!r}")
    return colour


def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="chip8emu",
        description=(
            "CHIP-8 interpreter.  Load a ROM file and run it in a pygame window."
        ),
    )

    parser.add_argument(
        "rom",
        help="Path to the ROM file (.ch8, .c8, .rom, .bin)",
    )

    # Interpreter
    parser.add_argument(
        "--cycles", "-c",
        type=int,
        default=DEFAULT_CYCLES_PER_FRAME,
        help=(
            f"Instructions executed per 60 Hz frame ({_MIN_CYCLES}-{_MAX_CYCLES}).  "
            f"Default: {DEFAULT_CYCLES_PER_FRAME}."
        ),
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        default=False,
        help="Halt on unknown opcodes instead of skipping them.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random-number instruction.",
    )

    # Display
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=15,
        help="Display scale factor (1-30).  Default: 15.",
    )
    parser.add_argument(
        "--fg",
        type=_parse_colour,
        default=0xFFFFFF,
        metavar="RRGGBB",
        help="Foreground (set pixel) colour.  Default: FFFFFF.",
    )
    parser.add_argument(
        "--bg",
        type=_parse_colour,
        default=0x000000,
        metavar="RRGGBB",
        help="Background (clear pixel) colour.  Default: 000000.",
    )

    # Audio
    parser.add_argument(
        "--no-audio",
        action="store_true",
        default=False,
        help="Disable audio output.",
    )
    parser.add_argument(
        "--tone",
        type=int,
        default=440,
        metavar="HZ",
        help="Beeper frequency in Hz.  Default: 440.",
    )

    # Debugging / info
    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print ROM metadata and a disassembly preview, then exit.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help=f"Run {_DEBUG_FRAMES} frames headless, print machine state and exit.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> ConsoleLogger:
    """Set up the root logger and return the matching core logger."""
    if verbosity >= 2:
        level = logging.DEBUG
        core_level = LOG_DEBUG
    elif verbosity >= 1:
        level = logging.INFO
        core_level = LOG_INFO
    else:
        level = logging.WARNING
        core_level = LOG_WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    return ConsoleLogger(core_level)


# ---------------------------------------------------------------------------
# Info mode
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a ROM."""
    try:
        info = MachineFactory.describe(rom_path)
        machine = MachineFactory.create(rom_path)
    except (OSError, RomLoadError) as exc:
        print(f"Error reading ROM: {exc}", file=sys.stderr)
        return 1

    print("CHIP-8 ROM Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)

    lines = min(_DISASSEMBLY_LINES, (len(machine.rom) + 1) // 2)
    for line in machine.disassemble(count=lines):
        print(f"  {line}")
    return 0


# ---------------------------------------------------------------------------
# Debug mode
# ---------------------------------------------------------------------------

def _run_debug(machine) -> int:
    """Run a few frames and print diagnostic information."""
    print("=" * 60)
    print("CHIP-8 Debug Diagnostics")
    print("=" * 60)
    print(f"Machine: {machine}")

    for frame_no in range(_DEBUG_FRAMES):
        try:
            machine.compute_next_frame()
        except FatalExecutionError as exc:
            print(f"\nFatal fault in frame {frame_no + 1}: {exc}")
            return 1

        state = machine.state
        print(f"\n--- Frame {frame_no + 1} ---")
        print(
            f"  PC=0x{state.pc:03X} I=0x{state.i:03X} SP={state.sp} "
            f"DT={state.delay_timer} ST={state.sound_timer}"
        )
        print("  " + " ".join(f"V{n:X}={v:02X}" for n, v in enumerate(state.registers)))
        print(f"  Stack: {[f'0x{a:03X}' for a in state.stack]}")
        print(f"  Display: {machine.frame_buffer.count_set()} pixels set")
        print(f"  Executed: {machine.cpu.instructions_executed} "
              f"(unknown opcodes: {machine.cpu.unknown_opcodes})")
        if state.waiting_for_key:
            print(f"  Waiting for key -> V{state.wait_register:X}")
        print(f"  Next: {machine.disassemble(state.pc, 1)[0]}")

    print("\n" + "=" * 60)
    for row in machine.frame_buffer.rows():
        print("".join("#" if px else "." for px in row))
    print("=" * 60)
    print("Debug complete.")
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code (0 on success).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.tone <= 0:
        parser.error("--tone must be a positive frequency")

    core_logger = _configure_logging(args.verbose)
    logger = logging.getLogger("chip8emu.main")

    rom_path: str = os.path.expanduser(args.rom)
    if not os.path.isfile(rom_path):
        print(f"Error: ROM file not found: {rom_path}", file=sys.stderr)
        return 1

    if args.info:
        return _print_rom_info(rom_path)

    cycles = max(_MIN_CYCLES, min(_MAX_CYCLES, args.cycles))

    try:
        machine = MachineFactory.create(
            rom_path,
            strict=args.strict,
            seed=args.seed,
            cycles_per_frame=cycles,
            core_logger=core_logger,
        )
    except (OSError, RomLoadError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    if args.debug:
        return _run_debug(machine)

    # Imported here so --info / --debug never open a display.
    from chip8emu.platform.window import Window

    logger.info("Starting emulation ...")
    try:
        window = Window(
            machine,
            scale=args.scale,
            title=RomBytesService.title_for(rom_path),
            enable_audio=not args.no_audio,
            tone_hz=args.tone,
            background=args.bg,
            foreground=args.fg,
        )
        window.run()
    except KeyboardInterrupt:
        pass
    except FatalExecutionError as exc:
        logger.exception("Fatal fault during emulation")
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
