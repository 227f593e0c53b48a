import argparse
import logging
import sys

import pygame

from chip8.audio import Beeper
from chip8.clock import TimerAccumulator
from chip8.cpu import CPU
from chip8.exception import RomTooLarge, StackOverflow, StackUnderflow
from chip8.keyboard import handle_event
from chip8.screen import Screen, SCREEN_NAME
from chip8.state import MachineState

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s %(levelname)-7s %(name)s: %(message)s'


def run_timers(cpu, state, ticks):
    """
    Run the number of 60Hz timer ticks that are due.

    :return: True if the tone should be playing after the ticks
    """
    tone_active = False
    for _ in range(ticks):
        tone_active = cpu.tick_timers(state)
    return tone_active


def screen_cpu_connector(args):
    """
    Runs the main emulator loop with the specified arguments.

    :param args: the parsed command-line arguments
    :return: the process exit status
    """
    state = MachineState()
    try:
        state.load_rom_file(args.rom)
    except (OSError, RomTooLarge) as error:
        logger.error("Cannot load ROM %s: %s", args.rom, error)
        return 1

    pygame.init()
    project_screen = Screen(ratio=args.scale)
    project_screen.init_display()
    beeper = Beeper()
    beeper.init_audio()
    project_cpu = CPU()
    accumulator = TimerAccumulator()
    run_state = state.run_state
    exit_status = 0
    was_paused = False

    last_time = pygame.time.get_ticks()
    logger.info("Running %s", args.rom)
    try:
        while not run_state.should_quit:
            for event in pygame.event.get():
                handle_event(event, state)

            try:
                project_cpu.step(state)
            except (StackOverflow, StackUnderflow):
                exit_status = 1
                break

            now = pygame.time.get_ticks()
            ticks = accumulator.advance(now - last_time)
            last_time = now
            if ticks:
                beeper.update(run_timers(project_cpu, state, ticks))
                project_screen.render(state.display)

            if run_state.is_paused != was_paused:
                was_paused = run_state.is_paused
                Screen.set_caption(SCREEN_NAME + (' [PAUSED]' if was_paused else ''))

            pygame.time.wait(args.op_delay)
    finally:
        beeper.close()
        pygame.quit()

    logger.info("Quit")
    return exit_status


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Starts a simple Chip 8 emulator. SPACE pauses, ESCAPE quits."
                    )
    parser.add_argument(
        "rom", help="the ROM file to load on startup")
    parser.add_argument(
        "-s", help="the scale factor to apply to the display "
                   "(default is 10)", type=int, default=10, dest="scale")
    parser.add_argument(
        "-d", help="sets the CPU operation to take at least "
                   "the specified number of milliseconds to execute (default is 1)",
        type=int, default=1, dest="op_delay")
    parser.add_argument(
        "-v", "--verbose", help="trace every executed instruction",
        action="store_true")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)
    return screen_cpu_connector(args)


if __name__ == "__main__":
    sys.exit(main())
