"""
A Chip 8 virtual machine with a pygame front end.
"""

from chip8.cpu import CPU
from chip8.decoder import Instruction, decode, disassemble
from chip8.exception import (
    Chip8Error,
    RomTooLarge,
    StackOverflow,
    StackUnderflow,
    UnknownOpCodeException,
)
from chip8.runstate import RunState, RunStateController
from chip8.state import MachineState

__version__ = '1.0.0'
