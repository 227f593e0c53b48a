import os

import pytest

# Let pygame open windows and mixers without real devices
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")
os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

from chip8.cpu import CPU  # noqa: E402
from chip8.state import MachineState  # noqa: E402


def program(*opcodes):
    """Assemble a list of 16-bit opcodes into ROM bytes."""
    data = bytearray()
    for opcode in opcodes:
        data.append((opcode >> 8) & 0xFF)
        data.append(opcode & 0xFF)
    return bytes(data)


@pytest.fixture
def state():
    """A fresh machine with nothing loaded."""
    return MachineState()


@pytest.fixture
def cpu():
    """A CPU whose random source always returns 0xFF."""
    return CPU(random_source=lambda: 0xFF)


@pytest.fixture
def run(cpu, state):
    """Load opcodes at 0x200 and step once per opcode."""
    def _run(*opcodes, steps=None):
        state.load_rom(program(*opcodes))
        for _ in range(len(opcodes) if steps is None else steps):
            cpu.step(state)
        return state
    return _run


@pytest.fixture
def assemble():
    return program


@pytest.fixture
def execute(cpu, state):
    """Place one opcode at the program counter and step it."""
    def _execute(opcode):
        state.write_byte(state.pc, opcode >> 8)
        state.write_byte(state.pc + 1, opcode)
        return cpu.step(state)
    return _execute
