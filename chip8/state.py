import logging

from chip8.exception import RomTooLarge
from chip8.runstate import RunStateController
from chip8.stack import CallStack

logger = logging.getLogger(__name__)

# The total amount of memory to allocate for the emulator
MAX_MEMORY = 4096

# Where the program counter should originally point, and where ROMs are loaded
PROGRAM_COUNTER_START = 0x200

# The largest ROM that fits between the entry point and the end of memory
MAX_ROM_SIZE = MAX_MEMORY - PROGRAM_COUNTER_START

# The total number of registers in the Chip 8 CPU
NUM_REGISTERS = 0x10

# The number of keys on the hexadecimal keypad
NUM_KEYS = 0x10

# Where the font glyphs are loaded, and how many bytes each glyph occupies
FONT_START = 0x000
FONT_GLYPH_SIZE = 5

# The display resolution in pixels
DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

# The built in hexadecimal font, one 5 byte glyph per digit 0 - F
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


class DisplayBuffer(object):
    """
    The 64 x 32 monochrome frame buffer. Pixels are stored row-major, so the
    pixel at (x, y) lives at index y * width + x. The CPU is the only writer;
    the screen reads the buffer once per frame.
    """
    def __init__(self, width=DISPLAY_WIDTH, height=DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self.pixels = [False] * (width * height)

    def __len__(self):
        return len(self.pixels)

    def __getitem__(self, index):
        return self.pixels[index]

    def get_pixel(self, x_pos, y_pos):
        return self.pixels[y_pos * self.width + x_pos]

    def xor_pixel(self, x_pos, y_pos):
        """
        Flip the pixel at the specified location.

        :return: True if the pixel was on before the flip (a collision)
        """
        index = y_pos * self.width + x_pos
        was_on = self.pixels[index]
        self.pixels[index] = not was_on
        return was_on

    def clear(self):
        for index in range(len(self.pixels)):
            self.pixels[index] = False

    def lit_pixels(self):
        return sum(1 for pixel in self.pixels if pixel)

    def __str__(self):
        rows = []
        for y_pos in range(self.height):
            row = self.pixels[y_pos * self.width:(y_pos + 1) * self.width]
            rows.append(''.join('#' if pixel else '.' for pixel in row))
        return '\n'.join(rows)


class MachineState(object):
    """
    Everything a Chip 8 machine owns: memory, registers, the call stack, the
    display buffer, the keypad and the two timers, plus the run state that
    decides whether the machine advances at all. The state is handed to the
    CPU on every step, so several independent machines can coexist.

        * 4096 bytes of memory, font at 0x000, program at 0x200
        * 16 x 8-bit general purpose registers (V0 - VF**)
        * 1 x 16-bit index register (I)
        * 1 x 16-bit program counter (PC)
        * 1 x 8-bit delay timer (DT)
        * 1 x 8-bit sound timer (ST)

    ** VF is a special register - it is used to store the carry, borrow and
    collision flags
    """
    def __init__(self, rom=None):
        """
        Create a machine with the font loaded and, optionally, a program.

        :param rom: the program bytes to load at 0x200
        """
        # The timers are loaded with a value and then decremented 60 times
        # per second.
        self.timers = {
            'delay': 0,
            'sound': 0,
        }
        self.registers = {
            'v': [],
            'index': 0,
            'pc': 0,
        }
        self.memory = bytearray(MAX_MEMORY)
        self.stack = CallStack()
        self.display = DisplayBuffer()
        self.keypad = [False] * NUM_KEYS
        self.run_state = RunStateController()
        self.rom_size = 0
        self.reset()
        self.load_font()
        if rom is not None:
            self.load_rom(rom)

    def __str__(self):
        val = 'PC: {:04X}  I: {:04X}  SP: {:X}\n'.format(
            self.pc, self.index, len(self.stack))
        for index in range(NUM_REGISTERS):
            val += 'V{:X}: {:02X}\n'.format(index, self.v[index])
        val += 'DT: {:02X}  ST: {:02X}  {}\n'.format(
            self.timers['delay'], self.timers['sound'], self.run_state.state.value)
        return val

    @property
    def v(self):
        return self.registers['v']

    @property
    def pc(self):
        return self.registers['pc']

    @pc.setter
    def pc(self, value):
        self.registers['pc'] = value & 0xFFFF

    @property
    def index(self):
        return self.registers['index']

    @index.setter
    def index(self, value):
        self.registers['index'] = value & 0xFFFF

    @property
    def delay_timer(self):
        return self.timers['delay']

    @property
    def sound_timer(self):
        return self.timers['sound']

    def reset(self):
        """
        Blank out all registers, timers, the stack, the display and the
        keypad, and point the program counter at the entry point. Memory is
        left alone so a loaded program can be restarted.
        """
        self.registers['v'] = [0] * NUM_REGISTERS
        self.registers['pc'] = PROGRAM_COUNTER_START
        self.registers['index'] = 0
        self.timers['delay'] = 0
        self.timers['sound'] = 0
        self.stack.clear()
        self.display.clear()
        self.keypad = [False] * NUM_KEYS
        self.run_state.reset()

    def load_font(self):
        self.memory[FONT_START:FONT_START + len(FONT)] = FONT

    def load_rom(self, rom_data):
        """
        Copy a program into memory at the entry point.

        :param rom_data: the raw program bytes
        """
        if len(rom_data) > MAX_ROM_SIZE:
            raise RomTooLarge(len(rom_data), MAX_ROM_SIZE)
        end = PROGRAM_COUNTER_START + len(rom_data)
        self.memory[PROGRAM_COUNTER_START:end] = rom_data
        self.memory[end:] = bytes(MAX_MEMORY - end)
        self.rom_size = len(rom_data)
        logger.info("Loaded %d byte program at %04X", len(rom_data), PROGRAM_COUNTER_START)

    def load_rom_file(self, filename):
        """
        Load the ROM indicated by the filename into memory.

        :param filename: the name of the file to load
        """
        with open(filename, 'rb') as rom_file:
            rom_data = rom_file.read()
        self.load_rom(rom_data)

    def read_byte(self, address):
        return self.memory[address & 0xFFF]

    def write_byte(self, address, value):
        self.memory[address & 0xFFF] = value & 0xFF

    def read_word(self, address):
        return (self.read_byte(address) << 8) | self.read_byte(address + 1)

    def first_pressed_key(self):
        """
        :return: the lowest numbered key currently pressed, or None
        """
        for key_index, pressed in enumerate(self.keypad):
            if pressed:
                return key_index
        return None

    def set_key(self, key_index, pressed):
        self.keypad[key_index & 0xF] = bool(pressed)
