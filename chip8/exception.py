class Chip8Error(Exception):
    """
    Base class for all errors raised by the Chip 8 virtual machine.
    """


class RomTooLarge(Chip8Error):
    """
    Raised when a ROM does not fit in the program area of memory.
    """
    def __init__(self, rom_size, max_size):
        Chip8Error.__init__(
            self, "ROM too large: {} bytes, maximum is {} bytes".format(rom_size, max_size))
        self.rom_size = rom_size
        self.max_size = max_size


class StackOverflow(Chip8Error):
    """
    Raised when a subroutine call is made with the call stack already full.
    """
    def __init__(self, address):
        Chip8Error.__init__(self, "Stack overflow at {:04X}".format(address))
        self.address = address


class StackUnderflow(Chip8Error):
    """
    Raised when returning from a subroutine with an empty call stack.
    """
    def __init__(self, address):
        Chip8Error.__init__(self, "Stack underflow at {:04X}".format(address))
        self.address = address


class UnknownOpCodeException(Chip8Error):
    """
    A class to raise unknown op code exceptions. These are recoverable: the
    CPU logs them and moves on to the next instruction.
    """
    def __init__(self, op_code):
        Chip8Error.__init__(self, "Unknown op-code: {:04X}".format(op_code))
        self.op_code = op_code
