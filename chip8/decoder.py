from collections import namedtuple

# A decoded view of a single opcode. The fields are laid out as follows:
#
#    Bits:  15-12     11-8      7-4       3-0
#           family      x        y         n
#                     |<-------- nnn -------->|
#                               |<--- nn ---->|
Instruction = namedtuple('Instruction', ['opcode', 'nnn', 'nn', 'n', 'x', 'y'])


def decode(opcode):
    """
    Split a 16-bit opcode into its fields. Decoding never fails; whether the
    opcode means anything is up to the CPU.

    :param opcode: the raw 16-bit opcode
    :return: the decoded Instruction
    """
    return Instruction(
        opcode=opcode,
        nnn=opcode & 0x0FFF,
        nn=opcode & 0x00FF,
        n=opcode & 0x000F,
        x=(opcode >> 8) & 0x0F,
        y=(opcode >> 4) & 0x0F,
    )


def family(instruction):
    return (instruction.opcode >> 12) & 0x0F


# Mnemonics for the 8xyn logical and arithmetic operations
LOGICAL_MNEMONICS = {
    0x0: 'LOAD V{x:X}, V{y:X}',
    0x1: 'OR   V{x:X}, V{y:X}',
    0x2: 'AND  V{x:X}, V{y:X}',
    0x3: 'XOR  V{x:X}, V{y:X}',
    0x4: 'ADD  V{x:X}, V{y:X}',
    0x5: 'SUB  V{x:X}, V{y:X}',
    0x6: 'SHR  V{x:X}',
    0x7: 'SUBN V{x:X}, V{y:X}',
    0xE: 'SHL  V{x:X}',
}

# Mnemonics for the Fxnn miscellaneous routines
MISC_MNEMONICS = {
    0x07: 'LOAD V{x:X}, DELAY',
    0x0A: 'KEYD V{x:X}',
    0x15: 'LOAD DELAY, V{x:X}',
    0x18: 'LOAD SOUND, V{x:X}',
    0x1E: 'ADD  I, V{x:X}',
    0x29: 'LOAD I, FONT V{x:X}',
    0x33: 'BCD  V{x:X}',
    0x55: 'STOR [I], V{x:X}',
    0x65: 'LOAD V{x:X}, [I]',
}

MNEMONICS = {
    0x1: 'JUMP {nnn:03X}',
    0x2: 'CALL {nnn:03X}',
    0x3: 'SKE  V{x:X}, {nn:02X}',
    0x4: 'SKNE V{x:X}, {nn:02X}',
    0x6: 'LOAD V{x:X}, {nn:02X}',
    0x7: 'ADD  V{x:X}, {nn:02X}',
    0xA: 'LOAD I, {nnn:03X}',
    0xB: 'JUMP [V0] + {nnn:03X}',
    0xC: 'RAND V{x:X}, {nn:02X}',
    0xD: 'DRAW V{x:X}, V{y:X}, {n}',
}


def disassemble(instruction):
    """
    Return the assembly text for a decoded instruction, used when tracing
    execution. Opcodes the CPU does not understand come back as UNKNOWN.

    :param instruction: the decoded Instruction
    :return: a string such as 'ADD  V1, V2'
    """
    fields = instruction._asdict()
    op_family = family(instruction)
    template = None

    if op_family == 0x0:
        if instruction.nnn == 0x0E0:
            template = 'CLS'
        elif instruction.nnn == 0x0EE:
            template = 'RTS'
        else:
            template = 'SYS  {nnn:03X}'
    elif op_family in (0x5, 0x9):
        if instruction.n == 0:
            template = 'SKE  V{x:X}, V{y:X}' if op_family == 0x5 else 'SKNE V{x:X}, V{y:X}'
    elif op_family == 0x8:
        template = LOGICAL_MNEMONICS.get(instruction.n)
    elif op_family == 0xE:
        if instruction.nn == 0x9E:
            template = 'SKPR V{x:X}'
        elif instruction.nn == 0xA1:
            template = 'SKUP V{x:X}'
    elif op_family == 0xF:
        template = MISC_MNEMONICS.get(instruction.nn)
    else:
        template = MNEMONICS[op_family]

    if template is None:
        return 'UNKNOWN {:04X}'.format(instruction.opcode)
    return template.format(**fields)
