import logging
from random import randint

from chip8.decoder import decode, disassemble, family
from chip8.exception import StackOverflow, StackUnderflow, UnknownOpCodeException
from chip8.state import FONT_GLYPH_SIZE, FONT_START

logger = logging.getLogger(__name__)


def random_byte():
    return randint(0, 255)


class CPU(object):
    """
    A class to emulate a Chip 8 CPU. There are several good resources out on
    the web that describe the internals of the Chip 8 CPU. For example:

        http://devernay.free.fr/hacks/chip8/C8TECH10.HTM
        http://michael.toren.net/mirrors/chip8/chip8def.htm

    The CPU itself holds no machine state. Registers, memory, the stack, the
    display, the keypad and the timers all live in a MachineState that is
    passed to step() and tick_timers(), so one CPU can drive any number of
    machines.
    """
    def __init__(self, random_source=random_byte):
        """
        Initialize the Chip8 CPU.

        :param random_source: a callable returning a random byte, used by
            Cxnn. Tests pass a fixed value here.
        """
        self.cpu_random_source = random_source

        # The operation_lookup table is executed according to the most
        # significant nibble of the operand (e.g. operand 8nnn would call
        # self.cpu_execute_logical_instruction)
        self.cpu_operation_lookup = {
            0x0: self.cpu_clear_return,                  # 00E0, 00EE
            0x1: self.cpu_jump_to_address,               # 1nnn - JUMP nnn
            0x2: self.cpu_jump_to_subroutine,            # 2nnn - CALL nnn
            0x3: self.cpu_skip_if_reg_equal_val,         # 3snn - SKE  Vs, nn
            0x4: self.cpu_skip_if_reg_not_equal_val,     # 4snn - SKNE Vs, nn
            0x5: self.cpu_skip_if_reg_equal_reg,         # 5st0 - SKE  Vs, Vt
            0x6: self.cpu_move_value_to_reg,             # 6snn - LOAD Vs, nn
            0x7: self.cpu_add_value_to_reg,              # 7snn - ADD  Vs, nn
            0x8: self.cpu_execute_logical_instruction,   # see subfunctions below
            0x9: self.cpu_skip_if_reg_not_equal_reg,     # 9st0 - SKNE Vs, Vt
            0xA: self.cpu_load_index_reg_with_value,     # Annn - LOAD I, nnn
            0xB: self.cpu_jump_to_register_plus_value,   # Bnnn - JUMP [V0] + nnn
            0xC: self.cpu_generate_random_number,        # Ctnn - RAND Vt, nn
            0xD: self.cpu_draw_sprite,                   # Dstn - DRAW Vs, Vy, n
            0xE: self.cpu_keyboard_routines,             # see subfunctions below
            0xF: self.cpu_misc_routines,                 # see subfunctions below
        }

        # This set of operations is invoked when the operand loaded into the
        # CPU starts with 8 (e.g. operand 8nn0 would call
        # self.cpu_move_reg_into_reg)
        self.cpu_logical_operation_lookup = {
            0x0: self.cpu_move_reg_into_reg,             # 8st0 - LOAD Vs, Vt
            0x1: self.cpu_logical_or,                    # 8st1 - OR   Vs, Vt
            0x2: self.cpu_logical_and,                   # 8st2 - AND  Vs, Vt
            0x3: self.cpu_exclusive_or,                  # 8st3 - XOR  Vs, Vt
            0x4: self.cpu_add_reg_to_reg,                # 8st4 - ADD  Vs, Vt
            0x5: self.cpu_subtract_reg_from_reg,         # 8st5 - SUB  Vs, Vt
            0x6: self.cpu_right_shift_reg,               # 8st6 - SHR  Vs
            0x7: self.cpu_subtract_reg_from_reg1,        # 8st7 - SUBN Vs, Vt
            0xE: self.cpu_left_shift_reg,                # 8stE - SHL  Vs
        }

        # This set of operations is invoked when the operand loaded into the
        # CPU starts with F (e.g. operand Fn07 would call
        # self.cpu_move_delay_timer_into_reg)
        self.cpu_misc_routine_lookup = {
            0x07: self.cpu_move_delay_timer_into_reg,    # Ft07 - LOAD Vt, DELAY
            0x0A: self.cpu_wait_for_keypress,            # Ft0A - KEYD Vt
            0x15: self.cpu_move_reg_into_delay_timer,    # Fs15 - LOAD DELAY, Vs
            0x18: self.cpu_move_reg_into_sound_timer,    # Fs18 - LOAD SOUND, Vs
            0x1E: self.cpu_add_reg_into_index,           # Fs1E - ADD  I, Vs
            0x29: self.cpu_load_index_with_reg_sprite,   # Fs29 - LOAD I, Vs
            0x33: self.cpu_store_bcd_in_memory,          # Fs33 - BCD
            0x55: self.cpu_store_regs_in_memory,         # Fs55 - STOR [I], Vs
            0x65: self.cpu_read_regs_from_memory,        # Fs65 - LOAD Vs, [I]
        }

    def step(self, state):
        """
        Execute the next instruction pointed to by the program counter. The
        program counter is advanced past the instruction before it runs, so
        skips only need to add a further 2.

        Nothing happens unless the machine is running. While the machine is
        waiting for a key press (Fx0A), each step polls the keypad instead of
        fetching.

        Stack faults are fatal: the program counter is put back on the
        faulting instruction, the machine is moved to the quit state, and the
        exception propagates to the caller.

        :param state: the MachineState to advance
        :return: the executed Instruction, or None if nothing was executed
        """
        run_state = state.run_state
        if not run_state.is_running:
            return None

        if run_state.awaiting_key:
            return self.cpu_poll_keypress(state)

        address = state.pc
        instruction = decode(state.read_word(address))
        state.pc = address + 2

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("%04X: %04X  %s", address, instruction.opcode, disassemble(instruction))

        try:
            self.cpu_operation_lookup[family(instruction)](state, instruction)
        except UnknownOpCodeException as error:
            logger.warning("%s at %04X, ignored", error, address)
        except (StackOverflow, StackUnderflow) as error:
            state.pc = address
            run_state.quit()
            logger.error("%s\n%s", error, state)
            raise
        return instruction

    def tick_timers(self, state):
        """
        Decrement both the sound and delay timer. Called 60 times a second
        by the driver, independently of how many instructions are run.

        :param state: the MachineState whose timers to tick
        :return: True while the tone should be playing
        """
        if not state.run_state.is_running:
            return False

        if state.timers['delay'] != 0:
            state.timers['delay'] -= 1

        if state.timers['sound'] != 0:
            state.timers['sound'] -= 1

        return state.timers['sound'] > 0

    def cpu_poll_keypress(self, state):
        """
        Finish an Fx0A wait if a key is down. The program counter was left on
        the Fx0A instruction when the wait began, so it is moved past it here.
        """
        key_pressed = state.first_pressed_key()
        if key_pressed is None:
            return None

        instruction = decode(state.read_word(state.pc))
        target = state.run_state.end_key_wait()
        state.v[target] = key_pressed
        state.pc += 2
        logger.debug("Key %X pressed, stored in V%X", key_pressed, target)
        return instruction

    def cpu_execute_logical_instruction(self, state, inst):
        """
        Execute the logical instruction based upon the lowest nibble of the
        operand.
        """
        try:
            operation = self.cpu_logical_operation_lookup[inst.n]
        except KeyError:
            raise UnknownOpCodeException(inst.opcode)
        operation(state, inst)

    def cpu_keyboard_routines(self, state, inst):
        """
        Run the specified keyboard routine based upon the operand. These
        operations are:

            Es9E - SKPR Vs
            EsA1 - SKUP Vs

        0x9E will check to see if the key specified in the source register is
        pressed, and if it is, skips the next instruction. Operation 0xA1 will
        again check for the specified keypress in the source register, and
        if it is NOT pressed, will skip the next instruction. The register
        calculations are as follows:

           Bits:  15-12    11-8      7-4      3-0
                  unused   source  9 or A    E or 1
        """
        key_to_check = state.v[inst.x] & 0xF
        key_pressed = state.keypad[key_to_check]

        # Skip if the key specified in the source register is pressed
        if inst.nn == 0x9E:
            if key_pressed:
                state.pc += 2

        # Skip if the key specified in the source register is not pressed
        elif inst.nn == 0xA1:
            if not key_pressed:
                state.pc += 2

        else:
            raise UnknownOpCodeException(inst.opcode)

    def cpu_misc_routines(self, state, inst):
        """
        Will execute one of the routines specified in misc_routines.
        """
        try:
            operation = self.cpu_misc_routine_lookup[inst.nn]
        except KeyError:
            raise UnknownOpCodeException(inst.opcode)
        operation(state, inst)

    def cpu_clear_return(self, state, inst):
        """
        Opcodes starting with a 0 are one of the following instructions:

            0nnn - Jump to machine code function (ignored)
            00E0 - Clear the display
            00EE - Return from subroutine
        """
        if inst.nnn == 0x0E0:
            state.display.clear()

        elif inst.nnn == 0x0EE:
            state.pc = state.stack.pop(fault_address=state.pc - 2)

    def cpu_jump_to_address(self, state, inst):
        """
        1nnn - JUMP nnn

        Jump to address. The address to jump to is calculated using the bits
        taken from the operand as follows:

           Bits:  15-12    11-8      7-4      3-0
                  unused  address  address  address
        """
        state.pc = inst.nnn

    def cpu_jump_to_subroutine(self, state, inst):
        """
        2nnn - CALL nnn

        Jump to subroutine. Save the current program counter on the stack. The
        subroutine to jump to is taken from the operand as follows:

           Bits:  15-12    11-8      7-4      3-0
                  unused  address  address  address
        """
        state.stack.push(state.pc, fault_address=state.pc - 2)
        state.pc = inst.nnn

    def cpu_skip_if_reg_equal_val(self, state, inst):
        """
        3snn - SKE Vs, nn

        Skip if register contents equal to constant value. The calculation for
        the register and constant is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source  constant  constant

        The program counter is updated to skip the next instruction by
        advancing it by 2 bytes.
        """
        if state.v[inst.x] == inst.nn:
            state.pc += 2

    def cpu_skip_if_reg_not_equal_val(self, state, inst):
        """
        4snn - SKNE Vs, nn

        Skip if register contents not equal to constant value.
        """
        if state.v[inst.x] != inst.nn:
            state.pc += 2

    def cpu_skip_if_reg_equal_reg(self, state, inst):
        """
        5st0 - SKE Vs, Vt

        Skip if source register is equal to target register. The calculation
        for the registers to use is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source    target      0
        """
        if inst.n != 0:
            raise UnknownOpCodeException(inst.opcode)
        if state.v[inst.x] == state.v[inst.y]:
            state.pc += 2

    def cpu_move_value_to_reg(self, state, inst):
        """
        6snn - LOAD Vs, nn

        Move the constant value into the specified register. The calculation
        for the registers is performed on the operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    value     value
        """
        state.v[inst.x] = inst.nn

    def cpu_add_value_to_reg(self, state, inst):
        """
        7snn - ADD Vs, nn

        Add the constant value to the specified register, wrapping at 256.
        The carry flag is not touched.
        """
        state.v[inst.x] = (state.v[inst.x] + inst.nn) & 0xFF

    def cpu_move_reg_into_reg(self, state, inst):
        """
        8st0 - LOAD Vs, Vt

        Move the value of the source register into the value of the target
        register. The calculation for the registers is performed on the
        operand:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      0
        """
        state.v[inst.x] = state.v[inst.y]

    def cpu_logical_or(self, state, inst):
        """
        8ts1 - OR   Vs, Vt
        """
        state.v[inst.x] |= state.v[inst.y]

    def cpu_logical_and(self, state, inst):
        """
        8ts2 - AND  Vs, Vt
        """
        state.v[inst.x] &= state.v[inst.y]

    def cpu_exclusive_or(self, state, inst):
        """
        8ts3 - XOR  Vs, Vt
        """
        state.v[inst.x] ^= state.v[inst.y]

    def cpu_add_reg_to_reg(self, state, inst):
        """
        8ts4 - ADD  Vt, Vs

        Add the value in the source register to the value in the target
        register, and store the result in the target register. The register
        calculations are as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused   target    source      4

        If a carry is generated, set a carry flag in register VF.
        """
        temp = state.v[inst.x] + state.v[inst.y]
        state.v[0xF] = 1 if temp > 255 else 0
        state.v[inst.x] = temp & 0xFF

    def cpu_subtract_reg_from_reg(self, state, inst):
        """
        8ts5 - SUB  Vt, Vs

        Subtract the value in the source register from the value in the target
        register, and store the result in the target register.

        If a borrow is NOT generated, set a carry flag in register VF.
        """
        target_reg = state.v[inst.x]
        source_reg = state.v[inst.y]
        state.v[0xF] = 1 if target_reg >= source_reg else 0
        state.v[inst.x] = (target_reg - source_reg) & 0xFF

    def cpu_right_shift_reg(self, state, inst):
        """
        8s06 - SHR  Vs

        Shift the bits in the specified register 1 bit to the right. Bit
        0 will be shifted into register vf. The register calculation is
        as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused   source      0         6
        """
        source_reg = state.v[inst.x]
        state.v[0xF] = source_reg & 0x1
        state.v[inst.x] = source_reg >> 1

    def cpu_subtract_reg_from_reg1(self, state, inst):
        """
        8ts7 - SUBN Vt, Vs

        Subtract the value in the target register from the value in the source
        register, and store the result in the target register.

        If a borrow is NOT generated, set a carry flag in register VF.
        """
        target_reg = state.v[inst.x]
        source_reg = state.v[inst.y]
        state.v[0xF] = 1 if source_reg >= target_reg else 0
        state.v[inst.x] = (source_reg - target_reg) & 0xFF

    def cpu_left_shift_reg(self, state, inst):
        """
        8s0E - SHL  Vs

        Shift the bits in the specified register 1 bit to the left. Bit
        7 will be shifted into register vf.
        """
        source_reg = state.v[inst.x]
        state.v[0xF] = (source_reg & 0x80) >> 7
        state.v[inst.x] = (source_reg << 1) & 0xFF

    def cpu_skip_if_reg_not_equal_reg(self, state, inst):
        """
        9st0 - SKNE Vs, Vt

        Skip if source register is not equal to target register.
        """
        if inst.n != 0:
            raise UnknownOpCodeException(inst.opcode)
        if state.v[inst.x] != state.v[inst.y]:
            state.pc += 2

    def cpu_load_index_reg_with_value(self, state, inst):
        """
        Annn - LOAD I, nnn

        Load index register with constant value.
        """
        state.index = inst.nnn

    def cpu_jump_to_register_plus_value(self, state, inst):
        """
        Bnnn - JUMP [V0] + nnn

        Load the program counter with the address in the operand plus the
        value of register V0:

           Bits:  15-12     11-8      7-4       3-0
                  unused   address  address  address
        """
        state.pc = inst.nnn + state.v[0]

    def cpu_generate_random_number(self, state, inst):
        """
        Ctnn - RAND Vt, nn

        A random number between 0 and 255 is generated. The contents of it are
        then ANDed with the constant value passed in the operand. The result is
        stored in the target register.
        """
        state.v[inst.x] = self.cpu_random_source() & inst.nn

    def cpu_draw_sprite(self, state, inst):
        """
        Dxyn - DRAW x, y, num_bytes

        Draws the sprite pointed to in the index register at the specified
        x and y coordinates. Drawing is done via an XOR routine, meaning that
        if the target pixel is already turned on, and a pixel is set to be
        turned on at that same location via the draw, then the pixel is turned
        off. Each sprite is 8 bits (1 byte) wide. The num_bytes parameter sets
        how tall the sprite is. Consecutive bytes in the memory pointed to by
        the index register make up the bytes of the sprite, most significant
        bit leftmost. For example, assume that the index register pointed
        to the following 7 bytes:

                       bit 0 1 2 3 4 5 6 7

           byte 0          0 1 1 1 1 1 0 0
           byte 1          0 1 0 0 0 0 0 0
           byte 2          0 1 0 0 0 0 0 0
           byte 3          0 1 1 1 1 1 0 0
           byte 4          0 1 0 0 0 0 0 0
           byte 5          0 1 0 0 0 0 0 0
           byte 6          0 1 1 1 1 1 0 0

        This would draw a character on the screen that looks like an 'E'.

        The starting coordinates wrap around the screen, but the sprite
        itself does not: pixels past the right edge end the row, and rows
        past the bottom edge end the sprite. If any pixel is turned off by
        the draw, VF is set to 1, otherwise it is 0.

           Bits:  15-12     11-8      7-4       3-0
                  unused    x_source  y_source  num_bytes
        """
        display = state.display
        x_pos = state.v[inst.x] % display.width
        y_pos = state.v[inst.y] % display.height
        state.v[0xF] = 0

        for y_index in range(inst.n):
            y_coord = y_pos + y_index
            if y_coord >= display.height:
                break

            sprite_byte = state.read_byte(state.index + y_index)
            for x_index in range(8):
                x_coord = x_pos + x_index
                if x_coord >= display.width:
                    break

                if sprite_byte & (0x80 >> x_index):
                    if display.xor_pixel(x_coord, y_coord):
                        state.v[0xF] = 1

    def cpu_move_delay_timer_into_reg(self, state, inst):
        """
        Ft07 - LOAD Vt, DELAY

        Move the value of the delay timer into the target register.
        """
        state.v[inst.x] = state.timers['delay']

    def cpu_wait_for_keypress(self, state, inst):
        """
        Ft0A - KEYD Vt

        Stop execution until a key is pressed. Move the value of the key
        pressed into the specified register. The register calculation is
        as follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    target     0         A

        If a key is already down it is taken straight away. Otherwise the
        program counter is put back on this instruction and the machine waits
        for a key; see step().
        """
        key_pressed = state.first_pressed_key()
        if key_pressed is not None:
            state.v[inst.x] = key_pressed
            return

        state.pc -= 2
        state.run_state.begin_key_wait(inst.x)

    def cpu_move_reg_into_delay_timer(self, state, inst):
        """
        Fs15 - LOAD DELAY, Vs
        """
        state.timers['delay'] = state.v[inst.x]

    def cpu_move_reg_into_sound_timer(self, state, inst):
        """
        Fs18 - LOAD SOUND, Vs
        """
        state.timers['sound'] = state.v[inst.x]

    def cpu_add_reg_into_index(self, state, inst):
        """
        Fs1E - ADD  I, Vs

        Add the value of the register into the index register value. VF is
        not affected.
        """
        state.index += state.v[inst.x]

    def cpu_load_index_with_reg_sprite(self, state, inst):
        """
        Fs29 - LOAD I, Vs

        Load the index with the sprite indicated in the source register. All
        sprites are 5 bytes long, so the location of the specified sprite
        is its index multiplied by 5. The register calculation is as
        follows:

           Bits:  15-12     11-8      7-4       3-0
                  unused    source     2         9
        """
        state.index = FONT_START + state.v[inst.x] * FONT_GLYPH_SIZE

    def cpu_store_bcd_in_memory(self, state, inst):
        """
        Fs33 - BCD

        Take the value stored in source and place the digits in the following
        locations:

            hundreds   -> self.memory[index]
            tens       -> self.memory[index + 1]
            ones       -> self.memory[index + 2]

        For example, if the value is 123, then the following values will be
        placed at the specified locations:

             1 -> self.memory[index]
             2 -> self.memory[index + 1]
             3 -> self.memory[index + 2]
        """
        value = state.v[inst.x]
        state.write_byte(state.index, value // 100)
        state.write_byte(state.index + 1, (value // 10) % 10)
        state.write_byte(state.index + 2, value % 10)

    def cpu_store_regs_in_memory(self, state, inst):
        """
        Fs55 - STOR [I], Vs

        Store the V registers V0 through Vs in the memory pointed to by the
        index register. The index register is left unchanged.
        """
        for counter in range(inst.x + 1):
            state.write_byte(state.index + counter, state.v[counter])

    def cpu_read_regs_from_memory(self, state, inst):
        """
        Fs65 - LOAD Vs, [I]

        Read the V registers V0 through Vs from the memory pointed to by the
        index register. The index register is left unchanged.
        """
        for counter in range(inst.x + 1):
            state.v[counter] = state.read_byte(state.index + counter)
