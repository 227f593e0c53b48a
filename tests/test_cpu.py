"""
CPU instruction tests
=====================

Each opcode is placed at the program counter and stepped through the full
fetch, decode and execute path.
"""

import logging

import pytest

from chip8.cpu import CPU
from chip8.exception import StackOverflow, StackUnderflow
from chip8.stack import STACK_DEPTH


# =============================================================================
# Fetch and step
# =============================================================================

class TestStep:

    def test_pc_advances_before_execute(self, state, execute):
        inst = execute(0x6012)
        assert inst.opcode == 0x6012
        assert state.pc == 0x202

    def test_opcode_fetched_big_endian(self, state, cpu):
        state.load_rom(b"\x61\x23")
        inst = cpu.step(state)
        assert inst.x == 1 and inst.nn == 0x23
        assert state.v[1] == 0x23

    def test_paused_machine_does_not_step(self, state, execute):
        state.run_state.pause()
        assert execute(0x6012) is None
        assert state.pc == 0x200
        assert state.v[0] == 0

    def test_quit_machine_does_not_step(self, state, execute):
        state.run_state.quit()
        assert execute(0x6012) is None
        assert state.pc == 0x200

    def test_trace_logged_at_debug(self, execute, caplog):
        with caplog.at_level(logging.DEBUG, logger="chip8.cpu"):
            execute(0x6012)
        assert "0200: 6012  LOAD V0, 12" in caplog.text

    @pytest.mark.parametrize("opcode", [0x5121, 0x912F, 0x8128, 0xE1FF, 0xF1FF])
    def test_unrecognized_opcode_is_ignored(self, state, execute, opcode, caplog):
        state.v[1] = 7
        with caplog.at_level(logging.WARNING, logger="chip8.cpu"):
            inst = execute(opcode)
        assert inst.opcode == opcode
        assert state.pc == 0x202
        assert state.v[1] == 7
        assert state.run_state.is_running
        assert "Unknown op-code: {:04X}".format(opcode) in caplog.text

    def test_machine_code_routine_is_ignored(self, state, execute):
        execute(0x0123)
        assert state.pc == 0x202
        assert len(state.stack) == 0


# =============================================================================
# Flow control
# =============================================================================

class TestFlowControl:

    def test_jump(self, state, execute):
        execute(0x1ABC)
        assert state.pc == 0xABC

    def test_call_and_return(self, state, cpu, assemble):
        # 0x200 CALL 206, 0x206 RTS
        state.load_rom(assemble(0x2206, 0x0000, 0x0000, 0x00EE))
        cpu.step(state)
        assert state.pc == 0x206
        assert list(state.stack) == [0x202]
        cpu.step(state)
        assert state.pc == 0x202
        assert len(state.stack) == 0

    def test_thirteenth_nested_call_overflows(self, state, cpu, assemble):
        # 0x200 CALL 200, forever
        state.load_rom(assemble(0x2200))
        for _ in range(STACK_DEPTH):
            cpu.step(state)
        assert len(state.stack) == STACK_DEPTH
        with pytest.raises(StackOverflow) as error:
            cpu.step(state)
        assert error.value.address == 0x200
        assert state.pc == 0x200
        assert len(state.stack) == STACK_DEPTH
        assert state.run_state.should_quit

    def test_return_with_empty_stack_underflows(self, state, execute):
        with pytest.raises(StackUnderflow) as error:
            execute(0x00EE)
        assert error.value.address == 0x200
        assert state.pc == 0x200
        assert state.run_state.should_quit
        assert execute(0x00EE) is None

    def test_jump_plus_v0(self, state, execute):
        state.v[0] = 0x10
        state.v[1] = 0x99
        execute(0xB300)
        assert state.pc == 0x310

    @pytest.mark.parametrize("opcode, value, expected_pc", [
        (0x3A12, 0x12, 0x204),
        (0x3A12, 0x13, 0x202),
        (0x4A12, 0x12, 0x202),
        (0x4A12, 0x13, 0x204),
    ])
    def test_skip_on_constant(self, state, execute, opcode, value, expected_pc):
        state.v[0xA] = value
        execute(opcode)
        assert state.pc == expected_pc

    @pytest.mark.parametrize("opcode, y_value, expected_pc", [
        (0x5120, 0x33, 0x204),
        (0x5120, 0x34, 0x202),
        (0x9120, 0x33, 0x202),
        (0x9120, 0x34, 0x204),
    ])
    def test_skip_on_register(self, state, execute, opcode, y_value, expected_pc):
        state.v[1] = 0x33
        state.v[2] = y_value
        execute(opcode)
        assert state.pc == expected_pc


# =============================================================================
# Registers and arithmetic
# =============================================================================

class TestArithmetic:

    def test_load_constant_every_register_and_value(self, state, execute):
        for register in range(16):
            for value in range(256):
                state.pc = 0x200
                execute(0x6000 | (register << 8) | value)
                assert state.v[register] == value

    def test_add_constant_wraps_without_flag(self, state, execute):
        state.v[3] = 200
        state.v[0xF] = 0x42
        execute(0x7340)
        execute(0x7350)
        assert state.v[3] == (200 + 0x40 + 0x50) % 256
        assert state.v[0xF] == 0x42

    @pytest.mark.parametrize("opcode, expected", [
        (0x8120, 0x0F),
        (0x8121, 0xFF),
        (0x8122, 0x00),
        (0x8123, 0xFF),
    ])
    def test_logical(self, state, execute, opcode, expected):
        state.v[1] = 0xF0
        state.v[2] = 0x0F
        execute(opcode)
        assert state.v[1] == expected
        assert state.v[2] == 0x0F

    @pytest.mark.parametrize("x_value, y_value, result, flag", [
        (250, 10, 4, 1),
        (245, 10, 255, 0),
        (255, 1, 0, 1),
    ])
    def test_add_registers(self, state, execute, x_value, y_value, result, flag):
        state.v[1] = x_value
        state.v[2] = y_value
        execute(0x8124)
        assert state.v[1] == result
        assert state.v[0xF] == flag

    @pytest.mark.parametrize("x_value, y_value, result, flag", [
        (5, 10, 251, 0),
        (10, 5, 5, 1),
        (7, 7, 0, 1),
    ])
    def test_subtract(self, state, execute, x_value, y_value, result, flag):
        state.v[1] = x_value
        state.v[2] = y_value
        execute(0x8125)
        assert state.v[1] == result
        assert state.v[0xF] == flag

    @pytest.mark.parametrize("x_value, y_value, result, flag", [
        (5, 10, 5, 1),
        (10, 5, 251, 0),
        (7, 7, 0, 1),
    ])
    def test_subtract_reversed(self, state, execute, x_value, y_value, result, flag):
        state.v[1] = x_value
        state.v[2] = y_value
        execute(0x8127)
        assert state.v[1] == result
        assert state.v[0xF] == flag

    def test_shift_right(self, state, execute):
        state.v[1] = 0x05
        execute(0x8106)
        assert state.v[1] == 0x02
        assert state.v[0xF] == 1

    def test_shift_left(self, state, execute):
        state.v[1] = 0x81
        execute(0x810E)
        assert state.v[1] == 0x02
        assert state.v[0xF] == 1
        execute(0x810E)
        assert state.v[1] == 0x04
        assert state.v[0xF] == 0

    def test_result_overwrites_flag_when_target_is_vf(self, state, execute):
        state.v[0xF] = 0x06
        execute(0x8F06)
        assert state.v[0xF] == 0x03

    def test_add_result_overwrites_carry_when_target_is_vf(self, state, execute):
        state.v[0xF] = 250
        state.v[1] = 10
        execute(0x8F14)
        assert state.v[0xF] == 4

    def test_subtract_result_overwrites_borrow_when_target_is_vf(self, state, execute):
        state.v[0xF] = 20
        state.v[1] = 5
        execute(0x8F15)
        assert state.v[0xF] == 15

    def test_load_index(self, state, execute):
        execute(0xA123)
        assert state.index == 0x123

    def test_add_index_leaves_flag(self, state, execute):
        state.index = 0xFFF0
        state.v[2] = 0x20
        state.v[0xF] = 0
        execute(0xF21E)
        assert state.index == 0x0010
        assert state.v[0xF] == 0

    def test_random_masked(self, state, execute):
        execute(0xC30F)
        assert state.v[3] == 0x0F

    def test_random_uses_source(self, state):
        cpu = CPU(random_source=lambda: 0xA5)
        state.load_rom(b"\xC4\xF0")
        cpu.step(state)
        assert state.v[4] == 0xA0


# =============================================================================
# Drawing
# =============================================================================

class TestDraw:

    def test_draw_twice_erases_and_collides(self, state, execute):
        # Glyph "0" at the font base: F0 90 90 90 F0
        execute(0xA000)
        execute(0xD015)
        assert state.v[0xF] == 0
        assert state.display.lit_pixels() == 14
        assert state.display.get_pixel(0, 0)
        assert not state.display.get_pixel(1, 1)
        execute(0xD015)
        assert state.v[0xF] == 1
        assert state.display.lit_pixels() == 0

    def test_clear_draw_clear(self, state, execute):
        execute(0x00E0)
        execute(0xA000)
        execute(0xD015)
        execute(0x00E0)
        assert state.display.lit_pixels() == 0

    def test_flag_cleared_at_draw_start(self, state, execute):
        state.v[0xF] = 1
        execute(0xA000)
        execute(0xD011)
        assert state.v[0xF] == 0

    def test_zero_height_draws_nothing(self, state, execute):
        execute(0xD010)
        assert state.display.lit_pixels() == 0

    def test_start_position_wraps(self, state, execute):
        state.memory[0x300] = 0x80
        state.v[0] = 64 + 5
        state.v[1] = 32 + 8
        execute(0xA300)
        execute(0xD011)
        assert state.display.get_pixel(5, 8)
        assert state.display.lit_pixels() == 1

    def test_right_edge_clips(self, state, execute):
        state.memory[0x300] = 0xFF
        state.v[0] = 62
        execute(0xA300)
        execute(0xD011)
        assert state.display.get_pixel(62, 0)
        assert state.display.get_pixel(63, 0)
        assert not state.display.get_pixel(0, 0)
        assert state.display.lit_pixels() == 2

    def test_bottom_edge_clips(self, state, execute):
        state.memory[0x300] = 0x80
        state.memory[0x301] = 0x80
        state.v[1] = 31
        execute(0xA300)
        execute(0xD012)
        assert state.display.get_pixel(0, 31)
        assert not state.display.get_pixel(0, 0)
        assert state.display.lit_pixels() == 1

    def test_font_sprite_address(self, state, execute):
        state.v[5] = 0xA
        execute(0xF529)
        assert state.index == 50

    def test_font_sprite_address_uses_whole_register(self, state, execute):
        state.v[5] = 0x10
        execute(0xF529)
        assert state.index == 0x50


# =============================================================================
# Keypad
# =============================================================================

class TestKeypad:

    @pytest.mark.parametrize("opcode, pressed, expected_pc", [
        (0xE39E, True, 0x204),
        (0xE39E, False, 0x202),
        (0xE3A1, True, 0x202),
        (0xE3A1, False, 0x204),
    ])
    def test_skip_on_key(self, state, execute, opcode, pressed, expected_pc):
        state.v[3] = 0xC
        state.set_key(0xC, pressed)
        execute(opcode)
        assert state.pc == expected_pc

    def test_wait_blocks_until_key(self, state, cpu, assemble):
        state.load_rom(assemble(0xF50A))
        for _ in range(5):
            cpu.step(state)
            assert state.pc == 0x200
        assert state.run_state.awaiting_key
        assert state.v[5] == 0

        state.set_key(0x9, True)
        state.set_key(0xE, True)
        inst = cpu.step(state)
        assert inst.opcode == 0xF50A
        assert state.v[5] == 0x9
        assert state.pc == 0x202
        assert not state.run_state.awaiting_key

    def test_wait_with_key_already_down(self, state, execute):
        state.set_key(0x4, True)
        execute(0xF20A)
        assert state.v[2] == 0x4
        assert state.pc == 0x202
        assert not state.run_state.awaiting_key

    def test_timers_run_while_waiting(self, state, cpu, execute):
        state.timers['delay'] = 3
        execute(0xF00A)
        assert state.run_state.awaiting_key
        cpu.tick_timers(state)
        assert state.delay_timer == 2

    def test_wait_held_while_paused(self, state, cpu, execute):
        execute(0xF00A)
        state.run_state.pause()
        state.set_key(0x1, True)
        assert cpu.step(state) is None
        assert state.v[0] == 0
        state.run_state.resume()
        cpu.step(state)
        assert state.v[0] == 0x1
        assert state.pc == 0x202


# =============================================================================
# Timers and memory
# =============================================================================

class TestTimersAndMemory:

    def test_timer_registers(self, state, execute):
        state.v[1] = 0x30
        execute(0xF115)
        execute(0xF118)
        assert state.delay_timer == 0x30
        assert state.sound_timer == 0x30
        execute(0xF207)
        assert state.v[2] == 0x30

    def test_tick_decrements_to_zero(self, state, cpu):
        state.timers['delay'] = 1
        state.timers['sound'] = 2
        assert cpu.tick_timers(state) is True
        assert state.delay_timer == 0
        assert cpu.tick_timers(state) is False
        assert cpu.tick_timers(state) is False
        assert state.delay_timer == 0
        assert state.sound_timer == 0

    def test_tick_skipped_while_paused(self, state, cpu):
        state.timers['delay'] = 5
        state.timers['sound'] = 5
        state.run_state.pause()
        assert cpu.tick_timers(state) is False
        assert state.delay_timer == 5
        assert state.sound_timer == 5

    def test_bcd(self, state, execute):
        state.v[2] = 123
        state.index = 0x300
        execute(0xF233)
        assert state.memory[0x300:0x303] == bytes([1, 2, 3])

    def test_store_and_load_registers(self, state, execute):
        state.index = 0x300
        for register in range(4):
            state.v[register] = 0x10 + register
        execute(0xF355)
        assert state.memory[0x300:0x305] == bytes([0x10, 0x11, 0x12, 0x13, 0x00])
        assert state.index == 0x300

        state.v[0:4] = [0, 0, 0, 0]
        execute(0xF265)
        assert state.v[0:4] == [0x10, 0x11, 0x12, 0]
        assert state.index == 0x300
