import pygame

# Sets which keys on the keyboard map to the Chip 8 keys. The hex keypad
#
#     1 2 3 C
#     4 5 6 D
#     7 8 9 E
#     A 0 B F
#
# is laid over the left hand side of a QWERTY keyboard.
KEY_MAPPINGS = {
    pygame.K_1: 0x1,
    pygame.K_2: 0x2,
    pygame.K_3: 0x3,
    pygame.K_4: 0xC,
    pygame.K_q: 0x4,
    pygame.K_w: 0x5,
    pygame.K_e: 0x6,
    pygame.K_r: 0xD,
    pygame.K_a: 0x7,
    pygame.K_s: 0x8,
    pygame.K_d: 0x9,
    pygame.K_f: 0xE,
    pygame.K_z: 0xA,
    pygame.K_x: 0x0,
    pygame.K_c: 0xB,
    pygame.K_v: 0xF,
}

# Keys that control the emulator rather than the program
PAUSE_KEY = pygame.K_SPACE
QUIT_KEY = pygame.K_ESCAPE


def handle_event(event, state):
    """
    Apply a single pygame event to the machine: keypad presses and releases,
    pause toggling and quitting.

    :param event: the pygame event
    :param state: the MachineState to update
    :return: True if the event was consumed
    """
    run_state = state.run_state

    if event.type == pygame.QUIT:
        run_state.quit()
        return True

    if event.type == pygame.KEYDOWN:
        if event.key == QUIT_KEY:
            run_state.quit()
            return True
        if event.key == PAUSE_KEY:
            run_state.toggle_pause()
            return True

    if event.type in (pygame.KEYDOWN, pygame.KEYUP):
        key_index = KEY_MAPPINGS.get(event.key)
        if key_index is not None:
            state.set_key(key_index, event.type == pygame.KEYDOWN)
            return True

    return False
