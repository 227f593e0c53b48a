import logging
from enum import Enum

logger = logging.getLogger(__name__)


class RunState(Enum):
    RUNNING = 'running'
    PAUSED = 'paused'
    QUIT = 'quit'


class RunStateController(object):
    """
    Gates the step loop. The driver toggles between running and paused in
    response to the user, and moves to quit when the session ends or a fatal
    error stops the CPU.

    While running, the CPU can additionally be waiting for a key press (the
    Fx0A instruction). That sub-state is kept here rather than in the program
    counter, so that the driver and the tests can see it. Pausing while
    waiting keeps the wait, and resuming returns to it.
    """
    def __init__(self):
        self.state = RunState.RUNNING
        self.key_register = None

    def __repr__(self):
        if self.awaiting_key:
            return '<RunStateController {} awaiting key -> V{:X}>'.format(
                self.state.value, self.key_register)
        return '<RunStateController {}>'.format(self.state.value)

    @property
    def is_running(self):
        return self.state == RunState.RUNNING

    @property
    def is_paused(self):
        return self.state == RunState.PAUSED

    @property
    def should_quit(self):
        return self.state == RunState.QUIT

    @property
    def awaiting_key(self):
        return self.key_register is not None

    def pause(self):
        if self.state == RunState.RUNNING:
            self.state = RunState.PAUSED
            logger.info("Paused")

    def resume(self):
        if self.state == RunState.PAUSED:
            self.state = RunState.RUNNING
            logger.info("Resumed")

    def toggle_pause(self):
        if self.is_paused:
            self.resume()
        else:
            self.pause()

    def quit(self):
        self.state = RunState.QUIT

    def begin_key_wait(self, register):
        """
        Enter the awaiting-key sub-state. The pressed key will be stored in
        the given register once it arrives.

        :param register: the index of the V register to receive the key
        """
        self.key_register = register
        logger.debug("Waiting for key press into V%X", register)

    def end_key_wait(self):
        """
        Leave the awaiting-key sub-state.

        :return: the register that was waiting for the key
        """
        register = self.key_register
        self.key_register = None
        return register

    def reset(self):
        self.state = RunState.RUNNING
        self.key_register = None
