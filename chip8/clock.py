# The rate at which the delay and sound timers count down
TIMER_FREQUENCY = 60

# The length of one timer tick in milliseconds
TICK_INTERVAL = 1000.0 / TIMER_FREQUENCY


class TimerAccumulator(object):
    """
    Converts elapsed host time into 60Hz timer ticks. The driver runs as
    many instructions as the host allows and feeds the elapsed milliseconds
    in here; whole ticks come out and the remainder is carried over, so the
    timers keep their rate however fast the instructions run.
    """
    def __init__(self, interval=TICK_INTERVAL, max_ticks=TIMER_FREQUENCY):
        """
        :param interval: the tick length in milliseconds
        :param max_ticks: the most ticks returned by a single call, so a long
            stall (window drag, debugger) does not drain the timers at once
        """
        self.interval = interval
        self.max_ticks = max_ticks
        self.elapsed = 0.0

    def advance(self, elapsed_ms):
        """
        :param elapsed_ms: milliseconds since the previous call
        :return: the number of timer ticks now due
        """
        self.elapsed += elapsed_ms
        ticks = int(self.elapsed // self.interval)
        self.elapsed -= ticks * self.interval
        if ticks > self.max_ticks:
            ticks = self.max_ticks
        return ticks

    def reset(self):
        self.elapsed = 0.0
