import logging
from array import array

import pygame

logger = logging.getLogger(__name__)

# The pitch of the beep in Hz
TONE_FREQUENCY = 440

# The mixer settings: sample rate, signed 16 bit samples, mono, buffer size
MIXER_SETTINGS = (44100, -16, 1, 512)

TONE_VOLUME = 0.1


def build_square_wave(sample_rate, bits, frequency=TONE_FREQUENCY):
    """
    Build one period of a square wave.

    :param sample_rate: the mixer sample rate
    :param bits: the mixer sample size, negative for signed samples
    :param frequency: the pitch of the tone
    :return: an array of signed 16 bit samples
    """
    period = int(round(sample_rate / frequency))
    amplitude = 2 ** (abs(bits) - 1) - 1
    samples = array('h', [0] * period)
    for time in range(period):
        samples[time] = amplitude if time < period / 2 else -amplitude
    return samples


class Beeper(object):
    """
    Plays a tone for as long as the sound timer is running. If the mixer
    cannot be opened (no audio device) the beeper stays silent.
    """
    def __init__(self):
        self.sound = None
        self.playing = False

    def init_audio(self):
        try:
            pygame.mixer.init(*MIXER_SETTINGS)
        except pygame.error as error:
            logger.warning("Audio unavailable, running silent: %s", error)
            return
        sample_rate, bits, _ = pygame.mixer.get_init()
        self.sound = pygame.mixer.Sound(buffer=build_square_wave(sample_rate, bits).tobytes())
        self.sound.set_volume(TONE_VOLUME)

    def update(self, tone_active):
        """
        Start or stop the tone.

        :param tone_active: True while the sound timer is non-zero
        """
        if self.sound is None or tone_active == self.playing:
            return
        if tone_active:
            self.sound.play(loops=-1)
        else:
            self.sound.stop()
        self.playing = tone_active

    def close(self):
        self.update(False)
        if self.sound is not None:
            pygame.mixer.quit()
            self.sound = None
