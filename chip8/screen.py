from pygame import display, Color, draw

from chip8.state import DISPLAY_HEIGHT, DISPLAY_WIDTH

SCREEN_NAME = 'CHIP8 Emulator'

# The colors of the pixels to draw. The Chip 8 supports two colors: 0 (off)
# and 1 (on). The format of the colors is in RGBA format.
PIXEL_COLORS = {
    0: Color(0, 0, 0, 255),
    1: Color(250, 250, 250, 255)
}


class Screen(object):
    """
    A class to present the Chip 8 display buffer in a pygame window. The
    original Chip 8 screen was 64 x 32 with 2 colors. In this emulator, this
    translates to color 0 (off) and color 1 (on). The screen only ever reads
    the display buffer.
    """
    def __init__(self, ratio, screen_height=DISPLAY_HEIGHT, screen_width=DISPLAY_WIDTH):
        """
        Initializes the main screen. The scale factor is used to modify
        the size of the main screen, since the original resolution of the
        Chip 8 was 64 x 32, which is quite small.

        :param ratio: the scaling factor to apply to the screen
        :param screen_height: the height of the screen
        :param screen_width: the width of the screen
        """
        self.screen_height = screen_height
        self.screen_width = screen_width
        self.scaling_ratio = ratio
        self.screen_surface = None

    def init_display(self):
        """
        Attempts to initialize a screen with the specified height and width.
        """
        display.init()
        self.screen_surface = display.set_mode(
            ((self.screen_width * self.scaling_ratio),
             (self.screen_height * self.scaling_ratio)))
        display.set_caption(SCREEN_NAME)
        self.screen_surface.fill(PIXEL_COLORS[0])
        display.flip()

    def draw_screen_pixel(self, x_axis_position, y_axis_position, pixel_color):
        """
        Turn a pixel on or off at the specified location on the screen. Note
        that the pixel will not automatically be drawn on the screen, you
        must call update_screen() to flip the drawing buffer to the
        display. The coordinate system starts with (0, 0) being in the top
        left of the screen.
        """
        x_axis_base_position = x_axis_position * self.scaling_ratio
        y_axis_base_position = y_axis_position * self.scaling_ratio
        draw.rect(self.screen_surface,
                  PIXEL_COLORS[pixel_color],
                  (x_axis_base_position, y_axis_base_position, self.scaling_ratio, self.scaling_ratio))

    def render(self, display_buffer):
        """
        Paint the whole display buffer onto the window surface and flip it.

        :param display_buffer: the machine's DisplayBuffer
        """
        self.screen_surface.fill(PIXEL_COLORS[0])
        for y_axis_position in range(display_buffer.height):
            for x_axis_position in range(display_buffer.width):
                if display_buffer.get_pixel(x_axis_position, y_axis_position):
                    self.draw_screen_pixel(x_axis_position, y_axis_position, 1)
        self.update_screen()

    @staticmethod
    def update_screen():
        """
        Updates the display by swapping the back buffer and screen buffer.
        """
        display.flip()

    @staticmethod
    def set_caption(caption):
        display.set_caption(caption)
