from collections.abc import Sequence

import rainbowhat

from ..models import LED_COUNT, rgb


class ApaLedStrip:
    """The Rainbow HAT's seven APA102 pixels.

    - write(): colors are 0xRRGGBB, leftmost pixel first
    - brightness is global, 0.0 to 1.0
    - I/O errors from the SPI bus surface as OSError
    """

    def __init__(self) -> None:
        self._rainbow = rainbowhat.rainbow
        self._rainbow.clear()

    def set_brightness(self, brightness: float) -> None:
        self._rainbow.set_brightness(max(0.0, min(1.0, float(brightness))))
        self._rainbow.show()

    def write(self, colors: Sequence[int]) -> None:
        if len(colors) != LED_COUNT:
            raise ValueError(f"Expected {LED_COUNT} colors, got {len(colors)}")
        # Pixel 6 is the leftmost on the board
        for i, color in enumerate(colors):
            r, g, b = rgb(color)
            self._rainbow.set_pixel(LED_COUNT - 1 - i, r, g, b)
        self._rainbow.show()

    def close(self) -> None:
        self._rainbow.clear()
        self._rainbow.show()
