import rainbowhat

_MAX_BRIGHTNESS = 15


class AlphanumericDisplay:
    """Four character HT16K33 display on the Rainbow HAT."""

    def __init__(self) -> None:
        self._display = rainbowhat.display
        self._enabled = False

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        self._display.set_brightness(_MAX_BRIGHTNESS if self._enabled else 0)
        if not self._enabled:
            self.clear()

    def show(self, text: str) -> None:
        self._display.print_str(text[:4])
        self._display.show()

    def show_float(self, value: float) -> None:
        self._display.print_float(value, decimal_digits=2)
        self._display.show()

    def clear(self) -> None:
        self._display.clear()
        self._display.show()

    def close(self) -> None:
        # Nothing to release on the shared I2C bus beyond blanking
        self._display.clear()
        self._display.show()
