import threading


class TemperatureCell:
    """Latest confirmed temperature, handed from the sensor thread to the publisher.

    Holds the startup default until the first successful write. Last write wins.
    """

    def __init__(self, default: float) -> None:
        self._lock = threading.Lock()
        self._value = float(default)
        self._written = False

    def get(self) -> float:
        with self._lock:
            return self._value

    def set(self, value: float) -> None:
        with self._lock:
            self._value = float(value)
            self._written = True

    @property
    def has_reading(self) -> bool:
        with self._lock:
            return self._written
