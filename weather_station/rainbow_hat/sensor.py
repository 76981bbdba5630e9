import logging
import threading
from dataclasses import dataclass

import smbus2
from bmp280 import BMP280

from ..devices import SensorListener
from ..models import SensorKind, SensorReading


@dataclass
class BMP280Sample:
    temperature_c: float
    pressure_hpa: float


class BMP280SensorDriver:
    """Polls the Rainbow HAT BMP280 and delivers readings to listeners.

    Delivery happens on the driver's own polling thread, one reading per
    registered sensor kind per poll.
    """

    def __init__(self, i2c_bus: int, i2c_address: int, poll_secs: float = 1.0) -> None:
        self._bus = smbus2.SMBus(i2c_bus)
        self._sensor = BMP280(i2c_addr=i2c_address, i2c_dev=self._bus)
        self._sensor.setup(mode="normal", temperature_oversampling=2, pressure_oversampling=16)
        self._poll_secs = max(0.05, float(poll_secs))
        self._kinds: list[SensorKind] = []
        self._listeners: list[SensorListener] = []
        self._lock = threading.Lock()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def read(self) -> BMP280Sample:
        return BMP280Sample(
            temperature_c=float(self._sensor.get_temperature()),
            pressure_hpa=float(self._sensor.get_pressure()),
        )

    def _register(self, kind: SensorKind) -> None:
        with self._lock:
            if kind not in self._kinds:
                self._kinds.append(kind)

    def register_temperature_sensor(self) -> None:
        self._register(SensorKind.TEMPERATURE)

    def register_pressure_sensor(self) -> None:
        self._register(SensorKind.PRESSURE)

    def add_listener(self, listener: SensorListener) -> None:
        with self._lock:
            self._listeners.append(listener)
            if self._thread is None:
                self._stop.clear()
                self._thread = threading.Thread(target=self._poll, name="bmp280-poll", daemon=True)
                self._thread.start()

    def remove_listener(self, listener: SensorListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def _poll(self) -> None:
        while not self._stop.wait(self._poll_secs):
            try:
                sample = self.read()
            except OSError as exc:
                logging.warning("BMP280 read failed: %s", exc)
                continue
            values = {
                SensorKind.TEMPERATURE: sample.temperature_c,
                SensorKind.PRESSURE: sample.pressure_hpa,
            }
            with self._lock:
                kinds = list(self._kinds)
                listeners = list(self._listeners)
            for kind in kinds:
                reading = SensorReading(kind, values[kind])
                for listener in listeners:
                    try:
                        listener.on_reading(reading)
                    except Exception:
                        logging.error("Sensor listener failed on %s reading", kind, exc_info=True)

    def close(self) -> None:
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None and thread is not threading.current_thread():
            thread.join(self._poll_secs * 2 + 1)
        self._bus.close()
