import logging
import math

from .cell import TemperatureCell
from .colors import DEFAULT_CALIBRATION, CalibrationTable, weather_strip_colors
from .devices import Display, LedStrip
from .models import LED_COUNT, SensorKind, SensorReading


class TemperatureHandler:
    """Shows temperatures on the display and records the ones that made it there."""

    def __init__(self, display: Display | None, cell: TemperatureCell) -> None:
        self.display = display
        self._cell = cell

    def update(self, temperature: float) -> None:
        display = self.display
        if display is None:
            return
        if not math.isfinite(temperature):
            logging.warning("Ignoring non-finite temperature: %s", temperature)
            return
        try:
            display.show_float(round(temperature, 2))
        except OSError as exc:
            logging.error("Error updating display: %s", exc)
            return
        self._cell.set(temperature)


class PressureHandler:
    def __init__(
        self,
        strip: LedStrip | None,
        table: CalibrationTable = DEFAULT_CALIBRATION,
        led_count: int = LED_COUNT,
    ) -> None:
        self.strip = strip
        self._table = table
        self._led_count = led_count

    def update(self, pressure: float) -> None:
        strip = self.strip
        if strip is None:
            return
        logging.debug("Pressure reading: %s hPa", pressure)
        colors = weather_strip_colors(pressure, self._table, self._led_count)
        logging.debug("Strip colors: %s", ["#%06X" % c for c in colors])
        try:
            strip.write(colors)
        except OSError as exc:
            logging.error("Error updating ledstrip: %s", exc)


class SensorRouter:
    """Sensor listener that hands each reading to the handler for its kind.

    Runs on whatever thread the sensor driver delivers on and does not queue.
    """

    def __init__(self, temperature: TemperatureHandler, pressure: PressureHandler) -> None:
        self.temperature = temperature
        self.pressure = pressure

    def on_reading(self, reading: SensorReading) -> None:
        match reading.kind:
            case SensorKind.TEMPERATURE:
                self.temperature.update(reading.value)
            case SensorKind.PRESSURE:
                self.pressure.update(reading.value)
            case _:
                logging.warning("Dropping reading of unknown kind: %r", reading.kind)

    def on_accuracy_changed(self, kind: SensorKind, accuracy: int) -> None:
        logging.debug("Accuracy changed for %s: %s", kind, accuracy)
