import json
import logging
import math

import pytest
from fakes import FakeClient, FakeDisplay, FakeStrip

from weather_station.cell import TemperatureCell
from weather_station.colors import weather_strip_colors
from weather_station.handlers import PressureHandler, SensorRouter, TemperatureHandler
from weather_station.models import SensorKind, SensorReading
from weather_station.publisher import TelemetryPublisher, build_payload


def _router(display: FakeDisplay, strip: FakeStrip, cell: TemperatureCell) -> SensorRouter:
    return SensorRouter(TemperatureHandler(display, cell), PressureHandler(strip))


def test_cell_holds_default_until_first_write() -> None:
    cell = TemperatureCell(30.0)
    assert cell.get() == 30.0
    assert not cell.has_reading
    cell.set(18.25)
    assert cell.get() == 18.25
    assert cell.has_reading


def test_router_dispatches_by_kind() -> None:
    display, strip, cell = FakeDisplay(), FakeStrip(), TemperatureCell(30.0)
    router = _router(display, strip, cell)

    router.on_reading(SensorReading(SensorKind.TEMPERATURE, 22.456))
    router.on_reading(SensorReading(SensorKind.PRESSURE, 1013.25))

    assert display.shown == [22.46]
    assert cell.get() == 22.456
    assert strip.writes == [weather_strip_colors(1013.25)]


def test_router_drops_unknown_kind(caplog: pytest.LogCaptureFixture) -> None:
    display, strip, cell = FakeDisplay(), FakeStrip(), TemperatureCell(30.0)
    router = _router(display, strip, cell)

    with caplog.at_level(logging.WARNING):
        router.on_reading(SensorReading("humidity", 40.0))  # type: ignore[arg-type]

    assert display.shown == []
    assert strip.writes == []
    assert "unknown kind" in caplog.text


def test_accuracy_change_has_no_effect() -> None:
    display, strip, cell = FakeDisplay(), FakeStrip(), TemperatureCell(30.0)
    router = _router(display, strip, cell)
    router.on_accuracy_changed(SensorKind.PRESSURE, 3)
    assert display.shown == [] and strip.writes == [] and cell.get() == 30.0


def test_failed_display_write_keeps_previous_temperature() -> None:
    # Second display write fails
    display, strip, cell = FakeDisplay(fail_on={2}), FakeStrip(), TemperatureCell(30.0)
    router = _router(display, strip, cell)
    client = FakeClient()
    publisher = TelemetryPublisher(client, cell, period_secs=2.0)

    router.on_reading(SensorReading(SensorKind.TEMPERATURE, 20.0))
    publisher.tick()
    router.on_reading(SensorReading(SensorKind.TEMPERATURE, 21.0))
    assert cell.get() == 20.0
    publisher.tick()
    router.on_reading(SensorReading(SensorKind.TEMPERATURE, 22.0))

    assert cell.get() == 22.0
    assert [e.payload for e in client.events] == [b'{"temperature": 20.00}', b'{"temperature": 20.00}']


def test_display_failure_is_logged_not_raised(caplog: pytest.LogCaptureFixture) -> None:
    handler = TemperatureHandler(FakeDisplay(fail_on={1}), TemperatureCell(30.0))
    with caplog.at_level(logging.ERROR):
        handler.update(25.0)
    assert "Error updating display" in caplog.text


def test_led_failure_is_swallowed(caplog: pytest.LogCaptureFixture) -> None:
    handler = PressureHandler(FakeStrip(fail_writes=True))
    with caplog.at_level(logging.ERROR):
        handler.update(1000.0)
    assert "Error updating ledstrip" in caplog.text


def test_handlers_without_devices_ignore_readings() -> None:
    cell = TemperatureCell(30.0)
    TemperatureHandler(None, cell).update(12.0)
    PressureHandler(None).update(1000.0)
    assert cell.get() == 30.0


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_temperature_is_ignored(value: float) -> None:
    display, cell = FakeDisplay(), TemperatureCell(30.0)
    handler = TemperatureHandler(display, cell)
    handler.update(19.0)

    handler.update(value)

    assert cell.get() == 19.0
    assert display.shown == [19.0]
    assert json.loads(build_payload(cell.get())) == {"temperature": 19.0}


class DetachedAfterCheck:
    """Reports a device on the first read of the attribute, None afterwards."""

    def __init__(self, device: object) -> None:
        self._device = device

    def __get__(self, obj: object, objtype: type | None = None) -> object:
        device, self._device = self._device, None
        return device

    def __set__(self, obj: object, value: object) -> None:
        pass


def test_temperature_handler_survives_concurrent_detach() -> None:
    fake_display, cell = FakeDisplay(), TemperatureCell(30.0)

    class Handler(TemperatureHandler):
        display = DetachedAfterCheck(fake_display)  # type: ignore[assignment]

    Handler(fake_display, cell).update(24.0)

    assert fake_display.shown == [24.0]
    assert cell.get() == 24.0


def test_pressure_handler_survives_concurrent_detach() -> None:
    fake_strip = FakeStrip()

    class Handler(PressureHandler):
        strip = DetachedAfterCheck(fake_strip)  # type: ignore[assignment]

    Handler(fake_strip).update(1000.0)

    assert fake_strip.writes == [weather_strip_colors(1000.0)]
