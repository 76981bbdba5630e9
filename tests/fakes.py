from collections.abc import Sequence
from typing import Any

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from weather_station.credentials import MissingCredentialError
from weather_station.models import SensorKind, SensorReading, TelemetryEvent


def rsa_pkcs8_der() -> bytes:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        serialization.Encoding.DER,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


class FakeDisplay:
    def __init__(self, fail_on: set[int] | None = None, fail_close: bool = False) -> None:
        self.fail_on = fail_on or set()
        self.fail_close = fail_close
        self.enabled = False
        self.shown: list[Any] = []
        self.float_writes = 0
        self.close_calls = 0

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def show(self, text: str) -> None:
        self.shown.append(text)

    def show_float(self, value: float) -> None:
        self.float_writes += 1
        if self.float_writes in self.fail_on:
            raise OSError("i2c write failed")
        self.shown.append(value)

    def clear(self) -> None:
        self.shown.append("")

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise OSError("display close failed")


class FakeStrip:
    def __init__(self, fail_writes: bool = False, fail_close: bool = False) -> None:
        self.fail_writes = fail_writes
        self.fail_close = fail_close
        self.brightness: float | None = None
        self.writes: list[list[int]] = []
        self.close_calls = 0

    def set_brightness(self, brightness: float) -> None:
        self.brightness = brightness

    def write(self, colors: Sequence[int]) -> None:
        if self.fail_writes:
            raise OSError("spi write failed")
        self.writes.append(list(colors))

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise OSError("spi close failed")


class FakeSensorDriver:
    def __init__(self, fail_close: bool = False) -> None:
        self.fail_close = fail_close
        self.registered: list[SensorKind] = []
        self.listeners: list[Any] = []
        self.close_calls = 0

    def register_temperature_sensor(self) -> None:
        self.registered.append(SensorKind.TEMPERATURE)

    def register_pressure_sensor(self) -> None:
        self.registered.append(SensorKind.PRESSURE)

    def add_listener(self, listener: Any) -> None:
        self.listeners.append(listener)

    def remove_listener(self, listener: Any) -> None:
        self.listeners.remove(listener)

    def deliver(self, kind: SensorKind, value: float) -> None:
        for listener in list(self.listeners):
            listener.on_reading(SensorReading(kind, value))

    def close(self) -> None:
        self.close_calls += 1
        if self.fail_close:
            raise OSError("sensor close failed")


class FakeClient:
    def __init__(self, results: list[Any] | None = None, fail_connect: bool = False) -> None:
        self.results = list(results or [])
        self.fail_connect = fail_connect
        self.connected = False
        self.events: list[TelemetryEvent] = []
        self.disconnect_calls = 0

    @property
    def is_connected(self) -> bool:
        return self.connected

    def connect(self) -> None:
        if self.fail_connect:
            raise ConnectionError("bridge unreachable")
        self.connected = True

    def disconnect(self) -> None:
        self.disconnect_calls += 1
        self.connected = False

    def publish_telemetry(self, event: TelemetryEvent) -> bool:
        self.events.append(event)
        result = self.results.pop(0) if self.results else True
        if isinstance(result, Exception):
            raise result
        return bool(result)


class FakeFactory:
    """Hands out fakes and records what was opened."""

    def __init__(
        self,
        key: bytes | None = None,
        client: FakeClient | None = None,
        sensor: FakeSensorDriver | None = None,
        display: FakeDisplay | None = None,
        strip: FakeStrip | None = None,
        fail_open: str | None = None,
    ) -> None:
        self.key = key
        self.client = client or FakeClient()
        self.sensor = sensor or FakeSensorDriver()
        self.display = display or FakeDisplay()
        self.strip = strip or FakeStrip()
        self.fail_open = fail_open
        self.client_params: Any = None

    def load_key_bytes(self, identifier: str) -> bytes:
        if self.key is None:
            raise MissingCredentialError(f"No key named {identifier!r}")
        return self.key

    def create_client(self, params: Any, private_key: Any) -> FakeClient:
        self.client_params = params
        return self.client

    def _open(self, name: str, device: Any) -> Any:
        if self.fail_open == name:
            raise OSError(f"{name} not found")
        return device

    def open_sensor_driver(self) -> FakeSensorDriver:
        return self._open("sensor", self.sensor)

    def open_display(self) -> FakeDisplay:
        return self._open("display", self.display)

    def open_led_strip(self) -> FakeStrip:
        return self._open("strip", self.strip)
