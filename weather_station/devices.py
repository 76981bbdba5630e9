"""Interfaces of the board and cloud collaborators the station drives."""

from collections.abc import Sequence
from typing import Protocol

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .iotcore import ConnectionParams
from .models import SensorKind, SensorReading, TelemetryEvent


class SensorListener(Protocol):
    def on_reading(self, reading: SensorReading) -> None: ...

    def on_accuracy_changed(self, kind: SensorKind, accuracy: int) -> None: ...


class SensorDriver(Protocol):
    def register_temperature_sensor(self) -> None: ...

    def register_pressure_sensor(self) -> None: ...

    def add_listener(self, listener: SensorListener) -> None: ...

    def remove_listener(self, listener: SensorListener) -> None: ...

    def close(self) -> None: ...


class Display(Protocol):
    def set_enabled(self, enabled: bool) -> None: ...

    def show(self, text: str) -> None: ...

    def show_float(self, value: float) -> None: ...

    def clear(self) -> None: ...

    def close(self) -> None: ...


class LedStrip(Protocol):
    def set_brightness(self, brightness: float) -> None: ...

    def write(self, colors: Sequence[int]) -> None: ...

    def close(self) -> None: ...


class TelemetryClient(Protocol):
    @property
    def is_connected(self) -> bool: ...

    def connect(self) -> None: ...

    def disconnect(self) -> None: ...

    def publish_telemetry(self, event: TelemetryEvent) -> bool: ...


class BoardFactory(Protocol):
    """Opens the station's resources. Every method may raise OSError."""

    def load_key_bytes(self, identifier: str) -> bytes: ...

    def create_client(self, params: ConnectionParams, private_key: RSAPrivateKey) -> TelemetryClient: ...

    def open_sensor_driver(self) -> SensorDriver: ...

    def open_display(self) -> Display: ...

    def open_led_strip(self) -> LedStrip: ...
