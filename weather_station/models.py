import time
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Final

LED_COUNT: Final[int] = 7

# Colors are packed 0xRRGGBB integers
OFF: Final[int] = 0x000000
GREEN: Final[int] = 0x00FF00


class SensorKind(StrEnum):
    TEMPERATURE = "temperature"
    PRESSURE = "pressure"


class Qos(IntEnum):
    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1


@dataclass(frozen=True)
class SensorReading:
    kind: SensorKind
    value: float
    timestamp: float = field(default_factory=time.monotonic)


@dataclass(frozen=True)
class TelemetryEvent:
    payload: bytes
    qos: Qos = Qos.AT_LEAST_ONCE


def rgb(color: int) -> tuple[int, int, int]:
    return (color >> 16) & 0xFF, (color >> 8) & 0xFF, color & 0xFF


def scale(color: int, factor: float) -> int:
    """Dim a color by factor in [0, 1]."""
    factor = min(1.0, max(0.0, factor))
    r, g, b = rgb(color)
    return (round(r * factor) << 16) | (round(g * factor) << 8) | round(b * factor)
