"""Pressure to LED strip color mapping.

The strip reads like a barometer dial: the leftmost LED sits at the bottom of
the calibration domain, the rightmost at the top. The strip fills from the left
up to the current pressure, each LED painted with the color of the weather band
its segment falls in, and the last lit LED dimmed in proportion to how far the
pressure reaches into its segment.
"""

import math
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from .models import LED_COUNT, scale


class Band(BaseModel):
    name: str
    upper_hpa: float
    color: int = Field(ge=0, le=0xFFFFFF)

    @field_validator("color", mode="before")
    @classmethod
    def _parse_hex(cls, value: Any) -> Any:
        # JSON tables may spell colors as "#RRGGBB"
        if isinstance(value, str):
            return int(value.lstrip("#"), 16)
        return value


class CalibrationTable(BaseModel):
    floor_hpa: float
    bands: list[Band] = Field(min_length=1)

    @model_validator(mode="after")
    def _check_ordering(self) -> "CalibrationTable":
        bounds = [self.floor_hpa] + [b.upper_hpa for b in self.bands]
        if any(lo >= hi for lo, hi in zip(bounds, bounds[1:])):
            raise ValueError("band upper bounds must increase strictly above floor_hpa")
        return self

    @property
    def ceiling_hpa(self) -> float:
        return self.bands[-1].upper_hpa

    def band_at(self, pressure: float) -> Band:
        for band in self.bands:
            if pressure <= band.upper_hpa:
                return band
        return self.bands[-1]

    @classmethod
    def from_json_file(cls, path: str | Path) -> "CalibrationTable":
        return cls.model_validate_json(Path(path).read_text(encoding="utf-8"))


DEFAULT_CALIBRATION = CalibrationTable(
    floor_hpa=960.0,
    bands=[
        Band(name="stormy", upper_hpa=980.0, color=0x9400D3),
        Band(name="rain", upper_hpa=1000.0, color=0x0000FF),
        Band(name="change", upper_hpa=1020.0, color=0x00FF00),
        Band(name="fair", upper_hpa=1035.0, color=0xFFFF00),
        Band(name="clear", upper_hpa=1050.0, color=0xFF8C00),
    ],
)


def weather_strip_colors(
    pressure: float,
    table: CalibrationTable = DEFAULT_CALIBRATION,
    led_count: int = LED_COUNT,
) -> list[int]:
    """Return led_count colors for the given pressure in hPa.

    Values outside the calibration domain clamp to its edges, NaN is treated
    as the floor. At least the first LED is always lit.
    """
    if led_count < 1:
        raise ValueError("led_count must be positive")
    low, high = table.floor_hpa, table.ceiling_hpa
    level = low if math.isnan(pressure) else min(high, max(low, pressure))
    lit = 1 + (led_count - 1) * (level - low) / (high - low)
    width = (high - low) / led_count

    colors: list[int] = []
    for i in range(led_count):
        band = table.band_at(low + (i + 0.5) * width)
        colors.append(scale(band.color, lit - i))
    return colors
