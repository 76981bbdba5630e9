import logging
import os
import sys
import time

from ..colors import weather_strip_colors
from .sensor import BMP280SensorDriver


def _parse_int(value: str | None, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value, 0)
    except ValueError:
        return default


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    bus = _parse_int(os.environ.get("I2C_BUS"), 1)
    address = _parse_int(os.environ.get("BMP280_I2C_ADDRESS"), 0x77)
    samples = _parse_int(os.environ.get("CHECK_SAMPLES"), 3)
    poll_ms = _parse_int(os.environ.get("CHECK_POLL_MS"), 500)

    logging.info("Checking BMP280 (bus=%s, addr=0x%02X)", bus, address)

    try:
        driver = BMP280SensorDriver(bus, address)
    except OSError as exc:
        print(f"BMP280 connection failed (bus={bus}, addr=0x{address:02X}): {exc}", file=sys.stderr)
        sys.exit(1)

    try:
        for _ in range(max(1, samples)):
            sample = driver.read()
            colors = weather_strip_colors(sample.pressure_hpa)
            print(
                "Sample: "
                f"temperature_c={sample.temperature_c:.2f} "
                f"pressure_hpa={sample.pressure_hpa:.2f} "
                f"strip={' '.join('%06X' % c for c in colors)}"
            )
            time.sleep(poll_ms / 1000.0)
    except OSError as exc:
        print(f"BMP280 read failed: {exc}", file=sys.stderr)
        sys.exit(1)
    finally:
        driver.close()

    sys.exit(0)


if __name__ == "__main__":
    main()
