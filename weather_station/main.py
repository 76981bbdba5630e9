import logging
import signal
import threading

from .colors import DEFAULT_CALIBRATION, CalibrationTable
from .config import Settings, load_settings
from .lifecycle import Station
from .rainbow_hat.board import RainbowHatFactory

_shutdown = threading.Event()


def _on_signal(signum: int, frame: object) -> None:
    _shutdown.set()


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )


def _load_calibration(settings: Settings) -> CalibrationTable:
    if settings.calibration_path is None:
        return DEFAULT_CALIBRATION
    logging.info("Loading pressure calibration from %s", settings.calibration_path)
    return CalibrationTable.from_json_file(settings.calibration_path)


def main() -> None:
    settings = load_settings()
    _setup_logging(settings.log_level)

    _shutdown.clear()
    signal.signal(signal.SIGINT, _on_signal)
    signal.signal(signal.SIGTERM, _on_signal)

    station = Station(settings, RainbowHatFactory(settings), _load_calibration(settings))
    with station:
        _shutdown.wait()


if __name__ == "__main__":
    main()
