import logging
import threading
import time

from .cell import TemperatureCell
from .devices import TelemetryClient
from .models import Qos, TelemetryEvent

PUBLISH_INTERVAL_SECS = 2.0


def build_payload(temperature: float) -> bytes:
    # Two decimals always, so 21.5 goes out as 21.50
    return f'{{"temperature": {temperature:.2f}}}'.encode()


class TelemetryPublisher:
    """Publishes the latest confirmed temperature on a fixed cadence.

    A failed publish is logged and the next tick keeps its slot; there is no
    retry. The loop runs on its own thread until cancel() is called.
    """

    def __init__(
        self,
        client: TelemetryClient,
        cell: TemperatureCell,
        period_secs: float = PUBLISH_INTERVAL_SECS,
    ) -> None:
        self._client = client
        self._cell = cell
        self._period = float(period_secs)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.ticks = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def tick(self) -> bool:
        self.ticks += 1
        event = TelemetryEvent(build_payload(self._cell.get()), Qos.AT_LEAST_ONCE)
        logging.debug("Publishing telemetry event: %s", event.payload.decode())
        try:
            ok = bool(self._client.publish_telemetry(event))
        except Exception as exc:
            logging.warning("Telemetry publish failed: %s", exc)
            return False
        if ok:
            logging.debug("Successfully published")
        else:
            logging.warning("Telemetry publish was not accepted by the client")
        return ok

    def run(self, stop: threading.Event) -> int:
        """Tick every period until stop is set. Returns the number of ticks."""
        logging.info("Publisher starting: period=%ss", self._period)
        start = time.monotonic()
        count = 0
        slot = 0
        while not stop.is_set():
            self.tick()
            count += 1
            slot += 1
            # Deadlines are anchored to start so slow publishes do not drift the cadence
            now = time.monotonic()
            if start + slot * self._period < now:
                missed = int((now - start) // self._period) - slot + 1
                logging.warning("Publish overran the period; skipping %s slot(s)", missed)
                slot += missed
            stop.wait(start + slot * self._period - now)
        logging.info("Publisher stopped after %s ticks", count)
        return count

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop,), name="telemetry-publisher", daemon=True
        )
        self._thread.start()

    def cancel(self, timeout: float | None = None) -> None:
        """Stop the loop and wait for an in-flight tick to finish."""
        self._stop.set()
        thread, self._thread = self._thread, None
        if thread is not None:
            thread.join(timeout)
            if thread.is_alive():
                logging.warning("Publisher thread did not stop within %ss", timeout)
