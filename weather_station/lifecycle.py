import logging
from collections.abc import Callable
from enum import StrEnum
from typing import Generic, TypeVar

from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .cell import TemperatureCell
from .colors import DEFAULT_CALIBRATION, CalibrationTable
from .config import Settings
from .credentials import CredentialError, load_private_key
from .devices import BoardFactory, Display, LedStrip, SensorDriver, TelemetryClient
from .handlers import PressureHandler, SensorRouter, TemperatureHandler
from .iotcore import ConnectionParams
from .models import GREEN, LED_COUNT, OFF
from .publisher import TelemetryPublisher

T = TypeVar("T")

# Upper bound on waiting for an in-flight publish during teardown
PUBLISHER_JOIN_SECS = 10.0


class Stage(StrEnum):
    CREATED = "created"
    CREDENTIAL_LOAD = "credential_load"
    CONNECTION_SETUP = "connection_setup"
    SENSOR_INIT = "sensor_init"
    DISPLAY_INIT = "display_init"
    LED_INIT = "led_init"
    RUNNING = "running"
    TEARDOWN = "teardown"
    STOPPED = "stopped"


class StartupError(RuntimeError):
    pass


class ResourceHandle(Generic[T]):
    """Optional ownership of one resource.

    release() makes exactly one attempt to close the held resource and always
    drops the reference, logging rather than raising on failure.
    """

    def __init__(self, name: str, closer: Callable[[T], None]) -> None:
        self.name = name
        self._closer = closer
        self.value: T | None = None

    def __bool__(self) -> bool:
        return self.value is not None

    def acquire(self, value: T) -> T:
        if self.value is not None:
            raise RuntimeError(f"{self.name} is already open")
        self.value = value
        return value

    def release(self) -> bool:
        if self.value is None:
            return True
        value, self.value = self.value, None
        try:
            self._closer(value)
        except Exception:
            logging.error("Error closing %s", self.name, exc_info=True)
            return False
        logging.debug("Closed %s", self.name)
        return True


def _close_sensor_driver(driver: SensorDriver) -> None:
    driver.close()


def _close_display(display: Display) -> None:
    display.clear()
    display.set_enabled(False)
    display.close()


def _close_ledstrip(strip: LedStrip) -> None:
    strip.set_brightness(0)
    strip.write([OFF] * LED_COUNT)
    strip.close()


def _close_client(client: TelemetryClient) -> None:
    # Also stops the network loop, which outlives a dropped link
    client.disconnect()


def connection_params(settings: Settings) -> ConnectionParams:
    return ConnectionParams(
        project_id=settings.project_id,
        registry_id=settings.registry_id,
        cloud_region=settings.cloud_region,
        device_id=settings.device_id,
        bridge_hostname=settings.mqtt_bridge_hostname,
        bridge_port=settings.mqtt_bridge_port,
        key_ttl_mins=settings.jwt_ttl_mins,
    )


class Station:
    """Owns the board and cloud resources and the pipeline between them.

    Startup order: credential, telemetry connection, sensors, display, LED strip.
    The first two are optional; without them the station runs offline and the
    publisher is never started. A hardware failure aborts startup and releases
    whatever had been opened.
    """

    def __init__(
        self,
        settings: Settings,
        factory: BoardFactory,
        calibration: CalibrationTable = DEFAULT_CALIBRATION,
    ) -> None:
        self.settings = settings
        self._factory = factory
        self.stage = Stage.CREATED
        self.cell = TemperatureCell(settings.default_temperature)

        self.client: ResourceHandle[TelemetryClient] = ResourceHandle("telemetry client", _close_client)
        self.sensor_driver: ResourceHandle[SensorDriver] = ResourceHandle("sensors", _close_sensor_driver)
        self.display: ResourceHandle[Display] = ResourceHandle("display", _close_display)
        self.ledstrip: ResourceHandle[LedStrip] = ResourceHandle("ledstrip", _close_ledstrip)

        self.router = SensorRouter(
            TemperatureHandler(None, self.cell),
            PressureHandler(None, calibration, LED_COUNT),
        )
        self.publisher: TelemetryPublisher | None = None
        self._listening = False

    def __enter__(self) -> "Station":
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()

    def start(self) -> None:
        if self.stage is not Stage.CREATED:
            raise RuntimeError(f"Station cannot start from stage {self.stage}")
        logging.info("Weather station starting")

        private_key = self._load_credential()
        if private_key is not None:
            self._setup_connection(private_key)

        try:
            self._init_sensors()
            self._init_display()
            self._init_ledstrip()
            self._attach()
        except (OSError, RuntimeError) as exc:
            failed = self.stage
            logging.error("Startup failed during %s: %s", failed, exc)
            self.stop()
            raise StartupError(f"Error during {failed}: {exc}") from exc

        if self.client:
            self.publisher = TelemetryPublisher(self.client.value, self.cell, self.settings.publish_interval_secs)
            self.publisher.start()
        else:
            logging.info("Telemetry disabled; running without publisher")
        self.stage = Stage.RUNNING
        logging.info("Weather station running")

    def _load_credential(self) -> RSAPrivateKey | None:
        self.stage = Stage.CREDENTIAL_LOAD
        identifier = self.settings.private_key_name
        try:
            return load_private_key(self._factory.load_key_bytes(identifier))
        except CredentialError as exc:
            logging.error("Could not load device key %r: %s", identifier, exc)
        except OSError as exc:
            logging.error("Could not load key from storage: %s", exc)
        return None

    def _setup_connection(self, private_key: RSAPrivateKey) -> None:
        self.stage = Stage.CONNECTION_SETUP
        try:
            client = self._factory.create_client(connection_params(self.settings), private_key)
            client.connect()
        except (OSError, ValueError) as exc:
            logging.error("Could not connect telemetry client: %s", exc)
            return
        self.client.acquire(client)

    def _init_sensors(self) -> None:
        self.stage = Stage.SENSOR_INIT
        driver = self.sensor_driver.acquire(self._factory.open_sensor_driver())
        driver.register_pressure_sensor()
        driver.register_temperature_sensor()
        logging.debug("Initialized BMP280 sensors")

    def _init_display(self) -> None:
        self.stage = Stage.DISPLAY_INIT
        display = self.display.acquire(self._factory.open_display())
        display.set_enabled(True)
        display.show("1234")
        logging.debug("Initialized display")

    def _init_ledstrip(self) -> None:
        self.stage = Stage.LED_INIT
        strip = self.ledstrip.acquire(self._factory.open_led_strip())
        strip.set_brightness(self.settings.led_brightness)
        colors = [GREEN] * LED_COUNT
        strip.write(colors)
        # The APA102 ignores the first frame after power up
        strip.write(colors)
        logging.debug("Initialized ledstrip")

    def _attach(self) -> None:
        self.router.temperature.display = self.display.value
        self.router.pressure.strip = self.ledstrip.value
        if self.sensor_driver.value is not None:
            self.sensor_driver.value.add_listener(self.router)
            self._listening = True

    def _detach(self) -> None:
        self.router.temperature.display = None
        self.router.pressure.strip = None
        driver = self.sensor_driver.value
        if self._listening and driver is not None:
            try:
                driver.remove_listener(self.router)
            except Exception:
                logging.error("Error unregistering sensor listener", exc_info=True)
        self._listening = False

    def stop(self) -> None:
        """Tear down. Every held resource gets one release attempt."""
        if self.stage in (Stage.TEARDOWN, Stage.STOPPED):
            return
        self.stage = Stage.TEARDOWN
        logging.info("Weather station stopping")

        # The publisher must be gone before its client is released
        if self.publisher is not None:
            self.publisher.cancel(PUBLISHER_JOIN_SECS)
            self.publisher = None

        self._detach()
        failures = [
            handle.name
            for handle in (self.sensor_driver, self.display, self.ledstrip, self.client)
            if not handle.release()
        ]
        if failures:
            logging.warning("Teardown finished with errors closing: %s", ", ".join(failures))
        self.stage = Stage.STOPPED
        logging.info("Weather station stopped")
