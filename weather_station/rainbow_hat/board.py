from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from ..config import Settings
from ..credentials import KeyStore
from ..iotcore import ConnectionParams, IotCoreClient
from .display import AlphanumericDisplay
from .ledstrip import ApaLedStrip
from .sensor import BMP280SensorDriver


class RainbowHatFactory:
    """Opens the real Rainbow HAT peripherals and the IoT Core connection."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._keys = KeyStore(settings.key_dir)

    def load_key_bytes(self, identifier: str) -> bytes:
        return self._keys.get(identifier)

    def create_client(self, params: ConnectionParams, private_key: RSAPrivateKey) -> IotCoreClient:
        return IotCoreClient(params, private_key)

    def open_sensor_driver(self) -> BMP280SensorDriver:
        return BMP280SensorDriver(
            self._settings.i2c_bus,
            self._settings.bmp280_i2c_address,
            self._settings.sensor_poll_secs,
        )

    def open_display(self) -> AlphanumericDisplay:
        return AlphanumericDisplay()

    def open_led_strip(self) -> ApaLedStrip:
        return ApaLedStrip()
