import contextlib
import os
from enum import StrEnum
from typing import Final

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError


class LogLevel(StrEnum):
    CRITICAL = "CRITICAL"
    ERROR = "ERROR"
    WARNING = "WARNING"
    INFO = "INFO"
    DEBUG = "DEBUG"


class Settings(BaseModel):
    project_id: str = Field(validation_alias="GCP_PROJECT_ID")
    registry_id: str = Field(validation_alias="IOT_REGISTRY_ID")
    cloud_region: str = Field(default="us-central1", validation_alias="IOT_CLOUD_REGION")
    device_id: str = Field(validation_alias="IOT_DEVICE_ID")

    # Bundled credential storage
    key_dir: str = Field(default="./keys", validation_alias="KEY_DIR")
    private_key_name: str = Field(default="rsa_private_pkcs8", validation_alias="PRIVATE_KEY_NAME")

    mqtt_bridge_hostname: str = Field(default="mqtt.googleapis.com", validation_alias="MQTT_BRIDGE_HOSTNAME")
    mqtt_bridge_port: int = Field(default=8883, validation_alias="MQTT_BRIDGE_PORT")
    jwt_ttl_mins: int = Field(default=60, ge=1, validation_alias="JWT_TTL_MINS")

    publish_interval_secs: float = Field(default=2.0, gt=0, validation_alias="PUBLISH_INTERVAL_SECS")
    default_temperature: float = Field(default=30.0, allow_inf_nan=False, validation_alias="DEFAULT_TEMPERATURE")

    i2c_bus: int = Field(default=1, validation_alias="I2C_BUS")
    bmp280_i2c_address: int = Field(default=0x77, validation_alias="BMP280_I2C_ADDRESS")
    sensor_poll_secs: float = Field(default=1.0, gt=0, validation_alias="SENSOR_POLL_SECS")

    led_brightness: float = Field(default=0.1, ge=0, le=1, validation_alias="LED_BRIGHTNESS")
    # Optional JSON file replacing the built-in pressure calibration table
    calibration_path: str | None = Field(default=None, validation_alias="CALIBRATION_PATH")

    log_level: LogLevel = Field(default=LogLevel.INFO, validation_alias="LOG_LEVEL")


ENV_KEYS: Final[tuple[str, ...]] = (
    "GCP_PROJECT_ID",
    "IOT_REGISTRY_ID",
    "IOT_CLOUD_REGION",
    "IOT_DEVICE_ID",
    "KEY_DIR",
    "PRIVATE_KEY_NAME",
    "MQTT_BRIDGE_HOSTNAME",
    "MQTT_BRIDGE_PORT",
    "JWT_TTL_MINS",
    "PUBLISH_INTERVAL_SECS",
    "DEFAULT_TEMPERATURE",
    "I2C_BUS",
    "BMP280_I2C_ADDRESS",
    "SENSOR_POLL_SECS",
    "LED_BRIGHTNESS",
    "CALIBRATION_PATH",
    "LOG_LEVEL",
)

REQUIRED_KEYS: Final[tuple[str, ...]] = ("GCP_PROJECT_ID", "IOT_REGISTRY_ID", "IOT_DEVICE_ID")


def load_settings() -> Settings:
    # Load .env if present (does nothing if file missing)
    load_dotenv()
    data: dict[str, str] = {}
    for key in ENV_KEYS:
        if key in os.environ:
            data[key] = os.environ[key]

    # Handle hex I2C address if provided
    if "BMP280_I2C_ADDRESS" in data:
        with contextlib.suppress(ValueError):
            data["BMP280_I2C_ADDRESS"] = str(int(data["BMP280_I2C_ADDRESS"], 0))

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        missing = [k for k in REQUIRED_KEYS if k not in data]
        if missing:
            raise RuntimeError(f"Missing required configuration: {', '.join(missing)}") from e
        raise
