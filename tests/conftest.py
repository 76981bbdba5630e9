import pytest
from fakes import rsa_pkcs8_der

from weather_station.config import Settings


@pytest.fixture(scope="session")
def rsa_key_der() -> bytes:
    return rsa_pkcs8_der()


@pytest.fixture
def settings() -> Settings:
    return Settings.model_validate(
        {
            "GCP_PROJECT_ID": "myproject10983",
            "IOT_REGISTRY_ID": "my-registry",
            "IOT_DEVICE_ID": "my-device",
            "PUBLISH_INTERVAL_SECS": 0.05,
        }
    )
