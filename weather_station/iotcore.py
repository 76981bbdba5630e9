"""Telemetry connection to the Cloud IoT Core MQTT bridge.

The bridge authenticates a device with a short-lived JWT signed by the
device's RSA key, passed as the MQTT password. Tokens are re-minted before
they expire and the session is re-established with the fresh token.
"""

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

import jwt
import paho.mqtt.client as mqtt
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from pydantic import BaseModel, ConfigDict, Field

from .models import TelemetryEvent

# Re-mint tokens a little before the bridge would reject them
_TOKEN_MARGIN_SECS = 60


class ConnectionParams(BaseModel):
    model_config = ConfigDict(frozen=True)

    project_id: str = Field(min_length=1)
    registry_id: str = Field(min_length=1)
    cloud_region: str = Field(min_length=1)
    device_id: str = Field(min_length=1)
    bridge_hostname: str = "mqtt.googleapis.com"
    bridge_port: int = 8883
    key_ttl_mins: int = Field(default=60, ge=1)

    @property
    def client_id(self) -> str:
        return (
            f"projects/{self.project_id}/locations/{self.cloud_region}"
            f"/registries/{self.registry_id}/devices/{self.device_id}"
        )

    @property
    def telemetry_topic(self) -> str:
        return f"/devices/{self.device_id}/events"


def create_jwt(project_id: str, private_key: RSAPrivateKey, ttl_mins: int, now: int | None = None) -> str:
    iat = int(time.time()) if now is None else now
    claims = {"iat": iat, "exp": iat + ttl_mins * 60, "aud": project_id}
    return jwt.encode(claims, private_key, algorithm="RS256")


def _make_mqtt_client(client_id: str) -> mqtt.Client:
    client = mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv311,
    )
    client.tls_set()
    return client


class IotCoreClient:
    def __init__(
        self,
        params: ConnectionParams,
        private_key: RSAPrivateKey,
        mqtt_factory: Callable[[str], Any] = _make_mqtt_client,
    ) -> None:
        self.params = params
        self._key = private_key
        self._mqtt = mqtt_factory(params.client_id)
        self._mqtt.on_connect = self._on_connect
        self._mqtt.on_disconnect = self._on_disconnect
        self._lock = threading.Lock()
        self._token_issued_at = 0
        self._loop_running = False

    @property
    def is_connected(self) -> bool:
        return bool(self._mqtt.is_connected())

    def _set_token(self) -> None:
        now = int(time.time())
        token = create_jwt(self.params.project_id, self._key, self.params.key_ttl_mins, now)
        # The bridge ignores the username
        self._mqtt.username_pw_set(username="unused", password=token)
        self._token_issued_at = now

    def _token_expiring(self) -> bool:
        age = int(time.time()) - self._token_issued_at
        return age >= self.params.key_ttl_mins * 60 - _TOKEN_MARGIN_SECS

    def connect(self) -> None:
        """Open the MQTT session. Raises OSError when the bridge is unreachable."""
        with self._lock:
            self._set_token()
            logging.info(
                "Connecting to %s:%s as %s",
                self.params.bridge_hostname,
                self.params.bridge_port,
                self.params.client_id,
            )
            rc = self._mqtt.connect(self.params.bridge_hostname, self.params.bridge_port, keepalive=60)
            if rc != mqtt.MQTT_ERR_SUCCESS:
                raise ConnectionError(f"MQTT connect failed: {mqtt.error_string(rc)}")
            self._mqtt.loop_start()
            self._loop_running = True

    def disconnect(self) -> None:
        with self._lock:
            try:
                self._mqtt.disconnect()
            finally:
                if self._loop_running:
                    self._mqtt.loop_stop()
                    self._loop_running = False

    def publish_telemetry(self, event: TelemetryEvent) -> bool:
        with self._lock:
            if self._token_expiring():
                logging.info("Refreshing connection token")
                self._set_token()
                self._mqtt.reconnect()
            info = self._mqtt.publish(self.params.telemetry_topic, event.payload, qos=int(event.qos))
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logging.warning("Publish to %s failed: %s", self.params.telemetry_topic, mqtt.error_string(info.rc))
            return False
        return True

    # paho network thread callbacks
    def _on_connect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any) -> None:
        if reason_code.is_failure:
            logging.error("MQTT connection refused: %s", reason_code)
        else:
            logging.info("MQTT connected")

    def _on_disconnect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any) -> None:
        logging.warning("MQTT disconnected: %s", reason_code)
