"""MQTT channel for injecting inbound messages.

A stand-in for a real SMS receiver: every JSON payload
``{"sender": "...", "body": "..."}`` published on the configured topic is
handed to the finder as an inbound message. paho-mqtt runs its network loop
in its own thread, so messages are marshalled onto the asyncio loop with
``call_soon_threadsafe`` and recorded there.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from smsbeacon._redact import redact_for_log
from smsbeacon.config import BeaconConfig
from smsbeacon.exceptions import BeaconError, BeaconTransportError


@dataclass(frozen=True)
class InjectedMessage:
    """Inbound message decoded from an MQTT payload."""

    sender: str
    body: str
    topic: str


def decode_inbox_payload(payload: bytes, topic: str = "") -> InjectedMessage:
    """Decode an MQTT payload into an :class:`InjectedMessage`.

    ``message`` and ``from`` are accepted as aliases of ``body`` and
    ``sender``.

    Raises
    ------
    BeaconError
        If the payload is not a JSON object carrying string sender/body.
    """
    try:
        parsed = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise BeaconError(f"MQTT payload on {topic!r} is not JSON") from exc
    if not isinstance(parsed, dict):
        raise BeaconError(f"MQTT payload on {topic!r} decoded to non-object JSON")

    sender = parsed.get("sender", parsed.get("from"))
    body = parsed.get("body", parsed.get("message"))
    if not isinstance(sender, str) or not isinstance(body, str):
        raise BeaconError(f"MQTT payload on {topic!r} is missing sender/body strings")
    return InjectedMessage(sender=sender, body=body, topic=topic)


class InboxMqttRuntime:
    """Threaded paho-mqtt runtime that emits inbound messages onto an asyncio loop."""

    def __init__(
        self,
        *,
        config: BeaconConfig,
        loop: asyncio.AbstractEventLoop,
        on_message: Callable[[InjectedMessage], None],
        logger: logging.Logger | None = None,
    ) -> None:
        self._config = config
        self._loop = loop
        self._on_message = on_message
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """Whether the MQTT runtime is actively running."""
        return self._running

    def handle_payload(self, topic: str, payload: bytes) -> None:
        """Decode *payload* and schedule delivery on the loop (network thread side)."""
        try:
            message = decode_inbox_payload(payload, topic)
        except BeaconError:
            self._logger.warning("Dropping malformed MQTT payload on %s", topic, exc_info=True)
            return
        self._logger.debug(
            "Received PUBLISH topic=%s payload=%s",
            topic,
            redact_for_log({"sender": message.sender, "body": message.body}),
        )
        self._loop.call_soon_threadsafe(self._on_message, message)

    def start(self) -> None:
        """Connect and subscribe to the configured topic."""
        self.stop()
        config = self._config
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s",
            config.mqtt_host,
            config.mqtt_port,
            config.mqtt_topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            protocol=mqtt.MQTTv5,
        )
        client.enable_logger(self._logger)
        if config.mqtt_username:
            client.username_pw_set(config.mqtt_username, config.mqtt_password)
        if config.mqtt_tls:
            client.tls_set()

        topic = config.mqtt_topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.value != 0:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            self._logger.debug("MQTT connected, subscribing topic=%s", topic)
            c.subscribe(topic, qos=1)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            self.handle_payload(msg.topic, msg.payload)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        try:
            client.connect(config.mqtt_host, config.mqtt_port, keepalive=config.mqtt_keepalive)
        except OSError as exc:
            raise BeaconTransportError(
                f"MQTT connect to {config.mqtt_host}:{config.mqtt_port} failed: {exc}",
                endpoint=f"mqtt://{config.mqtt_host}:{config.mqtt_port}",
            ) from exc
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False

        if client is None:
            return
        try:
            if was_running:
                self._logger.debug("MQTT disconnect requested")
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")
