#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
import random
import ssl
import string
from typing import Any, Callable, List, Optional

import paho.mqtt.client as paho_mqtt
from paho.mqtt.enums import CallbackAPIVersion

from ...lib.constants import (
    BROKER_RECONNECT_PERIOD,
    CLIENT_ID_PREFIX,
    MQTT_KEEPALIVE,
    MQTT_QOS,
    MQTT_WS_PATH_DEFAULT,
)
from ..errors import BrokerConnectionError
from ..models import MappingConfiguration
from .types import SessionState

logger = logging.getLogger(__name__)

MessageHandler = Callable[[str, bytes], None]
ErrorHandler = Callable[[BrokerConnectionError], None]
ConnectHandler = Callable[[], None]


def generate_client_id(prefix: str = CLIENT_ID_PREFIX) -> str:
    """
    Generate unique MQTT client ID with random suffix
    """
    suffix = "".join(random.choices(string.ascii_letters + string.digits, k=8))
    return f"{prefix}-{suffix}"


def _is_failure(reason_code: Any) -> bool:
    # paho v2 passes ReasonCode objects, tests may pass plain ints
    if isinstance(reason_code, int):
        return reason_code != 0
    return bool(getattr(reason_code, "is_failure", False))


class BrokerSession:
    """
    Single persistent connection to the external MQTT broker

    Notes:
      - paho runs its network loop in a background thread; every callback is
        forwarded to the asyncio loop captured in connect(), so handlers run
        on the gateway event loop only
      - reconnection (first attempt included) is done by paho at a fixed
        period, no backoff growth and no retry limit
      - in tests we inject a mocked paho client via `client=...`
    """

    def __init__(
        self,
        config: MappingConfiguration,
        *,
        client: Optional[Any] = None,
        reconnect_period: int = BROKER_RECONNECT_PERIOD,
    ) -> None:
        self._config = config
        self._address = config.broker
        self._topics: List[str] = [e.topic for e in config.subscription_entries]
        self._state = SessionState.INITIALIZING
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._last_error: Optional[str] = None

        self._message_handler: Optional[MessageHandler] = None
        self._error_handler: Optional[ErrorHandler] = None
        self._connect_handler: Optional[ConnectHandler] = None

        if client is None:
            client = paho_mqtt.Client(
                callback_api_version=CallbackAPIVersion.VERSION2,
                client_id=config.client_id or generate_client_id(),
                protocol=paho_mqtt.MQTTv311,
                transport=self._address.transport,
            )
        self._client = client

        if config.broker_credentials is not None:
            self._client.username_pw_set(config.broker_credentials.username, config.broker_credentials.password)

        if self._address.transport == "websockets":
            self._client.ws_set_options(path=self._address.path or MQTT_WS_PATH_DEFAULT)

        if self._address.tls:
            context = ssl.create_default_context()
            if not config.reject_unauthorised:
                context.check_hostname = False
                context.verify_mode = ssl.CERT_NONE
            self._client.tls_set_context(context)
            if not config.reject_unauthorised:
                self._client.tls_insecure_set(True)

        self._client.reconnect_delay_set(min_delay=reconnect_period, max_delay=reconnect_period)

        # Callbacks
        self._client.on_connect = self._on_connect
        self._client.on_connect_fail = self._on_connect_fail
        self._client.on_disconnect = self._on_disconnect
        self._client.on_message = self._on_message

    @property
    def state(self) -> SessionState:
        return self._state

    # --- Setup Methods ---

    def on_message(self, handler: MessageHandler) -> None:
        """
        Register callback for inbound messages: handler(topic, payload)
        """
        self._message_handler = handler

    def on_error(self, handler: ErrorHandler) -> None:
        """
        Register callback for connection errors (non-fatal)
        """
        self._error_handler = handler

    def on_connect(self, handler: ConnectHandler) -> None:
        """
        Register callback called after each successful connect, once the
        subscriptions have been sent
        """
        self._connect_handler = handler

    # --- Lifecycle Methods ---

    def connect(self) -> None:
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None

        self._state = SessionState.CONNECTING
        logger.info(
            "Connecting to MQTT broker: host=%s port=%s transport=%s tls=%s subs=%d",
            self._address.host,
            self._address.port,
            self._address.transport,
            self._address.tls,
            len(self._topics),
        )
        self._client.connect_async(self._address.host, self._address.port, keepalive=MQTT_KEEPALIVE)
        self._client.loop_start()

    def close(self) -> None:
        if self._state == SessionState.CLOSED:
            return
        logger.info("Closing MQTT broker session")
        self._state = SessionState.CLOSED
        try:
            self._client.disconnect()
        except Exception:
            logger.exception("MQTT disconnect failed")
        finally:
            self._client.loop_stop()

    # --- Broker operations ---

    def subscribe(self, topic: str) -> None:
        result, mid = self._client.subscribe(topic, qos=MQTT_QOS)
        if result != paho_mqtt.MQTT_ERR_SUCCESS:
            logger.warning("MQTT subscribe to %r failed: rc=%r", topic, result)
            return
        logger.debug("MQTT subscribed to %r (mid=%r)", topic, mid)

    def publish(self, topic: str, payload: Any, *, retain: bool = False) -> None:
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        logger.debug("MQTT publish: topic=%s payload=%r retain=%s", topic, payload, retain)
        info = self._client.publish(topic, payload=payload, qos=MQTT_QOS, retain=retain)
        rc = getattr(info, "rc", paho_mqtt.MQTT_ERR_SUCCESS)
        if rc != paho_mqtt.MQTT_ERR_SUCCESS:
            # QoS 1 messages stay queued in paho and go out after reconnect
            logger.debug("MQTT publish to %r queued or failed: rc=%r", topic, rc)

    # --- Internal Helpers ---

    def _dispatch(self, fn: Callable[..., None], *args: Any) -> None:
        """Run fn on the gateway event loop (directly when no loop is known)"""
        if self._loop is None:
            fn(*args)
            return
        if self._loop.is_closed():
            logger.debug("Event loop closed, dropping %s", getattr(fn, "__name__", fn))
            return
        self._loop.call_soon_threadsafe(fn, *args)

    def _handle_connected(self) -> None:
        if self._state == SessionState.CLOSED:
            return
        self._state = SessionState.CONNECTED
        self._last_error = None
        logger.info("MQTT connected to %s:%s", self._address.host, self._address.port)

        if self._topics:
            logger.debug("MQTT subscribing to %d topics", len(self._topics))
        for topic in self._topics:
            try:
                self.subscribe(topic)
            except Exception:
                logger.exception("MQTT subscribe failed: %s", topic)

        if self._connect_handler is not None:
            self._connect_handler()

    def _handle_disconnected(self, reason_code: Any) -> None:
        if self._state == SessionState.CLOSED:
            return
        self._state = SessionState.DISCONNECTED
        logger.warning("MQTT disconnected: rc=%s", reason_code)

    def _report_failure(self, detail: str) -> None:
        if self._state == SessionState.CLOSED:
            return
        self._state = SessionState.DISCONNECTED
        message = f"MQTT broker connection error ({detail})"
        if message == self._last_error:
            logger.debug("%s (repeated)", message)
            return
        self._last_error = message
        logger.warning("%s", message)
        if self._error_handler is not None:
            self._error_handler(BrokerConnectionError(message))

    def _handle_message(self, topic: str, payload: bytes) -> None:
        if self._message_handler is None:
            return
        try:
            self._message_handler(topic, payload)
        except Exception:
            logger.exception("Failed to handle MQTT message from %r", topic)

    # ---- paho callbacks (network thread) ----

    def _on_connect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        if _is_failure(reason_code):
            self._dispatch(self._report_failure, f"connection refused: {reason_code}")
            return
        self._dispatch(self._handle_connected)

    def _on_connect_fail(self, client: Any, userdata: Any) -> None:
        self._dispatch(
            self._report_failure,
            f"unable to connect to {self._address.host}:{self._address.port}",
        )

    def _on_disconnect(self, client: Any, userdata: Any, flags: Any, reason_code: Any, properties: Any = None) -> None:
        if self._state == SessionState.CLOSED:
            return
        if _is_failure(reason_code):
            self._dispatch(self._report_failure, f"disconnected: {reason_code}")
        else:
            self._dispatch(self._handle_disconnected, reason_code)

    def _on_message(self, client: Any, userdata: Any, msg: Any) -> None:
        topic = str(getattr(msg, "topic", ""))
        payload = getattr(msg, "payload", b"")
        self._dispatch(self._handle_message, topic, payload)
