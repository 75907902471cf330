#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, call

import pytest

from pdjr.mqttgw.gateway.broker.session import BrokerSession, generate_client_id
from pdjr.mqttgw.gateway.broker.types import SessionState
from pdjr.mqttgw.gateway.errors import BrokerConnectionError
from pdjr.mqttgw.gateway.resolver import resolve


def _build_config(url: str = "mqtt://localhost", **extra):
    options = {
        "brokerUrl": url,
        "brokerCredentials": "skipper:secret",
        "subscription": {"topics": [{"topic": "a/b"}, {"topic": "c/d"}]},
    }
    options.update(extra)
    return resolve(options)


def _build_session(config=None):
    client = MagicMock()
    client.subscribe.return_value = (0, 1)
    session = BrokerSession(config or _build_config(), client=client)
    return session, client


def test_generate_client_id():
    first = generate_client_id()
    assert first.startswith("mqttgw-")
    assert len(first) == len("mqttgw-") + 8
    assert generate_client_id() != first


def test_session_configures_client():
    session, client = _build_session()

    assert session.state == SessionState.INITIALIZING
    client.username_pw_set.assert_called_once_with("skipper", "secret")
    client.reconnect_delay_set.assert_called_once_with(min_delay=60, max_delay=60)
    client.tls_set_context.assert_not_called()
    client.ws_set_options.assert_not_called()


def test_session_without_credentials():
    session, client = _build_session(resolve({"brokerUrl": "mqtt://localhost", "publication": {"paths": [{"path": "a"}]}}))
    client.username_pw_set.assert_not_called()


def test_connect_starts_network_loop():
    session, client = _build_session()

    session.connect()

    assert session.state == SessionState.CONNECTING
    client.connect_async.assert_called_once_with("localhost", 1883, keepalive=60)
    client.loop_start.assert_called_once()


def test_subscribes_in_order_on_every_connect():
    session, client = _build_session()
    connected = MagicMock()
    session.on_connect(connected)
    session.connect()

    session._on_connect(client, None, None, 0)

    assert session.state == SessionState.CONNECTED
    assert client.subscribe.call_args_list == [call("a/b", qos=1), call("c/d", qos=1)]
    connected.assert_called_once_with()

    # Reconnect: subscriptions are sent again
    session._on_disconnect(client, None, None, 0)
    assert session.state == SessionState.DISCONNECTED
    session._on_connect(client, None, None, 0)
    assert client.subscribe.call_count == 4
    assert connected.call_count == 2


def test_failed_subscribe_does_not_stop_the_others():
    session, client = _build_session()
    client.subscribe.side_effect = [RuntimeError("boom"), (0, 2)]
    session.connect()

    session._on_connect(client, None, None, 0)

    assert client.subscribe.call_args_list == [call("a/b", qos=1), call("c/d", qos=1)]
    assert session.state == SessionState.CONNECTED


def test_connection_errors_are_reported_once_until_reset():
    session, client = _build_session()
    errors = []
    session.on_error(errors.append)
    session.connect()

    session._on_connect_fail(client, None)
    session._on_connect_fail(client, None)
    assert len(errors) == 1
    assert isinstance(errors[0], BrokerConnectionError)
    assert str(errors[0]) == "MQTT broker connection error (unable to connect to localhost:1883)"
    assert session.state == SessionState.DISCONNECTED

    # A different failure is reported
    session._on_connect(client, None, None, 5)
    assert len(errors) == 2
    assert "connection refused" in str(errors[1])

    # A successful connect resets the filter
    session._on_connect(client, None, None, 0)
    session._on_connect_fail(client, None)
    assert len(errors) == 3


def test_unexpected_disconnect_is_reported():
    session, client = _build_session()
    errors = []
    session.on_error(errors.append)
    session.connect()
    session._on_connect(client, None, None, 0)

    session._on_disconnect(client, None, None, 7)

    assert session.state == SessionState.DISCONNECTED
    assert [str(e) for e in errors] == ["MQTT broker connection error (disconnected: 7)"]


def test_message_handler_receives_topic_and_payload():
    session, client = _build_session()
    handler = MagicMock()
    session.on_message(handler)

    session._on_message(client, None, SimpleNamespace(topic="a/b", payload=b"42"))

    handler.assert_called_once_with("a/b", b"42")


def test_message_handler_errors_are_contained():
    session, client = _build_session()
    session.on_message(MagicMock(side_effect=ValueError("bad")))

    session._on_message(client, None, SimpleNamespace(topic="a/b", payload=b"42"))


def test_publish_uses_qos1_and_encodes_text():
    session, client = _build_session()

    session.publish("signalk/x", "x", retain=True)
    session.publish("signalk/y", b"1.5", retain=False)

    assert client.publish.call_args_list == [
        call("signalk/x", payload=b"x", qos=1, retain=True),
        call("signalk/y", payload=b"1.5", qos=1, retain=False),
    ]


def test_close_is_idempotent_and_silences_callbacks():
    session, client = _build_session()
    errors = []
    session.on_error(errors.append)
    session.connect()

    session.close()
    session.close()

    assert session.state == SessionState.CLOSED
    client.disconnect.assert_called_once()
    client.loop_stop.assert_called_once()

    session._on_connect_fail(client, None)
    session._on_connect(client, None, None, 0)
    assert errors == []
    assert session.state == SessionState.CLOSED


def test_close_stops_loop_when_disconnect_fails():
    session, client = _build_session()
    client.disconnect.side_effect = OSError("not connected")

    session.close()

    client.loop_stop.assert_called_once()


@pytest.mark.parametrize("reject,insecure", [(False, True), (True, False)])
def test_tls_broker(reject: bool, insecure: bool):
    config = _build_config("mqtts://broker.example:8884", rejectUnauthorised=reject)
    session, client = _build_session(config)

    client.tls_set_context.assert_called_once()
    context = client.tls_set_context.call_args[0][0]
    assert context.check_hostname is reject
    if insecure:
        client.tls_insecure_set.assert_called_once_with(True)
    else:
        client.tls_insecure_set.assert_not_called()

    session.connect()
    client.connect_async.assert_called_once_with("broker.example", 8884, keepalive=60)


def test_websocket_broker():
    session, client = _build_session(_build_config("ws://broker.example"))

    client.ws_set_options.assert_called_once_with(path="/mqtt")
    session.connect()
    client.connect_async.assert_called_once_with("broker.example", 80, keepalive=60)
