#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..lib.constants import META_TOPIC_SUFFIX


@dataclass(frozen=True)
class BrokerCredentials:
    """
    Username/password pair for the broker connection.

    Built from "username:password" (split on the first ':') or from
    separate broker.username / broker.password options.

    Example (output):
        BrokerCredentials(username="skipper", password="s3cr:et")
    """

    username: str
    password: str

    def __repr__(self) -> str:
        return f"BrokerCredentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class BrokerAddress:
    """
    Broker connection target parsed from the configured URL.

    Example (input -> output):
        "mqtts://broker.local"  -> BrokerAddress(host="broker.local", port=8883, transport="tcp", tls=True)
        "ws://10.0.0.2:9001/ws" -> BrokerAddress(host="10.0.0.2", port=9001, transport="websockets", path="/ws")
    """

    host: str
    port: int
    transport: str = "tcp"  # "tcp" or "websockets"
    tls: bool = False
    path: Optional[str] = None


@dataclass
class PublicationEntry:
    """
    Resolved publication rule: one bus path republished as one MQTT topic.

    Fields:
      - path: bus path to observe, e.g. "navigation.speedOverGround"
      - topic: full outbound topic, e.g. "signalk/navigation/speedOverGround"
      - interval: sampling period in milliseconds
      - retain: broker retain flag for value messages
      - meta_enabled: publish the path metadata once to <topic>/meta
      - meta_published: set by the outbound dispatcher after metadata went out;
        the only field mutated after resolution, never reset
    """

    path: str
    topic: str
    interval: int
    retain: bool
    meta_enabled: bool
    meta_published: bool = False

    @property
    def meta_topic(self) -> str:
        return f"{self.topic}{META_TOPIC_SUFFIX}"


@dataclass(frozen=True)
class SubscriptionEntry:
    """
    Resolved subscription rule: one inbound topic written to one bus path.

    Example:
        SubscriptionEntry(topic="house/battery/voltage", path="mqtt.house.battery.voltage")
    """

    topic: str
    path: str


@dataclass(frozen=True)
class MappingConfiguration:
    """
    Fully resolved gateway configuration, built once by resolve().

    Passed explicitly to the session and to both dispatchers.
    The only runtime mutation is PublicationEntry.meta_published.
    """

    broker_url: str
    broker: BrokerAddress
    broker_credentials: Optional[BrokerCredentials]
    reject_unauthorised: bool
    client_id: Optional[str]
    publication_entries: Tuple[PublicationEntry, ...]
    subscription_entries: Tuple[SubscriptionEntry, ...]
    subscription_root: str
    strict_topics: bool = False
