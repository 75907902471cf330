#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Any, List, Mapping, Optional, Tuple
from urllib.parse import urlsplit

from pydantic import ValidationError

from ..lib.constants import (
    BROKER_REJECT_UNAUTHORISED_DEFAULT,
    BROKER_SCHEMES,
    PUBLICATION_INTERVAL_DEFAULT,
    PUBLICATION_META_DEFAULT,
    PUBLICATION_RETAIN_DEFAULT,
    PUBLICATION_ROOT_DEFAULT,
    SUBSCRIPTION_ROOT_DEFAULT,
    SUBSCRIPTION_STRICT_DEFAULT,
)
from .errors import ConfigurationError
from .models import (
    BrokerAddress,
    BrokerCredentials,
    MappingConfiguration,
    PublicationEntry,
    SubscriptionEntry,
)
from .options import (
    BrokerOptions,
    GatewayOptions,
    PublicationOptions,
    SubscriptionOptions,
)

logger = logging.getLogger(__name__)

MQTT_WILDCARDS = ("+", "#")


def _first_set(*values: Any) -> Any:
    """
    Return the first value that is not None.

    Explicit False / 0 are kept, so an entry-level "retain": false is not
    overridden by a section default of true.

    Examples:
        _first_set(None, False, True) -> False
        _first_set(None, None) -> None
    """
    for v in values:
        if v is not None:
            return v
    return None


def _parse_options(options: Any) -> GatewayOptions:
    if isinstance(options, GatewayOptions):
        return options
    if options is None:
        options = {}
    if not isinstance(options, Mapping):
        raise ConfigurationError(f"options must be a mapping, got {type(options).__name__}")
    try:
        return GatewayOptions.model_validate(dict(options))
    except ValidationError as e:
        raise ConfigurationError(f"invalid configuration: {e}") from e


def parse_credentials(text: Optional[str]) -> Optional[BrokerCredentials]:
    """
    Split "username:password" on the first ':' and trim both halves.

    Examples:
        parse_credentials("skipper : s3cr:et") -> BrokerCredentials("skipper", "s3cr:et")
        parse_credentials(None) -> None
        parse_credentials("skipper") -> ConfigurationError
    """
    if text is None or not text.strip():
        return None
    username, sep, password = text.partition(":")
    if not sep:
        raise ConfigurationError("malformed 'brokerCredentials' property (expected 'username:password')")
    username = username.strip()
    if not username:
        raise ConfigurationError("malformed 'brokerCredentials' property (empty username)")
    return BrokerCredentials(username=username, password=password.strip())


def parse_broker_url(url: str) -> BrokerAddress:
    """
    Parse broker URL into BrokerAddress.

    Accepted forms:
      - scheme://host[:port][/path] with scheme in BROKER_SCHEMES
      - legacy "mqtt:host" (no slashes)
      - bare "host" or "host:port" (treated as mqtt://)
    """
    text = url.strip()
    if "://" not in text:
        scheme, sep, rest = text.partition(":")
        if sep and scheme.lower() in BROKER_SCHEMES:
            text = f"{scheme}://{rest.lstrip('/')}"
        else:
            text = f"mqtt://{text}"

    try:
        parts = urlsplit(text)
        port = parts.port
    except ValueError as e:
        raise ConfigurationError(f"invalid 'brokerUrl' property {url!r}: {e}") from e

    scheme = parts.scheme.lower()
    if scheme not in BROKER_SCHEMES:
        raise ConfigurationError(f"unsupported 'brokerUrl' scheme {scheme!r} in {url!r}")
    if not parts.hostname:
        raise ConfigurationError(f"missing host in 'brokerUrl' property {url!r}")

    transport, tls, default_port = BROKER_SCHEMES[scheme]
    return BrokerAddress(
        host=parts.hostname,
        port=port or default_port,
        transport=transport,
        tls=tls,
        path=(parts.path or None) if transport == "websockets" else None,
    )


def _resolve_interval(*candidates: Optional[float]) -> int:
    seconds = _first_set(*candidates, PUBLICATION_INTERVAL_DEFAULT)
    interval = int(round(seconds * 1000))
    # compare after rounding: 0 ms is not a valid sampling period
    if interval <= 0:
        raise ConfigurationError(f"publication 'interval' must be at least 1 ms, got {seconds!r} s")
    return interval


def resolve_publications(options: Any) -> Tuple[PublicationEntry, ...]:
    """
    Build publication entries from options["publication"].

    Input (fragment):
        {
          "publication": {
            "root": "signalk/",
            "intervalDefault": 10,
            "paths": [
              {"path": "navigation.speedOverGround"},
              {"path": "electrical.batteries.0.voltage", "topic": "house/voltage", "retain": false}
            ]
          }
        }

    Output:
        (
          PublicationEntry(path="navigation.speedOverGround",
                           topic="signalk/navigation/speedOverGround",
                           interval=10000, retain=True, meta_enabled=False),
          PublicationEntry(path="electrical.batteries.0.voltage",
                           topic="signalk/house/voltage",
                           interval=10000, retain=False, meta_enabled=False),
        )
    """
    opts = _parse_options(options)
    pub = opts.publication or PublicationOptions()
    root = _first_set(pub.root, PUBLICATION_ROOT_DEFAULT)

    entries: List[PublicationEntry] = []
    for index, item in enumerate(pub.paths or []):
        if not item.path:
            raise ConfigurationError(f"missing publication 'path' property (publication.paths[{index}])")

        topic = f"{root}{item.topic if item.topic else item.path.replace('.', '/')}"
        if any(w in topic for w in MQTT_WILDCARDS):
            raise ConfigurationError(f"publication topic {topic!r} must not contain MQTT wildcards")

        entries.append(
            PublicationEntry(
                path=item.path,
                topic=topic,
                interval=_resolve_interval(item.interval, pub.interval_default, pub.interval, opts.interval),
                retain=bool(_first_set(item.retain, pub.retain_default, pub.retain, opts.retain,
                                       PUBLICATION_RETAIN_DEFAULT)),
                meta_enabled=bool(_first_set(item.meta, pub.meta_default, pub.meta, opts.meta,
                                             PUBLICATION_META_DEFAULT)),
            )
        )
    return tuple(entries)


def resolve_subscriptions(options: Any) -> Tuple[SubscriptionEntry, ...]:
    """
    Build subscription entries from options["subscription"].

    Every '/' of the derived path is replaced by '.', not only the first one.

    Example:
        {"subscription": {"root": "mqtt.", "topics": [{"topic": "x/y"}]}}
          -> (SubscriptionEntry(topic="x/y", path="mqtt.x.y"),)
    """
    opts = _parse_options(options)
    sub = opts.subscription or SubscriptionOptions()
    root = subscription_root(opts)

    entries: List[SubscriptionEntry] = []
    for index, item in enumerate(sub.topics or []):
        if not item.topic:
            raise ConfigurationError(f"missing subscription 'topic' property (subscription.topics[{index}])")
        path = f"{root}{item.path if item.path else item.topic}".replace("/", ".")
        entries.append(SubscriptionEntry(topic=item.topic, path=path))
    return tuple(entries)


def subscription_root(options: Any) -> str:
    opts = _parse_options(options)
    sub = opts.subscription or SubscriptionOptions()
    return _first_set(sub.root, SUBSCRIPTION_ROOT_DEFAULT)


def resolve(options: Any) -> MappingConfiguration:
    """
    Resolve raw options into a MappingConfiguration.

    Pure function: the input mapping is never modified and the same input
    always gives an equal result.

    Raises:
        ConfigurationError - missing broker URL, missing publication 'path',
        missing subscription 'topic', malformed credentials or invalid values
    """
    opts = _parse_options(options)
    broker = opts.broker or BrokerOptions()

    broker_url = _first_set(opts.broker_url, broker.url, broker.mqtt_broker_url)
    if not broker_url or not broker_url.strip():
        raise ConfigurationError("missing 'brokerUrl' property")

    credentials = parse_credentials(_first_set(opts.broker_credentials, broker.mqtt_client_credentials))
    if credentials is None and broker.username:
        credentials = BrokerCredentials(username=broker.username.strip(), password=(broker.password or "").strip())

    sub = opts.subscription or SubscriptionOptions()
    config = MappingConfiguration(
        broker_url=broker_url.strip(),
        broker=parse_broker_url(broker_url),
        broker_credentials=credentials,
        reject_unauthorised=bool(_first_set(opts.reject_unauthorised, broker.reject_unauthorised,
                                            BROKER_REJECT_UNAUTHORISED_DEFAULT)),
        client_id=_first_set(opts.client_id, broker.client_id) or None,
        publication_entries=resolve_publications(opts),
        subscription_entries=resolve_subscriptions(opts),
        subscription_root=subscription_root(opts),
        strict_topics=bool(_first_set(sub.strict, SUBSCRIPTION_STRICT_DEFAULT)),
    )
    logger.debug(
        "Resolved configuration: broker=%r publications=%d subscriptions=%d",
        config.broker_url,
        len(config.publication_entries),
        len(config.subscription_entries),
    )
    return config
