#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
import warnings
from typing import Any, Dict, Optional

from ..lib.constants import PLUGIN_ID
from .bus.base import Bus
from .bus.delta import Delta
from .codec import decode_payload
from .errors import TranslationWarning
from .models import MappingConfiguration

logger = logging.getLogger(__name__)


class InboundDispatcher:
    """
    Broker -> bus direction

    For every inbound message:
      1) find the subscription entry by exact topic (later entries win on
         duplicate topics); unmatched topics (e.g. wildcard subscriptions)
         get a synthetic path: subscription_root + topic with '/' -> '.'
         In strict mode unmatched messages are dropped instead
      2) coerce the payload (see codec.decode_payload)
      3) write exactly one value to the bus through a Delta envelope

    Example:
        entries: [SubscriptionEntry(topic="house/voltage", path="mqtt.house.voltage")]
        handle("house/voltage", b"12.7") -> bus["mqtt.house.voltage"] = 12.7
        handle("house/temp/in", b"on")   -> bus["mqtt.house.temp.in"] = "on"  (fallback)
    """

    def __init__(
        self,
        config: MappingConfiguration,
        bus: Bus,
        *,
        source_id: str = PLUGIN_ID,
        strict: Optional[bool] = None,
    ) -> None:
        self._bus = bus
        self._source_id = source_id
        self._root = config.subscription_root
        self._strict = config.strict_topics if strict is None else strict
        self._paths: Dict[str, str] = {}
        for entry in config.subscription_entries:
            self._paths[entry.topic] = entry.path

    def resolve_path(self, topic: str) -> Optional[str]:
        path = self._paths.get(topic)
        if path is not None:
            return path
        if self._strict:
            warnings.warn(f"dropping message on unconfigured topic {topic!r}", TranslationWarning, stacklevel=2)
            return None
        warnings.warn(f"no subscription entry for topic {topic!r}, using derived path", TranslationWarning,
                      stacklevel=2)
        return self._root + topic.replace("/", ".")

    def handle(self, topic: str, payload: Any) -> Optional[str]:
        """
        Process one raw broker message; returns the bus path written or None
        """
        path = self.resolve_path(topic)
        if path is None:
            return None
        value = decode_payload(payload)
        logger.debug("Received message %r on topic %r -> %s", value, topic, path)
        Delta(self._bus, self._source_id).add_value(path, value).commit().clear()
        return path
