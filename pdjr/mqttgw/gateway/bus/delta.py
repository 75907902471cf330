#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from typing import Any, List, Tuple

from .base import Bus

logger = logging.getLogger(__name__)


class Delta:
    """
    Update envelope for the bus

    Usage (one value per inbound message):
        Delta(bus, "mqttgw").add_value("mqtt.house.voltage", 12.7).commit().clear()
    """

    def __init__(self, bus: Bus, source_id: str) -> None:
        self._bus = bus
        self._source_id = source_id
        self._values: List[Tuple[str, Any]] = []

    def __len__(self) -> int:
        return len(self._values)

    def add_value(self, path: str, value: Any) -> "Delta":
        self._values.append((path, value))
        return self

    def commit(self) -> "Delta":
        for path, value in self._values:
            logger.debug("Bus update: %s = %r (source=%s)", path, value, self._source_id)
            self._bus.write_update(path, value, source=self._source_id)
        return self

    def clear(self) -> "Delta":
        self._values = []
        return self
