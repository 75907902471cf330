#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Protocol, Sequence

from .bus.base import Bus
from .codec import encode_value, same_sample
from .models import PublicationEntry

logger = logging.getLogger(__name__)

_NO_VALUE = object()


class Publisher(Protocol):
    def publish(self, topic: str, payload: Any, *, retain: bool = False) -> None: ...


class PathSampler:
    """
    Republishes one bus path to one MQTT topic

    Three stages, each with its own piece of state:
      1) live-value source: _follow() keeps `latest` equal to the most
         recent value seen on the bus (property, not change events)
      2) periodic sampler: _tick() calls sample() every entry.interval ms
      3) duplicate filter: sample() drops a value equal to `last_sampled`

    sample() is synchronous so that tests can drive the state machine
    without timers
    """

    def __init__(self, entry: PublicationEntry, bus: Bus, publisher: Publisher) -> None:
        self.entry = entry
        self._bus = bus
        self._publisher = publisher
        self.latest: Any = _NO_VALUE
        self.last_sampled: Any = _NO_VALUE
        self._tasks: List[asyncio.Task] = []

    @property
    def has_value(self) -> bool:
        return self.latest is not _NO_VALUE

    def start(self) -> None:
        if self._tasks:
            return
        self._tasks = [
            asyncio.create_task(self._follow(), name=f"follow:{self.entry.path}"),
            asyncio.create_task(self._tick(), name=f"sample:{self.entry.path}"),
        ]

    async def stop(self) -> None:
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    def on_value(self, value: Any) -> None:
        self.latest = value

    def sample(self) -> bool:
        """
        Take one sample; returns True when something was published
        """
        if not self.has_value:
            return False

        value = self.latest
        if self.last_sampled is not _NO_VALUE and same_sample(self.last_sampled, value):
            return False
        self.last_sampled = value

        logger.debug("Updating topic %r with %r", self.entry.topic, value)
        self._publisher.publish(self.entry.topic, encode_value(value), retain=self.entry.retain)

        if self.entry.meta_enabled and not self.entry.meta_published:
            self._publish_meta()
        return True

    def _publish_meta(self) -> None:
        current = self._bus.read_current(self.entry.path)
        if current is None or not current.meta:
            logger.debug("No meta data yet for %r", self.entry.path)
            return
        logger.debug("Updating topic %r with meta data", self.entry.meta_topic)
        self._publisher.publish(self.entry.meta_topic, encode_value(current.meta), retain=True)
        self.entry.meta_published = True

    async def _follow(self) -> None:
        period = self.entry.interval / 1000.0
        while True:
            try:
                async for value in self._bus.observe_property(self.entry.path):
                    self.on_value(value)
                logger.warning("Bus stream for %r ended, resubscribing", self.entry.path)
            except Exception as e:
                logger.error("Error observing %r: %r", self.entry.path, e, exc_info=True)
            await asyncio.sleep(period)

    async def _tick(self) -> None:
        period = self.entry.interval / 1000.0
        while True:
            await asyncio.sleep(period)
            try:
                self.sample()
            except Exception as e:
                logger.error("Error sampling %r: %r", self.entry.path, e, exc_info=True)


class OutboundDispatcher:
    """
    Bus -> broker direction: one PathSampler per publication entry

    start() is called by the gateway once the broker session is connected;
    stop() releases every bus subscription
    """

    def __init__(self, entries: Sequence[PublicationEntry], bus: Bus) -> None:
        self._entries = list(entries)
        self._bus = bus
        self._samplers: List[PathSampler] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def samplers(self) -> List[PathSampler]:
        return list(self._samplers)

    def start(self, publisher: Publisher) -> None:
        if self._running:
            logger.debug("Outbound dispatcher already running")
            return
        self._running = True
        logger.info("Publishing %d paths", len(self._entries))
        for entry in self._entries:
            logger.debug("Publishing %r as topic %r every %d ms", entry.path, entry.topic, entry.interval)
            sampler = PathSampler(entry, self._bus, publisher)
            sampler.start()
            self._samplers.append(sampler)

    async def stop(self) -> None:
        self._running = False
        samplers, self._samplers = self._samplers, []
        for sampler in samplers:
            await sampler.stop()
        if samplers:
            logger.info("Released %d bus subscriptions", len(samplers))
