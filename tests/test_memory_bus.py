#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio

from pdjr.mqttgw.gateway.bus.base import BusValue
from pdjr.mqttgw.gateway.bus.delta import Delta
from pdjr.mqttgw.gateway.bus.memory import MemoryBus


def test_write_and_read_current():
    bus = MemoryBus()
    bus.write_update("navigation.speedOverGround", 3.2, source="test")
    bus.set_meta("navigation.speedOverGround", {"units": "m/s"})

    assert bus.read_current("navigation.speedOverGround") == BusValue(value=3.2, meta={"units": "m/s"})
    assert bus.read_source("navigation.speedOverGround") == "test"

    # Intermediate nodes and unknown paths have no value
    assert bus.read_current("navigation") is None
    assert bus.read_current("navigation.headingTrue") is None


def test_meta_without_value():
    bus = MemoryBus()
    bus.set_meta("environment.depth.belowKeel", {"units": "m"})
    current = bus.read_current("environment.depth.belowKeel")
    assert current.value is None
    assert current.meta == {"units": "m"}


def test_observe_property_yields_current_then_updates():
    async def scenario():
        bus = MemoryBus()
        bus.write_update("a.b", 1)

        stream = bus.observe_property("a.b")
        first = await stream.__anext__()
        bus.write_update("a.b", 2)
        bus.write_update("a.c", 99)  # other path, not observed
        second = await stream.__anext__()
        assert bus.observer_count("a.b") == 1

        await stream.aclose()
        assert bus.observer_count("a.b") == 0
        return first, second

    assert asyncio.run(scenario()) == (1, 2)


def test_delta_commits_each_value_once():
    bus = MemoryBus()
    delta = Delta(bus, "mqttgw").add_value("mqtt.a", 1)
    assert len(delta) == 1

    delta.commit().clear()
    assert len(delta) == 0
    assert bus.read_current("mqtt.a").value == 1
    assert bus.read_source("mqtt.a") == "mqttgw"

    # Clearing means a second commit writes nothing
    bus.write_update("mqtt.a", 2)
    delta.commit()
    assert bus.read_current("mqtt.a").value == 2


def test_reserved_segment_names_are_ordinary_children():
    bus = MemoryBus()
    bus.write_update("mqtt.x", 12, source="mqttgw")
    bus.set_meta("mqtt.x", {"units": "V"})

    bus.write_update("mqtt.x.meta", "on", source="other")
    bus.write_update("mqtt.x.value", 5, source="other")
    bus.write_update("mqtt.x.children", 1)

    assert bus.read_current("mqtt.x") == BusValue(value=12, meta={"units": "V"})
    assert bus.read_source("mqtt.x") == "mqttgw"
    assert bus.read_current("mqtt.x.meta").value == "on"
    assert bus.read_current("mqtt.x.value").value == 5
    assert bus.read_current("mqtt.x.children").value == 1
