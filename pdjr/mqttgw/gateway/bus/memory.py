#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional

from .base import Bus, BusValue

logger = logging.getLogger(__name__)


def _node(root: Dict[str, Any], path: str, create: bool = False) -> Optional[Dict[str, Any]]:
    """
    Walk the tree by a dotted path

    Path examples:
      - "navigation.speedOverGround" -> root["navigation"]["children"]["speedOverGround"]
      - "electrical.batteries.0"     -> root["electrical"]["children"]["batteries"]["children"]["0"]

    Child segments live under "children", apart from the node's own
    value/meta/$source, so a segment named "value" or "meta" is an
    ordinary child. Returns None when the path is missing and create is False
    """
    children: Dict[str, Any] = root
    node: Optional[Dict[str, Any]] = None
    for p in path.split("."):
        node = children.get(p)
        if node is None:
            if not create:
                return None
            node = {"children": {}}
            children[p] = node
        children = node.setdefault("children", {})
    return node


@dataclass
class MemoryBus(Bus):
    """In-memory bus tree

    Structure (Signal K style, children kept apart from leaf data):
      tree["navigation"]["children"]["speedOverGround"]
          -> {"value": 3.2, "meta": {...}, "$source": "mqttgw", "children": {}}

    Observers are asyncio queues registered per path; every write_update()
    is pushed to each of them. Must be used from the event loop thread
    """

    tree: Dict[str, Any] = field(default_factory=dict)
    _observers: Dict[str, List[asyncio.Queue]] = field(default_factory=dict, init=False, repr=False)

    def write_update(self, path: str, value: Any, source: Optional[str] = None) -> None:
        node = _node(self.tree, path, create=True)
        node["value"] = value
        if source is not None:
            node["$source"] = source
        for queue in self._observers.get(path, []):
            queue.put_nowait(value)

    def set_meta(self, path: str, meta: Mapping[str, Any]) -> None:
        node = _node(self.tree, path, create=True)
        node["meta"] = dict(meta)

    def read_current(self, path: str) -> Optional[BusValue]:
        node = _node(self.tree, path)
        if node is None or ("value" not in node and "meta" not in node):
            return None
        return BusValue(value=node.get("value"), meta=node.get("meta"))

    def read_source(self, path: str) -> Optional[str]:
        """Source id of the last write_update() on path, if any"""
        node = _node(self.tree, path)
        return None if node is None else node.get("$source")

    def observer_count(self, path: str) -> int:
        return len(self._observers.get(path, []))

    async def observe_property(self, path: str) -> AsyncIterator[Any]:
        queue: asyncio.Queue = asyncio.Queue()
        self._observers.setdefault(path, []).append(queue)
        logger.debug("Observing %s (%d observers)", path, len(self._observers[path]))
        try:
            node = _node(self.tree, path)
            if node is not None and "value" in node:
                yield node["value"]
            while True:
                yield await queue.get()
        finally:
            observers = self._observers.get(path, [])
            if queue in observers:
                observers.remove(queue)
            if not observers:
                self._observers.pop(path, None)
            logger.debug("Stopped observing %s", path)
