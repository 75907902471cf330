#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, AsyncIterator, Mapping, Optional


@dataclass(frozen=True)
class BusValue:
    """
    Snapshot of one bus path

    Fields:
      - value: current value (scalar or mapping, may carry an "id" marker)
      - meta: static descriptive data (units, description, ...), if any
    """

    value: Any
    meta: Optional[Mapping[str, Any]] = None


class Bus(ABC):
    """
    Interface of the bus consumed by the gateway

    Bus responsibilities:
      - observe_property(path): async iterator of values for a path; yields the
          current value first (if any), then every later value; never ends
          on its own, closing it releases the subscription
      - read_current(path): synchronous snapshot with value and meta
      - write_update(path, value): commit one value as a discrete update
    """

    @abstractmethod
    def observe_property(self, path: str) -> AsyncIterator[Any]:
        raise NotImplementedError

    @abstractmethod
    def read_current(self, path: str) -> Optional[BusValue]:
        raise NotImplementedError

    @abstractmethod
    def write_update(self, path: str, value: Any, source: Optional[str] = None) -> None:
        raise NotImplementedError
