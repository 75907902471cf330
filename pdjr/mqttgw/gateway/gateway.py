#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from ..lib.constants import PLUGIN_ID
from .broker.session import BrokerSession
from .bus.base import Bus
from .errors import BrokerConnectionError, ConfigurationError
from .inbound import InboundDispatcher
from .models import MappingConfiguration
from .outbound import OutboundDispatcher
from .resolver import resolve
from .status import LoggingStatusReporter, StatusReporter

logger = logging.getLogger(__name__)

SessionFactory = Callable[[MappingConfiguration], BrokerSession]


class Gateway:
    """
    Wires resolver, broker session and both dispatchers together

    Lifecycle (host side):
        gateway = Gateway(bus, reporter, client_id=host_self_id)
        await gateway.start(options)   # returns False when not started
        ...
        await gateway.stop()

    Notes:
      - Gateway does NOT parse MQTT payloads; codec does
      - Gateway does NOT know the bus internals; Bus implementation does
      - a configuration error leaves the gateway inert: no session, no
        publications, no subscriptions
      - MQTT client id: configured clientId, else the host identity passed
        as client_id, else a random "mqttgw-xxxxxxxx"
    """

    def __init__(
        self,
        bus: Bus,
        reporter: Optional[StatusReporter] = None,
        *,
        session_factory: Optional[SessionFactory] = None,
        source_id: str = PLUGIN_ID,
        client_id: Optional[str] = None,
    ) -> None:
        self._bus = bus
        self._reporter = reporter or LoggingStatusReporter()
        self._session_factory: SessionFactory = session_factory or BrokerSession
        self._source_id = source_id
        self._client_id = client_id

        self.config: Optional[MappingConfiguration] = None
        self.session: Optional[BrokerSession] = None
        self.outbound: Optional[OutboundDispatcher] = None
        self.inbound: Optional[InboundDispatcher] = None

    @property
    def started(self) -> bool:
        return self.session is not None

    async def start(self, options: Any) -> bool:
        if self.started:
            logger.warning("Gateway already started")
            return True

        try:
            config = resolve(options)
        except ConfigurationError as e:
            self._reporter.report_status("Stopped: bad or missing configuration")
            self._reporter.report_error(str(e))
            return False

        if not config.client_id and self._client_id:
            config = replace(config, client_id=self._client_id)

        n_pub = len(config.publication_entries)
        n_sub = len(config.subscription_entries)
        if n_pub == 0 and n_sub == 0:
            self._reporter.report_status("Stopped: no configured publications or subscriptions")
            return False

        outbound = OutboundDispatcher(config.publication_entries, self._bus)
        inbound = InboundDispatcher(config, self._bus, source_id=self._source_id)
        try:
            session = self._session_factory(config)
        except Exception as e:
            logger.exception("Failed to create MQTT broker session")
            self._reporter.report_status("Stopped: unable to create broker session")
            self._reporter.report_error(str(e))
            return False

        self.config = config
        self.outbound = outbound
        self.inbound = inbound
        self.session = session

        session.on_message(inbound.handle)
        session.on_error(self._on_session_error)
        session.on_connect(self._on_session_connect)
        session.connect()

        self._reporter.report_status(f"Started: publishing {n_pub} paths; receiving {n_sub} topics")
        return True

    async def stop(self, reason: str = "gateway stopped") -> None:
        if not self.started:
            return
        if self.outbound is not None:
            await self.outbound.stop()
        if self.session is not None:
            # paho loop_stop() joins the network thread
            await asyncio.to_thread(self.session.close)
        self.session = None
        self.outbound = None
        self.inbound = None
        self._reporter.report_status(f"Stopped: {reason}")

    # --- Session callbacks (event loop) ---

    def _on_session_connect(self) -> None:
        if self.outbound is None or self.session is None:
            return
        if not self.outbound.running and self.config.publication_entries:
            self.outbound.start(self.session)

    def _on_session_error(self, error: BrokerConnectionError) -> None:
        self._reporter.report_error(str(error))
