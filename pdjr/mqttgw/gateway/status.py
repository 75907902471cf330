#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ..lib.constants import GATEWAY_LOGGER_NAME


class StatusReporter(ABC):
    """
    Status/error interface exposed to the host

    The gateway calls it on start success/failure, on stop and on every
    distinct connection error. Nothing else is reported through it
    """

    @abstractmethod
    def report_status(self, message: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def report_error(self, message: str) -> None:
        raise NotImplementedError


class LoggingStatusReporter(StatusReporter):
    """Default reporter: writes status and errors to the gateway logger"""

    def __init__(self, logger_name: str = GATEWAY_LOGGER_NAME) -> None:
        self._logger = logging.getLogger(logger_name)

    def report_status(self, message: str) -> None:
        self._logger.info("%s", message)

    def report_error(self, message: str) -> None:
        self._logger.error("%s", message)
