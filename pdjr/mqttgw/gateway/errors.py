#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations


class GatewayError(Exception):
    """Base class for all gateway errors"""


class ConfigurationError(GatewayError, ValueError):
    """
    Raised while resolving raw options

    Fatal to start(): the gateway stays inert, no retry
    """


class BrokerConnectionError(GatewayError, ConnectionError):
    """
    Transport-level failure after a successful configuration

    Never raised out of the session: it is handed to the error handler
    while paho keeps retrying in the background
    """


class TranslationWarning(UserWarning):
    """Inbound message whose topic does not match any configured subscription"""
