#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import json
import math
import re
from typing import Any, Mapping, Union

BusScalar = Union[int, float, str]

# plain ASCII decimal or exponent notation; no "_" digit groups, no non-ASCII digits
_NUMBER_RE = re.compile(r"[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?")
_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def decode_payload(raw: Any) -> BusScalar:
    """
    Convert a raw MQTT payload into a bus value.

    Order of attempts:
      1) float: the stripped text parses as a finite float -> number
         (an integer literal stays int: "42" -> 42, "3.14" -> 3.14)
      2) anything else -> the decoded text, unchanged ("on" -> "on")

    Numeric-looking strings that were not meant as numbers ("007",
    "1e3") are converted anyway; this is the gateway's contract.
    Only ASCII decimal/exponent notation counts as a number: "1_000",
    "0x10" and non-ASCII digits stay text
    """
    if isinstance(raw, (bytes, bytearray)):
        text = raw.decode("utf-8", errors="replace")
    else:
        text = str(raw)

    s = text.strip()
    if not _NUMBER_RE.fullmatch(s):
        return text
    number = float(s)

    if not math.isfinite(number):
        # overflow ("1e999") is not a number on the bus
        return text

    if _INTEGER_RE.fullmatch(s):
        return int(s)
    return number


def encode_value(value: Any) -> bytes:
    """
    Convert a bus value (or metadata mapping) into an MQTT payload.

    JSON text, so strings keep their quotes:
        12.5          -> b"12.5"
        "on"          -> b'"on"'
        {"id": "x"}   -> b'{"id": "x"}'
    """
    return json.dumps(value, default=str).encode("utf-8")


def sample_identity(value: Any) -> Any:
    """Return the "id" marker of a value or None if the value has none"""
    if isinstance(value, Mapping):
        return value.get("id") or None
    return None


def same_sample(previous: Any, current: Any) -> bool:
    """
    Duplicate check for consecutive samples.

    If the previous value carries an "id" marker compare markers,
    otherwise compare values
    """
    marker = sample_identity(previous)
    if marker is not None:
        return marker == sample_identity(current)
    return previous == current
