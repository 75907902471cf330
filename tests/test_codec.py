#!/usr/bin/env python3
# -*- coding: utf-8 -*-

from __future__ import annotations

import pytest

from pdjr.mqttgw.gateway.codec import decode_payload, encode_value, same_sample


@pytest.mark.parametrize(
    "payload,expected",
    [
        (b"42", 42),
        (b" -7 ", -7),
        (b"3.14", 3.14),
        (b"1e3", 1000.0),
        (b"on", "on"),
        (b"", ""),
        (b"nan", "nan"),
        ("12.5", 12.5),
        (b".5", 0.5),
        (b"1e999", "1e999"),
        (b"1_000", "1_000"),
        (b"12_34.5", "12_34.5"),
        (b"0x10", "0x10"),
        ("\u0661\u0662", "\u0661\u0662"),
    ],
)
def test_decode_payload(payload, expected):
    value = decode_payload(payload)
    assert value == expected
    assert type(value) is type(expected)


def test_decode_payload_keeps_text_unchanged():
    # Non-numeric text is not stripped
    assert decode_payload(b" port ") == " port "
    # Invalid UTF-8 is replaced, not raised
    assert decode_payload(b"\xffon") == "\ufffdon"


def test_encode_value_as_json():
    assert encode_value(12.5) == b"12.5"
    assert encode_value("on") == b'"on"'
    assert encode_value({"units": "m/s"}) == b'{"units": "m/s"}'
    assert encode_value(None) == b"null"


@pytest.mark.parametrize(
    "previous,current,expected",
    [
        (1, 1, True),
        (1, 2, False),
        ("on", "on", True),
        ({"latitude": 1.0}, {"latitude": 1.0}, True),
        # "id" markers decide when present
        ({"id": "a", "v": 1}, {"id": "a", "v": 2}, True),
        ({"id": "a", "v": 1}, {"id": "b", "v": 1}, False),
        ({"id": "a"}, 5, False),
    ],
)
def test_same_sample(previous, current, expected):
    assert same_sample(previous, current) is expected
