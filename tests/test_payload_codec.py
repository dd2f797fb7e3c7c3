"""Tests for the fixed-width payload codec."""

import pytest

from fledgely_forensics.services.watermark import WatermarkPayload
from fledgely_forensics.services.watermark.payload_codec import (
    decode_payload,
    encode_payload,
    payload_bit_length,
)


def test_bit_length_is_400():
    assert payload_bit_length() == 28 * 7 + 64 + 20 * 7 == 400


@pytest.mark.parametrize(
    "payload",
    [
        WatermarkPayload("", 0, ""),
        WatermarkPayload("u", 1, "s"),
        WatermarkPayload("x" * 28, 2**53 - 1, "y" * 20),
        WatermarkPayload("x" * 100, 5, "y" * 100),
    ],
    ids=["empty", "short", "max-width", "overlong"],
)
def test_length_independent_of_content(payload):
    assert len(encode_payload(payload)) == payload_bit_length()


def test_round_trip(sample_payload):
    assert decode_payload(encode_payload(sample_payload)) == sample_payload


def test_max_width_fields_round_trip():
    payload = WatermarkPayload("A" * 27 + "z", 1703001600000, "0123456789abcdefghij")
    assert decode_payload(encode_payload(payload)) == payload


def test_empty_strings_round_trip():
    payload = WatermarkPayload("", 1703001600000, "")
    decoded = decode_payload(encode_payload(payload))
    assert decoded.viewer_id == ""
    assert decoded.screenshot_id == ""


def test_overlong_strings_truncated():
    payload = WatermarkPayload("v" * 40, 7, "s" * 30)
    decoded = decode_payload(encode_payload(payload))
    assert decoded.viewer_id == "v" * 28
    assert decoded.screenshot_id == "s" * 20


@pytest.mark.parametrize("ts", [0, 1, 1703001600000, 2**53 - 1, 2**64 - 1])
def test_timestamp_boundaries(ts):
    payload = WatermarkPayload("viewer", ts, "shot")
    assert decode_payload(encode_payload(payload)).view_timestamp == ts


def test_timestamp_is_big_endian():
    bits = encode_payload(WatermarkPayload("", 1, ""))
    ts_bits = bits[196:260]
    assert ts_bits[-1] == 1
    assert sum(ts_bits) == 1


@pytest.mark.parametrize("ts", [-1, 2**64])
def test_timestamp_out_of_range_raises(ts):
    with pytest.raises(ValueError):
        encode_payload(WatermarkPayload("viewer", ts, "shot"))


def test_non_ascii_replaced():
    payload = WatermarkPayload("josé", 1, "a\x00b")
    decoded = decode_payload(encode_payload(payload))
    assert decoded.viewer_id == "jos?"
    assert decoded.screenshot_id == "a?b"


def test_arbitrary_bits_decode_without_error():
    decoded = decode_payload([1] * payload_bit_length())
    assert decoded.viewer_id == "\x7f" * 28
    assert decoded.view_timestamp == 2**64 - 1
    assert decoded.screenshot_id == "\x7f" * 20


def test_all_zero_bits_decode_to_empty():
    decoded = decode_payload([0] * payload_bit_length())
    assert decoded == WatermarkPayload("", 0, "")


def test_wrong_length_raises():
    with pytest.raises(ValueError):
        decode_payload([0] * (payload_bit_length() - 1))
