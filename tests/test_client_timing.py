import time

import pytest

from xfr.client_timing import (
    local_stop_deadline,
    per_stream_bitrate,
    response_timeout,
    single_port_handshake_parallelism,
    stream_join_timeout,
    udp_stream_bitrate,
)


def test_stream_join_timeout_scaling():
    assert stream_join_timeout(1) == 2.0
    assert stream_join_timeout(40) == 2.0
    assert stream_join_timeout(128) == 6.4


@pytest.mark.parametrize(
    "streams, expected",
    [(1, 1), (8, 8), (16, 16), (32, 16), (128, 16)],
)
def test_single_port_handshake_parallelism(streams, expected):
    assert single_port_handshake_parallelism(streams) == expected


def test_single_port_handshake_parallelism_at_least_one():
    assert single_port_handshake_parallelism(0) == 1


def test_local_stop_deadline_none_for_infinite_duration():
    assert local_stop_deadline(time.monotonic(), 0) is None


def test_local_stop_deadline_set_for_finite_duration():
    start = time.monotonic()
    assert local_stop_deadline(start, 10) == start + 10


def test_response_timeout_infinite_is_one_year():
    assert response_timeout(0) == 365 * 24 * 3600


def test_response_timeout_adds_grace():
    assert response_timeout(10) == 40


def test_per_stream_bitrate_none_stays_none():
    assert per_stream_bitrate(None, 4) is None


def test_per_stream_bitrate_zero_is_unlimited():
    assert per_stream_bitrate(0, 4) == 0


def test_per_stream_bitrate_clamps_to_one():
    assert per_stream_bitrate(100, 8) == 12
    assert per_stream_bitrate(3, 8) == 1


def test_per_stream_bitrate_rejects_zero_streams():
    with pytest.raises(ValueError):
        per_stream_bitrate(100, 0)


def test_udp_stream_bitrate_defaults_to_one_gbps():
    assert udp_stream_bitrate(None, 1) == 1_000_000_000


def test_udp_stream_bitrate_zero_is_unlimited():
    assert udp_stream_bitrate(0, 8) == 0


def test_udp_stream_bitrate_splits_and_clamps():
    assert udp_stream_bitrate(100, 8) == 12
    assert udp_stream_bitrate(5, 8) == 1