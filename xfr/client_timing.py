"""Timeouts, deadlines and per-stream rate shares used while a client test runs."""

from __future__ import annotations

STREAM_JOIN_TIMEOUT_BASE_MS = 2000
STREAM_JOIN_TIMEOUT_PER_STREAM_MS = 50
SINGLE_PORT_HANDSHAKE_FANOUT_MAX = 16
RESPONSE_GRACE_SECS = 30
UNLIMITED_RESPONSE_TIMEOUT_SECS = 365 * 24 * 3600
DEFAULT_UDP_BITRATE = 1_000_000_000


def stream_join_timeout(streams: int) -> float:
    """Seconds to wait for data streams to stop: 50 ms per stream, at least 2 s."""
    return max(streams * STREAM_JOIN_TIMEOUT_PER_STREAM_MS, STREAM_JOIN_TIMEOUT_BASE_MS) / 1000


def single_port_handshake_parallelism(streams: int) -> int:
    """How many single-port handshakes may run at once."""
    return min(max(streams, 1), SINGLE_PORT_HANDSHAKE_FANOUT_MAX)


def local_stop_deadline(start: float, duration: float) -> float | None:
    """When local data streams should stop; None for an unlimited test."""
    if duration == 0:
        return None
    return start + duration


def response_timeout(duration: float) -> float:
    """Seconds to wait for the server's final report (about a year if unlimited)."""
    if duration == 0:
        return float(UNLIMITED_RESPONSE_TIMEOUT_SECS)
    return duration + RESPONSE_GRACE_SECS


def _share(bitrate: int, streams: int) -> int:
    if bitrate == 0:
        return 0
    if streams < 1:
        raise ValueError("streams must be at least 1")
    return max(bitrate // streams, 1)


def per_stream_bitrate(bitrate: int | None, streams: int) -> int | None:
    """Split a TCP bitrate limit across streams; 0 means unlimited."""
    if bitrate is None:
        return None
    return _share(bitrate, streams)


def udp_stream_bitrate(bitrate: int | None, streams: int) -> int:
    """Split a UDP bitrate (1 Gbps by default) across streams; 0 means unlimited."""
    return _share(DEFAULT_UDP_BITRATE if bitrate is None else bitrate, streams)