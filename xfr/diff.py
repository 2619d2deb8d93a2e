"""Compare two saved test results and report throughput regressions."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


class DiffError(ValueError):
    """Raised when a saved test result cannot be read."""


def normalize_for_display(value: float, decimals: int) -> float:
    """Return ``value``, or ``0.0`` if it would display as zero.

    This keeps values such as ``-0.0`` or ``-0.04`` from being shown as
    ``-0.0`` at the given number of decimals.
    """
    if not math.isfinite(value):
        return value
    if round(value, decimals) == 0:
        return 0.0
    return value


def _require(data: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in data:
        raise DiffError(f"{where}: missing field '{key}'")
    return data[key]


def _int(value: Any, where: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise DiffError(f"{where}: expected a non-negative integer, got {value!r}")
    return value


def _float(value: Any, where: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DiffError(f"{where}: expected a number, got {value!r}")
    return float(value)


def _optional(data: Mapping[str, Any], key: str, convert, where: str) -> Any:
    value = data.get(key)
    if value is None:
        return None
    return convert(value, f"{where}.{key}")


@dataclass
class TcpSummary:
    """TCP_INFO snapshot attached to a test result."""

    retransmits: int
    rtt_us: int
    rtt_var_us: int
    cwnd: int
    bytes_acked: int | None = None

    @classmethod
    def _from_dict(cls, data: Any, where: str) -> "TcpSummary":
        if not isinstance(data, Mapping):
            raise DiffError(f"{where}: expected an object, got {data!r}")
        return cls(
            retransmits=_int(_require(data, "retransmits", where), f"{where}.retransmits"),
            rtt_us=_int(_require(data, "rtt_us", where), f"{where}.rtt_us"),
            rtt_var_us=_int(_require(data, "rtt_var_us", where), f"{where}.rtt_var_us"),
            cwnd=_int(_require(data, "cwnd", where), f"{where}.cwnd"),
            bytes_acked=_optional(data, "bytes_acked", _int, where),
        )


@dataclass
class ResultSummary:
    """The parts of a saved test result used for comparison."""

    id: str
    bytes_total: int
    duration_ms: int
    throughput_mbps: float
    streams: list[Any] = field(default_factory=list)
    tcp_info: TcpSummary | None = None
    udp_stats: Any = None
    bytes_sent: int | None = None
    bytes_received: int | None = None
    throughput_send_mbps: float | None = None
    throughput_recv_mbps: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ResultSummary":
        """Build a summary from a decoded JSON test result."""
        where = "result"
        if not isinstance(data, Mapping):
            raise DiffError(f"{where}: expected an object, got {data!r}")
        test_id = _require(data, "id", where)
        if not isinstance(test_id, str):
            raise DiffError(f"{where}.id: expected a string, got {test_id!r}")
        streams = data.get("streams", [])
        if not isinstance(streams, list):
            raise DiffError(f"{where}.streams: expected an array, got {streams!r}")
        tcp_raw = data.get("tcp_info")
        return cls(
            id=test_id,
            bytes_total=_int(_require(data, "bytes_total", where), f"{where}.bytes_total"),
            duration_ms=_int(_require(data, "duration_ms", where), f"{where}.duration_ms"),
            throughput_mbps=_float(
                _require(data, "throughput_mbps", where), f"{where}.throughput_mbps"
            ),
            streams=list(streams),
            tcp_info=None if tcp_raw is None else TcpSummary._from_dict(tcp_raw, f"{where}.tcp_info"),
            udp_stats=data.get("udp_stats"),
            bytes_sent=_optional(data, "bytes_sent", _int, where),
            bytes_received=_optional(data, "bytes_received", _int, where),
            throughput_send_mbps=_optional(data, "throughput_send_mbps", _float, where),
            throughput_recv_mbps=_optional(data, "throughput_recv_mbps", _float, where),
        )


@dataclass
class DiffConfig:
    """Comparison settings: a throughput drop beyond the threshold is a regression."""

    threshold_percent: float = 0.0


@dataclass
class DiffResult:
    """Outcome of comparing a current result against a baseline."""

    baseline: ResultSummary
    current: ResultSummary
    throughput_change_percent: float
    retransmit_change_percent: float
    rtt_change_percent: float
    is_regression: bool

    def format_plain(self) -> str:
        """Render the comparison as plain text."""
        lines = []
        throughput = (
            f"Throughput: {normalize_for_display(self.baseline.throughput_mbps, 1):.1f} Mbps"
            f" → {normalize_for_display(self.current.throughput_mbps, 1):.1f} Mbps"
            f" ({normalize_for_display(self.throughput_change_percent, 1):+.1f}%)"
        )
        if self.throughput_change_percent < -5.0:
            throughput += " [FAIL]"
        elif self.throughput_change_percent < 0.0:
            throughput += " [WARN]"
        else:
            throughput += " [OK]"
        lines.append(throughput)

        base_tcp, cur_tcp = self.baseline.tcp_info, self.current.tcp_info
        if base_tcp is not None and cur_tcp is not None:
            retrans = (
                f"Retransmits: {base_tcp.retransmits} → {cur_tcp.retransmits}"
                f" ({self.retransmit_change_percent:+.1f}%)"
            )
            if self.retransmit_change_percent > 50.0:
                retrans += " [FAIL]"
            elif self.retransmit_change_percent > 20.0:
                retrans += " [WARN]"
            lines.append(retrans)

            rtt = (
                f"RTT: {base_tcp.rtt_us / 1000.0:.2f} ms → {cur_tcp.rtt_us / 1000.0:.2f} ms"
                f" ({self.rtt_change_percent:+.1f}%)"
            )
            if self.rtt_change_percent > 20.0:
                rtt += " [WARN]"
            lines.append(rtt)

        lines.append("")
        lines.append(
            "Verdict: REGRESSION DETECTED" if self.is_regression else "Verdict: OK"
        )
        return "\n".join(lines) + "\n"


def load_result(path: str | Path) -> ResultSummary:
    """Load a JSON test result from a file."""
    content = Path(path).read_text(encoding="utf-8")
    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise DiffError(f"{path}: invalid JSON: {exc}") from exc
    return ResultSummary.from_dict(data)


def _percent_change(before: float, after: float) -> float:
    return (after - before) / before * 100.0


def compare(
    baseline: ResultSummary,
    current: ResultSummary,
    config: DiffConfig | None = None,
) -> DiffResult:
    """Compare two results."""
    config = config or DiffConfig()

    throughput_change = (
        _percent_change(baseline.throughput_mbps, current.throughput_mbps)
        if baseline.throughput_mbps > 0.0
        else 0.0
    )

    retransmit_change = 0.0
    rtt_change = 0.0
    base_tcp, cur_tcp = baseline.tcp_info, current.tcp_info
    if base_tcp is not None and cur_tcp is not None:
        if base_tcp.retransmits > 0:
            retransmit_change = _percent_change(base_tcp.retransmits, cur_tcp.retransmits)
        if base_tcp.rtt_us > 0:
            rtt_change = _percent_change(base_tcp.rtt_us, cur_tcp.rtt_us)

    return DiffResult(
        baseline=baseline,
        current=current,
        throughput_change_percent=throughput_change,
        retransmit_change_percent=retransmit_change,
        rtt_change_percent=rtt_change,
        is_regression=throughput_change < -config.threshold_percent,
    )


def run_diff(
    baseline_path: str | Path,
    current_path: str | Path,
    config: DiffConfig | None = None,
) -> DiffResult:
    """Load two result files and compare them."""
    baseline = load_result(baseline_path)
    current = load_result(current_path)
    return compare(baseline, current, config)