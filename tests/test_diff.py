import json

import pytest

from xfr.diff import (
    DiffConfig,
    DiffError,
    ResultSummary,
    TcpSummary,
    compare,
    load_result,
    normalize_for_display,
    run_diff,
)


def make_result(throughput, retransmits, rtt_us):
    return ResultSummary(
        id="test",
        bytes_total=1_000_000_000,
        duration_ms=10_000,
        throughput_mbps=throughput,
        streams=[],
        tcp_info=TcpSummary(
            retransmits=retransmits,
            rtt_us=rtt_us,
            rtt_var_us=100,
            cwnd=65535,
            bytes_acked=None,
        ),
    )


def result_dict(throughput, retransmits, rtt_us):
    return {
        "id": "test",
        "bytes_total": 1_000_000_000,
        "duration_ms": 10_000,
        "throughput_mbps": throughput,
        "streams": [],
        "tcp_info": {
            "retransmits": retransmits,
            "rtt_us": rtt_us,
            "rtt_var_us": 100,
            "cwnd": 65535,
        },
    }


def test_no_regression():
    diff = compare(make_result(1000.0, 10, 1000), make_result(1050.0, 8, 900), DiffConfig())
    assert not diff.is_regression
    assert diff.throughput_change_percent > 0.0


def test_equal_throughput_no_negative_zero():
    diff = compare(make_result(1000.0, 10, 1000), make_result(1000.0, 10, 1000), DiffConfig())
    output = diff.format_plain()
    assert "+0.0%" in output
    assert "-0.0" not in output


def test_regression():
    diff = compare(
        make_result(1000.0, 10, 1000),
        make_result(800.0, 50, 1500),
        DiffConfig(threshold_percent=5.0),
    )
    assert diff.is_regression
    assert diff.throughput_change_percent < -10.0


def test_regression_format_marks_failure():
    diff = compare(
        make_result(1000.0, 10, 1000),
        make_result(800.0, 50, 1500),
        DiffConfig(threshold_percent=5.0),
    )
    lines = diff.format_plain().splitlines()
    assert lines[0].startswith("Throughput:")
    assert lines[0].endswith("[FAIL]")
    assert lines[1].startswith("Retransmits: 10 → 50")
    assert lines[1].endswith("[FAIL]")
    assert lines[-1] == "Verdict: REGRESSION DETECTED"


def test_ok_verdict_and_no_tcp_lines_without_tcp_info():
    baseline = make_result(1000.0, 10, 1000)
    baseline.tcp_info = None
    diff = compare(baseline, make_result(1100.0, 10, 1000))
    output = diff.format_plain()
    assert "Retransmits" not in output
    assert "RTT" not in output
    assert output.endswith("Verdict: OK\n")
    assert diff.retransmit_change_percent == 0.0
    assert diff.rtt_change_percent == 0.0


def test_small_drop_is_warning_not_regression_within_threshold():
    diff = compare(
        make_result(1000.0, 10, 1000),
        make_result(990.0, 10, 1000),
        DiffConfig(threshold_percent=5.0),
    )
    assert not diff.is_regression
    assert diff.format_plain().splitlines()[0].endswith("[WARN]")


def test_zero_baseline_throughput_gives_zero_change():
    diff = compare(make_result(0.0, 0, 0), make_result(500.0, 5, 100))
    assert diff.throughput_change_percent == 0.0
    assert diff.retransmit_change_percent == 0.0
    assert diff.rtt_change_percent == 0.0
    assert not diff.is_regression


def test_normalize_for_display():
    assert normalize_for_display(-0.0, 1) == 0.0
    assert f"{normalize_for_display(-0.04, 1):+.1f}" == "+0.0"
    assert normalize_for_display(-12.5, 1) == -12.5


def test_load_result(tmp_path):
    path = tmp_path / "base.json"
    path.write_text(json.dumps(result_dict(1000.0, 10, 1000)), encoding="utf-8")
    result = load_result(path)
    assert result.id == "test"
    assert result.throughput_mbps == 1000.0
    assert result.tcp_info.rtt_us == 1000
    assert result.tcp_info.bytes_acked is None


def test_load_result_invalid_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DiffError):
        load_result(path)


def test_from_dict_missing_field():
    data = result_dict(1000.0, 10, 1000)
    del data["throughput_mbps"]
    with pytest.raises(DiffError):
        ResultSummary.from_dict(data)


def test_run_diff(tmp_path):
    base = tmp_path / "base.json"
    cur = tmp_path / "cur.json"
    base.write_text(json.dumps(result_dict(1000.0, 10, 1000)), encoding="utf-8")
    cur.write_text(json.dumps(result_dict(800.0, 50, 1500)), encoding="utf-8")
    diff = run_diff(base, cur, DiffConfig(threshold_percent=5.0))
    assert diff.is_regression
    assert diff.baseline.throughput_mbps == 1000.0
    assert diff.current.throughput_mbps == 800.0