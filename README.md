# xfr

Building blocks for network bandwidth testing tools. The package gives you
the pieces around a bandwidth test rather than a complete tool:

- **Access control** (`xfr.acl`): allow and deny lists of IP networks.
- **Pre-shared key authentication** (`xfr.auth`): HMAC-SHA256
  challenge/response with random hex nonces and a constant-time check.
- **Configuration** (`xfr.config`): client defaults, server defaults and
  named presets read from a TOML file in the user's configuration directory.
- **Result comparison** (`xfr.diff`): compares two saved JSON test results
  and reports throughput, retransmit and RTT changes with a verdict.
- **LAN discovery** (`xfr.discover`): finds servers that announce the
  `_xfr._tcp.local.` service over mDNS.
- **Client helpers**: timeouts and per-stream bitrate shares
  (`xfr.client_timing`), length-bounded control-line reading
  (`xfr.linereader`), and cancel/pause state for a running test
  (`xfr.client_control`).

Install with `pip install .`; the test suite needs the `test` extra
(`pip install .[test]`, then `pytest`).

## Access control

```python
from xfr.acl import Acl

acl = Acl.from_rules(["192.168.0.0/16"], ["192.168.1.0/24"])
acl.is_allowed("192.168.2.1")   # True
acl.is_allowed("192.168.1.1")   # False: denied subnet
acl.is_allowed("10.0.0.1")      # False: not on the allow list
acl.matched_rule("192.168.1.1") # "deny 192.168.1.0/24"
```

Deny rules are checked first. With no allow rules every address not denied
passes; once any allow rule exists, addresses that match none are refused.
`is_allowed` treats IPv4-mapped IPv6 addresses (`::ffff:a.b.c.d`) as IPv4.
Addresses may be given as strings or `ipaddress` objects.

Rules can also come from a file, one directive per line, `#` for comments:

```text
# internal networks only
allow 192.168.0.0/16
allow 10.0.0.0/8
deny 0.0.0.0/0
```

Load it with `Acl.from_file(path)`, or combine a file with extra rules
through `AclConfig(allow=[...], deny=[...], file=path).build()`. A malformed
line, an unknown directive or an invalid network raises `AclError`.

## Authentication

```python
from xfr.auth import compute_response, generate_nonce, verify_response

psk = "secret"
nonce = generate_nonce()                   # 64 hex characters
answer = compute_response(nonce, psk)
verify_response(nonce, psk, answer)        # True
```

`validate_psk` raises `AuthError` for an empty key or one longer than 1024
bytes; `read_psk_file` reads a key from a file, strips surrounding
whitespace and validates it. `AuthConfig(psk=...).is_required()` tells
whether a key is set.

## Configuration

`Config.load()` reads `config.toml` from the `xfr` folder of the user's
configuration directory (see `Config.config_path()`) and returns defaults
when the file does not exist.

```toml
[client]
duration_secs = 30
parallel_streams = 4
tcp_nodelay = true

[server]
port = 9000

[[presets]]
name = "limited"
bandwidth_limit = "100M"
max_duration_secs = 60
```

`Config.from_toml(text)` parses the same format from a string and
`Config.from_dict(data)` from already-parsed data. Unknown keys are
ignored; values of the wrong type or out of range, and presets without a
`name`, raise `ConfigError`. `config.get_preset("limited")` returns the
first matching `ServerPreset` or `None`.

## Comparing results

```python
from xfr.diff import DiffConfig, run_diff

diff = run_diff("baseline.json", "current.json", DiffConfig(threshold_percent=5.0))
print(diff.format_plain())
```

A result is a regression when throughput drops by more than the threshold.
The throughput line is marked `[OK]`, `[WARN]` (any drop) or `[FAIL]`
(a drop of more than 5%); when both results carry TCP information,
retransmit and RTT lines follow. The report ends with
`Verdict: OK` or `Verdict: REGRESSION DETECTED`. `compare` works on
`ResultSummary` objects directly, and unreadable files raise `DiffError`.

## Discovery

```python
import asyncio
from xfr.discover import discover

for server in asyncio.run(discover(2.0)):
    print(server)    # e.g. 192.168.1.20:5201 (host.local.) xfr/0.9.10
```

`discover(timeout)` sends one mDNS query and collects answers for `timeout`
seconds, one `DiscoveredServer` per address. `build_query()` and
`parse_response(data, source_ip)` expose the packet encoding and decoding.

## Client helpers

- `xfr.client_timing`: `stream_join_timeout(streams)` (seconds, 50 ms per
  stream, at least 2 s), `single_port_handshake_parallelism(streams)`
  (1 to 16), `local_stop_deadline(start, duration)`,
  `response_timeout(duration)` (duration plus 30 s, about a year when the
  duration is 0), and `per_stream_bitrate` / `udp_stream_bitrate`, which
  split a bitrate across streams (0 means unlimited; UDP defaults to 1 Gbps).
- `xfr.linereader`: `await read_bounded_line(reader)` reads one line from
  an `asyncio.StreamReader`, keeping the newline, returning `""` at end of
  stream and raising `LineTooLongError` beyond 65536 bytes.
- `xfr.client_control`: `ClientControl` holds the state shared between a
  running test and its user interface. `cancel()` raises
  `NoActiveTestError` before `begin_test()`; `pause()` returns a
  `PauseResult` (`APPLIED`, `UNSUPPORTED` or `NOT_READY`) depending on the
  capabilities recorded with `set_capabilities`.

## What this package does not do

There is no command-line program, no test server and no data transfer:
nothing here opens TCP, UDP or QUIC data streams, measures throughput, or
draws a terminal interface. Discovery only searches; it does not announce a
server. The modules are meant to be used by a program that does those
things.