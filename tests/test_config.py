import pytest

from xfr.config import Config, ConfigError


def test_default_config():
    config = Config()
    assert config.presets == []
    assert config.client.duration_secs is None
    assert config.server.port is None


def test_parse_config():
    text = """
[client]
duration_secs = 30
parallel_streams = 4
tcp_nodelay = true

[server]
port = 9000
prometheus_port = 9090

[[presets]]
name = "limited"
bandwidth_limit = "100M"
max_duration_secs = 60

[[presets]]
name = "internal"
allowed_clients = ["192.168.1.0/24"]
"""
    config = Config.from_toml(text)
    assert config.client.duration_secs == 30
    assert config.client.parallel_streams == 4
    assert config.client.tcp_nodelay is True
    assert config.server.port == 9000
    assert config.server.prometheus_port == 9090
    assert config.server.no_mdns is None
    assert len(config.presets) == 2
    assert config.presets[0].name == "limited"
    assert config.presets[0].bandwidth_limit == "100M"
    assert config.presets[0].max_duration_secs == 60
    assert config.presets[1].allowed_clients == ["192.168.1.0/24"]


def test_parse_client_omit_secs():
    config = Config.from_toml("[client]\nomit_secs = 3\n")
    assert config.client.omit_secs == 3


def test_parse_server_no_mdns():
    config = Config.from_toml("[server]\nno_mdns = true\n")
    assert config.server.no_mdns is True


def test_get_preset():
    text = """
[[presets]]
name = "fast"
bandwidth_limit = "1G"

[[presets]]
name = "slow"
bandwidth_limit = "10M"
"""
    config = Config.from_toml(text)
    assert config.get_preset("fast").bandwidth_limit == "1G"
    assert config.get_preset("slow").bandwidth_limit == "10M"
    assert config.get_preset("nonexistent") is None


def test_unknown_keys_ignored():
    config = Config.from_toml("[client]\nfuture_option = 1\nduration_secs = 5\n")
    assert config.client.duration_secs == 5


def test_timestamp_format():
    config = Config.from_toml('[client]\ntimestamp_format = "iso8601"\n')
    assert config.client.timestamp_format == "iso8601"
    with pytest.raises(ConfigError):
        Config.from_toml('[client]\ntimestamp_format = "weekday"\n')


@pytest.mark.parametrize(
    "text",
    [
        "[client]\nparallel_streams = 300\n",
        "[server]\nport = 70000\n",
        '[client]\nduration_secs = "ten"\n',
        "[client]\ntcp_nodelay = 1\n",
        "[server]\nallow = [1, 2]\n",
        '[[presets]]\nbandwidth_limit = "1G"\n',
        "[client\n",
    ],
)
def test_invalid_config_rejected(text):
    with pytest.raises(ConfigError):
        Config.from_toml(text)


def test_config_path(monkeypatch, tmp_path):
    monkeypatch.setattr("platformdirs.user_config_dir", lambda: str(tmp_path))
    assert Config.config_path() == tmp_path / "xfr" / "config.toml"


def test_load_missing_returns_default(monkeypatch, tmp_path):
    monkeypatch.setattr("platformdirs.user_config_dir", lambda: str(tmp_path))
    assert Config.load() == Config()


def test_load_reads_file(monkeypatch, tmp_path):
    monkeypatch.setattr("platformdirs.user_config_dir", lambda: str(tmp_path))
    path = tmp_path / "xfr" / "config.toml"
    path.parent.mkdir()
    path.write_text("[server]\nport = 5201\nrate_limit = 2\n")
    config = Config.load()
    assert config.server.port == 5201
    assert config.server.rate_limit == 2