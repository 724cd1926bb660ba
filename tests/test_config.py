from pathlib import Path

import pytest

from gpsrelay.config import RelayAppConfig, load_config, resolve_config_path


def test_default_model_matches_device_defaults():
    cfg = RelayAppConfig()
    assert cfg.relay.publish_interval_secs == 5.0
    assert cfg.relay.module_id == "module"
    assert cfg.web.ws_path == "/ws"
    assert cfg.gps.stale_after_secs is None


def test_yaml_loads_and_validates(tmp_path: Path):
    yml = tmp_path / "gpsrelay.yml"
    yml.write_text(
        """
gps:
  mock_mode: true
  stale_after_secs: 5
relay:
  publish_interval_secs: 1.5
web:
  bind_port: 9000
logging:
  level: debug
        """.strip(),
        encoding="utf-8",
    )
    cfg = load_config(yml)
    assert cfg.gps.mock_mode is True
    assert cfg.gps.stale_after_secs == 5.0
    assert cfg.relay.publish_interval_secs == 1.5
    assert cfg.web.bind_port == 9000
    assert cfg.logging.level == "DEBUG"


def test_empty_file_gives_defaults(tmp_path: Path):
    yml = tmp_path / "gpsrelay.yml"
    yml.write_text("", encoding="utf-8")
    assert load_config(yml) == RelayAppConfig()


@pytest.mark.parametrize(
    "body",
    [
        "relay:\n  publish_interval_secs: 0",
        "web:\n  ws_path: ws",
        "web:\n  bind_host: 'bad host'",
        "logging:\n  level: LOUD",
        "gps:\n  port: 70000",
        "- just\n- a list",
    ],
)
def test_invalid_values_raise(tmp_path: Path, body: str):
    yml = tmp_path / "gpsrelay.yml"
    yml.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(yml)


def test_resolve_prefers_cli_path(tmp_path: Path, monkeypatch):
    cli_file = tmp_path / "cli.yml"
    cli_file.write_text("", encoding="utf-8")
    env_file = tmp_path / "env.yml"
    env_file.write_text("", encoding="utf-8")
    monkeypatch.setenv("GPSRELAY_CONFIG", str(env_file))
    assert resolve_config_path(cli_file) == cli_file.resolve()


def test_resolve_falls_back_to_env(tmp_path: Path, monkeypatch):
    env_file = tmp_path / "env.yml"
    env_file.write_text("", encoding="utf-8")
    monkeypatch.setenv("GPSRELAY_CONFIG", str(env_file))
    assert resolve_config_path(tmp_path / "missing.yml") == env_file.resolve()


def test_resolve_missing_returns_first_candidate(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("GPSRELAY_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    missing = tmp_path / "nope.yml"
    assert resolve_config_path(missing) == missing
