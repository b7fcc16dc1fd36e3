"""Settings validation and loading."""

import json

import pytest

from rangelog.config import Settings, get_settings, load_settings
from rangelog.enums import MODE_COMMANDS, Mode, Rotation
from rangelog.errors import ConfigError


def test_defaults():
    s = Settings()
    assert s.baud_rate == 115200
    assert s.mode is Mode.BINARY
    assert s.port_paths[0] == "/dev/ttyAMA10"
    assert s.mode_command(Mode.BINARY) == MODE_COMMANDS[Mode.BINARY]
    assert s.mode_command(Mode.TEXT) == MODE_COMMANDS[Mode.TEXT]


def test_per_port_mode_override():
    s = Settings(port_paths=["/dev/a", "/dev/b"], port_modes={"/dev/b": "text"})
    assert s.mode_for("/dev/a") is Mode.BINARY
    assert s.mode_for("/dev/b") is Mode.TEXT


@pytest.mark.parametrize("kwargs", [
    {"min_distance_mm": 7000, "max_distance_mm": 6000},
    {"bucket_minutes": 7},
    {"binary_mode_command": "5401"},
    {"text_mode_command": "zz"},
    {"port_paths": ["/dev/a"], "port_modes": {"/dev/x": "text"}},
    {"mode": "ascii"},
    {"port_paths": ["/dev/a", "/dev/b", "/dev/a"]},
])
def test_invalid_settings(kwargs):
    with pytest.raises(ValueError):
        Settings(**kwargs)


def test_load_from_file(tmp_path):
    cfg = tmp_path / "sensors.json"
    cfg.write_text(json.dumps({
        "port_paths": ["/dev/ttyUSB0"],
        "mode": "text",
        "rotation": "bucketed",
        "bucket_minutes": 2,
        "min_distance_mm": 500,
        "max_distance_mm": 6000,
    }))
    s = load_settings(cfg)
    assert s.port_paths == ["/dev/ttyUSB0"]
    assert s.rotation is Rotation.BUCKETED
    assert s.distance_bounds == (500, 6000)


def test_load_from_env(tmp_path, monkeypatch):
    cfg = tmp_path / "env.json"
    cfg.write_text('{"baud_rate": 9600}')
    monkeypatch.setenv("RANGELOG_CONFIG", str(cfg))
    assert load_settings().baud_rate == 9600


def test_load_errors(tmp_path):
    with pytest.raises(ConfigError):
        load_settings(tmp_path / "missing.json")
    bad = tmp_path / "bad.json"
    bad.write_text('{"baud_rate": -1}')
    with pytest.raises(ConfigError):
        load_settings(bad)


def test_get_settings_is_cached(tmp_path, monkeypatch):
    cfg = tmp_path / "env.json"
    cfg.write_text('{"baud_rate": 57600}')
    monkeypatch.setenv("RANGELOG_CONFIG", str(cfg))
    get_settings.cache_clear()
    try:
        first = get_settings()
        cfg.write_text('{"baud_rate": 9600}')
        assert get_settings() is first
        assert first.baud_rate == 57600
    finally:
        get_settings.cache_clear()
