from __future__ import annotations

from pathlib import Path

import pytest

from entityboard.config import Config, load_config


def test_defaults():
    cfg = Config(raw={})

    assert cfg.home_assistant_url == "http://homeassistant.local:8123"
    assert cfg.request_timeout == 10.0
    assert cfg.store_kind == "json"
    assert cfg.store_path.name == "widgets.json"
    assert cfg.resolution == (1920, 1080)
    assert cfg.renderer_kind == "pillow"
    assert cfg.set_gnome_wallpaper is False
    assert cfg.log_level == "INFO"


def test_load_config_reads_yaml(tmp_path, monkeypatch):
    monkeypatch.setenv("HASS_TOKEN", "abc")
    path = tmp_path / "config.yaml"
    path.write_text(
        "home_assistant:\n"
        "  url: http://hass:8123/\n"
        "  token: $HASS_TOKEN\n"
        "  timeout: 4\n"
        "store:\n"
        f"  path: {tmp_path / 'w.json'}\n"
        "resolution: 2560x1600\n"
        "columns: 2\n"
        "logging:\n"
        "  level: debug\n",
        encoding="utf-8",
    )

    cfg = load_config(path)

    assert cfg.home_assistant_url == "http://hass:8123"
    assert cfg.home_assistant_token == "abc"
    assert cfg.request_timeout == 4.0
    assert cfg.store_path == Path(tmp_path / "w.json")
    assert cfg.resolution == (2560, 1600)
    assert cfg.columns == 2
    assert cfg.log_level == "debug"


def test_unsupported_resolution():
    with pytest.raises(ValueError, match="Unsupported resolution"):
        Config(raw={"resolution": "640x480"}).resolution


def test_non_mapping_config_rejected(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ValueError, match="YAML mapping"):
        load_config(path)
