import json

import pytest

from deckflix.config import Config, load_config, save_config
from deckflix.exceptions import ConfigurationError


def test_missing_file_gives_defaults(tmp_path):
    config = load_config(tmp_path / "config.json")

    assert config == Config()
    assert config.request_timeout == 10.0
    assert config.downloader_port == 8888
    assert config.download_dir.endswith("torrent-stream")
    assert config.min_ready_bytes == 5 * 1024 * 1024


def test_save_then_load(tmp_path):
    path = tmp_path / "nested" / "config.json"
    config = Config(default_player="vlc", vlc_args=["--fullscreen"], poll_interval=0.5)

    save_config(config, path)

    assert load_config(path) == config


def test_unknown_keys_ignored(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"default_player": "mpv", "proxy_port": 8080}))

    assert load_config(path).default_player == "mpv"


def test_unreadable_file_gives_defaults(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")

    assert load_config(path) == Config()


@pytest.mark.parametrize("overrides", [
    {"request_timeout": 0},
    {"poll_interval": -1},
    {"dir_wait_attempts": 0},
    {"size_wait_attempts": 0},
])
def test_invalid_values(overrides):
    with pytest.raises(ConfigurationError):
        Config(**overrides)


def test_invalid_values_in_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"request_timeout": -5}))

    with pytest.raises(ConfigurationError):
        load_config(path)


@pytest.mark.parametrize("data", [
    {"request_timeout": "10"},
    {"downloader_port": None},
    {"dir_wait_attempts": True},
    {"mpv_args": "--fs"},
    {"providers": {"name": "x"}},
    {"default_player": "totem"},
])
def test_wrongly_typed_values_in_file(tmp_path, data):
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data))

    with pytest.raises(ConfigurationError):
        load_config(path)
