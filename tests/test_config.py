"""
Tests for configuration loading
"""
from stillpoint.config import Config, load_config


class TestLoadConfig:
    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")
        assert config == Config()
        assert config.timer.tick_interval_ms == 1000
        assert config.voice.rate == 0.8

    def test_partial_override(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "voice:\n"
            "  engine: console\n"
            "  rate: 1.2\n"
            "storage:\n"
            "  data_directory: /tmp/stillpoint\n"
        )
        config = load_config(path)

        assert config.voice.engine == "console"
        assert config.voice.rate == 1.2
        assert config.voice.voice == "Samantha"
        assert config.storage.data_directory == "/tmp/stillpoint"
        assert config.sound.enabled is True

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("timer:\n  bogus: 5\n  intro_delay_sec: 3\n")
        config = load_config(path)

        assert config.timer.intro_delay_sec == 3
        assert not hasattr(config.timer, "bogus")

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path) == Config()
