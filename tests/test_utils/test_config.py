"""Tests for YAML configuration loading."""

import pytest

from waverider.utils.config import ConfigManager, get_default_config, load_config
from waverider.utils.errors import ConfigurationError


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run in an empty directory so no stray config or .env is found."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestConfigManager:
    def test_dot_notation(self):
        config = ConfigManager({"analysis": {"fft_size": 2048}})
        assert config.get("analysis.fft_size") == 2048
        assert config.get("analysis.missing", default=7) == 7

    def test_required_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            ConfigManager({}).get("analysis.fft_size", required=True)
        assert exc_info.value.config_key == "analysis.fft_size"

    def test_set_creates_sections(self):
        config = ConfigManager()
        config.set("performance.max_workers", 8)
        assert config.get_section("performance") == {"max_workers": 8}
        assert config.get_section("nothing") == {}

    def test_merge_is_deep(self):
        config = ConfigManager(get_default_config())
        config.merge({"analysis": {"fft_size": 4096}})
        assert config.get("analysis.fft_size") == 4096
        assert config.get("analysis.window_size") == 1024

    def test_to_dict_is_a_copy(self):
        config = ConfigManager({"analysis": {"fft_size": 2048}})
        config.to_dict()["analysis"]["fft_size"] = 1
        assert config.get("analysis.fft_size") == 2048

    def test_validate_type(self):
        config = ConfigManager({"logging": {"level": 5}})
        with pytest.raises(ConfigurationError):
            config.validate({"logging.level": {"type": str}})

    def test_validate_required(self):
        with pytest.raises(ConfigurationError):
            ConfigManager({}).validate({"analysis.fft_size": {"type": int, "required": True}})

    def test_env_interpolation(self, tmp_path, monkeypatch):
        monkeypatch.setenv("WAVERIDER_TEST_FFT", "1024")
        path = tmp_path / "config.yaml"
        path.write_text("analysis:\n  fft_size: ${WAVERIDER_TEST_FFT}\n  label: ${WAVERIDER_UNSET_VAR}\n")
        config = ConfigManager.from_file(path)
        assert config.get("analysis.fft_size") == "1024"
        assert config.get("analysis.label") == "${WAVERIDER_UNSET_VAR}"


class TestLoadConfig:
    def test_defaults_without_file(self, workdir):
        assert load_config() == get_default_config()

    def test_discovers_config_directory(self, workdir):
        (workdir / "config").mkdir()
        (workdir / "config" / "config.yaml").write_text(
            "analysis:\n  fft_size: 4096\nlogging:\n  level: DEBUG\n"
        )
        config = load_config()
        assert config["analysis"]["fft_size"] == 4096
        assert config["analysis"]["sample_rate"] == 44100
        assert config["logging"]["level"] == "DEBUG"

    def test_explicit_path(self, workdir):
        path = workdir / "custom.yaml"
        path.write_text("performance:\n  max_workers: 2\n")
        assert load_config(str(path))["performance"]["max_workers"] == 2

    def test_dotenv_values_are_interpolated(self, workdir, monkeypatch):
        # Registered first so the variable load_dotenv sets is removed afterwards
        monkeypatch.setenv("WAVERIDER_TEST_LEVEL", "unused")
        monkeypatch.delenv("WAVERIDER_TEST_LEVEL")
        (workdir / ".env").write_text("WAVERIDER_TEST_LEVEL=WARNING\n")
        (workdir / "config.yaml").write_text("logging:\n  level: ${WAVERIDER_TEST_LEVEL}\n")
        assert load_config()["logging"]["level"] == "WARNING"

    def test_missing_file(self, workdir):
        with pytest.raises(ConfigurationError):
            load_config(str(workdir / "absent.yaml"))

    def test_invalid_yaml(self, workdir):
        path = workdir / "bad.yaml"
        path.write_text("analysis: [unclosed\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_root_must_be_mapping(self, workdir):
        path = workdir / "list.yaml"
        path.write_text("- analysis\n- logging\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))

    def test_wrong_type_rejected(self, workdir):
        path = workdir / "typed.yaml"
        path.write_text("logging:\n  level: 10\n")
        with pytest.raises(ConfigurationError):
            load_config(str(path))
