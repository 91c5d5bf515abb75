"""Unit tests for configuration system."""

from pathlib import Path
from typing import Any

import pytest
import yaml

from frameshift.config import (
    ClassifierConfig,
    OutputConfig,
    RewriteConfig,
    TimingConfig,
    create_default_config,
    find_config_file,
    load_config,
    load_config_from_dict,
    substitute_env_vars,
)


class TestSubstituteEnvVars:
    """Tests for environment variable substitution."""

    def test_substitute_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env var in string."""
        monkeypatch.setenv("TEST_VAR", "test_value")

        result = substitute_env_vars("prefix_${TEST_VAR}_suffix")

        assert result == "prefix_test_value_suffix"

    def test_substitute_in_dict(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars in nested dictionaries."""
        monkeypatch.setenv("REMOTION_VERSION", "^4.0.0")

        data = {"dependencies": {"default_version": "${REMOTION_VERSION}"}, "other": "value"}
        result = substitute_env_vars(data)

        assert result["dependencies"]["default_version"] == "^4.0.0"
        assert result["other"] == "value"

    def test_substitute_in_list(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test substituting env vars in list."""
        monkeypatch.setenv("ITEM", "value")

        result = substitute_env_vars(["static", "${ITEM}"])

        assert result == ["static", "value"]

    def test_missing_env_var_raises(self) -> None:
        """Test that missing env var raises ValueError."""
        with pytest.raises(ValueError, match="Environment variable not set"):
            substitute_env_vars("${FRAMESHIFT_NONEXISTENT_VAR}")

    def test_passthrough_non_string(self) -> None:
        """Test that non-string values pass through unchanged."""
        assert substitute_env_vars(123) == 123
        assert substitute_env_vars(True) is True
        assert substitute_env_vars(None) is None


class TestFindConfigFile:
    """Tests for config file discovery."""

    def test_find_frameshift_dir_config(self, tmp_path: Path) -> None:
        """Test finding .frameshift/config.yaml."""
        config_dir = tmp_path / ".frameshift"
        config_dir.mkdir()
        config_file = config_dir / "config.yaml"
        config_file.write_text("timing:\n  frame_loop_hz: 30")

        assert find_config_file(tmp_path) == config_file

    def test_find_root_config(self, tmp_path: Path) -> None:
        """Test finding frameshift.yaml at root."""
        config_file = tmp_path / "frameshift.yaml"
        config_file.write_text("timing:\n  frame_loop_hz: 30")

        assert find_config_file(tmp_path) == config_file

    def test_prefer_dir_over_root(self, tmp_path: Path) -> None:
        """Test .frameshift/config.yaml is preferred over frameshift.yaml."""
        config_dir = tmp_path / ".frameshift"
        config_dir.mkdir()
        preferred = config_dir / "config.yaml"
        preferred.write_text("# preferred")
        (tmp_path / "frameshift.yaml").write_text("# fallback")

        assert find_config_file(tmp_path) == preferred

    def test_no_config_returns_none(self, tmp_path: Path) -> None:
        """Test returns None when no config found."""
        assert find_config_file(tmp_path) is None


class TestLoadConfigFromDict:
    """Tests for loading config from dictionary."""

    def test_default_values(self) -> None:
        """Test default configuration values."""
        config = load_config_from_dict({})

        assert config.timing.default_interval_ms == 1000
        assert config.timing.frame_loop_hz == 60
        assert config.timing.showcase_seconds_per_item == 3
        assert config.classifier.length_threshold == 8000
        assert config.classifier.heavy_import_count == 5
        assert config.output.root_component == "VideoComposition"
        assert config.output.wrapper_element == "Composition"
        assert config.rewrite.complete_modules == "timers"
        assert config.rewrite.repair_keyframes is True
        assert config.dependencies.pins == {}
        assert config.dependencies.default_version == "latest"

    def test_every_section(self, full_config_data: dict[str, Any]) -> None:
        """Test that every section is read."""
        config = load_config_from_dict(full_config_data)

        assert config.timing.default_interval_ms == 500
        assert config.timing.frame_loop_hz == 30
        assert config.timing.showcase_seconds_per_item == 4
        assert config.classifier.length_threshold == 4000
        assert config.classifier.heavy_import_count == 3
        assert config.output.root_component == "MyVideo"
        assert config.output.wrapper_element == "Sequence"
        assert config.output.frame_identifier == "f"
        assert config.output.fps_identifier == "rate"
        assert config.rewrite.complete_modules == "full"
        assert config.rewrite.repair_keyframes is False
        assert config.rewrite.seed_random is False
        assert config.dependencies.pins == {"framer-motion": "^11.0.0"}
        assert config.dependencies.default_version == "^1.0.0"

    def test_partial_section_keeps_defaults(self) -> None:
        """Test that keys missing from a section keep their defaults."""
        config = load_config_from_dict({"timing": {"frame_loop_hz": 24}})

        assert config.timing.frame_loop_hz == 24
        assert config.timing.default_interval_ms == 1000

    def test_empty_section(self) -> None:
        """Test that an empty YAML section is treated as defaults."""
        config = load_config_from_dict({"output": None})

        assert config.output.root_component == "VideoComposition"

    def test_invalid_mode(self) -> None:
        """Test that an unknown rewrite mode is rejected."""
        with pytest.raises(ValueError, match="complete_modules"):
            load_config_from_dict({"rewrite": {"complete_modules": "everything"}})


class TestValidation:
    """Tests for config dataclass validation."""

    @pytest.mark.parametrize("field_name", ["default_interval_ms", "frame_loop_hz"])
    def test_timing_must_be_positive(self, field_name: str) -> None:
        """Test that timing values must be positive."""
        with pytest.raises(ValueError, match=f"timing.{field_name}"):
            TimingConfig(**{field_name: 0})

    def test_classifier_threshold(self) -> None:
        """Test classifier threshold validation."""
        with pytest.raises(ValueError, match="length_threshold"):
            ClassifierConfig(length_threshold=0)
        with pytest.raises(ValueError, match="heavy_import_count"):
            ClassifierConfig(heavy_import_count=0)

    def test_output_identifiers(self) -> None:
        """Test that generated names must be identifiers."""
        with pytest.raises(ValueError, match="root_component"):
            OutputConfig(root_component="My Video")
        assert OutputConfig(frame_identifier="$frame").frame_identifier == "$frame"

    def test_rewrite_modes(self) -> None:
        """Test that every documented mode is accepted."""
        for mode in ("export-only", "timers", "full"):
            assert RewriteConfig(complete_modules=mode).complete_modules == mode


class TestLoadConfig:
    """Tests for loading config files."""

    def test_explicit_path(self, tmp_path: Path) -> None:
        """Test loading an explicit config file."""
        config_file = tmp_path / "custom.yaml"
        config_file.write_text("output:\n  root_component: Intro\n")

        config = load_config(config_path=config_file)

        assert config.output.root_component == "Intro"
        assert config.config_path == config_file

    def test_missing_explicit_path(self, tmp_path: Path) -> None:
        """Test that a missing explicit file raises FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "missing.yaml")

    def test_auto_discover(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test discovery from the working directory."""
        (tmp_path / "frameshift.yaml").write_text("timing:\n  frame_loop_hz: 25\n")
        monkeypatch.chdir(tmp_path)

        config = load_config()

        assert config.timing.frame_loop_hz == 25

    def test_no_discovery(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test defaults when discovery is disabled."""
        (tmp_path / "frameshift.yaml").write_text("timing:\n  frame_loop_hz: 25\n")
        monkeypatch.chdir(tmp_path)

        config = load_config(auto_discover=False)

        assert config.timing.frame_loop_hz == 60
        assert config.config_path is None

    def test_default_config_round_trips(self) -> None:
        """Test that the generated default config loads to the defaults."""
        data = yaml.safe_load(create_default_config())

        config = load_config_from_dict(data)

        assert config.rewrite.complete_modules == "timers"
        assert config.output.root_component == "VideoComposition"
        assert config.dependencies.default_version == "latest"
