"""frameshift configuration system.

Configuration is YAML-based with CLI flags only for per-run options.
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.frameshift/config.yaml
3. ./frameshift.yaml
"""

import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")

# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class TimingConfig:
    """Timing assumptions used when rewriting timers as frame expressions.

    Attributes:
        default_interval_ms: Timer delay used when the source delay cannot be resolved
        frame_loop_hz: Cadence assumed for requestAnimationFrame loops
        showcase_seconds_per_item: Seconds each slide stays on screen in showcase modules
    """

    default_interval_ms: float = 1000
    frame_loop_hz: float = 60
    showcase_seconds_per_item: float = 3

    def __post_init__(self) -> None:
        """Validate timing configuration."""
        for name in ("default_interval_ms", "frame_loop_hz", "showcase_seconds_per_item"):
            value = getattr(self, name)
            if not isinstance(value, int | float) or value <= 0:
                raise ValueError(f"timing.{name} must be a positive number (got {value!r})")


@dataclass
class ClassifierConfig:
    """Source classifier thresholds.

    Attributes:
        length_threshold: Source length above which a module counts as complete
        heavy_import_count: Import count that lowers the length threshold by a quarter
    """

    length_threshold: int = 8000
    heavy_import_count: int = 5

    def __post_init__(self) -> None:
        """Validate classifier configuration."""
        if self.length_threshold <= 0:
            raise ValueError(
                f"classifier.length_threshold must be positive (got {self.length_threshold})"
            )
        if self.heavy_import_count < 1:
            raise ValueError(
                f"classifier.heavy_import_count must be at least 1 (got {self.heavy_import_count})"
            )


@dataclass
class OutputConfig:
    """Identifiers used in generated code.

    Attributes:
        root_component: Name given to generated or anonymous root components
        wrapper_element: Timeline wrapper element to unwrap
        frame_identifier: Preferred name for the frame counter binding
        fps_identifier: Preferred name for the frame rate binding
    """

    root_component: str = "VideoComposition"
    wrapper_element: str = "Composition"
    frame_identifier: str = "frame"
    fps_identifier: str = "fps"

    def __post_init__(self) -> None:
        """Validate identifiers."""
        for name in ("root_component", "wrapper_element", "frame_identifier", "fps_identifier"):
            value = getattr(self, name)
            if not isinstance(value, str) or not _IDENTIFIER.match(value):
                raise ValueError(f"output.{name} is not a valid identifier: {value!r}")


@dataclass
class RewriteConfig:
    """Which rewrites run.

    Attributes:
        complete_modules: Hook handling for complete modules ("export-only",
            "timers" to eliminate state only when a timer drives it, "full")
        repair_keyframes: Repair interpolate() ranges in the output
        seed_random: Replace Math.random() with seeded random() in lifted collections
    """

    complete_modules: str = "timers"
    repair_keyframes: bool = True
    seed_random: bool = True

    def __post_init__(self) -> None:
        """Validate rewrite configuration."""
        valid_modes = {"export-only", "timers", "full"}
        if self.complete_modules not in valid_modes:
            raise ValueError(
                f"Invalid rewrite.complete_modules: {self.complete_modules}. Valid: {valid_modes}"
            )


@dataclass
class DependencyConfig:
    """Dependency pinning.

    Attributes:
        pins: Package name to version overrides, merged over the built-in pins
        default_version: Version used for packages with no known pin
    """

    pins: dict[str, str] = field(default_factory=dict)
    default_version: str = "latest"


@dataclass
class FrameshiftConfig:
    """Top-level frameshift configuration.

    Attributes:
        timing: Timer to frame conversion settings
        classifier: Classifier thresholds
        output: Generated identifier names
        rewrite: Rewrite switches
        dependencies: Dependency pins
    """

    timing: TimingConfig = field(default_factory=TimingConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    rewrite: RewriteConfig = field(default_factory=RewriteConfig)
    dependencies: DependencyConfig = field(default_factory=DependencyConfig)

    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax, e.g. `default_version: "${REMOTION_VERSION}"`.

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.frameshift/config.yaml
    2. ./frameshift.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".frameshift" / "config.yaml",
        start_path / "frameshift.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def load_config_from_dict(data: dict[str, Any]) -> FrameshiftConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        FrameshiftConfig instance

    Raises:
        ValueError: If a section fails validation
    """
    data = substitute_env_vars(data)

    config = FrameshiftConfig()

    if "timing" in data:
        timing_data = data["timing"] or {}
        config.timing = TimingConfig(
            default_interval_ms=timing_data.get(
                "default_interval_ms", config.timing.default_interval_ms
            ),
            frame_loop_hz=timing_data.get("frame_loop_hz", config.timing.frame_loop_hz),
            showcase_seconds_per_item=timing_data.get(
                "showcase_seconds_per_item", config.timing.showcase_seconds_per_item
            ),
        )

    if "classifier" in data:
        classifier_data = data["classifier"] or {}
        config.classifier = ClassifierConfig(
            length_threshold=int(
                classifier_data.get("length_threshold", config.classifier.length_threshold)
            ),
            heavy_import_count=int(
                classifier_data.get("heavy_import_count", config.classifier.heavy_import_count)
            ),
        )

    if "output" in data:
        output_data = data["output"] or {}
        config.output = OutputConfig(
            root_component=output_data.get("root_component", config.output.root_component),
            wrapper_element=output_data.get("wrapper_element", config.output.wrapper_element),
            frame_identifier=output_data.get(
                "frame_identifier", config.output.frame_identifier
            ),
            fps_identifier=output_data.get("fps_identifier", config.output.fps_identifier),
        )

    if "rewrite" in data:
        rewrite_data = data["rewrite"] or {}
        config.rewrite = RewriteConfig(
            complete_modules=rewrite_data.get(
                "complete_modules", config.rewrite.complete_modules
            ),
            repair_keyframes=rewrite_data.get(
                "repair_keyframes", config.rewrite.repair_keyframes
            ),
            seed_random=rewrite_data.get("seed_random", config.rewrite.seed_random),
        )

    if "dependencies" in data:
        dependency_data = data["dependencies"] or {}
        config.dependencies = DependencyConfig(
            pins={str(k): str(v) for k, v in (dependency_data.get("pins") or {}).items()},
            default_version=str(
                dependency_data.get("default_version", config.dependencies.default_version)
            ),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> FrameshiftConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        FrameshiftConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = FrameshiftConfig()

    return config


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# frameshift configuration

# Timer to frame conversion
timing:
  default_interval_ms: 1000      # used when a timer delay cannot be resolved
  frame_loop_hz: 60              # requestAnimationFrame cadence
  showcase_seconds_per_item: 3   # slide duration in showcase modules

# Source classifier
classifier:
  length_threshold: 8000         # longer modules get export-only treatment
  heavy_import_count: 5          # lowers the threshold by a quarter

# Generated identifiers
output:
  root_component: "VideoComposition"
  wrapper_element: "Composition"
  frame_identifier: "frame"
  fps_identifier: "fps"

# Rewrites
rewrite:
  complete_modules: "timers"     # export-only, timers, full
  repair_keyframes: true
  seed_random: true

# Versions for packages added to package.json
dependencies:
  default_version: "latest"
  # pins:
  #   framer-motion: "^10.16.4"
'''
