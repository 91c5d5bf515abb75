"""Test fixtures for frameshift.

This package provides sample component sources for unit and integration
tests.

Components:
- components/counter.tsx: arrow component with an interval-driven counter
- components/slideshow.tsx: function component driven by click/hover handlers
- components/bare_fragment.tsx: JSX with no module structure
- components/dashboard.tsx: multi-component module with types and packages
- components/keyframes.tsx: interpolate() calls with broken ranges
- components/truncated.tsx: component missing its closing brace
"""

from pathlib import Path

# Path to fixtures directory
FIXTURES_DIR = Path(__file__).parent

# Path to sample components
COMPONENTS_DIR = FIXTURES_DIR / "components"

# Specific component paths
COUNTER_PATH = COMPONENTS_DIR / "counter.tsx"
SLIDESHOW_PATH = COMPONENTS_DIR / "slideshow.tsx"
BARE_FRAGMENT_PATH = COMPONENTS_DIR / "bare_fragment.tsx"
DASHBOARD_PATH = COMPONENTS_DIR / "dashboard.tsx"
KEYFRAMES_PATH = COMPONENTS_DIR / "keyframes.tsx"
TRUNCATED_PATH = COMPONENTS_DIR / "truncated.tsx"


def get_component(name: str) -> Path:
    """Get path to a sample component.

    Args:
        name: File name of the component, with or without extension

    Returns:
        Path to the component source

    Raises:
        ValueError: If the component doesn't exist
    """
    path = COMPONENTS_DIR / (name if name.endswith(".tsx") else f"{name}.tsx")
    if not path.exists():
        raise ValueError(f"Sample component not found: {name}")
    return path
