"""Shared pytest fixtures for frameshift tests.

This module provides common fixtures used across unit and integration tests.
Fixtures are organized by category:
- Path fixtures: locations of sample components
- Parser fixtures: a shared TSX parser and a module factory
- Source fixtures: small component sources exercising one behaviour each
- Configuration fixtures: configs for the classifier and rewrite modes
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from frameshift.analyzers.ast_parser import TSXParser
from frameshift.analyzers.dependency import PackageManifest
from frameshift.config import FrameshiftConfig, load_config_from_dict
from frameshift.models import SourceModule

# =============================================================================
# Path Fixtures
# =============================================================================


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def components_dir(fixtures_dir: Path) -> Path:
    """Return the path to sample component fixtures."""
    return fixtures_dir / "components"


# =============================================================================
# Parser Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def parser() -> TSXParser:
    """Return a TSX parser shared by the whole session."""
    return TSXParser()


@pytest.fixture
def make_module(parser: TSXParser) -> Callable[[str], SourceModule]:
    """Return a factory that parses source text into a SourceModule."""

    def factory(text: str) -> SourceModule:
        return SourceModule(text, parser)

    return factory


# =============================================================================
# Source Fixtures
# =============================================================================


@pytest.fixture
def counter_source(components_dir: Path) -> str:
    """Arrow component whose counter advances every second."""
    return (components_dir / "counter.tsx").read_text()


@pytest.fixture
def toggle_source() -> str:
    """Function component whose flag flips every half second."""
    return """import React, { useState, useEffect } from 'react';

function Blink() {
  const [visible, setVisible] = useState(true);

  useEffect(() => {
    const timer = setInterval(() => setVisible((v) => !v), 500);
    return () => clearInterval(timer);
  }, []);

  return <div>{visible ? 'on' : 'off'}</div>;
}
"""


@pytest.fixture
def timeout_source() -> str:
    """Component that reveals a caption once after two seconds."""
    return """import React, { useState, useEffect } from 'react';

export default function Reveal() {
  const [shown, setShown] = useState(false);

  useEffect(() => {
    const t = setTimeout(() => setShown(true), 2000);
    return () => clearTimeout(t);
  }, []);

  return <p>{shown && 'Caption'}</p>;
}
"""


@pytest.fixture
def fetch_source() -> str:
    """Component whose state is filled by a network request."""
    return """import React, { useState, useEffect } from 'react';

export default function Feed() {
  const [data, setData] = useState(null);

  useEffect(() => {
    fetch('/api/feed').then((r) => r.json()).then(setData);
  }, []);

  return <pre>{JSON.stringify(data)}</pre>;
}
"""


@pytest.fixture
def handlers_source() -> str:
    """Component wired to click and hover handlers."""
    return """export default function Panel() {
  const helper = () => 1;
  const handleClick = () => {
    console.log('clicked');
  };
  const handleHover = () => helper();

  return (
    <div onClick={handleClick} onMouseEnter={handleHover}>
      Panel
    </div>
  );
}
"""


@pytest.fixture
def multi_component_source() -> str:
    """Two arrow components and no export."""
    return """import React from 'react';

const Title = () => <h1>Hello</h1>;

const App = () => (
  <div>
    <Title />
  </div>
);
"""


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def default_config() -> FrameshiftConfig:
    """Return a configuration with every default."""
    return FrameshiftConfig()


@pytest.fixture
def full_config_data() -> dict[str, Any]:
    """Return a configuration dictionary setting every section."""
    return {
        "timing": {
            "default_interval_ms": 500,
            "frame_loop_hz": 30,
            "showcase_seconds_per_item": 4,
        },
        "classifier": {
            "length_threshold": 4000,
            "heavy_import_count": 3,
        },
        "output": {
            "root_component": "MyVideo",
            "wrapper_element": "Sequence",
            "frame_identifier": "f",
            "fps_identifier": "rate",
        },
        "rewrite": {
            "complete_modules": "full",
            "repair_keyframes": False,
            "seed_random": False,
        },
        "dependencies": {
            "pins": {"framer-motion": "^11.0.0"},
            "default_version": "^1.0.0",
        },
    }


@pytest.fixture
def showcase_config() -> FrameshiftConfig:
    """Return a configuration that treats short modules as long."""
    return load_config_from_dict({"classifier": {"length_threshold": 200}})


@pytest.fixture
def manifest() -> PackageManifest:
    """Return the baseline Remotion manifest."""
    return PackageManifest.default()
