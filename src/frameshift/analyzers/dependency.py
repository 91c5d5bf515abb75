"""Dependency reconciliation.

Surviving import specifiers are reduced to package names and checked against
a package.json manifest passed in by the caller:
- relative and Node built-in specifiers are ignored
- scoped packages keep their scope (`@react-three/fiber`)
- missing packages are added to `dependencies` with a pinned version
- `@remotion/*` packages follow the declared `remotion` version
- existing entries are never changed or removed
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from frameshift.utils.logging import get_logger

_logger = get_logger()

DEFAULT_DEPENDENCIES: dict[str, str] = {
    "react": "^18.2.0",
    "react-dom": "^18.2.0",
    "remotion": "^4.0.340",
}

DEFAULT_DEV_DEPENDENCIES: dict[str, str] = {
    "@types/react": "^18.0.0",
    "typescript": "^5.0.0",
}

# Versions compatible with react 18 for packages commonly imported by
# interactive components.
KNOWN_PINS: dict[str, str] = {
    "lucide-react": "^0.263.1",
    "framer-motion": "^10.16.4",
    "three": "^0.158.0",
    "@react-three/fiber": "^8.15.0",
    "@react-three/drei": "^9.88.0",
    "recharts": "^2.8.0",
    "d3": "^7.8.5",
    "react-icons": "^4.11.0",
    "clsx": "^2.0.0",
    "zod": "^3.22.3",
    "styled-components": "^6.1.0",
    "gsap": "^3.12.2",
}

NODE_BUILTINS = frozenset(
    {
        "assert",
        "buffer",
        "child_process",
        "crypto",
        "events",
        "fs",
        "http",
        "https",
        "os",
        "path",
        "process",
        "stream",
        "url",
        "util",
        "zlib",
    }
)


def package_name(specifier: str) -> str | None:
    """Reduce an import specifier to the package that provides it.

    Args:
        specifier: Module specifier, e.g. "@remotion/player/dist" or "d3-scale"

    Returns:
        Package name, or None for relative, absolute and built-in specifiers
    """
    specifier = specifier.strip()
    if not specifier or specifier.startswith((".", "/", "node:")):
        return None
    parts = specifier.split("/")
    if specifier.startswith("@"):
        if len(parts) < 2 or not parts[1]:
            return None
        return f"{parts[0]}/{parts[1]}"
    if parts[0] in NODE_BUILTINS:
        return None
    return parts[0]


@dataclass
class PackageManifest:
    """In-memory package.json.

    Attributes:
        name: Package name
        dependencies: Runtime dependencies
        dev_dependencies: devDependencies
        peer_dependencies: peerDependencies
        extra: Every other top-level field, preserved on save
    """

    name: str = "remotion-video"
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)
    peer_dependencies: dict[str, str] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def default(cls) -> "PackageManifest":
        """Baseline manifest of a Remotion project."""
        return cls(
            dependencies=dict(DEFAULT_DEPENDENCIES),
            dev_dependencies=dict(DEFAULT_DEV_DEPENDENCIES),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PackageManifest":
        """Create from parsed package.json data."""
        data = dict(data)
        return cls(
            name=data.pop("name", "remotion-video"),
            dependencies=dict(data.pop("dependencies", None) or {}),
            dev_dependencies=dict(data.pop("devDependencies", None) or {}),
            peer_dependencies=dict(data.pop("peerDependencies", None) or {}),
            extra=data,
        )

    @classmethod
    def from_json(cls, text: str) -> "PackageManifest":
        """Parse package.json text.

        Raises:
            ValueError: If the text is not a JSON object
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("package.json must contain a JSON object")
        return cls.from_dict(data)

    @classmethod
    def load(cls, path: Path) -> "PackageManifest":
        """Read a package.json file."""
        return cls.from_json(path.read_text(encoding="utf-8"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to package.json layout."""
        data: dict[str, Any] = {"name": self.name}
        data.update(self.extra)
        data["dependencies"] = self.dependencies
        if self.dev_dependencies:
            data["devDependencies"] = self.dev_dependencies
        if self.peer_dependencies:
            data["peerDependencies"] = self.peer_dependencies
        return data

    def to_json(self) -> str:
        """Serialize as package.json text."""
        return json.dumps(self.to_dict(), indent=2) + "\n"

    def save(self, path: Path) -> None:
        """Write the manifest to a package.json file."""
        path.write_text(self.to_json(), encoding="utf-8")

    def declares(self, package: str) -> bool:
        """Return True if any dependency section lists the package."""
        return (
            package in self.dependencies
            or package in self.dev_dependencies
            or package in self.peer_dependencies
        )

    def add_dependency(self, package: str, version: str) -> bool:
        """Add a runtime dependency unless already declared.

        Returns:
            True if the manifest changed
        """
        if self.declares(package):
            return False
        self.dependencies[package] = version
        return True


class DependencyResolver:
    """Adds packages imported by converted code to a manifest."""

    def __init__(
        self,
        pins: dict[str, str] | None = None,
        default_version: str = "latest",
    ) -> None:
        """Initialize the resolver.

        Args:
            pins: Version overrides, merged over the built-in pins
            default_version: Version for packages with no pin
        """
        self.pins = {**KNOWN_PINS, **(pins or {})}
        self.default_version = default_version

    def version_for(self, package: str, manifest: PackageManifest) -> str:
        """Pick the version to declare for a package."""
        if package in self.pins:
            return self.pins[package]
        if package.startswith("@remotion/"):
            return (
                manifest.dependencies.get("remotion")
                or manifest.dev_dependencies.get("remotion")
                or DEFAULT_DEPENDENCIES["remotion"]
            )
        if package in DEFAULT_DEPENDENCIES:
            return DEFAULT_DEPENDENCIES[package]
        return self.default_version

    def resolve(self, specifiers: list[str], manifest: PackageManifest) -> dict[str, str]:
        """Add every missing package behind `specifiers` to the manifest.

        Args:
            specifiers: Import specifiers of the converted module
            manifest: Manifest to update in place

        Returns:
            Packages added, with their versions, in first-seen order
        """
        added: dict[str, str] = {}
        for specifier in specifiers:
            package = package_name(specifier)
            if package is None or package in added:
                continue
            version = self.version_for(package, manifest)
            if manifest.add_dependency(package, version):
                added[package] = version
                _logger.debug(f"Declared dependency {package}@{version}")
        return added
