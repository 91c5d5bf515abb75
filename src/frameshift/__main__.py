"""Entry point for running frameshift as a module.

Usage:
    python -m frameshift [command] [options]

Example:
    python -m frameshift convert Counter.tsx --output src/Video.tsx
    python -m frameshift check
"""

from frameshift.cli import app

if __name__ == "__main__":
    app()
