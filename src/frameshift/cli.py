"""frameshift CLI interface.

Commands:
- convert: Convert an interactive component into a frame-driven composition
- classify: Show how a component would be classified
- keyframes: Repair an interpolate() input range
- check: Validate parser availability
- init: Initialize frameshift configuration

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --version: Show version and exit
"""

from pathlib import Path
from typing import Annotated

import typer

from frameshift import __version__
from frameshift.config import FrameshiftConfig, create_default_config, load_config
from frameshift.utils.logging import configure_from_cli, get_logger

# Create Typer app
app = typer.Typer(
    name="frameshift",
    help="Convert interactive React components into frame-driven Remotion compositions",
    add_completion=False,
    no_args_is_help=True,
)

# Global state
_config: FrameshiftConfig | None = None
_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"frameshift {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output with timestamps",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress info messages (warnings and errors only)",
        ),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option(
            "--ci",
            help="Enable CI mode with JSON output",
        ),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """frameshift - Interactive component to video composition converter.

    Rewrites state, timers and event handlers so a component renders as a
    pure function of the current frame.
    """
    global _config

    # Configure logging based on CLI flags
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    # Load configuration
    try:
        _config = load_config(config_path=config)
        if _config.config_path:
            _logger.debug(f"Loaded config from: {_config.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(1)
    except Exception as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(1)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output results as JSON",
        ),
    ] = False,
) -> None:
    """Validate parser availability.

    Checks that tree-sitter, the TSX grammar and PyYAML are usable.

    Exit codes:
        0: All required dependencies available
        1: One or more required dependencies missing
        2: Only optional dependencies missing (warnings)
    """
    import json as json_module

    from frameshift.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all()

    if json_output:
        typer.echo(json_module.dumps(result.to_dict(), indent=2))
        raise typer.Exit(0 if result.success else 1)

    typer.echo("\n🔍 Preflight Check Results\n")

    for check_result in result.checks:
        status = "✅" if check_result.available else "❌"
        version_str = f" ({check_result.version})" if check_result.version else ""
        required_str = " [required]" if check_result.required else " [optional]"

        typer.echo(f"  {status} {check_result.name}{version_str}{required_str}")
        if check_result.available and check_result.path:
            typer.echo(f"     └─ {check_result.path}")
        elif not check_result.available:
            typer.echo(f"     └─ {check_result.message}")

    typer.echo()

    if result.errors:
        typer.echo("❌ Preflight check FAILED")
        for error in result.errors:
            typer.echo(f"   • {error}")
        raise typer.Exit(1)
    elif result.warnings:
        typer.echo("⚠️  Preflight check passed with WARNINGS")
        for warning in result.warnings:
            typer.echo(f"   • {warning}")
        raise typer.Exit(2)
    else:
        typer.echo("✅ All preflight checks passed")
        raise typer.Exit(0)


# =============================================================================
# convert command
# =============================================================================


@app.command()
def convert(
    input_path: Annotated[
        Path,
        typer.Argument(
            help="Component source file (.tsx/.jsx)",
            exists=True,
            dir_okay=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Write converted source here instead of stdout",
        ),
    ] = None,
    manifest: Annotated[
        Path | None,
        typer.Option(
            "--manifest",
            help="package.json to update with imported packages",
            dir_okay=False,
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Print conversion metadata as JSON",
        ),
    ] = False,
) -> None:
    """Convert an interactive component into a frame-driven composition.

    Exit codes:
        0: Converted with at most informational notices (added imports, dependencies)
        1: Input could not be converted
        2: Converted with notices (repairs, unclassifiable state)
    """
    import json as json_module

    from frameshift.analyzers.dependency import PackageManifest
    from frameshift.pipeline import ConversionPipeline
    from frameshift.transforms.base import ConversionError, ParseError

    package_json: PackageManifest | None = None
    if manifest is not None:
        try:
            package_json = (
                PackageManifest.load(manifest) if manifest.exists() else PackageManifest.default()
            )
        except ValueError as e:
            _logger.error(f"Invalid manifest {manifest}: {e}")
            raise typer.Exit(1)

    source_text = input_path.read_text(encoding="utf-8")
    _logger.info(f"Converting: {input_path}")

    pipeline = ConversionPipeline(config=_config, manifest=package_json)
    try:
        result = pipeline.run(source_text)
    except ParseError as e:
        _logger.error(f"Cannot parse {input_path}: {e}")
        raise typer.Exit(1)
    except ConversionError as e:
        _logger.error(f"Conversion failed at stage '{e.stage}': {e.message}")
        raise typer.Exit(1)

    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_text(result.text, encoding="utf-8")
    if package_json is not None and manifest is not None:
        package_json.save(manifest)
        if result.added_dependencies:
            _logger.info(f"Updated {manifest}: {', '.join(result.added_dependencies)}")

    if json_output:
        typer.echo(json_module.dumps(result.to_dict(), indent=2))
    elif output is None:
        typer.echo(result.text, nl=False)
    else:
        typer.echo(f"\n🎬 Composition written to: {output}")

    warnings = [n for n in result.notices if not n.kind.is_informational]
    raise typer.Exit(2 if warnings else 0)


# =============================================================================
# classify command
# =============================================================================


@app.command()
def classify(
    input_path: Annotated[
        Path,
        typer.Argument(
            help="Component source file (.tsx/.jsx)",
            exists=True,
            dir_okay=False,
        ),
    ],
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output result as JSON",
        ),
    ] = False,
) -> None:
    """Show the detected pattern of a component and the rule that matched."""
    import json as json_module

    from frameshift.analyzers.classifier import SourceClassifier
    from frameshift.pipeline import ConversionPipeline
    from frameshift.transforms.base import ParseError

    classifier_config = _config.classifier if _config else None
    try:
        module = ConversionPipeline(config=_config).parse(
            input_path.read_text(encoding="utf-8")
        )
    except ParseError as e:
        _logger.error(f"Cannot parse {input_path}: {e}")
        raise typer.Exit(1)

    classification = SourceClassifier(classifier_config).classify(module)

    if json_output:
        typer.echo(json_module.dumps(classification.to_dict(), indent=2))
        return

    typer.echo(f"{classification.pattern.value} (rule: {classification.rule})")
    for reason in classification.reasons:
        typer.echo(f"  └─ {reason}")


# =============================================================================
# keyframes command
# =============================================================================


def _parse_numbers(values: list[str]) -> list[int | float]:
    """Parse number arguments, accepting comma-separated lists."""
    numbers: list[int | float] = []
    for value in values:
        for part in value.replace(",", " ").split():
            number = float(part)
            numbers.append(int(number) if number.is_integer() and "." not in part else number)
    return numbers


@app.command()
def keyframes(
    values: Annotated[
        list[str],
        typer.Argument(help="interpolate() input range, e.g. 0 30 30 60"),
    ],
    codomain: Annotated[
        str | None,
        typer.Option(
            "--codomain",
            help="Comma-separated output range to fit to the input range",
        ),
    ] = None,
) -> None:
    """Repair an interpolate() input range so it is strictly increasing."""
    from frameshift.transforms.keyframes import (
        format_number,
        is_valid_range,
        validate_interpolation_range,
        validate_range_pair,
    )

    try:
        domain = _parse_numbers(values)
    except ValueError as e:
        _logger.error(f"Input range must be numeric: {e}")
        raise typer.Exit(1)

    def render(numbers: list) -> str:
        return "[" + ", ".join(format_number(n) for n in numbers) + "]"

    if codomain is None:
        repaired = validate_interpolation_range(domain)
        typer.echo(render(repaired))
    else:
        outputs = [part.strip() for part in codomain.split(",") if part.strip()]
        sequence = validate_range_pair(domain, outputs)
        typer.echo(render(sequence.domain))
        typer.echo("[" + ", ".join(str(v) for v in sequence.codomain) + "]")

    if not is_valid_range(domain):
        _logger.info(f"Repaired input range {render(domain)}")


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite existing config",
        ),
    ] = False,
) -> None:
    """Initialize frameshift configuration.

    Creates .frameshift/config.yaml with the default settings.
    """
    frameshift_dir = Path(".frameshift")
    frameshift_dir.mkdir(exist_ok=True)

    config_file = frameshift_dir / "config.yaml"

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(1)

    config_file.write_text(create_default_config())

    typer.echo(f"\n✅ Created configuration: {config_file}")
    typer.echo("\nNext steps:")
    typer.echo("  1. Run: frameshift check")
    typer.echo("  2. Run: frameshift convert Component.tsx -o src/Video.tsx")
