"""Command-line interface for email-dns-tool.

Single domain:
    edt check example.com --dkim-selector google

Bulk:
    edt check --domain-file domains.txt --format jsonlines
"""

import logging
import sys
from pathlib import Path
from typing import Annotated

import rich.panel
import typer
from pydantic import ValidationError
from rich import box
from rich.console import Console

# Remove borders from CLI help output by monkey-patching Panel
_original_panel_init = rich.panel.Panel.__init__


def _no_border_panel_init(self, *args, **kwargs) -> None:
    kwargs["box"] = box.HORIZONTALS
    return _original_panel_init(self, *args, **kwargs)


rich.panel.Panel.__init__ = _no_border_panel_init

from .analyzers.email_auth import EmailAuthAnalyzer, EmailAuthReport  # noqa: E402
from .analyzers.protocol import VerbosityLevel  # noqa: E402
from .config import Config, ResolverConfig, load_config  # noqa: E402
from .renderers import (  # noqa: E402
    BaseRenderer,
    BulkJSONLinesRenderer,
    CLIRenderer,
    JSONRenderer,
)
from .utils.debug_stats import get_stats_tracker  # noqa: E402
from .utils.logger import setup_logger  # noqa: E402
from .validation import InvalidDomainError, validate_domain  # noqa: E402

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="email-dns-tool",
    help="Check email authentication DNS records (MX, SPF, DMARC, DKIM)",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()

OUTPUT_FORMATS = ("cli", "json", "jsonlines")
TRANSPORTS = ("doh", "dns")


# ============================================================================
# Validation Functions
# ============================================================================


def parse_domain(domain: str) -> str:
    """
    Validate a domain given on the command line.

    Raises:
        typer.BadParameter: If domain format is invalid
    """
    try:
        return validate_domain(domain)
    except InvalidDomainError as e:
        raise typer.BadParameter(str(e))


def validate_verbosity(value: str | None) -> str | None:
    """
    Validate verbosity level.

    Args:
        value: Verbosity level string (None = use config)

    Returns:
        Validated verbosity level

    Raises:
        typer.BadParameter: If verbosity is invalid
    """
    if value is None:
        return None
    valid_levels = [level.value for level in VerbosityLevel]
    if value.lower() not in valid_levels:
        raise typer.BadParameter(
            f"Invalid verbosity: {value}. Must be one of: {', '.join(valid_levels)}"
        )
    return value.lower()


def _validate_choice(choices: tuple[str, ...], name: str):
    def callback(value: str | None) -> str | None:
        if value is None:
            return None
        if value.lower() not in choices:
            raise typer.BadParameter(
                f"Invalid {name}: {value}. Must be one of: {', '.join(choices)}"
            )
        return value.lower()

    return callback


# ============================================================================
# Helper Functions
# ============================================================================


def _create_renderer(output_format: str, verbosity: VerbosityLevel, color: bool) -> BaseRenderer:
    if output_format == "json":
        return JSONRenderer(verbosity=verbosity)
    if output_format == "jsonlines":
        return BulkJSONLinesRenderer(verbosity=verbosity)
    return CLIRenderer(verbosity=verbosity, color=color)


def _check_single_domain(
    domain: str,
    analyzer: EmailAuthAnalyzer,
    resolver_config: ResolverConfig,
    dkim_selector: str | None,
    renderer: BaseRenderer,
) -> EmailAuthReport | None:
    """
    Check one domain and hand the report to the renderer.

    Returns:
        The report, or None if the check itself crashed
    """
    try:
        report = analyzer.analyze(domain, resolver_config, dkim_selector=dkim_selector)
    except Exception as e:
        logger.error(f"Check of {domain} failed: {e}", exc_info=True)
        # Don't print error in bulk mode - just log it
        if not isinstance(renderer, BulkJSONLinesRenderer):
            console.print(f"[red]✗ Check of {domain} failed: {e}[/red]")
        return None

    renderer.render(analyzer.describe_output(report), report, analyzer.to_dict(report))
    return report


def _read_domains(domain_file: str) -> list[str]:
    """Read non-empty lines from a file, or from stdin for '-'."""
    try:
        if domain_file == "-":
            return [line.strip() for line in sys.stdin if line.strip()]
        with open(domain_file) as f:
            return [line.strip() for line in f if line.strip()]
    except OSError as e:
        console.print(f"[red]Error reading domain file: {e}[/red]")
        raise typer.Exit(1)


def _process_bulk_domains(
    domain_file: str,
    analyzer: EmailAuthAnalyzer,
    resolver_config: ResolverConfig,
    dkim_selector: str | None,
    renderer: BaseRenderer,
) -> bool:
    """
    Check every domain listed in a file or on stdin.

    Invalid lines are logged and skipped.

    Returns:
        True if any check ended with errors
    """
    domains = _read_domains(domain_file)
    if not domains:
        console.print("[yellow]No domains found in input[/yellow]")
        raise typer.Exit(0)

    failed = False
    for domain_line in domains:
        try:
            domain = validate_domain(domain_line)
        except InvalidDomainError as e:
            logger.warning(f"Skipping invalid domain: {domain_line} - {e}")
            continue

        # Set current domain (for bulk renderer)
        if isinstance(renderer, BulkJSONLinesRenderer):
            renderer.set_current_domain(domain)

        report = _check_single_domain(domain, analyzer, resolver_config, dkim_selector, renderer)
        failed = failed or report is None or report.has_errors

        # JSON Lines emits one line per domain; other formats summarize at the end
        if isinstance(renderer, BulkJSONLinesRenderer):
            renderer.render_summary()

    if not isinstance(renderer, BulkJSONLinesRenderer):
        renderer.render_summary()

    return failed


# ============================================================================
# CLI Commands
# ============================================================================


@app.command()
def check(
    domain: Annotated[
        str | None,
        typer.Argument(
            help="Domain to check (e.g., example.com). Optional if --domain-file is used.",
        ),
    ] = None,
    dkim_selector: Annotated[
        str | None,
        typer.Option(
            "--dkim-selector",
            "-s",
            help="DKIM selector to check (e.g., google, selector1)",
        ),
    ] = None,
    output_format: Annotated[
        str | None,
        typer.Option(
            "--format",
            "-f",
            help="Output format: cli, json, jsonlines",
            callback=_validate_choice(OUTPUT_FORMATS, "format"),
        ),
    ] = None,
    verbosity: Annotated[
        str | None,
        typer.Option(
            "--verbosity",
            "-v",
            help="Output verbosity: quiet, normal, verbose, debug",
            callback=validate_verbosity,
        ),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    transport: Annotated[
        str | None,
        typer.Option(
            "--transport",
            help="DNS transport: doh (DNS-over-HTTPS) or dns (classic resolver)",
            callback=_validate_choice(TRANSPORTS, "transport"),
        ),
    ] = None,
    domain_file: Annotated[
        str | None,
        typer.Option(
            "--domain-file",
            help="File with list of domains (one per line). Use '-' for stdin.",
        ),
    ] = None,
):
    """
    Check MX, SPF, DMARC and (with a selector) DKIM records of a domain.

    Exits with code 1 when any record could not be looked up.

    Examples:
        edt check example.com
        edt check example.com --dkim-selector google --verbosity verbose
        edt check example.com --format json --transport dns
        cat domains.txt | edt check --domain-file - --format jsonlines
    """
    if not domain and not domain_file:
        console.print("[red]Error: Either DOMAIN or --domain-file must be provided[/red]")
        raise typer.Exit(1)

    if domain and domain_file:
        console.print("[red]Error: Cannot use both DOMAIN and --domain-file together[/red]")
        raise typer.Exit(1)

    # Validate before any network activity
    if domain:
        domain = parse_domain(domain)

    try:
        config = load_config(extra_paths=[config_file] if config_file else None)
    except ValidationError as e:
        console.print(f"[red]Error: Invalid configuration: {e}[/red]")
        raise typer.Exit(1)

    verbosity = verbosity or validate_verbosity(config.output.verbosity) or "normal"
    output_format = output_format or config.output.format
    verbosity_level = VerbosityLevel(verbosity)

    setup_logger(level=verbosity_level)

    # Enable debug statistics tracking if in debug mode
    stats_tracker = get_stats_tracker()
    if verbosity_level == VerbosityLevel.DEBUG:
        stats_tracker.enable()
        stats_tracker.reset()
        logger.debug("Debug statistics tracking enabled")

    resolver_config = config.resolver
    if transport:
        resolver_config = resolver_config.model_copy(update={"transport": transport})

    analyzer = EmailAuthAnalyzer()
    renderer = _create_renderer(output_format, verbosity_level, config.output.color)

    if domain_file:
        failed = _process_bulk_domains(
            domain_file, analyzer, resolver_config, dkim_selector, renderer
        )
    else:
        assert domain is not None

        if output_format == "cli" and verbosity_level != VerbosityLevel.QUIET:
            console.print(f"[bold blue]Checking domain: {domain}[/bold blue]")
            console.print(f"[dim]Transport: {resolver_config.transport}[/dim]")

        if isinstance(renderer, BulkJSONLinesRenderer):
            renderer.set_current_domain(domain)
        report = _check_single_domain(domain, analyzer, resolver_config, dkim_selector, renderer)
        renderer.render_summary()
        failed = report is None or report.has_errors

    # Print debug statistics if in debug mode
    if verbosity_level == VerbosityLevel.DEBUG and stats_tracker.is_enabled():
        # Print to stderr (where logging goes) so it doesn't interfere with JSON output
        sys.stderr.write(stats_tracker.get_summary() + "\n")

    if failed:
        raise typer.Exit(1)


@app.command()
def create_config(
    output: Annotated[
        Path,
        typer.Option(
            "--output",
            "-o",
            help="Output file path",
        ),
    ] = Path(".email-dns-tool.toml"),
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite existing file",
        ),
    ] = False,
):
    """
    Create a default configuration file.

    Example:
        edt create-config
        edt create-config --output ~/.config/email-dns-tool/config.toml
    """
    if output.exists() and not force:
        console.print(f"[yellow]File already exists: {output}[/yellow]")
        console.print("Use --force to overwrite")
        raise typer.Exit(1)

    try:
        output.parent.mkdir(parents=True, exist_ok=True)
        Config().to_toml_file(output)
        console.print(f"[green]✓ Created configuration file: {output}[/green]")
    except OSError as e:
        console.print(f"[red]✗ Failed to create config: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def version() -> None:
    """Show version information."""
    try:
        import importlib.metadata

        version = importlib.metadata.version("email-dns-tool")
        console.print(f"email-dns-tool version {version}")
    except Exception:
        console.print("email-dns-tool (version unknown)")


# ============================================================================
# Entry Point
# ============================================================================


def main() -> None:
    """Main entry point for CLI."""
    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)
        console.print(f"[red]Unexpected error: {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
