"""CLI renderer using Rich library.

This renderer interprets semantic styles from OutputDescriptor and renders
them to terminal using the Rich library with appropriate colors and formatting.
"""

from typing import Any

from rich.console import Console
from rich.markup import escape

from ..analyzers.protocol import OutputDescriptor, OutputRow, VerbosityLevel
from .base import BaseRenderer


class CLIRenderer(BaseRenderer):
    """
    Renders output to CLI using Rich library.

    Maps semantic style classes to Rich markup:
    - success -> green
    - error -> red
    - warning -> yellow
    - info -> blue
    - highlight -> bold
    - muted -> dim
    - neutral -> default
    """

    # Semantic style class -> Rich markup color
    STYLE_MAP = {
        "success": "green",
        "error": "red",
        "warning": "yellow",
        "info": "blue",
        "highlight": "bold",
        "muted": "dim",
        "neutral": "",
    }

    # Semantic icon name -> Unicode character
    ICON_MAP = {
        "check": "✓",
        "cross": "✗",
        "warning": "⚠",
        "info": "ℹ",
        "arrow": "→",
        "envelope": "✉",
        "terminal": "$",
        "bullet": "•",
    }

    def __init__(
        self,
        verbosity: VerbosityLevel = VerbosityLevel.NORMAL,
        color: bool = True,
        console: Console | None = None,
    ):
        """
        Initialize CLI renderer.

        Args:
            verbosity: Output verbosity level
            color: Enable colored output
            console: Console to print to (a new stdout console by default)
        """
        super().__init__(verbosity)
        self.console = console or Console(color_system="auto" if color else None)

    def render(
        self, descriptor: OutputDescriptor, result: Any, data: dict[str, Any] | None = None
    ) -> None:
        """
        Render a report to the terminal.

        Args:
            descriptor: Output structure description
            result: The report (used by the quiet summary)
            data: Unused by this renderer
        """
        self.collect_errors_warnings(descriptor)

        # Quiet mode: one summary line per report
        if self.verbosity == VerbosityLevel.QUIET:
            if descriptor.quiet_summary:
                self.console.print(escape(descriptor.quiet_summary(result)))
            return

        self.console.print(f"\n[bold blue]{escape(descriptor.title)}[/bold blue]")

        sections = descriptor.sections(self.verbosity)
        if not sections:
            self.console.print("  [dim]No data to display[/dim]")
            return

        for section_name, rows in sections.items():
            if section_name:
                self.console.print()  # Blank line BEFORE section name (separator)
                self.console.print(f"  [cyan]{escape(section_name)}[/cyan]")

            for row in rows:
                self._render_row(row)

    def _render_row(self, row: OutputRow) -> None:
        """
        Render a single output row.

        Args:
            row: OutputRow to render
        """
        indent = "  "
        style = self.STYLE_MAP.get(row.style_class, "")
        icon = self.ICON_MAP.get(row.icon or "", "")
        icon_str = f"{icon} " if icon else ""

        if row.section_type == "text":
            msg = escape(str(row.value) if row.value else str(row.label))
            self.console.print(f"{indent}{self._styled(f'{icon_str}{msg}', style)}")
            return

        if row.section_type == "list":
            if row.label:
                self.console.print(f"{indent}{self._styled(escape(row.label) + ':', style)}")

            items = row.value if isinstance(row.value, list) else [row.value]
            bullet = "" if row.format_as == "code" else f"{self.ICON_MAP['bullet']} "
            for item in items:
                self.console.print(f"{indent}  {bullet}{escape(str(item))}", highlight=False)
            return

        # key_value
        if not row.show_if_empty and not row.value:
            return

        formatted_value = self._styled(self._format_value(row), style)
        if row.label:
            self.console.print(f"{indent}{escape(row.label)}: {icon_str}{formatted_value}")
        else:
            self.console.print(f"{indent}{icon_str}{formatted_value}")

    @staticmethod
    def _styled(text: str, style: str) -> str:
        if not style:
            return text
        return f"[{style}]{text}[/{style}]"

    def _format_value(self, row: OutputRow) -> str:
        """
        Format row value for display.

        Args:
            row: OutputRow

        Returns:
            Formatted (markup-escaped) string
        """
        if row.value is None:
            return "[dim]none[/dim]"

        if isinstance(row.value, bool):
            return "Yes" if row.value else "No"

        if isinstance(row.value, (list, tuple)):
            return escape(", ".join(str(v) for v in row.value))

        return escape(str(row.value))

    def render_summary(self) -> None:
        """Render summary of all reports."""
        if self.verbosity == VerbosityLevel.QUIET:
            return

        self.console.print()
        self.console.print("[bold blue]═══ Summary ═══[/bold blue]")
        self.console.print()

        total_errors = len(self.all_errors)
        total_warnings = len(self.all_warnings)

        if total_errors == 0 and total_warnings == 0:
            self.console.print("[green]✓ No issues found![/green]")
        else:
            if total_errors > 0:
                self.console.print(f"[red]✗ {total_errors} error(s) found:[/red]")
                for category, error in self.all_errors:
                    self.console.print(f"  [red]• \\[{escape(category)}] {escape(error)}[/red]")
                self.console.print()

            if total_warnings > 0:
                self.console.print(f"[yellow]⚠ {total_warnings} warning(s) found:[/yellow]")
                for category, warning in self.all_warnings:
                    self.console.print(
                        f"  [yellow]• \\[{escape(category)}] {escape(warning)}[/yellow]"
                    )

        self.console.print()
