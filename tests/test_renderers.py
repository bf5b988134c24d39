"""Tests for the CLI, JSON and JSON Lines renderers."""

import json
from enum import Enum
from io import StringIO

from rich.console import Console

from email_dns_tool.analyzers.protocol import OutputDescriptor, VerbosityLevel
from email_dns_tool.renderers import (
    BulkJSONLinesRenderer,
    CLIRenderer,
    JSONRenderer,
    serialize_value,
)

# ============================================================================
# Fixtures
# ============================================================================


def _descriptor(title="Email Authentication: example.com"):
    descriptor = OutputDescriptor(title=title)
    descriptor.add_row(
        label="MX Records",
        value="Lookup failed: HTTP 502",
        section_name="MX",
        style_class="error",
        severity="error",
        icon="cross",
    )
    descriptor.add_row(
        label="SPF Record",
        value="v=spf1 +all",
        section_name="SPF",
        style_class="success",
        icon="check",
    )
    descriptor.add_row(
        value="SPF uses '+all' (allows all senders, insecure)",
        section_type="text",
        section_name="SPF",
        style_class="warning",
        severity="warning",
        icon="warning",
    )
    descriptor.add_row(
        label="Includes",
        value=["_spf.example.net"],
        section_type="list",
        section_name="SPF",
        verbosity=VerbosityLevel.VERBOSE,
    )
    descriptor.quiet_summary = lambda result: "MX: error | SPF: success"
    return descriptor


def _cli(verbosity=VerbosityLevel.NORMAL):
    buffer = StringIO()
    console = Console(file=buffer, color_system=None, width=200)
    return CLIRenderer(verbosity=verbosity, console=console), buffer


# ============================================================================
# Test Cases
# ============================================================================


class TestCLIRenderer:
    """Test terminal rendering."""

    def test_semantic_style_mapping(self):
        """Test that semantic style classes map to Rich colors."""
        renderer = CLIRenderer()
        assert renderer.STYLE_MAP["success"] == "green"
        assert renderer.STYLE_MAP["error"] == "red"
        assert renderer.STYLE_MAP["warning"] == "yellow"
        assert renderer.STYLE_MAP["neutral"] == ""

    def test_sections_rendered(self):
        """Test title, section names and rows are printed."""
        renderer, buffer = _cli()
        renderer.render(_descriptor(), None)
        out = buffer.getvalue()

        assert "Email Authentication: example.com" in out
        assert "MX Records: ✗ Lookup failed: HTTP 502" in out
        assert "SPF Record: ✓ v=spf1 +all" in out
        assert "⚠ SPF uses '+all'" in out

    def test_verbose_rows_hidden_at_normal(self):
        """Test rows above the current verbosity are filtered."""
        renderer, buffer = _cli()
        renderer.render(_descriptor(), None)
        assert "_spf.example.net" not in buffer.getvalue()

        renderer, buffer = _cli(VerbosityLevel.VERBOSE)
        renderer.render(_descriptor(), None)
        assert "_spf.example.net" in buffer.getvalue()

    def test_markup_in_values_escaped(self):
        """Test record text that looks like Rich markup is printed literally."""
        descriptor = OutputDescriptor(title="t")
        descriptor.add_row(label="TXT", value="[red]v=spf1[/red]", section_name="SPF")
        renderer, buffer = _cli()
        renderer.render(descriptor, None)
        assert "[red]v=spf1[/red]" in buffer.getvalue()

    def test_quiet_mode(self):
        """Test quiet mode prints only the one-line summary."""
        renderer, buffer = _cli(VerbosityLevel.QUIET)
        renderer.render(_descriptor(), object())
        renderer.render_summary()

        assert buffer.getvalue().strip() == "MX: error | SPF: success"

    def test_summary_collects_errors_and_warnings(self):
        """Test the summary lists errors and warnings by section."""
        renderer, buffer = _cli()
        renderer.render(_descriptor(), None)
        renderer.render_summary()
        out = buffer.getvalue()

        assert renderer.all_errors == [("MX", "MX Records: Lookup failed: HTTP 502")]
        assert len(renderer.all_warnings) == 1
        assert "1 error(s) found" in out
        assert "[MX] MX Records: Lookup failed: HTTP 502" in out

    def test_no_issues(self):
        """Test a clean report says so."""
        descriptor = OutputDescriptor(title="t")
        descriptor.add_row(label="SPF Record", value="v=spf1 -all", section_name="SPF")
        renderer, buffer = _cli()
        renderer.render(descriptor, None)
        renderer.render_summary()
        assert "No issues found" in buffer.getvalue()


class TestJSONRenderer:
    """Test JSON export."""

    def test_single_document(self, capsys):
        """Test reports are keyed by domain with a summary."""
        renderer = JSONRenderer()
        renderer.render(_descriptor(), None, {"domain": "example.com", "errors": ["x"]})
        renderer.render(_descriptor("other"), None, {"domain": "example.org", "errors": []})
        renderer.render_summary()

        output = json.loads(capsys.readouterr().out)

        assert set(output["results"]) == {"example.com", "example.org"}
        assert output["results"]["example.com"]["report"]["errors"] == ["x"]
        assert output["summary"]["total_errors"] == 2
        assert output["summary"]["errors"][0]["category"] == "MX"

    def test_rows_keep_semantics(self, capsys):
        """Test rows keep style class, severity and verbosity."""
        renderer = JSONRenderer()
        renderer.render(_descriptor(), None, {"domain": "example.com"})
        renderer.render_summary()

        rows = json.loads(capsys.readouterr().out)["results"]["example.com"]["rows"]
        assert rows[0]["style_class"] == "error"
        assert rows[3]["verbosity"] == "verbose"


class TestBulkJSONLinesRenderer:
    """Test JSON Lines export."""

    def test_one_line_per_domain(self, capsys):
        """Test each domain gets its own line and its own summary."""
        renderer = BulkJSONLinesRenderer()
        for domain in ("a.example", "b.example"):
            renderer.set_current_domain(domain)
            renderer.render(_descriptor(), None, {"domain": domain})
            renderer.render_summary()

        lines = capsys.readouterr().out.strip().splitlines()

        assert len(lines) == 2
        first, second = (json.loads(line) for line in lines)
        assert first["domain"] == "a.example"
        assert second["domain"] == "b.example"
        assert second["summary"]["total_errors"] == 1


class TestSerializeValue:
    """Test value serialization."""

    def test_enum_and_nested(self):
        """Test enums become their values inside containers."""

        class Color(Enum):
            RED = "red"

        assert serialize_value({"c": [Color.RED, 1, None]}) == {"c": ["red", 1, None]}
        assert serialize_value(("a", "b")) == ["a", "b"]
