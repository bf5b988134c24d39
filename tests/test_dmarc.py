"""Tests for DMARC parsing and validation."""

from email_dns_tool.analyzers.dmarc import parse_tags, validate_dmarc


class TestParseTags:
    """Test tag splitting."""

    def test_split_on_first_equals(self):
        """Test values keep any further '=' characters."""
        tags = parse_tags("v=DMARC1; rua=mailto:a@example.com?x=1")
        assert tags["rua"] == "mailto:a@example.com?x=1"

    def test_keys_case_insensitive(self):
        """Test keys are lowercased and whitespace trimmed."""
        tags = parse_tags("v=DMARC1;  P = reject ;SP=none")
        assert tags["p"] == "reject"
        assert tags["sp"] == "none"

    def test_parts_without_equals_ignored(self):
        """Test stray parts are skipped."""
        assert parse_tags("v=DMARC1; junk; ;p=none") == {"v": "DMARC1", "p": "none"}


class TestValidateDmarc:
    """Test DMARC validation."""

    def test_strict_record_has_no_warnings(self):
        """Test a reject policy with reporting is clean."""
        dmarc = validate_dmarc("v=DMARC1; p=reject; pct=100; rua=mailto:a@x.com")

        assert dmarc.is_valid is True
        assert dmarc.policy == "reject"
        assert dmarc.percentage == 100
        assert dmarc.report_addrs == ["mailto:a@x.com"]
        assert dmarc.rua == ["mailto:a@x.com"]
        assert dmarc.warnings == []

    def test_policy_none(self):
        """Test p=none warns about quarantine/reject and missing reports."""
        dmarc = validate_dmarc("v=DMARC1; p=none")

        assert dmarc.policy == "none"
        assert any("quarantine" in w and "reject" in w for w in dmarc.warnings)
        assert any("rua" in w and "ruf" in w for w in dmarc.warnings)
        assert dmarc.report_addrs is None

    def test_not_dmarc(self):
        """Test a record without v=DMARC1 is invalid."""
        dmarc = validate_dmarc("v=spf1 -all")
        assert dmarc.is_valid is False
        assert dmarc.policy is None

    def test_partial_percentage(self):
        """Test pct below 100 is flagged."""
        dmarc = validate_dmarc("v=DMARC1; p=quarantine; pct=25; rua=mailto:a@x.com")
        assert dmarc.percentage == 25
        assert any("25%" in w for w in dmarc.warnings)

    def test_percentage_absent(self):
        """Test a missing pct leaves percentage unset without warnings."""
        dmarc = validate_dmarc("v=DMARC1; p=reject; ruf=mailto:f@x.com")
        assert dmarc.percentage is None
        assert dmarc.warnings == []

    def test_non_numeric_percentage(self):
        """Test a non-integer pct is flagged."""
        dmarc = validate_dmarc("v=DMARC1; p=reject; pct=all; rua=mailto:a@x.com")
        assert dmarc.percentage is None
        assert any("pct" in w for w in dmarc.warnings)

    def test_missing_policy(self):
        """Test a missing p tag is advisory only."""
        dmarc = validate_dmarc("v=DMARC1; rua=mailto:a@x.com")
        assert dmarc.is_valid is True
        assert any("no policy" in w for w in dmarc.warnings)

    def test_unknown_policy(self):
        """Test unknown policy values are flagged."""
        dmarc = validate_dmarc("v=DMARC1; p=block; rua=mailto:a@x.com")
        assert any("Unknown DMARC policy" in w for w in dmarc.warnings)

    def test_report_addresses_combined(self):
        """Test rua and ruf are split on commas and combined in order."""
        dmarc = validate_dmarc(
            "v=DMARC1; p=reject; rua=mailto:a@x.com, mailto:b@x.com; "
            "ruf=mailto:f@x.com; sp=quarantine"
        )
        assert dmarc.rua == ["mailto:a@x.com", "mailto:b@x.com"]
        assert dmarc.ruf == ["mailto:f@x.com"]
        assert dmarc.report_addrs == ["mailto:a@x.com", "mailto:b@x.com", "mailto:f@x.com"]
        assert dmarc.subdomain_policy == "quarantine"
