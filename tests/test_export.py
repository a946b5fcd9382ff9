"""Tests for CSV, JSON and text exports."""

import csv
import io
import json

import pytest

from conftest import make_rule

from openpath.rules.export import (
    build_export_filename,
    export_rules,
    rules_to_csv,
    rules_to_json,
    rules_to_text,
)
from openpath.rules.types import (
    RuleType,
    categorize_rule,
    rule_type_badge,
    rule_type_label,
)


@pytest.fixture
def rules():
    return [
        make_rule("google.com"),
        make_rule("ads.google.com", RuleType.BLOCKED_SUBDOMAIN),
        make_rule("*/ads/*", RuleType.BLOCKED_PATH),
        make_rule("youtube.com", comment='says "hi", twice'),
    ]


class TestCsv:
    def test_header_and_rows(self, rules):
        rows = list(csv.reader(io.StringIO(rules_to_csv(rules))))
        assert rows[0] == ["value", "type", "type_label", "created_at"]
        assert rows[1] == ["google.com", "whitelist", "Allowed domain", "2025-01-31T12:00:00+00:00"]
        assert rows[3][:3] == ["*/ads/*", "blocked_path", "Blocked path"]
        assert len(rows) == 5

    def test_empty(self):
        assert rules_to_csv([]) == "value,type,type_label,created_at\n"


class TestJson:
    def test_array_of_views(self, rules):
        data = json.loads(rules_to_json(rules))
        assert data[1] == {
            "value": "ads.google.com",
            "type": "blocked_subdomain",
            "typeLabel": "Blocked subdomain",
            "createdAt": "2025-01-31T12:00:00+00:00",
        }

    def test_pretty_printed(self, rules):
        assert rules_to_json(rules[:1]).startswith("[\n  {")


class TestText:
    def test_flat_keeps_order(self, rules):
        assert rules_to_text(rules) == "google.com\nads.google.com\n*/ads/*\nyoutube.com"

    def test_grouped(self, rules):
        assert rules_to_text(rules, grouped=True) == (
            "## WHITELIST\ngoogle.com\nyoutube.com\n\n"
            "## BLOCKED-SUBDOMAINS\nads.google.com\n\n"
            "## BLOCKED-PATHS\n*/ads/*"
        )

    def test_grouped_skips_empty_sections(self):
        assert rules_to_text([make_rule("a.com")], grouped=True) == "## WHITELIST\na.com"


class TestExportRules:
    @pytest.mark.parametrize("format", ["csv", "json", "txt"])
    def test_dispatch(self, rules, format):
        assert "google.com" in export_rules(rules, format)

    def test_unknown_format(self, rules):
        with pytest.raises(ValueError):
            export_rules(rules, "xml")


class TestFilename:
    @pytest.mark.parametrize(
        "format,filename,expected",
        [
            ("csv", "Reglas Clase 1ºA.CSV", "reglas-clase-1oa.csv"),
            ("csv", "my rules", "my-rules.csv"),
            ("json", "export.json", "export.json"),
            ("txt", "Ñandú / ciencias", "nandu-ciencias.txt"),
            ("txt", "  ", "rules-2025-01-31.txt"),
            ("json", "---", "rules-2025-01-31.json"),
            ("json", None, "rules-2025-01-31.json"),
        ],
    )
    def test_sanitized(self, format, filename, expected):
        assert build_export_filename(format, filename, date_stamp="2025-01-31") == expected


class TestLabels:
    @pytest.mark.parametrize(
        "rule_type,label,badge,category",
        [
            (RuleType.WHITELIST, "Allowed domain", "Allowed", "allowed"),
            (RuleType.BLOCKED_SUBDOMAIN, "Blocked subdomain", "Sub. blocked", "blocked"),
            (RuleType.BLOCKED_PATH, "Blocked path", "Path blocked", "blocked"),
        ],
    )
    def test_labels(self, rule_type, label, badge, category):
        assert rule_type_label(rule_type) == label
        assert rule_type_badge(rule_type) == badge
        assert categorize_rule(rule_type) == category
