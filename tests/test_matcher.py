"""Tests for block matching.

Uses YAML test fixtures from tests/fixtures/.
"""

import pytest

from conftest import load_fixture

from openpath.rules.matcher import BlockCheck, is_blocked, match_pattern

MATCHING_FIXTURE = load_fixture("matching")


@pytest.mark.parametrize(
    "case",
    MATCHING_FIXTURE["tests"],
    ids=[case["name"] for case in MATCHING_FIXTURE["tests"]],
)
def test_matching_fixture(case):
    check = is_blocked(case["host"], case["rules"])
    assert check.blocked == case["blocked"]
    assert check.matched_rule == case["matched"]


class TestMatchPattern:
    """Tests for match_pattern()."""

    @pytest.mark.parametrize(
        "pattern,host,expected",
        [
            ("example.com", "example.com", True),
            ("example.com", "www.example.com", True),
            ("example.com", "notexample.com", False),
            ("example.com", "example.com.evil.org", False),
            ("*.example.com", "example.com", True),
            ("*.example.com", "a.b.example.com", True),
            ("*.example.com", "xexample.com", False),
            ("EXAMPLE.com", "www.Example.COM", True),
            ("", "example.com", False),
            ("  ", "example.com", False),
        ],
    )
    def test_match_pattern(self, pattern, host, expected):
        assert match_pattern(pattern, host) is expected


class TestIsBlocked:
    """Tests for is_blocked()."""

    def test_order_does_not_change_verdict(self):
        rules = ["example.com", "*.example.com", "ads.example.com"]
        for rotation in range(len(rules)):
            rotated = rules[rotation:] + rules[:rotation]
            assert is_blocked("ads.example.com", rotated).blocked

    def test_accepts_iterator(self):
        assert is_blocked("ads.example.com", iter(["example.com"])).blocked

    def test_to_dict(self):
        assert BlockCheck(blocked=False).to_dict() == {"blocked": False, "matchedRule": None}
        assert is_blocked("a.example.com", ["example.com"]).to_dict() == {
            "blocked": True,
            "matchedRule": "example.com",
        }
