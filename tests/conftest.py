"""Shared test fixtures and helpers."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
import yaml

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from openpath.rules.store import MemoryRuleStore
from openpath.rules.types import Group, Rule, RuleType

FIXTURES_DIR = Path(__file__).parent / "fixtures"

FIXED_TIME = datetime(2025, 1, 31, 12, 0, tzinfo=timezone.utc)


def load_fixture(name: str) -> dict:
    """Load a YAML test fixture."""
    with open(FIXTURES_DIR / f"{name}.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


def make_rule(value, rule_type=RuleType.WHITELIST, rule_id=None, group_id="g1", **kwargs):
    """Create a real Rule with a stable id and timestamp."""
    return Rule(
        id=rule_id or f"{rule_type.value}:{value}",
        group_id=group_id,
        type=rule_type,
        value=value,
        created_at=kwargs.pop("created_at", FIXED_TIME),
        **kwargs,
    )


@pytest.fixture
def group():
    return Group(id="g1", name="class-a", display_name="Class A")


@pytest.fixture
def store(group):
    return MemoryRuleStore(groups=[group])
