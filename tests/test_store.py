"""Tests for the in-memory rule store."""

import pytest

from conftest import make_rule

from openpath.rules.store import DuplicateRuleError, MemoryRuleStore, StorageError
from openpath.rules.types import Group, RuleType


class TestGroups:
    def test_list_sorted_by_name(self):
        store = MemoryRuleStore(groups=[
            Group(id="2", name="zeta", display_name="Zeta"),
            Group(id="1", name="alpha", display_name="Alpha"),
        ])
        assert [g.name for g in store.list_groups()] == ["alpha", "zeta"]

    def test_duplicate_name_rejected(self, store):
        with pytest.raises(StorageError):
            store.add_group(Group(id="g2", name="class-a", display_name="Other"))

    def test_delete_cascades(self, store):
        store.insert_rule(make_rule("google.com"))
        assert store.delete_group("g1")
        assert store.get_rule("whitelist:google.com") is None
        assert not store.delete_group("g1")


class TestRules:
    def test_unique_per_group_type_value(self, store):
        store.insert_rule(make_rule("google.com", rule_id="r1"))
        with pytest.raises(DuplicateRuleError) as exc_info:
            store.insert_rule(make_rule("google.com", rule_id="r2"))
        assert exc_info.value.value == "google.com"
        assert exc_info.value.rule_type == RuleType.WHITELIST

    def test_same_value_other_group(self, store):
        store.add_group(Group(id="g2", name="class-b", display_name="Class B"))
        store.insert_rule(make_rule("google.com", rule_id="r1"))
        store.insert_rule(make_rule("google.com", rule_id="r2", group_id="g2"))
        assert len(store.list_rules("g2")) == 1

    def test_insert_unknown_group(self, store):
        with pytest.raises(StorageError):
            store.insert_rule(make_rule("google.com", group_id="missing"))

    def test_insert_reused_id(self, store):
        store.insert_rule(make_rule("google.com", rule_id="r1"))
        with pytest.raises(StorageError):
            store.insert_rule(make_rule("youtube.com", rule_id="r1"))

    def test_list_filtered_and_sorted(self, store):
        store.insert_rule(make_rule("youtube.com"))
        store.insert_rule(make_rule("ads.google.com", RuleType.BLOCKED_SUBDOMAIN))
        store.insert_rule(make_rule("google.com"))
        assert [r.value for r in store.list_rules("g1")] == ["ads.google.com", "google.com", "youtube.com"]
        assert [r.value for r in store.list_rules("g1", RuleType.WHITELIST)] == ["google.com", "youtube.com"]

    def test_update_frees_old_value(self, store):
        rule = store.insert_rule(make_rule("google.com", rule_id="r1"))
        rule.value = "youtube.com"
        store.update_rule(rule)
        store.insert_rule(make_rule("google.com", rule_id="r2"))
        assert [r.id for r in store.list_rules("g1")] == ["r2", "r1"]

    def test_update_conflict(self, store):
        store.insert_rule(make_rule("google.com", rule_id="r1"))
        other = store.insert_rule(make_rule("youtube.com", rule_id="r2"))
        other.value = "google.com"
        with pytest.raises(DuplicateRuleError):
            store.update_rule(other)

    def test_update_missing(self, store):
        with pytest.raises(StorageError):
            store.update_rule(make_rule("google.com", rule_id="missing"))

    def test_delete_frees_value(self, store):
        store.insert_rule(make_rule("google.com", rule_id="r1"))
        assert store.delete_rule("r1")
        assert not store.delete_rule("r1")
        store.insert_rule(make_rule("google.com", rule_id="r2"))

    def test_returned_rules_are_copies(self, store):
        rule = store.insert_rule(make_rule("google.com", rule_id="r1"))
        rule.value = "youtube.com"
        store.get_rule("r1").value = "youtube.com"
        store.list_rules("g1")[0].value = "youtube.com"
        assert store.get_rule("r1").value == "google.com"

        store.insert_rule(make_rule("youtube.com", rule_id="r2"))
        with pytest.raises(DuplicateRuleError):
            store.insert_rule(make_rule("google.com", rule_id="r3"))

    def test_inserted_rule_is_copied(self, store):
        rule = make_rule("google.com", rule_id="r1")
        store.insert_rule(rule)
        rule.value = "youtube.com"
        assert [r.value for r in store.list_rules("g1")] == ["google.com"]
