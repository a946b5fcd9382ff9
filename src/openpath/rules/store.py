"""Storage contract for groups and rules, plus an in-memory implementation.

The store is the system of record: it alone enforces uniqueness of
(group_id, type, value). Engine-side duplicate checks are advisory.
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import replace
from typing import Protocol

from .types import Group, Rule, RuleType

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Integrity failure in the storage layer."""


class DuplicateRuleError(StorageError):
    """A rule with the same (group_id, type, value) already exists."""

    def __init__(self, group_id: str, rule_type: RuleType, value: str):
        super().__init__(f"Rule already exists in group {group_id}: {rule_type.value} {value}")
        self.group_id = group_id
        self.rule_type = rule_type
        self.value = value


class RuleStore(Protocol):
    """Operations the rule service needs from storage."""

    def get_group(self, group_id: str) -> Group | None: ...

    def list_groups(self) -> list[Group]: ...

    def list_rules(self, group_id: str, rule_type: RuleType | None = None) -> list[Rule]: ...

    def get_rule(self, rule_id: str) -> Rule | None: ...

    def insert_rule(self, rule: Rule) -> Rule: ...

    def update_rule(self, rule: Rule) -> Rule: ...

    def delete_rule(self, rule_id: str) -> bool: ...


class MemoryRuleStore:
    """Thread-safe in-memory RuleStore.

    Rules go in and come out as copies, so callers cannot change stored
    values behind the uniqueness index.

    Example:
        store = MemoryRuleStore()
        store.add_group(Group(id="g1", name="class-a", display_name="Class A"))
        store.insert_rule(Rule(id="r1", group_id="g1", type=RuleType.WHITELIST, value="google.com"))
    """

    def __init__(self, groups: Iterable[Group] = (), rules: Iterable[Rule] = ()):
        self._lock = threading.Lock()
        self._groups: dict[str, Group] = {}
        self._rules: dict[str, Rule] = {}
        # (group_id, type, value) -> rule id, and back
        self._unique: dict[tuple[str, RuleType, str], str] = {}
        self._keys: dict[str, tuple[str, RuleType, str]] = {}
        for group in groups:
            self.add_group(group)
        for rule in rules:
            self.insert_rule(rule)

    @staticmethod
    def _key(rule: Rule) -> tuple[str, RuleType, str]:
        return (rule.group_id, rule.type, rule.value)

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def add_group(self, group: Group) -> Group:
        with self._lock:
            if any(g.name == group.name and g.id != group.id for g in self._groups.values()):
                raise StorageError(f"A group named {group.name!r} already exists")
            self._groups[group.id] = group
        return group

    def get_group(self, group_id: str) -> Group | None:
        with self._lock:
            return self._groups.get(group_id)

    def list_groups(self) -> list[Group]:
        with self._lock:
            return sorted(self._groups.values(), key=lambda g: g.name)

    def delete_group(self, group_id: str) -> bool:
        """Delete a group and cascade to its rules."""
        with self._lock:
            if self._groups.pop(group_id, None) is None:
                return False
            for rule_id in [r.id for r in self._rules.values() if r.group_id == group_id]:
                self._rules.pop(rule_id)
                del self._unique[self._keys.pop(rule_id)]
        logger.debug("Deleted group %s", group_id)
        return True

    # -------------------------------------------------------------------------
    # Rules
    # -------------------------------------------------------------------------

    def list_rules(self, group_id: str, rule_type: RuleType | None = None) -> list[Rule]:
        with self._lock:
            rules = [
                replace(r) for r in self._rules.values()
                if r.group_id == group_id and (rule_type is None or r.type == rule_type)
            ]
        return sorted(rules, key=lambda r: r.value)

    def get_rule(self, rule_id: str) -> Rule | None:
        with self._lock:
            rule = self._rules.get(rule_id)
        return replace(rule) if rule is not None else None

    def insert_rule(self, rule: Rule) -> Rule:
        key = self._key(rule)
        with self._lock:
            if rule.group_id not in self._groups:
                raise StorageError(f"Group not found: {rule.group_id}")
            if key in self._unique:
                raise DuplicateRuleError(rule.group_id, rule.type, rule.value)
            if rule.id in self._rules:
                raise StorageError(f"Rule id already in use: {rule.id}")
            self._rules[rule.id] = replace(rule)
            self._unique[key] = rule.id
            self._keys[rule.id] = key
        logger.debug("Inserted rule %s (%s %s)", rule.id, rule.type.value, rule.value)
        return replace(rule)

    def update_rule(self, rule: Rule) -> Rule:
        key = self._key(rule)
        with self._lock:
            if rule.id not in self._rules:
                raise StorageError(f"Rule not found: {rule.id}")
            owner = self._unique.get(key)
            if owner is not None and owner != rule.id:
                raise DuplicateRuleError(rule.group_id, rule.type, rule.value)
            del self._unique[self._keys[rule.id]]
            stored = replace(rule)
            self._rules[rule.id] = stored
            self._unique[key] = rule.id
            self._keys[rule.id] = key
        logger.debug("Updated rule %s", rule.id)
        return replace(stored)

    def delete_rule(self, rule_id: str) -> bool:
        with self._lock:
            if self._rules.pop(rule_id, None) is None:
                return False
            del self._unique[self._keys.pop(rule_id)]
        logger.debug("Deleted rule %s", rule_id)
        return True
