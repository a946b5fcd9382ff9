"""Grouped and flat pagination over a group's rules.

Grouped pagination buckets rules by root domain and pages over the buckets,
so a domain group is never split across two pages.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from .. import config
from .domain import CC_SLDS, group_by_root_domain
from .types import DomainGroup, GroupStatus, Rule, RuleType


@dataclass
class GroupedPage:
    """One page of root-domain groups.

    total_groups and total_rules count the filtered set before pagination.
    """

    groups: list[DomainGroup]
    total_groups: int
    total_rules: int
    has_more: bool

    def to_dict(self) -> dict:
        return {
            "groups": [group.to_dict() for group in self.groups],
            "totalGroups": self.total_groups,
            "totalRules": self.total_rules,
            "hasMore": self.has_more,
        }


@dataclass
class RulePage:
    """One page of a flat, value-sorted rule listing."""

    rules: list[Rule]
    total: int
    has_more: bool

    def to_dict(self) -> dict:
        return {
            "rules": [rule.to_dict() for rule in self.rules],
            "total": self.total,
            "hasMore": self.has_more,
        }


def group_status(rules: Iterable[Rule]) -> GroupStatus:
    """ALLOWED if every rule is a whitelist rule, BLOCKED if none is, else MIXED."""
    has_whitelist = False
    has_blocked = False
    for rule in rules:
        if rule.type == RuleType.WHITELIST:
            has_whitelist = True
        else:
            has_blocked = True

    if has_whitelist and has_blocked:
        return GroupStatus.MIXED
    if has_blocked:
        return GroupStatus.BLOCKED
    return GroupStatus.ALLOWED


def filter_rules(
    rules: Iterable[Rule],
    rule_type: RuleType | None = None,
    search: str | None = None,
) -> list[Rule]:
    """Filter by type and by case-insensitive substring of the value."""
    filtered = [r for r in rules if rule_type is None or r.type == rule_type]
    needle = search.strip().lower() if search else ""
    if needle:
        filtered = [r for r in filtered if needle in r.value.lower()]
    return filtered


def _check_window(limit: int, offset: int) -> None:
    if limit < 0:
        raise ValueError(f"limit must be >= 0, got {limit}")
    if offset < 0:
        raise ValueError(f"offset must be >= 0, got {offset}")


def paginate_grouped(
    rules: Iterable[Rule],
    rule_type: RuleType | None = None,
    search: str | None = None,
    limit: int = config.GROUP_PAGE_SIZE,
    offset: int = 0,
    cc_slds: frozenset[str] = CC_SLDS,
) -> GroupedPage:
    """Group rules by root domain and return one page of groups.

    Roots sort lexicographically (the "" bucket for path-only rules first),
    rules sort by value inside each group, and limit/offset apply to the
    list of groups rather than to individual rules.
    """
    _check_window(limit, offset)

    filtered = filter_rules(rules, rule_type, search)
    buckets = group_by_root_domain(filtered, cc_slds)
    sorted_roots = sorted(buckets)

    total_groups = len(sorted_roots)
    groups = []
    for root in sorted_roots[offset:offset + limit]:
        group_rules = sorted(buckets[root], key=lambda r: r.value)
        groups.append(DomainGroup(root=root, rules=group_rules, status=group_status(group_rules)))

    return GroupedPage(
        groups=groups,
        total_groups=total_groups,
        total_rules=len(filtered),
        has_more=offset + limit < total_groups,
    )


def paginate(
    rules: Iterable[Rule],
    rule_type: RuleType | None = None,
    search: str | None = None,
    limit: int = config.PAGE_SIZE,
    offset: int = 0,
) -> RulePage:
    """Flat pagination over rules sorted by value."""
    _check_window(limit, offset)

    filtered = sorted(filter_rules(rules, rule_type, search), key=lambda r: r.value)
    total = len(filtered)
    return RulePage(
        rules=filtered[offset:offset + limit],
        total=total,
        has_more=offset + limit < total,
    )
