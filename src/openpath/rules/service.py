"""Rule service - business logic for creating, editing and exporting rules.

Validation failures and duplicates come back as structured ServiceResults
for inline display. Storage integrity failures other than uniqueness
violations propagate as StorageError.
"""

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from .. import config
from .detection import Detection, detect_type
from .domain import canonicalize
from .grouping import GroupedPage, RulePage, paginate, paginate_grouped
from .listfile import export_group
from .matcher import BlockCheck, is_blocked
from .store import DuplicateRuleError, RuleStore
from .types import ErrorCode, Rule, RuleSource, RuleType
from .validation import ValidationResult, check_duplicate, validate

logger = logging.getLogger(__name__)

BAD_REQUEST = "BAD_REQUEST"
NOT_FOUND = "NOT_FOUND"
CONFLICT = "CONFLICT"

# Sentinel for "leave the comment unchanged" (None clears it)
UNSET: Any = object()


@dataclass
class ServiceError:
    """Error returned by the service.

    Attributes:
        code: BAD_REQUEST, NOT_FOUND or CONFLICT
        message: Human-readable explanation
        validation: Field-level validation result behind the error, if any
    """

    code: str
    message: str
    validation: ValidationResult | None = None

    def to_dict(self) -> dict:
        result = {"code": self.code, "message": self.message}
        if self.validation is not None:
            result["validation"] = self.validation.to_dict()
        return result


@dataclass
class ServiceResult:
    """Either ok with data, or an error."""

    ok: bool
    data: Any = None
    error: ServiceError | None = None

    @classmethod
    def success(cls, data: Any = None) -> "ServiceResult":
        return cls(ok=True, data=data)

    @classmethod
    def failure(cls, code: str, message: str, validation: ValidationResult | None = None) -> "ServiceResult":
        return cls(ok=False, error=ServiceError(code, message, validation))


@dataclass
class BulkCreateReport:
    """Outcome of a bulk create: how many succeeded and why the rest failed."""

    created: list[Rule] = field(default_factory=list)
    failed: list[tuple[str, ValidationResult]] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.created)


def _not_found(what: str) -> ServiceResult:
    return ServiceResult.failure(NOT_FOUND, f"{what} not found")


def _duplicate(value: str) -> ServiceResult:
    validation = ValidationResult.fail(ErrorCode.DUPLICATE_RULE, "Rule already exists", value)
    return ServiceResult.failure(CONFLICT, "Rule already exists", validation)


class RuleService:
    """Rule lifecycle over a RuleStore.

    Example:
        service = RuleService(MemoryRuleStore(groups=[group]))
        result = service.create_rule(group.id, RuleType.WHITELIST, "https://Google.com/")
        assert result.ok and result.data.value == "google.com"
    """

    def __init__(self, store: RuleStore):
        self.store = store

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def list_rules(self, group_id: str, rule_type: RuleType | None = None) -> ServiceResult:
        if self.store.get_group(group_id) is None:
            return _not_found("Group")
        return ServiceResult.success(self.store.list_rules(group_id, rule_type))

    def list_rules_paginated(
        self,
        group_id: str,
        rule_type: RuleType | None = None,
        search: str | None = None,
        limit: int = config.PAGE_SIZE,
        offset: int = 0,
    ) -> ServiceResult:
        if self.store.get_group(group_id) is None:
            return _not_found("Group")
        page: RulePage = paginate(self.store.list_rules(group_id), rule_type, search, limit, offset)
        return ServiceResult.success(page)

    def list_rules_grouped(
        self,
        group_id: str,
        rule_type: RuleType | None = None,
        search: str | None = None,
        limit: int = config.GROUP_PAGE_SIZE,
        offset: int = 0,
    ) -> ServiceResult:
        if self.store.get_group(group_id) is None:
            return _not_found("Group")
        page: GroupedPage = paginate_grouped(
            self.store.list_rules(group_id), rule_type, search, limit, offset
        )
        return ServiceResult.success(page)

    def stats(self) -> dict:
        """Aggregate counts across every group."""
        groups = self.store.list_groups()
        rules = [rule for group in groups for rule in self.store.list_rules(group.id)]
        return {
            "groupCount": len(groups),
            "whitelistCount": sum(1 for r in rules if r.type == RuleType.WHITELIST),
            "blockedCount": sum(1 for r in rules if r.blocking),
        }

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def create_rule(
        self,
        group_id: str,
        rule_type: RuleType,
        value: str,
        comment: str | None = None,
        source: RuleSource = RuleSource.MANUAL,
    ) -> ServiceResult:
        """Canonicalize, validate and insert a rule."""
        validation = validate(value, rule_type)
        if not validation.valid:
            return ServiceResult.failure(BAD_REQUEST, validation.message, validation)

        if self.store.get_group(group_id) is None:
            return _not_found("Group")

        existing = self.store.list_rules(group_id, rule_type)
        duplicate = check_duplicate(validation.value, rule_type, existing)
        if not duplicate.valid:
            return ServiceResult.failure(CONFLICT, duplicate.message, duplicate)

        rule = Rule(
            id=str(uuid.uuid4()),
            group_id=group_id,
            type=rule_type,
            value=validation.value,
            source=source,
            comment=comment,
        )
        try:
            rule = self.store.insert_rule(rule)
        except DuplicateRuleError:
            # Lost a race with a concurrent writer; the store is authoritative
            return _duplicate(rule.value)

        logger.info("Created rule %s in group %s: %s %s", rule.id, group_id, rule_type.value, rule.value)
        return ServiceResult.success(rule)

    def add_rule_with_detection(
        self,
        group_id: str,
        raw: str,
        comment: str | None = None,
        source: RuleSource = RuleSource.MANUAL,
    ) -> tuple[Detection | None, ServiceResult]:
        """Classify free-text input against the group's whitelist, then create it."""
        if self.store.get_group(group_id) is None:
            return None, _not_found("Group")
        whitelist = [r.value for r in self.store.list_rules(group_id, RuleType.WHITELIST)]
        detection = detect_type(raw, whitelist)
        return detection, self.create_rule(group_id, detection.type, detection.cleaned_value, comment, source)

    def update_rule(self, rule_id: str, value: str | None = None, comment: Any = UNSET) -> ServiceResult:
        """Change a rule's value and/or comment. The rule type never changes."""
        existing = self.store.get_rule(rule_id)
        if existing is None:
            return _not_found("Rule")

        updated = replace(existing)
        if value is not None:
            validation = validate(value, existing.type)
            if not validation.valid:
                return ServiceResult.failure(BAD_REQUEST, validation.message, validation)
            siblings = self.store.list_rules(existing.group_id, existing.type)
            duplicate = check_duplicate(validation.value, existing.type, siblings, exclude_id=rule_id)
            if not duplicate.valid:
                return ServiceResult.failure(CONFLICT, duplicate.message, duplicate)
            updated.value = validation.value

        if comment is not UNSET:
            updated.comment = comment

        if updated == existing:
            return ServiceResult.success(existing)

        try:
            stored = self.store.update_rule(updated)
        except DuplicateRuleError:
            return _duplicate(updated.value)

        logger.info("Updated rule %s", rule_id)
        return ServiceResult.success(stored)

    def delete_rule(self, rule_id: str) -> ServiceResult:
        deleted = self.store.delete_rule(rule_id)
        if deleted:
            logger.info("Deleted rule %s", rule_id)
        return ServiceResult.success({"deleted": deleted})

    def bulk_create_rules(
        self,
        group_id: str,
        rule_type: RuleType,
        values: Iterable[str],
        source: RuleSource = RuleSource.MANUAL,
    ) -> ServiceResult:
        """Create many rules of one type, skipping blanks and collecting failures."""
        if self.store.get_group(group_id) is None:
            return _not_found("Group")

        report = BulkCreateReport()
        for value in values:
            if not canonicalize(value):
                continue
            result = self.create_rule(group_id, rule_type, value, source=source)
            if result.ok:
                report.created.append(result.data)
            else:
                report.failed.append((value, result.error.validation))

        logger.debug("Bulk created %d rules in group %s (%d failed)", report.count, group_id, len(report.failed))
        return ServiceResult.success(report)

    def bulk_delete_rules(self, rule_ids: Iterable[str]) -> ServiceResult:
        """Delete many rules; returns the deleted count and the rules (for undo)."""
        rules = [rule for rule in map(self.store.get_rule, rule_ids) if rule is not None]
        deleted = sum(1 for rule in rules if self.store.delete_rule(rule.id))
        logger.debug("Bulk deleted %d rules", deleted)
        return ServiceResult.success({"deleted": deleted, "rules": rules})

    # -------------------------------------------------------------------------
    # Export and matching
    # -------------------------------------------------------------------------

    def export_group(self, group_id: str) -> ServiceResult:
        group = self.store.get_group(group_id)
        if group is None:
            return _not_found("Group")
        return ServiceResult.success(export_group(group, self.store.list_rules(group_id)))

    def export_all_groups(self) -> list[tuple[str, str]]:
        """Export every group as (group name, list file content)."""
        return [
            (group.name, export_group(group, self.store.list_rules(group.id)))
            for group in self.store.list_groups()
        ]

    def check_blocked(self, group_id: str, host: str) -> ServiceResult:
        """Check a host against the group's blocked-subdomain rules."""
        if self.store.get_group(group_id) is None:
            return _not_found("Group")
        patterns = [r.value for r in self.store.list_rules(group_id, RuleType.BLOCKED_SUBDOMAIN)]
        check: BlockCheck = is_blocked(host, patterns)
        return ServiceResult.success(check)
