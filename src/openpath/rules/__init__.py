"""Rule engine: canonicalization, classification, validation, matching, grouping and export."""

from .detection import Detection, detect_type
from .domain import CC_SLDS, canonicalize, group_by_root_domain, root_domain
from .grouping import GroupedPage, RulePage, group_status, paginate, paginate_grouped
from .listfile import ListData, export_group, parse, serialize, validate_list
from .matcher import BlockCheck, is_blocked, match_pattern
from .service import RuleService, ServiceError, ServiceResult
from .store import DuplicateRuleError, MemoryRuleStore, RuleStore, StorageError
from .types import (
    Confidence,
    DomainGroup,
    ErrorCode,
    Group,
    GroupStatus,
    Rule,
    RuleSource,
    RuleType,
)
from .validation import ValidationResult, check_duplicate, validate

__all__ = [
    # Types
    "Rule",
    "Group",
    "DomainGroup",
    "RuleType",
    "RuleSource",
    "Confidence",
    "GroupStatus",
    "ErrorCode",
    # Canonicalizer
    "CC_SLDS",
    "canonicalize",
    "root_domain",
    "group_by_root_domain",
    # Classifier
    "Detection",
    "detect_type",
    # Validator
    "ValidationResult",
    "validate",
    "check_duplicate",
    # Matcher
    "BlockCheck",
    "is_blocked",
    "match_pattern",
    # Grouping
    "GroupedPage",
    "RulePage",
    "group_status",
    "paginate",
    "paginate_grouped",
    # List file
    "ListData",
    "parse",
    "serialize",
    "export_group",
    "validate_list",
    # Storage and service
    "RuleStore",
    "MemoryRuleStore",
    "StorageError",
    "DuplicateRuleError",
    "RuleService",
    "ServiceResult",
    "ServiceError",
]
