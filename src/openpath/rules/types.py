"""Rule types and data structures."""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class RuleType(Enum):
    """Kind of access rule."""

    WHITELIST = "whitelist"
    BLOCKED_SUBDOMAIN = "blocked_subdomain"
    BLOCKED_PATH = "blocked_path"


class RuleSource(Enum):
    """Where a rule came from. Provenance only, never affects matching."""

    MANUAL = "manual"
    AUTO_EXTENSION = "auto_extension"


class Confidence(Enum):
    """Classifier certainty in a guessed rule type."""

    HIGH = "high"
    MEDIUM = "medium"


class GroupStatus(Enum):
    """Aggregate status of the rules sharing a root domain."""

    ALLOWED = "allowed"
    BLOCKED = "blocked"
    MIXED = "mixed"


class ErrorCode(Enum):
    """Structured validation failure codes."""

    EMPTY = "EMPTY"
    DOMAIN_TOO_SHORT = "DOMAIN_TOO_SHORT"
    DOMAIN_TOO_LONG = "DOMAIN_TOO_LONG"
    DOMAIN_CONSECUTIVE_DOTS = "DOMAIN_CONSECUTIVE_DOTS"
    DOMAIN_INVALID_FORMAT = "DOMAIN_INVALID_FORMAT"
    PATH_MISSING_SLASH = "PATH_MISSING_SLASH"
    PATH_EMPTY = "PATH_EMPTY"
    PATH_INVALID_DOMAIN = "PATH_INVALID_DOMAIN"
    PATH_INVALID_CHARS = "PATH_INVALID_CHARS"
    DUPLICATE_RULE = "DUPLICATE_RULE"


def _parse_timestamp(value) -> datetime:
    if value is None:
        return datetime.now(timezone.utc)
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


@dataclass
class Rule:
    """A persisted access rule belonging to a group."""

    id: str
    group_id: str
    type: RuleType
    value: str  # canonical form
    source: RuleSource = RuleSource.MANUAL
    comment: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def blocking(self) -> bool:
        return self.type != RuleType.WHITELIST

    @classmethod
    def from_dict(cls, data: dict) -> "Rule":
        """Create a Rule from a view dict (camelCase or snake_case keys)."""
        return cls(
            id=str(data["id"]),
            group_id=str(data.get("groupId", data.get("group_id", ""))),
            type=RuleType(data["type"]),
            value=str(data["value"]),
            source=RuleSource(data.get("source") or RuleSource.MANUAL.value),
            comment=data.get("comment"),
            created_at=_parse_timestamp(data.get("createdAt", data.get("created_at"))),
        )

    def to_dict(self) -> dict:
        """Convert to the view object exposed to callers."""
        return {
            "id": self.id,
            "groupId": self.group_id,
            "type": self.type.value,
            "value": self.value,
            "source": self.source.value,
            "comment": self.comment,
            "createdAt": self.created_at.isoformat(),
        }


@dataclass
class Group:
    """A policy group owning zero or more rules."""

    id: str
    name: str  # unique slug
    display_name: str
    enabled: bool = True

    @classmethod
    def from_dict(cls, data: dict) -> "Group":
        name = slugify_group_name(data.get("name") or data["id"])
        return cls(
            id=str(data.get("id", name)),
            name=name,
            display_name=data.get("displayName", data.get("display_name", name)),
            enabled=bool(data.get("enabled", True)),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "displayName": self.display_name,
            "enabled": self.enabled,
        }


@dataclass
class DomainGroup:
    """Read-time view of the rules sharing a root domain."""

    root: str  # "" for the global/path-only bucket
    rules: list[Rule]
    status: GroupStatus

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "rules": [rule.to_dict() for rule in self.rules],
            "status": self.status.value,
        }


def slugify_group_name(name: str) -> str:
    """Make a group name URL-safe: lowercase, anything outside [a-z0-9-_] becomes '-'."""
    return re.sub(r"[^a-z0-9\-_]", "-", name.strip().lower())


_TYPE_LABELS = {
    RuleType.WHITELIST: "Allowed domain",
    RuleType.BLOCKED_SUBDOMAIN: "Blocked subdomain",
    RuleType.BLOCKED_PATH: "Blocked path",
}

_TYPE_BADGES = {
    RuleType.WHITELIST: "Allowed",
    RuleType.BLOCKED_SUBDOMAIN: "Sub. blocked",
    RuleType.BLOCKED_PATH: "Path blocked",
}


def rule_type_label(rule_type: RuleType) -> str:
    """Human-readable label for a rule type."""
    return _TYPE_LABELS[rule_type]


def rule_type_badge(rule_type: RuleType) -> str:
    """Short badge label for a rule type."""
    return _TYPE_BADGES[rule_type]


def categorize_rule(rule_type: RuleType) -> str:
    """Categorize a rule as 'allowed' or 'blocked' for filtering."""
    return "allowed" if rule_type == RuleType.WHITELIST else "blocked"
