"""Rule value validation for domains, subdomains and paths.

Validation never raises: every outcome is a ValidationResult carrying a
structured ErrorCode that callers can render as an inline field error.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass

from .domain import canonicalize
from .types import ErrorCode, Rule, RuleType

MAX_DOMAIN_LENGTH = 253
MIN_DOMAIN_LENGTH = 4

# 1-63 ASCII chars, alphanumerics with hyphens allowed only inside the label.
# Values are lowercased before checking; both patterns are used with fullmatch.
LABEL_RE = re.compile(r"[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?")
TLD_RE = re.compile(r"[a-z]{2,63}")
WHITESPACE_RE = re.compile(r"\s")

WILDCARD_LABEL = "*"


@dataclass
class ValidationResult:
    """Outcome of validating a rule value.

    Attributes:
        valid: Whether the value passed every check
        code: Failure code (None when valid)
        message: Human-readable explanation ("" when valid)
        details: Extra context, e.g. the nested domain failure of a path rule
        value: Canonical value that was checked
    """

    valid: bool
    code: ErrorCode | None = None
    message: str = ""
    details: dict | None = None
    value: str = ""

    @classmethod
    def ok(cls, value: str) -> "ValidationResult":
        return cls(valid=True, value=value)

    @classmethod
    def fail(cls, code: ErrorCode, message: str, value: str = "", details: dict | None = None) -> "ValidationResult":
        return cls(valid=False, code=code, message=message, details=details, value=value)

    def to_dict(self) -> dict:
        result = {"valid": self.valid}
        if self.code is not None:
            result["code"] = self.code.value
            result["message"] = self.message
        if self.details:
            result["details"] = {
                key: value.value if isinstance(value, ErrorCode) else value
                for key, value in self.details.items()
            }
        return result


# =============================================================================
# Individual validators
# =============================================================================


def _validate_domain(domain: str, allow_wildcard: bool) -> ValidationResult:
    """Check a domain (or ``*.domain`` when allow_wildcard) for well-formedness."""
    if len(domain) > MAX_DOMAIN_LENGTH:
        return ValidationResult.fail(
            ErrorCode.DOMAIN_TOO_LONG,
            f"Domain exceeds maximum length of {MAX_DOMAIN_LENGTH} characters",
            domain,
        )

    labels = domain.split(".")
    if len(labels) < 2 or len(domain) < MIN_DOMAIN_LENGTH:
        return ValidationResult.fail(
            ErrorCode.DOMAIN_TOO_SHORT,
            f"Domain too short (minimum {MIN_DOMAIN_LENGTH} characters and two labels)",
            domain,
        )

    if ".." in domain:
        return ValidationResult.fail(
            ErrorCode.DOMAIN_CONSECUTIVE_DOTS,
            "Domain cannot contain consecutive dots (..)",
            domain,
        )

    if allow_wildcard and labels[0] == WILDCARD_LABEL:
        labels = labels[1:]
        example = "Example: sub.example.com or *.example.com"
    else:
        example = "Example: example.com"

    # A wildcard that is not the single leading label still needs two real labels after it
    if len(labels) < 2:
        return ValidationResult.fail(
            ErrorCode.DOMAIN_INVALID_FORMAT,
            f"Invalid domain format. {example}",
            domain,
        )

    for label in labels:
        if not LABEL_RE.fullmatch(label):
            return ValidationResult.fail(
                ErrorCode.DOMAIN_INVALID_FORMAT,
                f"Invalid domain format. {example}",
                domain,
            )

    if not TLD_RE.fullmatch(labels[-1]):
        return ValidationResult.fail(
            ErrorCode.DOMAIN_INVALID_FORMAT,
            f"Invalid top-level domain '{labels[-1]}'. {example}",
            domain,
        )

    return ValidationResult.ok(domain)


def _validate_path(value: str) -> ValidationResult:
    """Check a ``domain/path`` rule. The domain part may be ``*`` (any domain)."""
    domain_part, slash, path_part = value.partition("/")
    if not slash:
        return ValidationResult.fail(
            ErrorCode.PATH_MISSING_SLASH,
            "Path must contain a slash (/). Example: example.com/path",
            value,
        )

    if domain_part != WILDCARD_LABEL:
        domain_result = _validate_domain(domain_part, allow_wildcard=True)
        if not domain_result.valid:
            return ValidationResult.fail(
                ErrorCode.PATH_INVALID_DOMAIN,
                f"Invalid domain in path: {domain_result.message}",
                value,
                details={
                    "domain_code": domain_result.code,
                    "domain_message": domain_result.message,
                },
            )

    if not path_part:
        return ValidationResult.fail(
            ErrorCode.PATH_EMPTY, "Path after domain cannot be empty", value
        )

    if WHITESPACE_RE.search(path_part):
        return ValidationResult.fail(
            ErrorCode.PATH_INVALID_CHARS,
            "Path contains invalid characters (whitespace)",
            value,
        )

    return ValidationResult.ok(value)


# =============================================================================
# Main validation dispatcher
# =============================================================================


def validate(raw: str, rule_type: RuleType) -> ValidationResult:
    """Validate a raw rule value for the given rule type.

    The value is canonicalized first (path preserved only for path rules),
    then checked against the rules of its type.
    """
    cleaned = canonicalize(raw, preserve_path=rule_type == RuleType.BLOCKED_PATH)

    if not cleaned:
        return ValidationResult.fail(ErrorCode.EMPTY, "Value cannot be empty")

    if rule_type == RuleType.WHITELIST:
        return _validate_domain(cleaned, allow_wildcard=False)
    elif rule_type == RuleType.BLOCKED_SUBDOMAIN:
        return _validate_domain(cleaned, allow_wildcard=True)
    elif rule_type == RuleType.BLOCKED_PATH:
        return _validate_path(cleaned)
    raise ValueError(f"Unhandled rule type: {rule_type!r}")


def check_duplicate(
    value: str,
    rule_type: RuleType,
    existing: Iterable[Rule],
    exclude_id: str | None = None,
) -> ValidationResult:
    """Advisory duplicate pre-check against rules already loaded for a group.

    This is not atomic with insertion; the store's unique constraint on
    (group, type, value) remains the authority.
    """
    cleaned = canonicalize(value, preserve_path=rule_type == RuleType.BLOCKED_PATH)
    for rule in existing:
        if rule.type == rule_type and rule.value == cleaned and rule.id != exclude_id:
            return ValidationResult.fail(
                ErrorCode.DUPLICATE_RULE,
                "Rule already exists",
                cleaned,
                details={"existing_id": rule.id},
            )
    return ValidationResult.ok(cleaned)
