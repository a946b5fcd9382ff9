"""Rule type detection - guesses the rule type for free-text input."""

from collections.abc import Iterable
from dataclasses import dataclass

from .domain import CC_SLDS, canonicalize, root_domain
from .types import Confidence, RuleType


@dataclass
class Detection:
    """Result of guessing a rule type.

    Attributes:
        type: Most likely rule type
        cleaned_value: Canonical value to store (path kept for path rules)
        confidence: How strongly the available context supports the guess
        reason: Human-readable explanation
    """

    type: RuleType
    cleaned_value: str
    confidence: Confidence
    reason: str

    def to_dict(self) -> dict:
        return {
            "type": self.type.value,
            "cleanedValue": self.cleaned_value,
            "confidence": self.confidence.value,
            "reason": self.reason,
        }


def detect_type(
    raw: str,
    existing_whitelist: Iterable[str] = (),
    cc_slds: frozenset[str] = CC_SLDS,
) -> Detection:
    """Detect the rule type of a raw value given the group's whitelisted domains.

    Decision order, first match wins:
    1. Anything with a path is a blocked path.
    2. A subdomain of an already whitelisted root is a blocked subdomain.
    3. A ``*.`` wildcard without a whitelisted root is a blocked subdomain,
       with medium confidence.
    4. Everything else is a whitelist domain.
    """
    with_path = canonicalize(raw, preserve_path=True)
    if "/" in with_path:
        return Detection(
            type=RuleType.BLOCKED_PATH,
            cleaned_value=with_path,
            confidence=Confidence.HIGH,
            reason="Contains a path (/)",
        )

    domain = canonicalize(raw)
    root = root_domain(domain, cc_slds).lower()
    whitelisted_roots = {
        root_domain(canonicalize(entry), cc_slds).lower() for entry in existing_whitelist
    }

    # Re-entering the whitelisted root itself is not a subdomain block
    if root and root in whitelisted_roots and domain != root:
        if domain.startswith("*."):
            reason = f'Wildcard pattern blocking subdomains of "{root}"'
        else:
            reason = f'"{root}" is already allowed, this subdomain will be blocked'
        return Detection(
            type=RuleType.BLOCKED_SUBDOMAIN,
            cleaned_value=domain,
            confidence=Confidence.HIGH,
            reason=reason,
        )

    if domain.startswith("*."):
        return Detection(
            type=RuleType.BLOCKED_SUBDOMAIN,
            cleaned_value=domain,
            confidence=Confidence.MEDIUM,
            reason="Wildcard pattern detected",
        )

    return Detection(
        type=RuleType.WHITELIST,
        cleaned_value=domain,
        confidence=Confidence.HIGH,
        reason="Domain to add to the whitelist",
    )
