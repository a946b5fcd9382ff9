"""Block matching engine - decides whether a host is blocked by subdomain rules."""

from collections.abc import Iterable
from dataclasses import dataclass

from .domain import canonicalize


@dataclass
class BlockCheck:
    """Result of a block check."""

    blocked: bool
    matched_rule: str | None = None

    def to_dict(self) -> dict:
        return {"blocked": self.blocked, "matchedRule": self.matched_rule}


def match_pattern(pattern: str, host: str) -> bool:
    """Match a canonical host against a single block pattern.

    Hostnames are case-insensitive per DNS spec.
    - exact: ``example.com`` blocks ``example.com``
    - suffix: ``example.com`` blocks ``ads.example.com`` but not ``notexample.com``
    - wildcard: ``*.example.com`` blocks ``example.com`` and any subdomain of it
    """
    pattern = pattern.strip().lower()
    host = host.lower()
    if not pattern:
        return False

    if host == pattern:
        return True

    if host.endswith("." + pattern):
        return True

    if pattern.startswith("*."):
        base = pattern[2:]
        # Unlike a bare wildcard host rule, a blocked wildcard also covers its base domain
        return host == base or host.endswith("." + base)

    return False


def is_blocked(target: str, block_rules: Iterable[str]) -> BlockCheck:
    """Check a target host against blocked-subdomain patterns.

    The target is canonicalized first. The first matching pattern wins;
    rule order never changes the blocked/not-blocked outcome.
    """
    host = canonicalize(target)
    for pattern in block_rules:
        if match_pattern(pattern, host):
            return BlockCheck(blocked=True, matched_rule=pattern.strip().lower())
    return BlockCheck(blocked=False)
