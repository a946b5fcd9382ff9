"""Canonicalization of rule values and root-domain extraction.

Root-domain extraction is aware of common country-code second-level domains
(ccSLDs), which need three labels to reach the registrable domain:

    >>> root_domain("mail.google.com")
    'google.com'
    >>> root_domain("www.bbc.co.uk")
    'bbc.co.uk'
    >>> root_domain("facebook.com/gaming")
    'facebook.com'
"""

import re
from collections.abc import Iterable
from typing import TypeVar

# =============================================================================
# ccSLD table
# =============================================================================

CC_SLDS = frozenset({
    # UK
    "co.uk", "org.uk", "me.uk", "ac.uk", "gov.uk", "ltd.uk", "plc.uk", "net.uk", "sch.uk",
    # Australia
    "com.au", "net.au", "org.au", "edu.au", "gov.au", "asn.au", "id.au",
    # Brazil
    "com.br", "net.br", "org.br", "gov.br", "edu.br",
    # Argentina
    "com.ar", "net.ar", "org.ar", "gov.ar", "edu.ar", "gob.ar",
    # Mexico
    "com.mx", "net.mx", "org.mx", "gob.mx", "edu.mx",
    # Spain
    "com.es", "org.es", "gob.es", "edu.es",
    # Japan
    "co.jp", "or.jp", "ne.jp", "ac.jp", "go.jp", "gr.jp",
    # New Zealand
    "co.nz", "net.nz", "org.nz", "govt.nz", "ac.nz", "school.nz",
    # South Africa
    "co.za", "org.za", "gov.za", "net.za", "edu.za",
    # India
    "co.in", "net.in", "org.in", "gov.in", "ac.in", "edu.in",
    # China
    "com.cn", "net.cn", "org.cn", "gov.cn", "edu.cn",
    # Korea
    "co.kr", "or.kr", "ne.kr", "go.kr", "ac.kr",
    # Others
    "com.sg", "org.sg", "edu.sg", "gov.sg",
    "com.hk", "org.hk", "edu.hk", "gov.hk",
    "com.tw", "org.tw", "edu.tw", "gov.tw",
    "com.my", "org.my", "edu.my", "gov.my",
    "com.ph", "org.ph", "edu.ph", "gov.ph",
    "com.vn", "org.vn", "edu.vn", "gov.vn",
    "com.tr", "org.tr", "edu.tr", "gov.tr",
    "com.ua", "org.ua", "edu.ua", "gov.ua",
    "com.ru", "org.ru", "edu.ru", "gov.ru",
    "com.pl", "org.pl", "edu.pl", "gov.pl",
})

_PROTOCOL_RE = re.compile(r"^(?:https?|\*)://")
_ROOT_PREFIX_RE = re.compile(r"^(?:(?:https?|\*)://)?(?:www\.)?")
_WILDCARD_PREFIX_RE = re.compile(r"^\*\.?")


# =============================================================================
# Canonicalization
# =============================================================================


def canonicalize(raw: str, preserve_path: bool = False) -> str:
    """Normalize a raw domain, URL or path into its stored form.

    Trims, lowercases and strips a leading ``http://``, ``https://`` or
    ``*://``. Unless ``preserve_path`` is set, trailing slashes are removed.
    The steps repeat until nothing changes, so the result is idempotent.
    """
    value = raw.lower()
    previous = None
    while value != previous:
        previous = value
        value = _PROTOCOL_RE.sub("", value.strip())
        if not preserve_path:
            value = value.rstrip("/")
    return value


def root_domain(value: str, cc_slds: frozenset[str] = CC_SLDS) -> str:
    """Extract the registrable root domain from a URL, domain or path rule.

    Returns ``""`` for empty input and the stripped value unchanged when it
    has fewer than two labels (e.g. ``localhost`` or a ``*/path`` rule).
    """
    if not value:
        return ""

    domain = _ROOT_PREFIX_RE.sub("", value, count=1)
    for separator in ("/", "?", "#", ":"):
        domain = domain.split(separator, 1)[0]
    domain = _WILDCARD_PREFIX_RE.sub("", domain, count=1)

    parts = domain.split(".")
    if len(parts) < 2:
        return domain

    if len(parts) >= 3 and ".".join(parts[-2:]).lower() in cc_slds:
        return ".".join(parts[-3:])

    return ".".join(parts[-2:])


T = TypeVar("T")


def group_by_root_domain(rules: Iterable[T], cc_slds: frozenset[str] = CC_SLDS) -> dict[str, list[T]]:
    """Bucket objects with a ``value`` attribute by their root domain.

    Insertion order is preserved both across and within buckets.
    """
    groups: dict[str, list[T]] = {}
    for rule in rules:
        groups.setdefault(root_domain(rule.value, cc_slds), []).append(rule)
    return groups
