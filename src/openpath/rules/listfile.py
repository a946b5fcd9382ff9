"""Distribution list file codec - the plain-text format read by enforcement agents.

    #DESACTIVADO            (only when the group is disabled)

    ## WHITELIST
    google.com

    ## BLOCKED-SUBDOMAINS
    ads.google.com

    ## BLOCKED-PATHS
    */ads/*

Section headers, their order and casing are a compatibility contract with
the agents. Each line is parsed on its own with a PEG grammar; parsing is
lenient and never aborts on a bad line.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from parsimonious.exceptions import ParseError
from parsimonious.grammar import Grammar
from parsimonious.nodes import NodeVisitor

from .types import Group, Rule, RuleType
from .validation import validate

logger = logging.getLogger(__name__)

DISABLED_MARKER = "#DESACTIVADO"

# Section name -> rule type, in output order
SECTIONS = {
    "WHITELIST": RuleType.WHITELIST,
    "BLOCKED-SUBDOMAINS": RuleType.BLOCKED_SUBDOMAIN,
    "BLOCKED-PATHS": RuleType.BLOCKED_PATH,
}

# =============================================================================
# PEG Grammar (one trimmed, non-blank line at a time)
# =============================================================================

GRAMMAR = Grammar(r"""
line            = disabled_marker / section_header / comment / entry
disabled_marker = "#DESACTIVADO" eol
section_header  = "## " section_name eol
section_name    = "WHITELIST" / "BLOCKED-SUBDOMAINS" / "BLOCKED-PATHS"
comment         = "#" ~"[^\n]*"
entry           = ~"[^\n]+"
eol             = !~"[^\n]"
""")


class ListLineVisitor(NodeVisitor):
    """Turns a parsed line into a (kind, payload) tuple."""

    def visit_line(self, node, visited_children):
        return visited_children[0]

    def visit_disabled_marker(self, node, visited_children):
        return ("disabled", None)

    def visit_section_header(self, node, visited_children):
        _, name, _ = visited_children
        return ("section", SECTIONS[name])

    def visit_section_name(self, node, visited_children):
        return node.text

    def visit_comment(self, node, visited_children):
        return ("comment", None)

    def visit_entry(self, node, visited_children):
        return ("entry", node.text.lower())

    def generic_visit(self, node, visited_children):
        return visited_children or node


_VISITOR = ListLineVisitor()


# =============================================================================
# Data
# =============================================================================


@dataclass
class ListData:
    """Contents of a list file."""

    enabled: bool = True
    whitelist: list[str] = field(default_factory=list)
    blocked_subdomains: list[str] = field(default_factory=list)
    blocked_paths: list[str] = field(default_factory=list)

    def entries(self, rule_type: RuleType) -> list[str]:
        if rule_type == RuleType.WHITELIST:
            return self.whitelist
        elif rule_type == RuleType.BLOCKED_SUBDOMAIN:
            return self.blocked_subdomains
        elif rule_type == RuleType.BLOCKED_PATH:
            return self.blocked_paths
        raise ValueError(f"Unhandled rule type: {rule_type!r}")

    @classmethod
    def from_rules(cls, rules: Iterable[Rule], enabled: bool = True) -> "ListData":
        data = cls(enabled=enabled)
        for rule in rules:
            data.entries(rule.type).append(rule.value)
        return data

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "whitelist": list(self.whitelist),
            "blockedSubdomains": list(self.blocked_subdomains),
            "blockedPaths": list(self.blocked_paths),
        }


# =============================================================================
# Parsing
# =============================================================================


def _scan(content: str) -> Iterator[tuple[int, str, str, RuleType | str | None]]:
    """Yield (line_num, trimmed_line, kind, payload) for each non-blank line.

    The disabled marker only counts on the first non-blank line; anywhere
    else it is reported as a comment.
    """
    first = True
    for line_num, line in enumerate(content.splitlines(), start=1):
        stripped = line.strip()
        if not stripped:
            continue
        try:
            kind, payload = _VISITOR.visit(GRAMMAR.parse(stripped))
        except ParseError:
            logger.debug("Skipping unparseable list line %d: %r", line_num, stripped)
            first = False
            continue
        if kind == "disabled" and not first:
            kind = "comment"
        first = False
        yield line_num, stripped, kind, payload


def parse(content: str) -> ListData:
    """Parse list file content.

    Entries are trimmed and lowercased; entries before the first section
    header are discarded.
    """
    data = ListData()
    section: RuleType | None = None

    for line_num, _, kind, payload in _scan(content):
        if kind == "disabled":
            data.enabled = False
        elif kind == "section":
            section = payload
        elif kind == "entry":
            if section is None:
                logger.debug("Discarding entry outside any section on line %d", line_num)
                continue
            data.entries(section).append(payload)

    return data


def validate_list(content: str) -> list[tuple[int, str, str]]:
    """Validate every entry of a list file against the rules of its section.

    Returns:
        List of (line_num, line_text, error_message) tuples for invalid lines.
        Empty list if every entry is valid.
    """
    errors = []
    section: RuleType | None = None

    for line_num, line, kind, payload in _scan(content):
        if kind == "section":
            section = payload
        elif kind == "entry":
            if section is None:
                errors.append((line_num, line, "Entry outside of any section"))
                continue
            result = validate(payload, section)
            if not result.valid:
                errors.append((line_num, line, f"{result.code.value}: {result.message}"))

    return errors


# =============================================================================
# Serialization
# =============================================================================


def serialize(data: ListData) -> str:
    """Serialize list data in the fixed section order, entries sorted.

    Empty sections are omitted. Output ends with exactly one newline.
    """
    parts = []
    if not data.enabled:
        parts.append(f"{DISABLED_MARKER}\n\n")

    for name, rule_type in SECTIONS.items():
        entries = data.entries(rule_type)
        if not entries:
            continue
        parts.append(f"## {name}\n")
        parts.extend(f"{entry}\n" for entry in sorted(entries))
        parts.append("\n")

    return "".join(parts).rstrip() + "\n"


def export_group(group: Group, rules: Iterable[Rule]) -> str:
    """Render a group's rules as a list file.

    Stored values are emitted as-is, so legacy entries that would no longer
    validate still export.
    """
    return serialize(ListData.from_rules(rules, enabled=group.enabled))
