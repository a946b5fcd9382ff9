#!/usr/bin/env python3
"""Command-line utility for classifying, validating and exporting access rules.

Usage:
    openpath-rules classify <value> [--whitelist DOMAIN ...]
    openpath-rules validate <value> [--type TYPE]
    openpath-rules check <host> (--list FILE | --group GROUP.yml)
    openpath-rules export <GROUP.yml> [--format list|csv|json|txt]
    openpath-rules groups <GROUP.yml> [--type TYPE] [--search TEXT] [--limit N] [--offset N]
    openpath-rules normalize <FILE>
    openpath-rules lint <FILE> [--strict]

Group files are YAML documents:

    group: {id: g1, name: class-a, displayName: Class A, enabled: true}
    rules:
      - {type: whitelist, value: google.com}
      - {type: blocked_subdomain, value: ads.google.com}

Exit codes:
    0 - Success (valid value, host not blocked, clean list file)
    1 - Invalid value, host blocked, or list file with errors
    2 - File not found or invalid YAML
"""

import argparse
import json
import sys
from pathlib import Path

import yaml

from .. import config
from ..logging import close_logging, init_logging, log_decision
from .detection import detect_type
from .export import EXPORT_FORMATS, export_rules
from .listfile import parse, serialize, validate_list
from .matcher import is_blocked
from .service import RuleService
from .store import MemoryRuleStore, StorageError
from .types import Group, Rule, RuleType
from .validation import validate

RULE_TYPE_CHOICES = [t.value for t in RuleType]


class CLIError(Exception):
    """Input file problem; reported on stderr with exit code 2."""


def load_group_file(path: Path) -> tuple[Group, list[Rule]]:
    """Load a group and its rules from a YAML group file."""
    if not path.exists():
        raise CLIError(f"File not found: {path}")
    try:
        with open(path, encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise CLIError(f"Invalid YAML: {e}") from e

    if not isinstance(document, dict):
        raise CLIError("Group file is not a valid YAML mapping")

    group_data = document.get("group") or {"id": path.stem}
    if not isinstance(group_data, dict):
        raise CLIError("'group' must be a mapping")
    group = Group.from_dict(group_data)

    rules = []
    for i, item in enumerate(document.get("rules") or [], start=1):
        if not isinstance(item, dict) or "type" not in item or "value" not in item:
            raise CLIError(f"Rule {i} needs a 'type' and a 'value'")
        try:
            rules.append(Rule.from_dict({"id": f"r{i}", "groupId": group.id, **item}))
        except ValueError as e:
            raise CLIError(f"Rule {i}: {e}") from e
    return group, rules


def read_text_file(path: Path) -> str:
    if not path.exists():
        raise CLIError(f"File not found: {path}")
    return path.read_text(encoding="utf-8")


def build_service(group: Group, rules: list[Rule]) -> RuleService:
    return RuleService(MemoryRuleStore(groups=[group], rules=rules))


def print_json(data) -> None:
    print(json.dumps(data, indent=2))


# =============================================================================
# Subcommands
# =============================================================================


def cmd_classify(args) -> int:
    detection = detect_type(args.value, args.whitelist or [])
    print_json(detection.to_dict())
    return 0


def cmd_validate(args) -> int:
    if args.type:
        rule_type = RuleType(args.type)
    else:
        rule_type = detect_type(args.value).type
    result = validate(args.value, rule_type)
    print_json({"type": rule_type.value, **result.to_dict()})
    return 0 if result.valid else 1


def cmd_check(args) -> int:
    if args.list:
        patterns = parse(read_text_file(args.list)).blocked_subdomains
    else:
        _, rules = load_group_file(args.group)
        patterns = [r.value for r in rules if r.type == RuleType.BLOCKED_SUBDOMAIN]

    check = is_blocked(args.host, patterns)
    log_decision(host=args.host, blocked=check.blocked, matched_rule=check.matched_rule)
    print_json(check.to_dict())
    return 1 if check.blocked else 0


def cmd_export(args) -> int:
    group, rules = load_group_file(args.group_file)
    if args.format == "list":
        result = build_service(group, rules).export_group(group.id)
        sys.stdout.write(result.data)
    else:
        print(export_rules(rules, args.format))
    return 0


def cmd_groups(args) -> int:
    group, rules = load_group_file(args.group_file)
    rule_type = RuleType(args.type) if args.type else None
    result = build_service(group, rules).list_rules_grouped(
        group.id, rule_type, args.search, limit=args.limit, offset=args.offset
    )
    print_json(result.data.to_dict())
    return 0


def cmd_normalize(args) -> int:
    sys.stdout.write(serialize(parse(read_text_file(args.file))))
    return 0


def cmd_lint(args) -> int:
    content = read_text_file(args.file)
    errors = validate_list(content)

    for count, (line_num, line, error) in enumerate(errors, start=1):
        print(f"  line {line_num}: {line}")
        print(f"    ^ {error}")
        if args.strict:
            print(f"\nValidation failed (strict mode): {count} error(s)")
            return 1

    if not args.quiet:
        data = parse(content)
        total = len(data.whitelist) + len(data.blocked_subdomains) + len(data.blocked_paths)
        if errors:
            print(f"\nValidation failed: {len(errors)} error(s), {total - len(errors)} valid entry(ies)")
        else:
            print(f"\nValidation passed: {total} entry(ies)")

    return 1 if errors else 0


# =============================================================================
# Entry point
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="openpath-rules",
        description="Classify, validate, match and export OpenPath access rules.",
        epilog="Exit codes: 0=ok, 1=invalid/blocked, 2=file error",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging on stderr")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("classify", help="Guess the rule type of a value")
    p.add_argument("value")
    p.add_argument(
        "-w", "--whitelist", action="append", metavar="DOMAIN",
        help="Domain already whitelisted in the group (repeatable)",
    )
    p.set_defaults(func=cmd_classify)

    p = sub.add_parser("validate", help="Validate a value for a rule type")
    p.add_argument("value")
    p.add_argument("-t", "--type", choices=RULE_TYPE_CHOICES, help="Rule type (detected if omitted)")
    p.set_defaults(func=cmd_validate)

    p = sub.add_parser("check", help="Check whether a host is blocked")
    p.add_argument("host")
    source = p.add_mutually_exclusive_group(required=True)
    source.add_argument("--list", type=Path, metavar="FILE", help="Distribution list file")
    source.add_argument("--group", type=Path, metavar="GROUP.yml", help="YAML group file")
    p.set_defaults(func=cmd_check)

    p = sub.add_parser("export", help="Export a YAML group file")
    p.add_argument("group_file", type=Path)
    p.add_argument("-f", "--format", choices=("list",) + EXPORT_FORMATS, default="list")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("groups", help="Show rules grouped by root domain, one page at a time")
    p.add_argument("group_file", type=Path)
    p.add_argument("-t", "--type", choices=RULE_TYPE_CHOICES)
    p.add_argument("-s", "--search")
    p.add_argument("--limit", type=int, default=config.GROUP_PAGE_SIZE)
    p.add_argument("--offset", type=int, default=0)
    p.set_defaults(func=cmd_groups)

    p = sub.add_parser("normalize", help="Rewrite a list file in canonical form")
    p.add_argument("file", type=Path)
    p.set_defaults(func=cmd_normalize)

    p = sub.add_parser("lint", help="Validate every entry of a list file")
    p.add_argument("file", type=Path)
    p.add_argument("--strict", action="store_true", help="Stop at the first error")
    p.add_argument("-q", "--quiet", action="store_true", help="Only output errors, no summary")
    p.set_defaults(func=cmd_lint)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.command == "groups" and (args.limit < 0 or args.offset < 0):
        parser.error("--limit and --offset must be >= 0")

    init_logging(verbose=args.verbose or config.VERBOSE)
    try:
        return args.func(args)
    except (CLIError, StorageError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    finally:
        close_logging()


if __name__ == "__main__":
    sys.exit(main())
