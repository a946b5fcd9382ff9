"""Tabular exports of rules: CSV, JSON and plain text."""

import csv
import io
import json
import re
import unicodedata
from collections.abc import Iterable
from datetime import date
from typing import Literal

from .listfile import SECTIONS
from .types import Rule, rule_type_label

ExportFormat = Literal["csv", "json", "txt"]
EXPORT_FORMATS: tuple[str, ...] = ("csv", "json", "txt")


def rules_to_csv(rules: Iterable[Rule]) -> str:
    """Columns: value, type, type_label, created_at."""
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(["value", "type", "type_label", "created_at"])
    for rule in rules:
        writer.writerow([
            rule.value,
            rule.type.value,
            rule_type_label(rule.type),
            rule.created_at.isoformat() if rule.created_at else "",
        ])
    return buf.getvalue()


def rules_to_json(rules: Iterable[Rule]) -> str:
    """Pretty-printed JSON array."""
    data = [
        {
            "value": rule.value,
            "type": rule.type.value,
            "typeLabel": rule_type_label(rule.type),
            "createdAt": rule.created_at.isoformat() if rule.created_at else None,
        }
        for rule in rules
    ]
    return json.dumps(data, indent=2)


def rules_to_text(rules: Iterable[Rule], grouped: bool = False) -> str:
    """One value per line, optionally sectioned by rule type.

    Unlike the list file, entries keep their input order and a disabled
    marker is never written.
    """
    rules = list(rules)
    if not grouped:
        return "\n".join(rule.value for rule in rules)

    lines = []
    for name, rule_type in SECTIONS.items():
        values = [rule.value for rule in rules if rule.type == rule_type]
        if values:
            lines.append(f"## {name}")
            lines.extend(values)
            lines.append("")
    return "\n".join(lines).strip()


def _sanitize_basename(text: str) -> str:
    """ASCII-safe filename stem: accents dropped, runs of other characters become '-'."""
    text = text.strip()
    if not text:
        return ""
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch)).lower()
    text = re.sub(r"[^a-z0-9_-]+", "-", text)
    text = re.sub(r"-+", "-", text)
    return re.sub(r"^[-.]+|[-.]+$", "", text)


def build_export_filename(
    format: ExportFormat,
    filename: str | None = None,
    date_stamp: str | None = None,
) -> str:
    """Build a safe export filename with the right extension.

    Example:
        >>> build_export_filename("csv", "Reglas Clase 1ºA.CSV")
        'reglas-clase-1oa.csv'
        >>> build_export_filename("json", date_stamp="2025-01-31")
        'rules-2025-01-31.json'
    """
    stamp = date_stamp or date.today().isoformat()
    default = f"rules-{stamp}"

    raw = filename if filename is not None else default
    suffix = f".{format}"
    if raw.lower().endswith(suffix):
        raw = raw[: -len(suffix)]

    return f"{_sanitize_basename(raw) or default}{suffix}"


def export_rules(rules: Iterable[Rule], format: ExportFormat) -> str:
    """Render rules in the requested export format."""
    if format == "csv":
        return rules_to_csv(rules)
    elif format == "json":
        return rules_to_json(rules)
    elif format == "txt":
        return rules_to_text(rules, grouped=True)
    raise ValueError(f"Unknown export format: {format!r}")
