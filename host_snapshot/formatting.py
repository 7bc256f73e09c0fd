"""Console-friendly formatting utilities."""

from __future__ import annotations

from typing import List, Sequence

from .diff import DiffResult
from .schema import ADVANCED, FIELDS_BY_NAME, UPTIME_MINUTES, FieldSet, ListField
from .system_state import Snapshot


def field_label(name: str) -> str:
    descriptor = FIELDS_BY_NAME.get(name)
    return descriptor.label if descriptor else name


def format_snapshot(snapshot: Snapshot, field_set: FieldSet = ADVANCED) -> str:
    lines = [f"Timestamp: {snapshot.timestamp:%Y-%m-%d %H:%M:%S}"]
    for descriptor in field_set.in_display_order():
        if isinstance(descriptor, ListField):
            items = descriptor.render(snapshot)
            lines.append("")
            lines.append(f"--- {descriptor.label} ---")
            lines.extend(f"- {item}" for item in items)
            if not items:
                lines.append("- (none)")
            lines.append("")
        elif descriptor is UPTIME_MINUTES:
            lines.append(f"{descriptor.label}: {descriptor.render(snapshot)} minutes")
        else:
            lines.append(f"{descriptor.label}: {descriptor.render(snapshot)}")
    return "\n".join(lines)


def format_similarity(result: DiffResult) -> str:
    return f"System Similarity: {result.similarity_percent:.2f}%"


def format_changes(result: DiffResult) -> str:
    lines: List[str] = []
    if result.changes:
        rows = [
            [field_label(change.field_name), change.current_value, change.previous_value]
            for change in result.changes
        ]
        lines.append(render_table(["Field", "Current", "Previous"], rows))
    else:
        lines.append("No changes since the last saved snapshot.")
    if result.skipped_fields:
        skipped = ", ".join(field_label(name) for name in result.skipped_fields)
        lines.append(f"Not compared (older log format): {skipped}")
    lines.append("")
    lines.append(format_similarity(result))
    return "\n".join(lines)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[str]]) -> str:
    widths = [len(h) for h in headers]
    for row in rows:
        for index, cell in enumerate(row):
            widths[index] = max(widths[index], len(cell))
    lines = []
    lines.append(_format_row(headers, widths))
    lines.append(_format_row(["-" * w for w in widths], widths))
    for row in rows:
        lines.append(_format_row(row, widths))
    return "\n".join(lines)


def _format_row(row: Sequence[str], widths: Sequence[int]) -> str:
    padded = [cell.ljust(width) for cell, width in zip(row, widths)]
    return " | ".join(padded).rstrip()
