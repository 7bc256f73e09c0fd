"""Compare two host snapshots field by field and score how similar they are."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, List, Tuple

from .schema import ADVANCED, FieldSet, ListField, ScalarField, fields_for_version
from .system_state import NOT_PRESENT, Snapshot


@dataclass(frozen=True)
class Change:
    field_name: str
    previous_value: str
    current_value: str


@dataclass
class DiffResult:
    changes: List[Change] = field(default_factory=list)
    total_fields: int = 0
    unchanged_fields: int = 0
    skipped_fields: Tuple[str, ...] = ()

    @property
    def similarity_percent(self) -> float:
        if self.total_fields == 0:
            return 100.0
        return round(self.unchanged_fields / self.total_fields * 100, 2)

    @property
    def changed_field_names(self) -> List[str]:
        return [change.field_name for change in self.changes]


def compare(previous: Snapshot, current: Snapshot, field_set: FieldSet = ADVANCED) -> DiffResult:
    """Diff ``current`` against the ``previous`` baseline.

    Only fields carried by both snapshots' schema versions take part; the
    rest are listed in ``skipped_fields``. Every leaf comparison counts once:
    one per scalar field and one per list position up to the longer list.
    Changes come out in descriptor order, then list positions in index order.
    """
    common = common_fields(previous, current)
    result = DiffResult(skipped_fields=tuple(name for name in field_set.names if name not in common))

    for scalar in field_set.scalars:
        if scalar.name in common:
            _compare_scalar(scalar, previous, current, result)
    for list_field in field_set.lists:
        if list_field.name in common:
            _compare_list(list_field, previous, current, result)

    return result


def common_fields(previous: Snapshot, current: Snapshot) -> FrozenSet[str]:
    """Names of the fields both snapshots' schema versions carry."""
    return fields_for_version(previous.schema_version) & fields_for_version(current.schema_version)


def _compare_scalar(scalar: ScalarField, previous: Snapshot, current: Snapshot, result: DiffResult) -> None:
    _record(result, scalar.name, scalar.render(previous), scalar.render(current))


def _compare_list(list_field: ListField, previous: Snapshot, current: Snapshot, result: DiffResult) -> None:
    before = list_field.render(previous)
    after = list_field.render(current)
    for index in range(max(len(before), len(after))):
        _record(
            result,
            f"{list_field.item_label} {index + 1}",
            before[index] if index < len(before) else NOT_PRESENT,
            after[index] if index < len(after) else NOT_PRESENT,
        )


def _record(result: DiffResult, name: str, previous_value: str, current_value: str) -> None:
    result.total_fields += 1
    if previous_value == current_value:
        result.unchanged_fields += 1
    else:
        result.changes.append(Change(name, previous_value, current_value))
