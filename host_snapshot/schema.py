"""Ordered field descriptors shared by the presenter, the log store and the diff engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, Sequence, Tuple, Union

from .system_state import DriveInfo, NetworkStatus, Snapshot


def format_value(value: Any) -> str:
    """Canonical string for a leaf value: two decimals for reals, exact text otherwise."""
    if isinstance(value, NetworkStatus):
        return value.value
    if isinstance(value, float):
        return f"{value:.2f}"
    return str(value)


def format_gb(value: float) -> str:
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"


def format_drive(drive: DriveInfo) -> str:
    return f"{drive.name} {format_gb(drive.total_gb)}/{format_gb(drive.free_gb)}"


@dataclass(frozen=True)
class ScalarField:
    name: str
    label: str
    accessor: Callable[[Snapshot], Any]
    formatter: Callable[[Any], str] = format_value

    def render(self, snapshot: Snapshot) -> str:
        return self.formatter(self.accessor(snapshot))


@dataclass(frozen=True)
class ListField:
    name: str
    label: str
    item_label: str
    accessor: Callable[[Snapshot], Sequence[Any]]
    formatter: Callable[[Any], str] = format_value

    def render(self, snapshot: Snapshot) -> Tuple[str, ...]:
        return tuple(self.formatter(item) for item in self.accessor(snapshot))


MACHINE_NAME = ScalarField("machine_name", "Machine Name", lambda s: s.machine_name)
OS_VERSION = ScalarField("os_version", "OS Version", lambda s: s.os_version)
PROCESSOR_COUNT = ScalarField("processor_count", "Processor Count", lambda s: s.processor_count)
USER_DOMAIN = ScalarField("user_domain", "User Domain Name", lambda s: s.user_domain)
USER_NAME = ScalarField("user_name", "User Name", lambda s: s.user_name)
UPTIME_MINUTES = ScalarField("uptime_minutes", "System Uptime", lambda s: s.uptime_minutes)
NETWORK_STATUS = ScalarField("network_status", "Network Status", lambda s: s.network_status)
SYSTEM_DIRECTORY = ScalarField("system_directory", "System Directory", lambda s: s.system_directory)
# Shown but never compared; it changes whenever the interpreter is upgraded.
RUNTIME_VERSION = ScalarField("runtime_version", "Python Version", lambda s: s.runtime_version)

STORAGE = ListField("storage", "Storage Drives", "Drive", lambda s: s.storage, format_drive)
GPUS = ListField("gpus", "GPUs", "GPU", lambda s: s.gpus)

SCALAR_FIELDS: Tuple[ScalarField, ...] = (
    MACHINE_NAME,
    OS_VERSION,
    PROCESSOR_COUNT,
    USER_DOMAIN,
    USER_NAME,
    UPTIME_MINUTES,
    NETWORK_STATUS,
    SYSTEM_DIRECTORY,
)
LIST_FIELDS: Tuple[ListField, ...] = (STORAGE, GPUS)

# Order in which a snapshot is shown and persisted.
DISPLAY_ORDER: Tuple[str, ...] = (
    "machine_name",
    "os_version",
    "user_domain",
    "user_name",
    "system_directory",
    "runtime_version",
    "processor_count",
    "uptime_minutes",
    "storage",
    "gpus",
    "network_status",
)

FIELDS_BY_NAME: Dict[str, Union[ScalarField, ListField]] = {
    **{f.name: f for f in SCALAR_FIELDS},
    **{f.name: f for f in LIST_FIELDS},
    RUNTIME_VERSION.name: RUNTIME_VERSION,
}

_ALL_NAMES = frozenset(f.name for f in SCALAR_FIELDS) | frozenset(f.name for f in LIST_FIELDS)

# Fields each persisted schema version carries. Version 1 predates system_directory.
VERSION_FIELDS: Dict[int, FrozenSet[str]] = {
    1: _ALL_NAMES - {"system_directory"},
    2: _ALL_NAMES,
}


def fields_for_version(version: int) -> FrozenSet[str]:
    try:
        return VERSION_FIELDS[version]
    except KeyError:
        raise ValueError(f"unsupported snapshot schema version: {version}") from None


@dataclass(frozen=True)
class FieldSet:
    """A named selection of fields to display and compare."""

    name: str
    scalars: Tuple[ScalarField, ...]
    lists: Tuple[ListField, ...] = ()
    display_only: Tuple[ScalarField, ...] = ()

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.scalars) + tuple(f.name for f in self.lists)

    def in_display_order(self) -> Tuple[Union[ScalarField, ListField], ...]:
        selected = set(self.names) | {f.name for f in self.display_only}
        return tuple(FIELDS_BY_NAME[name] for name in DISPLAY_ORDER if name in selected)


SIMPLE = FieldSet("simple", tuple(f for f in SCALAR_FIELDS if f is not SYSTEM_DIRECTORY))
ADVANCED = FieldSet("advanced", SCALAR_FIELDS, LIST_FIELDS, (RUNTIME_VERSION,))

FIELD_SETS: Dict[str, FieldSet] = {SIMPLE.name: SIMPLE, ADVANCED.name: ADVANCED}
