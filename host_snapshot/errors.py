"""Exceptions raised across host-snapshot components."""


class HostSnapshotError(Exception):
    """Base class for host-snapshot failures."""


class ProbeError(HostSnapshotError):
    """A host fact could not be read."""


class LogParseError(HostSnapshotError):
    """A log file exists but does not hold valid snapshot records."""


class LogWriteError(HostSnapshotError):
    """A log file could not be written."""
