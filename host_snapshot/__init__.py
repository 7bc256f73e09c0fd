"""
Snapshot a host's identity, OS, storage, GPU and network facts and report what changed since the last run.
"""

__all__ = ["cli", "console", "diff", "errors", "formatting", "log_store", "probe", "schema", "system_state"]
__version__ = "0.1.0"
