"""Entry point for the host-snapshot command line tool."""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .console import ConsolePresenter
from .diff import DiffResult, compare
from .errors import LogWriteError
from .log_store import HistoryLogStore, LatestLogStore, LogStore, snapshot_to_record, store_for_mode
from .probe import HostProbe
from .schema import FIELD_SETS, FieldSet
from .system_state import Snapshot, build_snapshot

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_SAVE_FAILED = 1


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Capture a snapshot of this machine and compare it with the last saved one.",
    )
    parser.add_argument(
        "--mode",
        choices=sorted(FIELD_SETS),
        help="simple: identity fields, latest snapshot only; advanced: all fields, full history",
    )
    parser.add_argument("--log-dir", type=Path, default=Path("."), help="directory holding the log file")
    parser.add_argument("--log-file", type=Path, help="explicit log file path (overrides --log-dir)")
    parser.add_argument("--ui", action="store_true", help="render with Rich tables and panels")
    parser.add_argument("--json", action="store_true", help="print the snapshot and diff as JSON without prompting")
    parser.add_argument("--no-delay", action="store_true", help="skip the loading bar and the exit pause")
    parser.add_argument("-v", "--verbose", action="store_true", help="enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    presenter = ConsolePresenter(ui=args.ui)
    mode = args.mode or ("advanced" if args.json else presenter.choose_mode())
    store = _store(mode, args.log_dir, args.log_file)
    field_set = FIELD_SETS[mode]

    if args.json:
        snapshot = build_snapshot()
        history = store.load_history()
        result = compare(history[-1], snapshot, field_set) if history else None
        print(_to_json(snapshot, result))
        return EXIT_OK

    return run(presenter, store, field_set, delay=not args.no_delay)


def run(
    presenter: ConsolePresenter,
    store: LogStore,
    field_set: FieldSet,
    probe: Optional[HostProbe] = None,
    delay: bool = True,
) -> int:
    """Probe, display, diff against the last saved snapshot, then offer to save."""
    if delay:
        presenter.show_loading()

    snapshot = build_snapshot(probe)
    presenter.show_snapshot(snapshot, field_set)

    history = store.load_history()
    if history:
        presenter.show_diff(compare(history[-1], snapshot, field_set))
    else:
        logger.debug("No previous snapshot in %s", store.path)

    exit_code = EXIT_OK
    if presenter.confirm_save():
        try:
            store.append(history, snapshot)
        except LogWriteError as exc:
            presenter.report_error(str(exc))
            exit_code = EXIT_SAVE_FAILED
        else:
            presenter.report_saved(store.path)

    if delay:
        presenter.exit_pause()
    return exit_code


def _store(mode: str, log_dir: Path, log_file: Optional[Path]) -> LogStore:
    if log_file is None:
        return store_for_mode(mode, log_dir)
    return LatestLogStore(log_file) if mode == "simple" else HistoryLogStore(log_file)


def _to_json(snapshot: Snapshot, result: Optional[DiffResult]) -> str:
    payload: Dict[str, Any] = {"snapshot": snapshot_to_record(snapshot), "diff": None}
    if result is not None:
        changes: List[Dict[str, str]] = [asdict(change) for change in result.changes]
        payload["diff"] = {
            "changes": changes,
            "total_fields": result.total_fields,
            "unchanged_fields": result.unchanged_fields,
            "similarity_percent": result.similarity_percent,
            "skipped_fields": list(result.skipped_fields),
        }
    return json.dumps(payload, ensure_ascii=False, indent=2)


if __name__ == "__main__":
    raise SystemExit(main())
