from datetime import datetime
import io

import pytest
from rich.console import Console

from host_snapshot.console import ConsolePresenter, wait_for_keypress
from host_snapshot.diff import compare
from host_snapshot.formatting import format_changes, format_snapshot
from host_snapshot.schema import SIMPLE
from host_snapshot.system_state import DriveInfo, NetworkStatus, Snapshot


def make_snapshot(**overrides) -> Snapshot:
    values = dict(
        timestamp=datetime(2024, 5, 1, 9, 30, 15),
        machine_name="WORKSTATION-01",
        os_version="Windows 11 (Build 22631)",
        user_domain="CORP",
        user_name="alice",
        system_directory=r"C:\Windows\system32",
        processor_count=8,
        uptime_minutes=125.5,
        storage=(DriveInfo("C:", 500, 100),),
        gpus=("NVIDIA GeForce RTX 3070",),
        network_status=NetworkStatus.CONNECTED,
        runtime_version="3.12.4",
    )
    values.update(overrides)
    return Snapshot(**values)


@pytest.fixture
def output():
    return io.StringIO()


@pytest.fixture
def presenter(output):
    return ConsolePresenter(console=Console(file=output, width=120, color_system=None))


def answer(monkeypatch, reply):
    def fake_input(*args):
        if isinstance(reply, BaseException):
            raise reply
        return reply

    monkeypatch.setattr("builtins.input", fake_input)


@pytest.mark.parametrize("reply", ["y", "Y", " y "])
def test_confirm_save_accepts_y(presenter, monkeypatch, reply):
    answer(monkeypatch, reply)
    assert presenter.confirm_save() is True


@pytest.mark.parametrize("reply", ["", "n", "yes", "maybe", EOFError()])
def test_confirm_save_treats_anything_else_as_no(presenter, monkeypatch, reply):
    answer(monkeypatch, reply)
    assert presenter.confirm_save() is False


@pytest.mark.parametrize("reply, mode", [("1", "simple"), ("2", "advanced"), ("", "advanced"), ("x", "advanced")])
def test_choose_mode(presenter, monkeypatch, reply, mode):
    answer(monkeypatch, reply)
    assert presenter.choose_mode() == mode


def test_format_snapshot_in_model_order():
    text = format_snapshot(make_snapshot())
    lines = text.splitlines()
    assert lines[0] == "Timestamp: 2024-05-01 09:30:15"
    assert lines[1] == "Machine Name: WORKSTATION-01"
    assert "System Uptime: 125.50 minutes" in lines
    assert "- C: 500/100" in lines
    assert lines[-1] == "Network Status: Connected"
    assert text.index("System Directory") < text.index("Processor Count") < text.index("Storage Drives")
    assert "Python Version: 3.12.4" in lines


def test_simple_snapshot_omits_lists():
    text = format_snapshot(make_snapshot(), SIMPLE)
    assert "Storage Drives" not in text
    assert "System Directory" not in text
    assert "Python Version" not in text


def test_format_changes_lists_changes_and_similarity():
    previous = make_snapshot()
    current = make_snapshot(storage=(DriveInfo("C:", 500, 90), DriveInfo("D:", 250, 50)))
    text = format_changes(compare(previous, current))
    assert "Drive 2" in text
    assert "Not Present" in text
    assert "System Similarity: 81.82%" in text


def test_format_changes_without_changes():
    snapshot = make_snapshot()
    text = format_changes(compare(snapshot, snapshot))
    assert "No changes" in text
    assert text.endswith("System Similarity: 100.00%")


def test_show_snapshot_plain(presenter, output):
    presenter.show_snapshot(make_snapshot())
    assert "--- Current System Information ---" in output.getvalue()
    assert "OS Version: Windows 11 (Build 22631)" in output.getvalue()


def test_show_snapshot_and_diff_rich(output):
    presenter = ConsolePresenter(console=Console(file=output, width=120, color_system=None), ui=True)
    previous = make_snapshot(gpus=("[old] adapter",))
    current = make_snapshot()

    presenter.show_snapshot(current)
    presenter.show_diff(compare(previous, current))

    text = output.getvalue()
    assert "WORKSTATION-01" in text
    assert "NVIDIA GeForce RTX 3070" in text
    assert "[old] adapter" in text
    assert "System Similarity: 90.00%" in text


def test_report_error_keeps_brackets(presenter, output):
    presenter.report_error("cannot write [logs]/system_logs.json")
    assert "[logs]/system_logs.json" in output.getvalue()


def test_wait_for_keypress_stops_on_key():
    presses = iter([False, False, True])
    sleeps = []
    assert wait_for_keypress(60, 1.0, key_pressed=lambda: next(presses), sleep=sleeps.append) is True
    assert sleeps == [1.0, 1.0]


def test_wait_for_keypress_times_out():
    sleeps = []
    assert wait_for_keypress(60, 1.0, key_pressed=lambda: False, sleep=sleeps.append) is False
    assert len(sleeps) == 60
