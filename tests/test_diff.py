from dataclasses import replace
from datetime import datetime

from host_snapshot.diff import Change, compare
from host_snapshot.schema import ADVANCED, PROCESSOR_COUNT, SIMPLE, STORAGE, FieldSet
from host_snapshot.system_state import DriveInfo, NetworkStatus, Snapshot


def make_snapshot(
    *,
    machine_name: str = "WORKSTATION-01",
    os_version: str = "Windows 11 (Build 22631)",
    processor_count: int = 8,
    uptime_minutes: float = 125.5,
    storage=None,
    gpus=("NVIDIA GeForce RTX 3070",),
    network_status: NetworkStatus = NetworkStatus.CONNECTED,
    system_directory: str = r"C:\Windows\system32",
    schema_version: int = 2,
) -> Snapshot:
    return Snapshot(
        timestamp=datetime(2024, 5, 1, 9, 30),
        machine_name=machine_name,
        os_version=os_version,
        user_domain="CORP",
        user_name="alice",
        system_directory=system_directory,
        processor_count=processor_count,
        uptime_minutes=uptime_minutes,
        storage=tuple(storage) if storage is not None else (DriveInfo("C:\\", 476.34, 120.5),),
        gpus=tuple(gpus),
        network_status=network_status,
        schema_version=schema_version,
    )


def test_snapshot_against_itself_is_identical():
    snapshot = make_snapshot()
    result = compare(snapshot, snapshot)
    assert result.changes == []
    assert result.similarity_percent == 100
    assert result.total_fields == result.unchanged_fields == 10


def test_changed_field_names_are_symmetric():
    a = make_snapshot(machine_name="A", uptime_minutes=10, gpus=["GPU X", "GPU Y"])
    b = make_snapshot(machine_name="B", uptime_minutes=20, gpus=["GPU X"])

    forward = compare(a, b)
    backward = compare(b, a)

    assert forward.changed_field_names == backward.changed_field_names == ["machine_name", "uptime_minutes", "GPU 2"]
    assert forward.changes[0] == Change("machine_name", "A", "B")
    assert backward.changes[0] == Change("machine_name", "B", "A")
    assert forward.similarity_percent == backward.similarity_percent


def test_storage_positions_count_the_longer_list():
    three = [DriveInfo("C:", 500, 100), DriveInfo("D:", 250, 50), DriveInfo("E:", 64, 10)]
    one = [DriveInfo("C:", 500, 100)]
    storage_only = FieldSet("storage", (), (STORAGE,))

    assert compare(make_snapshot(storage=three), make_snapshot(storage=one), storage_only).total_fields == 3
    assert compare(make_snapshot(storage=one), make_snapshot(storage=three), storage_only).total_fields == 3
    assert compare(make_snapshot(storage=[]), make_snapshot(storage=[]), storage_only).total_fields == 0


def test_added_drive_scenario():
    previous = make_snapshot(processor_count=8, storage=[DriveInfo("C:", 500, 100)])
    current = make_snapshot(processor_count=8, storage=[DriveInfo("C:", 500, 90), DriveInfo("D:", 250, 50)])
    field_set = FieldSet("scenario", (PROCESSOR_COUNT,), (STORAGE,))

    result = compare(previous, current, field_set)

    assert result.changes == [
        Change("Drive 1", "C: 500/100", "C: 500/90"),
        Change("Drive 2", "Not Present", "D: 250/50"),
    ]
    assert result.total_fields == 3
    assert result.unchanged_fields == 1
    assert result.similarity_percent == 33.33


def test_gpu_fallback_then_real_name_is_one_change():
    previous = make_snapshot(gpus=["Unknown GPU"])
    current = make_snapshot(gpus=["NVIDIA X"])

    result = compare(previous, current)

    assert result.changes == [Change("GPU 1", "Unknown GPU", "NVIDIA X")]
    assert result.total_fields == 10
    assert result.similarity_percent == 90.0


def test_uptime_compared_at_display_precision():
    previous = make_snapshot(uptime_minutes=12.341)
    current = make_snapshot(uptime_minutes=12.344)
    assert compare(previous, current).changes == []


def test_changes_follow_descriptor_order():
    previous = make_snapshot(
        machine_name="A",
        network_status=NetworkStatus.CONNECTED,
        storage=[DriveInfo("C:", 500, 100)],
        gpus=["GPU X"],
    )
    current = make_snapshot(
        machine_name="B",
        network_status=NetworkStatus.DISCONNECTED,
        storage=[DriveInfo("C:", 500, 99)],
        gpus=["GPU Y"],
        processor_count=16,
    )

    result = compare(previous, current)

    assert result.changed_field_names == ["machine_name", "processor_count", "network_status", "Drive 1", "GPU 1"]
    assert result.changes[2] == Change("network_status", "Connected", "Disconnected")


def test_older_schema_fields_are_skipped_not_counted():
    previous = make_snapshot(schema_version=1, system_directory="")
    current = make_snapshot()

    result = compare(previous, current)

    assert result.skipped_fields == ("system_directory",)
    assert "system_directory" not in result.changed_field_names
    assert result.total_fields == 9
    assert result.similarity_percent == 100


def test_simple_field_set_ignores_storage_and_gpus():
    previous = make_snapshot(storage=[], gpus=[])
    current = make_snapshot(storage=[DriveInfo("D:", 1, 1)], gpus=["GPU"])

    result = compare(previous, current, SIMPLE)

    assert result.changes == []
    assert result.total_fields == 7


def test_empty_field_set_is_fully_similar():
    snapshot = make_snapshot()
    result = compare(snapshot, make_snapshot(machine_name="other"), FieldSet("empty", ()))
    assert result.total_fields == 0
    assert result.similarity_percent == 100


def test_default_field_set_is_advanced():
    a = make_snapshot()
    b = make_snapshot(gpus=[])
    assert compare(a, b) == compare(a, b, ADVANCED)


def test_interpreter_upgrade_is_not_a_change():
    a = replace(make_snapshot(), runtime_version="3.11.9")
    b = replace(make_snapshot(), runtime_version="3.12.4")
    result = compare(a, b)
    assert result.changes == []
    assert result.similarity_percent == 100
