"""Single-line messages on standard output for every outcome."""

import sys

from autobk.backup_executor import BackupHandle
from autobk.error_handling import AutoBkError, ValidationError
from autobk.schemas import DeviceRecord


def _emit(message: str) -> None:
    print(message, file=sys.stdout)


def device_added(name: str) -> None:
    _emit(f"{name} added successfully")


def device_modified(name: str) -> None:
    _emit(f"{name} modified successfully")


def device_deleted(name: str) -> None:
    _emit(f"{name} deleted successfully")


def device_row(record: DeviceRecord) -> None:
    _emit(f"Name: {record.name}, ID: {record.id}")


def backup_triggered(handle: BackupHandle) -> None:
    _emit(f"Backup triggered for {handle.device_name} (ID: {handle.device_id}), job {handle.job_id}")


def error(exc: AutoBkError) -> None:
    # validation messages are printed bare
    if isinstance(exc, ValidationError):
        _emit(exc.message)
    else:
        _emit(f"Error: {exc.message}")
