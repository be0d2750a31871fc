"""Tests for DeviceService with a mocked gateway and trigger."""

from unittest.mock import MagicMock

import pytest

from autobk.backup_executor import BackupHandle, BackupTrigger
from autobk.database import DeviceGateway
from autobk.error_handling import BackupTriggerError, DeviceNotFoundError
from autobk.schemas import BackupSelector, DeviceData, DeviceQuery, DeviceRecord
from autobk.services import DeviceService

DATA = DeviceData(name="DCM-1", device_type="DCM", ipv4="192.168.1.10", day=3, hour=12, weeks=2)


@pytest.fixture
def gateway() -> MagicMock:
    return MagicMock(spec=DeviceGateway)


@pytest.fixture
def trigger() -> MagicMock:
    return MagicMock(spec=BackupTrigger)


@pytest.fixture
def service(gateway, trigger) -> DeviceService:
    return DeviceService(gateway, trigger)


class TestWrites:

    def test_add(self, service, gateway) -> None:
        service.add_device(DATA)
        gateway.insert_device.assert_called_once_with(DATA)

    def test_modify(self, service, gateway) -> None:
        gateway.update_device.return_value = 1
        service.modify_device(DATA)
        gateway.update_device.assert_called_once_with(DATA)

    def test_modify_missing(self, service, gateway) -> None:
        gateway.update_device.return_value = 0
        with pytest.raises(DeviceNotFoundError, match="DCM-1"):
            service.modify_device(DATA)

    def test_delete_uses_name_only(self, service, gateway) -> None:
        gateway.delete_device.return_value = 1
        service.delete_device(DATA)
        gateway.delete_device.assert_called_once_with("DCM-1")

    def test_delete_missing(self, service, gateway) -> None:
        gateway.delete_device.return_value = 0
        with pytest.raises(DeviceNotFoundError):
            service.delete_device(DATA)


class TestGet:

    def test_get_devices(self, service, gateway) -> None:
        records = [DeviceRecord(id=1, name="DCM-1")]
        gateway.iter_devices_by_name.return_value = iter(records)
        assert list(service.get_devices(DeviceQuery(name="DCM-1"))) == records
        gateway.iter_devices_by_name.assert_called_once_with("DCM-1")


class TestBackup:

    def test_by_name(self, service, gateway, trigger) -> None:
        device = DeviceRecord(id=4, name="DCM-1")
        handle = BackupHandle(job_id="j1", device_id=4, device_name="DCM-1")
        gateway.find_device_by_name.return_value = device
        trigger.trigger_backup.return_value = handle

        assert service.backup_device(BackupSelector(name="DCM-1")) is handle
        trigger.trigger_backup.assert_called_once_with(device)
        gateway.find_device_by_id.assert_not_called()

    def test_by_id(self, service, gateway, trigger) -> None:
        device = DeviceRecord(id=9, name="APEX-100")
        gateway.find_device_by_id.return_value = device

        service.backup_device(BackupSelector(device_id=9))
        gateway.find_device_by_id.assert_called_once_with(9)
        trigger.trigger_backup.assert_called_once_with(device)

    def test_unknown_device_does_not_trigger(self, service, gateway, trigger) -> None:
        gateway.find_device_by_name.return_value = None
        with pytest.raises(DeviceNotFoundError, match="Device not found: ghost"):
            service.backup_device(BackupSelector(name="ghost"))
        trigger.trigger_backup.assert_not_called()

    def test_trigger_failure_propagates(self, service, gateway, trigger) -> None:
        gateway.find_device_by_id.return_value = DeviceRecord(id=1, name="x")
        trigger.trigger_backup.side_effect = BackupTriggerError("Backup command failed: offline")
        with pytest.raises(BackupTriggerError):
            service.backup_device(BackupSelector(device_id=1))
