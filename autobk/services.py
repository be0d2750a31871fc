"""
Device Service Layer
====================

One method per CLI action. Payloads arrive already validated; each method
issues a single gateway statement (backup adds the trigger call).
"""

import logging
from typing import Iterator

from autobk.backup_executor import BackupHandle, BackupTrigger
from autobk.database import DeviceGateway
from autobk.error_handling import DeviceNotFoundError
from autobk.schemas import BackupSelector, DeviceData, DeviceQuery, DeviceRecord

logger = logging.getLogger(__name__)


class DeviceService:
    """Service class for device management operations."""

    def __init__(self, gateway: DeviceGateway, backup_trigger: BackupTrigger):
        self.gateway = gateway
        self.backup_trigger = backup_trigger

    def add_device(self, data: DeviceData) -> None:
        self.gateway.insert_device(data)

    def modify_device(self, data: DeviceData) -> None:
        if self.gateway.update_device(data) == 0:
            raise DeviceNotFoundError(f"Device not found: {data.name}")

    def delete_device(self, data: DeviceData) -> None:
        if self.gateway.delete_device(data.name) == 0:
            raise DeviceNotFoundError(f"Device not found: {data.name}")

    def get_devices(self, query: DeviceQuery) -> Iterator[DeviceRecord]:
        return self.gateway.iter_devices_by_name(query.name)

    def backup_device(self, selector: BackupSelector) -> BackupHandle:
        """Resolve the device by name or id, then hand it to the trigger."""
        if selector.device_id is not None:
            device = self.gateway.find_device_by_id(selector.device_id)
            missing = f"Device not found: ID {selector.device_id}"
        else:
            device = self.gateway.find_device_by_name(selector.name)
            missing = f"Device not found: {selector.name}"

        if device is None:
            raise DeviceNotFoundError(missing)

        handle = self.backup_trigger.trigger_backup(device)
        logger.info(f"Backup job {handle.job_id} started for device {device.name}")
        return handle
