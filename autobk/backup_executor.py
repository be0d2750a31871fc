"""
Device Backup Trigger
=====================

This module defines the collaborator that starts a backup for a single device
once the CLI has resolved it from the database. The backup itself runs
outside this tool; the trigger only hands the device over and reports a
handle for the started job.

Features:
- BackupTrigger interface returning a BackupHandle
- Command-based trigger running a configured executable per device
- Placeholder substitution per argument ({device_id}, {name}, {job_id})
- Timeout and exit status reported as BackupTriggerError
"""

import logging
import shlex
import subprocess
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from autobk.config import Settings
from autobk.error_handling import BackupTriggerError
from autobk.schemas import DeviceRecord

# Configure logging
logger = logging.getLogger(__name__)


@dataclass
class BackupHandle:
    """Handle for a backup job that has been started."""
    job_id: str
    device_id: int
    device_name: str
    started_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class BackupTrigger(ABC):
    """Starts a backup for one device."""

    @abstractmethod
    def trigger_backup(self, device: DeviceRecord) -> BackupHandle:
        """Start a backup; raise BackupTriggerError if it cannot be started."""


class UnconfiguredBackupTrigger(BackupTrigger):
    """Used when no backup command is configured."""

    def trigger_backup(self, device: DeviceRecord) -> BackupHandle:
        raise BackupTriggerError("No backup command configured")


class CommandBackupTrigger(BackupTrigger):
    """Runs an external command for each triggered backup."""

    def __init__(self, command: str, timeout: int = 300):
        self.command = command
        self.timeout = timeout

    def build_arguments(self, device: DeviceRecord, job_id: str) -> List[str]:
        """Split the command line, then substitute placeholders in each argument."""
        try:
            return [
                part.format(device_id=device.id, name=device.name, job_id=job_id)
                for part in shlex.split(self.command)
            ]
        except (KeyError, IndexError, ValueError) as e:
            raise BackupTriggerError(f"Invalid backup command '{self.command}': {e}") from e

    def trigger_backup(self, device: DeviceRecord) -> BackupHandle:
        job_id = uuid.uuid4().hex
        args = self.build_arguments(device, job_id)
        if not args:
            raise BackupTriggerError("Backup command is empty")

        logger.info(f"Job {job_id}: starting backup for device {device.name} (ID: {device.id})")
        try:
            completed = subprocess.run(
                args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            raise BackupTriggerError(f"Backup command not found: {args[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise BackupTriggerError(f"Backup command timed out after {self.timeout}s") from e

        if completed.returncode != 0:
            detail = completed.stderr.strip() or f"exit status {completed.returncode}"
            raise BackupTriggerError(f"Backup command failed: {detail}")

        logger.debug(f"Job {job_id}: backup command output: {completed.stdout.strip()}")
        return BackupHandle(job_id=job_id, device_id=device.id, device_name=device.name)


def get_backup_trigger(settings: Settings) -> BackupTrigger:
    """Build the trigger described by the settings."""
    command: Optional[str] = settings.backup_command
    if not command:
        return UnconfiguredBackupTrigger()
    return CommandBackupTrigger(command, timeout=settings.backup_timeout)
