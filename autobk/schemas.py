from enum import IntEnum
from typing import Annotated, Optional

from pydantic import BaseModel, Field, model_validator

from autobk.error_handling import ValidationError

INVALID_DATA = "Invalid data"
INVALID_NAME = "Invalid name"

# day, hour and weeks are stored as unsigned bytes
ByteValue = Annotated[int, Field(ge=0, le=255)]


class Recurrence(IntEnum):
	"""
	Named values of the iAutoWeeks column.

	Any non-zero value is a plain interval in weeks. Zero is kept distinct
	because the database never defines whether it means "run once" or
	"never repeat"; callers must not read either meaning into it.
	"""
	UNDEFINED = 0


# Device Schemas
class DeviceData(BaseModel):
	"""Payload shared by add, modify and delete."""
	name: str
	device_type: str
	ipv4: str
	day: ByteValue
	hour: ByteValue
	weeks: ByteValue

	def validate_required(self) -> None:
		if not self.name or not self.device_type or not self.ipv4:
			raise ValidationError(INVALID_DATA)


class DeviceQuery(BaseModel):
	name: str

	def validate_required(self) -> None:
		if not self.name:
			raise ValidationError(INVALID_NAME)


class BackupSelector(BaseModel):
	"""Selects the device to back up, either by name or by id."""
	name: Optional[str] = None
	device_id: Optional[int] = Field(default=None, ge=0)

	@model_validator(mode="after")
	def check_exclusive(self):
		if (self.name is None) == (self.device_id is None):
			raise ValueError("exactly one of name or device_id is required")
		return self

	def validate_required(self) -> None:
		if self.device_id is None and not self.name:
			raise ValidationError(INVALID_NAME)


class DeviceRecord(BaseModel):
	"""A Device row as returned by lookups."""
	id: int
	name: str
