"""Tests for payload schemas and required-field validation."""

import pydantic
import pytest

from autobk.error_handling import ValidationError
from autobk.schemas import BackupSelector, DeviceData, DeviceQuery, Recurrence


def _data(**overrides) -> DeviceData:
    values = dict(name="DCM-1", device_type="DCM", ipv4="192.168.1.10", day=3, hour=12, weeks=2)
    values.update(overrides)
    return DeviceData(**values)


class TestDeviceData:

    def test_valid(self) -> None:
        _data().validate_required()

    @pytest.mark.parametrize("field", ["name", "device_type", "ipv4"])
    def test_empty_field(self, field) -> None:
        with pytest.raises(ValidationError, match="Invalid data"):
            _data(**{field: ""}).validate_required()

    def test_whitespace_is_not_empty(self) -> None:
        _data(name=" ").validate_required()

    def test_ipv4_format_is_not_checked(self) -> None:
        _data(ipv4="not-an-address").validate_required()

    @pytest.mark.parametrize("field", ["day", "hour", "weeks"])
    @pytest.mark.parametrize("value", [-1, 256])
    def test_byte_range(self, field, value) -> None:
        with pytest.raises(pydantic.ValidationError):
            _data(**{field: value})

    def test_zero_weeks_is_stored_as_given(self) -> None:
        data = _data(weeks=0)
        assert data.weeks == Recurrence.UNDEFINED
        assert data.model_dump()["weeks"] == 0


class TestDeviceQuery:

    def test_empty_name(self) -> None:
        with pytest.raises(ValidationError, match="Invalid name"):
            DeviceQuery(name="").validate_required()


class TestBackupSelector:

    def test_by_name(self) -> None:
        BackupSelector(name="DCM-1").validate_required()

    def test_by_id(self) -> None:
        BackupSelector(device_id=0).validate_required()

    def test_empty_name(self) -> None:
        with pytest.raises(ValidationError, match="Invalid name"):
            BackupSelector(name="").validate_required()

    @pytest.mark.parametrize("values", [{}, {"name": "a", "device_id": 1}])
    def test_exactly_one_selector(self, values) -> None:
        with pytest.raises(pydantic.ValidationError):
            BackupSelector(**values)

    def test_negative_id(self) -> None:
        with pytest.raises(pydantic.ValidationError):
            BackupSelector(device_id=-1)
