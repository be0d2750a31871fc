"""
Device Database Gateway
=======================

Translates validated device commands into single parameterized statements
against the AutoBk Device table.

Features:
- Device table declaration shared by the gateway and test fixtures
- One engine (connection pool) per gateway, disposed on close
- Bounded retry of transient connection failures
- Driver errors surfaced verbatim as QueryError / DatabaseConnectionError
"""

import logging
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Column, Integer, SmallInteger, String, create_engine, text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import ArgumentError, DBAPIError, SQLAlchemyError
from sqlalchemy.orm import declarative_base

from autobk.config import Settings
from autobk.error_handling import (
    ConfigError, DatabaseConnectionError, QueryError,
    RetryConfig, retry_with_backoff
)
from autobk.schemas import DeviceData, DeviceRecord

# Configure logging
logger = logging.getLogger(__name__)

Base = declarative_base()


# Models
class Device(Base):
    __tablename__ = "Device"

    id = Column("kSelf", Integer, primary_key=True, autoincrement=True)
    name = Column("sName", String(100), nullable=False)
    device_type = Column("sType", String(50), nullable=False)
    ipv4 = Column("sIP", String(45), nullable=False)
    day = Column("iAutoDay", SmallInteger, nullable=False, default=0)
    hour = Column("iAutoHour", SmallInteger, nullable=False, default=0)
    weeks = Column("iAutoWeeks", SmallInteger, nullable=False, default=0)


# Statements
INSERT_DEVICE = text(
    "INSERT INTO Device (sName, sType, sIP, iAutoDay, iAutoHour, iAutoWeeks) "
    "VALUES (:name, :device_type, :ipv4, :day, :hour, :weeks)"
)
UPDATE_DEVICE = text(
    "UPDATE Device SET sType = :device_type, sIP = :ipv4, iAutoDay = :day, "
    "iAutoHour = :hour, iAutoWeeks = :weeks WHERE sName = :name"
)
DELETE_DEVICE = text("DELETE FROM Device WHERE sName = :name")
SELECT_BY_NAME = text("SELECT kSelf, sName FROM Device WHERE sName = :name")
SELECT_FIRST_BY_NAME = text("SELECT kSelf, sName FROM Device WHERE sName = :name ORDER BY kSelf")
SELECT_BY_ID = text("SELECT kSelf, sName FROM Device WHERE kSelf = :device_id")


def _driver_message(error: SQLAlchemyError) -> str:
    """Underlying driver message when there is one."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else str(error)


def _device_params(data: DeviceData) -> Dict[str, Any]:
    return {
        "name": data.name,
        "device_type": data.device_type,
        "ipv4": data.ipv4,
        "day": data.day,
        "hour": data.hour,
        "weeks": data.weeks,
    }


class DeviceGateway:
    """Executes one statement per call against the Device table."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.engine: Optional[Engine] = None
        self.retry_config = RetryConfig(
            max_attempts=settings.connect_retries,
            base_delay=settings.connect_retry_delay,
            retryable_exceptions=[DatabaseConnectionError],
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get_engine(self) -> Engine:
        """Create the pool on first use."""
        if self.engine is None:
            try:
                self.engine = create_engine(self.settings.get_database_url())
            except ArgumentError as e:
                raise ConfigError(f"Invalid database URL: {e}") from e
        return self.engine

    def close(self):
        """Dispose of the pool and release its connections."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def _connect(self) -> Connection:
        try:
            return self.get_engine().connect()
        except DBAPIError as e:
            raise DatabaseConnectionError(_driver_message(e)) from e

    def connect(self) -> Connection:
        """Acquire a connection, retrying transient failures."""
        return retry_with_backoff(self.retry_config)(self._connect)()

    def _execute_write(self, statement, params: Dict[str, Any]) -> int:
        logger.debug(f"Executing {statement.text!r} with parameters {sorted(params)}")
        with self.connect() as conn:
            try:
                count = conn.execute(statement, params).rowcount
                conn.commit()
            except SQLAlchemyError as e:
                raise QueryError(_driver_message(e)) from e
            return count

    def insert_device(self, data: DeviceData) -> None:
        self._execute_write(INSERT_DEVICE, _device_params(data))
        logger.info(f"Inserted device {data.name}")

    def update_device(self, data: DeviceData) -> int:
        """Update the row(s) named data.name; returns the matched row count."""
        count = self._execute_write(UPDATE_DEVICE, _device_params(data))
        logger.info(f"Updated {count} row(s) for device {data.name}")
        return count

    def delete_device(self, name: str) -> int:
        """Delete the row(s) named name; returns the deleted row count."""
        count = self._execute_write(DELETE_DEVICE, {"name": name})
        logger.info(f"Deleted {count} row(s) for device {name}")
        return count

    def iter_devices_by_name(self, name: str) -> Iterator[DeviceRecord]:
        """Stream matching rows; the connection stays open while iterating."""
        logger.debug(f"Executing {SELECT_BY_NAME.text!r} with parameters ['name']")
        with self.connect() as conn:
            try:
                result = conn.execute(SELECT_BY_NAME, {"name": name})
                for row in result:
                    yield DeviceRecord(id=row.kSelf, name=row.sName)
            except SQLAlchemyError as e:
                raise QueryError(_driver_message(e)) from e

    def _fetch_one(self, statement, params: Dict[str, Any]) -> Optional[DeviceRecord]:
        logger.debug(f"Executing {statement.text!r} with parameters {sorted(params)}")
        with self.connect() as conn:
            try:
                row = conn.execute(statement, params).first()
            except SQLAlchemyError as e:
                raise QueryError(_driver_message(e)) from e
        if row is None:
            return None
        return DeviceRecord(id=row.kSelf, name=row.sName)

    def find_device_by_name(self, name: str) -> Optional[DeviceRecord]:
        return self._fetch_one(SELECT_FIRST_BY_NAME, {"name": name})

    def find_device_by_id(self, device_id: int) -> Optional[DeviceRecord]:
        return self._fetch_one(SELECT_BY_ID, {"device_id": device_id})
