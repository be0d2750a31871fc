"""
AutoBk Command Line Interface
=============================

Interact with the AutoBk device database from the command line.

Examples:
    autobk add --name "DCM-1" --device-type "DCM" --ipv4 "192.168.1.10" --day 3 --hour 12 --weeks 2
    autobk modify -n "APEX-100" -t "APEX" -i "192.168.1.11" -d 5 -r 14 -w 0
    autobk backup --device-id 42
    autobk get -n "DCM-1"
"""

import argparse
import logging
from typing import Callable, Dict, List, Optional

from autobk import __version__, presenter
from autobk.backup_executor import get_backup_trigger
from autobk.config import load_settings, setup_logging
from autobk.database import DeviceGateway
from autobk.error_handling import EXIT_OK, AutoBkError
from autobk.schemas import BackupSelector, DeviceData, DeviceQuery, Recurrence
from autobk.services import DeviceService

logger = logging.getLogger(__name__)


def byte_value(value: str) -> int:
    """argparse type for day, hour and weeks: an integer in 0-255."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}")
    if not 0 <= number <= 255:
        raise argparse.ArgumentTypeError(f"{number} is out of range (0-255)")
    return number


def device_id_value(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid device id: {value!r}")
    if number < 0:
        raise argparse.ArgumentTypeError(f"invalid device id: {value!r}")
    return number


def _add_device_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("-n", "--name", required=True, metavar="NAME")
    parser.add_argument("-t", "--device-type", required=True, metavar="DEVICE_TYPE")
    parser.add_argument("-i", "--ipv4", required=True, metavar="IPv4_ADDRESS")
    parser.add_argument("-d", "--day", required=True, type=byte_value, metavar="DOW_INTEGER")
    parser.add_argument("-r", "--hour", required=True, type=byte_value, metavar="HOUR")
    parser.add_argument(
        "-w", "--weeks", required=True, type=byte_value, metavar="WEEKS",
        help=f"recurrence interval in weeks ({Recurrence.UNDEFINED.value} leaves it undefined)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="autobk",
        description="AutoBk-CLI: Interact with AutoBk database from the command line.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", metavar="PATH", help="TOML settings file (default: ./autobk.toml if present)")
    parser.add_argument("-v", "--verbose", action="count", default=0, help="log more detail to stderr")

    subparsers = parser.add_subparsers(dest="action", required=True, metavar="ACTION")

    _add_device_arguments(subparsers.add_parser("add", help="add a device"))
    _add_device_arguments(subparsers.add_parser("modify", help="replace the fields of the device named NAME"))
    _add_device_arguments(subparsers.add_parser("delete", help="delete the device named NAME"))

    backup = subparsers.add_parser("backup", help="trigger a backup for one device")
    selector = backup.add_mutually_exclusive_group(required=True)
    selector.add_argument("-n", "--name", metavar="NAME")
    selector.add_argument("-d", "--device-id", type=device_id_value, metavar="DEVICE_ID")

    get = subparsers.add_parser("get", help="list devices named NAME with their IDs")
    get.add_argument("-n", "--name", required=True, metavar="NAME")

    return parser


def build_payload(args: argparse.Namespace):
    """Turn parsed arguments into the action's schema object."""
    if args.action == "backup":
        return BackupSelector(name=args.name, device_id=args.device_id)
    if args.action == "get":
        return DeviceQuery(name=args.name)
    return DeviceData(
        name=args.name,
        device_type=args.device_type,
        ipv4=args.ipv4,
        day=args.day,
        hour=args.hour,
        weeks=args.weeks,
    )


def _add(service: DeviceService, data: DeviceData) -> None:
    service.add_device(data)
    presenter.device_added(data.name)


def _modify(service: DeviceService, data: DeviceData) -> None:
    service.modify_device(data)
    presenter.device_modified(data.name)


def _delete(service: DeviceService, data: DeviceData) -> None:
    service.delete_device(data)
    presenter.device_deleted(data.name)


def _backup(service: DeviceService, selector: BackupSelector) -> None:
    presenter.backup_triggered(service.backup_device(selector))


def _get(service: DeviceService, query: DeviceQuery) -> None:
    for record in service.get_devices(query):
        presenter.device_row(record)


ACTIONS: Dict[str, Callable] = {
    "add": _add,
    "modify": _modify,
    "delete": _delete,
    "backup": _backup,
    "get": _get,
}


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    payload = build_payload(args)

    try:
        payload.validate_required()
        settings = load_settings(args.config)
        setup_logging(settings, args.verbose)

        with DeviceGateway(settings) as gateway:
            service = DeviceService(gateway, get_backup_trigger(settings))
            ACTIONS[args.action](service, payload)
    except AutoBkError as e:
        logger.debug(f"{args.action} failed", exc_info=True)
        presenter.error(e)
        return e.exit_code

    return EXIT_OK
