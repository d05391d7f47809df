__author__ = "desultory"
__version__ = "1.1.0"

from re import findall
from typing import NamedTuple

from hibersetup.exceptions import AutodetectError, PreconditionError
from zenlib.util import colorize as c_
from zenlib.util import contains, pretty_print

LSBLK_COLUMNS = ["NAME", "FSTYPE", "UUID", "SIZE"]


class SwapDevice(NamedTuple):
    path: str
    uuid: str
    size: int  # bytes


def format_size(size: int) -> str:
    """Returns a size in bytes as GiB, rounded to two places. For display only."""
    return "%.2f GB" % (size / 1024 / 1024 / 1024)


def _parse_lsblk(output: str) -> list[SwapDevice]:
    """Parses `lsblk -P` key="value" output, returns swap devices which have a UUID."""
    devices = []
    for line in output.splitlines():
        if not line.strip():
            continue
        info = dict(findall(r'([A-Z:\-]+)="([^"]*)"', line))
        if info.get("FSTYPE") != "swap" or not info.get("UUID"):
            continue
        devices.append(SwapDevice(info["NAME"], info["UUID"], int(info["SIZE"])))
    return devices


def get_resume_device(self) -> SwapDevice:
    """Returns the descriptor of the selected swap device."""
    return self["_swap_devices"][self["resume_device"]]


def get_swap_info(self) -> str:
    """Lists block devices with lsblk, stores those with a swap filesystem and UUID in '_swap_devices'."""
    self.logger.info("Detecting swap partitions...")
    lsblk = self._run(["lsblk", "-bnpP", "-o", ",".join(LSBLK_COLUMNS)])
    devices = _parse_lsblk(lsblk.stdout.decode())
    if not devices:
        raise AutodetectError("No active swap partition found. Please create and enable a swap partition first.")

    self["_swap_devices"] = {device.path: device for device in devices}
    self.logger.debug("Swap devices:\n%s" % pretty_print(self["_swap_devices"]))
    return "Found swap partitions: %s" % ", ".join(self["_swap_devices"])


def select_swap_device(self) -> str:
    """Selects the swap device to resume from.

    If resume_device is set, it must be one of the detected swap devices.
    If a single swap device exists, it is used.
    Otherwise the user is asked to choose, an invalid choice is fatal.
    """
    swap_devices = list(self["_swap_devices"])
    if resume_device := self["resume_device"]:
        if resume_device not in swap_devices:
            raise AutodetectError(
                "Configured resume device is not a swap partition with a UUID: %s" % c_(resume_device, "red")
            )
    elif len(swap_devices) == 1:
        self["resume_device"] = swap_devices[0]
    elif self["assume_yes"]:
        raise AutodetectError(
            "Multiple swap partitions found, set 'resume_device' to choose one: %s" % ", ".join(swap_devices)
        )
    else:
        self.logger.warning("Multiple swap partitions found.")
        try:
            self["resume_device"] = self._select(
                "Please select which one to use for hibernation:", swap_devices
            )
        except ValueError as e:
            raise AutodetectError(e) from e

    device = get_resume_device(self)
    return "Using swap partition: %s with UUID: %s" % (device.path, device.uuid)


def get_memory_size(self) -> None:
    """Reads MemTotal from the meminfo file, stores it in bytes under '_ram_size'."""
    meminfo = self._get_path(self["meminfo_file"])
    for line in meminfo.read_text().splitlines():
        if line.startswith("MemTotal:"):
            fields = line.split()
            if len(fields) < 2 or not fields[1].isdigit():
                raise AutodetectError("Unable to parse MemTotal line: %s" % line)
            # meminfo reports kibibytes, even though it's labeled kB
            self["_ram_size"] = int(fields[1]) * 1024
            self.logger.debug("Detected RAM size: %s bytes" % self["_ram_size"])
            return
    raise AutodetectError("MemTotal not found in: %s" % meminfo)


@contains("_ram_size", "RAM size is unknown, skipping swap size check.", log_level=30)
def check_swap_size(self) -> str:
    """Ensures the resume swap device is at least as large as physical memory.
    The comparison is done with exact byte counts."""
    device = get_resume_device(self)
    ram_size = self["_ram_size"]
    self.logger.info("RAM detected: %s" % c_(format_size(ram_size), "cyan"))
    self.logger.info("Swap size: %s" % c_(format_size(device.size), "cyan"))

    if device.size < ram_size:
        raise PreconditionError(
            "Swap partition size (%s) is smaller than the RAM size (%s). Hibernation may fail. "
            "Please resize the swap partition to be at least as large as the RAM."
            % (format_size(device.size), format_size(ram_size))
        )
    return "Swap partition size is sufficient for hibernation."
