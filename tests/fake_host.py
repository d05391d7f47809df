"""A fake host for hibersetup tests.

Files are created under a temporary sysroot, commands are answered from a table instead of being run.
"""

from contextlib import ExitStack
from os import getuid
from pathlib import Path
from pwd import getpwuid
from subprocess import CompletedProcess
from unittest.mock import patch

from hibersetup import HibernateSetup

GRUB_DEFAULTS = """# If you change this file, run 'update-grub' afterwards to update
# /boot/grub/grub.cfg.
GRUB_DEFAULT=0
GRUB_TIMEOUT_STYLE=hidden
GRUB_TIMEOUT=0
GRUB_DISTRIBUTOR=`lsb_release -i -s 2> /dev/null || echo Debian`
GRUB_CMDLINE_LINUX_DEFAULT="quiet splash"
GRUB_CMDLINE_LINUX=""

# Uncomment to disable graphical terminal
#GRUB_TERMINAL=console
"""

SIXTEEN_GIB = 16 * 1024 * 1024 * 1024
TEST_CONFIG = Path(__file__).parent / "hibersetup.toml"
TEST_USER = getpwuid(getuid()).pw_name


class FakeHost:
    def __init__(self, sysroot):
        self.sysroot = Path(sysroot)
        self.commands = {}
        self.binaries = set()
        self.calls = []
        self.set_command("update-grub")
        self.set_command("update-initramfs")
        self.set_command("reboot")

    def add_file(self, path, contents="") -> Path:
        file_path = self.sysroot / str(path).lstrip("/")
        file_path.parent.mkdir(parents=True, exist_ok=True)
        file_path.write_text(contents)
        return file_path

    def add_dir(self, path) -> Path:
        dir_path = self.sysroot / str(path).lstrip("/")
        dir_path.mkdir(parents=True, exist_ok=True)
        return dir_path

    def path(self, path) -> Path:
        return self.sysroot / str(path).lstrip("/")

    def set_command(self, name, stdout="", returncode=0, stderr=""):
        """Sets the result for a command, and makes it resolvable with which()."""
        self.commands[name] = (returncode, stdout, stderr)
        self.binaries.add(name)

    def set_swap(self, *devices):
        """Sets the lsblk output, devices are (path, uuid, size) tuples."""
        lines = ['NAME="/dev/sda" FSTYPE="" UUID="" SIZE="512110190592"']
        for path, uuid, size in devices:
            lines.append(f'NAME="{path}" FSTYPE="swap" UUID="{uuid}" SIZE="{size}"')
        lines.append('NAME="/dev/sda1" FSTYPE="ext4" UUID="0f3c-root" SIZE="400000000000"')
        self.set_command("lsblk", "\n".join(lines) + "\n")

    def set_memory(self, size):
        """Writes a meminfo file, size is in bytes and must be a multiple of 1024."""
        self.add_file(
            "/proc/meminfo",
            "MemTotal:       %d kB\nMemFree:         1234567 kB\nMemAvailable:    2345678 kB\n" % (size // 1024),
        )

    def set_laptop(self, chassis_type="9", lid=True, battery=True):
        self.add_file("/sys/class/dmi/id/chassis_type", f"{chassis_type}\n")
        if lid:
            self.add_dir("/proc/acpi/button/lid/LID0")
        if battery:
            self.add_dir("/sys/class/power_supply/BAT0")

    def run(self, args, capture_output=True, timeout=None):
        self.calls.append(list(args))
        returncode, stdout, stderr = self.commands.get(args[0], (127, "", f"{args[0]}: command not found"))
        return CompletedProcess(args, returncode, stdout=stdout.encode(), stderr=stderr.encode())

    def which(self, name):
        return f"/usr/bin/{name}" if name in self.binaries else None

    def called(self, name) -> list[list[str]]:
        return [call for call in self.calls if call[0] == name]

    def patch(self, root=True) -> ExitStack:
        """Returns a context manager which routes command execution and lookups to this host."""
        stack = ExitStack()
        stack.enter_context(patch("hibersetup.setup_helpers.run", self.run))
        for module in ["hibersetup.base.base", "hibersetup.lid.lid", "hibersetup.lid.regolith"]:
            stack.enter_context(patch(f"{module}.which", self.which))
        stack.enter_context(patch("hibersetup.base.base.geteuid", return_value=0 if root else 1000))
        return stack


def make_host(sysroot, swap=(("/dev/sda2", "1234-ABCD", SIXTEEN_GIB),), memory=SIXTEEN_GIB, grub=GRUB_DEFAULTS):
    """Creates a desktop host with the passed swap devices and memory size."""
    host = FakeHost(sysroot)
    host.set_swap(*swap)
    host.set_memory(memory)
    if grub is not None:
        host.add_file("/etc/default/grub", grub)
    host.add_dir("/etc/polkit-1/rules.d")
    return host


def make_setup(logger, host, config=TEST_CONFIG, **kwargs):
    """Returns a HibernateSetup for the host, run as the current user."""
    kwargs.setdefault("user", TEST_USER)
    return HibernateSetup(logger=logger, config=config, sysroot=host.sysroot, **kwargs)
