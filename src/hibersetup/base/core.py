__author__ = "desultory"
__version__ = "1.1.0"

from os import environ
from pathlib import Path
from pwd import getpwnam
from typing import Union

from hibersetup.exceptions import AutodetectError
from zenlib.types import NoDupFlatList
from zenlib.util import colorize, unset


@unset("user", "User is already set, skipping autodetection.", log_level=20)
def detect_user(self) -> str:
    """Detects the user the setup is being run for.
    When run with sudo, this is the user which ran sudo, not root."""
    user = environ.get("SUDO_USER") or environ.get("USER")
    if not user:
        user = "root"
        self.logger.warning("Unable to determine the invoking user, using: %s" % colorize(user, "yellow"))
    self["user"] = user
    return "Configuring for user: %s" % user


def _get_user_home(self) -> Path:
    """Returns the home directory of the configured user, under the sysroot."""
    try:
        return self._get_path(getpwnam(self["user"]).pw_dir)
    except KeyError as e:
        raise AutodetectError("User not found in the passwd database: %s" % self["user"]) from e


def _chown_user(self, path: Path) -> None:
    """Sets the owner and group of a path to the configured user's uid and primary gid."""
    from os import chown

    passwd = getpwnam(self["user"])
    chown(path, passwd.pw_uid, passwd.pw_gid)
    self.logger.debug("[%s] Set ownership to: %s" % (path, self["user"]))


def _process_masks_multi(self, hook: str, function: Union[str, list]) -> None:
    """Processes a mask definition, masked functions are skipped when their hook runs."""
    if hook not in self["masks"]:
        self.logger.debug("Creating new mask: %s" % hook)
        self["masks"][hook] = NoDupFlatList(no_warn=True, logger=self.logger)
    self.logger.info("[%s] Adding mask: %s" % (hook, function))
    self["masks"][hook].append(function)


def _process_sysroot(self, sysroot: Union[Path, str]) -> None:
    """Processes the sysroot, it must be an existing directory."""
    sysroot = Path(sysroot)
    if not sysroot.is_dir():
        raise ValueError("Sysroot is not a directory: %s" % sysroot)
    if sysroot != Path("/"):
        self.logger.warning("Using sysroot: %s" % colorize(sysroot, "yellow", bold=True))
    self.data["sysroot"] = sysroot


def _process_timeout(self, timeout: int) -> None:
    """Ensures the command timeout is a positive number of seconds."""
    timeout = int(timeout)
    if timeout <= 0:
        raise ValueError("Timeout must be positive: %s" % timeout)
    self.data["timeout"] = timeout
