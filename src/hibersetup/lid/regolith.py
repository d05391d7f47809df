__author__ = "desultory"
__version__ = "1.1.0"

from shutil import which

from hibersetup.base.core import _chown_user, _get_user_home
from zenlib.util import colorize as c_
from zenlib.util import contains

LID_ACTION_PREFIX = "wm.lidclose.action."
LID_ACTIONS = [
    f"{LID_ACTION_PREFIX}power: HIBERNATE",
    f"{LID_ACTION_PREFIX}battery: HIBERNATE",
]


def _package_installed(self, package: str) -> bool:
    """Checks if a package is installed, using dpkg-query."""
    if not which("dpkg-query"):
        return False
    status = self._run(["dpkg-query", "-W", "-f=${Status}", package], fail_silent=True, fail_hard=False)
    return status.returncode == 0 and "install ok installed" in status.stdout.decode()


@contains("_configure_lid", "Lid-close hibernate is not being configured, skipping Regolith detection.", log_level=10)
def detect_regolith(self) -> str:
    """Detects a Regolith session by its config directory, lid handler, or installed package.
    Only runs once lid-close configuration was accepted, the user's home is not needed otherwise."""
    config_dir = _get_user_home(self) / self["regolith_config_dir"]
    if config_dir.is_dir():
        self.logger.debug("Found Regolith config directory: %s" % config_dir)
        self["_regolith"] = True
    elif which(self["regolith_lid_handler"]):
        self.logger.debug("Found Regolith lid handler: %s" % self["regolith_lid_handler"])
        self["_regolith"] = True
    elif _package_installed(self, self["regolith_package"]):
        self.logger.debug("Found Regolith package: %s" % self["regolith_package"])
        self["_regolith"] = True

    if self["_regolith"]:
        return "Regolith desktop detected."


@contains("_configure_lid")
@contains("_regolith", "No Regolith desktop detected, using systemd-logind and GNOME settings.", log_level=20)
def configure_regolith_lid(self) -> str:
    """Sets the Regolith lid-close actions to hibernate in the user's Xresources.

    If both actions are already set, the file is not touched.
    Otherwise existing lid-close actions are removed before the hibernate actions are appended.
    The file is owned by the configured user.
    """
    xresources = _get_user_home(self) / self["regolith_config_dir"] / self["regolith_xresources"]
    self.logger.info("Configuring Regolith lid-close hibernate: %s" % c_(xresources, "blue"))

    lines = xresources.read_text().splitlines() if xresources.is_file() else []
    if all(action in lines for action in LID_ACTIONS):
        return "Regolith Xresources already configured for hibernate."

    lines = [line for line in lines if LID_ACTION_PREFIX not in line]
    lines += ["", "! Lid close actions - hibernate instead of lock/sleep", "! Added by hibersetup", *LID_ACTIONS]
    self._write(xresources, lines)
    _chown_user(self, xresources)
    self.logger.info("The Xresources configuration will take effect after logging out and back in.")
    return "Configured Regolith Xresources for lid-close hibernate."
