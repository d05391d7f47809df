__author__ = "desultory"
__version__ = "1.2.1"

from shutil import which

from zenlib.util import colorize as c_
from zenlib.util import contains

POLKIT_HIBERNATE_ACTIONS = [
    "org.freedesktop.login1.hibernate",
    "org.freedesktop.login1.hibernate-multiple-sessions",
    "org.freedesktop.login1.handle-hibernate-key",
    "org.freedesktop.login1.hibernate-ignore-inhibit",
]


def _is_portable_chassis(self) -> bool:
    """Checks the DMI chassis type against laptop_chassis_types."""
    chassis_type_file = self._get_path(self["chassis_type_file"])
    if not chassis_type_file.is_file():
        self.logger.debug("Chassis type file not found: %s" % chassis_type_file)
        return False

    chassis_type = chassis_type_file.read_text().strip()
    self.logger.debug("Detected chassis type: %s" % chassis_type)
    return chassis_type.isdigit() and int(chassis_type) in self["laptop_chassis_types"]


def _has_battery(self) -> bool:
    """Checks for BAT* power supplies."""
    power_supply = self._get_path(self["power_supply_path"])
    return power_supply.is_dir() and any(power_supply.glob("BAT*"))


def detect_laptop(self) -> str:
    """Detects if the system is a laptop, and if it has a lid switch.
    Any of a portable chassis type, a lid switch, or a battery marks the system as a laptop.
    """
    self["_lid_switch"] = self._get_path(self["lid_switch_path"]).is_dir()
    self["_laptop"] = _is_portable_chassis(self) or self["_lid_switch"] or _has_battery(self)

    if not self["_laptop"]:
        return "This system does not appear to be a laptop."
    if not self["_lid_switch"]:
        return "Laptop detected, but no lid switch was found."
    return "Laptop with a lid switch detected."


@contains("configure_lid", "Lid-close configuration is disabled.", log_level=20)
@contains("_laptop", "Not a laptop, skipping lid configuration.", log_level=20)
@contains("_lid_switch", "No lid switch detected, skipping lid configuration.", log_level=30)
def confirm_lid_hibernate(self) -> str:
    """Asks if lid-close should hibernate. Only an explicit no declines.
    If declined, none of the lid configuration is written."""
    if not self._prompt("Would you like to configure lid-close to hibernate?", default=True):
        return "Skipping lid-close configuration."
    self["_configure_lid"] = True
    return "Lid-close will be configured to hibernate."


@contains("_configure_lid")
def configure_polkit_hibernate(self) -> str:
    """Writes a polkit rule allowing members of hibernate_group to hibernate without a password.
    An existing rule file is never modified."""
    rules_dir = self._get_path(self["polkit_rules_dir"])
    if not rules_dir.is_dir():
        self.logger.warning("Polkit rules directory not found, skipping polkit configuration: %s" % rules_dir)
        return

    rule_file = rules_dir / self["polkit_rule_file"]
    if rule_file.exists():
        self.logger.info("Polkit hibernate rule already exists: %s" % c_(rule_file, "yellow"))
        return

    conditions = " ||\n        ".join(f'action.id == "{action}"' for action in POLKIT_HIBERNATE_ACTIONS)
    self._write(
        rule_file,
        [
            f'// Allow users in the "{self["hibernate_group"]}" group to hibernate without authentication',
            "// Added by hibersetup",
            "polkit.addRule(function(action, subject) {",
            f"    if ({conditions}) {{",
            f'        if (subject.isInGroup("{self["hibernate_group"]}")) {{',
            "            return polkit.Result.YES;",
            "        }",
            "    }",
            "});",
        ],
    )
    return "Created polkit rule for passwordless hibernation."


@contains("_configure_lid")
def configure_logind_lid(self) -> str:
    """Writes the systemd-logind drop-in which hibernates on lid close, replacing any previous version."""
    self._write(
        self["logind_dropin"],
        [
            "# Hibernate on lid close",
            "# Added by hibersetup",
            "[Login]",
            "HandleLidSwitch=hibernate",
            "HandleLidSwitchExternalPower=hibernate",
            "HandleLidSwitchDocked=ignore",
        ],
    )
    self.logger.info("This may be overridden by desktop environment settings.")
    return "Created systemd-logind lid-close configuration."


@contains("_configure_lid")
def configure_gnome_lid(self) -> str:
    """Sets the GNOME lid-close actions to hibernate, as the configured user.
    This is best effort, failures are logged and ignored."""
    if not which("gsettings"):
        self.logger.warning("gsettings not found, skipping GNOME configuration.")
        return

    failed = []
    for key in self["gnome_lid_keys"]:
        gsettings = f"gsettings set {self['gnome_power_schema']} {key} 'hibernate'"
        # fail_hard is off, GNOME may not be installed for this user
        if self._run(["su", "-", self["user"], "-c", gsettings], fail_silent=True, fail_hard=False).returncode:
            failed.append(key)

    if failed:
        self.logger.warning("Failed to set GNOME power settings: %s" % c_(", ".join(failed), "yellow"))
        return
    return "Configured GNOME power settings for lid-close hibernate."
