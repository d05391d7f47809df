__author__ = "desultory"
__version__ = "1.2.0"

from os import geteuid
from re import IGNORECASE, search
from shlex import split
from shutil import which
from time import sleep

from hibersetup.exceptions import PreconditionError, SetupCancelled
from zenlib.util import colorize as c_


def confirm_setup(self) -> str:
    """Warns about the files which will be modified, asks to continue.
    Declining raises SetupCancelled, before anything is checked or changed."""
    self.logger.warning("This will modify critical system files: %s" % c_(self["grub_config"], "yellow", bold=True))
    self.logger.warning("A backup of the GRUB configuration will be created.")
    if not self._prompt("Do you wish to continue?"):
        raise SetupCancelled("Operation cancelled by user.")
    return "Continuing with hibernation setup."


def check_root(self) -> str:
    """Ensures the effective user is root."""
    self.logger.info("Checking for root privileges...")
    if geteuid() != 0:
        raise PreconditionError("This must be run as root. Please use 'sudo'.")
    return "Running as root."


def check_secure_boot(self) -> str:
    """Fails if the Secure Boot query reports that Secure Boot is enabled.
    If the query tool is not installed, Secure Boot is assumed to be disabled.
    A failing query is not an error, mokutil exits non-zero on systems without EFI variables.
    """
    self.logger.info("Checking Secure Boot status...")
    cmd = split(self["secureboot_command"])
    if not which(cmd[0]):
        self.logger.info("[%s] Secure Boot query tool not found." % c_(cmd[0], "yellow"))
        return "Secure Boot is disabled or not detected."

    sb_state = self._run(cmd, fail_silent=True, fail_hard=False)
    output = sb_state.stdout.decode() + sb_state.stderr.decode()
    self.logger.debug("Secure Boot state: %s" % output.strip())
    if search(r"\benabled\b", output, IGNORECASE):
        raise PreconditionError(
            "Secure Boot is enabled. Hibernation is not compatible with Secure Boot on Ubuntu. "
            "Please disable it in your system's UEFI/BIOS settings before running this again."
        )
    return "Secure Boot is disabled or not detected."


def print_summary(self) -> str:
    """Logs what was done and how to test it."""
    self.logger.info(c_("Hibernation setup complete!", "green", bold=True, bright=True))
    self.logger.info("A system reboot is required for these changes to take effect.")
    self.logger.info("After rebooting, hibernation can be tested with: %s" % c_("systemctl hibernate", "yellow"))

    if self["_configure_lid"]:
        self.logger.info("Lid-close hibernate has been configured.")
        if self["_regolith"]:
            self.logger.info("For Regolith: log out and log back in after rebooting to apply the lid settings.")

    self.logger.info(
        "If there are any issues, the original GRUB configuration is backed up at: %s"
        % c_(self._get_path(self["_grub_backup"]), "yellow", bold=True)
    )


def prompt_reboot(self) -> str:
    """Reboots the system if 'reboot' is set, or the user agrees.
    When prompts are answered automatically, only 'reboot' causes a reboot."""
    if not self["reboot"]:
        if self["assume_yes"]:
            return "Please reboot the system manually to complete the setup."
        if not self._prompt("Would you like to reboot now?"):
            return "Please reboot the system manually to complete the setup."

    self.logger.warning("Rebooting in %s seconds..." % c_(self["reboot_delay"], "red", bold=True))
    sleep(self["reboot_delay"])
    self._run(["reboot"])
    return "Reboot requested."
