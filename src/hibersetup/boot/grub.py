__author__ = "desultory"
__version__ = "1.3.0"

from datetime import datetime
from shlex import split

from hibersetup.exceptions import ValidationError
from hibersetup.swap.swap import get_resume_device
from zenlib.util import colorize as c_

from .grub_defaults import GrubDefaults

# Parameters removed from the cmdline before the new resume parameter is added
RESUME_PARAMS = ["resume", "resume_offset"]


def _read_grub_defaults(self) -> GrubDefaults:
    """Parses grub_config, ensures it contains an assignment for grub_cmdline_var."""
    grub_config = self._get_path(self["grub_config"])
    if not grub_config.is_file():
        raise ValidationError("GRUB config file not found: %s" % grub_config)

    grub_defaults = GrubDefaults.from_file(grub_config)
    if unparsed := grub_defaults.unparsed(self["grub_cmdline_var"]):
        raise ValidationError(
            "Unable to parse '%s' in %s, values must be on a single line: %s"
            % (self["grub_cmdline_var"], grub_config, unparsed[0])
        )
    if not grub_defaults.assignments(self["grub_cmdline_var"]):
        raise ValidationError(
            "Could not find '%s' in %s. Cannot configure automatically." % (self["grub_cmdline_var"], grub_config)
        )
    return grub_defaults


def set_resume_param(grub_defaults: GrubDefaults, variable: str, uuid: str) -> list[str]:
    """Sets resume=UUID=<uuid> in every assignment of the variable.
    Existing resume and resume_offset parameters are removed first, so this can be repeated.
    Returns the removed parameters."""
    removed = []
    for assignment in grub_defaults.assignments(variable):
        removed += assignment.remove_params(*RESUME_PARAMS)
        assignment.add_param(f"resume=UUID={uuid}")
    return removed


def check_grub_config(self) -> str:
    """Checks that the GRUB config can be edited, sets the backup path for this run."""
    _read_grub_defaults(self)
    self["_grub_backup"] = f"{self['grub_config']}.bak.{datetime.now():%Y-%m-%d-%H:%M:%S}"
    return "Found '%s' in: %s" % (self["grub_cmdline_var"], self["grub_config"])


def backup_grub_config(self) -> str:
    """Copies grub_config to the backup path, fails if the backup already exists."""
    self.logger.info("Backing up the current GRUB config to: %s" % c_(self["_grub_backup"], "yellow"))
    backup = self._copy(self["grub_config"], self["_grub_backup"])
    return "Backed up GRUB config to: %s" % backup


def update_grub_cmdline(self) -> str:
    """Replaces any resume parameters in the GRUB cmdline with the selected swap device UUID."""
    grub_defaults = _read_grub_defaults(self)
    uuid = get_resume_device(self).uuid

    if removed := set_resume_param(grub_defaults, self["grub_cmdline_var"], uuid):
        self.logger.info("Removed old resume parameters: %s" % c_(" ".join(removed), "yellow"))

    mode = self._get_path(self["grub_config"]).stat().st_mode & 0o777
    self._write(self["grub_config"], str(grub_defaults), chmod_mask=mode)
    for assignment in grub_defaults.assignments(self["grub_cmdline_var"]):
        self.logger.info("New GRUB command line: %s" % c_(assignment, "cyan"))
    return "GRUB configuration updated."


def update_grub(self) -> str:
    """Regenerates the GRUB menu."""
    self.logger.info("Updating GRUB...")
    self._run(split(self["grub_update_command"]))
    return "GRUB menu regenerated."
