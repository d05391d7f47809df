__author__ = "desultory"
__version__ = "1.0.2"

from shlex import split

from hibersetup.swap.swap import get_resume_device


def write_resume_hint(self) -> str:
    """Writes RESUME=UUID=<uuid> to the initramfs-tools resume file, replacing any previous contents."""
    self.logger.info("Configuring initramfs...")
    resume_hint = self._write(self["resume_hint_file"], f"RESUME=UUID={get_resume_device(self).uuid}")
    return "initramfs resume file created at: %s" % resume_hint


def update_initramfs(self) -> str:
    """Rebuilds the initramfs images, so they contain the resume configuration."""
    self.logger.info("Updating initramfs, this may take a moment...")
    self._run(split(self["initramfs_update_command"]))
    return "initramfs images updated."
