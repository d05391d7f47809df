from pathlib import Path
from shutil import copy2
from subprocess import CompletedProcess, TimeoutExpired, run
from typing import Union

from zenlib.util import colorize as c_

__version__ = "1.1.0"
__author__ = "desultory"


YES_ANSWERS = ["y", "yes"]
NO_ANSWERS = ["n", "no"]


def get_subpath(path: Path, subpath: Union[Path, str]) -> Path:
    """Returns the subpath of a path."""
    if not isinstance(subpath, Path):
        subpath = Path(subpath)

    if subpath.is_relative_to(path) and path != Path("/"):
        return subpath

    if subpath.is_absolute():
        subpath = subpath.relative_to("/")
    return path / subpath


class SetupHelpers:
    """Mixin class for the HibernateSetup class."""

    def _get_path(self, path: Union[Path, str]) -> Path:
        """Returns the host path resolved under the sysroot.
        With the default sysroot of '/', paths are returned unchanged."""
        return get_subpath(self["sysroot"], path)

    def _mkdir(self, path: Union[Path, str], resolve_root=True) -> None:
        """Creates a directory and any missing parents.
        If resolve_root is True, the path is resolved under the sysroot."""
        if resolve_root:
            path = self._get_path(path)

        if path.is_dir():
            return self.logger.debug("Directory already exists: %s" % path)

        path.mkdir(parents=True)
        self.logger.info("Created directory: %s" % c_(path, "green"))

    def _write(self, file_name: Union[Path, str], contents: list[str], chmod_mask=0o644, append=False) -> Path:
        """
        Writes a file under the sysroot, creating parent directories as needed.
        Existing files are truncated unless append is set.
        A trailing newline is always written.
        Returns the path which was written.
        """
        file_path = self._get_path(file_name)

        if not file_path.parent.is_dir():
            self.logger.debug("Parent directory for '%s' does not exist: %s" % (file_path.name, file_path.parent))
            self._mkdir(file_path.parent, resolve_root=False)

        if isinstance(contents, list):
            contents = "\n".join(contents)
        if not contents.endswith("\n"):
            contents += "\n"

        if file_path.is_file() and not append:
            self.logger.warning("Overwriting file: %s" % c_(file_path, "yellow"))

        self.logger.debug("[%s] Writing contents:\n%s" % (file_path, contents))
        with open(file_path, "a" if append else "w") as file:
            file.write(contents)

        self.logger.info("Wrote file: %s" % c_(file_path, "green", bright=True))
        file_path.chmod(chmod_mask)
        self.logger.debug("[%s] Set file permissions: %s" % (file_path, oct(chmod_mask)))
        return file_path

    def _copy(self, source: Union[Path, str], dest: Union[Path, str]) -> Path:
        """Copies a file under the sysroot, preserving contents and metadata.

        Raises a FileExistsError if the destination already exists, copies are never overwritten.
        """
        source_path = self._get_path(source)
        dest_path = self._get_path(dest)

        if dest_path.exists():
            raise FileExistsError("Refusing to overwrite existing file: %s" % dest_path)

        self.logger.info("Copying '%s' to '%s'" % (c_(source_path, "blue"), c_(dest_path, "green")))
        copy2(source_path, dest_path)
        return dest_path

    def _run(self, args: list[str], timeout=None, fail_silent=False, fail_hard=True) -> CompletedProcess:
        """Runs a command, returns the CompletedProcess object on success.
        If a timeout is set, the command will fail hard if it times out.
        If fail_silent is set, non-zero return codes will not log stderr/stdout.
        If fail_hard is set, non-zero return codes will raise a RuntimeError.
        """

        def print_err(ret) -> None:
            if args := ret.args:
                if isinstance(args, tuple):
                    args = args[0]  # When there's a timeout, args is a (args, timeout) tuple
                self.logger.error("Failed command: %s" % c_(" ".join(args), "red", bright=True))
            if stdout := ret.stdout:
                self.logger.error("Command output:\n%s" % stdout.decode())
            if stderr := ret.stderr:
                self.logger.error("Command error:\n%s" % stderr.decode())

        timeout = timeout or self["timeout"]
        cmd_args = [str(arg) for arg in args]
        self.logger.debug("Running command: %s" % " ".join(cmd_args))
        try:
            cmd = run(cmd_args, capture_output=True, timeout=timeout)
        except TimeoutExpired as e:
            print_err(e)
            raise RuntimeError("[%ds] Command timed out: %s" % (timeout, cmd_args)) from e

        if cmd.returncode != 0:
            if not fail_silent:
                print_err(cmd)
            if fail_hard:
                raise RuntimeError("Failed to run command: %s" % " ".join(cmd.args))

        return cmd

    def _prompt(self, question: str, default=False) -> bool:
        """Asks a yes/no question, returns the answer.
        If assume_yes is set, the question is logged and answered with yes.
        An empty answer (or EOF) returns the default.
        """
        if self["assume_yes"]:
            self.logger.info("%s %s" % (question, c_("yes", "green")))
            return True

        choices = "(Y/n)" if default else "(y/N)"
        try:
            answer = input(f"{question} {choices}: ").strip().lower()
        except EOFError:
            answer = ""

        if not answer:
            return default
        if default:  # Only an explicit no declines when the default is yes
            return answer not in NO_ANSWERS
        return answer in YES_ANSWERS

    def _select(self, question: str, options: list[str]) -> str:
        """Presents an enumerated list of options, returns the selected option.
        Raises a ValueError for anything that isn't a listed number, there is no re-prompt."""
        print(question)
        for index, option in enumerate(options, start=1):
            print(f"  {index}) {option}")
        try:
            answer = input("#? ").strip()
        except EOFError:
            answer = ""

        if not answer.isdigit() or not 1 <= int(answer) <= len(options):
            raise ValueError("Invalid selection: %r" % answer)
        return options[int(answer) - 1]

    def sort_hook_functions(self, hook: str) -> None:
        """Sorts the functions for the specified hook based on the import order.
        "before" functions are moved before the target function,
        "after" functions' target function is moved before the current function.

        Filters orders which do not contain functions or targets in the current hook.
        """
        func_names = [func.__name__ for func in self["imports"].get(hook, [])]
        if not func_names:
            return self.logger.debug("No functions for hook: %s" % hook)

        b = self["import_order"].get("before", {})
        before = {k: v for k, v in b.items() if k in func_names and any(subv in func_names for subv in b[k])}
        a = self["import_order"].get("after", {})
        after = {k: v for k, v in a.items() if k in func_names and any(subv in func_names for subv in a[k])}

        if not before and not after:
            return self.logger.debug("No import order specified for hook: %s" % hook)

        def iter_order(order, direction):
            """Iterate over all functions in an import order list,
            using this information to move the order of function names in the import list.

            Returns True if any changes were made, False otherwise."""
            changed = False

            for func_name, other_funcs in order.items():
                func_index = func_names.index(func_name)
                for other_func in other_funcs:
                    try:
                        other_index = func_names.index(other_func)
                    except ValueError:
                        continue

                    if direction == "before" and func_index > other_index:
                        self.logger.debug("[%s] Moving function before: %s" % (func_name, other_func))
                        func_names.insert(other_index, func_names.pop(func_index))
                        self["imports"][hook].insert(other_index, self["imports"][hook].pop(func_index))
                        changed = True
                    elif direction == "after" and func_index < other_index:
                        self.logger.debug("[%s] Moving function before: %s" % (other_func, func_name))
                        func_names.insert(func_index, func_names.pop(other_index))
                        self["imports"][hook].insert(func_index, self["imports"][hook].pop(other_index))
                        changed = True
                    else:
                        self.logger.log(5, "Function %s already %s: %s" % (func_name, direction, other_func))
                    func_index = func_names.index(func_name)  # Update the index after moving
            return changed

        max_iterations = len(func_names) * (len(before) + 1) * (len(after) + 1)  # Prevent infinite loops
        iterations = max_iterations
        while iterations:
            iterations -= 1
            if not any([iter_order(before, "before"), iter_order(after, "after")]):
                self.logger.debug(
                    "[%s] Import order converged after %s iterations" % (hook, max_iterations - iterations)
                )
                break
        else:
            self.logger.error("Import list: %s" % func_names)
            self.logger.error("Before: %s" % before)
            self.logger.error("After: %s" % after)
            raise ValueError("Import order did not converge after %s iterations" % max_iterations)
