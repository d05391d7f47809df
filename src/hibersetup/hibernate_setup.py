from importlib.metadata import PackageNotFoundError, version
from tomllib import TOMLDecodeError, load

from zenlib.logging import loggify
from zenlib.util import colorize as c_

from hibersetup.hibernate_dict import HibernateConfigDict

from .exceptions import ValidationError
from .setup_helpers import SetupHelpers


DEFAULT_CONFIG = "/etc/hibersetup/config.toml"


@loggify
class HibernateSetup(SetupHelpers):
    def __init__(self, config=DEFAULT_CONFIG, *args, **kwargs):
        self.config_dict = HibernateConfigDict(NO_BASE=kwargs.pop("NO_BASE", False), logger=self.logger)

        # Hooks run before the config is frozen, these may set config values and prompt
        self.detect_tasks = ["checks", "detect"]
        # Hooks run after the config is frozen, these change the system
        self.setup_tasks = ["configure", "apply", "lid", "final"]

        # Status lines returned by hook functions, in the order they ran
        self.results = []

        # Passed kwargs must be imported early, so they will be processed against the base configuration
        self.config_dict.import_args(kwargs)
        try:
            self.load_config(config)  # The user config is loaded over the base config, clobbering kwargs
            self.config_dict.import_args(kwargs, quiet=True)  # Re-import kwargs to apply them over the config
        except FileNotFoundError:
            if config and config != DEFAULT_CONFIG:
                self.logger.critical("[%s] Config file not found, using the base config." % config)
            else:
                self.logger.info("No config file found, using the base config.")
        except TOMLDecodeError as e:
            raise ValueError("[%s] Error decoding config file: %s" % (config, e))

    def load_config(self, config_filename) -> None:
        """
        Loads the config from the specified toml file.
        Populates self.config_dict with the config.
        """
        if not config_filename:
            raise FileNotFoundError("Config file not specified.")

        with open(config_filename, "rb") as config_file:
            self.logger.info("Loading config file: %s" % c_(config_file.name, "blue", bold=True, bright=True))
            raw_config = load(config_file)

        for config, value in raw_config.items():
            self.logger.debug("[%s] (%s) Processing config value: %s" % (config_file.name, config, value))
            self[config] = value

        self.logger.debug("Loaded config:\n%s" % self.config_dict)

    #  If the setup is used as a dictionary, it will use the config_dict.
    def __setitem__(self, key, value):
        self.config_dict[key] = value

    def __getitem__(self, item):
        return self.config_dict[item]

    def __contains__(self, item):
        return item in self.config_dict

    def get(self, item, default=None):
        return self.config_dict.get(item, default)

    def __getattr__(self, item):
        """Allows access to the config dict via the HibernateSetup object."""
        if item not in self.__dict__ and item != "config_dict":
            return self[item]
        return super().__getattr__(item)

    def setup(self) -> None:
        """Configures the system for hibernation.

        Detection hooks run first, then the config is validated and frozen,
        then the hooks which change the system are run.
        Any exception stops the run, changes which were already made are left in place.
        """
        try:
            ver = version("hibersetup")
        except PackageNotFoundError:
            ver = "9999"
        self._log_run(f"Running hibersetup v{ver}")

        for task in self.detect_tasks:
            self.run_task(task)

        self.config_dict.validate()
        if self["validate"] and self["_processing"]:
            raise ValidationError(
                "Failed to validate config. Unprocessed values: %s" % ", ".join(self["_processing"].keys())
            )

        for task in self.setup_tasks:
            self.run_task(task)

    def run_task(self, task: str) -> list[str]:
        """Runs a setup task, logging the status lines returned by its functions."""
        self._log_run(task)
        out = self.run_hook(task)
        for line in out:
            self.logger.info(c_(line, "green"))
        self.results.extend(out)
        return out

    def run_func(self, function) -> str:
        """Runs an imported function, returns its status line, if any."""
        self.logger.debug("Running function: %s" % c_(function.__name__, "blue", bold=True))

        if function_output := function(self):
            if not isinstance(function_output, str):
                raise TypeError("[%s] Function returned a non-string value: %s" % (function.__name__, function_output))
            self.logger.debug("[%s] Function returned: %s" % (function.__name__, function_output))
            return function_output
        self.logger.debug("[%s] Function returned no output" % function.__name__)

    def run_hook(self, hook: str) -> list[str]:
        """Runs all functions for the specified hook.
        If the function is masked, it will be skipped.
        If the function is in import_order, handle the ordering
        """
        self.sort_hook_functions(hook)  # This is in setup_helpers.py
        out = []
        for function in self["imports"].get(hook, []):
            if function.__name__ in self["masks"].get(hook, []):
                self.logger.warning(
                    "[%s] Skipping masked function: %s" % (hook, c_(function.__name__, "yellow", bold=True))
                )
                continue

            if function_output := self.run_func(function):
                out.append(function_output)
        return out

    def _log_run(self, logline) -> None:
        self.logger.info(f"-- | {c_(logline, 'blue', bold=True)}")

    def __str__(self) -> str:
        return str(self.config_dict)
