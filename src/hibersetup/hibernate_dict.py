__author__ = "desultory"
__version__ = "1.2.0"

from collections import UserDict
from importlib import import_module
from pathlib import Path
from queue import Queue
from tomllib import TOMLDecodeError, load
from typing import Callable

from zenlib.logging import loggify
from zenlib.types import NoDupFlatList
from zenlib.util import colorize, handle_plural, pretty_print


@loggify
class HibernateConfigDict(UserDict):
    """
    Dict for hibersetup config

    IMPORTANT!!!:
        This dict does not act like a normal dict, setitem is designed to append when the overrides are used
        Default parameters are defined in builtin_parameters

    By default hibersetup.base.base is loaded, which pulls in every module needed for a full run.
    If NO_BASE is set to True, hibersetup.base.core is loaded instead, which only contains the essentials.

    If parameters which are not registerd are set, they are added to the processing queue and processed when the type is known.
    """

    builtin_parameters = {
        "modules": NoDupFlatList,  # A list of the names of modules which have been loaded, mostly used for dependency checking
        "imports": dict,  # A dict of functions to be run, under their respective hooks
        "import_order": dict,  # A dict containing order requirements for imports
        "validated": bool,  # Set once detection is done, the config is read only after this
        "custom_parameters": dict,  # Custom parameters loaded from imports
        "custom_processing": dict,  # Custom processing functions which will be run to validate and process parameters
        "_processing": dict,  # A dict of queues containing parameters which have been set before the type was known
    }

    def __init__(self, NO_BASE=False, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for parameter, default_type in self.builtin_parameters.items():
            if default_type == NoDupFlatList:
                self.data[parameter] = default_type(no_warn=True, _log_bump=5, logger=self.logger)
            else:
                self.data[parameter] = default_type()
        self["import_order"] = {"before": {}, "after": {}}
        if not NO_BASE:
            self["modules"] = "hibersetup.base.base"
        else:
            self["modules"] = "hibersetup.base.core"

    def import_args(self, args: dict, quiet=False) -> None:
        """Imports data from an argument dict."""
        log_level = 10 if quiet else 20
        for arg, value in args.items():
            self.logger.log(log_level, f"[{colorize(arg, 'blue')}] Setting from arguments: {colorize(value, 'green')}")

            if arg == "modules":  # allow loading modules by name from the command line
                for module in value.split(","):
                    self[arg] = module
            elif self.get(arg) != value:
                self[arg] = value
            else:
                self.logger.debug("Skipping unchanged argument '%s' with value: %s" % (arg, value))

    def __setitem__(self, key: str, value) -> None:
        if self["validated"]:
            return self.logger.error(
                "[%s] Config is validated, refusing to set value: %s" % (key, colorize(value, "red"))
            )
        if any(key in d for d in (self.builtin_parameters, self["custom_parameters"])):
            return self.handle_parameter(key, value)

        self.logger.debug("[%s] Unable to determine expected type, queueing value: %s" % (key, value))
        if key != "logger":
            if key not in self["_processing"]:
                self["_processing"][key] = Queue()
            self["_processing"][key].put(value)

    def handle_parameter(self, key: str, value) -> None:
        """
        Handles a config parameter, setting the value and processing it if the type is known.
        Raises a KeyError if the parameter is not registered.

        Uses custom processing functions if they are defined, otherwise uses the standard setters.
        """
        for d in (self.builtin_parameters, self["custom_parameters"]):
            if expected_type := d.get(key):
                break
        else:
            raise KeyError("Parameter not registered: %s" % key)

        if hasattr(self, f"_process_{key}"):
            self.logger.log(5, "[%s] Using builtin setitem: %s" % (key, f"_process_{key}"))
            return getattr(self, f"_process_{key}")(value)

        if func := self["custom_processing"].get(f"_process_{key}"):
            self.logger.log(5, "[%s] Using custom setitem: %s" % (key, func.__name__))
            return func(self, value)

        if func := self["custom_processing"].get(f"_process_{key}_multi"):
            self.logger.log(5, "[%s] Using custom plural setitem: %s" % (key, func.__name__))
            return handle_plural(func)(self, value)

        if expected_type in (list, NoDupFlatList):  # Append to lists, don't replace
            self.logger.log(5, "Using list setitem for: %s" % key)
            return self[key].append(value)

        if expected_type is dict:  # Create new keys, update existing
            if key not in self:
                self.logger.log(5, "Setting dict '%s' to: %s" % (key, value))
                return super().__setitem__(key, value)
            self.logger.log(5, "Updating dict '%s' with: %s" % (key, value))
            return self[key].update(value)

        self.logger.debug("Setting custom parameter: %s" % key)
        self.data[key] = expected_type(value)

    @handle_plural
    def _process_custom_parameters(self, parameter_name: str, parameter_type: type) -> None:
        """
        Updates the custom_parameters attribute.
        Sets the initial value of the parameter based on the type.
        """
        if isinstance(parameter_type, str):
            parameter_type = eval(parameter_type)

        self["custom_parameters"][parameter_name] = parameter_type
        self.logger.debug("Registered custom parameter '%s' with type: %s" % (parameter_name, parameter_type))

        match parameter_type.__name__:
            case "NoDupFlatList":
                self.data[parameter_name] = NoDupFlatList(no_warn=True, _log_bump=5, logger=self.logger)
            case "list" | "dict":
                self.data[parameter_name] = parameter_type()
            case "bool":
                self.data[parameter_name] = False
            case "int":
                self.data[parameter_name] = 0
            case "str":
                self.data[parameter_name] = ""
            case "Path":
                self.data[parameter_name] = Path()
            case _:
                self.logger.warning("Leaving '%s' as None" % parameter_name)
                self.data[parameter_name] = None

    def _process_unprocessed(self, parameter_name: str) -> None:
        """Processes queued values for a parameter."""
        if parameter_name not in self["_processing"]:
            self.logger.log(5, "No queued values for: %s" % parameter_name)
            return

        value_queue = self["_processing"].pop(parameter_name)
        while not value_queue.empty():
            value = value_queue.get()
            self.logger.debug("[%s] Processing queued value: %s" % (parameter_name, value))
            self[parameter_name] = value

    def _process_import_order(self, import_order: dict) -> None:
        """Processes the import order, setting the order requirements for import functions.
        Ensures the order type is valid (before, after),
        that the function is not ordered after itself.
        Ensures that the same function/target is not in another order type.
        """
        self.logger.debug("Processing import order:\n%s" % pretty_print(import_order))
        order_types = ["before", "after"]
        for order_type, order_dict in import_order.items():
            if order_type not in order_types:
                raise ValueError("Invalid import order type: %s" % order_type)
            for function in order_dict:
                targets = order_dict[function]
                if not isinstance(targets, list):
                    targets = [targets]
                if function in targets:
                    raise ValueError("Function cannot be ordered after itself: %s" % function)
                for other_target in [self["import_order"].get(ot, {}) for ot in order_types if ot != order_type]:
                    if function in other_target and any(target in other_target[function] for target in targets):
                        raise ValueError("Function cannot be ordered in multiple types: %s" % function)
                order_dict[function] = targets

            if order_type not in self["import_order"]:
                self["import_order"][order_type] = {}
            self["import_order"][order_type].update(order_dict)

        self.logger.debug("Registered import order requirements: %s" % import_order)

    def _process_import_functions(self, module, functions: list) -> list[Callable]:
        """Returns the named functions from the module, in the order they are listed."""
        function_list = []
        for f in functions:
            if not isinstance(f, str):
                raise ValueError("Invalid type for import function: %s" % type(f))
            function_list.append(getattr(module, f))
        return function_list

    @handle_plural
    def _process_imports(self, import_type: str, import_value: dict) -> None:
        """Processes imports in a module, importing the functions and adding them to the appropriate list."""
        for module_name, function_names in import_value.items():
            self.logger.debug("[%s]<%s> Importing module functions : %s" % (module_name, import_type, function_names))
            module = import_module(module_name)

            if import_type not in self["imports"]:  # Import types are only actually created when needed
                self.logger.log(5, "Creating import type: %s" % import_type)
                self["imports"][import_type] = NoDupFlatList(_log_bump=10, logger=self.logger)

            function_list = self._process_import_functions(module, function_names)
            if not function_list:
                self.logger.warning("[%s] No functions found for import: %s" % (module_name, import_type))
                continue

            self["imports"][import_type] += function_list
            self.logger.debug("[%s] Updated import functions: %s" % (import_type, function_list))

            if import_type == "config_processing":  # Register the functions for processing after all imports are done
                for function in function_list:
                    self["custom_processing"][function.__name__] = function
                    self.logger.debug("Registered config processing function: %s" % function.__name__)
                    self._process_unprocessed(function.__name__.removeprefix("_process_").removesuffix("_multi"))

    @handle_plural
    def _process_modules(self, module: str) -> None:
        """processes a single module into the config"""
        if module in self["modules"]:
            self.logger.debug("Module '%s' already loaded" % module)
            return

        self.logger.info("Processing module: %s" % colorize(module, bold=True))

        module_subpath = module.replace(".", "/") + ".toml"

        module_path = Path(__file__).parent.parent / module_subpath
        if not module_path.exists():
            raise FileNotFoundError("Unable to locate module: %s" % module)
        self.logger.debug("Module path: %s" % module_path)

        with open(module_path, "rb") as module_file:
            try:
                module_config = load(module_file)
            except TOMLDecodeError as e:
                raise ValueError("Unable to load module config: %s" % module) from e

        if imports := module_config.get("imports"):
            self.logger.debug("[%s] Processing imports: %s" % (module, imports))
            self["imports"] = imports

        custom_parameters = module_config.get("custom_parameters", {})
        if custom_parameters:
            self.logger.debug("[%s] Processing custom parameters: %s" % (module, custom_parameters))
            self["custom_parameters"] = custom_parameters

        for name, value in module_config.items():  # Process config values, in order they are defined
            if name in ["imports", "custom_parameters"]:
                self.logger.log(5, "[%s] Skipping '%s'" % (module, name))
                continue
            self.logger.debug("[%s] (%s) Setting value: %s" % (module, name, value))
            self[name] = value

        for custom_parameter in custom_parameters:
            self._process_unprocessed(custom_parameter)

        # Append the module to the list of loaded modules, avoid recursion
        self["modules"].append(module)

    def validate(self) -> None:
        """Checks that all values are processed, sets the validated flag.
        Once validated, the config refuses new values."""
        if self["_processing"]:
            self.logger.critical(
                "Unprocessed config values: %s"
                % colorize(", ".join(list(self["_processing"].keys())), "red", bold=True)
            )
        self["validated"] = True

    def __str__(self) -> str:
        return pretty_print(self.data)
