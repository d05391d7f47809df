#!/usr/bin/env python

from hibersetup.exceptions import SetupCancelled
from hibersetup.hibernate_setup import HibernateSetup
from zenlib.util import get_args_n_logger, get_kwargs_from_args


def main():
    arguments = [{'flags': ['-c', '--config'], 'action': 'store', 'help': 'set the config file location'},
                 {'flags': ['-m', '--modules'], 'action': 'store', 'help': 'Define config modules to load, comma separated'},
                 {'flags': ['--sysroot'], 'action': 'store', 'help': 'resolve all host paths under this directory'},
                 {'flags': ['--resume-device'], 'action': 'store', 'help': 'swap partition to resume from, such as /dev/sda2'},
                 {'flags': ['-y', '--yes'], 'action': 'store_true', 'help': 'answer yes to all prompts', 'dest': 'assume_yes'},
                 {'flags': ['--lid'], 'action': 'store_true', 'help': 'offer lid-close hibernate configuration on laptops', 'dest': 'configure_lid'},
                 {'flags': ['--no-lid'], 'action': 'store_false', 'help': 'skip lid-close hibernate configuration', 'dest': 'configure_lid'},
                 {'flags': ['--reboot'], 'action': 'store_true', 'help': 'reboot without asking once done'},
                 {'flags': ['--no-reboot'], 'action': 'store_false', 'help': 'do not reboot once done', 'dest': 'reboot'},
                 {'flags': ['--validate'], 'action': 'store_true', 'help': 'fail on unknown config values'},
                 {'flags': ['--no-validate'], 'action': 'store_false', 'help': 'allow unknown config values', 'dest': 'validate'},
                 {'flags': ['--print-config'], 'action': 'store_true', 'help': 'print the final config dict'}]

    args, logger = get_args_n_logger(package=__package__, description='Ubuntu swap partition hibernation setup', arguments=arguments, drop_default=True)
    kwargs = get_kwargs_from_args(args, logger=logger)
    kwargs.pop('print_config', None)  # This is not a valid kwarg for HibernateSetup

    logger.debug(f"Using the following kwargs: {kwargs}")
    try:
        setup = HibernateSetup(**kwargs)
        setup.setup()
    except SetupCancelled as e:
        logger.info(e)
        exit(0)
    except Exception as e:
        logger.debug(e, exc_info=True)
        logger.error(e)
        exit(1)

    if 'print_config' in args and args.print_config:
        print(setup.config_dict)


if __name__ == '__main__':
    main()
