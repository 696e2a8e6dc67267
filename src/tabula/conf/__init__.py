''' Per module configuration.

    Every package declares its settings as UPPERCASE names of a
    `_meta/defaults.py` module. Values are overridden by the INI section
    named after the package, read from `base.ini` and `config.ini` (or the
    files listed in `TABULA_CONFIG_FILE`, separated by `|`):

        [tabula.form]
        DB_DSN = postgresql+asyncpg://tabula@localhost/tabula
        DB_CONFIG = {"pool_size": 10}

    INI values are parsed after the type of their default: bool, int,
    float, JSON for dict/list/tuple and plain text otherwise.
'''
import configparser
import json
import logging
import os
import re

from types import ModuleType
from typing import Any, Callable, Dict, Union

from . import sysdefaults


def env(name: str, defval: Any, coercer: Callable[[Any], Any] = None):
    value = os.environ.get(name, defval)
    return coercer(value) if callable(coercer) else value


TABULA_SYSTEM_DEFAULTS = env("TABULA_SYSTEM_DEFAULTS", "sysdefaults")
TABULA_CONFIG_FILES = env("TABULA_CONFIG_FILE", "base.ini|config.ini").split('|')
DEBUG_ALL_CONFIG_VALUE = "#ALL"
RX_INVALID_OPTION = re.compile(r"[^A-Za-z\d_]+")


def __module_config__():
    __parser__ = configparser.ConfigParser()
    __parser__.optionxform = lambda s: RX_INVALID_OPTION.sub("_", s.strip()).upper()
    __registry__: Dict[str, "ModuleConfig"] = {}

    def _read_option(section, key, default):
        # bool before int, bool is a subclass of int
        if isinstance(default, bool):
            return __parser__.getboolean(section, key)
        if isinstance(default, int):
            return __parser__.getint(section, key)
        if isinstance(default, float):
            return __parser__.getfloat(section, key)
        if isinstance(default, (dict, list, tuple)):
            return json.loads(__parser__.get(section, key))
        if isinstance(default, (str, type(None))):
            return __parser__.get(section, key)

        raise ValueError(f"Not supported config value type [{type(default)}].")

    def _declared(source):
        if isinstance(source, ModuleConfig):
            return source.items()

        return ((k, v) for k, v in vars(source).items() if k.isupper())

    class ModuleConfig(object):
        def __init__(self, module_name: str, *defaults):
            if module_name in __registry__:
                raise RuntimeError(f"Module [{module_name}] already configured.")

            if not __parser__.has_section(module_name):
                __parser__.add_section(module_name)

            self.__name__ = module_name
            self.__values__ = {}
            self.__sources__ = {}

            # First declaration wins, system defaults come last
            for source in defaults + (sysdefaults,):
                if source is None:
                    continue

                for key, default in _declared(source):
                    if key in self.__values__:
                        continue

                    try:
                        self.__values__[key] = _read_option(module_name, key, default)
                        self.__sources__[key] = TABULA_CONFIG_FILES
                    except configparser.NoOptionError:
                        self.__values__[key] = default
                        self.__sources__[key] = getattr(source, '__name__', '<unknown>')

            if sysdefaults.DEBUG_MODULE_CONFIG in (DEBUG_ALL_CONFIG_VALUE, module_name):
                self._dump()

        def _dump(self):
            logging.debug("=== MODULE CONFIG [%s] ===", self.__name__)
            for key, value in self.__values__.items():
                logging.debug(" - [%s] %r <= %s", key, value, self.__sources__[key])

        def __getattr__(self, name):
            if name.startswith('__'):
                raise AttributeError(name)

            try:
                return self.__values__[name]
            except KeyError:
                raise AttributeError(f"Module [{self.__name__}] has no config value [{name}]")

        def __getitem__(self, name):
            return self.__values__[name]

        def get(self, name, default=None):
            return self.__values__.get(name, default)

        def items(self):
            return self.__values__.items()

    def get_config(config_key: str, *defaults: Union[ModuleType, ModuleConfig]) -> ModuleConfig:
        if config_key not in __registry__:
            __registry__[config_key] = ModuleConfig(config_key, *defaults)

        return __registry__[config_key]

    # Missing files are skipped
    __parser__.read(TABULA_CONFIG_FILES)
    return ModuleConfig, get_config, get_config(TABULA_SYSTEM_DEFAULTS, sysdefaults)


ModuleConfig, getConfig, default_config = __module_config__()
