''' Tabula: form repository and tenant-aware form instance store.

    Every package calls `setupModule` from its `_meta` package to get its
    `config` (see `tabula.conf`) and `logger` (see `tabula.logs`).
'''
import importlib
import logging

from .conf import defaults

__version__ = "0.3.0"
__all__ = ('config', 'logger', 'setupModule')

META_SUFFIX = '._meta'


def setupModule(module_name, *upstreams):
    ''' Config and logger of a package. `module_name` is usually the
        `__name__` of the package's `_meta`, whose `defaults` module is
        loaded when no upstream defaults are given. '''
    from tabula.logs import getLogger
    from tabula.conf import getConfig

    config_key = module_name.removesuffix(META_SUFFIX)

    if not upstreams:
        try:
            upstreams = (importlib.import_module(f"{module_name}.defaults"),)
        except ImportError as e:
            logging.warning("No configuration defaults for module [%s]: %s", module_name, e)

    config = getConfig(config_key, *upstreams)
    return config, getLogger(config_key, config)


config, logger = setupModule(__name__, defaults)
