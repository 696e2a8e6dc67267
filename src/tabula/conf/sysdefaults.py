''' Last resort values of the settings shared by every module (logging,
    config debugging). A module may redeclare any of them in its own
    defaults or INI section.
'''

LOG_LEVEL = "info"
LOG_FORMATTER = (
    "[%(asctime)-8s] %(process)3d "
    "[%(name)14.14s - %(filename)14.14s:%(lineno)-4d] %(levelname)-7s "
    "%(message)s"
)
LOG_DATEFMT = "%H:%M:%S"

# One output or a list of outputs, see `tabula.logs.getLoggerHandler`
LOG_OUTPUT = None
LOG_COLORED = False

# Dump the resolved config of a module at debug level, e.g. "tabula.form" or "#ALL"
DEBUG_MODULE_CONFIG = None
