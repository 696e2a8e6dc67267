''' Module loggers configured from the module config.

    Each package gets a logger named after it, with its own level, output
    handlers and format:

        [tabula.form]
        LOG_LEVEL = debug
        LOG_OUTPUT = ["stderr", "file:///var/log/tabula-form.log"]

    Supported outputs: `stderr`, `stdout`, `file://<path>`,
    `syslog://host:port`, `udp://host:port`, `tcp://host:port`.
'''
import logging
import platform
import sys
from logging import handlers
from typing import Optional

from tabula.conf import ModuleConfig, default_config, getConfig

SYSLOG_PORT = 514


def _syslog_handler(host, port):
    return handlers.SysLogHandler(address=(host, port), facility=handlers.SysLogHandler.LOG_LOCAL0)


NETWORK_HANDLERS = {
    "syslog": (_syslog_handler, SYSLOG_PORT),
    "udp": (handlers.DatagramHandler, None),
    "tcp": (handlers.SocketHandler, None),
}


def getLoggerHandler(logspec: Optional[str] = None):
    if logspec in (None, "stderr"):
        return logging.StreamHandler(sys.stderr)

    if logspec == "stdout":
        return logging.StreamHandler(sys.stdout)

    scheme, sep, location = logspec.partition("://")
    if not sep:
        raise ValueError("Cannot parse logging output: %s" % logspec)

    if scheme == "file":
        return logging.FileHandler(location)

    if scheme not in NETWORK_HANDLERS:
        raise ValueError("Unsupported logging output: %s" % logspec)

    handler_cls, default_port = NETWORK_HANDLERS[scheme]
    host, _, port = location.partition(":")
    return handler_cls(host or "localhost", int(port) if port else default_port)


def _log_level(log_config):
    level = log_config.get("LOG_LEVEL")
    if not isinstance(level, str):
        return logging.NOTSET

    return logging.getLevelNamesMapping().get(level.upper(), logging.NOTSET)


def _log_outputs(log_config):
    outputs = log_config.get("LOG_OUTPUT")
    if not isinstance(outputs, (list, tuple)):
        outputs = (outputs,)

    return [getLoggerHandler(output) for output in outputs if output]


def __closure__():
    LOGGERS = dict()

    def setupLogger(module_name: Optional[str], log_config: ModuleConfig):
        module_logger = LOGGERS[module_name] = logging.getLogger(module_name)
        if log_config is None:
            return module_logger

        log_level = _log_level(log_config)
        module_logger.setLevel(log_level)
        log_handlers = _log_outputs(log_config)

        log_formatter = log_config.get("LOG_FORMATTER")
        if isinstance(log_formatter, str):
            fmt = log_formatter.format(hostname=platform.node().split(".")[0])
            for handler in log_handlers:
                handler.setFormatter(logging.Formatter(fmt, log_config.get("LOG_DATEFMT")))

            if default_config.LOG_COLORED:
                import coloredlogs
                coloredlogs.install(fmt=fmt, level=log_level, logger=module_logger)

        if module_name is None:
            # Root logger
            if log_handlers:
                logging.basicConfig(handlers=log_handlers)
        else:
            for handler in log_handlers:
                module_logger.addHandler(handler)

        return module_logger

    def getLogger(module_name, log_config=None):
        if module_name not in LOGGERS:
            setupLogger(module_name, log_config or getConfig(module_name))

        return LOGGERS[module_name]

    return getLogger, setupLogger(None, default_config)


getLogger, default_logger = __closure__()
