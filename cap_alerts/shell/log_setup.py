"""Logging setup - Imperative Shell.

Entry points configure handlers once; components receive a logger
(or a level to build one from) through their constructors.
"""

import logging

from cap_alerts.core.config import LogLevel


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: LogLevel = LogLevel.INFO) -> None:
    """Configure root logging for an entry point.

    Args:
        level: Root log level
    """
    logging.basicConfig(level=level.value, format=LOG_FORMAT)


class LevelAdapter(logging.LoggerAdapter):
    """Logger view with its own threshold.

    Records at or above `level` go to the wrapped logger's handlers.
    The wrapped logger's own level is never changed.
    """

    def __init__(self, logger: logging.Logger, level: int) -> None:
        super().__init__(logger, {})
        self.level = level

    def isEnabledFor(self, level: int) -> bool:
        return level >= self.level and not self.logger.disabled

    def getEffectiveLevel(self) -> int:
        return self.level

    def setLevel(self, level: int) -> None:
        self.level = level

    def log(self, level, msg, *args, **kwargs):
        if self.isEnabledFor(level):
            msg, kwargs = self.process(msg, kwargs)
            self.logger._log(level, msg, args, **kwargs)


def resolve_logger(
    log: "logging.Logger | logging.LoggerAdapter | LogLevel | None",
    name: str,
    default_level: LogLevel = LogLevel.INFO,
) -> "logging.Logger | logging.LoggerAdapter":
    """Turn a logger-or-level option into a logger.

    Args:
        log: An existing logger (anything with log(level, msg, *args)),
             a LogLevel to log at, or None for default_level
        name: Logger name used when one has to be created
        default_level: Level used when log is None

    Returns:
        Logger to use. For a level, a new LevelAdapter over the named
        logger; the named logger's own level is not changed.
    """
    if log is not None and not isinstance(log, LogLevel):
        return log

    level = log if isinstance(log, LogLevel) else default_level
    return LevelAdapter(logging.getLogger(name), level.value)
