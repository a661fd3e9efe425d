"""
Logger - Central logging system for EQ Mixer

Usage:
    from eqmixer.utils.logger import logger

    logger.info("Chain rebuilt", component="EQ")
    logger.warning("Unknown channel", component="MIXER", details="id=9")
    logger.mixer(3, "mute True")

Component and details travel on the log record and are rendered as
"[COMPONENT] message - details" by ComponentFormatter, so every handler
(terminal, optional file, Qt console) shows the same text.
"""

import logging
import sys
from datetime import datetime
from enum import IntEnum
from pathlib import Path
from typing import Optional, Union
from PyQt5.QtCore import QObject, pyqtSignal


class LogLevel(IntEnum):
    """Log levels matching Python logging."""
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


def tag_message(msg: str, component: Optional[str] = None,
                details: Optional[str] = None) -> str:
    parts = [f"[{component}]"] if component else []
    parts.append(msg)
    if details:
        parts.append(f"- {details}")
    return " ".join(parts)


class ComponentFormatter(logging.Formatter):
    """Formatter exposing %(tagged)s, the message with its component tag."""

    def format(self, record: logging.LogRecord) -> str:
        record.tagged = tag_message(record.getMessage(),
                                    getattr(record, "component", None),
                                    getattr(record, "details", None))
        return super().format(record)


class LogSignalEmitter(QObject):
    log_message = pyqtSignal(str, int, str)  # message, level, timestamp


class QtSignalHandler(logging.Handler):
    """Re-emits records as Qt signals; slots run on the receiver's thread."""

    def __init__(self, emitter: LogSignalEmitter):
        super().__init__()
        self.emitter = emitter

    def emit(self, record: logging.LogRecord):
        try:
            self.emitter.log_message.emit(
                self.format(record), record.levelno, datetime.now().strftime("%H:%M:%S")
            )
        except Exception:
            self.handleError(record)


class EqMixerLogger:
    """
    Central logger for the equalizer/mixer core.

    The GUI console sees every level. The terminal defaults to INFO and is
    adjusted with configure(), which can also attach a log file that records
    everything from DEBUG up.
    """

    LINE_FORMAT = "%(asctime)s [%(levelname)s] %(tagged)s"

    def __init__(self):
        self._logger = logging.getLogger("eqmixer")
        self._logger.setLevel(logging.DEBUG)
        self._logger.propagate = False

        self.signal_emitter = LogSignalEmitter()

        self._console_handler = logging.StreamHandler(sys.stdout)
        self._console_handler.setLevel(logging.INFO)
        self._console_handler.setFormatter(ComponentFormatter(self.LINE_FORMAT, datefmt="%H:%M:%S"))
        self._logger.addHandler(self._console_handler)

        self._qt_handler = QtSignalHandler(self.signal_emitter)
        self._qt_handler.setLevel(logging.DEBUG)
        self._qt_handler.setFormatter(ComponentFormatter("%(tagged)s"))
        self._logger.addHandler(self._qt_handler)

        self._file_handler: Optional[logging.FileHandler] = None

    def configure(self, console_level: LogLevel = LogLevel.INFO,
                  log_file: Optional[Union[str, Path]] = None):
        """Set the terminal level and (re)attach the log file, if one is given."""
        self._console_handler.setLevel(console_level)
        if log_file is None:
            return
        self.close_file()
        self._file_handler = logging.FileHandler(log_file, encoding="utf-8")
        self._file_handler.setLevel(logging.DEBUG)
        self._file_handler.setFormatter(ComponentFormatter(self.LINE_FORMAT))
        self._logger.addHandler(self._file_handler)

    def close_file(self):
        if self._file_handler is not None:
            self._logger.removeHandler(self._file_handler)
            self._file_handler.close()
            self._file_handler = None

    def log(self, level: int, msg: str, component: Optional[str] = None,
            details: Optional[str] = None):
        self._logger.log(level, msg, extra={"component": component, "details": details})

    def debug(self, msg: str, component: Optional[str] = None, details: Optional[str] = None):
        self.log(logging.DEBUG, msg, component, details)

    def info(self, msg: str, component: Optional[str] = None, details: Optional[str] = None):
        self.log(logging.INFO, msg, component, details)

    def warning(self, msg: str, component: Optional[str] = None, details: Optional[str] = None):
        self.log(logging.WARNING, msg, component, details)

    def error(self, msg: str, component: Optional[str] = None, details: Optional[str] = None):
        self.log(logging.ERROR, msg, component, details)

    # Per-component shortcuts, all at DEBUG

    def eq(self, msg: str, details: Optional[str] = None):
        self.debug(msg, "EQ", details)

    def mixer(self, channel_id: int, msg: str, details: Optional[str] = None):
        self.debug(f"Ch {channel_id}: {msg}", "MIXER", details)

    def store(self, msg: str, details: Optional[str] = None):
        self.debug(msg, "STORE", details)


logger = EqMixerLogger()
