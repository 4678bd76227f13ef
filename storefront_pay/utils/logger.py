"""
Per-app loggers for the callback service and the notification worker.

Both apps share the same data layer and gateway code. That shared code asks
``get_current_logger()`` for a logger instead of holding its own, so an order
update made while handling a VNPay IPN lands in ``payment_callback.log`` and
the same update made by a script lands in ``storefront_pay.log``.

    with set_app_context(AppLogger.PAYMENT_CALLBACK):
        await reconciler.confirm(order_id, "00")   # logs via callback_logger
"""

import importlib
import logging
import os
import sys
from contextvars import ContextVar
from enum import Enum
from logging.handlers import RotatingFileHandler
from typing import Optional

LOG_DIR = os.getenv("LOG_DIR", "logs")
os.makedirs(LOG_DIR, exist_ok=True)

_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_MAX_BYTES = 10 * 1024 * 1024
_BACKUPS = 5


def _rotating(path: str, formatter: logging.Formatter, level: int = logging.NOTSET) -> RotatingFileHandler:
    handler = RotatingFileHandler(path, maxBytes=_MAX_BYTES, backupCount=_BACKUPS, encoding="utf-8")
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def setup_logger(name: str = "app_logger", log_level: int = logging.INFO, log_file: str = None):
    """
    Create (or return the already configured) logger ``name``.

    Records go to stdout, to ``LOG_DIR/<log_file>`` and, from ERROR up, to
    ``LOG_DIR/<log_file stem>_error.log`` where rejected callbacks can be
    audited.

    Args:
        name (str): The name of the logger.
        log_level (int): The logging level (default: logging.INFO).
        log_file (str): Log filename without directory, "{name}.log" by default.

    Returns:
        logging.Logger: The configured logger instance.
    """
    app_logger = logging.getLogger(name)
    app_logger.setLevel(log_level)
    if app_logger.handlers:
        return app_logger

    log_file = log_file or f"{name}.log"
    stem = os.path.splitext(log_file)[0]
    formatter = logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    app_logger.addHandler(console)
    app_logger.addHandler(_rotating(os.path.join(LOG_DIR, log_file), formatter))
    app_logger.addHandler(_rotating(os.path.join(LOG_DIR, f"{stem}_error.log"), formatter, logging.ERROR))
    return app_logger


logger = setup_logger("storefront_pay")


class AppLogger(Enum):
    """Apps that own a logger. Values are the logger names."""
    PAYMENT_CALLBACK = "payment_callback"
    NOTIFICATION_WORKER = "notification_worker"
    DEFAULT = "storefront_pay"


# app -> (module, attribute) holding its logger; imported lazily to avoid cycles
_APP_LOGGERS = {
    AppLogger.PAYMENT_CALLBACK: ("storefront_pay.payment_callback", "callback_logger"),
    AppLogger.NOTIFICATION_WORKER: ("storefront_pay.notifications", "notification_logger"),
}

_current_app_logger: ContextVar[AppLogger] = ContextVar("current_app_logger", default=AppLogger.DEFAULT)


def get_current_logger() -> logging.Logger:
    """Logger of the app the current task runs in, the default logger outside any app."""
    target = _APP_LOGGERS.get(_current_app_logger.get())
    if target is None:
        return logger
    module_name, attribute = target
    return getattr(importlib.import_module(module_name), attribute)


class set_app_context:
    """Context manager binding ``get_current_logger()`` to one app's logger."""

    def __init__(self, app_logger: AppLogger):
        self.app_logger = app_logger
        self.token: Optional[object] = None

    def __enter__(self):
        self.token = _current_app_logger.set(self.app_logger)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            _current_app_logger.reset(self.token)
        return False
