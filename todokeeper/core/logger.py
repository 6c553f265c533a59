import logging
import os
from collections import OrderedDict
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

import structlog


def default_formatter(fmt: Optional[str] = None) -> logging.Formatter:
    """Returns a logging formatter with a default format if none is specified."""
    default_fmt = "[%(asctime)s] %(levelname)s: %(name)s: %(message)s"
    return logging.Formatter(fmt or default_fmt)


def _enforce_key_order_processor(key_order: list[str]):
    def _processor(_logger, _method_name, event_dict):
        ordered = OrderedDict()
        for key in key_order:
            if key in event_dict:
                ordered[key] = event_dict.pop(key)
        for k in sorted(event_dict.keys()):
            ordered[k] = event_dict[k]
        return ordered

    return _processor


def setup_logger(
    name: str = "todokeeper",
    *,
    log_dir: Optional[str] = None,
    logger_level: int | str = logging.INFO,
    stream_level: int | str = logging.INFO,
    add_stream_handler: bool = True,
    add_file_handler: bool = True,
    propagate: bool = False,
    max_bytes: int = 10 * 1024 * 1024,  # 10 MB
    backup_count: int = 5,
    use_structlog: bool = True,
    structlog_json: bool = True,
) -> logging.Logger | structlog.stdlib.BoundLogger:
    """Configure and initialize a todokeeper logger.

    Sets up a stream handler and a rotating file handler on the named stdlib logger. When
    ``use_structlog`` is set, structlog is configured on top of it and a BoundLogger is returned.

    Args:
        name: Logger name, defaults to "todokeeper".
        log_dir: Directory for the log file. No file handler is added when None.
        logger_level: Overall logger level.
        stream_level: StreamHandler level.
        add_stream_handler: Whether to add a stream handler.
        add_file_handler: Whether to add a rotating file handler.
        propagate: Whether the logger should propagate messages to ancestor loggers.
        max_bytes: Maximum size in bytes before rotating the log file.
        backup_count: Number of backup files to retain.
        use_structlog: If True, configure and return a structlog BoundLogger.
        structlog_json: If True, render JSON; otherwise use the console renderer.

    Returns:
        logging.Logger | structlog.stdlib.BoundLogger: Configured logger instance.
    """
    logger = logging.getLogger(name)
    logger.handlers.clear()
    logger.setLevel(logger_level)
    logger.propagate = propagate

    formatter = logging.Formatter("%(message)s") if use_structlog else default_formatter()

    if add_stream_handler:
        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(stream_level)
        stream_handler.setFormatter(formatter)
        logger.addHandler(stream_handler)

    if add_file_handler and log_dir:
        log_path = Path(os.path.expanduser(log_dir))
        log_path.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            filename=str(log_path / f"{name}.log"), maxBytes=max_bytes, backupCount=backup_count
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    if not use_structlog:
        return logger

    renderer = structlog.processors.JSONRenderer() if structlog_json else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            _enforce_key_order_processor(["timestamp", "event", "service", "duration_ms", "level", "logger"]),
            renderer,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    return structlog.get_logger(name)


def get_logger(name: str | None = "todokeeper", **kwargs) -> logging.Logger | structlog.stdlib.BoundLogger:
    """Create or retrieve a named todokeeper logger.

    Child loggers propagate to the "todokeeper" root by default and get no handlers of their own,
    so configure the root once with ``setup_logger`` and call ``get_logger`` everywhere else.

    Example:
        .. code-block:: python

            from todokeeper.core.logger import get_logger

            logger = get_logger("repositories.todo")
            logger.info("Todo created", todo_id="65f0...")
    """
    if not name:
        name = "todokeeper"
    full_name = name if name.startswith("todokeeper") else f"todokeeper.{name}"
    use_structlog = kwargs.pop("use_structlog", True)
    if full_name == "todokeeper" or kwargs:
        return setup_logger(full_name, use_structlog=use_structlog, **kwargs)
    stdlib_logger = logging.getLogger(full_name)
    stdlib_logger.propagate = True
    if not use_structlog:
        return stdlib_logger
    return structlog.get_logger(full_name)
