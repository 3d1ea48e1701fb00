"""
Structured logging for the folioscope analysis library.

Wraps structlog with a small configuration surface so that callers (the web
backend, scripts, notebooks) can choose between human-readable console output
and JSON lines, and so that per-analysis context such as the symbol being
analysed is attached to every event.

Example Usage:
    ```python
    from folioscope.utils.logger import setup_logging, get_logger, add_context, LogConfig

    setup_logging(LogConfig(level="INFO", format="pretty"))

    logger = get_logger(__name__)
    logger.info("analysis_started", symbol="AAPL", bars=250)

    with add_context(symbol="MSFT", run_id="r-42"):
        logger.info("indicator_family_completed", family="rsi", signals=3)
    ```
"""

from contextlib import contextmanager
from dataclasses import dataclass
import logging
from pathlib import Path
import sys
from typing import Any, Literal

import structlog
from structlog.types import EventDict, Processor

# Context shared by every logger created through get_logger
_context_vars: dict[str, Any] = {}

SENSITIVE_KEYS = frozenset(
    {
        "api_key",
        "apikey",
        "api_secret",
        "password",
        "token",
        "access_token",
        "refresh_token",
        "secret",
        "authorization",
    }
)


@dataclass
class LogConfig:
    """Configuration for the logging system.

    Attributes:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format: "json" for machine-readable lines, "pretty" for development
        file_path: Optional log file. If None, only logs to console
        include_timestamp: Whether to add ISO timestamps
        include_caller_info: Whether to add file/line/function of the caller
        console_output: Whether to write to stdout
        max_string_length: Strings longer than this are truncated
        environment: Deployment environment name
        app_version: Application version string
    """

    level: str = "INFO"
    format: Literal["json", "pretty"] = "pretty"
    file_path: str | None = None
    include_timestamp: bool = True
    include_caller_info: bool = True
    console_output: bool = True
    max_string_length: int = 1000
    environment: str = "dev"
    app_version: str = "0.1.0"


def add_app_info(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Stamp every event with the application name, environment and version."""
    event_dict["app"] = "folioscope"
    event_dict["environment"] = getattr(add_app_info, "environment", "unknown")
    event_dict["version"] = getattr(add_app_info, "version", "unknown")
    return event_dict


def add_analysis_context(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Merge values registered through add_context without overriding explicit keys."""
    for key, value in _context_vars.items():
        event_dict.setdefault(key, value)
    return event_dict


def mask_value(value: Any) -> Any:
    """Mask a sensitive value, keeping a short prefix/suffix of strings."""
    if isinstance(value, str):
        if len(value) <= 4:
            return "***"
        return f"{value[:2]}***{value[-2:]}"
    return "***"


def filter_sensitive(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Mask credentials that end up in log events (e.g. LLM provider keys)."""

    def recursive_mask(data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: mask_value(value)
                if isinstance(key, str) and key.lower() in SENSITIVE_KEYS
                else recursive_mask(value)
                for key, value in data.items()
            }
        if isinstance(data, (list, tuple)):
            return type(data)(recursive_mask(item) for item in data)
        return data

    return recursive_mask(event_dict)  # type: ignore[return-value]


def truncate_strings(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    """Truncate long string values (signal descriptions, prompts) to keep logs compact."""
    max_length = getattr(truncate_strings, "max_length", 1000)

    def truncate_value(value: Any) -> Any:
        if isinstance(value, str) and len(value) > max_length:
            return f"{value[:max_length]}... [truncated]"
        if isinstance(value, dict):
            return {k: truncate_value(v) for k, v in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(truncate_value(item) for item in value)
        return value

    return {key: truncate_value(value) for key, value in event_dict.items()}


def _build_processors(config: LogConfig) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_app_info,
        add_analysis_context,
        filter_sensitive,
        truncate_strings,
    ]

    if config.include_timestamp:
        processors.append(structlog.processors.TimeStamper(fmt="iso"))

    if config.include_caller_info:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                ]
            )
        )

    processors.append(structlog.processors.StackInfoRenderer())
    processors.append(structlog.processors.format_exc_info)

    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=config.console_output))
    return processors


def setup_logging(config: LogConfig) -> None:
    """Configure structlog and the standard library root logger.

    Args:
        config: LogConfig instance

    Example:
        ```python
        setup_logging(LogConfig(level="DEBUG", format="json", file_path="logs/ta.log"))
        ```
    """
    add_app_info.environment = config.environment
    add_app_info.version = config.app_version
    truncate_strings.max_length = config.max_string_length

    level = getattr(logging, config.level.upper())

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout if config.console_output else None,
        level=level,
    )
    logging.getLogger().setLevel(level)

    structlog.configure(
        processors=_build_processors(config),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if config.file_path:
        file_path = Path(config.file_path)
        file_path.parent.mkdir(parents=True, exist_ok=True)

        # Rendered event lines are written verbatim
        file_handler = logging.FileHandler(file_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter("%(message)s"))
        logging.getLogger().addHandler(file_handler)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger for the given module name."""
    return structlog.get_logger(name)


@contextmanager
def add_context(**kwargs: Any):
    """Attach key-value pairs to every log event emitted inside the block.

    Example:
        ```python
        with add_context(symbol="AAPL"):
            logger.info("analysis_started")  # includes symbol="AAPL"
        ```
    """
    previous_context = _context_vars.copy()
    _context_vars.update(kwargs)
    try:
        yield
    finally:
        _context_vars.clear()
        _context_vars.update(previous_context)


def set_log_level(level: str) -> None:
    """Change the root logging level, and its handlers, at runtime."""
    numeric = getattr(logging, level.upper())
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric)
    for handler in root_logger.handlers:
        handler.setLevel(numeric)


def clear_context() -> None:
    """Remove all values registered through add_context."""
    _context_vars.clear()
