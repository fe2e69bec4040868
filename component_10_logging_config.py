"""
component_10_logging_config.py

Logging for the AntPlan evaluator.

Every component logs through get_logger(__name__). Structured context is
passed as a plain dict in `extra` and rendered after the message as
key=value pairs, e.g.

    [2026-10-19 12:00:00] [WARNING ] [component_4_oracle] Oracle evaluation failed | fallback=0.0

Timed sections (oracle binding, lookahead probes) go through
PerformanceLogger, which additionally reports to the "antplan.performance"
logger so durations can be routed to their own file.
"""

import logging
import logging.handlers
import sys
import time
import traceback
from pathlib import Path
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple, Union

PERFORMANCE_LOGGER_NAME = "antplan.performance"

MAIN_LOG = "antplan.log"
ERROR_LOG = "antplan_errors.log"
PERFORMANCE_LOG = "antplan_performance.log"

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


def render_extra(extra: Mapping[str, Any]) -> str:
    """Render structured context as ' | key=value | ...' (empty for no context)."""
    return "".join(f" | {key}={value}" for key, value in extra.items())


class AntPlanLogFormatter(logging.Formatter):
    """[timestamp] [level] [component] message | key=value ..."""

    def __init__(self, use_colors: bool = False, include_extra: bool = True):
        super().__init__(
            fmt="[%(asctime)s] [%(levelname)-8s] [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        self.use_colors = use_colors
        self.include_extra = include_extra

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        extra = getattr(record, "extra_info", None)
        if self.include_extra and extra:
            text += render_extra(extra)
        if self.use_colors and record.levelno in _LEVEL_COLORS:
            text = _LEVEL_COLORS[record.levelno] + text + _RESET
        return text


class StructuredLogger(logging.LoggerAdapter):
    """Adapter storing the caller's `extra` dict on the record as extra_info."""

    def process(
        self, msg: str, kwargs: MutableMapping[str, Any]
    ) -> Tuple[str, MutableMapping[str, Any]]:
        context = kwargs.pop("extra", None)
        if context:
            kwargs["extra"] = {"extra_info": dict(context)}
        return msg, kwargs

    def log_exception(self, exc: BaseException, message: str = "", **context: Any) -> None:
        """Log exc at ERROR with its traceback appended."""
        details = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        ).rstrip()
        prefix = f"{message}: " if message else ""
        self.error(f"{prefix}{type(exc).__name__}: {exc}\n{details}", extra=context)


class PerformanceLogger:
    """
    Times the enclosed block.

    On success the duration goes to the component logger (DEBUG) and to the
    performance logger (INFO); on failure an ERROR is logged and the
    exception propagates.

        with PerformanceLogger(logger.logger, "Lookahead probe", depth=2):
            ...
    """

    def __init__(self, logger: logging.Logger, operation_name: str, **context: Any):
        self.logger = logger
        self.operation_name = operation_name
        self.context: Dict[str, Any] = context
        self._started: Optional[float] = None

    @property
    def elapsed_ms(self) -> float:
        if self._started is None:
            return 0.0
        return (time.perf_counter() - self._started) * 1000.0

    def __enter__(self) -> "PerformanceLogger":
        self._started = time.perf_counter()
        self.logger.debug(
            f"START: {self.operation_name}", extra={"extra_info": dict(self.context)}
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration_ms = self.elapsed_ms
        timing = {**self.context, "duration_ms": round(duration_ms, 3)}

        if exc_type is not None:
            self.logger.error(
                f"FAILED: {self.operation_name} after {duration_ms:.2f}ms",
                extra={"extra_info": {**timing, "error": str(exc_val)}},
            )
            return False

        self.logger.debug(
            f"END: {self.operation_name} after {duration_ms:.2f}ms",
            extra={"extra_info": timing},
        )
        logging.getLogger(PERFORMANCE_LOGGER_NAME).info(
            f"{self.operation_name}: {duration_ms:.2f}ms", extra={"extra_info": timing}
        )
        return False


def _rotating_handler(
    path: Path, level: int, max_megabytes: int, backups: int
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=max_megabytes * 1024 * 1024,
        backupCount=backups,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(AntPlanLogFormatter())
    return handler


def setup_logging(
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
    log_dir: Optional[Union[str, Path]] = None,
    enable_performance_logging: bool = True,
) -> None:
    """
    (Re)configure process logging.

    Args:
        console_level: Threshold for stdout
        file_level: Threshold for antplan.log
        log_dir: Where to write antplan.log, antplan_errors.log and
            antplan_performance.log; console only when None
        enable_performance_logging: Give PerformanceLogger output its own file
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(console_level)
    console.setFormatter(AntPlanLogFormatter(use_colors=sys.stdout.isatty()))
    root.addHandler(console)

    perf_logger = logging.getLogger(PERFORMANCE_LOGGER_NAME)
    perf_logger.handlers.clear()
    perf_logger.propagate = True

    if log_dir is not None:
        directory = Path(log_dir)
        directory.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating_handler(directory / MAIN_LOG, file_level, 10, 5))
        root.addHandler(_rotating_handler(directory / ERROR_LOG, logging.ERROR, 5, 3))

        if enable_performance_logging:
            perf_logger.setLevel(logging.INFO)
            perf_logger.propagate = False
            perf_logger.addHandler(
                _rotating_handler(directory / PERFORMANCE_LOG, logging.INFO, 5, 3)
            )

    get_logger(__name__).debug(
        "Logging configured",
        extra={
            "console": logging.getLevelName(console_level),
            "log_dir": str(log_dir) if log_dir is not None else None,
        },
    )


def get_logger(name: str) -> StructuredLogger:
    """Structured logger for a component; pass __name__."""
    return StructuredLogger(logging.getLogger(name), {})


if not logging.getLogger().handlers:
    setup_logging()
