import asyncio
import logging
import time
import uuid
from functools import wraps
from typing import Any, Dict, Optional

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, str(level).upper(), logging.INFO), format=LOG_FORMAT)


def _format_value(value: Any) -> str:
    if isinstance(value, str):
        escaped = value.replace('"', '\\"')
        return f'"{escaped}"'
    return str(value)


class LogQLLogger:
    """Writes `event=<name> key=value` lines that Loki's `| logfmt` stage can parse."""

    def __init__(self, name: str, **context: Any):
        self.logger = logging.getLogger(name)
        self.trace_id: Optional[str] = None
        self.context: Dict[str, Any] = dict(context)

    def set_trace_id(self, trace_id: Optional[str] = None) -> str:
        self.trace_id = trace_id or str(uuid.uuid4())
        return self.trace_id

    def bind(self, **context: Any) -> "LogQLLogger":
        child = LogQLLogger(self.logger.name, **{**self.context, **context})
        child.trace_id = self.trace_id
        return child

    def _format_message(self, event: str, **kwargs: Any) -> str:
        parts = [f"event={event}"]
        if self.trace_id:
            parts.append(f"trace_id={self.trace_id}")
        for key, value in {**self.context, **kwargs}.items():
            if value is not None:
                parts.append(f"{key}={_format_value(value)}")
        return " ".join(parts)

    def debug(self, event: str, **kwargs: Any):
        self.logger.debug(self._format_message(event, **kwargs))

    def info(self, event: str, **kwargs: Any):
        self.logger.info(self._format_message(event, **kwargs))

    def warning(self, event: str, **kwargs: Any):
        self.logger.warning(self._format_message(event, **kwargs))

    def error(self, event: str, error: Optional[BaseException] = None, **kwargs: Any):
        if error is not None:
            kwargs["error_type"] = type(error).__name__
            kwargs["error_msg"] = str(error)
        self.logger.error(self._format_message(event, **kwargs))

    def exception(self, event: str, error: BaseException, **kwargs: Any):
        kwargs["error_type"] = type(error).__name__
        kwargs["error_msg"] = str(error)
        self.logger.exception(self._format_message(event, **kwargs))


def trace_operation(operation_name: str):
    """Logs start, completion and failure (with duration) of the wrapped call."""

    def decorator(func):
        def _log() -> LogQLLogger:
            log = LogQLLogger(func.__module__, operation=operation_name)
            log.set_trace_id()
            log.info("operation_start", function=func.__name__)
            return log

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            log = _log()
            start_time = time.time()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                log.error("operation_failed", error=e, duration_ms=int((time.time() - start_time) * 1000))
                raise
            log.info("operation_complete", duration_ms=int((time.time() - start_time) * 1000))
            return result

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            log = _log()
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                log.error("operation_failed", error=e, duration_ms=int((time.time() - start_time) * 1000))
                raise
            log.info("operation_complete", duration_ms=int((time.time() - start_time) * 1000))
            return result

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
