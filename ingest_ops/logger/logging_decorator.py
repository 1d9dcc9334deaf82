"""
Centralized Logging Utilities and Decorators

Provides reusable logging setup and function decorators for consistent logging
across the ingest_ops package. Every subsystem (lifecycle, sync, jobs,
reports, database, api, console) writes to its own file under ``logs/``.

Usage:
    from ingest_ops.logger import setup_logging, log_function

    # Setup logging for a subsystem
    logger = setup_logging(
        logger_name="lifecycle",
        log_file="logs/lifecycle.log",
        verbose=True
    )

    # Decorate functions for automatic logging (sync or async)
    @log_function(logger_name="lifecycle", log_args=True)
    def retry(request_id):
        ...

    @log_function(logger_name="sync")
    async def tick():
        ...
"""

import asyncio
import functools
import logging
import time
from pathlib import Path
from typing import Optional, Callable, Any


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(
    logger_name: str,
    log_file: str = "logs/ingest_ops.log",
    verbose: bool = False,
    level: int = logging.INFO,
) -> logging.Logger:
    """
    Set up logging with file and optional console handlers.

    Args:
        logger_name: Name for the logger (e.g., "lifecycle")
        log_file: Path to log file (default: "logs/ingest_ops.log")
        verbose: If True, add console handler with DEBUG level (default: False)
        level: Base logging level (default: logging.INFO)

    Returns:
        Configured logger instance

    Example:
        logger = setup_logging("sync", "logs/sync.log", verbose=True)
        logger.info("Live sync started")
    """
    logger = logging.getLogger(logger_name)

    # Avoid adding multiple handlers if already configured
    if logger.handlers:
        if verbose and not any(
            getattr(h, "_ingest_ops_console", False) for h in logger.handlers
        ):
            logger.setLevel(logging.DEBUG)
            logger.addHandler(_console_handler())
        return logger

    logger.setLevel(logging.DEBUG if verbose else level)

    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(file_handler)

    if verbose:
        logger.addHandler(_console_handler())

    return logger


def _console_handler() -> logging.Handler:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter("DEBUG: %(message)s"))
    console_handler._ingest_ops_console = True
    return console_handler


def _resolve_logger(
    logger_name: Optional[str], func: Callable, log_file: Optional[str], level: int
) -> logging.Logger:
    name = logger_name or func.__module__
    if log_file:
        return setup_logging(
            logger_name=f"{name}.{func.__name__}", log_file=log_file, level=level
        )
    logger = logging.getLogger(name)
    if not logger.handlers:
        logger = setup_logging(name, log_file=f"logs/{name}.log", level=level)
    return logger


def _describe_call(func_name: str, log_args: bool, args: tuple, kwargs: dict) -> str:
    log_msg = f"Calling {func_name}"
    if log_args and (args or kwargs):
        args_repr = [repr(a) for a in args]
        kwargs_repr = [f"{k}={v!r}" for k, v in kwargs.items()]
        log_msg += f" with args: {', '.join(args_repr + kwargs_repr)}"
    return log_msg


def _describe_completion(
    func_name: str,
    elapsed: float,
    result: Any,
    log_execution_time: bool,
    log_result: bool,
) -> str:
    completion_msg = f"Completed {func_name}"
    if log_execution_time:
        completion_msg += f" in {elapsed:.2f}s"
    if log_result:
        completion_msg += f" with result: {result!r}"
    return completion_msg


def log_function(
    logger_name: Optional[str] = None,
    log_file: Optional[str] = None,
    level: int = logging.INFO,
    log_args: bool = False,
    log_result: bool = False,
    log_execution_time: bool = True,
) -> Callable:
    """
    Decorator to automatically log function entry, exit, execution time, and exceptions.

    Coroutine functions are wrapped with an async wrapper so the timing covers
    the awaited body rather than coroutine creation.

    Args:
        logger_name: Custom logger name (if None, uses the decorated function's module name)
        log_file: Optional custom log file path (if None, uses existing logger config)
        level: Log level for entry/exit messages (default: logging.INFO)
        log_args: If True, log function arguments (default: False)
        log_result: If True, log return value (default: False)
        log_execution_time: If True, log execution duration (default: True)

    Returns:
        Decorated function with logging

    Example:
        @log_function(logger_name="lifecycle", log_args=True, log_execution_time=True)
        def resend(request_id):
            ...
    """

    def decorator(func: Callable) -> Callable:
        func_name = func.__name__

        def _log_failure(logger: logging.Logger, start_time: float, e: Exception):
            execution_time = time.time() - start_time
            logger.error(
                f"Exception in {func_name} after {execution_time:.2f}s: {type(e).__name__}: {e}",
                exc_info=True,
            )

        if asyncio.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                logger = _resolve_logger(logger_name, func, log_file, level)
                logger.log(level, _describe_call(func_name, log_args, args, kwargs))
                start_time = time.time()
                try:
                    result = await func(*args, **kwargs)
                except Exception as e:
                    _log_failure(logger, start_time, e)
                    raise
                logger.log(
                    level,
                    _describe_completion(
                        func_name,
                        time.time() - start_time,
                        result,
                        log_execution_time,
                        log_result,
                    ),
                )
                return result

            return async_wrapper

        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            logger = _resolve_logger(logger_name, func, log_file, level)
            logger.log(level, _describe_call(func_name, log_args, args, kwargs))
            start_time = time.time()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_failure(logger, start_time, e)
                raise
            logger.log(
                level,
                _describe_completion(
                    func_name,
                    time.time() - start_time,
                    result,
                    log_execution_time,
                    log_result,
                ),
            )
            return result

        return wrapper

    return decorator


def log_with_timer(logger_name: Optional[str] = None) -> Callable:
    """
    Simple decorator that logs function entry/exit with execution time.

    Example:
        @log_with_timer("reports")
        def trigger(kind, preset):
            ...
    """
    return log_function(
        logger_name=logger_name,
        log_args=False,
        log_result=False,
        log_execution_time=True,
    )
