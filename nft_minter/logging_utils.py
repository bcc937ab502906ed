"""
Logging utilities for minting operations.

This module configures structlog for the command-line entry points and
provides helpers for tracking upstream calls, mint events and their
performance.
"""

import logging
import sys
import time
import functools
from typing import Dict, Any, Optional, Callable
from contextlib import contextmanager
from enum import Enum

import structlog

logger = structlog.get_logger(__name__)


class OperationType(Enum):
    """Types of minting operations for logging."""
    IMAGE_UPLOAD = "image_upload"
    COLLECTION_MINTING = "collection_minting"
    TREE_CREATION = "tree_creation"
    BATCH_MINTING = "batch_minting"


class LogLevel(Enum):
    """Log levels for minting operations."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


def configure_logging(level: str = "INFO") -> None:
    """Configure structlog on top of the standard library logger."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def log_minting_operation(
    operation_type: OperationType,
    operation_name: str,
    level: LogLevel = LogLevel.INFO,
    include_performance: bool = True
):
    """
    Decorator for logging async minting operations with performance metrics.

    Args:
        operation_type: Type of minting operation
        operation_name: Name of the operation
        level: Log level for the operation
        include_performance: Whether to include performance metrics
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            operation_id = f"{operation_name}_{int(start_time)}"

            getattr(logger, level.value)(
                "Minting operation started",
                operation_id=operation_id,
                operation_type=operation_type.value,
                operation_name=operation_name,
                status="started"
            )

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                error_data = {
                    "operation_id": operation_id,
                    "operation_type": operation_type.value,
                    "operation_name": operation_name,
                    "status": "failed",
                    "success": False,
                    "error_type": type(e).__name__,
                    "error_message": str(e)
                }
                if include_performance:
                    error_data.update(_performance_data(time.time() - start_time))

                logger.error("Minting operation failed", **error_data)
                raise

            success_data = {
                "operation_id": operation_id,
                "operation_type": operation_type.value,
                "operation_name": operation_name,
                "status": "completed",
                "success": True
            }
            if include_performance:
                success_data.update(_performance_data(time.time() - start_time))

            getattr(logger, level.value)("Minting operation completed", **success_data)
            return result

        return wrapper

    return decorator


@contextmanager
def log_operation_context(
    operation_type: OperationType,
    operation_name: str,
    context_data: Optional[Dict[str, Any]] = None,
    level: LogLevel = LogLevel.INFO
):
    """
    Context manager for logging a block of minting work.

    Args:
        operation_type: Type of minting operation
        operation_name: Name of the operation
        context_data: Additional context data to log
        level: Log level for the operation
    """
    start_time = time.time()
    operation_id = f"{operation_name}_{int(start_time)}"

    log_data = {
        "operation_id": operation_id,
        "operation_type": operation_type.value,
        "operation_name": operation_name,
    }
    if context_data:
        log_data.update(context_data)

    getattr(logger, level.value)("Minting operation context started", status="started", **log_data)

    try:
        yield operation_id
    except Exception as e:
        logger.error(
            "Minting operation context failed",
            status="failed",
            success=False,
            error_type=type(e).__name__,
            error_message=str(e),
            **_performance_data(time.time() - start_time),
            **log_data
        )
        raise

    getattr(logger, level.value)(
        "Minting operation context completed",
        status="completed",
        success=True,
        **_performance_data(time.time() - start_time),
        **log_data
    )


def log_mint_event(
    event_type: str,
    recipient: str,
    user_id: Optional[str] = None,
    additional_data: Optional[Dict[str, Any]] = None,
    level: LogLevel = LogLevel.INFO
):
    """
    Log NFT minting lifecycle events.

    Args:
        event_type: Type of mint event (started, completed, failed, skipped)
        recipient: NFT recipient address
        user_id: Id of the user the NFT is minted for
        additional_data: Additional event data
        level: Log level
    """
    log_data = {
        "event_type": "mint_event",
        "mint_event_type": event_type,
        "recipient": recipient,
        "timestamp": time.time()
    }

    if user_id is not None:
        log_data["user_id"] = user_id

    if additional_data:
        log_data.update(additional_data)

    getattr(logger, level.value)("NFT mint event", **log_data)


def _performance_data(execution_time: float) -> Dict[str, Any]:
    return {
        "execution_time_seconds": execution_time,
        "performance_category": _categorize_performance(execution_time)
    }


def _categorize_performance(execution_time: float) -> str:
    """
    Categorize performance based on execution time.

    Upstream uploads and confirmations routinely take several seconds,
    so the buckets are wider than for plain RPC reads.
    """
    if execution_time < 1.0:
        return "excellent"
    elif execution_time < 5.0:
        return "good"
    elif execution_time < 15.0:
        return "acceptable"
    elif execution_time < 60.0:
        return "slow"
    else:
        return "very_slow"


def create_operation_logger(component_name: str) -> structlog.BoundLogger:
    """
    Create a specialized logger for a specific component.

    Args:
        component_name: Name of the component

    Returns:
        Lazily bound logger with component context, so module-level loggers
        pick up the configuration applied later by configure_logging()
    """
    return structlog.get_logger(component=component_name)
