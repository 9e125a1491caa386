"""Service layer logging utilities.

Provides structured logging functions for service operations, enabling
consistent log format and context across record persistence, draft
submission and statistics operations.

Usage:
    from src.services.logging_utils import get_service_logger, log_operation

    logger = get_service_logger(__name__)

    log_operation(
        logger,
        operation="update_record",
        outcome="success",
        record_id=12,
        removed_attachments=1,
    )
"""

import logging
from typing import Any


def get_service_logger(name: str) -> logging.Logger:
    """
    Get a logger configured for service operations.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Logger named with the 'mill_tracker.services' prefix.

    Example:
        >>> get_service_logger("src.services.production_draft").name
        'mill_tracker.services.production_draft'
    """
    if "." in name:
        name = name.split(".")[-1]
    return logging.getLogger(f"mill_tracker.services.{name}")


def log_operation(
    logger: logging.Logger,
    operation: str,
    outcome: str,
    level: int = logging.INFO,
    **context: Any,
) -> None:
    """
    Log a service operation with structured context.

    The context is passed via the 'extra' parameter for structured logging.

    Args:
        logger: Logger instance to use
        operation: Operation name (e.g., "create_record", "stage_files")
        outcome: Outcome description (e.g., "success", "validation_failed")
        level: Log level (default: INFO). Use DEBUG for frequent logs.
        **context: Additional context fields (record ids, counts, errors)
    """
    extra = {
        "operation": operation,
        "outcome": outcome,
        **context,
    }
    logger.log(level, f"{operation}: {outcome}", extra=extra)
