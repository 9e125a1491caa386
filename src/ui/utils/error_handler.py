"""Centralized error handler for the presentation layer.

Maps service exceptions to user-friendly messages while preserving
technical details in logs. The command line front end calls it with
``show_dialog=False``; a desktop front end can pass a parent widget and
get a Tk error dialog instead.
"""

import logging
from typing import Any, Optional, Tuple

from src.services.exceptions import (
    ServiceError,
    ValidationError,
    InvalidUnitError,
    ProductionFinishedError,
    ProductionRecordNotFound,
    SubmissionError,
    SubmissionInProgressError,
    DatabaseError,
)

logger = logging.getLogger(__name__)


def handle_error(
    exception: Exception,
    parent: Optional[Any] = None,
    operation: str = "Operation",
    show_dialog: bool = True,
) -> Tuple[str, str]:
    """Handle an exception and optionally display a user-friendly error dialog.

    Args:
        exception: The caught exception to handle
        parent: Parent widget for dialog positioning (optional)
        operation: Description of what was being attempted (e.g., "Save production")
        show_dialog: Whether to show an error dialog (default True)

    Returns:
        Tuple of (title, user_message) for further handling if needed

    Example:
        try:
            controller.submit()
        except ServiceError as e:
            handle_error(e, parent=self, operation="Save production")
    """
    title, message = get_user_message(exception, operation)

    _log_error(exception, operation)

    if show_dialog:
        from tkinter import messagebox

        if parent is not None:
            messagebox.showerror(title, message, parent=parent)
        else:
            messagebox.showerror(title, message)

    return title, message


def get_user_message(exception: Exception, operation: str = "Operation") -> Tuple[str, str]:
    """Convert exception to user-friendly title and message.

    Args:
        exception: The exception to convert
        operation: Description of what was being attempted

    Returns:
        Tuple of (title, message) suitable for user display
    """
    return _get_user_message(exception, operation)


def _get_user_message(exception: Exception, operation: str) -> Tuple[str, str]:
    """Map exception to user-friendly title and message.

    Specific exception types first, then the http_status_code category of
    any other ServiceError, then a generic message for everything else.
    """
    if isinstance(exception, ProductionRecordNotFound):
        return "Not Found", "Production record not found."

    if isinstance(exception, ProductionFinishedError):
        return (
            "Read Only",
            f"Production {exception.batch_id} is Finished and can no longer be changed.",
        )

    # Check BEFORE generic ValidationError
    if isinstance(exception, InvalidUnitError):
        return "Invalid Unit", f"'{exception.unit}' is not a weight unit. Use KG, Quintal or Ton."

    if isinstance(exception, ValidationError):
        if exception.errors:
            errors_str = "; ".join(str(e) for e in exception.errors)
            return "Validation Error", f"Validation failed: {errors_str}"
        return "Validation Error", str(exception)

    if isinstance(exception, SubmissionInProgressError):
        return "Please Wait", "A save is already in progress."

    # Collaborator message is shown as-is
    if isinstance(exception, SubmissionError):
        return "Save Failed", exception.message or f"{operation} failed."

    if isinstance(exception, DatabaseError):
        return "Database Error", "A database error occurred. Please try again."

    if isinstance(exception, ServiceError):
        status = getattr(exception, "http_status_code", 500)

        if status == 404:
            return "Not Found", f"{operation} failed: the requested item was not found."

        if status == 400:
            return "Validation Error", f"{operation} failed: {exception.message or 'invalid input'}"

        if status == 409:
            return "Conflict", f"{operation} failed: {exception.message or 'resource conflict'}"

        return "Error", f"{operation} failed: {exception.message or 'an error occurred'}"

    return "Unexpected Error", "An unexpected error occurred. Please contact support."


def _log_error(exception: Exception, operation: str) -> None:
    """Log technical error details for debugging.

    ServiceError subclasses are logged at ERROR with structured data;
    anything else gets a full stack trace.
    """
    if isinstance(exception, ServiceError):
        log_data = {
            "operation": operation,
            "exception_type": exception.__class__.__name__,
            "message": str(exception),
            "http_status_code": getattr(exception, "http_status_code", 500),
        }
        code = getattr(exception, "code", None)
        if code is not None:
            log_data["validation_code"] = getattr(code, "value", code)

        logger.error(
            f"{operation} failed: {exception.__class__.__name__}: {exception}",
            extra={"error_data": log_data},
        )
    else:
        logger.exception(
            f"{operation} failed with unexpected error: {exception.__class__.__name__}"
        )
