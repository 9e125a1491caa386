"""Service layer exception classes for Mill Production Tracker.

This module defines all custom exceptions used by the service layer to provide
consistent error handling across the application.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   └── InvalidUnitError
    ├── ProductionFinishedError
    ├── ProductionRecordNotFound
    ├── SubmissionError
    ├── SubmissionInProgressError
    └── DatabaseError

Validation errors never reach the persistence layer: they are raised (or
returned, one per offending item) before any request is made. Submission
errors wrap whatever the persistence collaborator raised.
"""

from enum import Enum
from typing import List, Optional, Union


class ValidationCode(str, Enum):
    """
    Reason classification for validation failures.

    Values:
        MISSING_VALID_OUTPUT: No output line is complete enough to finish a batch
        UNSUPPORTED_FILE_TYPE: Attachment is not an image
        FILE_TOO_LARGE: Attachment exceeds the upload size limit
        INVALID_UNIT: Quantity unit is not a convertible weight unit
        INVALID_FIELDS: One or more form fields failed validation
    """

    MISSING_VALID_OUTPUT = "missing_valid_output"
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_UNIT = "invalid_unit"
    INVALID_FIELDS = "invalid_fields"


class ServiceError(Exception):
    """Base exception for all service layer errors.

    All service-specific exceptions should inherit from this class.
    """

    http_status_code = 500

    def __init__(self, message: str = ""):
        self.message = message
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised when data validation fails.

    Args:
        errors: List of human-readable error messages (or a single message)
        code: ValidationCode classifying the failure
        field_errors: Optional mapping of field name to its messages

    Example:
        >>> raise ValidationError(["photo.txt: Only image files are allowed"],
        ...                       code=ValidationCode.UNSUPPORTED_FILE_TYPE)
    """

    http_status_code = 400

    def __init__(
        self,
        errors: Union[List[str], str],
        code: ValidationCode = ValidationCode.INVALID_FIELDS,
        field_errors: Optional[dict] = None,
    ):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors)
        self.code = code
        self.field_errors = dict(field_errors or {})
        error_msg = "; ".join(self.errors)
        super().__init__(f"Validation failed: {error_msg}")


class InvalidUnitError(ValidationError):
    """Raised when a quantity unit is not one of the weight units.

    Args:
        unit: The offending unit string
    """

    def __init__(self, unit):
        self.unit = unit
        super().__init__(
            [f"'{unit}' is not a weight unit (expected KG, Quintal or Ton)"],
            code=ValidationCode.INVALID_UNIT,
        )


class ProductionFinishedError(ServiceError):
    """Raised when attempting to modify a production that is already finished.

    Args:
        batch_id: Batch label (or id) of the finished production
        attempted_action: What the caller tried to do
    """

    http_status_code = 409

    def __init__(self, batch_id, attempted_action: str = "edit production"):
        self.batch_id = batch_id
        self.attempted_action = attempted_action
        super().__init__(
            f"Cannot {attempted_action}: production {batch_id} is already Finished"
        )


class ProductionRecordNotFound(ServiceError):
    """Raised when a production record cannot be found.

    Example:
        >>> raise ProductionRecordNotFound(42)
        ProductionRecordNotFound: Production record 42 not found
    """

    http_status_code = 404

    def __init__(self, identifier):
        self.identifier = identifier
        super().__init__(f"Production record {identifier} not found")


class SubmissionError(ServiceError):
    """Raised when the persistence collaborator rejects or fails a submission.

    The collaborator's message is preserved verbatim for display.

    Args:
        message: Message reported by the collaborator
        original_error: The underlying exception, if any
    """

    http_status_code = 500

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(message)


class SubmissionInProgressError(ServiceError):
    """Raised when a submit is attempted while another is still in flight."""

    http_status_code = 409

    def __init__(self):
        super().__init__("A submission is already in progress")


class DatabaseError(ServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        self.original_error = original_error
        super().__init__(f"Database error: {message}")
