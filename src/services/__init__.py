"""Services package - Business logic layer for Mill Production Tracker.

Architecture:
- Services: Stateless functions organized by concern
- Transactions: Managed via session_scope() context manager
- Exceptions: Consistent error handling via ServiceError hierarchy
- Validation: Input validation before any persistence call

Service Modules:
- unit_converter: Weight units and conversion through kilograms
- production_stats_service: Unit-normalized statistics over production records
- production_draft: Edit state, attachment reconciliation and status workflow
- production_record_service: Persistence and query operations for records

Infrastructure:
- exceptions: Custom exception classes for service layer errors
- database: Session management and database utilities
- dto: Pagination, filters and submission payload
- logging_utils: Structured operation logging
"""

from . import (
    database,
    dto,
    exceptions,
    unit_converter,
    production_stats_service,
    production_draft,
    production_record_service,
)

from .exceptions import (
    ServiceError,
    ValidationCode,
    ValidationError,
    InvalidUnitError,
    ProductionFinishedError,
    ProductionRecordNotFound,
    SubmissionError,
    SubmissionInProgressError,
    DatabaseError,
)

__all__ = [
    "database",
    "dto",
    "exceptions",
    "unit_converter",
    "production_stats_service",
    "production_draft",
    "production_record_service",
    "ServiceError",
    "ValidationCode",
    "ValidationError",
    "InvalidUnitError",
    "ProductionFinishedError",
    "ProductionRecordNotFound",
    "SubmissionError",
    "SubmissionInProgressError",
    "DatabaseError",
]
