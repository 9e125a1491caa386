"""
Enumerations for production tracking.

This module contains enums used across production-related models:
- ProductionStatus: Lifecycle state of a production batch
- Shift: Work shift a batch was produced in
"""

from enum import Enum


class ProductionStatus(str, Enum):
    """
    Production batch lifecycle status.

    Values:
        IN_PRODUCTION: Batch is running; outputs are optional
        FINISHED: Batch is complete; outputs are mandatory and the record
            can no longer be edited. There is no way back to IN_PRODUCTION.
    """

    IN_PRODUCTION = "In Production"
    FINISHED = "Finished"

    @classmethod
    def parse(cls, value) -> "ProductionStatus":
        """Resolve a stored string or enum to a ProductionStatus."""
        if isinstance(value, cls):
            return value
        return cls(value)


class Shift(str, Enum):
    """Work shift."""

    DAY = "Day"
    NIGHT = "Night"

    @property
    def display_name(self) -> str:
        return f"{self.value} Shift"
