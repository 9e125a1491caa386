"""Data Transfer Objects for service layer.

This module provides the data structures that cross the boundary between
the core and its collaborators: pagination, record filters and the
submission payload.
"""

import json
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Generic, List, Optional, TypeVar

T = TypeVar("T")


@dataclass
class PaginationParams:
    """Pagination parameters for list operations.

    Attributes:
        page: Page number (1-indexed, default 1)
        per_page: Items per page (default 10, max 1000)

    Raises:
        ValueError: If page < 1, per_page < 1, or per_page > 1000
    """

    page: int = 1
    per_page: int = 10

    def __post_init__(self) -> None:
        if self.page < 1:
            raise ValueError("page must be >= 1")
        if self.per_page < 1:
            raise ValueError("per_page must be >= 1")
        if self.per_page > 1000:
            raise ValueError("per_page must be <= 1000")

    def offset(self) -> int:
        """
        SQL OFFSET value.

        Examples:
            >>> PaginationParams(page=3, per_page=25).offset()
            50
        """
        return (self.page - 1) * self.per_page


@dataclass
class PaginatedResult(Generic[T]):
    """Generic paginated result container.

    Attributes:
        items: List of items for this page
        total: Total number of items across all pages
        page: Current page number (1-indexed)
        per_page: Items per page
    """

    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def pages(self) -> int:
        """Total number of pages (minimum 1, even for empty results)."""
        if self.total == 0:
            return 1
        return (self.total + self.per_page - 1) // self.per_page

    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @property
    def has_prev(self) -> bool:
        return self.page > 1


@dataclass
class ProductionFilters:
    """Filters applied by the query layer before statistics are computed.

    Empty values mean "don't filter on this".

    Attributes:
        search: Case-insensitive match on batch id, location, machine,
            operator or input type
        shift: Exact shift ("Day"/"Night")
        location: Exact location
        machine: Exact machine
        operator: Exact operator name
        status: Exact status ("In Production"/"Finished")
        date_from: Inclusive lower bound on production_date
        date_to: Inclusive upper bound on production_date
        sort_by: Column to sort on (production_date, batch_id, created_at,
            input_quantity)
        sort_order: "asc" or "desc"
    """

    search: Optional[str] = None
    shift: Optional[str] = None
    location: Optional[str] = None
    machine: Optional[str] = None
    operator: Optional[str] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    sort_by: str = "production_date"
    sort_order: str = "desc"

    def __post_init__(self) -> None:
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must be on or before date_to")
        if self.sort_order not in ("asc", "desc"):
            raise ValueError("sort_order must be 'asc' or 'desc'")


@dataclass
class NewFile:
    """A file uploaded alongside a submission."""

    file_name: str
    mime_type: str
    content: bytes

    @property
    def byte_size(self) -> int:
        return len(self.content)


@dataclass
class ProductionPayload:
    """Everything a create or update request carries.

    Outputs and removed attachment ids travel as JSON array strings, the way
    a multi-part body encodes them; how the payload is actually transported
    is up to the persistence client.

    Attributes:
        scalar_fields: Plain record fields (status, shift, input quantity...)
        outputs: JSON array of output objects
        new_files: Files staged since the record was loaded
        removed_attachment_ids: JSON array of persisted attachment ids
    """

    scalar_fields: Dict[str, Any] = field(default_factory=dict)
    outputs: str = "[]"
    new_files: List[NewFile] = field(default_factory=list)
    removed_attachment_ids: str = "[]"

    def output_list(self) -> List[Dict[str, Any]]:
        """
        Decoded outputs.

        Raises:
            ValueError: If outputs is not a JSON array of objects
        """
        outputs = json.loads(self.outputs or "[]")
        if not isinstance(outputs, list) or not all(isinstance(o, dict) for o in outputs):
            raise ValueError("expected a JSON array of output objects")
        return outputs

    def removed_id_list(self) -> List[int]:
        """
        Decoded removed attachment ids.

        Raises:
            ValueError: If the ids are not a JSON array of integers
        """
        values = json.loads(self.removed_attachment_ids or "[]")
        if not isinstance(values, list):
            raise ValueError("expected a JSON array of attachment ids")
        ids = []
        for value in values:
            if isinstance(value, bool) or not isinstance(value, (int, str)):
                raise ValueError(f"{value!r} is not an attachment id")
            ids.append(int(value))
        return ids
