"""
Production Record Service - persistence and query operations for batches.

This module is the local persistence client used by the draft controller:
create_record and update_record take the single ProductionPayload a draft
produces and apply it in one transaction (outputs replaced, new files
added, removed attachments deleted). list_records is the query side that
feeds production_stats_service.

The server-side rules mirror the client-side ones, so a payload that skips
the draft controller is held to the same standard:
- New records always start In Production
- Finished records are never modified
- Files must be images of at most 2 MiB

Session Management Pattern:
- All public functions accept session=None parameter
- If session provided, use it directly
- If session is None, create a new session via session_scope()
"""

from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import (
    ProductionAttachment,
    ProductionOutput,
    ProductionRecord,
    ProductionStatus,
)
from src.services.database import session_scope
from src.services.dto import (
    PaginatedResult,
    PaginationParams,
    ProductionFilters,
    ProductionPayload,
)
from src.services.exceptions import (
    DatabaseError,
    ProductionFinishedError,
    ProductionRecordNotFound,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.production_draft import (
    DraftFields,
    OutputDetail,
    ProductionDraft,
    check_file,
    parse_quantity,
    validate_draft,
)
from src.services.production_stats_service import (
    conversion_efficiency,
    record_output_total_kg,
)
from src.utils.constants import BATCH_ID_PREFIX
from src.utils.datetime_utils import parse_iso_date, utc_now

logger = get_service_logger(__name__)

FOUR_PLACES = Decimal("0.0001")

SORTABLE_COLUMNS = {
    "production_date": ProductionRecord.production_date,
    "batch_id": ProductionRecord.batch_id,
    "created_at": ProductionRecord.created_at,
    "input_quantity": ProductionRecord.input_quantity,
    "location": ProductionRecord.location,
}


# =============================================================================
# Payload parsing
# =============================================================================


def _parse_outputs(payload: ProductionPayload) -> List[OutputDetail]:
    try:
        raw_outputs = payload.output_list()
    except ValueError as e:
        raise ValidationError([f"Outputs are not valid: {e}"]) from e

    outputs = []
    for index, raw in enumerate(raw_outputs):
        outputs.append(
            OutputDetail(
                item_name=str(raw.get("item_name") or "").strip(),
                quantity=parse_quantity(raw.get("quantity"), f"Output {index + 1}"),
                unit=raw.get("unit") or "",
                notes=raw.get("notes") or "",
            )
        )
    return outputs


def _parse_fields(payload: ProductionPayload) -> DraftFields:
    values = payload.scalar_fields
    try:
        status = ProductionStatus.parse(
            values.get("status") or ProductionStatus.IN_PRODUCTION.value
        )
    except ValueError:
        raise ValidationError([f"Unknown status '{values.get('status')}'"]) from None
    try:
        production_date = parse_iso_date(values.get("production_date"))
    except ValueError:
        raise ValidationError(
            [f"Production date '{values.get('production_date')}' is not a date"]
        ) from None

    return DraftFields(
        status=status,
        production_date=production_date,
        shift=values.get("shift") or "",
        location=(values.get("location") or "").strip(),
        machine=(values.get("machine") or "").strip(),
        operator_name=(values.get("operator_name") or "").strip(),
        input_type=(values.get("input_type") or "").strip(),
        input_quantity=parse_quantity(values.get("input_quantity"), "Input quantity"),
        input_unit=values.get("input_unit") or "",
        remarks=values.get("remarks") or "",
    )


def _validate_new_files(payload: ProductionPayload) -> None:
    errors = []
    for new_file in payload.new_files:
        error = check_file(new_file)
        if error is not None:
            errors.append(error)
    if errors:
        raise ValidationError(
            [message for error in errors for message in error.errors],
            code=errors[0].code,
        )


def _parse_payload(payload: ProductionPayload) -> ProductionDraft:
    """Parse and validate a payload with the same rules the draft uses."""
    draft = ProductionDraft(
        fields=_parse_fields(payload),
        outputs=tuple(_parse_outputs(payload)),
    )
    validate_draft(draft)
    _validate_new_files(payload)
    return draft


# =============================================================================
# Helpers
# =============================================================================


def _get_record_or_raise(record_id: int, session: Session) -> ProductionRecord:
    record = session.query(ProductionRecord).filter(ProductionRecord.id == record_id).first()
    if record is None:
        raise ProductionRecordNotFound(record_id)
    return record


def _generate_batch_id(production_date: date, session: Session) -> str:
    """Next free BATCH-YYYYMMDD-NNNN label for production_date."""
    prefix = f"{BATCH_ID_PREFIX}-{production_date.strftime('%Y%m%d')}-"
    sequence = (
        session.query(func.count(ProductionRecord.id))
        .filter(ProductionRecord.batch_id.like(f"{prefix}%"))
        .scalar()
    )
    while True:
        sequence += 1
        candidate = f"{prefix}{sequence:04d}"
        exists = (
            session.query(ProductionRecord.id)
            .filter(ProductionRecord.batch_id == candidate)
            .first()
        )
        if exists is None:
            return candidate


def _apply_fields(record: ProductionRecord, fields: DraftFields) -> None:
    record.status = fields.status.value
    record.production_date = fields.production_date
    record.shift = fields.shift
    record.location = fields.location
    record.machine = fields.machine or None
    record.operator_name = fields.operator_name or None
    record.input_type = fields.input_type
    record.input_quantity = fields.input_quantity
    record.input_unit = fields.input_unit
    record.remarks = fields.remarks or None


def _replace_outputs(record: ProductionRecord, outputs) -> None:
    record.outputs.clear()
    for position, output in enumerate(outputs):
        record.outputs.append(
            ProductionOutput(
                position=position,
                item_name=output.item_name,
                quantity=output.quantity,
                unit=output.unit,
                notes=output.notes or None,
            )
        )


def _add_files(record: ProductionRecord, payload: ProductionPayload) -> None:
    uploaded_at = utc_now()
    for new_file in payload.new_files:
        record.attachments.append(
            ProductionAttachment(
                file_name=new_file.file_name,
                mime_type=new_file.mime_type,
                byte_size=new_file.byte_size,
                content=new_file.content,
                uploaded_at=uploaded_at,
            )
        )


def _check_attachment_ids(record: ProductionRecord, attachment_ids: List[int]) -> None:
    owned = {attachment.id for attachment in record.attachments}
    unknown = [attachment_id for attachment_id in attachment_ids if attachment_id not in owned]
    if unknown:
        raise ValidationError(
            [
                f"Attachment {attachment_id} does not belong to this production"
                for attachment_id in unknown
            ]
        )


def _remove_attachments(record: ProductionRecord, attachment_ids: List[int]) -> None:
    removed = set(attachment_ids)
    for attachment in [a for a in record.attachments if a.id in removed]:
        record.attachments.remove(attachment)


def _refresh_derived(record: ProductionRecord) -> None:
    record.total_output_qty = record_output_total_kg(record).quantize(FOUR_PLACES)
    record.conversion_efficiency = conversion_efficiency(record).quantize(FOUR_PLACES)


# =============================================================================
# Persistence client operations
# =============================================================================


def create_record(
    payload: ProductionPayload,
    *,
    session: Optional[Session] = None,
) -> ProductionRecord:
    """
    Create a production record from a draft payload.

    Args:
        payload: Scalar fields, outputs and new files
        session: Optional database session

    Returns:
        The new ProductionRecord, with outputs and attachments loaded

    Raises:
        ValidationError: If the payload is invalid or claims Finished
        DatabaseError: If the database rejects the write
    """
    try:
        if session is not None:
            return _create_record_impl(payload, session)
        with session_scope() as session:
            return _create_record_impl(payload, session)
    except SQLAlchemyError as e:
        logger.error(f"Database error creating production: {e}")
        raise DatabaseError(f"Failed to create production: {e}", original_error=e) from e


def _create_record_impl(payload: ProductionPayload, session: Session) -> ProductionRecord:
    draft = _parse_payload(payload)
    if draft.fields.status != ProductionStatus.IN_PRODUCTION:
        raise ValidationError(["New productions start In Production"])
    try:
        removed_ids = payload.removed_id_list()
    except ValueError as e:
        raise ValidationError([f"Removed attachment ids are not valid: {e}"]) from e
    if removed_ids:
        raise ValidationError(["A new production has no attachments to remove"])

    record = ProductionRecord(
        batch_id=_generate_batch_id(draft.fields.production_date, session),
    )
    _apply_fields(record, draft.fields)
    _replace_outputs(record, draft.outputs)
    _add_files(record, payload)
    _refresh_derived(record)

    session.add(record)
    session.flush()

    log_operation(
        logger,
        operation="create_record",
        outcome="success",
        record_id=record.id,
        batch_id=record.batch_id,
        outputs=len(record.outputs),
        new_files=len(payload.new_files),
    )
    return record


def update_record(
    record_id: int,
    payload: ProductionPayload,
    *,
    session: Optional[Session] = None,
) -> ProductionRecord:
    """
    Apply a draft payload to an existing record in one transaction.

    Outputs are replaced, new files added and removed attachments deleted
    together; if any part fails nothing is changed.

    Args:
        record_id: Record to update
        payload: Scalar fields, outputs, new files and removed attachment ids
        session: Optional database session

    Returns:
        The updated ProductionRecord

    Raises:
        ProductionRecordNotFound: If the record doesn't exist
        ProductionFinishedError: If the record is already Finished
        ValidationError: If the payload is invalid
        DatabaseError: If the database rejects the write
    """
    try:
        if session is not None:
            return _update_record_impl(record_id, payload, session)
        with session_scope() as session:
            return _update_record_impl(record_id, payload, session)
    except SQLAlchemyError as e:
        logger.error(f"Database error updating production {record_id}: {e}")
        raise DatabaseError(f"Failed to update production: {e}", original_error=e) from e


def _update_record_impl(
    record_id: int, payload: ProductionPayload, session: Session
) -> ProductionRecord:
    record = _get_record_or_raise(record_id, session)
    if record.is_finished:
        log_operation(
            logger,
            operation="update_record",
            outcome="record_finished",
            record_id=record_id,
        )
        raise ProductionFinishedError(record.display_batch_id, "update production")

    draft = _parse_payload(payload)
    try:
        removed_ids = payload.removed_id_list()
    except ValueError as e:
        raise ValidationError([f"Removed attachment ids are not valid: {e}"]) from e
    _check_attachment_ids(record, removed_ids)

    _apply_fields(record, draft.fields)
    _replace_outputs(record, draft.outputs)
    _remove_attachments(record, removed_ids)
    _add_files(record, payload)
    _refresh_derived(record)
    record.updated_at = utc_now()

    session.flush()

    log_operation(
        logger,
        operation="update_record",
        outcome="success",
        record_id=record.id,
        status=record.status,
        new_files=len(payload.new_files),
        removed_attachments=len(removed_ids),
    )
    return record


# =============================================================================
# Query operations
# =============================================================================


def get_record(record_id: int, *, session: Optional[Session] = None) -> ProductionRecord:
    """
    Get a production record by id.

    Raises:
        ProductionRecordNotFound: If the record doesn't exist
    """
    if session is not None:
        return _get_record_or_raise(record_id, session)
    with session_scope() as session:
        return _get_record_or_raise(record_id, session)


def get_record_by_batch_id(
    batch_id: str, *, session: Optional[Session] = None
) -> ProductionRecord:
    """
    Get a production record by its batch label (case-insensitive).

    Raises:
        ProductionRecordNotFound: If no record has that label
    """
    if session is not None:
        return _get_by_batch_id_impl(batch_id, session)
    with session_scope() as session:
        return _get_by_batch_id_impl(batch_id, session)


def _get_by_batch_id_impl(batch_id: str, session: Session) -> ProductionRecord:
    record = (
        session.query(ProductionRecord)
        .filter(func.upper(ProductionRecord.batch_id) == (batch_id or "").strip().upper())
        .first()
    )
    if record is None:
        raise ProductionRecordNotFound(batch_id)
    return record


def list_records(
    filters: Optional[ProductionFilters] = None,
    pagination: Optional[PaginationParams] = None,
    *,
    session: Optional[Session] = None,
) -> PaginatedResult[ProductionRecord]:
    """
    List production records matching filters.

    Args:
        filters: Search/shift/location/date filters; None means all records
        pagination: Page to return; None returns every match in one page
        session: Optional database session

    Returns:
        PaginatedResult of ProductionRecord
    """
    if session is not None:
        return _list_records_impl(filters, pagination, session)
    with session_scope() as session:
        return _list_records_impl(filters, pagination, session)


def _list_records_impl(
    filters: Optional[ProductionFilters],
    pagination: Optional[PaginationParams],
    session: Session,
) -> PaginatedResult[ProductionRecord]:
    filters = filters or ProductionFilters()
    query = session.query(ProductionRecord)

    if filters.search:
        pattern = f"%{filters.search.strip()}%"
        query = query.filter(
            or_(
                ProductionRecord.batch_id.ilike(pattern),
                ProductionRecord.location.ilike(pattern),
                ProductionRecord.machine.ilike(pattern),
                ProductionRecord.operator_name.ilike(pattern),
                ProductionRecord.input_type.ilike(pattern),
            )
        )
    if filters.shift:
        query = query.filter(ProductionRecord.shift == filters.shift)
    if filters.location:
        query = query.filter(ProductionRecord.location == filters.location)
    if filters.machine:
        query = query.filter(ProductionRecord.machine == filters.machine)
    if filters.operator:
        query = query.filter(ProductionRecord.operator_name == filters.operator)
    if filters.status:
        query = query.filter(ProductionRecord.status == filters.status)
    if filters.date_from:
        query = query.filter(ProductionRecord.production_date >= filters.date_from)
    if filters.date_to:
        query = query.filter(ProductionRecord.production_date <= filters.date_to)

    total = query.count()

    sort_column = SORTABLE_COLUMNS.get(filters.sort_by, ProductionRecord.production_date)
    ordering = sort_column.asc() if filters.sort_order == "asc" else sort_column.desc()
    query = query.order_by(ordering, ProductionRecord.id.asc())

    if pagination is None:
        items = query.all()
        return PaginatedResult(items=items, total=total, page=1, per_page=max(total, 1))

    items = query.offset(pagination.offset()).limit(pagination.per_page).all()
    return PaginatedResult(
        items=items, total=total, page=pagination.page, per_page=pagination.per_page
    )


def delete_record(record_id: int, *, session: Optional[Session] = None) -> None:
    """
    Delete a production record with its outputs and attachments.

    Raises:
        ProductionRecordNotFound: If the record doesn't exist
    """
    if session is not None:
        return _delete_record_impl(record_id, session)
    with session_scope() as session:
        return _delete_record_impl(record_id, session)


def _delete_record_impl(record_id: int, session: Session) -> None:
    record = _get_record_or_raise(record_id, session)
    session.delete(record)
    session.flush()
    log_operation(logger, operation="delete_record", outcome="success", record_id=record_id)


def format_batch_id(batch_id: str) -> str:
    """Batch label normalized for display."""
    return (batch_id or "").upper()
