"""
Production Draft Controller.

Owns the in-progress edit state of one production record: the output
lines, the three-way attachment set (kept / newly staged / marked for
removal) and the In Production -> Finished transition.

The state is one immutable value, ProductionDraft. Every edit is a pure
function returning a new draft, so the related collections (outputs, staged
files, removed attachment ids) can never drift out of step with each other.
ProductionDraftController wraps a draft for one edit session: it applies
those functions, renders image previews in the background and hands a
single payload to the persistence client on submit.

Workflow rules:
- A record starts In Production. "Mark finished" needs at least one
  complete output line; there is no way back.
- A Finished record is read-only: every edit raises ProductionFinishedError.
- Validation failures are local. Nothing is sent and the draft is unchanged.
- A failed submission leaves the draft exactly as it was, ready to retry.

Usage:
    controller = ProductionDraftController.for_record(record)
    accepted, errors = controller.stage_files([StagedFile("a.jpg", "image/jpeg", data)])
    controller.mark_attachment_for_removal(old_attachment_id)
    saved = controller.submit()
"""

import base64
import dataclasses
import json
import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple

from src.models.enums import ProductionStatus
from src.services.dto import NewFile, ProductionPayload
from src.services.exceptions import (
    ProductionFinishedError,
    ServiceError,
    SubmissionError,
    SubmissionInProgressError,
    ValidationCode,
    ValidationError,
)
from src.services.logging_utils import get_service_logger, log_operation
from src.services.unit_converter import is_bag_unit, is_weight_unit
from src.utils.constants import (
    ATTACHMENT_MIME_PREFIX,
    DEFAULT_INPUT_TYPE,
    DEFAULT_UNIT,
    ITEM_ATTA,
    MAX_ATTACHMENT_BYTES,
    OUTPUT_ITEM_NAMES,
    SHIFTS,
)
from src.utils.datetime_utils import parse_iso_date

logger = get_service_logger(__name__)

ACTION_MARK_FINISHED = "mark_finished"


# =============================================================================
# Value types
# =============================================================================


def parse_quantity(value, label: str) -> Decimal:
    """
    Parse a user-entered quantity; blank means zero.

    Raises:
        ValidationError: If the value is not a finite number ("abc", "NaN",
            "Infinity")
    """
    if value is None or value == "":
        return Decimal("0")
    try:
        quantity = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation:
        quantity = None
    if quantity is None or not quantity.is_finite():
        raise ValidationError([f"{label}: '{value}' is not a number"])
    return quantity


def _is_positive(quantity) -> bool:
    if not isinstance(quantity, Decimal):
        quantity = Decimal(str(quantity))
    return quantity.is_finite() and quantity > 0


def is_output_unit(unit) -> bool:
    """Weight or bag unit, matched ignoring case like the unit converter does."""
    return is_weight_unit(unit) or is_bag_unit(unit)


@dataclass(frozen=True)
class OutputDetail:
    """One output line being edited."""

    item_name: str = ITEM_ATTA
    quantity: Decimal = Decimal("0")
    unit: str = DEFAULT_UNIT
    notes: str = ""

    def is_valid(self) -> bool:
        """Complete enough to count towards finishing a batch."""
        return (
            bool((self.item_name or "").strip())
            and _is_positive(self.quantity)
            and is_output_unit(self.unit)
        )

    def to_payload(self) -> dict:
        return {
            "item_name": self.item_name.strip(),
            "quantity": str(self.quantity),
            "unit": self.unit,
            "notes": self.notes or "",
        }

    @classmethod
    def from_model(cls, output) -> "OutputDetail":
        return cls(
            item_name=output.item_name or "",
            quantity=parse_quantity(output.quantity, "Quantity"),
            unit=output.unit or "",
            notes=output.notes or "",
        )


@dataclass(frozen=True)
class StagedFile:
    """A file picked or captured locally, not yet uploaded."""

    file_name: str
    mime_type: str
    content: bytes = b""

    @property
    def byte_size(self) -> int:
        return len(self.content)

    def to_new_file(self) -> NewFile:
        return NewFile(
            file_name=self.file_name, mime_type=self.mime_type, content=self.content
        )


@dataclass(frozen=True)
class AttachmentRef:
    """A persisted attachment, as the draft sees it (content not loaded)."""

    id: int
    file_name: str
    mime_type: str
    byte_size: int
    uploaded_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, attachment) -> "AttachmentRef":
        return cls(
            id=attachment.id,
            file_name=attachment.file_name,
            mime_type=attachment.mime_type,
            byte_size=attachment.byte_size,
            uploaded_at=attachment.uploaded_at,
        )


@dataclass(frozen=True)
class DraftFields:
    """Scalar fields of the record being edited."""

    status: ProductionStatus = ProductionStatus.IN_PRODUCTION
    production_date: Optional[date] = None
    shift: str = SHIFTS[0]
    location: str = ""
    machine: str = ""
    operator_name: str = ""
    input_type: str = DEFAULT_INPUT_TYPE
    input_quantity: Decimal = Decimal("0")
    input_unit: str = DEFAULT_UNIT
    remarks: str = ""


@dataclass(frozen=True)
class ProductionDraft:
    """Client-side edit state for one production record.

    Attributes:
        record_id: Id of the record being edited; None when creating
        batch_id: Batch label of the record being edited
        base_status: Status as last persisted; Finished makes the draft read-only
        fields: Scalar fields
        outputs: Output lines, in display order
        existing_attachments: Persisted attachments still kept
        staged_files: New files to upload on submit
        removed_attachment_ids: Persisted attachments to delete on submit
    """

    record_id: Optional[int] = None
    batch_id: Optional[str] = None
    base_status: ProductionStatus = ProductionStatus.IN_PRODUCTION
    fields: DraftFields = field(default_factory=DraftFields)
    outputs: Tuple[OutputDetail, ...] = ()
    existing_attachments: Tuple[AttachmentRef, ...] = ()
    staged_files: Tuple[StagedFile, ...] = ()
    removed_attachment_ids: Tuple[int, ...] = ()

    @property
    def is_new(self) -> bool:
        return self.record_id is None

    @property
    def read_only(self) -> bool:
        return self.base_status == ProductionStatus.FINISHED

    @property
    def status(self) -> ProductionStatus:
        return self.fields.status


def default_outputs() -> Tuple[OutputDetail, ...]:
    """One empty line per known output item."""
    return tuple(OutputDetail(item_name=name) for name in OUTPUT_ITEM_NAMES)


def new_draft(**field_values) -> ProductionDraft:
    """
    Draft for a record that doesn't exist yet.

    Args:
        **field_values: Overrides for DraftFields (e.g. location="Mill 2")
    """
    field_values.setdefault("production_date", date.today())
    if "input_quantity" in field_values:
        field_values["input_quantity"] = parse_quantity(
            field_values["input_quantity"], "Input quantity"
        )
    return ProductionDraft(fields=DraftFields(**field_values), outputs=default_outputs())


def draft_from_record(record) -> ProductionDraft:
    """Draft editing a persisted record (a ProductionRecord or lookalike)."""
    status = ProductionStatus.parse(record.status)
    outputs = tuple(OutputDetail.from_model(output) for output in record.outputs or [])
    if not outputs and status == ProductionStatus.IN_PRODUCTION:
        outputs = default_outputs()

    return ProductionDraft(
        record_id=record.id,
        batch_id=record.batch_id,
        base_status=status,
        fields=DraftFields(
            status=status,
            production_date=parse_iso_date(record.production_date),
            shift=record.shift or "",
            location=record.location or "",
            machine=record.machine or "",
            operator_name=record.operator_name or "",
            input_type=record.input_type or "",
            input_quantity=parse_quantity(record.input_quantity, "Input quantity"),
            input_unit=record.input_unit or "",
            remarks=record.remarks or "",
        ),
        outputs=outputs,
        existing_attachments=tuple(
            AttachmentRef.from_model(attachment) for attachment in record.attachments or []
        ),
    )


# =============================================================================
# Pure update functions
# =============================================================================


def _require_editable(draft: ProductionDraft, action: str) -> None:
    if draft.read_only:
        raise ProductionFinishedError(draft.batch_id or draft.record_id, action)


def update_fields(draft: ProductionDraft, **changes) -> ProductionDraft:
    """
    Change scalar fields.

    Raises:
        ProductionFinishedError: If the record is Finished
        ValidationError: If a new record is set to Finished
        TypeError: If a field name is unknown
    """
    _require_editable(draft, "edit production")
    if "status" in changes:
        changes["status"] = ProductionStatus.parse(changes["status"])
        if draft.is_new and changes["status"] == ProductionStatus.FINISHED:
            raise ValidationError(["New productions start In Production"])
    if "input_quantity" in changes:
        changes["input_quantity"] = parse_quantity(changes["input_quantity"], "Input quantity")
    if "production_date" in changes:
        changes["production_date"] = parse_iso_date(changes["production_date"])
    return dataclasses.replace(draft, fields=dataclasses.replace(draft.fields, **changes))


def add_output(draft: ProductionDraft, output: Optional[OutputDetail] = None) -> ProductionDraft:
    """Append an output line (an empty Atta/KG line by default)."""
    _require_editable(draft, "edit outputs")
    if output is None:
        output = OutputDetail()
    else:
        label = f"Output {len(draft.outputs) + 1}"
        output = dataclasses.replace(output, quantity=parse_quantity(output.quantity, label))
    return dataclasses.replace(draft, outputs=draft.outputs + (output,))


def update_output(draft: ProductionDraft, index: int, **changes) -> ProductionDraft:
    """
    Change one output line.

    Raises:
        IndexError: If there is no line at index
    """
    _require_editable(draft, "edit outputs")
    if not 0 <= index < len(draft.outputs):
        raise IndexError(f"No output line at position {index}")
    outputs = list(draft.outputs)
    if "quantity" in changes:
        changes["quantity"] = parse_quantity(changes["quantity"], f"Output {index + 1}")
    outputs[index] = dataclasses.replace(outputs[index], **changes)
    return dataclasses.replace(draft, outputs=tuple(outputs))


def remove_output(draft: ProductionDraft, index: int) -> ProductionDraft:
    """Remove an output line. The last line and unknown positions are left alone."""
    _require_editable(draft, "edit outputs")
    if len(draft.outputs) <= 1 or not 0 <= index < len(draft.outputs):
        return draft
    outputs = draft.outputs[:index] + draft.outputs[index + 1:]
    return dataclasses.replace(draft, outputs=outputs)


def check_file(candidate: StagedFile) -> Optional[ValidationError]:
    """
    Check one candidate file against the upload rules.

    Returns:
        ValidationError describing the problem, or None if acceptable
    """
    name = candidate.file_name or "Unknown file"
    if not candidate.mime_type:
        return ValidationError(
            [f"Invalid file: {name}"], code=ValidationCode.UNSUPPORTED_FILE_TYPE
        )
    if not candidate.mime_type.startswith(ATTACHMENT_MIME_PREFIX):
        return ValidationError(
            [f"{name}: Only image files are allowed"],
            code=ValidationCode.UNSUPPORTED_FILE_TYPE,
        )
    if candidate.byte_size > MAX_ATTACHMENT_BYTES:
        size_mb = candidate.byte_size / 1024 / 1024
        return ValidationError(
            [f"{name}: File size must be under 2MB (current: {size_mb:.2f}MB)"],
            code=ValidationCode.FILE_TOO_LARGE,
        )
    return None


def stage_files(
    draft: ProductionDraft, candidates: Iterable[StagedFile]
) -> Tuple[ProductionDraft, List[ValidationError]]:
    """
    Stage new files for upload.

    Each file is checked on its own: good files are staged even when others
    in the same batch are rejected.

    Returns:
        (new draft, one ValidationError per rejected file)
    """
    _require_editable(draft, "add attachments")
    accepted: List[StagedFile] = []
    errors: List[ValidationError] = []
    for candidate in candidates:
        error = check_file(candidate)
        if error is None:
            accepted.append(candidate)
        else:
            errors.append(error)
    if accepted:
        draft = dataclasses.replace(draft, staged_files=draft.staged_files + tuple(accepted))
    return draft, errors


def unstage_file(draft: ProductionDraft, index: int) -> ProductionDraft:
    """Drop a staged file. Nothing is sent anywhere."""
    _require_editable(draft, "remove attachments")
    if not 0 <= index < len(draft.staged_files):
        return draft
    staged = draft.staged_files[:index] + draft.staged_files[index + 1:]
    return dataclasses.replace(draft, staged_files=staged)


def mark_attachment_for_removal(draft: ProductionDraft, attachment_id: int) -> ProductionDraft:
    """
    Hide a persisted attachment and schedule its deletion.

    The deletion only becomes durable when the next submission succeeds.
    Unknown or already-removed ids leave the draft unchanged.
    """
    _require_editable(draft, "remove attachments")
    kept = tuple(a for a in draft.existing_attachments if a.id != attachment_id)
    if len(kept) == len(draft.existing_attachments):
        return draft
    return dataclasses.replace(
        draft,
        existing_attachments=kept,
        removed_attachment_ids=draft.removed_attachment_ids + (attachment_id,),
    )


# =============================================================================
# Validation and workflow
# =============================================================================


def valid_outputs(draft: ProductionDraft) -> Tuple[OutputDetail, ...]:
    return tuple(output for output in draft.outputs if output.is_valid())


def _output_error(index: int, output: OutputDetail, strict: bool) -> Optional[str]:
    label = f"Output {index + 1}"
    has_name = bool((output.item_name or "").strip())
    if not has_name:
        return f"{label}: Item name is required" if strict else None
    if not _is_positive(output.quantity):
        return f"{label}: Quantity must be greater than 0"
    if not (output.unit or "").strip():
        return f"{label}: Unit is required"
    if not is_output_unit(output.unit):
        return f"{label}: Unit '{output.unit}' is not supported"
    return None


def validate_draft(draft: ProductionDraft) -> None:
    """
    Validate the whole form before create/update.

    Outputs are mandatory and must all be complete when the target status
    is Finished. While In Production only lines with an item name are
    checked.

    Raises:
        ValidationError: INVALID_FIELDS, listing every problem found
    """
    fields = draft.fields
    field_errors: Dict[str, object] = {}

    if not fields.production_date:
        field_errors["production_date"] = "Production date is required"
    if not (fields.shift or "").strip():
        field_errors["shift"] = "Shift is required"
    elif fields.shift not in SHIFTS:
        field_errors["shift"] = f"Shift must be one of {', '.join(SHIFTS)}"
    if not (fields.location or "").strip():
        field_errors["location"] = "Location is required"
    if not (fields.input_type or "").strip():
        field_errors["input_type"] = "Input type is required"
    if not _is_positive(fields.input_quantity):
        field_errors["input_quantity"] = "Input quantity must be greater than 0"
    if not (fields.input_unit or "").strip():
        field_errors["input_unit"] = "Input unit is required"
    elif not is_weight_unit(fields.input_unit):
        field_errors["input_unit"] = "Input unit must be KG, Quintal or Ton"

    strict = fields.status == ProductionStatus.FINISHED
    if strict and not draft.outputs:
        field_errors["outputs"] = [
            "At least one output detail is required when status is Finished"
        ]
    else:
        output_errors = [
            message
            for index, output in enumerate(draft.outputs)
            for message in [_output_error(index, output, strict)]
            if message
        ]
        if output_errors:
            field_errors["outputs"] = output_errors

    if field_errors:
        messages: List[str] = []
        for value in field_errors.values():
            messages.extend(value if isinstance(value, list) else [value])
        raise ValidationError(messages, code=ValidationCode.INVALID_FIELDS, field_errors=field_errors)


def available_actions(draft: ProductionDraft, can_manage: bool) -> List[str]:
    """
    Status actions to offer for this draft.

    Authorization is decided by the caller; this only combines the
    permission gate with the workflow state.
    """
    if not can_manage or draft.is_new:
        return []
    if draft.base_status == ProductionStatus.IN_PRODUCTION:
        return [ACTION_MARK_FINISHED]
    return []


def finish_draft(draft: ProductionDraft) -> ProductionDraft:
    """
    Move a draft to Finished, keeping only its complete output lines.

    Raises:
        ProductionFinishedError: If the record is already Finished
        ValidationError: MISSING_VALID_OUTPUT when no line is complete
    """
    _require_editable(draft, "mark production finished")
    outputs = valid_outputs(draft)
    if not outputs:
        raise ValidationError(
            ["Please add at least one valid output detail"],
            code=ValidationCode.MISSING_VALID_OUTPUT,
        )
    return dataclasses.replace(
        draft,
        fields=dataclasses.replace(draft.fields, status=ProductionStatus.FINISHED),
        outputs=outputs,
    )


def build_payload(draft: ProductionDraft) -> ProductionPayload:
    """
    Assemble the single request for this draft.

    Kept attachments travel implicitly (by not being removed); new files
    and removed ids travel explicitly.

    Raises:
        ProductionFinishedError: If the record is already Finished
    """
    _require_editable(draft, "submit production")
    fields = draft.fields
    scalar_fields = {
        "status": fields.status.value,
        "production_date": (
            fields.production_date.isoformat() if fields.production_date else None
        ),
        "shift": fields.shift,
        "location": fields.location.strip(),
        "machine": fields.machine.strip(),
        "operator_name": fields.operator_name.strip(),
        "input_type": fields.input_type.strip(),
        "input_quantity": str(fields.input_quantity),
        "input_unit": fields.input_unit,
        "remarks": fields.remarks,
    }
    return ProductionPayload(
        scalar_fields=scalar_fields,
        outputs=json.dumps([output.to_payload() for output in draft.outputs]),
        new_files=[staged.to_new_file() for staged in draft.staged_files],
        removed_attachment_ids=json.dumps(list(draft.removed_attachment_ids)),
    )


# =============================================================================
# Previews
# =============================================================================


def render_preview(staged: StagedFile) -> str:
    """Content of a staged file as a displayable data URL."""
    encoded = base64.b64encode(staged.content).decode("ascii")
    return f"data:{staged.mime_type};base64,{encoded}"


# =============================================================================
# Controller
# =============================================================================


class ProductionDraftController:
    """
    One edit session over a production record.

    Holds the current ProductionDraft, the rendered previews and the
    submission busy gate. The draft is replaced wholesale on every edit and
    after every successful submit; a failed submit leaves it untouched.

    Args:
        draft: Starting draft
        client: Persistence client with create_record(payload) and
            update_record(record_id, payload). Defaults to the local
            production_record_service.
        preview_executor: Executor for preview rendering. A small thread
            pool is created on first use when omitted.
    """

    def __init__(
        self,
        draft: ProductionDraft,
        client=None,
        preview_executor: Optional[Executor] = None,
    ):
        if client is None:
            from src.services import production_record_service

            client = production_record_service
        self._draft = draft
        self._baseline = draft
        self._client = client
        self._executor = preview_executor
        self._owns_executor = preview_executor is None
        self._previews: Dict[str, str] = {}
        self._submitting = False

    @classmethod
    def for_new(cls, client=None, preview_executor=None, **field_values) -> "ProductionDraftController":
        return cls(new_draft(**field_values), client=client, preview_executor=preview_executor)

    @classmethod
    def for_record(cls, record, client=None, preview_executor=None) -> "ProductionDraftController":
        return cls(draft_from_record(record), client=client, preview_executor=preview_executor)

    # -- state -----------------------------------------------------------------

    @property
    def draft(self) -> ProductionDraft:
        return self._draft

    @property
    def read_only(self) -> bool:
        return self._draft.read_only

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    def get_preview(self, file_name: str) -> Optional[str]:
        """Rendered preview for a staged file, if it has finished rendering."""
        if not any(staged.file_name == file_name for staged in self._draft.staged_files):
            return None
        return self._previews.get(file_name)

    def available_actions(self, can_manage: bool) -> List[str]:
        return available_actions(self._draft, can_manage)

    # -- edits -----------------------------------------------------------------

    def update_fields(self, **changes) -> None:
        self._draft = update_fields(self._draft, **changes)

    def add_output(self, output: Optional[OutputDetail] = None) -> None:
        self._draft = add_output(self._draft, output)

    def update_output(self, index: int, **changes) -> None:
        self._draft = update_output(self._draft, index, **changes)

    def remove_output(self, index: int) -> None:
        self._draft = remove_output(self._draft, index)

    def stage_files(
        self, candidates: Iterable[StagedFile]
    ) -> Tuple[List[StagedFile], List[ValidationError]]:
        """
        Stage files and start rendering their previews.

        Returns:
            (accepted files, one ValidationError per rejected file)
        """
        before = len(self._draft.staged_files)
        self._draft, errors = stage_files(self._draft, candidates)
        accepted = list(self._draft.staged_files[before:])

        for staged in accepted:
            self._previews.pop(staged.file_name, None)
            self.request_preview(staged)

        log_operation(
            logger,
            operation="stage_files",
            outcome="success" if not errors else "partially_rejected",
            level=logging.DEBUG if not errors else logging.WARNING,
            record_id=self._draft.record_id,
            accepted=len(accepted),
            rejected=len(errors),
        )
        return accepted, errors

    def unstage_file(self, index: int) -> None:
        if not 0 <= index < len(self._draft.staged_files):
            return
        file_name = self._draft.staged_files[index].file_name
        self._draft = unstage_file(self._draft, index)
        if not any(staged.file_name == file_name for staged in self._draft.staged_files):
            self._previews.pop(file_name, None)

    def mark_attachment_for_removal(self, attachment_id: int) -> None:
        self._draft = mark_attachment_for_removal(self._draft, attachment_id)

    # -- previews --------------------------------------------------------------

    def request_preview(self, staged: StagedFile) -> Future:
        """
        Render a preview in the background.

        The result is stored only if the file is still staged when the
        rendering completes; a preview for a file removed meanwhile is
        dropped.
        """
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="preview")
        return self._executor.submit(self._render_and_store, staged)

    def _render_and_store(self, staged: StagedFile) -> Optional[str]:
        preview = render_preview(staged)
        if staged in self._draft.staged_files:
            self._previews[staged.file_name] = preview
            return preview
        return None

    # -- submission ------------------------------------------------------------

    def submit(self):
        """
        Validate the draft and create or update the record.

        Returns:
            The record returned by the persistence client

        Raises:
            ProductionFinishedError: If the record is already Finished
            ValidationError: If the form is invalid (nothing is sent)
            SubmissionInProgressError: If a submit is already in flight
            SubmissionError: If the persistence client fails
        """
        _require_editable(self._draft, "edit production")
        validate_draft(self._draft)
        return self._send(self._draft, operation="submit_draft")

    def mark_finished(self):
        """
        Finish the batch: one update carrying the complete outputs, the
        remaining attachments, new files, removed ids and remarks.

        Only offer this when available_actions() includes "mark_finished".

        Raises:
            ValidationError: MISSING_VALID_OUTPUT (nothing is sent)
            ProductionFinishedError: If already Finished
            SubmissionInProgressError: If a submit is already in flight
            SubmissionError: If the persistence client fails
        """
        if self._draft.is_new:
            raise ValidationError(["Save the production before marking it finished"])
        finished = finish_draft(self._draft)
        return self._send(finished, operation="mark_finished")

    def _send(self, draft: ProductionDraft, operation: str):
        if self._submitting:
            raise SubmissionInProgressError()

        payload = build_payload(draft)
        self._submitting = True
        try:
            if draft.is_new:
                saved = self._client.create_record(payload)
            else:
                saved = self._client.update_record(draft.record_id, payload)
        except Exception as e:
            message = e.message if isinstance(e, ServiceError) and e.message else str(e)
            log_operation(
                logger,
                operation=operation,
                outcome="error",
                level=logging.ERROR,
                record_id=draft.record_id,
                error=message,
            )
            raise SubmissionError(message or "Failed to save production", original_error=e) from e
        finally:
            self._submitting = False

        log_operation(
            logger,
            operation=operation,
            outcome="success",
            record_id=getattr(saved, "id", None),
            new_files=len(draft.staged_files),
            removed_attachments=len(draft.removed_attachment_ids),
        )
        self._previews.clear()
        self._shutdown_executor()
        self._draft = draft_from_record(saved)
        self._baseline = self._draft
        return saved

    def discard(self) -> None:
        """End the session without saving.

        The draft goes back to the last persisted state; staged files,
        removal marks and pending previews are abandoned.
        """
        self._draft = self._baseline
        self._previews.clear()
        self._shutdown_executor()

    def _shutdown_executor(self) -> None:
        if self._owns_executor and self._executor is not None:
            self._executor.shutdown(wait=False)
            self._executor = None
