"""
ProductionRecord model for tracking mill production batches.

This module contains the ProductionRecord model which represents one
production run: the raw material consumed (input), the items produced
(outputs) and the photos attached as evidence.

A record starts In Production and moves one way to Finished, at which
point it becomes read-only.
"""

from decimal import Decimal

from sqlalchemy import (
    Column,
    Date,
    String,
    Text,
    Index,
    Numeric,
    CheckConstraint,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from .enums import ProductionStatus
from src.utils.constants import TABLE_PRODUCTION_RECORD


class ProductionRecord(BaseModel):
    """
    ProductionRecord model for tracking production batches.

    Attributes:
        batch_id: Human-readable batch label, assigned on creation
        status: "In Production" or "Finished"
        production_date: Day the batch was produced
        shift: "Day" or "Night"
        location: Mill location
        machine: Machine the batch ran on
        operator_name: Operator responsible for the batch
        input_type: Raw material consumed (e.g. "Wheat")
        input_quantity: Amount of raw material consumed
        input_unit: Unit of input_quantity (KG, Quintal, Ton)
        remarks: Optional free text
        total_output_qty: Sum of weight outputs in KG (derived on save)
        conversion_efficiency: Output KG / input KG * 100 (derived on save)
    """

    __tablename__ = TABLE_PRODUCTION_RECORD

    batch_id = Column(String(50), nullable=False, unique=True)
    status = Column(
        String(20), nullable=False, default=ProductionStatus.IN_PRODUCTION.value
    )

    production_date = Column(Date, nullable=False)
    shift = Column(String(10), nullable=False)
    location = Column(String(200), nullable=False)
    machine = Column(String(200), nullable=True)
    operator_name = Column(String(200), nullable=True)

    input_type = Column(String(100), nullable=False)
    input_quantity = Column(Numeric(14, 4), nullable=False)
    input_unit = Column(String(50), nullable=False)

    remarks = Column(Text, nullable=True)

    total_output_qty = Column(Numeric(14, 4), nullable=False, default=Decimal("0"))
    conversion_efficiency = Column(Numeric(8, 4), nullable=False, default=Decimal("0"))

    outputs = relationship(
        "ProductionOutput",
        back_populates="production_record",
        cascade="all, delete-orphan",
        order_by="ProductionOutput.position",
        lazy="selectin",
    )
    attachments = relationship(
        "ProductionAttachment",
        back_populates="production_record",
        cascade="all, delete-orphan",
        order_by="ProductionAttachment.id",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_production_record_date", "production_date"),
        Index("idx_production_record_status", "status"),
        Index("idx_production_record_location", "location"),
        CheckConstraint(
            "input_quantity >= 0", name="ck_production_record_input_non_negative"
        ),
    )

    @property
    def is_finished(self) -> bool:
        """True once the batch has been marked Finished."""
        return self.status == ProductionStatus.FINISHED.value

    @property
    def display_batch_id(self) -> str:
        """Batch label normalized for display."""
        return (self.batch_id or "").upper()

    def __repr__(self) -> str:
        return (
            f"ProductionRecord(id={self.id}, batch_id='{self.batch_id}', "
            f"status='{self.status}')"
        )

    def to_dict(self, include_relationships: bool = False) -> dict:
        """
        Convert production record to dictionary.

        Args:
            include_relationships: If True, include outputs and attachment
                metadata (attachment content is never included)
        """
        result = super().to_dict(include_relationships=False)
        result["batch_id"] = self.display_batch_id

        if include_relationships:
            result["outputs"] = [output.to_dict() for output in self.outputs]
            result["attachments"] = [
                attachment.to_dict() for attachment in self.attachments
            ]

        return result
