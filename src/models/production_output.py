"""
ProductionOutput model for the items a production batch produced.
"""

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    Index,
    Numeric,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import TABLE_PRODUCTION_OUTPUT


class ProductionOutput(BaseModel):
    """
    One output line of a production batch.

    Attributes:
        production_record_id: Owning ProductionRecord
        position: Display order within the record
        item_name: Output item (e.g. "Atta", "Chokar", "Wastage"); open-ended
        quantity: Amount produced
        unit: Unit of quantity; normally KG, Quintal or Ton
        notes: Optional notes
    """

    __tablename__ = TABLE_PRODUCTION_OUTPUT

    production_record_id = Column(
        Integer,
        ForeignKey("production_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    position = Column(Integer, nullable=False, default=0)
    item_name = Column(String(200), nullable=False)
    quantity = Column(Numeric(14, 4), nullable=False)
    unit = Column(String(50), nullable=False)
    notes = Column(Text, nullable=True)

    production_record = relationship("ProductionRecord", back_populates="outputs")

    __table_args__ = (
        Index("idx_production_output_record", "production_record_id"),
        Index("idx_production_output_item", "item_name"),
    )

    def __repr__(self) -> str:
        return (
            f"ProductionOutput(item_name='{self.item_name}', "
            f"quantity={self.quantity}, unit='{self.unit}')"
        )
