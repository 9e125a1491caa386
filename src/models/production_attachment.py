"""
ProductionAttachment model for photos attached to a production batch.
"""

import base64

from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Index,
    LargeBinary,
)
from sqlalchemy.orm import relationship

from .base import BaseModel
from src.utils.constants import TABLE_PRODUCTION_ATTACHMENT
from src.utils.datetime_utils import utc_now


class ProductionAttachment(BaseModel):
    """
    Persisted attachment of a production batch.

    Attributes:
        production_record_id: Owning ProductionRecord
        file_name: Original file name
        mime_type: Declared MIME type (always image/*)
        byte_size: Size of content in bytes
        content: Raw file bytes
        uploaded_at: When the file was uploaded
    """

    __tablename__ = TABLE_PRODUCTION_ATTACHMENT

    production_record_id = Column(
        Integer,
        ForeignKey("production_records.id", ondelete="CASCADE"),
        nullable=False,
    )
    file_name = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    byte_size = Column(Integer, nullable=False)
    content = Column(LargeBinary, nullable=False)
    uploaded_at = Column(DateTime, nullable=False, default=utc_now)

    production_record = relationship("ProductionRecord", back_populates="attachments")

    __table_args__ = (Index("idx_production_attachment_record", "production_record_id"),)

    @property
    def base64_data(self) -> str:
        """Content encoded as base64 text."""
        return base64.b64encode(self.content or b"").decode("ascii")

    @property
    def data_url(self) -> str:
        """Content as a data URL suitable for an image preview."""
        return f"data:{self.mime_type};base64,{self.base64_data}"

    def __repr__(self) -> str:
        return (
            f"ProductionAttachment(id={self.id}, file_name='{self.file_name}', "
            f"byte_size={self.byte_size})"
        )
