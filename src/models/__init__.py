"""
Database models package.

This package contains all SQLAlchemy ORM models for the application.
"""

from .base import Base, BaseModel
from .enums import ProductionStatus, Shift
from .production_record import ProductionRecord
from .production_output import ProductionOutput
from .production_attachment import ProductionAttachment

__all__ = [
    "Base",
    "BaseModel",
    "ProductionStatus",
    "Shift",
    "ProductionRecord",
    "ProductionOutput",
    "ProductionAttachment",
]
