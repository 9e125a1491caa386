"""
Constants for the Mill Production Tracker application.

This module defines system-wide constants including:
- Application metadata
- Production output items and shifts
- Attachment limits
- Database settings

Unit tables (weight units and bag-style units) live in
src.services.unit_converter so they are declared exactly once.
"""

from typing import List

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Mill Production Tracker"
APP_VERSION = "0.1.0"

# ============================================================================
# Production
# ============================================================================

# Output items observed in the field. Item names are open strings; these
# are the ones the statistics break down individually.
ITEM_ATTA = "Atta"
ITEM_CHOKAR = "Chokar"
ITEM_WASTAGE = "Wastage"

OUTPUT_ITEM_NAMES: List[str] = [
    ITEM_ATTA,
    ITEM_CHOKAR,
    ITEM_WASTAGE,
]

SHIFTS: List[str] = [
    "Day",
    "Night",
]

DEFAULT_INPUT_TYPE = "Wheat"
DEFAULT_UNIT = "KG"

# Batch labels look like BATCH-20261019-0001
BATCH_ID_PREFIX = "BATCH"

# ============================================================================
# Attachments
# ============================================================================

# 2 MiB
MAX_ATTACHMENT_BYTES = 2 * 1024 * 1024
ATTACHMENT_MIME_PREFIX = "image/"

# ============================================================================
# Validation Constants
# ============================================================================

MAX_NAME_LENGTH = 200
MAX_UNIT_LENGTH = 50
MAX_NOTES_LENGTH = 2000
QUANTITY_DECIMAL_PLACES = 4
DISPLAY_DECIMAL_PLACES = 2

# ============================================================================
# Database
# ============================================================================

DATABASE_FILENAME = "mill_tracker.db"

TABLE_PRODUCTION_RECORD = "production_records"
TABLE_PRODUCTION_OUTPUT = "production_outputs"
TABLE_PRODUCTION_ATTACHMENT = "production_attachments"
