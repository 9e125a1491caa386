"""Pytest configuration and fixtures for service layer tests."""

import json
from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import StaticPool

from src.models.base import Base
from src.services.database import get_session_factory
from src.services.dto import NewFile, ProductionPayload


@pytest.fixture(scope="function")
def test_db():
    """Provide a clean test database for each test function.

    This fixture:
    1. Creates an in-memory SQLite database
    2. Creates all tables
    3. Provides the database to the test
    4. Drops all tables after the test completes
    """
    engine = create_engine(
        "sqlite:///:memory:",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(engine)

    session_factory = sessionmaker(bind=engine, expire_on_commit=False)
    Session = scoped_session(session_factory)

    # Monkey-patch the global session factory for tests
    import src.services.database as db_module

    original_get_session = db_module.get_session_factory
    db_module.get_session_factory = lambda: Session

    yield Session

    Session.remove()
    Base.metadata.drop_all(engine)

    db_module.get_session_factory = original_get_session


def _make_payload(
    outputs=None,
    new_files=None,
    removed_ids=None,
    **fields,
) -> ProductionPayload:
    """Build a submission payload with sensible defaults."""
    scalar_fields = {
        "status": "In Production",
        "production_date": "2024-03-01",
        "shift": "Day",
        "location": "Mill A",
        "machine": "Roller 1",
        "operator_name": "Ravi",
        "input_type": "Wheat",
        "input_quantity": "1000",
        "input_unit": "KG",
        "remarks": "",
    }
    scalar_fields.update(fields)
    if outputs is None:
        outputs = [
            {"item_name": "Atta", "quantity": "700", "unit": "KG"},
            {"item_name": "Chokar", "quantity": "250", "unit": "KG"},
            {"item_name": "Wastage", "quantity": "50", "unit": "KG"},
        ]
    return ProductionPayload(
        scalar_fields=scalar_fields,
        outputs=json.dumps(outputs),
        new_files=list(new_files or []),
        removed_attachment_ids=json.dumps(list(removed_ids or [])),
    )


def _make_image(file_name="photo.jpg", size=1024, mime_type="image/jpeg") -> NewFile:
    """An image upload of the given size."""
    return NewFile(file_name=file_name, mime_type=mime_type, content=b"\xff" * size)


def _fake_record(
    input_quantity="1000",
    input_unit="KG",
    outputs=(),
    record_id=1,
    status="In Production",
    shift="Day",
    location="Mill A",
    attachments=(),
):
    """A stand-in for ProductionRecord carrying only plain attributes.

    outputs is a sequence of (item_name, quantity, unit) tuples.
    """
    return SimpleNamespace(
        id=record_id,
        batch_id=f"BATCH-20240301-{record_id:04d}",
        status=status,
        production_date=date(2024, 3, 1),
        shift=shift,
        location=location,
        machine="Roller 1",
        operator_name="Ravi",
        input_type="Wheat",
        input_quantity=Decimal(input_quantity),
        input_unit=input_unit,
        remarks="",
        outputs=[
            SimpleNamespace(item_name=name, quantity=Decimal(qty), unit=unit, notes="")
            for name, qty, unit in outputs
        ],
        attachments=list(attachments),
    )


@pytest.fixture(scope="function")
def sample_record(test_db):
    """Provide a persisted In Production record with one attachment."""
    from src.services import production_record_service

    return production_record_service.create_record(
        _make_payload(new_files=[_make_image("before.jpg")])
    )


@pytest.fixture
def make_payload():
    """Factory for submission payloads (see _make_payload)."""
    return _make_payload


@pytest.fixture
def make_image():
    """Factory for image uploads (see _make_image)."""
    return _make_image


@pytest.fixture
def fake_record():
    """Factory for detached record lookalikes (see _fake_record)."""
    return _fake_record
