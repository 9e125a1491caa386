"""Tests for service layer structured logging.

These tests verify that record persistence, draft submission and file
staging emit structured log entries with appropriate context information.
"""

import logging
from unittest.mock import MagicMock

import pytest

from src.services import production_record_service
from src.services.exceptions import ProductionFinishedError, SubmissionError
from src.services.logging_utils import get_service_logger, log_operation
from src.services.production_draft import ProductionDraftController, StagedFile
from src.services.production_stats_service import aggregate_production_stats


class TestLoggingUtilities:
    """Tests for logging utility functions."""

    def test_get_service_logger_returns_logger(self):
        """get_service_logger returns a configured Logger instance."""
        logger = get_service_logger("test_module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "mill_tracker.services.test_module"

    def test_get_service_logger_extracts_module_name(self):
        """get_service_logger extracts module name from full path."""
        logger = get_service_logger("src.services.production_record_service")
        assert logger.name == "mill_tracker.services.production_record_service"

    def test_log_operation_logs_at_info_level(self, caplog):
        """log_operation logs at INFO level by default."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(logger, operation="test_op", outcome="success", entity_id=123)

        assert "test_op: success" in caplog.text

    def test_log_operation_logs_at_custom_level(self, caplog):
        """log_operation respects custom log level."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.DEBUG):
            log_operation(
                logger,
                operation="debug_op",
                outcome="debug_outcome",
                level=logging.DEBUG,
            )

        assert "debug_op: debug_outcome" in caplog.text

    def test_log_operation_includes_extra_context(self, caplog):
        """log_operation includes extra context in log records."""
        logger = get_service_logger("test")

        with caplog.at_level(logging.INFO):
            log_operation(
                logger,
                operation="context_test",
                outcome="success",
                record_id=42,
                new_files=2,
            )

        assert len(caplog.records) == 1
        record = caplog.records[0]
        assert record.operation == "context_test"
        assert record.outcome == "success"
        assert record.record_id == 42
        assert record.new_files == 2


class TestRecordServiceLogging:
    """Tests for production_record_service logging."""

    def test_create_logs_batch_id(self, test_db, make_payload, caplog):
        """create_record logs the new batch id."""
        with caplog.at_level(logging.INFO):
            record = production_record_service.create_record(make_payload())

        entries = [r for r in caplog.records if getattr(r, "operation", None) == "create_record"]
        assert len(entries) == 1
        assert entries[0].outcome == "success"
        assert entries[0].batch_id == record.batch_id

    def test_update_logs_attachment_counts(self, test_db, sample_record, make_payload, make_image, caplog):
        """update_record logs how many files were added and removed."""
        with caplog.at_level(logging.INFO):
            production_record_service.update_record(
                sample_record.id,
                make_payload(
                    new_files=[make_image("a.jpg")],
                    removed_ids=[sample_record.attachments[0].id],
                ),
            )

        entry = [r for r in caplog.records if getattr(r, "operation", None) == "update_record"][-1]
        assert entry.new_files == 1
        assert entry.removed_attachments == 1

    def test_finished_update_is_logged(self, test_db, sample_record, make_payload, caplog):
        """A refused update of a Finished record is logged."""
        production_record_service.update_record(sample_record.id, make_payload(status="Finished"))

        with caplog.at_level(logging.INFO):
            with pytest.raises(ProductionFinishedError):
                production_record_service.update_record(sample_record.id, make_payload())

        assert "update_record: record_finished" in caplog.text


class TestDraftLogging:
    """Tests for production_draft logging."""

    def test_rejected_files_log_warning(self, caplog):
        """Partially rejected staging is logged at WARNING."""
        controller = ProductionDraftController.for_new(client=MagicMock())

        with caplog.at_level(logging.WARNING):
            controller.stage_files(
                [
                    StagedFile("ok.jpg", "image/jpeg", b"1"),
                    StagedFile("notes.txt", "text/plain", b"2"),
                ]
            )
        controller.discard()

        entry = [r for r in caplog.records if getattr(r, "operation", None) == "stage_files"][0]
        assert entry.outcome == "partially_rejected"
        assert entry.accepted == 1
        assert entry.rejected == 1

    def test_failed_submit_logs_error(self, fake_record, caplog):
        """A failed submission is logged with the client's message."""
        client = MagicMock()
        client.update_record.side_effect = RuntimeError("Gateway timeout")
        controller = ProductionDraftController.for_record(
            fake_record(outputs=[("Atta", "700", "KG")]), client=client
        )

        with caplog.at_level(logging.ERROR):
            with pytest.raises(SubmissionError):
                controller.submit()

        entry = [r for r in caplog.records if getattr(r, "operation", None) == "submit_draft"][0]
        assert entry.outcome == "error"
        assert entry.error == "Gateway timeout"


class TestStatsLogging:
    """Tests for production_stats_service logging."""

    def test_aggregate_logs_at_debug(self, fake_record, caplog):
        """Aggregation logs record count and display unit at DEBUG."""
        with caplog.at_level(logging.DEBUG):
            aggregate_production_stats([fake_record()], display_unit="Ton")

        entry = [
            r for r in caplog.records
            if getattr(r, "operation", None) == "aggregate_production_stats"
        ][0]
        assert entry.levelno == logging.DEBUG
        assert entry.record_count == 1
        assert entry.display_unit == "Ton"
