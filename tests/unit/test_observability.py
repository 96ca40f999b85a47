"""
Unit tests for structured logging and metrics helpers.
"""

import io
import json
import logging

import pytest

from location_sync.core.errors import SourceReadError
from location_sync.core.models import RunOutcome, RunResult, RunSummary
from location_sync.observability.logger import CustomJsonFormatter, bind_unit_context, log_operation
from location_sync.observability.metrics import (
    REGISTRY,
    record_error,
    record_run_summary,
    record_unit_result,
)


@pytest.fixture
def json_logger():
    """A standalone logger writing JSON lines into a buffer"""
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(CustomJsonFormatter(fmt="%(timestamp)s %(level)s %(logger)s %(message)s"))

    logger = logging.getLogger("test_observability.json")
    logger.handlers = [handler]
    logger.setLevel(logging.DEBUG)
    logger.propagate = False

    def lines():
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    yield logger, lines
    logger.handlers = []


class TestLogging:
    """Tests for the JSON formatter and unit context"""

    def test_json_fields(self, json_logger):
        logger, lines = json_logger

        logger.info("hello", extra={"record_count": 3})

        line = lines()[0]
        assert line["message"] == "hello"
        assert line["level"] == "INFO"
        assert line["logger"] == "test_observability.json"
        assert line["record_count"] == 3
        assert line["timestamp"].endswith("+00:00")

    def test_unit_context_merges_with_call_extras(self, json_logger):
        logger, lines = json_logger
        log = bind_unit_context(logger, unit_id="north", collection_id="locations_north")

        log.info("extracted", extra={"record_count": 5})

        line = lines()[0]
        assert line["unit_id"] == "north"
        assert line["collection_id"] == "locations_north"
        assert line["record_count"] == 5

    def test_log_operation_failure(self, json_logger):
        logger, lines = json_logger
        log = bind_unit_context(logger, unit_id="north")

        with pytest.raises(SourceReadError):
            with log_operation("Extracting documents", logger=log):
                raise SourceReadError("down")

        started, failed = lines()
        assert started["message"] == "Starting: Extracting documents"
        assert failed["status"] == "error"
        assert failed["error_type"] == "SourceReadError"
        assert failed["unit_id"] == "north"


class TestMetrics:
    """Tests for the metrics helpers"""

    def _sample(self, name, **labels):
        return REGISTRY.get_sample_value(name, labels) or 0.0

    def test_record_unit_result(self):
        result = RunResult(
            unit_id="metrics_unit", collection_id="c", records_extracted=4, records_loaded=4, records_purged=3
        ).finalize(RunOutcome.PARTIAL_FAILURE, "batch 2 failed")
        before = self._sample(
            "location_sync_units_processed_total", unit_id="metrics_unit", outcome="partial_failure"
        )

        record_unit_result(result)

        assert self._sample(
            "location_sync_units_processed_total", unit_id="metrics_unit", outcome="partial_failure"
        ) == before + 1
        assert self._sample("location_sync_records_total", unit_id="metrics_unit", stage="purged") >= 3

    def test_record_error(self):
        before = self._sample(
            "location_sync_errors_total", unit_id="metrics_unit", error_type="SourceReadError", stage="extracting"
        )

        record_error("metrics_unit", SourceReadError("down"), stage="extracting")

        assert self._sample(
            "location_sync_errors_total", unit_id="metrics_unit", error_type="SourceReadError", stage="extracting"
        ) == before + 1

    def test_skipped_run(self):
        before = self._sample("location_sync_runs_total", status="skipped")

        record_run_summary(RunSummary(skipped=True))

        assert self._sample("location_sync_runs_total", status="skipped") == before + 1
