"""Tests for shared utilities, workflow logging context and workflow traces."""

import logging

from service_intake.conversation.workflow_trace import WorkflowTrace
from service_intake.logging_context import (
    WorkflowIdFilter,
    get_workflow_id,
    get_workflow_logger,
    set_workflow_id,
)
from service_intake.utils import is_blank, is_decline, normalize_text, service_key


class TestNormalizeText:
    def test_lowercases_and_trims(self):
        assert normalize_text("  Trinidad  ") == "trinidad"

    def test_collapses_whitespace(self):
        assert normalize_text("Trinidad \t and\n Tobago") == "trinidad and tobago"


class TestServiceKey:
    def test_spaces_become_underscores(self):
        assert service_key("Driver License") == "driver_license"

    def test_trims_and_collapses(self):
        assert service_key("  Birth   Certificate ") == "birth_certificate"


class TestBlankAndDecline:
    def test_blank_values(self):
        assert is_blank(None)
        assert is_blank("   ")
        assert not is_blank("x")

    def test_decline_matches_whole_value(self):
        assert is_decline(" Skip ", ["skip"])
        assert not is_decline("skip it later", ["skip"])
        assert not is_decline(None, ["skip"])

    def test_decline_collapses_inner_whitespace(self):
        assert is_decline("NOT   PROVIDED", ["not provided"])
        assert is_decline("not available", ["Not  Available"])


class TestWorkflowLogging:
    def test_filter_attaches_workflow_id(self):
        set_workflow_id("WF-test")
        record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
        assert WorkflowIdFilter().filter(record) is True
        assert record.workflow_id == "WF-test"

    def test_logger_gets_single_filter(self):
        logger = get_workflow_logger("service_intake.tests.workflow")
        get_workflow_logger("service_intake.tests.workflow")
        filters = [f for f in logger.filters if isinstance(f, WorkflowIdFilter)]
        assert len(filters) == 1


class TestWorkflowTrace:
    def test_binds_workflow_id(self):
        trace = WorkflowTrace()
        assert get_workflow_id() == trace.workflow_id

    def test_records_events_in_order(self):
        trace = WorkflowTrace("WF-fixed")
        trace.record("intent_routing", agent="intent_resolver")
        trace.record("extraction", collected=["full_name"])
        assert trace.phases == ["intent_routing", "extraction"]
        assert trace.events[1].detail == {"collected": ["full_name"]}

    def test_finish_reports_error(self):
        trace = WorkflowTrace("WF-fixed")
        trace.fail("boom")
        metadata = trace.finish()
        assert metadata.workflow_id == "WF-fixed"
        assert metadata.error == "boom"
        assert metadata.events[-1].phase == "error"
        assert metadata.completed_at >= metadata.started_at
