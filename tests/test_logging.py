"""
Structured logging and audit sanitization tests.
"""

import logging

import pytest

from util.logging import audit_event, logger, sanitize_payload


@pytest.fixture
def captured(caplog):
    caplog.set_level(logging.INFO, logger="multisource_agent")
    return caplog


class TestStructuredLogger:

    def test_tool_selection(self, captured):
        logger.log_tool_selection("document_search", "Defaulting to document search", "fallback")

        message = captured.records[-1].getMessage()
        assert "Operation: router.select, Status: selected" in message
        assert "'source': 'fallback'" in message

    def test_denied_validation_names_category(self, captured):
        logger.log_command_validation("rm -rf /", False, "destructive_delete")

        message = captured.records[-1].getMessage()
        assert "Status: denied" in message
        assert "destructive_delete" in message

    def test_long_commands_are_truncated(self, captured):
        logger.log_approval_request("cmd_1", "echo " + "x" * 200)

        message = captured.records[-1].getMessage()
        assert "x" * 60 not in message
        assert "..." in message

    def test_command_execution_duration(self, captured):
        logger.log_command_execution("cmd_1", 10.0, 10.25, "success")
        assert "'duration_ms': 250.0" in captured.records[-1].getMessage()


class TestAuditSanitization:

    def test_sensitive_fields_redacted(self):
        sanitized = sanitize_payload({"command": "date", "token": "abc", "nested": {"password": "p"}})
        assert sanitized == {"command": "date", "token": "[REDACTED]", "nested": {"password": "[REDACTED]"}}

    def test_long_strings_truncated(self):
        assert sanitize_payload("y" * 150) == "y" * 100 + "..."

    def test_reveal_sensitive(self):
        assert sanitize_payload({"secret": "s"}, reveal_sensitive=True) == {"secret": "s"}

    def test_audit_event_logs_operation(self, captured):
        audit_event("approval.rejected", {"command_id": "cmd_9"}, {"command": "uptime"})

        message = captured.records[-1].getMessage()
        assert "Operation: approval, Status: audit" in message
        assert "cmd_9" in message
