"""
Structured logging for routing, command validation and the approval workflow.
"""

import logging
import os
from typing import Any, Dict, List

SENSITIVE_FIELDS = ['secret', 'password', 'token', 'api_key']


class StructuredLogger:
    """Structured logger for agent operations: tool routing, validation, approvals."""

    def __init__(self, name: str = "multisource_agent"):
        self.logger = logging.getLogger(name)
        debug = os.getenv("DEBUG", "false").lower() == "true"
        self.logger.setLevel(logging.DEBUG if debug else logging.INFO)

        # Create handler if not already set
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def log_operation(self, operation: str, status: str, details: Dict[str, Any] = None):
        """Log a structured operation."""
        message = f"Operation: {operation}, Status: {status}"
        if details:
            message += f", Details: {details}"

        self.logger.info(message)

    def log_tool_selection(self, tool_name: str, reasoning: str, source: str):
        """Log which tool was picked for a query and by whom (classifier or fallback)."""
        self.log_operation("router.select", "selected", {
            "tool": tool_name,
            "reasoning": reasoning[:100],
            "source": source
        })

    def log_command_validation(self, command: str, allowed: bool, category: str = None):
        """Log a command validation decision."""
        details = {"command": _truncate(command, 50)}
        if category:
            details["category"] = category
        self.log_operation("command.validate", "allowed" if allowed else "denied", details)

    def log_approval_request(self, command_id: str, command: str):
        """Log creation of a pending command."""
        self.log_operation("approval.request_created", "pending", {
            "command_id": command_id,
            "command": _truncate(command, 50)
        })

    def log_approval_decision(self, command_id: str, decision: str):
        """Log an approve/reject decision."""
        status = "approved" if decision == "approved" else "rejected"
        self.log_operation("approval.decision", status, {"command_id": command_id})

    def log_command_execution(self, command_id: str, start_time: float, end_time: float,
                              status: str = "success", details: Dict[str, Any] = None):
        """Log execution of an approved command."""
        duration_ms = round((end_time - start_time) * 1000, 2)
        log_details = {"command_id": command_id, "duration_ms": duration_ms}
        if details:
            log_details.update(details)

        self.log_operation("command.execute", status, log_details)

    def log_document_search(self, query: str, documents_scanned: int, matches: int):
        """Log a document search."""
        self.log_operation("documents.search", "success" if matches else "no_results", {
            "query": _truncate(query, 50),
            "documents_scanned": documents_scanned,
            "matches": matches
        })

    def log_sql_query(self, statement: str, row_count: int = None, status: str = "success"):
        """Log a read-only SQL query."""
        details = {"statement": _truncate(statement, 80)}
        if row_count is not None:
            details["row_count"] = row_count
        self.log_operation("sql.query", status, details)

    def warning(self, message: str):
        self.logger.warning(message)

    def error(self, message: str):
        self.logger.error(message)

    def info(self, message: str):
        self.logger.info(message)

    def debug(self, message: str):
        self.logger.debug(message)


def _truncate(value: str, limit: int) -> str:
    return value[:limit] + "..." if len(value) > limit else value


# Global logger instance
logger = StructuredLogger()


def audit_event(event_type: str, identifiers: Dict[str, Any], payload: Dict[str, Any] = None,
                sensitive_fields: List[str] = None):
    """General audit event logging with payload sanitization."""
    log_details = identifiers.copy() if identifiers else {}

    if payload:
        log_details["payload"] = sanitize_payload(payload, sensitive_fields=sensitive_fields)

    # Determine operation type from event_type
    if event_type.startswith("approval"):
        operation = "approval"
    elif event_type.startswith("command"):
        operation = "command"
    else:
        operation = event_type.replace(".", "_")

    logger.log_operation(operation, "audit", log_details)


def sanitize_payload(payload: Any, reveal_sensitive: bool = False, sensitive_fields: List[str] = None) -> Any:
    """Sanitize payloads for audit logging."""
    if sensitive_fields is None:
        sensitive_fields = SENSITIVE_FIELDS

    if isinstance(payload, dict):
        sanitized = {}
        for k, v in payload.items():
            if reveal_sensitive or k not in sensitive_fields:
                sanitized[k] = sanitize_payload(v, reveal_sensitive, sensitive_fields)
            else:
                sanitized[k] = "[REDACTED]"
        return sanitized
    elif isinstance(payload, str):
        # Truncate long strings
        return payload[:100] + "..." if len(payload) > 100 else payload
    elif isinstance(payload, list):
        return [sanitize_payload(item, reveal_sensitive, sensitive_fields) for item in payload]
    else:
        return payload
