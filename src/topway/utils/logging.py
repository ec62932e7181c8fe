# ABOUTME: Structured logging with correlation IDs for topway
# ABOUTME: Configures structlog and records an audit trail of workspace mutations

"""
Structured logging with correlation IDs and an audit trail.

=============================================================================
WHAT IS THIS FILE?
=============================================================================

1. STRUCTURED LOGGING: every log call is an event name plus key/value pairs,
   rendered as colored console text or as JSON lines.

2. CORRELATION IDs: one short id per user action. Creating a service logs the
   mutation and the project re-fetch that follows it; both lines carry the
   same correlation_id, so they can be grouped:

       {"correlation_id": "a1b2c3d4", "event": "Sending Railway API request", "operation": "create_service"}
       {"correlation_id": "a1b2c3d4", "event": "Sending Railway API request", "operation": "fetch_projects"}

3. AUDIT LOGGING: every change made to the workspace (service created,
   project deleted, variable upserted, deployment restarted...) is recorded
   with its target and outcome, either to a JSON-lines file or to stdout.

=============================================================================
CONTEXT VARIABLES (contextvars)
=============================================================================

The auto-refresh loop and a user-triggered deletion can be in flight at the
same time on one event loop. A ContextVar gives each asyncio task its own
correlation id, so their log lines do not get mixed up.
"""

from __future__ import annotations

import json
import logging
import uuid
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from pathlib import Path


# =============================================================================
# CORRELATION ID MANAGEMENT
# =============================================================================

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """
    Get current correlation ID or generate a new one.

    Returns:
        8-character correlation ID string, e.g. 'a3f8c2d1'.
    """
    cid = correlation_id.get()
    if not cid:
        cid = str(uuid.uuid4())[:8]
        correlation_id.set(cid)
    return cid


def set_correlation_id(cid: str) -> None:
    """
    Set correlation ID for current context.

    Passing "" makes the next get_correlation_id() generate a fresh one, which
    is how each AppState operation starts a new action.
    """
    correlation_id.set(cid)


def add_correlation_id(
    logger: structlog.types.WrappedLogger,  # noqa: ARG001 - Required by structlog Processor API
    method_name: str,  # noqa: ARG001 - Required by structlog Processor API
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """structlog processor that stamps each event with the correlation ID."""
    event_dict["correlation_id"] = get_correlation_id()
    return event_dict


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================


def configure_logging(
    level: str = "INFO",
    json_output: bool = False,
) -> None:
    """
    Configure structured logging. Call once at startup.

    Processor pipeline:
        merge_contextvars -> add_log_level -> TimeStamper(iso)
        -> add_correlation_id -> JSONRenderer | ConsoleRenderer

    Args:
        level: "DEBUG", "INFO", "WARNING", "ERROR" or "CRITICAL". DEBUG adds a
               line per Railway API request.
        json_output: True for JSON lines, False for colored console output.
    """
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_correlation_id,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# =============================================================================
# AUDIT LOGGER
# =============================================================================


class AuditLogger:
    """
    Audit logger for changes made to the Railway workspace.

    Each entry records:
    - timestamp: When it happened (UTC ISO 8601)
    - correlation_id: Which user action it belongs to
    - action: The AppState operation ("delete_project", "upsert_variable")
    - target: The id (or "project/environment/service/NAME" scope) affected
    - result: "success", "failed", "blocked" or "error"
    - details: Optional context (error message, reason)

    Example entries:
    {"timestamp": "2025-01-15T10:30:00+00:00", "correlation_id": "abc12345",
     "action": "delete_service", "target": "svc-123", "result": "success"}

    {"timestamp": "2025-01-15T10:30:05+00:00", "correlation_id": "def45678",
     "action": "create_service", "target": "proj-1", "result": "blocked",
     "details": {"reason": "configuration incomplete"}}

    Variable values are never passed here; only names appear in targets.
    """

    def __init__(self, log_path: Path | None = None) -> None:
        """
        Initialize audit logger.

        Args:
            log_path: JSON-lines file to append to, or None to log through
                      structlog to stdout.
        """
        self._log_path = log_path
        self._logger = structlog.get_logger("audit")

    def log(
        self,
        action: str,
        target: str,
        result: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Record one auditable action."""
        entry: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat(),
            "correlation_id": get_correlation_id(),
            "action": action,
            "target": target,
            "result": result,
        }
        if details:
            entry["details"] = details

        if self._log_path:
            with self._log_path.open("a") as f:
                f.write(json.dumps(entry) + "\n")
        else:
            self._logger.info(
                "audit",
                action=action,
                target=target,
                result=result,
                details=details,
            )

    def log_write(self, action: str, target: str, succeeded: bool) -> None:
        """
        Log a completed mutation.

        Railway mutations answer with a Boolean; False is recorded as
        "failed" rather than "error" because the request itself went through.
        """
        self.log(action, target, "success" if succeeded else "failed")

    def log_blocked(self, action: str, target: str, reason: str) -> None:
        """Log a mutation refused locally before any request was sent."""
        self.log(action, target, "blocked", {"reason": reason})

    def log_error(self, action: str, target: str, error: str) -> None:
        """Log a mutation that failed with a classified RailwayError."""
        self.log(action, target, "error", {"error": error})
