"""
Logging for PharMatch.

Every module logs through Loguru via ``get_logger``. Besides the console
and the rotating application log, ``setup_logging`` opens an audit file
that only receives the events emitted with ``audit_log``: recorded
swipes, superlike quota refusals and downgrades, created and closed
matches. Audit lines carry actor and target identifiers, never contact
details.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

from pharmatch.utils.config import get_settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)
AUDIT_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {extra[audit_type]} | {message}"
AUDIT_FILE_NAME = "audit.log"

# Profile fields that may end up in event details but not in the audit file
REDACTED_KEYS = frozenset(
    {
        "password", "secret", "token", "api_key", "credential",
        "email", "phone", "address",
    }
)
REDACTED = "***REDACTED***"


def setup_logging() -> None:
    """
    Configure the console, application and audit sinks from ``LOG_*`` settings.

    Safe to call more than once: previous sinks are removed first.
    """
    settings = get_settings()
    log_settings = settings.logging

    logger.remove()

    # Locals stay out of tracebacks unless debugging in development
    enable_diagnose = settings.debug and settings.environment == "development"

    if log_settings.console_output:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_settings.level,
            colorize=True,
            backtrace=True,
            diagnose=enable_diagnose,
        )

    if log_settings.file_output:
        log_file = log_settings.file_path
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=log_settings.format,
            level=log_settings.level,
            rotation=log_settings.rotation,
            retention=log_settings.retention,
            compression="zip",
            backtrace=True,
            diagnose=enable_diagnose,
            enqueue=True,
        )
        _add_audit_sink(log_file.parent / AUDIT_FILE_NAME, log_settings)

    logger.info(f"Logging initialized - Level: {log_settings.level}")


def _add_audit_sink(path: Path, log_settings: Any) -> None:
    """Audit file: only records bound with an ``audit_type``."""
    logger.add(
        path,
        format=AUDIT_FORMAT,
        level="INFO",
        filter=lambda record: "audit_type" in record["extra"],
        rotation=log_settings.audit_rotation,
        retention=log_settings.audit_retention,
        compression="zip",
        enqueue=True,
    )


def get_logger(name: str) -> Any:
    """Logger bound to a module name, e.g. ``get_logger(__name__)``."""
    return logger.bind(name=name)


def redact(details: Any) -> Any:
    """Mask values whose key names a credential or contact field, at any depth."""
    if isinstance(details, dict):
        return {
            key: REDACTED
            if any(marker in key.lower() for marker in REDACTED_KEYS)
            else redact(value)
            for key, value in details.items()
        }
    if isinstance(details, list):
        return [redact(item) for item in details]
    return details


def audit_log(
    action: str,
    details: dict[str, Any],
    audit_type: str = "SWIPE",
) -> None:
    """
    Write one matching event to the audit file.

    Args:
        action: Event name, an ``AuditAction`` value such as "swipe_recorded"
        details: Identifiers and outcome of the event
        audit_type: Event family: SWIPE, QUOTA or MATCH
    """
    logger.bind(audit_type=audit_type).info(f"{action} | {redact(details)}")


# Module-level logger for the entry point
log = logger
