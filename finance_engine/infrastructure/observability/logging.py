"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from finance_engine.config import settings


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_projection(
    request_id: str,
    operation: str,
    item_count: int,
    duration_ms: float,
) -> None:
    """Log a completed projection/forecast run"""
    logging.info(
        "Projection completed",
        extra={
            "request_id": request_id,
            "step": "projection_complete",
            "operation": operation,
            "item_count": item_count,
            "duration_ms": duration_ms,
        },
    )


def log_duplicate_resolution(
    request_id: str,
    action: str,
    primary_id: str,
    secondary_id: str,
    applied: bool,
) -> None:
    """Log a duplicate resolution, including no-op re-runs"""
    logging.info(
        "Duplicate resolution processed",
        extra={
            "request_id": request_id,
            "step": "duplicate_resolution",
            "action": action,
            "primary_id": primary_id,
            "secondary_id": secondary_id,
            "applied": applied,
        },
    )


def log_integrity_report(
    request_id: str,
    pass_count: int,
    warning_count: int,
    fail_count: int,
) -> None:
    level = logging.WARNING if fail_count else logging.INFO
    logging.log(
        level,
        "Integrity checks completed",
        extra={
            "request_id": request_id,
            "step": "integrity_report",
            "pass_count": pass_count,
            "warning_count": warning_count,
            "fail_count": fail_count,
        },
    )
