"""Structured JSON logging for projection runs and payoff simulations"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from cashflow_gateway.config import settings

logger = logging.getLogger("cashflow_gateway")

LOG_FORMAT = "%(timestamp)s %(level)s %(name)s %(message)s"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines carrying service, level and (when known) the request id"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name
        # domain modules log without request context
        log_record.setdefault("request_id", None)


def setup_logging(level: str = "INFO") -> None:
    """Send every log record to stdout as one JSON object per line"""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CustomJsonFormatter(LOG_FORMAT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def log_projection_run(
    request_id: str,
    window_start: str,
    window_end: str,
    projected_count: int,
    stored_count: int,
    merged_count: int,
    duration_ms: float,
) -> None:
    """Log structured outcome of a projection + merge run"""
    logger.info(
        "Projection run completed",
        extra={
            "request_id": request_id,
            "step": "projection_complete",
            "window_start": window_start,
            "window_end": window_end,
            "projected_count": projected_count,
            "stored_count": stored_count,
            "merged_count": merged_count,
            "duration_ms": duration_ms,
        },
    )


def log_payoff_warning(event: str, **fields: Any) -> None:
    """Log a simulation that was bounded or corrected rather than run to payoff"""
    logger.warning(
        "Payoff simulation warning",
        extra={"step": "payoff_simulation", "event": event, **fields},
    )
