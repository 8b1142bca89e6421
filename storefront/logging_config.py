"""
Structured logging configuration with trace IDs
"""
import logging
import uuid
import contextvars
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger import jsonlogger

from storefront.config import settings

# Context variable to store the trace ID of the current request
trace_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("trace_id", default=None)


class StorefrontJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding timestamp, trace ID and booking context fields"""
    
    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "storefront"
        log_record["environment"] = settings.ENVIRONMENT
        
        trace_id = trace_id_var.get()
        if trace_id:
            log_record["trace_id"] = trace_id


def setup_logging() -> logging.Logger:
    """Configure root logging once for the application"""
    root_logger = logging.getLogger()
    if getattr(root_logger, "_storefront_configured", False):
        return root_logger
    
    handler = logging.StreamHandler()
    if settings.LOG_JSON:
        handler.setFormatter(StorefrontJsonFormatter("%(timestamp)s %(level)s %(name)s %(message)s"))
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    
    root_logger.setLevel(settings.LOG_LEVEL.upper())
    root_logger.addHandler(handler)
    root_logger._storefront_configured = True
    
    # Reduce noise from libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    
    return root_logger


def get_trace_id() -> Optional[str]:
    return trace_id_var.get()


def set_trace_id(trace_id: str):
    trace_id_var.set(trace_id)


def generate_trace_id() -> str:
    return str(uuid.uuid4())
