"""
Structured logging for Backend Solnero.

JSON logs with timestamp, event_type and request correlation id.
Use get_logger() in all modules for aggregation-friendly output.
"""

from backend_solnero.solnero_logging.logger import bind_request, clear_request, current_correlation_id, get_logger

__all__ = ["bind_request", "clear_request", "current_correlation_id", "get_logger"]
