"""Observability – structured logging helpers."""
from msgstore.observability.logging.factory import JsonLoggerFactory
from msgstore.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
