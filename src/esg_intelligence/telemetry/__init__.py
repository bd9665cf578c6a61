"""Telemetry module for logging and metrics."""

from esg_intelligence.telemetry.logger import RequestContext, get_logger, setup_logging

__all__ = ["get_logger", "setup_logging", "RequestContext"]
