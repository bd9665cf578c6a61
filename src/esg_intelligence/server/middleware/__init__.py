"""HTTP middleware."""

from .error_handler import register_exception_handlers
from .request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware", "register_exception_handlers"]
