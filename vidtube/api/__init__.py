"""API package exports."""

from vidtube.api.middleware import CorrelationIdMiddleware
from vidtube.api.routes import api_router, router

__all__ = ["api_router", "router", "CorrelationIdMiddleware"]
