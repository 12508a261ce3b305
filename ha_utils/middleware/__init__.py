"""
ミドルウェア層
リクエストトレーシング
"""
from ha_utils.middleware.tracing import TracingMiddleware

__all__ = [
    "TracingMiddleware",
]
