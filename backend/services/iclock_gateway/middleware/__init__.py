"""
iclock Gateway Middleware Package

Provides tenant resolution for terminal and operator requests.
"""

from .tenant import TenantMiddleware

__all__ = [
    "TenantMiddleware",
]
