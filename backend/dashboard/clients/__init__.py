"""External API clients."""

from dashboard.clients.http import JsonFetcher

__all__ = ["JsonFetcher"]
