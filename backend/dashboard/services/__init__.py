"""Business services."""

from dashboard.services.alerts import AlertEvaluator, AlertRuleStore
from dashboard.services.auth import AuthService
from dashboard.services.client_data import ClientDataService
from dashboard.services.market import MarketDataService

__all__ = [
    "AlertEvaluator",
    "AlertRuleStore",
    "AuthService",
    "ClientDataService",
    "MarketDataService",
]
