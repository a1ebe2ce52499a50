"""Data models."""

from engine.models.candle import Candle
from engine.models.indicators import (
    BollingerValue,
    Classification,
    ExponentialAverages,
    IndicatorBundle,
    MacdValue,
    MovingAverages,
    PivotPoints,
    SignalSummary,
    StochasticValue,
    TechnicalAnalysis,
)
from engine.models.alert import AlertKind, AlertRule, AlertRuleCreate, AlertSnapshot
from engine.models.state import (
    STATE_FIELDS,
    AppSettings,
    ClientState,
    JournalTrade,
    JournalTradeCreate,
    Mood,
    StateField,
    TradeSide,
    TradeStatus,
    UserAccount,
)

__all__ = [
    "Candle",
    # Indicators
    "BollingerValue",
    "Classification",
    "ExponentialAverages",
    "IndicatorBundle",
    "MacdValue",
    "MovingAverages",
    "PivotPoints",
    "SignalSummary",
    "StochasticValue",
    "TechnicalAnalysis",
    # Alerts
    "AlertKind",
    "AlertRule",
    "AlertRuleCreate",
    "AlertSnapshot",
    # Client state
    "STATE_FIELDS",
    "AppSettings",
    "ClientState",
    "JournalTrade",
    "JournalTradeCreate",
    "Mood",
    "StateField",
    "TradeSide",
    "TradeStatus",
    "UserAccount",
]
