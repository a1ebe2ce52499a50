"""Per-client state models: settings, journal trades and the full record."""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from engine.models.alert import AlertRule


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AppSettings(_CamelModel):
    """Dashboard preferences for one client."""

    refresh_interval: Literal["10", "30", "60", "300"] = "30"
    currency: Literal["usd", "eur", "idr", "jpy"] = "usd"
    notifications: bool = True
    indicators: bool = True


class TradeSide(str, Enum):
    LONG = "Long"
    SHORT = "Short"


class Mood(str, Enum):
    CALM = "Calm"
    NEUTRAL = "Neutral"
    FOMO = "FOMO"
    FEAR = "Fear"


class TradeStatus(str, Enum):
    OPEN = "Open"
    CLOSED = "Closed"


class JournalTradeCreate(_CamelModel):
    """Journal entry as supplied by the client (no id, no date)."""

    pair: str = Field(min_length=1)
    type: TradeSide
    entry_price: float
    exit_price: float
    size: float
    pnl: float
    notes: str = ""
    setup_tag: str = "Breakout"
    mistake_tag: str = "None"
    mood: Mood = Mood.NEUTRAL
    status: TradeStatus


class JournalTrade(JournalTradeCreate):
    id: str
    date: datetime


class ClientState(_CamelModel):
    """Canonical per-client record.

    Field names match the columns of the durable backend.
    """

    settings: AppSettings = Field(default_factory=AppSettings)
    watchlist: list[str] = Field(default_factory=list)
    journal: list[JournalTrade] = Field(default_factory=list)
    alerts: list[AlertRule] = Field(default_factory=list)
    auth_username: str | None = None

    @field_validator("watchlist")
    @classmethod
    def _dedupe_watchlist(cls, value: list[str]) -> list[str]:
        # First occurrence wins
        return list(dict.fromkeys(value))


StateField = Literal["settings", "watchlist", "journal", "alerts", "auth_username"]

STATE_FIELDS: tuple[str, ...] = ("settings", "watchlist", "journal", "alerts", "auth_username")


class UserAccount(BaseModel):
    """Registered dashboard account. Only the password hash is stored."""

    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    password_hash: str
