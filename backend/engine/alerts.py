"""Alert rule construction and matching (pure, no storage).

The dashboard rule store and evaluator wrap these functions inside a
serialized read-modify-write of a client's rule set.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

from pydantic import ValidationError as PydanticValidationError

from engine.errors import ValidationError
from engine.models import AlertKind, AlertRule, AlertRuleCreate, AlertSnapshot


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def parse_rule_payload(payload: AlertRuleCreate | Mapping[str, Any]) -> AlertRuleCreate:
    """
    Validate a client-supplied rule.

    Threshold kinds need a threshold; MACD kinds silently drop theirs.

    Raises:
        ValidationError: malformed payload or missing threshold
    """
    if not isinstance(payload, AlertRuleCreate):
        try:
            payload = AlertRuleCreate.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid alert rule: {e}") from e

    if payload.kind.requires_threshold and payload.threshold is None:
        raise ValidationError(f"Alert kind '{payload.kind.value}' requires a threshold")

    return payload


def build_rule(
    client_id: str,
    payload: AlertRuleCreate,
    now: datetime | None = None,
) -> AlertRule:
    """Create a fresh rule with a new id, created_at=now and no trigger time."""
    return AlertRule(
        id=str(uuid.uuid4()),
        client_id=client_id,
        coin_id=payload.coin_id,
        coin_symbol=payload.coin_symbol,
        kind=payload.kind,
        threshold=payload.threshold,
        enabled=payload.enabled,
        created_at=now or utc_now(),
        triggered_at=None,
    )


def rule_matches(rule: AlertRule, snapshot: AlertSnapshot) -> bool:
    """
    Check whether a rule's condition holds for a snapshot.

    Only the condition is tested here; enabled/coin filtering is done by
    ``apply_snapshot``.
    """
    threshold = rule.threshold
    kind = rule.kind

    if kind == AlertKind.PRICE_ABOVE:
        return threshold is not None and snapshot.price >= threshold
    if kind == AlertKind.PRICE_BELOW:
        return threshold is not None and snapshot.price <= threshold
    if kind == AlertKind.RSI_ABOVE:
        return threshold is not None and snapshot.rsi >= threshold
    if kind == AlertKind.RSI_BELOW:
        return threshold is not None and snapshot.rsi <= threshold
    if kind == AlertKind.MACD_BULLISH:
        return snapshot.macd_histogram > 0
    if kind == AlertKind.MACD_BEARISH:
        return snapshot.macd_histogram < 0
    return False


def apply_snapshot(
    rules: Iterable[AlertRule],
    snapshot: AlertSnapshot,
    now: datetime | None = None,
) -> tuple[list[AlertRule], list[str]]:
    """
    Trigger every enabled rule for the snapshot's coin whose condition holds.

    Args:
        rules: Current rule set, order preserved in the output
        snapshot: Live values to test against
        now: Trigger timestamp (defaults to the current UTC time)

    Returns:
        (updated rule list, ids that changed state in this pass)
    """
    now = now or utc_now()
    updated: list[AlertRule] = []
    triggered: list[str] = []

    for rule in rules:
        if not rule.enabled or rule.is_triggered or rule.coin_id != snapshot.coin_id:
            updated.append(rule)
            continue
        if rule_matches(rule, snapshot):
            updated.append(rule.mark_triggered(now))
            triggered.append(rule.id)
        else:
            updated.append(rule)

    return updated, triggered


def mark_rule_triggered(
    rules: Iterable[AlertRule],
    rule_id: str,
    now: datetime | None = None,
) -> list[AlertRule]:
    """Return the rule list with ``rule_id`` triggered. Idempotent."""
    now = now or utc_now()
    return [rule.mark_triggered(now) if rule.id == rule_id else rule for rule in rules]


def remove_rule(rules: Iterable[AlertRule], rule_id: str) -> list[AlertRule]:
    """Return the rule list without ``rule_id``. Missing ids are a no-op."""
    return [rule for rule in rules if rule.id != rule_id]
