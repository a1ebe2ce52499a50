"""Alert rule store and evaluator.

Rules live in the ``alerts`` field of the client's state record. Every
mutation is one serialized read-modify-write of the whole rule set, so
concurrent evaluations for the same client cannot un-trigger or
double-report a rule.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from pydantic import ValidationError as PydanticValidationError

from engine.alerts import (
    apply_snapshot,
    build_rule,
    mark_rule_triggered,
    parse_rule_payload,
    remove_rule,
    utc_now,
)
from engine.analysis import analyze
from engine.errors import ValidationError
from engine.models import AlertRule, AlertRuleCreate, AlertSnapshot, Candle

from dashboard.storage import ClientStateStore

logger = logging.getLogger(__name__)

ALERTS_FIELD = "alerts"


class AlertRuleStore:
    """CRUD over a client's alert rules."""

    def __init__(self, store: ClientStateStore):
        self._store = store

    async def create(
        self,
        client_id: str,
        payload: AlertRuleCreate | Mapping[str, Any],
    ) -> AlertRule:
        """
        Create a rule: fresh id, created_at=now, not triggered.

        Raises:
            ValidationError: threshold kind without a threshold, or a
                malformed payload. Nothing is written.
        """
        parsed = parse_rule_payload(payload)
        rule = build_rule(client_id, parsed)

        await self._store.modify(client_id, ALERTS_FIELD, lambda rules: [rule, *rules])
        logger.info(
            f"Alert created: client={client_id} id={rule.id} "
            f"{rule.coin_symbol} {rule.kind.value} {rule.threshold}"
        )
        return rule

    async def list(self, client_id: str) -> list[AlertRule]:
        """All rules for the client, newest first."""
        state = await self._store.get(client_id)
        return state.alerts

    async def delete(self, client_id: str, rule_id: str) -> None:
        """Remove a rule in any state. Unknown ids are a no-op."""
        await self._store.modify(client_id, ALERTS_FIELD, lambda rules: remove_rule(rules, rule_id))
        logger.info(f"Alert deleted: client={client_id} id={rule_id}")

    async def mark_triggered(self, client_id: str, rule_id: str) -> AlertRule | None:
        """
        Set enabled=False, triggered_at=now. Idempotent.

        Returns:
            The rule after the call, or None if the client has no such rule
        """
        now = utc_now()
        rules = await self._store.modify(
            client_id,
            ALERTS_FIELD,
            lambda current: mark_rule_triggered(current, rule_id, now),
        )
        return next((rule for rule in rules if rule.id == rule_id), None)


class AlertEvaluator:
    """Evaluates a live snapshot against a client's stored rules."""

    def __init__(self, store: ClientStateStore):
        self._store = store

    async def evaluate(
        self,
        client_id: str,
        snapshot: AlertSnapshot | Mapping[str, Any],
    ) -> set[str]:
        """
        Trigger every enabled rule for the snapshot's coin whose condition holds.

        Rules are read fresh from the store on every call; nothing is
        cached between calls. A store failure propagates to the caller,
        who may re-invoke: already-triggered rules are skipped, so a repeat
        with the same snapshot returns an empty set.

        Returns:
            Ids of the rules that changed state in this call
        """
        if not isinstance(snapshot, AlertSnapshot):
            try:
                snapshot = AlertSnapshot.model_validate(snapshot)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid alert snapshot: {e}") from e

        now = utc_now()
        triggered: list[str] = []

        def _apply(rules: list[AlertRule]) -> list[AlertRule]:
            updated, fired = apply_snapshot(rules, snapshot, now)
            triggered.extend(fired)
            return updated

        await self._store.modify(client_id, ALERTS_FIELD, _apply)

        for rule_id in triggered:
            logger.info(f"Alert triggered: client={client_id} id={rule_id} coin={snapshot.coin_id}")
        return set(triggered)

    async def evaluate_series(
        self,
        client_id: str,
        coin_id: str,
        series: Sequence[Candle | Mapping[str, Any]],
        price: float | None = None,
    ) -> set[str]:
        """Run the indicator engine over a series and evaluate its snapshot.

        A series too short for analysis has no meaningful snapshot unless
        a live price is supplied; nothing is evaluated in that case.
        """
        analysis = analyze(series)
        if analysis.close is None and price is None:
            logger.debug(f"Skipping alert evaluation for {coin_id}: insufficient data")
            return set()
        snapshot = AlertSnapshot.from_analysis(coin_id, analysis, price=price)
        return await self.evaluate(client_id, snapshot)
