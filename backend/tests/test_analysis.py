"""Tests for the indicator engine and signal scoring."""

import pytest

from engine.analysis import (
    INSUFFICIENT_DATA,
    MIN_CANDLES,
    TechnicalAnalyzer,
    analyze,
    classify,
    compute,
    safe_default_analysis,
    score_signal,
)
from engine.errors import ValidationError
from engine.models import (
    BollingerValue,
    Classification,
    IndicatorBundle,
    MacdValue,
    MovingAverages,
)

from helpers import make_series, wave_closes


def _bundle(rsi=50.0, histogram=0.0, sma20=0.0, sma50=0.0, sma200=0.0, upper=0.0, lower=0.0):
    return IndicatorBundle(
        rsi=rsi,
        macd=MacdValue(histogram=histogram),
        sma=MovingAverages(period20=sma20, period50=sma50, period200=sma200),
        bollinger=BollingerValue(upper=upper, lower=lower),
    )


class TestInsufficientData:
    """Series shorter than MIN_CANDLES get the safe default."""

    @pytest.mark.parametrize("length", [0, 1, 50, MIN_CANDLES - 1])
    def test_short_series_returns_safe_default(self, length):
        result = analyze(make_series([100.0 + i for i in range(length)]))

        assert result == safe_default_analysis()
        assert result.is_insufficient
        assert result.close is None

    def test_safe_default_values(self):
        result = safe_default_analysis()

        assert result.summary.classification == Classification.NEUTRAL
        assert result.summary.score == 50
        assert result.summary.reasons == (INSUFFICIENT_DATA,)
        assert result.indicators.rsi == 50.0
        assert result.indicators.stochastic.k == 50.0
        assert result.indicators.stochastic.d == 50.0
        assert result.indicators.sma.period200 == 0.0
        assert result.indicators.pivot_points.pp == 0.0
        assert result.indicators.atr == 0.0

    def test_exactly_min_candles_is_analyzed(self):
        result = analyze(make_series(wave_closes(MIN_CANDLES)))

        assert not result.is_insufficient
        assert result.indicators.sma.period200 > 0


class TestFullAnalysis:
    """Tests on a long, non-degenerate series."""

    def test_values_in_bounds(self):
        candles = make_series(wave_closes(250))
        result = analyze(candles)
        bundle = result.indicators

        assert 0.0 <= bundle.rsi <= 100.0
        assert 0.0 <= bundle.stochastic.k <= 100.0
        assert 0.0 <= bundle.stochastic.d <= 100.0
        assert bundle.atr > 0
        assert bundle.bollinger.lower <= bundle.bollinger.middle <= bundle.bollinger.upper
        assert 0 <= result.summary.score <= 100
        assert result.close == candles[-1].close

    def test_percent_b_matches_bands(self):
        candles = make_series(wave_closes(250))
        bands = analyze(candles).indicators.bollinger
        close = candles[-1].close

        expected = (close - bands.lower) / (bands.upper - bands.lower)
        assert bands.percent_b == pytest.approx(expected)

    def test_macd_histogram_is_line_minus_signal(self):
        macd = analyze(make_series(wave_closes(250))).indicators.macd
        assert macd.histogram == pytest.approx(macd.line - macd.signal)

    def test_pivots_use_second_to_last_candle(self):
        closes = wave_closes(250)
        result = analyze(make_series(closes, spread=2.0))
        pivots = result.indicators.pivot_points

        ref = closes[-2]
        # high = ref + 2, low = ref - 2, close = ref
        assert pivots.pp == pytest.approx(ref)
        assert pivots.r1 == pytest.approx(ref + 2.0)
        assert pivots.s1 == pytest.approx(ref - 2.0)
        assert pivots.r2 == pytest.approx(ref + 4.0)

    def test_vwap_uses_volumes_when_present(self):
        closes = wave_closes(250)
        volumes = [1.0] * 250
        result = analyze(make_series(closes, volumes=volumes))

        assert result.indicators.vwap == pytest.approx(sum(closes) / 250)

    def test_summary_is_consistent_with_bundle(self):
        candles = make_series(wave_closes(250))
        result = analyze(candles)

        assert result.summary == score_signal(result.indicators, candles[-1].close)

    def test_mapping_input_gives_same_result(self):
        candles = make_series(wave_closes(250))
        as_dicts = [c.model_dump() for c in candles]

        assert analyze(as_dicts) == analyze(candles)

    def test_malformed_candle_mapping(self):
        as_dicts = [c.model_dump() for c in make_series(wave_closes(250))]
        as_dicts[100] = {"time": 1, "open": 1.0, "high": "n/a", "low": 1.0, "close": 1.0}

        with pytest.raises(ValidationError):
            analyze(as_dicts)

    def test_deterministic(self):
        candles = make_series(wave_closes(250))
        assert analyze(candles) == analyze(candles)
        assert compute(candles) == analyze(candles)

    def test_custom_min_candles(self):
        analyzer = TechnicalAnalyzer(min_candles=60)
        result = analyzer.analyze(make_series(wave_closes(80)))

        assert not result.is_insufficient
        # SMA200 window never fills on 80 bars
        assert result.indicators.sma.period200 == 0.0


class TestScoreSignal:
    """Tests for the fixed scoring rule set."""

    def test_bullish_example(self):
        bundle = _bundle(
            rsi=50.0, histogram=1.0, sma20=104.0, sma50=102.0, sma200=90.0,
            upper=110.0, lower=95.0,
        )

        summary = score_signal(bundle, close=105.0)

        assert summary.score == 75
        assert summary.classification == Classification.BULLISH
        assert summary.reasons == (
            "MACD Bullish Cross",
            "Price above SMA200",
            "Golden Cross (Short-term)",
        )

    def test_all_bearish_rules_in_order(self):
        bundle = _bundle(
            rsi=80.0, histogram=-1.0, sma20=95.0, sma50=98.0, sma200=200.0,
            upper=90.0, lower=80.0,
        )

        summary = score_signal(bundle, close=100.0)

        assert summary.score == 0
        assert summary.classification == Classification.BEARISH
        assert summary.reasons == (
            "RSI Overbought",
            "MACD Bearish Momentum",
            "Price below SMA200",
            "Death Cross (Short-term)",
            "Price above Upper BB",
        )

    def test_all_bullish_rules(self):
        bundle = _bundle(
            rsi=20.0, histogram=1.0, sma20=105.0, sma50=100.0, sma200=50.0,
            upper=150.0, lower=110.0,
        )

        summary = score_signal(bundle, close=100.0)

        assert summary.score == 100
        assert summary.classification == Classification.BULLISH
        assert summary.reasons[0] == "RSI Oversold"
        assert summary.reasons[-1] == "Price below Lower BB"

    def test_zero_histogram_is_bearish_momentum(self):
        summary = score_signal(_bundle(histogram=0.0), close=1.0)
        assert "MACD Bearish Momentum" in summary.reasons

    def test_rsi_boundaries_do_not_fire(self):
        for value in (30.0, 70.0):
            summary = score_signal(_bundle(rsi=value), close=1.0)
            assert not any(r.startswith("RSI") for r in summary.reasons)


class TestClassify:
    """Score thresholds are exclusive."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (61, Classification.BULLISH),
            (60, Classification.NEUTRAL),
            (50, Classification.NEUTRAL),
            (40, Classification.NEUTRAL),
            (39, Classification.BEARISH),
            (0, Classification.BEARISH),
            (100, Classification.BULLISH),
        ],
    )
    def test_classify(self, score, expected):
        assert classify(score) == expected
