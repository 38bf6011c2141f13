"""Candle integrity validation for pattern detection and backtesting.

The validator never raises on bad data. Every problem it finds becomes a
human-readable issue string, and a repaired copy of the series is returned
in ``fixed_candles`` for downstream stages. Exceptions are reserved for
programmer errors: unknown timeframe strings and callers that demand a
repaired series when none could be produced.

Checks run in a fixed order:
1. Null, negative and zero-price values
2. OHLC consistency
3. Future timestamps
4. Chronological order (re-sorted when violated)
5. Duplicate timestamps (first occurrence kept)
6. Gaps larger than the timeframe spacing
7. Close-price outliers (median absolute deviation)
8. Market-hours filtering into a secondary series
"""

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

import numpy as np

from pattern_scanner.core.constants import BACKTEST_TIMEFRAMES
from pattern_scanner.core.constants import INTRADAY_TIMEFRAMES
from pattern_scanner.core.constants import interval_ms
from pattern_scanner.core.constants import is_session_timeframe
from pattern_scanner.core.exceptions import DataValidationError
from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import PatternType
from pattern_scanner.services.trading_calendar_service import MarketCalendar
from pattern_scanner.services.trading_calendar_service import get_market_calendar

logger = logging.getLogger(__name__)

GAP_TOLERANCE_RATIO = 0.05
MAX_GAP_PERIODS = 5
MIN_CANDLES_FOR_OUTLIERS = 10
OUTLIER_Z_THRESHOLD = 10.0
MAD_SCALE = 0.6745
MAX_INTERPOLATED_CANDLES = 10

NO_DATA_ISSUE = "No candle data provided"
NULL_VALUES_ISSUE = "Candles contain null values"
INVALID_OHLC_ISSUE = "Candles contain invalid OHLC relationships (e.g., high < low)"
NEGATIVE_VALUES_ISSUE = "Candles contain negative values"
ZERO_PRICES_ISSUE = "Candles contain zero prices"
FUTURE_TIMESTAMPS_ISSUE = "Candles contain future timestamps"
NOT_CHRONOLOGICAL_ISSUE = "Candles are not in chronological order"
DUPLICATES_ISSUE = "Candles contain duplicate timestamps; later duplicates removed"


@dataclass(frozen=True)
class GapPeriod:
    """Span between two consecutive candles that is wider than the timeframe."""

    start: int
    end: int


@dataclass
class ValidationResult:
    """Outcome of validating one candle series.

    Attributes:
        is_valid: False when the series is empty, has broken OHLC
            relationships, or has too many gaps
        issues: Human-readable descriptions of every problem found
        fixed_candles: Repaired copy of the series, None when nothing survived
        gap_periods: Gaps remaining after calendar filtering
        market_hours_only: Subset of fixed_candles inside trading hours
        outlier_count: Number of candles removed as outliers
    """

    is_valid: bool
    issues: list[str] = field(default_factory=list)
    fixed_candles: list[Candle] | None = None
    gap_periods: list[GapPeriod] = field(default_factory=list)
    market_hours_only: list[Candle] | None = None
    outlier_count: int = 0


@dataclass
class DataQualityReport:
    """Summary of a series' fitness for backtesting."""

    total_candles: int
    valid_candles: int
    invalid_candles: int
    gap_count: int
    outlier_count: int
    market_hours_percentage: float
    completeness_percentage: float
    quality_score: float
    recommendations: list[str] = field(default_factory=list)


def _now_ms() -> int:
    return int(time.time() * 1000)


def _has_null(candle: Candle) -> bool:
    return any(
        value is None
        for value in (
            candle.timestamp,
            candle.open,
            candle.high,
            candle.low,
            candle.close,
            candle.volume,
        )
    )


def _has_invalid_ohlc(candle: Candle) -> bool:
    return (
        candle.high < candle.low
        or candle.high < candle.open
        or candle.high < candle.close
        or candle.low > candle.open
        or candle.low > candle.close
    )


def _has_negative(candle: Candle) -> bool:
    return (
        candle.open < 0
        or candle.high < 0
        or candle.low < 0
        or candle.close < 0
        or candle.volume < 0
    )


def _has_zero_price(candle: Candle) -> bool:
    return candle.open == 0 or candle.high == 0 or candle.low == 0 or candle.close == 0


def _utc_date(timestamp_ms: int) -> date:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc).date()


class CandleIntegrityValidator:
    """Validates and repairs raw candle series.

    Args:
        calendar: Market calendar used for gap filtering, the market-hours
            filter and interpolation. Defaults to the configured exchange.
        clock: Returns the current time in epoch milliseconds; used for the
            future-timestamp check.
    """

    def __init__(
        self,
        calendar: MarketCalendar | None = None,
        clock: Callable[[], int] = _now_ms,
    ) -> None:
        self._calendar = calendar
        self._clock = clock

    @property
    def calendar(self) -> MarketCalendar:
        if self._calendar is None:
            self._calendar = get_market_calendar()
        return self._calendar

    def validate(self, candles: Sequence[Candle], timeframe: str) -> ValidationResult:
        """Validate a raw series and build its repaired copy.

        The input sequence is never modified.

        Args:
            candles: Raw candles in any order
            timeframe: Timeframe string used for gap detection

        Returns:
            ValidationResult with issues, fixed candles and gap periods

        Raises:
            InvalidTimeframeError: If the timeframe is not supported
        """
        spacing_ms = interval_ms(timeframe)

        if not candles:
            return ValidationResult(is_valid=False, issues=[NO_DATA_ISSUE])

        issues: list[str] = []

        working = [c for c in candles if not _has_null(c)]
        if len(working) < len(candles):
            issues.append(NULL_VALUES_ISSUE)

        ohlc_valid = not any(_has_invalid_ohlc(c) for c in working)
        if not ohlc_valid:
            issues.append(INVALID_OHLC_ISSUE)
        if any(_has_negative(c) for c in working):
            issues.append(NEGATIVE_VALUES_ISSUE)
        if any(_has_zero_price(c) for c in working):
            issues.append(ZERO_PRICES_ISSUE)

        now_ms = self._clock()
        if any(c.timestamp > now_ms for c in working):
            issues.append(FUTURE_TIMESTAMPS_ISSUE)

        if any(
            working[i].timestamp <= working[i - 1].timestamp
            for i in range(1, len(working))
        ):
            issues.append(NOT_CHRONOLOGICAL_ISSUE)
            # sorted() is stable, so the first of two equal timestamps stays first
            working = sorted(working, key=lambda c: c.timestamp)

        deduplicated = self._remove_duplicates(working)
        if len(deduplicated) < len(working):
            issues.append(DUPLICATES_ISSUE)
            working = deduplicated

        gap_periods = self._find_gaps(working, timeframe, spacing_ms)
        if gap_periods:
            issues.append(
                f"Data gaps detected: {len(gap_periods)} periods with missing data"
            )

        outlier_indices = self._find_outliers(working)
        if outlier_indices:
            issues.append(
                "Outliers detected at indices: "
                + ", ".join(str(i) for i in outlier_indices)
            )
            excluded = set(outlier_indices)
            working = [c for i, c in enumerate(working) if i not in excluded]

        market_hours_only = self._filter_market_hours(working, timeframe)

        is_valid = (
            bool(working) and ohlc_valid and len(gap_periods) <= MAX_GAP_PERIODS
        )

        if issues:
            logger.debug(
                "Validated %d %s candles: %d issues, %d kept",
                len(candles),
                timeframe,
                len(issues),
                len(working),
            )

        return ValidationResult(
            is_valid=is_valid,
            issues=issues,
            fixed_candles=working or None,
            gap_periods=gap_periods,
            market_hours_only=market_hours_only or None,
            outlier_count=len(outlier_indices),
        )

    def require_fixed_candles(
        self, candles: Sequence[Candle], timeframe: str
    ) -> list[Candle]:
        """Validate and return the repaired series, failing fast when absent.

        Raises:
            DataValidationError: If validation produced no usable candles
        """
        result = self.validate(candles, timeframe)
        if result.fixed_candles is None:
            raise DataValidationError(
                f"No usable {timeframe} candles after validation: "
                + "; ".join(result.issues)
            )
        return result.fixed_candles

    def interpolate_missing_candles(
        self, candles: Sequence[Candle], timeframe: str
    ) -> list[Candle]:
        """Fill short gaps with synthetic candles.

        Gaps of 1 to 9 missing intervals are filled by linear interpolation
        from the previous close toward the next open. Synthetic candles are
        flagged ``interpolated=True``. Non-trading days are skipped for
        daily and longer timeframes. Series that fail validation are
        returned unchanged (as a copy).

        Args:
            candles: Raw candles
            timeframe: Timeframe string

        Returns:
            New list with the synthetic candles inserted
        """
        if len(candles) < 2:
            return list(candles)

        result = self.validate(candles, timeframe)
        if not result.is_valid or result.fixed_candles is None:
            return list(candles)

        spacing_ms = interval_ms(timeframe)
        session_timeframe = is_session_timeframe(timeframe)
        source = result.fixed_candles
        filled: list[Candle] = [source[0]]

        for prev, curr in zip(source, source[1:]):
            missing = (curr.timestamp - prev.timestamp) // spacing_ms - 1
            if 0 < missing < MAX_INTERPOLATED_CANDLES:
                volume = (prev.volume + curr.volume) / 2
                for j in range(1, missing + 1):
                    timestamp = prev.timestamp + j * spacing_ms
                    if session_timeframe and not self.calendar.is_trading_day(
                        _utc_date(timestamp)
                    ):
                        continue
                    ratio = j / (missing + 1)
                    open_ = prev.close
                    close = prev.close + ratio * (curr.open - prev.close)
                    filled.append(
                        Candle(
                            timestamp=timestamp,
                            open=open_,
                            high=max(open_, close),
                            low=min(open_, close),
                            close=close,
                            volume=volume,
                            interpolated=True,
                        )
                    )
            filled.append(curr)

        added = len(filled) - len(source)
        if added:
            logger.info("Interpolated %d missing %s candles", added, timeframe)
        return filled

    def calculate_data_completeness(
        self,
        candles: Sequence[Candle],
        timeframe: str,
        start: datetime,
        end: datetime,
    ) -> float:
        """Percent of the expected candles between start and end that exist.

        Daily and longer timeframes only expect candles on trading days.

        Returns:
            Completeness in percent, capped at 100
        """
        if not candles:
            return 0.0

        spacing = timedelta(milliseconds=interval_ms(timeframe))

        if is_session_timeframe(timeframe):
            expected = 0
            current = start
            while current <= end:
                if self.calendar.is_trading_day(current.date()):
                    expected += 1
                current += spacing
        elif end >= start:
            expected = int((end - start) / spacing) + 1
        else:
            expected = 0

        if expected == 0:
            return 0.0
        return min(100.0, len(candles) / expected * 100)

    def generate_data_quality_report(
        self, candles: Sequence[Candle], timeframe: str
    ) -> DataQualityReport:
        """Score a series' quality and suggest remediations."""
        result = self.validate(candles, timeframe)
        fixed = result.fixed_candles or []

        market_hours_count = len(result.market_hours_only or [])
        market_hours_percentage = (
            market_hours_count / len(candles) * 100 if candles else 0.0
        )

        if fixed:
            completeness = self.calculate_data_completeness(
                fixed, timeframe, fixed[0].opened_at, fixed[-1].opened_at
            )
        else:
            completeness = 0.0

        gap_count = len(result.gap_periods)
        outlier_count = result.outlier_count

        quality_score = max(
            0.0,
            min(
                100.0,
                completeness * 0.4
                + (100 - gap_count * 5) * 0.3
                + (100 - outlier_count * 10) * 0.2
                + market_hours_percentage * 0.1,
            ),
        )

        recommendations: list[str] = []
        if completeness < 80:
            recommendations.append(
                "Consider using a different data source with better coverage"
            )
        if gap_count > MAX_GAP_PERIODS:
            recommendations.append("Use interpolation to fill data gaps")
        if outlier_count > 0:
            recommendations.append("Filter out outliers for more reliable backtesting")
        if market_hours_percentage < 90 and timeframe in INTRADAY_TIMEFRAMES:
            recommendations.append("Filter to market hours only for intraday timeframes")
        if quality_score < 50:
            recommendations.append(
                "Data quality is poor, backtesting results may be unreliable"
            )

        return DataQualityReport(
            total_candles=len(candles),
            valid_candles=len(fixed),
            invalid_candles=len(candles) - len(fixed),
            gap_count=gap_count,
            outlier_count=outlier_count,
            market_hours_percentage=market_hours_percentage,
            completeness_percentage=completeness,
            quality_score=quality_score,
            recommendations=recommendations,
        )

    @staticmethod
    def _remove_duplicates(candles: list[Candle]) -> list[Candle]:
        seen: set[int] = set()
        unique: list[Candle] = []
        for candle in candles:
            if candle.timestamp in seen:
                continue
            seen.add(candle.timestamp)
            unique.append(candle)
        return unique

    def _find_gaps(
        self, candles: list[Candle], timeframe: str, spacing_ms: int
    ) -> list[GapPeriod]:
        if len(candles) < 2:
            return []

        tolerance = spacing_ms * GAP_TOLERANCE_RATIO
        gaps = [
            GapPeriod(start=prev.timestamp, end=curr.timestamp)
            for prev, curr in zip(candles, candles[1:])
            if curr.timestamp - (prev.timestamp + spacing_ms) > tolerance
        ]

        if is_session_timeframe(timeframe):
            gaps = [gap for gap in gaps if self._gap_has_trading_day(gap)]
        return gaps

    def _gap_has_trading_day(self, gap: GapPeriod) -> bool:
        """Whether any day strictly between the gap's two candles is a session."""
        day = _utc_date(gap.start) + timedelta(days=1)
        end_day = _utc_date(gap.end)
        while day < end_day:
            if self.calendar.is_trading_day(day):
                return True
            day += timedelta(days=1)
        return False

    @staticmethod
    def _find_outliers(candles: list[Candle]) -> list[int]:
        """Indices of candles whose close is a MAD outlier.

        Removing extreme spikes tightens the median and MAD, which can expose
        smaller outliers, so passes repeat until one removes nothing. Indices
        refer to positions in ``candles``.
        """
        remaining = list(range(len(candles)))
        outliers: list[int] = []

        while len(remaining) >= MIN_CANDLES_FOR_OUTLIERS:
            closes = np.array([candles[i].close for i in remaining], dtype=float)
            median = float(np.median(closes))
            mad = float(np.median(np.abs(closes - median)))
            if mad == 0:
                break

            z_scores = MAD_SCALE * np.abs(closes - median) / mad
            flagged = np.flatnonzero(z_scores > OUTLIER_Z_THRESHOLD)
            if flagged.size == 0:
                break

            removed = {remaining[int(i)] for i in flagged}
            outliers.extend(removed)
            remaining = [i for i in remaining if i not in removed]

        return sorted(outliers)

    def _filter_market_hours(
        self, candles: list[Candle], timeframe: str
    ) -> list[Candle]:
        if is_session_timeframe(timeframe):
            return [
                c for c in candles if self.calendar.is_trading_day(c.opened_at.date())
            ]
        return [c for c in candles if self.calendar.is_market_open(c.opened_at)]


MAX_BACKTEST_SYMBOLS = 100
MAX_BACKTEST_RANGE_DAYS = 365 * 5


@dataclass
class BacktestParameterCheck:
    """Outcome of checking a backtest request.

    Attributes:
        is_valid: True when no issue was found
        issues: Human-readable descriptions of every problem found
        fixed_params: Copy of the request with the repairable problems fixed
    """

    is_valid: bool
    issues: list[str] = field(default_factory=list)
    fixed_params: dict = field(default_factory=dict)


def _parse_datetime(value) -> datetime | None:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def _pattern_value(value) -> str:
    return value.value if isinstance(value, PatternType) else str(value)


def validate_backtest_parameters(params: dict) -> BacktestParameterCheck:
    """Check a backtest request and repair what can be repaired.

    Recognized keys are ``start_date``, ``end_date`` (datetime, date or ISO
    string), ``timeframe``, ``symbols`` and ``pattern_types``. Reversed dates
    are swapped, a missing end date defaults to now, an unknown or missing
    timeframe defaults to ``1d`` and symbol lists are capped at 100.

    Args:
        params: Backtest request parameters

    Returns:
        BacktestParameterCheck with issues and the repaired parameters
    """
    issues: list[str] = []
    fixed = dict(params)

    start_raw = params.get("start_date")
    end_raw = params.get("end_date")

    if not start_raw:
        issues.append("Missing start date")
    if not end_raw:
        issues.append("Missing end date")
        fixed["end_date"] = datetime.now(timezone.utc)

    if start_raw and end_raw:
        start = _parse_datetime(start_raw)
        end = _parse_datetime(end_raw)
        if start is None:
            issues.append("Invalid start date format")
        if end is None:
            issues.append("Invalid end date format")
        if start is not None and end is not None:
            if start > end:
                issues.append("Start date is after end date")
                fixed["start_date"], fixed["end_date"] = end_raw, start_raw
            if abs(end - start) > timedelta(days=MAX_BACKTEST_RANGE_DAYS):
                issues.append(
                    "Date range exceeds 5 years, which may cause performance issues"
                )

    timeframe = params.get("timeframe")
    if not timeframe:
        issues.append("Missing timeframe")
        fixed["timeframe"] = "1d"
    elif timeframe not in BACKTEST_TIMEFRAMES:
        issues.append("Invalid timeframe")
        fixed["timeframe"] = "1d"

    symbols = params.get("symbols")
    if not symbols or not isinstance(symbols, (list, tuple)):
        issues.append("Missing or invalid symbols")
    elif len(symbols) > MAX_BACKTEST_SYMBOLS:
        issues.append(f"Too many symbols (max {MAX_BACKTEST_SYMBOLS})")
        fixed["symbols"] = list(symbols[:MAX_BACKTEST_SYMBOLS])

    pattern_types = params.get("pattern_types")
    if pattern_types is not None:
        known = {p.value for p in PatternType}
        if (
            not isinstance(pattern_types, (list, tuple))
            or not pattern_types
            or any(_pattern_value(p) not in known for p in pattern_types)
        ):
            issues.append("Invalid pattern types")

    if issues:
        logger.info("Backtest parameters need attention: %s", issues)

    return BacktestParameterCheck(
        is_valid=not issues, issues=issues, fixed_params=fixed
    )
