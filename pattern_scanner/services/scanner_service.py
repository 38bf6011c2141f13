"""Pattern scanner service: validation, indicators, detection, scoring, backtesting.

This service wires the pipeline stages together for one (symbol, timeframe)
unit and fans out over many units in concurrent batches:

    raw candles -> validator -> indicator engine -> detector -> scorer
               -> {surfaced detections | backtest simulator}

Per-unit analysis is synchronous and stateless. Batch fan-out follows the
worker pattern: fixed-size batches processed with asyncio.gather, one failed
symbol never aborting its batch, and a delay between batches to respect
upstream rate limits.
"""
import asyncio
import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from pattern_scanner.backtesting.simulator import walk_forward_backtest
from pattern_scanner.core.config import Settings, get_settings
from pattern_scanner.core.constants import interval_ms, lower_timeframe
from pattern_scanner.core.exceptions import DataProviderError
from pattern_scanner.indicators.engine import enrich_candles
from pattern_scanner.models.candle import Candle
from pattern_scanner.models.pattern import BacktestResult, PatternDetection
from pattern_scanner.patterns.config import DetectorConfig
from pattern_scanner.patterns.detector import detect_patterns
from pattern_scanner.providers.base import CandleProviderInterface
from pattern_scanner.repositories.base import PatternStoreInterface
from pattern_scanner.scoring.confidence import ScoringConfig
from pattern_scanner.scoring.confidence import apply_multi_timeframe_confirmation
from pattern_scanner.scoring.confidence import filter_detections
from pattern_scanner.scoring.confidence import score_detections
from pattern_scanner.utils.structured_logging import bind_scan_context
from pattern_scanner.utils.structured_logging import clear_scan_context
from pattern_scanner.utils.structured_logging import get_logger
from pattern_scanner.utils.structured_logging import scan_unit_context
from pattern_scanner.validation.integrity import CandleIntegrityValidator

logger = logging.getLogger(__name__)
events = get_logger(__name__)


@dataclass
class UnitScanResult:
    """Outcome of scanning one (symbol, timeframe) unit."""

    symbol: str
    timeframe: str
    status: str = "success"
    detections: list[PatternDetection] = field(default_factory=list)
    candle_count: int = 0
    error_message: str | None = None


class PatternScannerService:
    """Runs the detection pipeline for single series and batches of symbols.

    Args:
        provider: Candle source used by ``scan``
        store: Optional sink for surfaced detections and backtest results
        validator: Candle integrity validator (defaults to the configured
            exchange calendar)
        detector_config: Detector thresholds
        scoring_config: Confidence model (boost defaults to settings)
        settings: Scanner settings (defaults to get_settings())
    """

    def __init__(
        self,
        provider: CandleProviderInterface | None = None,
        store: PatternStoreInterface | None = None,
        validator: CandleIntegrityValidator | None = None,
        detector_config: DetectorConfig | None = None,
        scoring_config: ScoringConfig | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.provider = provider
        self.store = store
        self.validator = validator or CandleIntegrityValidator()
        self.detector_config = detector_config or DetectorConfig()
        self.scoring_config = scoring_config or ScoringConfig.from_settings(
            self.settings
        )

    def prepare_candles(
        self, candles: Sequence[Candle], timeframe: str
    ) -> list[Candle]:
        """Validate and enrich a raw series.

        Returns:
            Enriched fixed candles, empty when validation left nothing usable
        """
        result = self.validator.validate(candles, timeframe)
        if result.fixed_candles is None:
            logger.info(
                f"No usable {timeframe} candles after validation: {result.issues}"
            )
            return []
        if result.issues:
            logger.debug(f"{timeframe} candle issues: {result.issues}")
        return enrich_candles(result.fixed_candles)

    def analyze(
        self,
        symbol: str,
        timeframe: str,
        candles: Sequence[Candle],
        lower_timeframe_candles: Sequence[Candle] | None = None,
    ) -> list[PatternDetection]:
        """Run the full pipeline on one series.

        Args:
            symbol: Ticker symbol
            timeframe: Timeframe of ``candles``
            candles: Raw candles
            lower_timeframe_candles: Raw candles of the adjacent lower
                timeframe, used for multi-timeframe confirmation

        Returns:
            All scored detections (unfiltered)

        Raises:
            InvalidTimeframeError: If the timeframe is not supported
        """
        interval_ms(timeframe)
        enriched = self.prepare_candles(candles, timeframe)
        if not enriched:
            return []

        detections = detect_patterns(symbol, enriched, timeframe, self.detector_config)
        scored = score_detections(detections, enriched, self.scoring_config)

        confirming = lower_timeframe(timeframe)
        if scored and confirming and lower_timeframe_candles:
            lower_enriched = self.prepare_candles(lower_timeframe_candles, confirming)
            scored = apply_multi_timeframe_confirmation(
                scored, lower_enriched, self.scoring_config
            )

        return scored

    def _fetch_range(self, timeframe: str, end: datetime) -> tuple[datetime, datetime]:
        span = interval_ms(timeframe) * (self.settings.scan_lookback_candles - 1)
        return end - timedelta(milliseconds=span), end

    async def _fetch_lower_timeframe(
        self, symbol: str, timeframe: str, end: datetime
    ) -> list[Candle]:
        confirming = lower_timeframe(timeframe)
        if confirming is None:
            return []
        start, end = self._fetch_range(confirming, end)
        try:
            return await self.provider.fetch_candles(symbol, confirming, start, end)
        except DataProviderError as e:
            logger.warning(
                f"{symbol} {confirming} fetch failed, skipping confirmation: {e}"
            )
            return []

    async def scan_unit(
        self, symbol: str, timeframe: str, end: datetime
    ) -> UnitScanResult:
        """Fetch and analyze one (symbol, timeframe) unit.

        Raises:
            DataProviderError: If the primary fetch fails
        """
        with scan_unit_context(symbol, timeframe):
            start, end = self._fetch_range(timeframe, end)
            candles = await self.provider.fetch_candles(symbol, timeframe, start, end)

            if len(candles) < self.settings.min_candles_for_analysis:
                result = UnitScanResult(
                    symbol=symbol,
                    timeframe=timeframe,
                    status="insufficient_data",
                    candle_count=len(candles),
                )
            else:
                lower_candles = await self._fetch_lower_timeframe(
                    symbol, timeframe, end
                )
                result = UnitScanResult(
                    symbol=symbol,
                    timeframe=timeframe,
                    detections=self.analyze(symbol, timeframe, candles, lower_candles),
                    candle_count=len(candles),
                )

            events.debug(
                "scan_unit_analyzed",
                status=result.status,
                candles=result.candle_count,
                detections=len(result.detections),
            )
            return result

    async def scan(
        self,
        symbols: Sequence[str],
        timeframes: Sequence[str],
        end: datetime | None = None,
    ) -> list[PatternDetection]:
        """Scan many symbols and timeframes in concurrent batches.

        Failed units are logged and treated as having no candles. Surviving
        detections are filtered by the configured confidence and profit
        thresholds, sorted by confidence (highest first) and persisted when a
        store is configured.

        Args:
            symbols: Ticker symbols
            timeframes: Timeframe strings
            end: End of the fetched range (defaults to now, UTC)

        Returns:
            Surfaced detections

        Raises:
            ValueError: If no provider is configured
        """
        if self.provider is None:
            raise ValueError("A candle provider is required to scan")

        for timeframe in timeframes:
            interval_ms(timeframe)

        end = end or datetime.now(timezone.utc)
        units = [(symbol, tf) for symbol in symbols for tf in timeframes]
        batch_size = max(1, self.settings.scan_batch_size)
        scan_id = uuid.uuid4().hex[:8]
        bind_scan_context(scan_id=scan_id)

        found: list[PatternDetection] = []
        failed_units: dict[str, str] = {}

        try:
            for batch_start in range(0, len(units), batch_size):
                if batch_start > 0 and self.settings.scan_batch_delay > 0:
                    await asyncio.sleep(self.settings.scan_batch_delay)

                batch = units[batch_start : batch_start + batch_size]
                events.info(
                    "scan_batch_started",
                    batch=batch_start // batch_size + 1,
                    units=len(batch),
                )

                tasks = [self.scan_unit(symbol, tf, end) for symbol, tf in batch]
                results = await asyncio.gather(*tasks, return_exceptions=True)

                for (symbol, tf), result in zip(batch, results):
                    if isinstance(result, Exception):
                        events.warning(
                            "scan_unit_failed",
                            symbol=symbol,
                            timeframe=tf,
                            error=str(result),
                        )
                        failed_units[f"{symbol}:{tf}"] = str(result)
                    elif result.status != "success":
                        logger.debug(
                            f"{symbol} {tf}: {result.status} ({result.candle_count} candles)"
                        )
                    else:
                        found.extend(result.detections)

            surfaced = filter_detections(
                found,
                confidence_threshold=self.settings.confidence_threshold,
                profit_threshold=self.settings.profit_threshold,
            )
            surfaced.sort(key=lambda d: d.confidence_score, reverse=True)

            if self.store is not None:
                for detection in surfaced:
                    await self.store.save_pattern(detection)

            events.info(
                "scan_completed",
                units=len(units),
                detections=len(found),
                surfaced=len(surfaced),
                failed=len(failed_units),
            )
            return surfaced
        finally:
            clear_scan_context()

    async def run_historical_backtest(
        self,
        symbol: str,
        timeframe: str,
        candles: Sequence[Candle],
        lookahead: int | None = None,
        full_history: bool = False,
    ) -> list[BacktestResult]:
        """Walk-forward backtest of every detection in a historical series.

        Each detection is replayed against the candles that follow it in the
        same series. Multi-timeframe confirmation is not applied, since only
        the latest lower-timeframe candle would be available.

        Args:
            symbol: Ticker symbol
            timeframe: Timeframe of ``candles``
            candles: Raw historical candles
            lookahead: Forward candles scanned per detection (defaults to
                the ``backtest_lookahead`` setting)
            full_history: Use the longer ``full_history_lookahead`` window
                when no explicit lookahead is given

        Returns:
            Backtest results, in detection order
        """
        interval_ms(timeframe)
        enriched = self.prepare_candles(candles, timeframe)
        if not enriched:
            return []

        detections = detect_patterns(symbol, enriched, timeframe, self.detector_config)
        scored = score_detections(detections, enriched, self.scoring_config)
        if lookahead is None:
            lookahead = (
                self.settings.full_history_lookahead
                if full_history
                else self.settings.backtest_lookahead
            )
        results = walk_forward_backtest(
            scored,
            enriched,
            lookahead=lookahead,
            min_forward_candles=self.settings.min_forward_candles,
        )

        if self.store is not None:
            for result in results:
                await self.store.save_backtest_result(result)

        events.info(
            "historical_backtest_completed",
            symbol=symbol,
            timeframe=timeframe,
            detections=len(scored),
            results=len(results),
            successes=sum(1 for r in results if r.success),
        )
        return results
