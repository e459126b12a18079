"""
ORACLE - Price Aggregator

Combines quotes from several exchanges into one price tick per refresh.
"""

import math
from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Dict, Optional

from shared import AgentLogger, PriceTick


@dataclass(frozen=True)
class SourceQuote:
    """Price reported by one source for one refresh."""
    source: str
    price: float
    timestamp_ms: Optional[int] = None
    high: Optional[float] = None
    low: Optional[float] = None


class PriceAggregator:
    """
    Averages whichever sources answered a refresh.

    The primary source (the kline feed) also supplies the tick's
    timestamp, high and low. Without it the tick is stamped with the
    local clock and high/low fall back to the average.
    """

    def __init__(self, sources: Iterable[str], primary_source: str = "binance"):
        self.logger = AgentLogger("ORACLE-AGGREGATOR")
        self.sources = tuple(sources)
        self.primary_source = primary_source

        # Statistics
        self.ticks_produced = 0
        self.ticks_skipped = 0
        self.source_failures: Dict[str, int] = defaultdict(int)

        self.logger.info(
            "Price aggregator initialized",
            sources=list(self.sources),
            primary=primary_source,
        )

    def aggregate(
        self,
        quotes: Iterable[SourceQuote | None],
        now_ms: int,
    ) -> PriceTick | None:
        """Build a tick from the available quotes, or None if all failed."""
        received = {}
        for quote in quotes:
            if quote is None or not _is_valid_price(quote.price):
                continue
            received[quote.source] = quote

        for source in self.sources:
            if source not in received:
                self.source_failures[source] += 1

        if not received:
            self.ticks_skipped += 1
            self.logger.debug("No price sources available for tick")
            return None

        average = sum(q.price for q in received.values()) / len(received)
        primary = received.get(self.primary_source)

        self.ticks_produced += 1
        if primary is None:
            return PriceTick(timestamp_ms=now_ms, price=average, high=average, low=average)

        return PriceTick(
            timestamp_ms=primary.timestamp_ms if primary.timestamp_ms is not None else now_ms,
            price=average,
            high=primary.high if primary.high is not None else average,
            low=primary.low if primary.low is not None else average,
        )

    def get_stats(self) -> dict:
        """Get aggregator statistics."""
        return {
            "ticks_produced": self.ticks_produced,
            "ticks_skipped": self.ticks_skipped,
            "source_failures": dict(self.source_failures),
        }


def _is_valid_price(price: float | None) -> bool:
    return price is not None and math.isfinite(price) and price > 0
