"""
RAMA-KANDRA - Order Book Feature Extractor

Turns raw bid/ask levels into a fixed feature vector.
"""

from collections.abc import Iterable, Sequence

from shared import AgentLogger, OrderBookFeatures, OrderBookLevel

# Guards the zero-volume case in imbalance and weighted mid
EPSILON = 1e-9

logger = AgentLogger("RAMA-KANDRA-ORDERBOOK")


def parse_levels(raw_levels: Iterable[Sequence] | None) -> tuple[OrderBookLevel, ...]:
    """
    Convert exchange ``[price, quantity]`` pairs into levels.

    Exchanges send both values as strings. Malformed rows are dropped;
    a missing side (None) parses to no levels.
    """
    if raw_levels is None:
        return ()

    levels = []
    for row in raw_levels:
        try:
            levels.append(OrderBookLevel(price=float(row[0]), quantity=float(row[1])))
        except (TypeError, ValueError, IndexError):
            logger.debug("Dropping malformed order book level", row=repr(row))
    return tuple(levels)


def extract_features(
    bids: Sequence[OrderBookLevel],
    asks: Sequence[OrderBookLevel],
    depth: int = 10,
) -> OrderBookFeatures | None:
    """
    Compute order-book features from best-first bid and ask levels.

    Volumes are summed over the top ``depth`` levels per side.
    Returns None if either side is empty.
    """
    if not bids or not asks:
        return None

    best_bid = bids[0].price
    best_ask = asks[0].price

    bid_vol = sum(level.quantity for level in bids[:depth])
    ask_vol = sum(level.quantity for level in asks[:depth])
    total_vol = bid_vol + ask_vol + EPSILON

    return OrderBookFeatures(
        mid_price=(best_bid + best_ask) / 2,
        spread=best_ask - best_bid,
        bid_vol=bid_vol,
        ask_vol=ask_vol,
        imbalance=(bid_vol - ask_vol) / total_vol,
        weighted_mid=(best_ask * bid_vol + best_bid * ask_vol) / total_vol,
    )


def imbalance_delta(
    current: OrderBookFeatures,
    previous: OrderBookFeatures | None,
) -> float:
    """Change in imbalance since the previous snapshot (0 without one)."""
    if previous is None:
        return 0.0
    return current.imbalance - previous.imbalance
