"""
RAMA-KANDRA - Order Book Analyzer

"I love my daughter very much. I find her to be the most beautiful
thing I have ever seen. But where we are from, that is not enough."

Understands the underlying pressure. Reads bid and ask depth and
reduces it to mid price, spread, volume imbalance and weighted mid.
"""

from .orderbook import extract_features, imbalance_delta, parse_levels

__all__ = ["extract_features", "imbalance_delta", "parse_levels"]
