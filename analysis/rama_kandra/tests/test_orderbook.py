"""Tests for the RAMA-KANDRA order book feature extractor."""

import pytest

from rama_kandra import extract_features, imbalance_delta, parse_levels
from shared import OrderBookLevel


def levels(*pairs):
    return tuple(OrderBookLevel(price=p, quantity=q) for p, q in pairs)


class TestExtractFeatures:
    """Test suite for extract_features."""

    def test_basic_features(self):
        """Test mid, spread, volumes and imbalance."""
        bids = levels((99.0, 3.0), (98.0, 1.0))
        asks = levels((101.0, 1.0), (102.0, 1.0))

        features = extract_features(bids, asks)

        assert features.mid_price == pytest.approx(100.0)
        assert features.spread == pytest.approx(2.0)
        assert features.bid_vol == pytest.approx(4.0)
        assert features.ask_vol == pytest.approx(2.0)
        assert features.imbalance == pytest.approx(2.0 / 6.0)
        # Buy pressure pulls the weighted mid toward the ask
        assert features.weighted_mid == pytest.approx((101.0 * 4 + 99.0 * 2) / 6)
        assert features.weighted_mid > features.mid_price

    def test_zero_volume(self):
        """Test an empty-volume book gives zero imbalance without dividing by zero."""
        features = extract_features(levels((99.0, 0.0)), levels((101.0, 0.0)))

        assert features.imbalance == 0.0
        assert features.weighted_mid == 0.0

    def test_empty_side_returns_none(self):
        """Test a book missing one side has no features."""
        assert extract_features(levels((99.0, 1.0)), ()) is None
        assert extract_features((), levels((101.0, 1.0))) is None

    def test_volume_limited_to_depth(self):
        """Test only the top 10 levels per side count toward volume."""
        bids = levels(*[(100.0 - i, 1.0) for i in range(50)])
        asks = levels(*[(101.0 + i, 1.0) for i in range(50)])

        features = extract_features(bids, asks, depth=10)

        assert features.bid_vol == pytest.approx(10.0)
        assert features.ask_vol == pytest.approx(10.0)
        assert features.imbalance == pytest.approx(0.0)

    def test_imbalance_bounds(self):
        """Test a one-sided volume book approaches +/-1."""
        features = extract_features(levels((99.0, 5.0)), levels((101.0, 0.0)))
        assert features.imbalance == pytest.approx(1.0)


class TestParseLevels:
    """Test suite for parse_levels."""

    def test_parses_string_pairs(self):
        """Test exchange string pairs become floats."""
        parsed = parse_levels([["2500.10", "1.5"], ["2500.00", "2"]])
        assert parsed == levels((2500.10, 1.5), (2500.0, 2.0))

    def test_drops_malformed_rows(self):
        """Test bad rows are skipped rather than failing the snapshot."""
        parsed = parse_levels([["2500.10", "1.5"], ["oops", "1"], [], None, ["2499.0"]])
        assert parsed == levels((2500.10, 1.5))

    def test_missing_side(self):
        """Test a null side parses to no levels."""
        assert parse_levels(None) == ()


class TestImbalanceDelta:
    """Test suite for imbalance_delta."""

    def test_without_previous(self):
        """Test the first snapshot has zero momentum."""
        current = extract_features(levels((99.0, 3.0)), levels((101.0, 1.0)))
        assert imbalance_delta(current, None) == 0.0

    def test_with_previous(self):
        """Test delta is current minus previous imbalance."""
        previous = extract_features(levels((99.0, 1.0)), levels((101.0, 1.0)))
        current = extract_features(levels((99.0, 3.0)), levels((101.0, 1.0)))
        assert imbalance_delta(current, previous) == pytest.approx(0.5)
