"""Tests for the prediction ledger (record, resolve, stats, persistence)."""

import pytest

from pricecast.ledger import PredictionLedger
from pricecast.models import Horizon, LedgerConfig, LedgerEntry

SECOND = 1_000
MINUTE = 60 * SECOND
DAY = 24 * 60 * MINUTE


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, now: int = 0):
        self.now = now

    def __call__(self) -> int:
        return self.now


def make_ledger(
    clock: FakeClock | None = None,
    **config,
) -> PredictionLedger:
    """Build a ledger on a fake clock; config kwargs override LedgerConfig."""
    return PredictionLedger(LedgerConfig(**config), clock or FakeClock())


def prices(**values: float):
    """Price lookup over keyword arguments (missing asset -> None)."""
    return lambda asset_id: values.get(asset_id)


# ---------------------------------------------------------------------------
# Recording
# ---------------------------------------------------------------------------

class TestRecord:
    def test_record_creates_pending_entry(self):
        clock = FakeClock(5 * SECOND)
        ledger = make_ledger(clock)

        entry = ledger.record("X", 100.0, 101.0, 110.0)

        assert entry is not None
        assert entry.created_at == 5 * SECOND
        assert entry.price_at_creation == 100.0
        assert not entry.is_resolved(Horizon.SHORT)
        assert not entry.is_resolved(Horizon.LONG)
        assert len(ledger) == 1

    def test_min_spacing_per_asset(self):
        clock = FakeClock()
        ledger = make_ledger(clock, min_spacing_ms=5 * MINUTE)

        assert ledger.record("X", 100.0, 101.0, 102.0) is not None
        clock.now = 4 * MINUTE
        assert ledger.record("X", 100.0, 101.0, 102.0) is None
        # Other assets are not rate-limited by X
        assert ledger.record("Y", 50.0, 51.0, 52.0) is not None
        clock.now = 5 * MINUTE
        assert ledger.record("X", 100.0, 101.0, 102.0) is not None

        assert [e.asset_id for e in ledger.entries] == ["X", "Y", "X"]

    def test_fifo_eviction(self):
        clock = FakeClock()
        ledger = make_ledger(clock, max_entries=3, min_spacing_ms=0)

        for i in range(5):
            clock.now = i * SECOND
            ledger.record(f"A{i}", 100.0, 101.0, 102.0)

        assert len(ledger) == 3
        assert [e.asset_id for e in ledger.entries] == ["A2", "A3", "A4"]

    def test_latest_and_asset_ids(self):
        clock = FakeClock()
        ledger = make_ledger(clock, min_spacing_ms=0)
        ledger.record("X", 100.0, 101.0, 102.0)
        clock.now = SECOND
        ledger.record("Y", 10.0, 11.0, 12.0)
        clock.now = 2 * SECOND
        ledger.record("X", 105.0, 106.0, 107.0)

        assert ledger.latest("X").price_at_creation == 105.0
        assert ledger.latest("Z") is None
        assert ledger.asset_ids() == ["X", "Y"]


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

class TestResolve:
    def test_short_horizon_lifecycle(self):
        """Pending at 30s, resolved at 61s, counted as a correct call."""
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 105.0)

        clock.now = 30 * SECOND
        assert ledger.resolve(prices(X=102.0)) == 0
        assert not ledger.entries[0].is_resolved(Horizon.SHORT)

        clock.now = 61 * SECOND
        assert ledger.resolve(prices(X=102.0)) == 1

        entry = ledger.entries[0]
        assert entry.short_horizon_actual == 102.0
        assert entry.short_horizon_resolved_at == 61 * SECOND
        assert not entry.is_resolved(Horizon.LONG)

        stats = ledger.stats()
        assert stats.short.resolved == 1
        assert stats.short.hit_rate == 100.0
        assert stats.long.hit_rate is None

    def test_long_horizon_resolves_after_a_day(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 95.0)

        clock.now = DAY - 1
        assert ledger.resolve(prices(X=90.0)) == 1  # short only
        clock.now = DAY
        assert ledger.resolve(prices(X=97.0)) == 1  # long

        entry = ledger.entries[0]
        assert entry.short_horizon_actual == 90.0
        assert entry.long_horizon_actual == 97.0
        assert entry.long_horizon_resolved_at == DAY

    def test_both_horizons_in_one_call(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 102.0)

        clock.now = 2 * DAY
        assert ledger.resolve(prices(X=103.0)) == 2

    def test_missing_price_stays_pending(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 102.0)

        clock.now = 2 * MINUTE
        assert ledger.resolve(prices(Y=50.0)) == 0
        assert ledger.resolve(prices(X=0.0)) == 0
        assert len(ledger.pending(Horizon.SHORT)) == 1

        # Retried on a later call once a price shows up
        clock.now = 3 * MINUTE
        assert ledger.resolve(prices(X=99.0)) == 1
        assert ledger.entries[0].short_horizon_resolved_at == 3 * MINUTE

    @pytest.mark.parametrize("bad_price", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_price_stays_pending(self, bad_price):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 102.0)

        clock.now = 61 * SECOND
        assert ledger.resolve(prices(X=bad_price)) == 0

        stats = ledger.stats()
        assert stats.short.resolved == 0
        assert stats.short.mean_pct_error is None
        record = ledger.to_records()[0]
        assert record["shortHorizonActual"] is None
        assert record["shortHorizonResolvedAt"] is None

        clock.now = 62 * SECOND
        assert ledger.resolve(prices(X=101.0)) == 1
        assert ledger.stats().short.mean_pct_error == pytest.approx(0.0)

    def test_resolve_is_idempotent(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 102.0)

        clock.now = 2 * MINUTE
        ledger.resolve(prices(X=102.0))
        first = ledger.to_records()

        assert ledger.resolve(prices(X=102.0)) == 0
        assert ledger.to_records() == first

    def test_resolved_values_never_overwritten(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 102.0)

        clock.now = 2 * MINUTE
        ledger.resolve(prices(X=102.0))
        clock.now = 10 * MINUTE
        ledger.resolve(prices(X=500.0))

        entry = ledger.entries[0]
        assert entry.short_horizon_actual == 102.0
        assert entry.short_horizon_resolved_at == 2 * MINUTE

    def test_lookup_called_once_per_asset(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock, min_spacing_ms=0)
        ledger.record("X", 100.0, 101.0, 102.0)
        clock.now = SECOND
        ledger.record("X", 100.0, 101.0, 102.0)

        calls = []

        def lookup(asset_id):
            calls.append(asset_id)
            return 101.0

        clock.now = 2 * MINUTE
        assert ledger.resolve(lookup) == 2
        assert calls == ["X"]


# ---------------------------------------------------------------------------
# Encapsulation
# ---------------------------------------------------------------------------

class TestEntryIsolation:
    """Entries handed out by the ledger are copies."""

    def test_resolving_a_returned_entry_does_not_touch_ledger(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        recorded = ledger.record("X", 100.0, 101.0, 102.0)

        recorded.resolve(Horizon.SHORT, 500.0, 1)
        ledger.entries[0].resolve(Horizon.LONG, 500.0, 1)
        ledger.latest("X").resolve(Horizon.SHORT, 500.0, 1)
        ledger.pending()[0].resolve(Horizon.SHORT, 500.0, 1)

        entry = ledger.entries[0]
        assert not entry.is_resolved(Horizon.SHORT)
        assert not entry.is_resolved(Horizon.LONG)
        assert ledger.stats().short.resolved == 0

    def test_ledger_resolution_still_applies(self):
        clock = FakeClock(0)
        ledger = make_ledger(clock)
        ledger.record("X", 100.0, 101.0, 102.0)
        snapshot = ledger.entries[0]

        clock.now = 2 * MINUTE
        assert ledger.resolve(prices(X=102.0)) == 1

        assert ledger.entries[0].short_horizon_actual == 102.0
        assert snapshot.short_horizon_actual is None


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def resolved_ledger() -> PredictionLedger:
    """X: one hit, one miss on the short horizon; Y: one hit."""
    clock = FakeClock(0)
    ledger = make_ledger(clock, min_spacing_ms=0)
    ledger.record("X", 100.0, 101.0, 110.0)   # up, realized 102 -> hit, err 1%
    ledger.record("X", 100.0, 99.0, 90.0)     # down, realized 102 -> miss, err 3%
    ledger.record("Y", 50.0, 51.0, 55.0)      # up, realized 52 -> hit, err 2%
    clock.now = 2 * MINUTE
    ledger.resolve(prices(X=102.0, Y=52.0))
    return ledger


class TestStats:
    def test_empty_ledger(self):
        stats = make_ledger().stats()
        assert stats.short.count == 0
        assert stats.short.hit_rate is None
        assert stats.short.mean_pct_error is None

    def test_unresolved_metrics_are_none(self):
        ledger = make_ledger()
        ledger.record("X", 100.0, 101.0, 102.0)

        stats = ledger.stats()
        assert stats.short.count == 1
        assert stats.short.resolved == 0
        assert stats.short.pending == 1
        assert stats.short.hit_rate is None
        assert stats.long.mean_pct_error is None

    def test_hit_rate_and_error(self):
        stats = resolved_ledger().stats()

        assert stats.short.count == 3
        assert stats.short.resolved == 3
        assert stats.short.hits == 2
        assert stats.short.hit_rate == pytest.approx(200 / 3)
        assert stats.short.mean_pct_error == pytest.approx((1 + 3 + 2) / 3)
        assert stats.long.resolved == 0

    def test_filter_by_asset(self):
        ledger = resolved_ledger()

        x_stats = ledger.stats("X")
        assert x_stats.asset_id == "X"
        assert x_stats.short.count == 2
        assert x_stats.short.hit_rate == pytest.approx(50.0)

        y_stats = ledger.stats("Y")
        assert y_stats.short.hit_rate == pytest.approx(100.0)
        assert y_stats.short.mean_pct_error == pytest.approx(2.0)

        assert ledger.stats("Z").short.hit_rate is None

    def test_hit_rate_bounded(self):
        rate = resolved_ledger().stats().short.hit_rate
        assert 0 <= rate <= 100

    def test_stats_are_repeatable(self):
        ledger = resolved_ledger()
        assert ledger.stats() == ledger.stats()
        assert ledger.stats("X").to_dict() == ledger.stats("X").to_dict()


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------

PERSISTED_KEYS = {
    "createdAt",
    "assetId",
    "priceAtCreation",
    "shortHorizonForecast",
    "shortHorizonActual",
    "shortHorizonResolvedAt",
    "longHorizonForecast",
    "longHorizonActual",
    "longHorizonResolvedAt",
}


class TestPersistence:
    def test_record_shape(self):
        ledger = resolved_ledger()
        records = ledger.to_records()

        assert len(records) == 3
        assert set(records[0]) == PERSISTED_KEYS
        assert records[0]["shortHorizonActual"] == 102.0
        assert records[0]["longHorizonActual"] is None

    def test_restore_keeps_resolution_state(self):
        original = resolved_ledger()
        restored = PredictionLedger.from_records(original.to_records(), LedgerConfig())

        assert restored.to_records() == original.to_records()
        assert restored.stats() == original.stats()

    def test_restore_trims_to_capacity(self):
        records = [
            LedgerEntry(
                created_at=i,
                asset_id=f"A{i}",
                price_at_creation=100.0,
                short_horizon_forecast=101.0,
                long_horizon_forecast=102.0,
            ).to_record()
            for i in range(5)
        ]
        ledger = PredictionLedger.from_records(records, LedgerConfig(max_entries=2))
        assert [e.asset_id for e in ledger.entries] == ["A3", "A4"]

    @pytest.mark.parametrize(
        "data",
        [
            None,
            "not a list",
            {"createdAt": 0},
            [{"foo": "bar"}],
            [{"createdAt": "yesterday", "assetId": "X"}],
            [42],
        ],
    )
    def test_malformed_data_gives_empty_ledger(self, data):
        ledger = PredictionLedger.from_records(data, LedgerConfig())
        assert len(ledger) == 0
        assert ledger.stats().short.count == 0

    def test_one_bad_entry_discards_all(self):
        good = resolved_ledger().to_records()
        ledger = PredictionLedger.from_records(good + [{"assetId": "broken"}], LedgerConfig())
        assert len(ledger) == 0

    def test_restored_ledger_keeps_spacing(self):
        clock = FakeClock(0)
        original = make_ledger(clock)
        original.record("X", 100.0, 101.0, 102.0)

        clock.now = MINUTE
        restored = PredictionLedger.from_records(original.to_records(), LedgerConfig(), clock)
        assert restored.record("X", 100.0, 101.0, 102.0) is None
