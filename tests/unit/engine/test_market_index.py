"""Unit tests for the market vendor percentile index."""

from comprange_engine.market_index import MarketDataIndex, split_job_code
from comprange_engine.models import CombinationKey
from tests.fixtures import make_vendor_row


def test_split_job_code_uses_last_separator():
    assert split_job_code("EN.SODE.P5") == ("EN.SODE", "P5")
    assert split_job_code("F.P5") == ("F", "P5")
    assert split_job_code("NOSEPARATOR") is None
    assert split_job_code(".P5") is None
    assert split_job_code("EN.SODE.") is None


class TestMarketDataIndex:

    def test_direct_rows_are_indexed_by_level(self, three_region_market_rows):
        index = MarketDataIndex.build(three_region_market_rows)

        pset = index.get("US", "EN.SODE", "L5 IC")
        assert pset is not None
        assert pset.p50 == 105000
        assert CombinationKey("US", "EN.SODE", "L5 IC") in index
        assert index.get("US", "EN.SODE", "L5 Mgr") is None

    def test_rollup_fans_out_to_both_tracks(self):
        row = make_vendor_row("UK", "SA.ACMG.R4", p50=50000)
        index = MarketDataIndex.build({"UK": [row]})

        assert index.get("UK", "SA.ACMG.R4", "L4 IC").p50 == 50000
        assert index.get("UK", "SA.ACMG.R4", "L4 Mgr").p50 == 50000
        assert index.get_rollup("UK", "SA.ACMG", 4).p50 == 50000
        assert index.stats.rollup_rows == 1

    def test_resolve_prefers_direct_then_rollup(self):
        index = MarketDataIndex.build(
            {
                "UK": [
                    make_vendor_row("UK", "SA.ACMG.R4", p50=50000),
                    make_vendor_row("UK", "SA.ACMG.M4", p50=60000),
                ]
            }
        )

        assert index.resolve("UK", "SA.ACMG", "L4 Mgr") == (index.get("UK", "SA.ACMG", "L4 Mgr"), False)
        pset, from_rollup = index.resolve("UK", "SA.ACMG", "L4 IC")
        assert from_rollup is True
        assert pset.p50 == 50000
        assert index.resolve("UK", "SA.ACMG", "L4.5 IC") == (None, False)

    def test_duplicate_keys_last_row_wins(self):
        rows = [
            make_vendor_row("US", "F.P5", p50=100),
            make_vendor_row("US", "F.P5", p50=200),
        ]
        index = MarketDataIndex.build({"US": rows})

        assert index.get("US", "F", "L5 IC").p50 == 200
        assert index.stats.duplicate_keys == 1
        assert index.stats.rows_stored == 1

    def test_malformed_and_unmapped_codes_are_counted(self):
        rows = [
            make_vendor_row("US", "NOSEPARATOR", p50=1),
            make_vendor_row("US", "F.Z9", p50=1),
            make_vendor_row("US", "F.P5", p50=1),
        ]
        index = MarketDataIndex.build({"US": rows})

        assert index.stats.rows_read == 3
        assert index.stats.malformed_job_codes == 1
        assert index.stats.unmapped_tokens == 1
        assert index.stats.malformed_samples == ["US:NOSEPARATOR"]
        assert len(index) == 1

    def test_region_presence(self, three_region_market_rows):
        index = MarketDataIndex.build({**three_region_market_rows, "UK": []})

        assert index.has_region("US")
        assert not index.has_region("UK")
        assert "UK" not in index.regions_with_data()

    def test_build_respects_region_filter(self, three_region_market_rows):
        index = MarketDataIndex.build(three_region_market_rows, regions=["US"])

        assert index.has_region("US")
        assert not index.has_region("India")
