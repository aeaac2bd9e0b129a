"""Integration tests for the full FullList / FullListUSD build."""

import pytest

from comprange_engine.engine import AggregationEngine
from comprange_engine.exceptions import MarketDataMissingError
from comprange_engine.models import OUTPUT_COLUMNS, PercentileSource
from tests.fixtures import AS_OF, make_employee, make_vendor_row


def _rows_by_key(rows):
    return {(r.region, r.family_code, r.level): r for r in rows}


class TestSingleRegionBuild:
    """One US job code, category A, no employees."""

    @pytest.fixture
    def result(self, minimal_config, us_market_rows):
        return AggregationEngine(minimal_config).build(us_market_rows, [], as_of=AS_OF, run_id="e2e")

    def test_direct_row(self, result):
        row = _rows_by_key(result.full_list)[("US", "F", "L5 IC")]

        assert row.range_start == 100000
        assert row.range_mid == 140000
        assert row.range_end == 200000
        assert row.internal_count == 0
        assert row.internal_min is None and row.internal_median is None and row.internal_max is None
        assert row.compa_ratio.is_empty()
        assert row.percentile_source is PercentileSource.DIRECT
        assert row.join_key == "Family FL5 ICUS"

    def test_half_levels_are_interpolated(self, result):
        rows = _rows_by_key(result.full_list)

        upper_only = rows[("US", "F", "L4.5 IC")]
        assert upper_only.market_range == rows[("US", "F", "L5 IC")].market_range

        lower_only = rows[("US", "F", "L5.5 IC")]
        assert lower_only.range_start == 120000
        assert lower_only.range_mid == 168000
        assert lower_only.range_end == 240000
        assert lower_only.percentile_source is PercentileSource.INTERPOLATED

    def test_only_keys_with_data_are_emitted(self, result):
        assert [r.level for r in result.full_list] == ["L4.5 IC", "L5 IC", "L5.5 IC"]
        assert result.metadata.rows_emitted == 3
        assert result.metadata.combinations_considered == 23
        assert result.metadata.combinations_skipped == 20
        assert result.metadata.percentile_sources == {
            "direct": 1,
            "rollup": 0,
            "interpolated": 2,
            "none": 0,
        }

    def test_usd_table_matches_for_usd_region(self, result):
        assert [r.to_record() for r in result.full_list_usd] == [r.to_record() for r in result.full_list]

    def test_lookup_by_join_key(self, result):
        assert result.lookup("Family FL5 ICUS").level == "L5 IC"
        assert result.lookup_usd("Family FL5 ICUS").range_mid == 140000
        assert result.lookup("missing") is None

    def test_frame_has_output_columns(self, result):
        frame = result.to_frame()
        assert list(frame.columns) == list(OUTPUT_COLUMNS)
        assert len(frame) == 3


class TestMultiRegionBuild:

    @pytest.fixture
    def engine(self, three_region_config):
        return AggregationEngine(three_region_config)

    @pytest.fixture
    def result(self, engine, three_region_market_rows, sample_employees):
        return engine.build(three_region_market_rows, sample_employees, as_of=AS_OF, run_id="multi")

    def test_internal_stats_and_compa_ratio(self, result):
        row = _rows_by_key(result.full_list)[("US", "EN.SODE", "L5 IC")]

        assert row.internal_count == 5
        assert row.internal_median == 100000
        assert row.range_mid == 112000
        assert row.cr_avg == pytest.approx((110000 + 100000 + 95000 + 90000) / 4 / 112000)
        assert row.cr_top_talent == pytest.approx(110000 / 112000)
        assert row.cr_new_hire == pytest.approx(95000 / 112000)
        assert row.cr_bottom_tier == pytest.approx(90000 / 112000)

    def test_interpolation_between_neighbors(self, result):
        row = _rows_by_key(result.full_list)[("US", "EN.SODE", "L4.5 IC")]
        assert row.percentile_source is PercentileSource.INTERPOLATED
        assert row.range_mid == 103600

    def test_rollup_covers_both_tracks(self, result):
        rows = _rows_by_key(result.full_list)
        for level in ("L4 IC", "L4 Mgr"):
            row = rows[("UK", "SA.ACMG", level)]
            assert row.percentile_source is PercentileSource.ROLLUP
            # Category B (Y1): p10 / p40 / p62.5
            assert (row.range_start, row.range_mid, row.range_end) == (40000, 47000, 53000)

    def test_non_usd_conversion_is_not_re_rounded(self, result):
        local = _rows_by_key(result.full_list)[("India", "EN.SODE", "L5 IC")]
        usd = _rows_by_key(result.full_list_usd)[("India", "EN.SODE", "L5 IC")]

        assert local.range_start == 2400000
        assert local.range_mid == 3100000
        assert usd.range_start == pytest.approx(2400000 * 0.012)
        assert usd.range_mid == pytest.approx(3100000 * 0.012)
        assert usd.region == "India"

        uk = _rows_by_key(result.full_list_usd)[("UK", "SA.ACMG", "L4 IC")]
        assert uk.range_start == 50000

    def test_employee_only_key_is_emitted(self, engine, three_region_market_rows):
        employees = [make_employee("E1", 80000, family_code="SA.ACMG", level="L6 IC")]
        result = engine.build(three_region_market_rows, employees, as_of=AS_OF)

        row = _rows_by_key(result.full_list)[("US", "SA.ACMG", "L6 IC")]
        assert row.percentile_source is PercentileSource.NONE
        assert row.market_range.range_mid is None
        assert row.internal_count == 1
        assert row.cr_avg is None

    def test_metadata(self, result):
        meta = result.metadata

        assert meta.run_id == "multi"
        assert meta.as_of == AS_OF
        assert meta.regions_missing_market_data == []
        assert meta.unmapped_family_employees == 1
        assert meta.unmapped_families == ["UNMAPPED"]
        assert meta.market["malformed_job_codes"] == 1
        assert meta.employees["invalid_salary"] == 1
        assert meta.to_dict()["as_of"] == "2025-11-01"

    def test_builds_are_deterministic(self, engine, three_region_market_rows, sample_employees):
        first = engine.build(three_region_market_rows, sample_employees, as_of=AS_OF, run_id="a")
        second = engine.build(three_region_market_rows, sample_employees, as_of=AS_OF, run_id="b")

        assert first.to_frame().equals(second.to_frame())
        assert first.to_frame(usd=True).equals(second.to_frame(usd=True))


class TestMarketDataCoverage:

    def test_all_regions_missing_is_fatal(self, three_region_config):
        engine = AggregationEngine(three_region_config)
        with pytest.raises(MarketDataMissingError) as exc_info:
            engine.build({"US": [], "UK": []}, [], as_of=AS_OF)
        assert exc_info.value.missing_regions == ["US", "UK", "India"]

    def test_partial_coverage_is_reported(self, three_region_config, three_region_market_rows):
        market = {"US": three_region_market_rows["US"], "DE": [make_vendor_row("DE", "EN.SODE.P5", p50=1)]}
        result = AggregationEngine(three_region_config).build(market, [], as_of=AS_OF)

        assert result.metadata.regions_missing_market_data == ["UK", "India"]
        assert result.metadata.unconfigured_market_regions == ["DE"]
        assert {r.region for r in result.full_list} == {"US"}

    def test_missing_fx_rate_is_reported(self, minimal_config, us_market_rows):
        minimal_config.regions[0].fx_to_usd = None
        result = AggregationEngine(minimal_config).build(us_market_rows, [], as_of=AS_OF)

        assert result.metadata.unmapped_fx_regions == ["US"]
        assert result.full_list_usd[0].range_mid == result.full_list[0].range_mid


class TestDirtyInputs:
    """Non-finite figures and loosely formatted level labels from source files."""

    def test_infinite_salary_and_percentile_are_treated_as_absent(self, minimal_config):
        market = {"US": [make_vendor_row("US", "F.P5", p25="inf", p625=140000, p90=200000)]}
        employees = [
            make_employee("E1", "inf", family_code="F"),
            make_employee("E2", 100000, family_code="F"),
        ]

        result = AggregationEngine(minimal_config).build(market, employees, as_of=AS_OF)
        row = result.lookup("Family FL5 ICUS")

        assert row.range_start is None
        assert row.range_mid == 140000
        assert row.internal_count == 1
        assert row.internal_max == 100000
        assert row.compa_ratio.avg == pytest.approx(100000 / 140000)

    def test_level_labels_join_case_insensitively(self, minimal_config, us_market_rows):
        employees = [
            make_employee("E1", 100000, family_code="F", level="L5 ic"),
            make_employee("E2", 120000, family_code="F", level="l5  IC"),
        ]

        result = AggregationEngine(minimal_config).build(us_market_rows, employees, as_of=AS_OF)
        row = result.lookup("Family FL5 ICUS")

        assert row.internal_count == 2
        assert row.internal_median == 110000
        assert [r.level for r in result.full_list] == ["L4.5 IC", "L5 IC", "L5.5 IC"]
